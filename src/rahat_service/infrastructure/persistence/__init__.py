"""Case persistence layer - Repository Pattern implementation."""

from rahat_service.infrastructure.persistence.case_repository import (
    CaseRepository,
    InMemoryCaseRepository,
)
from rahat_service.infrastructure.persistence.sql_case_repository import (
    SQLCaseRepository,
)

__all__ = [
    "CaseRepository",
    "InMemoryCaseRepository",
    "SQLCaseRepository",
]
