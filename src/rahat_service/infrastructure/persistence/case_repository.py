"""Case Repository for workflow case persistence.

This module provides the repository pattern for Case domain model persistence.
It abstracts storage operations and provides clean interfaces for the service layer.
"""

from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Dict, List, Optional

from rahat_service.core.errors import CaseNotFound, ConcurrentModification, DuplicateCaseId
from rahat_service.models import Case, CaseFilter, matches_search


# ============================================================
# Repository Interface
# ============================================================

class CaseRepository(ABC):
    """
    Abstract repository interface for Case persistence.

    Implementations:
    - SQLCaseRepository: SQLite/PostgreSQL via SQLAlchemy
    - InMemoryCaseRepository: Testing and development

    Every write targets a single case. ``update`` is a compare-and-swap on
    the case version so that two concurrent read-modify-write cycles on the
    same case cannot silently overwrite each other.
    """

    @abstractmethod
    async def add(self, case: Case) -> Case:
        """
        Insert a new case.

        Args:
            case: Case domain object with a freshly allocated case_id

        Returns:
            Stored case (with store-maintained timestamps)

        Raises:
            DuplicateCaseId: If the case_id is already taken
            PersistenceFailed: If the insert fails
        """

    @abstractmethod
    async def get(self, case_id: str) -> Optional[Case]:
        """
        Retrieve case by ID.

        Args:
            case_id: Case identifier

        Returns:
            Case if found, None otherwise
        """

    @abstractmethod
    async def exists(self, case_id: str) -> bool:
        """Check whether a case ID is taken."""

    @abstractmethod
    async def update(self, case: Case, expected_version: int) -> Case:
        """
        Replace a stored case if nobody else changed it first.

        Args:
            case: Modified case
            expected_version: Version the case had when it was read

        Returns:
            Stored case with version bumped and updated_at refreshed

        Raises:
            CaseNotFound: If the case does not exist
            ConcurrentModification: If the stored version moved on
            PersistenceFailed: If the update fails
        """

    @abstractmethod
    async def list(
        self,
        case_filter: Optional[CaseFilter] = None,
        search: Optional[str] = None,
        limit: int = 10,
        offset: int = 0,
    ) -> tuple[List[Case], int]:
        """
        List cases newest first.

        Args:
            case_filter: Structured predicate
            search: Case-insensitive substring over victim name, contact, case ID
            limit: Maximum results
            offset: Pagination offset

        Returns:
            Tuple of (cases, total_count)
        """

    @abstractmethod
    async def all(self) -> List[Case]:
        """Return every case (read-only aggregation)."""

    @abstractmethod
    async def delete(self, case_id: str) -> bool:
        """
        Delete case by ID. Used only by operational seeding tools.

        Returns:
            True if deleted, False if not found
        """


# ============================================================
# In-Memory Implementation (for Testing)
# ============================================================

class InMemoryCaseRepository(CaseRepository):
    """
    In-memory case repository for testing and development.

    Data stored in dictionary, not persistent across restarts. Cases are
    copied on the way in and out so callers never share state with the store.
    """

    def __init__(self):
        """Initialize empty in-memory store."""
        self._cases: Dict[str, Case] = {}

    async def add(self, case: Case) -> Case:
        """Insert case into memory."""
        if case.case_id in self._cases:
            raise DuplicateCaseId()

        stored = case.model_copy(deep=True, update={"version": 1})
        self._cases[stored.case_id] = stored
        return stored.model_copy(deep=True)

    async def get(self, case_id: str) -> Optional[Case]:
        """Get case from memory."""
        case = self._cases.get(case_id)
        return case.model_copy(deep=True) if case else None

    async def exists(self, case_id: str) -> bool:
        return case_id in self._cases

    async def update(self, case: Case, expected_version: int) -> Case:
        """Compare-and-swap case in memory."""
        current = self._cases.get(case.case_id)
        if current is None:
            raise CaseNotFound()
        if current.version != expected_version:
            raise ConcurrentModification()

        stored = case.model_copy(
            deep=True,
            update={
                "version": expected_version + 1,
                "created_at": current.created_at,
                "updated_at": datetime.now(timezone.utc),
            },
        )
        self._cases[stored.case_id] = stored
        return stored.model_copy(deep=True)

    async def list(
        self,
        case_filter: Optional[CaseFilter] = None,
        search: Optional[str] = None,
        limit: int = 10,
        offset: int = 0,
    ) -> tuple[List[Case], int]:
        """List cases with filters."""
        filtered = [
            c for c in self._cases.values()
            if (case_filter is None or case_filter.matches(c)) and matches_search(c, search)
        ]

        # Sort by created_at descending
        filtered.sort(key=lambda c: (c.created_at, c.case_id), reverse=True)

        total_count = len(filtered)

        # Paginate
        paginated = filtered[offset:offset + limit]

        return [c.model_copy(deep=True) for c in paginated], total_count

    async def all(self) -> List[Case]:
        return [c.model_copy(deep=True) for c in self._cases.values()]

    async def delete(self, case_id: str) -> bool:
        """Delete case from memory."""
        if case_id in self._cases:
            del self._cases[case_id]
            return True
        return False
