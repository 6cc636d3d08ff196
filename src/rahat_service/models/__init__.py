"""Models package."""

from .case import (
    Actor,
    Case,
    CaseDocument,
    CaseStatus,
    DocumentType,
    Payment,
    PaymentStatus,
    Remark,
    Role,
    Victim,
    WorkflowAction,
)
from .requests import (
    ApiEnvelope,
    CaseCreateRequest,
    CaseFilter,
    DocumentCounts,
    DocumentUploadRequest,
    DocumentUploadResult,
    ErrorEnvelope,
    HealthResponse,
    PaginatedCases,
    PaymentRemarkRequest,
    PaymentResult,
    PendingCases,
    VictimInput,
    WorkflowUpdateRequest,
    WorkflowUpdateResult,
    matches_search,
)

__all__ = [
    "Actor",
    "Case",
    "CaseDocument",
    "CaseStatus",
    "DocumentType",
    "Payment",
    "PaymentStatus",
    "Remark",
    "Role",
    "Victim",
    "WorkflowAction",
    "ApiEnvelope",
    "CaseCreateRequest",
    "CaseFilter",
    "DocumentCounts",
    "DocumentUploadRequest",
    "DocumentUploadResult",
    "ErrorEnvelope",
    "HealthResponse",
    "PaginatedCases",
    "PaymentRemarkRequest",
    "PaymentResult",
    "PendingCases",
    "VictimInput",
    "WorkflowUpdateRequest",
    "WorkflowUpdateResult",
    "matches_search",
]
