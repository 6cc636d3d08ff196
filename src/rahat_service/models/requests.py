"""API request and response models."""

from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, Field

from rahat_service.models.case import Case, CaseStatus, DocumentType, Payment


class VictimInput(BaseModel):
    """Raw victim details as submitted; validated by the case manager."""

    name: Optional[str] = None
    dob: Optional[str] = None
    dod: Optional[str] = None
    address: Optional[str] = None
    contact: Optional[str] = None
    description: Optional[str] = None


class CaseCreateRequest(VictimInput):
    """Request to create a new case."""

    case_sdm: Optional[str] = Field(default=None, alias="caseSDM")

    model_config = {"populate_by_name": True}


class DocumentUploadRequest(BaseModel):
    """Document references produced by the file service."""

    patwari: List[str] = Field(default_factory=list)
    ti: List[str] = Field(default_factory=list)


class WorkflowUpdateRequest(BaseModel):
    """Approve or reject the case at its current stage."""

    status: str
    remark: Optional[str] = None


class PaymentRemarkRequest(BaseModel):
    payment_remark: Optional[str] = Field(default=None, alias="paymentRemark")

    model_config = {"populate_by_name": True}


class CaseFilter(BaseModel):
    """Structured predicate over indexed case fields.

    ``queue`` is an OR of (status, stage) pairs; every other field is ANDed.
    """

    status: Optional[CaseStatus] = None
    stage: Optional[int] = Field(default=None, ge=1, le=8)
    case_sdm: Optional[str] = None
    queue: List[Tuple[CaseStatus, int]] = Field(default_factory=list)

    def matches(self, case: Case) -> bool:
        if self.status is not None and case.status is not self.status:
            return False
        if self.stage is not None and case.stage != self.stage:
            return False
        if self.case_sdm is not None and case.case_sdm != self.case_sdm:
            return False
        if self.queue and (case.status, case.stage) not in self.queue:
            return False
        return True


def matches_search(case: Case, search: Optional[str]) -> bool:
    """Case-insensitive substring match over victim name, contact and case ID."""
    if not search:
        return True
    needle = search.lower()
    return (
        needle in case.victim.name.lower()
        or needle in case.victim.contact.lower()
        or needle in case.case_id.lower()
    )


class PaginatedCases(BaseModel):
    """A page of cases plus navigation metadata."""

    docs: List[Case]
    total_docs: int
    limit: int
    page: int
    total_pages: int
    next_page: bool
    prev_page: bool

    @classmethod
    def build(cls, docs: List[Case], total: int, page: int, limit: int) -> "PaginatedCases":
        total_pages = -(-total // limit) if limit else 0
        return cls(
            docs=docs,
            total_docs=total,
            limit=limit,
            page=page,
            total_pages=total_pages,
            next_page=page < total_pages,
            prev_page=page > 1,
        )


class DocumentCounts(BaseModel):
    patwari: int
    ti: int
    total: int


class DocumentUploadResult(BaseModel):
    case_id: str
    documents: DocumentCounts
    new_status: CaseStatus
    new_stage: int

    @classmethod
    def from_case(cls, case: Case) -> "DocumentUploadResult":
        patwari = sum(1 for d in case.documents if d.type is DocumentType.PATWARI)
        ti = sum(1 for d in case.documents if d.type is DocumentType.THANA_INSPECTOR)
        return cls(
            case_id=case.case_id,
            documents=DocumentCounts(patwari=patwari, ti=ti, total=patwari + ti),
            new_status=case.status,
            new_stage=case.stage,
        )


class WorkflowUpdateResult(BaseModel):
    case_id: str
    new_status: CaseStatus
    new_stage: int
    remark: Optional[str] = None


class PaymentResult(BaseModel):
    case_id: str
    status: CaseStatus
    stage: int
    payment: Optional[Payment]
    final_pdf_url: str

    @classmethod
    def from_case(cls, case: Case, base_url: str) -> "PaymentResult":
        return cls(
            case_id=case.case_id,
            status=case.status,
            stage=case.stage,
            payment=case.payment,
            final_pdf_url=f"{base_url.rstrip('/')}/api/v1/cases/{case.case_id}/final-pdf",
        )


class PendingCases(PaginatedCases):
    user_role: str
    stage_filter: Optional[int] = None


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    service: str
    version: str
    database: str


class ApiEnvelope(BaseModel):
    """Success envelope wrapped around every payload."""

    success: bool = True
    status: int
    message: str = ""
    data: Any = None
    timestamp: datetime


class ErrorEnvelope(BaseModel):
    success: bool = False
    status: int
    title: str
    message: str
    errors: List[Dict[str, Any]] = Field(default_factory=list)
    meta: Dict[str, Any] = Field(default_factory=dict)
    timestamp: datetime
