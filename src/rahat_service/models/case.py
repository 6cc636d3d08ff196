"""Case data models for rahat-case-service.

Domain models for compensation-claim cases moving through the approval chain.
"""

from datetime import date, datetime, timezone
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class CaseStatus(str, Enum):
    """Named workflow state, paired with a stage."""

    CREATED = "created"
    PENDING_SDM = "pendingSDM"
    PENDING_RAHAT_SHAKHA = "pendingRahatShakha"
    PENDING_OIC = "pendingOIC"
    PENDING_ADDITIONAL_COLLECTOR = "pendingAdditionalCollector"
    PENDING_COLLECTOR = "pendingCollector"
    PENDING_ADDITIONAL_COLLECTOR_2 = "pendingAdditionalCollector2"
    PENDING_TEHSILDAR = "pendingTehsildar"
    CLOSED = "closed"
    REJECTED = "rejected"

    @property
    def is_terminal(self) -> bool:
        return self in (CaseStatus.CLOSED, CaseStatus.REJECTED)


class Role(str, Enum):
    """Department roles that own approval stages."""

    TEHSILDAR = "tehsildar"
    SDM = "sdm"
    RAHAT_SHAKHA = "rahat-shakha"
    OIC = "oic"
    ADDITIONAL_COLLECTOR = "additional-collector"
    COLLECTOR = "collector"

    @property
    def label(self) -> str:
        return _ROLE_LABELS[self]


_ROLE_LABELS = {
    Role.TEHSILDAR: "Tehsildar",
    Role.SDM: "SDM",
    Role.RAHAT_SHAKHA: "Rahat Shakha",
    Role.OIC: "OIC",
    Role.ADDITIONAL_COLLECTOR: "Additional Collector",
    Role.COLLECTOR: "Collector",
}


class WorkflowAction(str, Enum):
    APPROVED = "approved"
    REJECTED = "rejected"


class DocumentType(str, Enum):
    PATWARI = "patwari"
    THANA_INSPECTOR = "thana_inspector"


class PaymentStatus(str, Enum):
    COMPLETED = "completed"
    PENDING = "pending"
    FAILED = "failed"


class Victim(BaseModel):
    """Deceased person the compensation claim is filed for."""

    name: str = Field(min_length=1)
    dob: date
    dod: date
    address: str = Field(min_length=1)
    contact: str = Field(min_length=1)
    description: str = Field(min_length=1)


class Remark(BaseModel):
    """One audit-trail entry. Remarks are never edited or removed."""

    stage: int = Field(ge=1, le=8)
    remark: str
    user_id: str
    date: datetime = Field(default_factory=utc_now)


class CaseDocument(BaseModel):
    url: str
    type: DocumentType
    uploaded_at: datetime = Field(default_factory=utc_now)


class Payment(BaseModel):
    status: PaymentStatus = PaymentStatus.COMPLETED
    amount: int = 150000
    remark: str
    date: datetime = Field(default_factory=utc_now)
    processed_by: str


class Actor(BaseModel):
    """The user performing an action, as resolved by the identity provider."""

    user_id: str
    role: str = ""
    department: str = ""


class Case(BaseModel):
    """Case domain model."""

    model_config = ConfigDict(from_attributes=True)

    case_id: str = Field(min_length=1)
    victim: Victim
    case_sdm: str = Field(min_length=1, description="Assigned reviewing SDM")

    status: CaseStatus = CaseStatus.CREATED
    stage: int = Field(default=1, ge=1, le=8)

    documents: List[CaseDocument] = Field(default_factory=list)
    remarks: List[Remark] = Field(default_factory=list)
    payment: Optional[Payment] = None

    version: int = Field(default=1, ge=1, description="Optimistic concurrency token")
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    def add_remark(self, stage: int, text: str, user_id: str) -> Remark:
        remark = Remark(stage=stage, remark=text, user_id=user_id)
        self.remarks.append(remark)
        return remark
