"""Case API routes."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import JSONResponse

from rahat_service.api.dependencies import get_actor, get_case_manager, require_tehsildar
from rahat_service.api.responses import respond
from rahat_service.config import settings
from rahat_service.core import CaseManager
from rahat_service.models import (
    Actor,
    CaseCreateRequest,
    CaseFilter,
    CaseStatus,
    DocumentUploadRequest,
    DocumentUploadResult,
    PaymentRemarkRequest,
    PaymentResult,
    WorkflowUpdateRequest,
    WorkflowUpdateResult,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/cases", tags=["cases"])


# =============================================================================
# Case Creation
# =============================================================================

@router.post(
    "/create",
    status_code=status.HTTP_201_CREATED,
    summary="Create compensation case",
    description="""
Registers a new compensation claim for a deceased victim at Stage 1.

**Request Body Example**:
```json
{
  "name": "Ramesh Kumar",
  "dob": "1980-04-12",
  "dod": "2024-07-01",
  "address": "Village Khurd, Tehsil Sadar",
  "contact": "9876543210",
  "description": "Drowned during flood",
  "caseSDM": "sdm-user-42"
}
```

**Validation**:
- All victim fields are required
- `dob` and `dod` are YYYY-MM-DD and `dod` must be after `dob`
- `contact` is a 10-digit Indian mobile (optional +91) or an e-mail address
- `caseSDM` names the SDM the case is routed to

**Response**: `data.case_id` holds the generated ID (`RAHAT-YYYY-DDMM-NNNN`).

**Authorization**: Tehsildar or Collector office
    """,
    responses={
        201: {"description": "Case created"},
        400: {"description": "Invalid victim details or missing SDM"},
        401: {"description": "Caller is not a Tehsildar"},
        500: {"description": "Case ID could not be generated"},
    },
)
async def create_case(
    request: CaseCreateRequest,
    actor: Actor = Depends(require_tehsildar),
    case_manager: CaseManager = Depends(get_case_manager),
) -> JSONResponse:
    case = await case_manager.create_case(request, request.case_sdm, actor)
    return respond(
        {"case_id": case.case_id},
        status_code=status.HTTP_201_CREATED,
        message="Case created successfully",
    )


# =============================================================================
# Listing
# =============================================================================

@router.get(
    "",
    summary="List cases",
    description="""
Returns a page of cases, newest first.

**Query Parameters**:
- `page`: 1-based page number (default 1)
- `limit`: page size, 1 to 100 (default 10)
- `search`: case-insensitive match on victim name, contact or case ID
- `status`, `stage`, `case_sdm`: exact filters

**Response**: `docs` plus `total_docs`, `limit`, `page`, `total_pages`,
`next_page` and `prev_page`.

**Authorization**: Any authenticated user
    """,
    responses={
        200: {"description": "Page of cases returned"},
        400: {"description": "Invalid pagination"},
        401: {"description": "Not authenticated"},
    },
)
async def list_cases(
    page: int = Query(1, description="Page number"),
    limit: Optional[int] = Query(None, description="Page size"),
    search: Optional[str] = Query(None),
    case_status: Optional[CaseStatus] = Query(None, alias="status"),
    stage: Optional[int] = Query(None, ge=1, le=8),
    case_sdm: Optional[str] = Query(None),
    actor: Actor = Depends(get_actor),
    case_manager: CaseManager = Depends(get_case_manager),
) -> JSONResponse:
    case_filter = CaseFilter(status=case_status, stage=stage, case_sdm=case_sdm)
    result = await case_manager.list_cases(page=page, limit=limit, case_filter=case_filter, search=search)
    return respond(result, message="Cases fetched successfully")


@router.get(
    "/my-pending",
    summary="List cases waiting on me",
    description="""
Returns the cases whose current (status, stage) belongs to the caller's role.

| Role | Queue |
|------|-------|
| tehsildar | created@1, pendingTehsildar@8 |
| sdm | pendingSDM@2 |
| rahat-shakha | pendingRahatShakha@3 |
| oic | pendingOIC@4 |
| additional-collector | pendingAdditionalCollector@5, pendingAdditionalCollector2@7 |
| collector | pendingCollector@6 |

`stage_filter` is set when the queue has a single stage.

**Authorization**: Any authenticated user with a workflow role
    """,
    responses={
        200: {"description": "Pending cases returned"},
        400: {"description": "Unknown role or invalid pagination"},
        401: {"description": "No role on the caller"},
    },
)
async def my_pending_cases(
    page: int = Query(1),
    limit: Optional[int] = Query(None),
    search: Optional[str] = Query(None),
    actor: Actor = Depends(get_actor),
    case_manager: CaseManager = Depends(get_case_manager),
) -> JSONResponse:
    result = await case_manager.my_pending_cases(actor, page=page, limit=limit, search=search)
    return respond(result, message="Pending cases fetched successfully")


@router.get(
    "/{case_id}",
    summary="Get case",
    responses={
        200: {"description": "Case returned"},
        404: {"description": "Case not found"},
    },
)
async def get_case(
    case_id: str,
    actor: Actor = Depends(get_actor),
    case_manager: CaseManager = Depends(get_case_manager),
) -> JSONResponse:
    case = await case_manager.get_case(case_id)
    return respond(case, message="Case fetched successfully")


# =============================================================================
# Workflow
# =============================================================================

@router.post(
    "/{case_id}/documents/upload",
    status_code=status.HTTP_201_CREATED,
    summary="Attach field reports",
    description="""
Attaches the Patwari and Thana Inspector report URLs to a Stage 1 case and
forwards it to the SDM (pendingSDM, Stage 2).

**Request Body Example**:
```json
{
  "patwari": ["http://files.local/api/v1/files/abc.pdf"],
  "ti": ["http://files.local/api/v1/files/def.pdf"]
}
```

Every URL must come from the file service. The document list is replaced,
not appended to.

**Authorization**: Tehsildar or Collector office
    """,
    responses={
        201: {"description": "Documents attached, case moved to Stage 2"},
        400: {"description": "No documents, bad URL or wrong stage"},
        404: {"description": "Case not found"},
        409: {"description": "Case changed concurrently"},
    },
)
async def upload_documents(
    case_id: str,
    request: DocumentUploadRequest,
    actor: Actor = Depends(require_tehsildar),
    case_manager: CaseManager = Depends(get_case_manager),
) -> JSONResponse:
    case = await case_manager.upload_documents(case_id, request.patwari, request.ti, actor)
    return respond(
        DocumentUploadResult.from_case(case),
        status_code=status.HTTP_201_CREATED,
        message="Documents uploaded successfully",
    )


@router.put(
    "/{case_id}/update",
    summary="Approve or reject at the current stage",
    description="""
Moves a case through the review chain.

**Request Body Example**:
```json
{"status": "rejected", "remark": "Post-mortem report missing"}
```

- `approved` advances to the next stage
- `rejected` returns the case to the previous stage; after two earlier
  rejections at the same stage it is escalated to the Collector (Stage 6)
- A remark is mandatory when rejecting

**Authorization**: The role owning the current stage. An SDM acts as
Rahat Shakha on stages owned by Rahat Shakha.
    """,
    responses={
        200: {"description": "Case moved"},
        400: {"description": "Invalid action, missing remark or terminal case"},
        401: {"description": "Caller does not own the stage"},
        404: {"description": "Case not found"},
        409: {"description": "Case changed concurrently"},
    },
)
async def update_workflow(
    case_id: str,
    request: WorkflowUpdateRequest,
    actor: Actor = Depends(get_actor),
    case_manager: CaseManager = Depends(get_case_manager),
) -> JSONResponse:
    case = await case_manager.update_workflow(case_id, request.status, request.remark, actor)
    result = WorkflowUpdateResult(
        case_id=case.case_id,
        new_status=case.status,
        new_stage=case.stage,
        remark=request.remark,
    )
    return respond(result, message="Case updated successfully")


@router.put(
    "/{case_id}/close",
    summary="Close case and record payment",
    description="""
Closes a Stage 8 case and records the compensation payment.

**Request Body Example**:
```json
{"paymentRemark": "Paid via DBT, UTR 1234"}
```

**Authorization**: Tehsildar only
    """,
    responses={
        200: {"description": "Case closed"},
        400: {"description": "Missing remark or case not at Stage 8"},
        401: {"description": "Caller is not a Tehsildar"},
        404: {"description": "Case not found"},
        409: {"description": "Case already closed"},
    },
)
async def close_case(
    case_id: str,
    request: PaymentRemarkRequest,
    actor: Actor = Depends(get_actor),
    case_manager: CaseManager = Depends(get_case_manager),
) -> JSONResponse:
    case = await case_manager.close_case(case_id, request.payment_remark, actor)
    return respond(
        PaymentResult.from_case(case, settings.base_url),
        message="Case closed successfully",
    )


@router.put(
    "/{case_id}/fix-payment",
    summary="Attach missing payment details",
    description="""
Adds payment details to a case that was closed without them.

**Authorization**: Tehsildar only
    """,
    responses={
        200: {"description": "Payment details added"},
        400: {"description": "Missing remark or case not closed"},
        401: {"description": "Caller is not a Tehsildar"},
        404: {"description": "Case not found"},
        409: {"description": "Payment already recorded"},
    },
)
async def repair_payment(
    case_id: str,
    request: PaymentRemarkRequest,
    actor: Actor = Depends(get_actor),
    case_manager: CaseManager = Depends(get_case_manager),
) -> JSONResponse:
    case = await case_manager.repair_payment(case_id, request.payment_remark, actor)
    return respond(
        PaymentResult.from_case(case, settings.base_url),
        message="Payment details added successfully",
    )
