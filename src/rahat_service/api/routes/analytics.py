"""Analytics API routes."""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from rahat_service.api.dependencies import get_analytics_service, require_collector
from rahat_service.api.responses import respond
from rahat_service.core import AnalyticsService
from rahat_service.models import Actor

router = APIRouter(prefix="/api/v1/analytics", tags=["analytics"])


@router.get(
    "/dashboard",
    summary="Collector dashboard",
    description="""
Aggregates the whole case store.

- `status_overview`: count and rounded percentage per status
- `delay_analysis`: open cases older than 15 days, and per-stage overdue
  days against an allowance of 2 days per stage
- `rejection_analysis`: rejection remarks on open cases, by stage, with the
  ten most common reasons
- `average_resolution_time`: mean days from creation to last update over
  closed cases

**Authorization**: Collector only
    """,
    responses={
        200: {"description": "Dashboard returned"},
        401: {"description": "Caller is not the Collector"},
    },
)
async def dashboard(
    actor: Actor = Depends(require_collector),
    analytics: AnalyticsService = Depends(get_analytics_service),
) -> JSONResponse:
    result = await analytics.dashboard()
    return respond(result, message="Analytics fetched successfully")
