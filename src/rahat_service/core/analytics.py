"""Read-only analytics over the case store for the Collector dashboard."""

import logging
import re
from collections import Counter
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Dict, List, Optional

from pydantic import BaseModel, Field

from rahat_service.models import Case, CaseStatus

if TYPE_CHECKING:
    from rahat_service.infrastructure.persistence import CaseRepository

logger = logging.getLogger(__name__)

CRITICAL_DELAY_DAYS = 15
DAYS_PER_STAGE = 2
TOP_REASONS = 10

_REASON_PATTERN = re.compile(r"(?:rejected|rejection):?\s*(.+)", re.IGNORECASE)


class StatusOverview(BaseModel):
    status: str
    count: int
    percentage: int


class StageDelay(BaseModel):
    stage: int
    delayed_count: int
    average_delay: int


class CriticalDelay(BaseModel):
    case_id: str
    stage: int
    days_delayed: int
    status: str


class DelayAnalysis(BaseModel):
    total_delayed: int
    stage_delays: List[StageDelay]
    critical_delays: List[CriticalDelay]


class StageRejections(BaseModel):
    stage: int
    count: int
    reasons: List[str]


class RejectionReason(BaseModel):
    reason: str
    count: int


class RejectionAnalysis(BaseModel):
    total_rejections: int
    rejections_by_stage: List[StageRejections]
    top_rejection_reasons: List[RejectionReason]


class AnalyticsDashboard(BaseModel):
    status_overview: List[StatusOverview]
    delay_analysis: DelayAnalysis
    rejection_analysis: RejectionAnalysis
    total_cases: int
    active_cases: int
    closed_cases: int
    average_resolution_time: int
    last_updated: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


def _days_between(start: datetime, end: datetime) -> int:
    return int((end - start).total_seconds() // 86400)


def status_overview(cases: List[Case]) -> List[StatusOverview]:
    counts = Counter(case.status.value for case in cases)
    total = len(cases)
    return [
        StatusOverview(
            status=status,
            count=count,
            percentage=round(count / total * 100) if total else 0,
        )
        for status, count in counts.items()
    ]


def delay_analysis(cases: List[Case], now: datetime) -> DelayAnalysis:
    """Open cases older than 15 days are critical; each stage is allowed 2 days."""
    critical: List[CriticalDelay] = []
    stage_totals: Dict[int, List[int]] = {}

    for case in cases:
        if case.status is CaseStatus.CLOSED:
            continue

        age = _days_between(case.created_at, now)
        if age > CRITICAL_DELAY_DAYS:
            critical.append(CriticalDelay(
                case_id=case.case_id,
                stage=case.stage,
                days_delayed=age - CRITICAL_DELAY_DAYS,
                status=case.status.value,
            ))

        overdue = age - case.stage * DAYS_PER_STAGE
        if overdue > 0:
            stage_totals.setdefault(case.stage, []).append(overdue)

    stage_delays = [
        StageDelay(
            stage=stage,
            delayed_count=len(delays),
            average_delay=round(sum(delays) / len(delays)),
        )
        for stage, delays in sorted(stage_totals.items())
    ]

    return DelayAnalysis(
        total_delayed=len(critical),
        stage_delays=stage_delays,
        critical_delays=critical,
    )


def rejection_analysis(cases: List[Case]) -> RejectionAnalysis:
    """Rejection remarks on cases that are still open."""
    by_stage: Dict[int, List[str]] = {}
    reasons: Counter = Counter()

    for case in cases:
        if case.status is CaseStatus.CLOSED:
            continue
        for remark in case.remarks:
            text = remark.remark.lower()
            if "rejected" not in text and "rejection" not in text:
                continue
            by_stage.setdefault(remark.stage, []).append(remark.remark)
            match = _REASON_PATTERN.search(remark.remark)
            if match:
                reasons[match.group(1).strip()] += 1

    return RejectionAnalysis(
        total_rejections=sum(len(texts) for texts in by_stage.values()),
        rejections_by_stage=[
            StageRejections(stage=stage, count=len(texts), reasons=texts)
            for stage, texts in sorted(by_stage.items())
        ],
        top_rejection_reasons=[
            RejectionReason(reason=reason, count=count)
            for reason, count in reasons.most_common(TOP_REASONS)
        ],
    )


def average_resolution_days(cases: List[Case]) -> int:
    closed = [case for case in cases if case.status is CaseStatus.CLOSED]
    if not closed:
        return 0
    total = sum(_days_between(case.created_at, case.updated_at) for case in closed)
    return round(total / len(closed))


class AnalyticsService:
    """Aggregates the whole case store into a dashboard."""

    def __init__(self, repository: "CaseRepository"):
        self.repository = repository

    async def dashboard(self, now: Optional[datetime] = None) -> AnalyticsDashboard:
        now = now or datetime.now(timezone.utc)
        cases = await self.repository.all()
        closed = sum(1 for case in cases if case.status is CaseStatus.CLOSED)

        logger.info(f"Building analytics dashboard over {len(cases)} cases")

        return AnalyticsDashboard(
            status_overview=status_overview(cases),
            delay_analysis=delay_analysis(cases, now),
            rejection_analysis=rejection_analysis(cases),
            total_cases=len(cases),
            active_cases=len(cases) - closed,
            closed_cases=closed,
            average_resolution_time=average_resolution_days(cases),
            last_updated=now,
        )
