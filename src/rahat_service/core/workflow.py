"""Case workflow state machine.

The approval chain is a fixed table of eight stages. Each stage names the
status a case holds there, the role that owns it, where approval leads and
where rejection leads. Stages 7 and 8 are OBEY orders: they have no
rejection target, and a rejection there leaves the case ``rejected``.

Repeated rejection at one stage escalates the case straight to the
Collector (stage 6). Rejections are not stored; they are counted from the
remark history on every call.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

from rahat_service.core.errors import (
    InconsistentCaseState,
    InvalidCaseStage,
    InvalidWorkflowAction,
    MissingRejectionRemark,
    UnauthorizedForStage,
)
from rahat_service.models.case import (
    Actor,
    Case,
    CaseStatus,
    Remark,
    Role,
    WorkflowAction,
)

logger = logging.getLogger(__name__)

FIRST_STAGE = 1
FINAL_STAGE = 8
SYSTEM_USER = "system"

# Prior rejections at a stage before the next one escalates
ESCALATION_THRESHOLD = 2
ESCALATION_REMARK = "Escalated to Collector due to multiple rejections"


@dataclass(frozen=True)
class WorkflowState:
    status: CaseStatus
    stage: int


@dataclass(frozen=True)
class StageRule:
    """Everything the engine knows about one stage."""

    stage: int
    status: CaseStatus
    owner: Role
    on_approve: WorkflowState
    on_reject: Optional[WorkflowState] = None
    # Role allowed to act when the case was sent back here by a rejection
    backtracking_role: Optional[Role] = None

    @property
    def state(self) -> WorkflowState:
        return WorkflowState(self.status, self.stage)


def _build_stage_table(rules: Iterable[StageRule]) -> Dict[int, StageRule]:
    """Index rules by stage, refusing gaps and dangling targets."""
    table = {rule.stage: rule for rule in rules}

    expected = set(range(FIRST_STAGE, FINAL_STAGE + 1))
    if set(table) != expected:
        missing = sorted(expected - set(table))
        extra = sorted(set(table) - expected)
        raise ValueError(f"Stage table must cover stages 1-8 (missing={missing}, extra={extra})")

    for rule in table.values():
        targets = [rule.on_approve] + ([rule.on_reject] if rule.on_reject else [])
        for target in targets:
            if target.status is CaseStatus.CLOSED and target.stage == FINAL_STAGE:
                continue
            if target.stage not in table or table[target.stage].status is not target.status:
                raise ValueError(f"Stage {rule.stage} points at unknown state {target}")

    return table


STAGE_TABLE: Dict[int, StageRule] = _build_stage_table([
    StageRule(
        stage=1,
        status=CaseStatus.CREATED,
        owner=Role.TEHSILDAR,
        on_approve=WorkflowState(CaseStatus.PENDING_SDM, 2),
        backtracking_role=Role.TEHSILDAR,
    ),
    StageRule(
        stage=2,
        status=CaseStatus.PENDING_SDM,
        owner=Role.SDM,
        on_approve=WorkflowState(CaseStatus.PENDING_RAHAT_SHAKHA, 3),
        on_reject=WorkflowState(CaseStatus.CREATED, 1),
        backtracking_role=Role.SDM,
    ),
    StageRule(
        stage=3,
        status=CaseStatus.PENDING_RAHAT_SHAKHA,
        owner=Role.RAHAT_SHAKHA,
        on_approve=WorkflowState(CaseStatus.PENDING_OIC, 4),
        on_reject=WorkflowState(CaseStatus.PENDING_SDM, 2),
        backtracking_role=Role.RAHAT_SHAKHA,
    ),
    StageRule(
        stage=4,
        status=CaseStatus.PENDING_OIC,
        owner=Role.OIC,
        on_approve=WorkflowState(CaseStatus.PENDING_ADDITIONAL_COLLECTOR, 5),
        on_reject=WorkflowState(CaseStatus.PENDING_RAHAT_SHAKHA, 3),
        backtracking_role=Role.OIC,
    ),
    StageRule(
        stage=5,
        status=CaseStatus.PENDING_ADDITIONAL_COLLECTOR,
        owner=Role.ADDITIONAL_COLLECTOR,
        on_approve=WorkflowState(CaseStatus.PENDING_COLLECTOR, 6),
        on_reject=WorkflowState(CaseStatus.PENDING_OIC, 4),
        backtracking_role=Role.ADDITIONAL_COLLECTOR,
    ),
    StageRule(
        stage=6,
        status=CaseStatus.PENDING_COLLECTOR,
        owner=Role.COLLECTOR,
        on_approve=WorkflowState(CaseStatus.PENDING_ADDITIONAL_COLLECTOR_2, 7),
        on_reject=WorkflowState(CaseStatus.PENDING_ADDITIONAL_COLLECTOR, 5),
    ),
    StageRule(
        stage=7,
        status=CaseStatus.PENDING_ADDITIONAL_COLLECTOR_2,
        owner=Role.ADDITIONAL_COLLECTOR,
        on_approve=WorkflowState(CaseStatus.PENDING_TEHSILDAR, 8),
    ),
    StageRule(
        stage=8,
        status=CaseStatus.PENDING_TEHSILDAR,
        owner=Role.TEHSILDAR,
        on_approve=WorkflowState(CaseStatus.CLOSED, 8),
    ),
])

ESCALATION_TARGET = STAGE_TABLE[6].state


def rule_for(stage: int) -> StageRule:
    try:
        return STAGE_TABLE[stage]
    except KeyError:
        raise InconsistentCaseState(f"Stage {stage} is outside the approval chain") from None


def is_valid_state(status: CaseStatus, stage: int) -> bool:
    """Whether (status, stage) is a state a case may hold."""
    if stage not in STAGE_TABLE:
        return False
    if status is CaseStatus.REJECTED:
        return True
    if status is CaseStatus.CLOSED:
        return stage == FINAL_STAGE
    return STAGE_TABLE[stage].status is status


def ensure_valid_state(case: Case) -> None:
    if not is_valid_state(case.status, case.stage):
        raise InconsistentCaseState(
            f"Case {case.case_id} holds invalid state ({case.status.value}, {case.stage})"
        )


# ============================================================
# Authorization
# ============================================================

def effective_role(role: str, required: Role) -> str:
    """Legacy ``sdm`` accounts act as Rahat Shakha outside the SDM stage."""
    if role == Role.SDM.value and required is not Role.SDM:
        return Role.RAHAT_SHAKHA.value
    return role


def can_act(actor: Actor, stage: int) -> bool:
    rule = rule_for(stage)
    role = effective_role(actor.role, rule.owner)
    if role == rule.owner.value:
        return True
    return rule.backtracking_role is not None and role == rule.backtracking_role.value


def authorize(actor: Actor, stage: int) -> None:
    """Raise UnauthorizedForStage unless the actor owns the stage."""
    if can_act(actor, stage):
        return
    required = rule_for(stage).owner.value
    logger.warning(f"User {actor.user_id} ({actor.role}) denied at stage {stage}")
    raise UnauthorizedForStage(
        f"User with role {actor.role} cannot update case in stage {stage}. "
        f"Required role: {required}",
        meta={"required_role": required, "stage": stage},
    )


def queue_for_role(role: str) -> List[WorkflowState]:
    """States whose pending work belongs to the given role."""
    return [rule.state for rule in STAGE_TABLE.values() if rule.owner.value == role]


# ============================================================
# Transitions
# ============================================================

def count_stage_rejections(remarks: Iterable[Remark], stage: int) -> int:
    """Count every historical remark at ``stage`` that mentions a rejection."""
    return sum(
        1 for remark in remarks
        if remark.stage == stage and "rejected" in remark.remark.lower()
    )


def _move(case: Case, state: WorkflowState) -> None:
    case.status = state.status
    case.stage = state.stage


def approve(case: Case, actor: Actor, remark: Optional[str] = None) -> Case:
    """Advance the case one stage; stage 8 approval closes it."""
    rule = rule_for(case.stage)
    text = f"Approved: {remark}" if remark else "Approved"
    case.add_remark(rule.stage, text, actor.user_id or SYSTEM_USER)
    _move(case, rule.on_approve)
    return case


def reject(case: Case, actor: Actor, remark: str) -> Case:
    """Send the case back one stage, or escalate on the third rejection."""
    if not remark:
        raise MissingRejectionRemark()

    rule = rule_for(case.stage)
    user_id = actor.user_id or SYSTEM_USER
    prior_rejections = count_stage_rejections(case.remarks, rule.stage)

    case.add_remark(rule.stage, f"Rejected: {remark}", user_id)

    if prior_rejections >= ESCALATION_THRESHOLD:
        _move(case, ESCALATION_TARGET)
        case.add_remark(ESCALATION_TARGET.stage, ESCALATION_REMARK, SYSTEM_USER)
        logger.info(
            f"Case {case.case_id} escalated to Collector after "
            f"{prior_rejections + 1} rejections at stage {rule.stage}"
        )
    elif rule.on_reject is not None:
        _move(case, rule.on_reject)
        case.add_remark(
            rule.on_reject.stage,
            f"Rejected by {rule.owner.label}: {remark} - Case returned to previous stage",
            user_id,
        )
    else:
        # OBEY orders have nowhere to return to
        case.status = CaseStatus.REJECTED

    return case


def apply_action(
    case: Case,
    action: WorkflowAction,
    actor: Actor,
    remark: Optional[str] = None,
) -> Case:
    """Authorize and apply an approve/reject action to a case in place.

    Args:
        case: Case to transition (mutated)
        action: approved or rejected
        actor: Acting user
        remark: Free text; mandatory for rejection

    Returns:
        The same case, transitioned

    Raises:
        MissingRejectionRemark: Rejection without a remark
        InvalidCaseStage: Case already closed or rejected
        UnauthorizedForStage: Actor does not own the current stage
    """
    if action is WorkflowAction.REJECTED and not remark:
        raise MissingRejectionRemark()

    if case.status.is_terminal:
        raise InvalidCaseStage(
            f"Case {case.case_id} is {case.status.value} and accepts no further workflow actions"
        )

    authorize(actor, case.stage)

    if action is WorkflowAction.APPROVED:
        approve(case, actor, remark)
    elif action is WorkflowAction.REJECTED:
        reject(case, actor, remark)
    else:
        raise InvalidWorkflowAction()

    ensure_valid_state(case)
    return case
