"""Unit tests for the workflow state machine.

Covers the stage table, role authorization, approve/backtrack/escalate
transitions and the OBEY-order fallback.
"""

import pytest

from rahat_service.core import workflow
from rahat_service.core.errors import (
    InconsistentCaseState,
    InvalidCaseStage,
    MissingRejectionRemark,
    UnauthorizedForStage,
)
from rahat_service.models import Actor, CaseStatus, Remark, WorkflowAction


def actor(role: str) -> Actor:
    return Actor(user_id=f"user-{role}", role=role)


@pytest.mark.unit
class TestStageTable:
    def test_covers_all_eight_stages(self):
        assert sorted(workflow.STAGE_TABLE) == list(range(1, 9))

    def test_forward_path_ends_closed_at_stage_eight(self):
        state = workflow.STAGE_TABLE[1].state
        visited = [state]
        while state.status is not CaseStatus.CLOSED:
            state = workflow.STAGE_TABLE[state.stage].on_approve
            visited.append(state)

        assert [s.stage for s in visited] == [1, 2, 3, 4, 5, 6, 7, 8, 8]
        assert visited[-1] == workflow.WorkflowState(CaseStatus.CLOSED, 8)

    @pytest.mark.parametrize("stage, target", [(2, 1), (3, 2), (4, 3), (5, 4), (6, 5)])
    def test_rejection_goes_back_one_stage(self, stage, target):
        assert workflow.STAGE_TABLE[stage].on_reject.stage == target

    @pytest.mark.parametrize("stage", [1, 7, 8])
    def test_stages_without_rejection_path(self, stage):
        assert workflow.STAGE_TABLE[stage].on_reject is None

    def test_incomplete_table_is_refused(self):
        rules = [rule for stage, rule in workflow.STAGE_TABLE.items() if stage != 4]
        with pytest.raises(ValueError):
            workflow._build_stage_table(rules)

    def test_valid_states(self):
        assert workflow.is_valid_state(CaseStatus.PENDING_OIC, 4)
        assert workflow.is_valid_state(CaseStatus.CLOSED, 8)
        assert workflow.is_valid_state(CaseStatus.REJECTED, 7)
        assert not workflow.is_valid_state(CaseStatus.CLOSED, 5)
        assert not workflow.is_valid_state(CaseStatus.PENDING_OIC, 3)


@pytest.mark.unit
class TestAuthorization:
    @pytest.mark.parametrize("stage, role", [
        (1, "tehsildar"),
        (2, "sdm"),
        (3, "rahat-shakha"),
        (4, "oic"),
        (5, "additional-collector"),
        (6, "collector"),
        (7, "additional-collector"),
        (8, "tehsildar"),
    ])
    def test_owner_may_act(self, stage, role):
        assert workflow.can_act(actor(role), stage)

    def test_sdm_acts_as_rahat_shakha_outside_sdm_stage(self):
        assert workflow.can_act(actor("sdm"), 3)
        assert workflow.effective_role("sdm", workflow.STAGE_TABLE[2].owner) == "sdm"

    def test_rahat_shakha_cannot_act_at_sdm_stage(self):
        assert not workflow.can_act(actor("rahat-shakha"), 2)

    def test_denial_names_required_role(self):
        with pytest.raises(UnauthorizedForStage) as exc_info:
            workflow.authorize(actor("oic"), 6)

        assert "Required role: collector" in exc_info.value.message
        assert exc_info.value.meta == {"required_role": "collector", "stage": 6}

    def test_queue_for_role(self):
        queue = workflow.queue_for_role("additional-collector")
        assert queue == [
            workflow.WorkflowState(CaseStatus.PENDING_ADDITIONAL_COLLECTOR, 5),
            workflow.WorkflowState(CaseStatus.PENDING_ADDITIONAL_COLLECTOR_2, 7),
        ]
        assert workflow.queue_for_role("clerk") == []


@pytest.mark.unit
class TestApprove:
    def test_advances_one_stage_and_records_remark(self, case_factory):
        case = case_factory(CaseStatus.PENDING_OIC, 4)

        workflow.apply_action(case, WorkflowAction.APPROVED, actor("oic"), "Verified")

        assert (case.status, case.stage) == (CaseStatus.PENDING_ADDITIONAL_COLLECTOR, 5)
        assert case.remarks[-1].stage == 4
        assert case.remarks[-1].remark == "Approved: Verified"

    def test_remark_without_text(self, case_factory):
        case = case_factory(CaseStatus.PENDING_SDM, 2)

        workflow.apply_action(case, WorkflowAction.APPROVED, actor("sdm"))

        assert case.remarks[-1].remark == "Approved"

    def test_stage_eight_approval_closes_without_payment(self, case_factory):
        case = case_factory(CaseStatus.PENDING_TEHSILDAR, 8)

        workflow.apply_action(case, WorkflowAction.APPROVED, actor("tehsildar"))

        assert (case.status, case.stage) == (CaseStatus.CLOSED, 8)
        assert case.payment is None


@pytest.mark.unit
class TestReject:
    def test_backtracks_with_two_remarks(self, case_factory):
        case = case_factory(CaseStatus.PENDING_OIC, 4)

        workflow.apply_action(case, WorkflowAction.REJECTED, actor("oic"), "FIR copy missing")

        assert (case.status, case.stage) == (CaseStatus.PENDING_RAHAT_SHAKHA, 3)
        assert [(r.stage, r.remark) for r in case.remarks] == [
            (4, "Rejected: FIR copy missing"),
            (3, "Rejected by OIC: FIR copy missing - Case returned to previous stage"),
        ]

    def test_requires_remark(self, case_factory):
        case = case_factory(CaseStatus.PENDING_OIC, 4)

        with pytest.raises(MissingRejectionRemark):
            workflow.apply_action(case, WorkflowAction.REJECTED, actor("oic"), "")

        assert case.remarks == []

    def test_third_rejection_escalates_to_collector(self, case_factory):
        case = case_factory(
            CaseStatus.PENDING_OIC,
            4,
            remarks=[
                Remark(stage=4, remark="Rejected: first", user_id="user-oic"),
                Remark(stage=4, remark="REJECTED: second", user_id="user-oic"),
            ],
        )

        workflow.apply_action(case, WorkflowAction.REJECTED, actor("oic"), "third")

        assert (case.status, case.stage) == (CaseStatus.PENDING_COLLECTOR, 6)
        assert case.remarks[-2].remark == "Rejected: third"
        assert case.remarks[-1].remark == workflow.ESCALATION_REMARK
        assert case.remarks[-1].user_id == workflow.SYSTEM_USER
        assert case.remarks[-1].stage == 6

    def test_backtrack_remarks_count_at_target_stage(self, case_factory):
        case = case_factory(
            CaseStatus.PENDING_SDM,
            2,
            remarks=[
                Remark(stage=2, remark="Rejected by Rahat Shakha: a - Case returned to previous stage", user_id="u"),
                Remark(stage=2, remark="Rejected by Rahat Shakha: b - Case returned to previous stage", user_id="u"),
            ],
        )

        workflow.apply_action(case, WorkflowAction.REJECTED, actor("sdm"), "c")

        assert (case.status, case.stage) == (CaseStatus.PENDING_COLLECTOR, 6)

    def test_rejections_at_other_stages_do_not_count(self, case_factory):
        case = case_factory(
            CaseStatus.PENDING_OIC,
            4,
            remarks=[
                Remark(stage=5, remark="Rejected: x", user_id="u"),
                Remark(stage=5, remark="Rejected: y", user_id="u"),
            ],
        )

        workflow.apply_action(case, WorkflowAction.REJECTED, actor("oic"), "z")

        assert (case.status, case.stage) == (CaseStatus.PENDING_RAHAT_SHAKHA, 3)

    @pytest.mark.parametrize("status, stage, role", [
        (CaseStatus.PENDING_ADDITIONAL_COLLECTOR_2, 7, "additional-collector"),
        (CaseStatus.PENDING_TEHSILDAR, 8, "tehsildar"),
    ])
    def test_obey_orders_fall_back_to_rejected(self, case_factory, status, stage, role):
        case = case_factory(status, stage)

        workflow.apply_action(case, WorkflowAction.REJECTED, actor(role), "no")

        assert case.status is CaseStatus.REJECTED
        assert case.stage == stage


@pytest.mark.unit
class TestApplyActionGuards:
    @pytest.mark.parametrize("status, stage", [(CaseStatus.CLOSED, 8), (CaseStatus.REJECTED, 7)])
    def test_terminal_cases_refuse_actions(self, case_factory, status, stage):
        case = case_factory(status, stage)

        with pytest.raises(InvalidCaseStage):
            workflow.apply_action(case, WorkflowAction.APPROVED, actor("tehsildar"))

    def test_unauthorized_actor_leaves_case_untouched(self, case_factory):
        case = case_factory(CaseStatus.PENDING_COLLECTOR, 6)

        with pytest.raises(UnauthorizedForStage):
            workflow.apply_action(case, WorkflowAction.APPROVED, actor("oic"))

        assert (case.status, case.stage) == (CaseStatus.PENDING_COLLECTOR, 6)
        assert case.remarks == []

    def test_inconsistent_state_is_detected(self, case_factory):
        case = case_factory(CaseStatus.PENDING_OIC, 4)
        case.status = CaseStatus.CLOSED

        with pytest.raises(InconsistentCaseState):
            workflow.ensure_valid_state(case)
