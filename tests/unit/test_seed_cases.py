"""Unit tests for the demo seeding script."""

import importlib.util
from pathlib import Path

import pytest

from rahat_service.core import workflow
from rahat_service.models import CaseStatus

SCRIPT = Path(__file__).resolve().parents[2] / "scripts" / "seed_cases.py"


def load_seed_script():
    spec = importlib.util.spec_from_file_location("seed_cases", SCRIPT)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


@pytest.mark.unit
class TestReviewerChain:
    async def test_reviewers_carry_case_to_closure(self, manager, intake_case, tehsildar):
        seed_cases = load_seed_script()
        case = await intake_case()

        for role in seed_cases.REVIEWERS:
            case = await manager.update_workflow(case.case_id, "approved", None, seed_cases.actor(role))

        assert (case.status, case.stage) == (CaseStatus.PENDING_TEHSILDAR, 8)

        closed = await manager.close_case(case.case_id, "Paid via DBT", tehsildar)
        assert closed.status is CaseStatus.CLOSED

    def test_one_reviewer_per_stage(self):
        seed_cases = load_seed_script()

        assert seed_cases.REVIEWERS == [workflow.STAGE_TABLE[stage].owner for stage in range(2, 8)]
