"""Shared fixtures for unit and integration tests."""

from datetime import date, datetime, timezone

import pytest

from rahat_service.config import Settings
from rahat_service.core import CaseManager
from rahat_service.infrastructure.persistence import InMemoryCaseRepository
from rahat_service.models import Actor, Case, CaseStatus, Victim, VictimInput

FILE_URL = "http://files.test"
FILE_PREFIX = f"{FILE_URL}/api/v1/files/"

# Role that approves a case sitting at each stage
STAGE_OWNERS = {
    1: "tehsildar",
    2: "sdm",
    3: "rahat-shakha",
    4: "oic",
    5: "additional-collector",
    6: "collector",
    7: "additional-collector",
    8: "tehsildar",
}


def actor_for(role: str, department: str = "") -> Actor:
    return Actor(user_id=f"user-{role}", role=role, department=department)


@pytest.fixture
def settings() -> Settings:
    return Settings(file_url=FILE_URL, base_url="http://cases.test", default_page_size=10)


@pytest.fixture
def repository() -> InMemoryCaseRepository:
    return InMemoryCaseRepository()


@pytest.fixture
def manager(repository, settings) -> CaseManager:
    return CaseManager(repository, settings)


@pytest.fixture
def tehsildar() -> Actor:
    return actor_for("tehsildar")


@pytest.fixture
def victim_input() -> VictimInput:
    return VictimInput(
        name="Ramesh Kumar",
        dob="1980-04-12",
        dod="2024-07-01",
        address="Village Khurd, Tehsil Sadar",
        contact="9876543210",
        description="Drowned during flood",
    )


@pytest.fixture
def case_factory():
    """Build Case objects directly in any (status, stage)."""

    def make(
        status: CaseStatus = CaseStatus.CREATED,
        stage: int = 1,
        case_id: str = "RAHAT-2025-0101-0001",
        created_at: datetime = None,
        **fields,
    ) -> Case:
        return Case(
            case_id=case_id,
            victim=Victim(
                name="Sita Devi",
                dob=date(1970, 1, 1),
                dod=date(2024, 6, 1),
                address="Village Rampur",
                contact="sita@example.org",
                description="Lightning strike",
            ),
            case_sdm="sdm-1",
            status=status,
            stage=stage,
            created_at=created_at or datetime.now(timezone.utc),
            **fields,
        )

    return make


@pytest.fixture
def advance(manager):
    """Approve a case stage by stage until it reaches ``stage``."""

    async def run(case_id: str, stage: int) -> Case:
        case = await manager.get_case(case_id)
        while case.stage < stage:
            case = await manager.update_workflow(
                case_id, "approved", None, actor_for(STAGE_OWNERS[case.stage])
            )
        return case

    return run


@pytest.fixture
def intake_case(manager, tehsildar, victim_input):
    """Create a case and attach its field reports (pendingSDM, stage 2)."""

    async def run() -> Case:
        case = await manager.create_case(victim_input, "sdm-1", tehsildar)
        return await manager.upload_documents(
            case.case_id,
            [f"{FILE_PREFIX}patwari.pdf"],
            [f"{FILE_PREFIX}ti.pdf"],
            tehsildar,
        )

    return run
