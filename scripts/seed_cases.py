#!/usr/bin/env python3
"""Seed the configured database with demo cases.

Creates cases through the CaseManager and walks some of them along the
workflow so every queue and the analytics dashboard have data to show.

Usage:
    python scripts/seed_cases.py --count 12
    python scripts/seed_cases.py --reset
"""

import argparse
import asyncio
import logging
import random
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from rahat_service.core import CaseManager  # noqa: E402
from rahat_service.infrastructure.database import db_client  # noqa: E402
from rahat_service.infrastructure.persistence import SQLCaseRepository  # noqa: E402
from rahat_service.models import Actor, Role, VictimInput, WorkflowAction  # noqa: E402

logger = logging.getLogger("seed_cases")

NAMES = ["Ramesh Kumar", "Sita Devi", "Mohan Lal", "Geeta Bai", "Arjun Singh", "Kamla Devi"]
VILLAGES = ["Khurd", "Kalan", "Rampur", "Bhojpur", "Sadar"]
CAUSES = ["Drowned during flood", "Lightning strike", "House collapse in heavy rain"]

# Approver at each of stages 2 to 7
REVIEWERS = [
    Role.SDM,
    Role.RAHAT_SHAKHA,
    Role.OIC,
    Role.ADDITIONAL_COLLECTOR,
    Role.COLLECTOR,
    Role.ADDITIONAL_COLLECTOR,
]


def actor(role: Role) -> Actor:
    return Actor(user_id=f"seed-{role.value}", role=role.value)


def victim(rng: random.Random) -> VictimInput:
    year = rng.randint(1950, 2000)
    return VictimInput(
        name=rng.choice(NAMES),
        dob=f"{year}-0{rng.randint(1, 9)}-1{rng.randint(0, 9)}",
        dod=f"2024-0{rng.randint(1, 9)}-0{rng.randint(1, 9)}",
        address=f"Village {rng.choice(VILLAGES)}",
        contact=f"9{rng.randint(100000000, 999999999)}",
        description=rng.choice(CAUSES),
    )


async def seed(count: int, rng: random.Random) -> None:
    tehsildar = actor(Role.TEHSILDAR)
    file_prefix = None

    async for session in db_client.get_session():
        manager = CaseManager(SQLCaseRepository(session))
        file_prefix = manager.settings.file_url_prefix

        for index in range(count):
            case = await manager.create_case(victim(rng), "seed-sdm", tehsildar)

            # Leave some cases at intake, push the rest some way along
            steps = index % (len(REVIEWERS) + 3)
            if steps == 0:
                continue

            await manager.upload_documents(
                case.case_id,
                [f"{file_prefix}patwari-{case.case_id}.pdf"],
                [f"{file_prefix}ti-{case.case_id}.pdf"],
                tehsildar,
            )

            for role in REVIEWERS[:steps - 1]:
                if rng.random() < 0.2:
                    await manager.update_workflow(
                        case.case_id, WorkflowAction.REJECTED.value, "Report incomplete", actor(role)
                    )
                    break
                await manager.update_workflow(case.case_id, WorkflowAction.APPROVED.value, None, actor(role))
            else:
                if steps == len(REVIEWERS) + 2:
                    await manager.close_case(case.case_id, "Paid via DBT", tehsildar)

            stored = await manager.get_case(case.case_id)
            logger.info(f"Seeded {stored.case_id} at stage {stored.stage} ({stored.status.value})")


async def reset() -> int:
    removed = 0
    async for session in db_client.get_session():
        repository = SQLCaseRepository(session)
        for case in await repository.all():
            if await repository.delete(case.case_id):
                removed += 1
    return removed


async def main() -> None:
    parser = argparse.ArgumentParser(description="Seed demo compensation cases")
    parser.add_argument("--count", type=int, default=12, help="Number of cases to create")
    parser.add_argument("--seed", type=int, default=None, help="Random seed")
    parser.add_argument("--reset", action="store_true", help="Delete every case instead")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    try:
        await db_client.verify_connection()
        await db_client.create_tables()

        if args.reset:
            removed = await reset()
            logger.info(f"Deleted {removed} cases")
        else:
            await seed(args.count, random.Random(args.seed))
    finally:
        await db_client.close()


if __name__ == "__main__":
    asyncio.run(main())
