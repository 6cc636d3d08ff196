"""SQLAlchemy Case Repository - Production Implementation.

Stores each case as one row of the ``cases`` table. Low-cardinality nested
data (victim, documents, remarks, payment) lives in JSON columns; the fields
that are filtered or searched on are real, indexed columns.

Works against SQLite (aiosqlite) for development and PostgreSQL (asyncpg)
in production.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import and_, delete, func, or_, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from rahat_service.core.errors import (
    CaseNotFound,
    ConcurrentModification,
    DuplicateCaseId,
    PersistenceFailed,
)
from rahat_service.infrastructure.database.models import CaseDB
from rahat_service.infrastructure.persistence.case_repository import CaseRepository
from rahat_service.models import Case, CaseFilter

logger = logging.getLogger(__name__)


def _aware(value: datetime) -> datetime:
    # SQLite drops tzinfo on round trip
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


class SQLCaseRepository(CaseRepository):
    """
    Relational case repository.

    Every write commits immediately; ``update`` is a single conditional
    UPDATE on (case_id, version), which gives compare-and-swap semantics
    without row locks.
    """

    def __init__(self, db_session: AsyncSession):
        """
        Initialize repository with database session.

        Args:
            db_session: SQLAlchemy AsyncSession for database operations
        """
        self.db = db_session

    # ========================================================================
    # Core Operations
    # ========================================================================

    async def add(self, case: Case) -> Case:
        """Insert case row."""
        values = self._case_to_values(case)
        values["version"] = 1

        try:
            self.db.add(CaseDB(case_id=case.case_id, created_at=case.created_at, **values))
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            raise DuplicateCaseId() from e
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise PersistenceFailed(f"Failed to create case {case.case_id}: {e}") from e

        return case.model_copy(update={"version": 1, "updated_at": values["updated_at"]})

    async def get(self, case_id: str) -> Optional[Case]:
        """Retrieve case row by primary key."""
        query = (
            select(CaseDB)
            .where(CaseDB.case_id == case_id)
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(query)
        row = result.scalar_one_or_none()

        if row is None:
            return None

        return self._row_to_case(row)

    async def exists(self, case_id: str) -> bool:
        query = select(func.count()).select_from(CaseDB).where(CaseDB.case_id == case_id)
        result = await self.db.execute(query)
        return result.scalar_one() > 0

    async def update(self, case: Case, expected_version: int) -> Case:
        """Conditional update on (case_id, version)."""
        values = self._case_to_values(case)
        values["version"] = expected_version + 1

        query = (
            update(CaseDB)
            .where(CaseDB.case_id == case.case_id, CaseDB.version == expected_version)
            .values(**values)
            .execution_options(synchronize_session=False)
        )

        try:
            result = await self.db.execute(query)
            if result.rowcount == 0:
                await self.db.rollback()
                if await self.exists(case.case_id):
                    logger.warning(
                        f"Version conflict on case {case.case_id} (expected {expected_version})"
                    )
                    raise ConcurrentModification()
                raise CaseNotFound()
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise PersistenceFailed(f"Failed to update case {case.case_id}: {e}") from e

        return case.model_copy(
            update={"version": values["version"], "updated_at": values["updated_at"]}
        )

    async def list(
        self,
        case_filter: Optional[CaseFilter] = None,
        search: Optional[str] = None,
        limit: int = 10,
        offset: int = 0,
    ) -> tuple[List[Case], int]:
        """List cases with filters, newest first."""
        conditions = self._conditions(case_filter, search)

        count_query = select(func.count()).select_from(CaseDB).where(*conditions)
        count_result = await self.db.execute(count_query)
        total_count = count_result.scalar_one()

        data_query = (
            select(CaseDB)
            .where(*conditions)
            .order_by(CaseDB.created_at.desc(), CaseDB.case_id.desc())
            .limit(limit)
            .offset(offset)
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(data_query)
        cases = [self._row_to_case(row) for row in result.scalars().all()]

        return cases, total_count

    async def all(self) -> List[Case]:
        result = await self.db.execute(
            select(CaseDB).execution_options(populate_existing=True)
        )
        return [self._row_to_case(row) for row in result.scalars().all()]

    async def delete(self, case_id: str) -> bool:
        """Delete case row."""
        try:
            result = await self.db.execute(
                delete(CaseDB)
                .where(CaseDB.case_id == case_id)
                .execution_options(synchronize_session=False)
            )
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise PersistenceFailed(f"Failed to delete case {case_id}: {e}") from e

        return result.rowcount > 0

    # ========================================================================
    # Mapping helpers
    # ========================================================================

    @staticmethod
    def _conditions(case_filter: Optional[CaseFilter], search: Optional[str]) -> list:
        conditions = []

        if case_filter is not None:
            if case_filter.status is not None:
                conditions.append(CaseDB.status == case_filter.status.value)
            if case_filter.stage is not None:
                conditions.append(CaseDB.stage == case_filter.stage)
            if case_filter.case_sdm is not None:
                conditions.append(CaseDB.case_sdm == case_filter.case_sdm)
            if case_filter.queue:
                conditions.append(or_(*[
                    and_(CaseDB.status == status.value, CaseDB.stage == stage)
                    for status, stage in case_filter.queue
                ]))

        if search:
            conditions.append(or_(
                CaseDB.victim_name.icontains(search, autoescape=True),
                CaseDB.victim_contact.icontains(search, autoescape=True),
                CaseDB.case_id.icontains(search, autoescape=True),
            ))

        return conditions

    @staticmethod
    def _case_to_values(case: Case) -> Dict[str, Any]:
        """Column values for everything except the immutable key and creation time."""
        return {
            "victim": case.victim.model_dump(mode="json"),
            "victim_name": case.victim.name,
            "victim_contact": case.victim.contact,
            "case_sdm": case.case_sdm,
            "status": case.status.value,
            "stage": case.stage,
            "documents": [d.model_dump(mode="json") for d in case.documents],
            "remarks": [r.model_dump(mode="json") for r in case.remarks],
            "payment": case.payment.model_dump(mode="json") if case.payment else None,
            "updated_at": datetime.now(timezone.utc),
        }

    @staticmethod
    def _row_to_case(row: CaseDB) -> Case:
        """Convert database row to Case domain model."""
        return Case.model_validate({
            "case_id": row.case_id,
            "victim": row.victim,
            "case_sdm": row.case_sdm,
            "status": row.status,
            "stage": row.stage,
            "documents": row.documents or [],
            "remarks": row.remarks or [],
            "payment": row.payment,
            "version": row.version,
            "created_at": _aware(row.created_at),
            "updated_at": _aware(row.updated_at),
        })
