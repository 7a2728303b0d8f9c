"""Scenario set repository."""

from typing import Any, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from revcast.db.models import ScenarioSetRecord
from revcast.db.repositories.base import DocumentRepository
from revcast.scenarios.schemas import ScenarioSet


class ScenarioSetRepository(DocumentRepository[ScenarioSetRecord, ScenarioSet]):
    resource = "ScenarioSet"
    id_field = "scenario_set_id"

    def __init__(self):
        super().__init__(ScenarioSetRecord, ScenarioSet)

    def columns_for(self, doc: ScenarioSet) -> dict[str, Any]:
        return {
            "decision_id": doc.decision_id,
            "version": doc.version,
            "is_deleted": doc.is_deleted,
            "created_at": doc.created_at,
            "updated_at": doc.updated_at,
        }

    async def get_latest_record(
        self,
        db: AsyncSession,
        decision_id: str,
    ) -> Optional[ScenarioSetRecord]:
        stmt = (
            select(self.model)
            .where(self.model.decision_id == decision_id, self.model.is_deleted.is_(False))
            .order_by(self.model.version.desc())
            .limit(1)
            .execution_options(populate_existing=True)
        )
        result = await db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_latest(self, db: AsyncSession, decision_id: str) -> Optional[ScenarioSet]:
        """The live (highest-version, not deleted) set for a decision."""
        record = await self.get_latest_record(db, decision_id)
        return self.to_document(record) if record is not None else None

    async def latest_version(self, db: AsyncSession, decision_id: str) -> int:
        """Highest version ever stored for the decision, deleted sets included."""
        stmt = (
            select(self.model.version)
            .where(self.model.decision_id == decision_id)
            .order_by(self.model.version.desc())
            .limit(1)
        )
        result = await db.execute(stmt)
        return result.scalar_one_or_none() or 0

    async def soft_delete(
        self,
        db: AsyncSession,
        record: ScenarioSetRecord,
        doc: ScenarioSet,
    ) -> ScenarioSet:
        return await self.save(db, doc, expected_revision=record.revision)
