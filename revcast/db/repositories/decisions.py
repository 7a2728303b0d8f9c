"""Decision document repository."""

from typing import Any, Optional, Sequence

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from revcast.db.models import DecisionRecord
from revcast.db.repositories.base import DocumentRepository
from revcast.decisions.schemas import Decision


class DecisionRepository(DocumentRepository[DecisionRecord, Decision]):
    resource = "Decision"
    id_field = "decision_id"

    def __init__(self):
        super().__init__(DecisionRecord, Decision)

    def columns_for(self, doc: Decision) -> dict[str, Any]:
        return {
            "user_id": doc.user_id,
            "workspace_id": doc.workspace_id,
            "status": doc.status.value,
            "chosen_scenario_id": doc.chosen_scenario_id,
            "is_deleted": doc.is_deleted,
            "created_at": doc.created_at,
            "updated_at": doc.updated_at,
        }

    async def list_for_user(
        self,
        db: AsyncSession,
        user_id: str,
        offset: int = 0,
        limit: int = 50,
    ) -> Sequence[Decision]:
        """Live decisions for a user, newest first."""
        stmt = (
            select(self.model)
            .where(self.model.user_id == user_id, self.model.is_deleted.is_(False))
            .order_by(self.model.created_at.desc())
            .offset(offset)
            .limit(limit)
            .execution_options(populate_existing=True)
        )
        result = await db.execute(stmt)
        return [self.to_document(r) for r in result.scalars().all()]

    async def count_for_user(self, db: AsyncSession, user_id: str) -> int:
        result = await db.execute(
            select(func.count())
            .select_from(self.model)
            .where(self.model.user_id == user_id, self.model.is_deleted.is_(False))
        )
        return result.scalar_one()

    async def get_many(self, db: AsyncSession, ids: Sequence[str]) -> dict[str, Decision]:
        """Live decisions by id; missing ids are left out."""
        if not ids:
            return {}
        stmt = (
            select(self.model)
            .where(self.model.id.in_(list(ids)), self.model.is_deleted.is_(False))
            .execution_options(populate_existing=True)
        )
        result = await db.execute(stmt)
        return {r.id: self.to_document(r) for r in result.scalars().all()}

    async def get_for_user(
        self,
        db: AsyncSession,
        decision_id: str,
        user_id: Optional[str] = None,
    ) -> Optional[Decision]:
        decision = await self.get(db, decision_id)
        if decision is None or (user_id is not None and decision.user_id != user_id):
            return None
        return decision
