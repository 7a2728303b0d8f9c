"""Measurable outcome repository."""

from typing import Any, Optional, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from revcast.db.models import MeasurableOutcomeRecord
from revcast.db.repositories.base import DocumentRepository
from revcast.outcomes.schemas import MeasurableOutcome, OutcomeStatus


class MeasurableOutcomeRepository(DocumentRepository[MeasurableOutcomeRecord, MeasurableOutcome]):
    resource = "Outcome"
    id_field = "outcome_id"

    def __init__(self):
        super().__init__(MeasurableOutcomeRecord, MeasurableOutcome)

    def columns_for(self, doc: MeasurableOutcome) -> dict[str, Any]:
        return {
            "decision_id": doc.decision_id,
            "user_id": doc.user_id,
            "status": doc.status.value,
            "created_at": doc.created_at,
            "updated_at": doc.updated_at,
        }

    async def get_by_decision(
        self,
        db: AsyncSession,
        decision_id: str,
    ) -> Optional[MeasurableOutcome]:
        stmt = (
            select(self.model)
            .where(self.model.decision_id == decision_id, self.model.is_deleted.is_(False))
            .execution_options(populate_existing=True)
        )
        result = await db.execute(stmt)
        record = result.scalar_one_or_none()
        return self.to_document(record) if record is not None else None

    async def list_by_status(
        self,
        db: AsyncSession,
        statuses: Sequence[OutcomeStatus],
    ) -> list[MeasurableOutcome]:
        stmt = (
            select(self.model)
            .where(
                self.model.status.in_([s.value for s in statuses]),
                self.model.is_deleted.is_(False),
            )
            .order_by(self.model.id)
            .execution_options(populate_existing=True)
        )
        result = await db.execute(stmt)
        return [self.to_document(r) for r in result.scalars().all()]

    async def get_many_by_decision(
        self,
        db: AsyncSession,
        decision_ids: Sequence[str],
    ) -> dict[str, MeasurableOutcome]:
        if not decision_ids:
            return {}
        stmt = (
            select(self.model)
            .where(
                self.model.decision_id.in_(list(decision_ids)),
                self.model.is_deleted.is_(False),
            )
            .execution_options(populate_existing=True)
        )
        result = await db.execute(stmt)
        return {r.decision_id: self.to_document(r) for r in result.scalars().all()}
