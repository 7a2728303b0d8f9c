"""Learning insight repository — one row per aggregation key."""

from datetime import datetime, timezone
from typing import Optional, Sequence

from sqlalchemy import and_, case, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from revcast.db.models import LearningInsightRecord
from revcast.decisions.schemas import Level
from revcast.learning.schemas import LearningInsight


def _aware(value: Optional[datetime]) -> Optional[datetime]:
    # SQLite drops tzinfo on the way back
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class LearningInsightRepository:
    """Upsert and query aggregated learning insights."""

    def __init__(self):
        self.model = LearningInsightRecord

    @staticmethod
    def to_insight(record: LearningInsightRecord) -> LearningInsight:
        return LearningInsight(
            company_stage=record.company_stage,
            primary_kpi=record.primary_kpi,
            scenario_type=record.scenario_type,
            sample_size=record.sample_size,
            achieved_count=record.achieved_count,
            missed_count=record.missed_count,
            success_rate=record.success_rate,
            miss_rate=record.miss_rate,
            average_delta=record.average_delta,
            confidence=Level(record.confidence),
            oldest_outcome_at=_aware(record.oldest_outcome_at),
            newest_outcome_at=_aware(record.newest_outcome_at),
        )

    async def upsert_many(
        self,
        db: AsyncSession,
        insights: Sequence[LearningInsight],
        computed_at: datetime,
    ) -> int:
        """
        Make the table match ``insights`` exactly: overwrite matching keys,
        insert new ones, drop keys that no longer have outcomes.
        """
        result = await db.execute(select(self.model))
        existing = {
            (r.company_stage, r.primary_kpi, r.scenario_type): r
            for r in result.scalars().all()
        }

        wanted = {tuple(i.key) for i in insights}
        for key, record in existing.items():
            if key not in wanted:
                await db.delete(record)

        for insight in insights:
            values = dict(
                sample_size=insight.sample_size,
                achieved_count=insight.achieved_count,
                missed_count=insight.missed_count,
                success_rate=insight.success_rate,
                miss_rate=insight.miss_rate,
                average_delta=insight.average_delta,
                confidence=insight.confidence.value,
                oldest_outcome_at=insight.oldest_outcome_at,
                newest_outcome_at=insight.newest_outcome_at,
                computed_at=computed_at,
            )
            record = existing.get(tuple(insight.key))
            if record is None:
                db.add(self.model(
                    company_stage=insight.company_stage,
                    primary_kpi=insight.primary_kpi,
                    scenario_type=insight.scenario_type,
                    **values,
                ))
            else:
                for name, value in values.items():
                    setattr(record, name, value)

        await db.flush()
        return len(insights)

    async def list_all(self, db: AsyncSession) -> list[LearningInsight]:
        result = await db.execute(
            select(self.model).order_by(
                self.model.company_stage, self.model.primary_kpi, self.model.scenario_type
            )
        )
        return [self.to_insight(r) for r in result.scalars().all()]

    async def get_related(
        self,
        db: AsyncSession,
        company_stage: str,
        primary_kpi: str,
        min_sample_size: int = 3,
        limit: int = 10,
    ) -> list[LearningInsight]:
        """Insights sharing the stage or the KPI, best matches and biggest samples first."""
        stmt = (
            select(self.model)
            .where(
                or_(
                    self.model.company_stage == company_stage,
                    self.model.primary_kpi == primary_kpi,
                ),
                self.model.sample_size >= min_sample_size,
            )
            .order_by(
                case(
                    (
                        and_(
                            self.model.company_stage == company_stage,
                            self.model.primary_kpi == primary_kpi,
                        ),
                        1,
                    ),
                    else_=0,
                ).desc(),
                self.model.sample_size.desc(),
                self.model.scenario_type,
            )
            .limit(limit)
        )
        result = await db.execute(stmt)
        return [self.to_insight(r) for r in result.scalars().all()]
