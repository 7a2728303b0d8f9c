"""
Learning Service — batch refresh of insights and lookups for new verdicts.

The refresh reads a point-in-time snapshot of finished outcomes, recomputes
every aggregate from scratch and replaces the stored insights. Running it
twice over the same data leaves the same rows.
"""

import math
from datetime import datetime
from typing import Callable, Optional

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from revcast.config import settings
from revcast.db.repositories.decisions import DecisionRepository
from revcast.db.repositories.learning import LearningInsightRepository
from revcast.db.repositories.outcomes import MeasurableOutcomeRepository
from revcast.decisions.ledger import utcnow
from revcast.decisions.schemas import Decision
from revcast.learning.aggregator import compute_learning_aggregates
from revcast.learning.schemas import (
    UNKNOWN,
    LearningContext,
    LearningIndicator,
    LearningInsight,
    OutcomeObservation,
)
from revcast.learning.signals import build_learning_context, learning_indicators
from revcast.outcomes.schemas import MeasurableOutcome, TERMINAL_OUTCOME_STATUSES

logger = structlog.get_logger(__name__)


def to_observation(decision: Decision, outcome: MeasurableOutcome) -> OutcomeObservation:
    """Flatten a decision/outcome pair; missing KPI deltas count as 0."""
    deltas = [k.delta_pct if k.delta_pct is not None else 0.0 for k in outcome.kpis]
    return OutcomeObservation(
        decision_id=decision.decision_id,
        company_stage=decision.context.company_stage.value or UNKNOWN,
        primary_kpi=decision.context.primary_kpi.value or UNKNOWN,
        scenario_type=outcome.chosen_scenario_id or UNKNOWN,
        status=outcome.status,
        delta_percent=math.fsum(deltas) / len(deltas) if deltas else 0.0,
        recorded_at=outcome.updated_at,
    )


class LearningService:
    """Aggregates finished outcomes into insights and serves them back."""

    def __init__(
        self,
        decisions: Optional[DecisionRepository] = None,
        outcomes: Optional[MeasurableOutcomeRepository] = None,
        insights: Optional[LearningInsightRepository] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.decisions = decisions or DecisionRepository()
        self.outcomes = outcomes or MeasurableOutcomeRepository()
        self.insights = insights or LearningInsightRepository()
        self.clock = clock

    async def collect_observations(self, session: AsyncSession) -> list[OutcomeObservation]:
        outcomes = await self.outcomes.list_by_status(session, sorted(TERMINAL_OUTCOME_STATUSES))
        decisions = await self.decisions.get_many(session, [o.decision_id for o in outcomes])
        observations = []
        for outcome in outcomes:
            decision = decisions.get(outcome.decision_id)
            if decision is None:
                # Soft-deleted decisions no longer teach anything
                continue
            observations.append(to_observation(decision, outcome))
        return observations

    async def refresh_insights(self, session: AsyncSession) -> list[LearningInsight]:
        logger.info("learning_refresh_started")
        observations = await self.collect_observations(session)
        insights = compute_learning_aggregates(observations)
        await self.insights.upsert_many(session, insights, computed_at=self.clock())
        logger.info(
            "learning_refresh_complete",
            observations=len(observations),
            cohorts=len(insights),
        )
        return insights

    async def get_learning_context(
        self,
        session: AsyncSession,
        company_stage: str,
        primary_kpi: str,
    ) -> LearningContext:
        """Historical signals for a decision with this stage and KPI; empty if none."""
        related = await self.insights.get_related(
            session,
            company_stage,
            primary_kpi,
            min_sample_size=settings.learning_min_sample_size,
            limit=settings.learning_max_signals,
        )
        if not related:
            return LearningContext()
        return build_learning_context(related, company_stage, primary_kpi)

    async def get_learning_indicators(
        self,
        session: AsyncSession,
        company_stage: str,
        primary_kpi: str,
    ) -> list[LearningIndicator]:
        context = await self.get_learning_context(session, company_stage, primary_kpi)
        return learning_indicators(context)
