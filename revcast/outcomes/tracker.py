"""
Outcome Tracker — record what actually happened after a path was chosen.

Two paths:
- the measurable outcome (KPIs against baseline/target), gated by plan tier;
- the inline outcome log on the decision, where revisions are corrections
  appended next to the entry they revise.
"""

from typing import Optional, Union

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from revcast.decisions.schemas import Decision
from revcast.decisions.service import DecisionService
from revcast.errors import (
    ConcurrencyConflictError,
    NotFoundError,
    PreconditionError,
    ValidationError,
)
from revcast.outcomes.corrections import (
    build_outcome_entry,
    correction_chain,
    current_outcome,
    effective_outcomes,
    outcome_summary,
)
from revcast.outcomes.kpis import compute_kpi_delta, parse_plan_tier, validate_kpis_for_plan
from revcast.outcomes.schemas import (
    AddOutcomeRequest,
    KPIKey,
    MeasurableOutcome,
    OutcomeEntry,
    OutcomeStatus,
    OutcomeUpdate,
    PlanTier,
)

logger = structlog.get_logger(__name__)


def _parse_outcome_status(value: str) -> OutcomeStatus:
    try:
        return OutcomeStatus(value)
    except ValueError:
        raise ValidationError(
            f"Invalid outcome status: '{value}'",
            field="status",
            details={"allowed": [s.value for s in OutcomeStatus]},
        ) from None


class OutcomeTracker:
    """Measurable outcome updates plus the legacy correction-chain log."""

    def __init__(self, decisions: Optional[DecisionService] = None):
        self.decisions = decisions or DecisionService()
        self.outcomes = self.decisions.outcomes

    # ── Measurable outcome ──────────────────────────────────────────────

    async def get_outcome(
        self,
        session: AsyncSession,
        decision_id: str,
        user_id: Optional[str] = None,
    ) -> MeasurableOutcome:
        """The decision's measurable outcome; PreconditionError before a path is chosen."""
        await self.decisions.get_decision(session, decision_id, user_id)
        outcome = await self.outcomes.get_by_decision(session, decision_id)
        if outcome is None:
            raise PreconditionError(
                "No outcome yet: apply a scenario first",
                details={"decision_id": decision_id},
            )
        return outcome

    async def _load_outcome_for_update(
        self,
        session: AsyncSession,
        decision_id: str,
        expected_revision: Optional[int],
        user_id: Optional[str] = None,
    ) -> tuple[MeasurableOutcome, int]:
        outcome = await self.get_outcome(session, decision_id, user_id)
        if expected_revision is not None and expected_revision != outcome.revision:
            raise ConcurrencyConflictError("Outcome", outcome.outcome_id, expected_revision)
        return outcome, outcome.revision

    async def update_outcome(
        self,
        session: AsyncSession,
        decision_id: str,
        update: OutcomeUpdate,
        plan_tier: Union[PlanTier, str],
        expected_revision: Optional[int] = None,
        user_id: Optional[str] = None,
    ) -> MeasurableOutcome:
        """
        Apply a partial update to the measurable outcome.

        KPI lists are validated against the plan tier and every KPI with an
        actual gets its delta recomputed.
        """
        tier = parse_plan_tier(plan_tier)
        status = _parse_outcome_status(update.status) if update.status is not None else None
        outcome, revision = await self._load_outcome_for_update(
            session, decision_id, expected_revision, user_id
        )

        changes: dict = {"updated_at": self.decisions.clock()}
        if status is not None:
            changes["status"] = status
        if update.kpis is not None:
            validate_kpis_for_plan(update.kpis, tier)
            changes["kpis"] = [compute_kpi_delta(k) for k in update.kpis]
        if update.evidence_links is not None:
            changes["evidence_links"] = list(update.evidence_links)
        if update.summary is not None:
            changes["summary"] = update.summary
        if update.notes is not None:
            changes["notes"] = update.notes

        had_progress = outcome.has_progress
        updated = outcome.model_copy(update=changes, deep=True)
        saved = await self.outcomes.save(session, updated, expected_revision=revision)

        logger.info(
            "outcome_updated",
            decision_id=decision_id,
            outcome_id=saved.outcome_id,
            status=saved.status.value,
            kpi_count=len(saved.kpis),
        )
        if saved.has_progress and not had_progress:
            logger.info("outcome_saved", decision_id=decision_id, outcome_id=saved.outcome_id)
        return saved

    async def record_kpi_actual(
        self,
        session: AsyncSession,
        decision_id: str,
        kpi_key: Union[KPIKey, str],
        actual: float,
        expected_revision: Optional[int] = None,
        user_id: Optional[str] = None,
    ) -> MeasurableOutcome:
        """Set one KPI's actual value and recompute its delta."""
        outcome, revision = await self._load_outcome_for_update(
            session, decision_id, expected_revision, user_id
        )
        kpis = list(outcome.kpis)
        for i, kpi in enumerate(kpis):
            if kpi.key == kpi_key:
                kpis[i] = compute_kpi_delta(kpi.model_copy(update={"actual": actual}))
                break
        else:
            raise NotFoundError("KPI", str(kpi_key), details={"decision_id": decision_id})

        updated = outcome.model_copy(
            update={"kpis": kpis, "updated_at": self.decisions.clock()}, deep=True
        )
        saved = await self.outcomes.save(session, updated, expected_revision=revision)
        logger.info("kpi_actual_recorded", decision_id=decision_id, kpi=str(kpi_key), actual=actual)
        return saved

    # ── Inline outcome log ──────────────────────────────────────────────

    async def add_outcome(
        self,
        session: AsyncSession,
        decision_id: str,
        request: AddOutcomeRequest,
        actor: str = "",
        expected_revision: Optional[int] = None,
        user_id: Optional[str] = None,
    ) -> Decision:
        """Append an outcome entry (or a correction of one) to the decision."""
        decision, revision = await self.decisions.load_for_update(
            session, decision_id, expected_revision, user_id
        )
        now = self.decisions.clock()
        entry = build_outcome_entry(decision.outcomes, request, actor=actor, now=now)

        updated = decision.model_copy(deep=True)
        updated.outcomes.append(entry)
        updated.updated_at = now
        saved = await self.decisions.save(session, updated, revision)

        logger.info(
            "outcome_entry_added",
            decision_id=decision_id,
            outcome_id=entry.outcome_id,
            is_correction=entry.is_correction,
            corrects=entry.corrects_outcome_id,
        )
        return saved

    async def effective_outcomes(
        self,
        session: AsyncSession,
        decision_id: str,
        user_id: Optional[str] = None,
    ) -> list[OutcomeEntry]:
        decision = await self.decisions.get_decision(session, decision_id, user_id)
        return effective_outcomes(decision.outcomes)

    async def current_outcome(
        self,
        session: AsyncSession,
        decision_id: str,
        user_id: Optional[str] = None,
    ) -> Optional[OutcomeEntry]:
        decision = await self.decisions.get_decision(session, decision_id, user_id)
        return current_outcome(decision.outcomes)

    async def correction_chain(
        self,
        session: AsyncSession,
        decision_id: str,
        outcome_id: str,
        user_id: Optional[str] = None,
    ) -> list[OutcomeEntry]:
        decision = await self.decisions.get_decision(session, decision_id, user_id)
        return correction_chain(decision.outcomes, outcome_id)

    async def outcome_summary(
        self,
        session: AsyncSession,
        decision_id: str,
        user_id: Optional[str] = None,
    ) -> str:
        decision = await self.decisions.get_decision(session, decision_id, user_id)
        return outcome_summary(decision.outcomes)
