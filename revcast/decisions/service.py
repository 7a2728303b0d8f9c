"""
Decision Service — persistence and concurrency around the decision aggregate.

Every mutation is read → pure transform → compare-and-swap write. Callers
may pass the revision they last saw as ``expected_revision``; without it
the revision read inside the operation is used, so a concurrent writer
still cannot be silently overwritten.
"""

from datetime import datetime
from typing import Callable, Optional

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from revcast.db.repositories.decisions import DecisionRepository
from revcast.db.repositories.outcomes import MeasurableOutcomeRepository
from revcast.db.repositories.scenarios import ScenarioSetRepository
from revcast.decisions import ledger
from revcast.decisions.schemas import (
    ContextChanges,
    Decision,
    DecisionEpisode,
    ModelMeta,
    NewDecision,
    Verdict,
)
from revcast.decisions.status import StatusTransitionPolicy
from revcast.errors import ConcurrencyConflictError, NotFoundError

logger = structlog.get_logger(__name__)


class DecisionService:
    """Create, version, transition and soft-delete decisions."""

    def __init__(
        self,
        decisions: Optional[DecisionRepository] = None,
        scenario_sets: Optional[ScenarioSetRepository] = None,
        outcomes: Optional[MeasurableOutcomeRepository] = None,
        transitions: Optional[StatusTransitionPolicy] = None,
        clock: Callable[[], datetime] = ledger.utcnow,
    ):
        self.decisions = decisions or DecisionRepository()
        self.scenario_sets = scenario_sets or ScenarioSetRepository()
        self.outcomes = outcomes or MeasurableOutcomeRepository()
        self.transitions = transitions or StatusTransitionPolicy.from_settings()
        self.clock = clock

    # ── Reads ────────────────────────────────────────────────────────────

    async def get_decision(
        self,
        session: AsyncSession,
        decision_id: str,
        user_id: Optional[str] = None,
    ) -> Decision:
        """Load a live decision; soft-deleted or foreign decisions are not found."""
        decision = await self.decisions.get_for_user(session, decision_id, user_id)
        if decision is None:
            raise NotFoundError("Decision", decision_id)
        return decision

    async def _episode(self, session: AsyncSession, decision: Decision) -> DecisionEpisode:
        outcome = await self.outcomes.get_by_decision(session, decision.decision_id)
        return DecisionEpisode(
            decision=decision,
            has_scenarios=decision.scenarios_id is not None,
            has_outcome=outcome is not None and outcome.has_progress,
        )

    async def get_episode(
        self,
        session: AsyncSession,
        decision_id: str,
        user_id: Optional[str] = None,
    ) -> DecisionEpisode:
        """The decision plus its derived episode status."""
        decision = await self.get_decision(session, decision_id, user_id)
        return await self._episode(session, decision)

    async def list_episodes(
        self,
        session: AsyncSession,
        user_id: str,
        offset: int = 0,
        limit: int = 50,
    ) -> list[DecisionEpisode]:
        decisions = await self.decisions.list_for_user(session, user_id, offset, limit)
        outcomes = await self.outcomes.get_many_by_decision(
            session, [d.decision_id for d in decisions]
        )
        episodes = []
        for decision in decisions:
            outcome = outcomes.get(decision.decision_id)
            episodes.append(DecisionEpisode(
                decision=decision,
                has_scenarios=decision.scenarios_id is not None,
                has_outcome=outcome is not None and outcome.has_progress,
            ))
        return episodes

    # ── Writes ───────────────────────────────────────────────────────────

    async def create_decision(self, session: AsyncSession, request: NewDecision) -> Decision:
        decision = ledger.create_decision(request, now=self.clock())
        decision = await self.decisions.insert(session, decision)
        logger.info(
            "decision_created",
            decision_id=decision.decision_id,
            user_id=decision.user_id,
            confidence=decision.verdict.confidence_label.value,
        )
        return decision

    async def load_for_update(
        self,
        session: AsyncSession,
        decision_id: str,
        expected_revision: Optional[int],
        user_id: Optional[str] = None,
    ) -> tuple[Decision, int]:
        """
        Load a decision and settle which revision the write must match.

        With ``user_id`` a decision owned by someone else is not found.
        """
        decision = await self.get_decision(session, decision_id, user_id)
        if expected_revision is None:
            return decision, decision.revision
        if expected_revision != decision.revision:
            logger.warning(
                "decision_stale_revision",
                decision_id=decision_id,
                expected=expected_revision,
                stored=decision.revision,
            )
            raise ConcurrencyConflictError("Decision", decision_id, expected_revision)
        return decision, expected_revision

    async def save(self, session: AsyncSession, decision: Decision, revision: int) -> Decision:
        return await self.decisions.save(session, decision, expected_revision=revision)

    async def update_context(
        self,
        session: AsyncSession,
        decision_id: str,
        changes: ContextChanges,
        reason: str = "",
        actor: str = "",
        expected_revision: Optional[int] = None,
        user_id: Optional[str] = None,
    ) -> Decision:
        decision, revision = await self.load_for_update(
            session, decision_id, expected_revision, user_id
        )
        updated = ledger.update_context(decision, changes, reason, actor, now=self.clock())
        saved = await self.save(session, updated, revision)
        logger.info(
            "decision_context_updated",
            decision_id=decision_id,
            context_version=saved.context_version,
            fields=sorted(changes.model_dump(exclude_none=True)),
        )
        return saved

    async def regenerate_verdict(
        self,
        session: AsyncSession,
        decision_id: str,
        new_verdict: Verdict,
        reason: str = "",
        actor: str = "",
        model_meta: Optional[ModelMeta] = None,
        expected_revision: Optional[int] = None,
        user_id: Optional[str] = None,
    ) -> Decision:
        decision, revision = await self.load_for_update(
            session, decision_id, expected_revision, user_id
        )
        updated = ledger.regenerate_verdict(
            decision, new_verdict, reason, actor, model_meta=model_meta, now=self.clock()
        )
        saved = await self.save(session, updated, revision)
        logger.info(
            "decision_verdict_regenerated",
            decision_id=decision_id,
            verdict_version=saved.verdict_version,
            confidence=saved.verdict.confidence_label.value,
        )
        return saved

    async def transition_status(
        self,
        session: AsyncSession,
        decision_id: str,
        new_status: str,
        reason: str = "",
        implemented_at: Optional[datetime] = None,
        rollback_at: Optional[datetime] = None,
        actor: str = "",
        expected_revision: Optional[int] = None,
        user_id: Optional[str] = None,
    ) -> Decision:
        decision, revision = await self.load_for_update(
            session, decision_id, expected_revision, user_id
        )
        previous = decision.status
        updated = self.transitions.transition(
            decision,
            new_status,
            reason=reason,
            implemented_at=implemented_at,
            rollback_at=rollback_at,
            actor=actor,
            now=self.clock(),
        )
        saved = await self.save(session, updated, revision)
        logger.info(
            "decision_status_changed",
            decision_id=decision_id,
            from_status=previous.value,
            to_status=saved.status.value,
        )
        return saved

    async def delete_decision(
        self,
        session: AsyncSession,
        decision_id: str,
        expected_revision: Optional[int] = None,
        user_id: Optional[str] = None,
    ) -> Decision:
        """Soft delete; the decision disappears from every read."""
        decision, revision = await self.load_for_update(
            session, decision_id, expected_revision, user_id
        )
        saved = await self.save(session, ledger.soft_delete(decision, now=self.clock()), revision)
        logger.info("decision_deleted", decision_id=decision_id)
        return saved
