"""
Scenario Service — accept generated scenario sets and apply a chosen path.

Applying a scenario is final: it records the choice on the decision and
seeds a pending measurable outcome from the chosen scenario's metrics.
Re-applying the same scenario is a no-op; choosing a different one raises
ConflictError.
"""

from typing import Optional, Sequence, Union

import structlog
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from revcast.config import settings
from revcast.decisions.ledger import new_id
from revcast.decisions.schemas import Decision, ModelMeta
from revcast.decisions.service import DecisionService
from revcast.errors import ConflictError, PreconditionError, ValidationError
from revcast.outcomes.kpis import parse_plan_tier, seed_kpis
from revcast.outcomes.schemas import (
    BusinessMetrics,
    MeasurableOutcome,
    OutcomeStatus,
    PlanTier,
)
from revcast.scenarios.acceptance import prepare_scenarios
from revcast.scenarios.delta import compute_scenario_delta, horizon_days
from revcast.scenarios.schemas import DeltaValues, ScenarioID, ScenarioItem, ScenarioSet

logger = structlog.get_logger(__name__)


class ApplyScenarioResult(BaseModel):
    decision: Decision
    outcome: MeasurableOutcome
    created: bool = True      # False when the same scenario was already applied


def _parse_scenario_id(scenario_id: str) -> ScenarioID:
    try:
        return ScenarioID(scenario_id)
    except ValueError:
        raise ValidationError(
            f"Invalid scenario id: '{scenario_id}'",
            field="scenario_id",
            details={"allowed": [s.value for s in ScenarioID]},
        ) from None


class ScenarioService:
    """Scenario set acceptance, selection and baseline deltas."""

    def __init__(self, decisions: Optional[DecisionService] = None):
        self.decisions = decisions or DecisionService()
        self.scenario_sets = self.decisions.scenario_sets
        self.outcomes = self.decisions.outcomes

    @property
    def clock(self):
        return self.decisions.clock

    async def get_scenario_set(
        self,
        session: AsyncSession,
        decision_id: str,
        user_id: Optional[str] = None,
    ) -> ScenarioSet:
        """The live scenario set; PreconditionError if none was accepted yet."""
        await self.decisions.get_decision(session, decision_id, user_id)
        scenario_set = await self.scenario_sets.get_latest(session, decision_id)
        if scenario_set is None:
            raise PreconditionError(
                "No scenarios have been generated for this decision",
                details={"decision_id": decision_id},
            )
        return scenario_set

    async def accept_scenario_set(
        self,
        session: AsyncSession,
        decision_id: str,
        scenarios: Sequence[ScenarioItem],
        model_meta: Optional[ModelMeta] = None,
        expected_revision: Optional[int] = None,
        user_id: Optional[str] = None,
    ) -> ScenarioSet:
        """
        Validate and store a generated scenario set, replacing any previous one.

        Raises ConflictError once a path has been chosen: the chosen
        scenario must stay resolvable.
        """
        decision, revision = await self.decisions.load_for_update(
            session, decision_id, expected_revision, user_id
        )
        if decision.chosen_scenario_id:
            raise ConflictError(
                "Scenarios cannot be replaced after a path was chosen",
                details={"chosen_scenario_id": decision.chosen_scenario_id},
            )

        prepared = prepare_scenarios(scenarios)
        now = self.clock()
        scenario_set_id = new_id("scn")

        # Decision first: a lost compare-and-swap must leave the sets untouched
        updated = decision.model_copy(
            update={"scenarios_id": scenario_set_id, "updated_at": now},
            deep=True,
        )
        await self.decisions.save(session, updated, revision)

        previous = await self.scenario_sets.get_latest_record(session, decision_id)
        if previous is not None:
            old = self.scenario_sets.to_document(previous)
            await self.scenario_sets.soft_delete(
                session,
                previous,
                old.model_copy(update={"is_deleted": True, "deleted_at": now, "updated_at": now}),
            )

        version = await self.scenario_sets.latest_version(session, decision_id) + 1
        scenario_set = await self.scenario_sets.insert(session, ScenarioSet(
            scenario_set_id=scenario_set_id,
            decision_id=decision_id,
            user_id=decision.user_id,
            workspace_id=decision.workspace_id,
            version=version,
            scenarios=prepared,
            model_meta=model_meta,
            created_at=now,
            updated_at=now,
        ))

        logger.info(
            "scenario_set_accepted",
            decision_id=decision_id,
            scenario_set_id=scenario_set.scenario_set_id,
            version=version,
        )
        return scenario_set

    async def apply_scenario(
        self,
        session: AsyncSession,
        decision_id: str,
        scenario_id: str,
        plan_tier: Union[PlanTier, str] = PlanTier.GROWTH,
        business_metrics: Optional[BusinessMetrics] = None,
        expected_revision: Optional[int] = None,
        user_id: Optional[str] = None,
    ) -> ApplyScenarioResult:
        """Record the chosen scenario and seed a pending outcome from it."""
        decision, revision = await self.decisions.load_for_update(
            session, decision_id, expected_revision, user_id
        )
        chosen = _parse_scenario_id(scenario_id)
        tier = parse_plan_tier(plan_tier)

        scenario_set = await self.scenario_sets.get_latest(session, decision_id)
        if scenario_set is None:
            raise PreconditionError(
                "Generate scenarios before choosing a path",
                details={"decision_id": decision_id},
            )
        item = scenario_set.get(chosen.value)
        if item is None:
            raise ValidationError(
                f"Scenario '{chosen.value}' is not part of the current set",
                field="scenario_id",
            )

        if decision.chosen_scenario_id:
            if decision.chosen_scenario_id != chosen.value:
                raise ConflictError(
                    f"Path '{decision.chosen_scenario_id}' was already chosen",
                    details={
                        "chosen_scenario_id": decision.chosen_scenario_id,
                        "requested": chosen.value,
                    },
                )
            existing = await self.outcomes.get_by_decision(session, decision_id)
            if existing is not None:
                logger.info("scenario_reapplied", decision_id=decision_id, scenario_id=chosen.value)
                return ApplyScenarioResult(decision=decision, outcome=existing, created=False)

        now = self.clock()
        outcome = MeasurableOutcome(
            outcome_id=new_id("mo"),
            decision_id=decision_id,
            user_id=decision.user_id,
            chosen_scenario_id=chosen.value,
            status=OutcomeStatus.PENDING,
            horizon_days=horizon_days(
                item.metrics.time_to_impact, default=settings.default_horizon_days
            ),
            kpis=seed_kpis(
                item,
                decision.context.primary_kpi.value,
                metrics=business_metrics,
                plan_tier=tier,
            ),
            created_at=now,
            updated_at=now,
        )

        updated = decision.model_copy(
            update={
                "chosen_scenario_id": chosen.value,
                "chosen_scenario_at": now,
                "outcome_id": outcome.outcome_id,
                "updated_at": now,
            },
            deep=True,
        )
        saved = await self.decisions.save(session, updated, revision)
        outcome = await self.outcomes.insert(session, outcome)

        logger.info(
            "scenario_applied",
            decision_id=decision_id,
            scenario_id=chosen.value,
            outcome_id=outcome.outcome_id,
            kpi_count=len(outcome.kpis),
            horizon_days=outcome.horizon_days,
        )
        return ApplyScenarioResult(decision=saved, outcome=outcome)

    async def compute_delta(
        self,
        session: AsyncSession,
        decision_id: str,
        candidate_id: str,
        user_id: Optional[str] = None,
    ) -> DeltaValues:
        """Deltas of one scenario against the set's baseline."""
        candidate_tag = _parse_scenario_id(candidate_id)
        scenario_set = await self.get_scenario_set(session, decision_id, user_id)
        candidate = scenario_set.get(candidate_tag.value)
        if candidate is None:
            raise ValidationError(
                f"Scenario '{candidate_tag.value}' is not part of the current set",
                field="scenario_id",
            )
        return compute_scenario_delta(scenario_set.baseline, candidate)
