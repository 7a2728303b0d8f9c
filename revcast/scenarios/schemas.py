"""
Scenario Schemas — the four strategic alternatives for a decision.

Every set carries aggressive / balanced / conservative / do_nothing exactly
once. The balanced scenario is the baseline: its narrative deltas read
"Baseline" and every other scenario's deltas are measured against it.
"""

from datetime import datetime
from enum import StrEnum
from typing import Optional

from pydantic import BaseModel, Field

from revcast.decisions.schemas import ModelMeta


class ScenarioID(StrEnum):
    AGGRESSIVE = "aggressive"
    BALANCED = "balanced"
    CONSERVATIVE = "conservative"
    DO_NOTHING = "do_nothing"


BASELINE_SCENARIO_ID = ScenarioID.BALANCED
BASELINE_SENTINEL = "Baseline"
TRADEOFF_COUNT = 3
SUCCESS_METRIC_COUNT = 3


class DeltaDirection(StrEnum):
    DOWN = "down"
    SAME = "same"
    UP = "up"


class ScenarioMetrics(BaseModel):
    revenue_impact_range: str = ""    # e.g. "+15–25%"
    churn_impact_range: str = ""      # e.g. "+2–4pp"
    risk_label: str = ""              # low | medium | high
    time_to_impact: str = ""          # e.g. "30–60 days"
    execution_effort: str = ""        # low | medium | high


class ScenarioDeltas(BaseModel):
    """Human-readable deltas against the baseline."""
    revenue_delta: str = ""
    churn_delta: str = ""
    risk_delta: str = ""
    time_delta: str = ""
    effort_delta: str = ""

    def as_tuple(self) -> tuple[str, ...]:
        return (
            self.revenue_delta,
            self.churn_delta,
            self.risk_delta,
            self.time_delta,
            self.effort_delta,
        )


class ScenarioDetails(BaseModel):
    what_it_looks_like: list[str] = Field(default_factory=list)
    operational_implications: list[str] = Field(default_factory=list)
    failure_modes: list[str] = Field(default_factory=list)
    when_it_makes_sense: str = ""
    success_metrics: list[str] = Field(default_factory=list)
    affected_personas: list[str] = Field(default_factory=list)
    what_changes_vs_baseline: str = ""


class DeltaRange(BaseModel):
    min: float = 0.0
    max: float = 0.0


class DeltaValues(BaseModel):
    """Numeric candidate-minus-baseline deltas."""
    revenue_impact_pct: DeltaRange = Field(default_factory=DeltaRange)
    churn_impact_pp: DeltaRange = Field(default_factory=DeltaRange)
    time_to_impact_days: DeltaRange = Field(default_factory=DeltaRange)
    risk_delta: DeltaDirection = DeltaDirection.SAME
    effort_delta: DeltaDirection = DeltaDirection.SAME


class ScenarioItem(BaseModel):
    # Plain str so an unknown tag surfaces as our ValidationError on acceptance
    scenario_id: str
    title: str = ""
    summary: str = ""
    positioning: str = ""
    best_when: str = ""
    metrics: ScenarioMetrics = Field(default_factory=ScenarioMetrics)
    deltas: ScenarioDeltas = Field(default_factory=ScenarioDeltas)
    tradeoffs: list[str] = Field(default_factory=list)
    details: ScenarioDetails = Field(default_factory=ScenarioDetails)
    compared_to_recommended: str = ""
    is_baseline: bool = False
    computed_deltas: Optional[DeltaValues] = None


class ScenarioSet(BaseModel):
    scenario_set_id: str
    decision_id: str
    user_id: str
    workspace_id: Optional[str] = None
    version: int = 1
    scenarios: list[ScenarioItem]
    model_meta: Optional[ModelMeta] = None
    is_deleted: bool = False
    deleted_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    def get(self, scenario_id: str) -> Optional[ScenarioItem]:
        for item in self.scenarios:
            if item.scenario_id == scenario_id:
                return item
        return None

    @property
    def baseline(self) -> Optional[ScenarioItem]:
        for item in self.scenarios:
            if item.is_baseline:
                return item
        return None
