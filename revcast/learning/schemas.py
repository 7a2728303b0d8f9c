"""
Learning Schemas — what past outcomes say about future decisions.
"""

from datetime import datetime
from typing import NamedTuple, Optional

from pydantic import BaseModel, Field

from revcast.decisions.schemas import Level
from revcast.outcomes.schemas import OutcomeStatus

UNKNOWN = "unknown"


class LearningKey(NamedTuple):
    company_stage: str
    primary_kpi: str
    scenario_type: str


class OutcomeObservation(BaseModel):
    """One finished outcome, flattened for aggregation."""
    decision_id: str
    company_stage: str = UNKNOWN
    primary_kpi: str = UNKNOWN
    scenario_type: str = UNKNOWN
    status: OutcomeStatus
    delta_percent: float = 0.0      # mean KPI delta_pct, missing values as 0
    recorded_at: datetime

    @property
    def key(self) -> LearningKey:
        return LearningKey(self.company_stage, self.primary_kpi, self.scenario_type)


class LearningInsight(BaseModel):
    company_stage: str
    primary_kpi: str
    scenario_type: str
    sample_size: int
    achieved_count: int = 0
    missed_count: int = 0
    success_rate: float = 0.0
    miss_rate: float = 0.0
    average_delta: float = 0.0
    confidence: Level = Level.LOW
    oldest_outcome_at: Optional[datetime] = None
    newest_outcome_at: Optional[datetime] = None

    @property
    def key(self) -> LearningKey:
        return LearningKey(self.company_stage, self.primary_kpi, self.scenario_type)


class HistoricalSignal(BaseModel):
    description: str
    scenario_type: str
    sample_size: int
    success_rate: float
    average_delta: float
    relevance: Level
    matching_fields: list[str] = Field(default_factory=list)


class LearningContext(BaseModel):
    """Fed back into verdict generation."""
    historical_signals: list[HistoricalSignal] = Field(default_factory=list)
    confidence_boost: float = 0.0
    learning_summary: str = ""


class LearningIndicator(BaseModel):
    type: str          # confidence_boost | historical_success
    title: str
    description: str
    sample_size: Optional[int] = None
    relevance: Level = Level.LOW
