"""
Outcome schemas.

Two shapes of "what happened":
- MeasurableOutcome: one per decision, seeded when a scenario is chosen,
  tracks a small set of KPIs against baseline and target.
- OutcomeEntry: the older free-form log kept inline on the decision.
  Entries are never edited; a correction is a new entry pointing back.
"""

from datetime import datetime
from enum import StrEnum
from typing import Optional

from pydantic import BaseModel, Field


class OutcomeStatus(StrEnum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    ACHIEVED = "achieved"
    MISSED = "missed"


TERMINAL_OUTCOME_STATUSES = frozenset({OutcomeStatus.ACHIEVED, OutcomeStatus.MISSED})


class KPIKey(StrEnum):
    MRR = "MRR"
    ARR = "ARR"
    REVENUE = "Revenue"
    CONVERSION = "Conversion"
    CHURN = "Churn"
    ARPA = "ARPA"
    CAC = "CAC"
    ACTIVATION = "Activation"
    RETENTION = "Retention"
    NPS = "NPS"
    LTV = "LTV"


class KPIUnit(StrEnum):
    PERCENT = "%"
    PERCENTAGE_POINTS = "pp"
    EUR = "€"
    USD = "$"
    COUNT = "count"
    DAYS = "days"
    MULTIPLIER = "x"


class KPIConfidence(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class PlanTier(StrEnum):
    STARTER = "starter"
    GROWTH = "growth"
    ENTERPRISE = "enterprise"


class OutcomeType(StrEnum):
    REVENUE = "revenue"
    CHURN = "churn"
    RETENTION = "retention"
    GROWTH = "growth"
    COST = "cost"
    OTHER = "other"


class OutcomeKPI(BaseModel):
    """A single tracked metric."""
    key: KPIKey
    unit: KPIUnit
    baseline: float = 0.0
    target: float = 0.0
    actual: Optional[float] = None
    delta: Optional[float] = None        # actual - baseline
    delta_pct: Optional[float] = None    # delta / baseline * 100
    confidence: KPIConfidence = KPIConfidence.MEDIUM
    notes: str = ""


class EvidenceLink(BaseModel):
    label: str
    url: str


class MeasurableOutcome(BaseModel):
    """Tracked result of the chosen scenario."""
    outcome_id: str
    decision_id: str
    user_id: str
    chosen_scenario_id: str
    status: OutcomeStatus = OutcomeStatus.PENDING
    horizon_days: int = 90
    kpis: list[OutcomeKPI] = Field(default_factory=list)
    evidence_links: list[EvidenceLink] = Field(default_factory=list)
    summary: str = ""
    notes: str = ""
    revision: int = 1
    created_at: datetime
    updated_at: datetime

    @property
    def has_progress(self) -> bool:
        """Terminal status, or at least one KPI with an actual value."""
        if self.status in TERMINAL_OUTCOME_STATUSES:
            return True
        return any(k.actual is not None for k in self.kpis)


class OutcomeUpdate(BaseModel):
    """Partial update for a measurable outcome. None means 'leave alone'."""
    status: Optional[str] = None
    kpis: Optional[list[OutcomeKPI]] = None
    evidence_links: Optional[list[EvidenceLink]] = None
    summary: Optional[str] = None
    notes: Optional[str] = None


class BusinessMetrics(BaseModel):
    """Current business metrics, used as KPI baselines when seeding."""
    currency: KPIUnit = KPIUnit.USD
    mrr: Optional[float] = None
    customers: Optional[int] = None
    monthly_churn_rate: Optional[float] = None    # percent


class OutcomeEntry(BaseModel):
    """Legacy inline outcome. Immutable once appended."""
    outcome_id: str
    outcome_type: OutcomeType
    timeframe_days: int = 0
    metric_name: str = ""
    metric_before: Optional[float] = None
    metric_after: Optional[float] = None
    delta_percent: Optional[float] = None
    notes: str = ""
    evidence_url: str = ""
    is_correction: bool = False
    corrects_outcome_id: Optional[str] = None
    correction_reason: str = ""
    created_by: str = ""
    created_at: datetime


class AddOutcomeRequest(BaseModel):
    outcome_type: str
    timeframe_days: int = Field(default=0, ge=0)
    metric_name: str = ""
    metric_before: Optional[float] = None
    metric_after: Optional[float] = None
    notes: str = ""
    evidence_url: str = ""
    is_correction: bool = False
    corrects_outcome_id: Optional[str] = None
    correction_reason: str = ""
