"""
Decision Schemas — the decision aggregate and its versioned sub-documents.

A decision holds the current verdict and context plus append-only histories
of every value they previously held. Counters always equal history length
plus one: the current value only enters history once it is superseded.
"""

from datetime import datetime
from enum import StrEnum
from typing import Any, Optional

from pydantic import BaseModel, Field, computed_field

from revcast.outcomes.schemas import OutcomeEntry


class DecisionStatus(StrEnum):
    PROPOSED = "proposed"
    IN_REVIEW = "in_review"
    APPROVED = "approved"
    REJECTED = "rejected"
    IMPLEMENTED = "implemented"
    ROLLED_BACK = "rolled_back"


class EpisodeStatus(StrEnum):
    DRAFT = "draft"
    EXPLORED = "explored"
    PATH_CHOSEN = "path_chosen"
    OUTCOME_SAVED = "outcome_saved"


class Level(StrEnum):
    """Three-step label shared by confidence and risk."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class ContextSource(StrEnum):
    USER = "user"
    WORKSPACE = "workspace"
    INFERRED = "inferred"


class CompanyStage(StrEnum):
    PRE_SEED = "pre_seed"
    SEED = "seed"
    SERIES_A = "series_a"
    SERIES_B = "series_b"
    SERIES_C_PLUS = "series_c_plus"
    PUBLIC = "public"
    UNKNOWN = "unknown"


class BusinessModel(StrEnum):
    SAAS = "saas"
    MARKETPLACE = "marketplace"
    ECOMMERCE = "ecommerce"
    SERVICES = "services"
    HARDWARE = "hardware"
    HYBRID = "hybrid"
    UNKNOWN = "unknown"


class PrimaryKPI(StrEnum):
    MRR_GROWTH = "mrr_growth"
    CHURN_REDUCTION = "churn_reduction"
    ACTIVATION = "activation"
    ARPU = "arpu"
    NRR = "nrr"
    CVR = "cvr"
    RETENTION = "retention"
    UNKNOWN = "unknown"


class MarketType(StrEnum):
    B2B = "b2b"
    B2C = "b2c"
    B2B2C = "b2b2c"


class MarketSegment(StrEnum):
    DEVTOOLS = "devtools"
    FINTECH = "fintech"
    HEALTHTECH = "healthtech"
    EDTECH = "edtech"
    ECOMMERCE = "ecommerce"
    CRM = "crm"
    HR = "hr"
    MARKETING = "marketing"
    ANALYTICS = "analytics"
    SECURITY = "security"
    PRODUCTIVITY = "productivity"
    OTHER = "other"


# ── Context ──────────────────────────────────────────────────────────────


class ContextField(BaseModel):
    """A context value plus where it came from."""
    value: Optional[str] = None
    source: ContextSource = ContextSource.INFERRED
    confidence_score: Optional[float] = Field(default=None, ge=0.0, le=1.0)
    inferred_signal: Optional[str] = None


class MarketContext(BaseModel):
    type: ContextField = Field(default_factory=ContextField)
    segment: ContextField = Field(default_factory=ContextField)


class DecisionContext(BaseModel):
    company_stage: ContextField = Field(default_factory=ContextField)
    business_model: ContextField = Field(default_factory=ContextField)
    primary_kpi: ContextField = Field(default_factory=ContextField)
    market: MarketContext = Field(default_factory=MarketContext)


class ContextChanges(BaseModel):
    """User edits to the context. Unset fields are left alone."""
    company_stage: Optional[str] = None
    business_model: Optional[str] = None
    primary_kpi: Optional[str] = None
    market_type: Optional[str] = None
    market_segment: Optional[str] = None


class ContextVersion(BaseModel):
    version: int
    context: DecisionContext
    reason: str = ""
    created_at: datetime
    created_by: str = ""


# ── Verdict ──────────────────────────────────────────────────────────────


class WhatToExpect(BaseModel):
    risk_score: float = Field(ge=0.0, le=1.0)
    risk_label: Level = Level.LOW
    description: str = ""


class SupportingDetails(BaseModel):
    expected_revenue_impact: str = ""
    churn_outlook: str = ""
    market_positioning: str = ""


class Verdict(BaseModel):
    """Recommendation produced by the inference service."""
    headline: str
    summary: str = ""
    confidence_score: float = Field(ge=0.0, le=1.0)
    confidence_label: Level = Level.LOW
    cta: str = ""
    why_this_decision: list[str] = Field(default_factory=list)
    what_to_expect: WhatToExpect
    supporting_details: SupportingDetails = Field(default_factory=SupportingDetails)
    # Premium sections; opaque to the core
    decision_snapshot: Optional[dict[str, Any]] = None
    executive_verdict: Optional[dict[str, Any]] = None
    if_you_proceed: Optional[dict[str, Any]] = None
    if_you_do_not_act: Optional[str] = None
    alternatives_considered: Optional[list[dict[str, Any]]] = None
    risk_analysis: Optional[dict[str, Any]] = None
    execution_checklist: Optional[dict[str, Any]] = None
    execution_note: Optional[str] = None


class ModelMeta(BaseModel):
    """Provenance of a generated verdict or scenario set."""
    model: str = ""
    prompt_version: str = ""
    temperature: Optional[float] = None
    generated_at: Optional[datetime] = None


class InferenceSignal(BaseModel):
    """A website/company signal the inference service used."""
    signal_type: str
    value: str
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    source: str = ""


class VerdictVersion(BaseModel):
    version: int
    verdict: Verdict
    reason: str = ""
    created_at: datetime
    created_by: str = ""
    model_meta: Optional[ModelMeta] = None


class ExpectedImpact(BaseModel):
    revenue_range: str = ""
    churn_note: str = ""
    confidence_rationale: str = ""


# ── Status ───────────────────────────────────────────────────────────────


class StatusEvent(BaseModel):
    event_id: str
    status: DecisionStatus
    reason: str = ""
    implemented_at: Optional[datetime] = None
    rollback_at: Optional[datetime] = None
    created_by: str = ""
    created_at: datetime


# ── Aggregate ────────────────────────────────────────────────────────────


class Decision(BaseModel):
    """The decision aggregate as stored."""
    decision_id: str
    user_id: str
    workspace_id: Optional[str] = None
    company_name: str = ""
    website_url: str = ""

    verdict: Verdict
    verdict_version: int = 1
    verdict_versions: list[VerdictVersion] = Field(default_factory=list)
    model_meta: Optional[ModelMeta] = None
    inference_signals: list[InferenceSignal] = Field(default_factory=list)

    context: DecisionContext
    context_version: int = 1
    context_versions: list[ContextVersion] = Field(default_factory=list)

    status: DecisionStatus = DecisionStatus.PROPOSED
    status_events: list[StatusEvent] = Field(default_factory=list)

    expected_impact: ExpectedImpact = Field(default_factory=ExpectedImpact)
    outcomes: list[OutcomeEntry] = Field(default_factory=list)

    scenarios_id: Optional[str] = None
    chosen_scenario_id: Optional[str] = None
    chosen_scenario_at: Optional[datetime] = None
    outcome_id: Optional[str] = None

    is_deleted: bool = False
    deleted_at: Optional[datetime] = None
    revision: int = 1
    created_at: datetime
    updated_at: datetime


class NewDecision(BaseModel):
    """Inputs for creating a decision from an inference result."""
    user_id: str
    workspace_id: Optional[str] = None
    company_name: str = ""
    website_url: str = ""
    verdict: Verdict
    context: DecisionContext = Field(default_factory=DecisionContext)
    model_meta: Optional[ModelMeta] = None
    inference_signals: list[InferenceSignal] = Field(default_factory=list)
    created_by: str = ""


class DecisionEpisode(BaseModel):
    """Read model: a decision plus the facts its episode status derives from."""
    decision: Decision
    has_scenarios: bool = False
    has_outcome: bool = False

    @computed_field
    @property
    def episode_status(self) -> EpisodeStatus:
        from revcast.decisions.episode import derive_episode_status

        return derive_episode_status(
            self.has_scenarios,
            self.decision.chosen_scenario_id,
            self.has_outcome,
        )
