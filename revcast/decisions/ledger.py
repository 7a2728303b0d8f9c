"""
Version Ledger — create decisions and version their context and verdict.

Operations here are pure: they take a Decision, validate, and return a new
Decision. The input is never mutated, so a rejected change leaves the caller's
aggregate exactly as it was. Persistence and revision checks live in the
service layer.
"""

import uuid
from datetime import datetime, timezone
from enum import StrEnum
from typing import Optional

from revcast.decisions.schemas import (
    BusinessModel,
    CompanyStage,
    ContextChanges,
    ContextField,
    ContextSource,
    ContextVersion,
    Decision,
    DecisionContext,
    DecisionStatus,
    ExpectedImpact,
    MarketSegment,
    MarketType,
    ModelMeta,
    NewDecision,
    PrimaryKPI,
    StatusEvent,
    Verdict,
    VerdictVersion,
)
from revcast.errors import ValidationError
from revcast.scenarios.delta import confidence_label_from_score, risk_label_from_score

# Allowed values per context field (dotted path → enum)
CONTEXT_FIELD_ENUMS: dict[str, type[StrEnum]] = {
    "company_stage": CompanyStage,
    "business_model": BusinessModel,
    "primary_kpi": PrimaryKPI,
    "market.type": MarketType,
    "market.segment": MarketSegment,
}

_CHANGE_TO_PATH = {
    "company_stage": "company_stage",
    "business_model": "business_model",
    "primary_kpi": "primary_kpi",
    "market_type": "market.type",
    "market_segment": "market.segment",
}


def new_id(prefix: str) -> str:
    return f"{prefix}_{uuid.uuid4().hex[:16]}"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ── Validation ───────────────────────────────────────────────────────────


def _check_value(path: str, value: Optional[str]) -> None:
    if value is None:
        return
    allowed = CONTEXT_FIELD_ENUMS[path]
    if value not in {m.value for m in allowed}:
        raise ValidationError(
            f"Invalid {path}: '{value}'",
            field=path,
            details={"allowed": sorted(m.value for m in allowed)},
        )


def _get_field(context: DecisionContext, path: str) -> ContextField:
    if path == "market.type":
        return context.market.type
    if path == "market.segment":
        return context.market.segment
    return getattr(context, path)


def _set_field(context: DecisionContext, path: str, field: ContextField) -> None:
    if path == "market.type":
        context.market.type = field
    elif path == "market.segment":
        context.market.segment = field
    else:
        setattr(context, path, field)


def validate_context(context: DecisionContext) -> None:
    """Raise ValidationError if any context value is outside its enum."""
    for path in CONTEXT_FIELD_ENUMS:
        _check_value(path, _get_field(context, path).value)


def normalize_verdict(verdict: Verdict) -> Verdict:
    """Re-derive confidence and risk labels from their scores."""
    what_to_expect = verdict.what_to_expect.model_copy(
        update={"risk_label": risk_label_from_score(verdict.what_to_expect.risk_score)}
    )
    return verdict.model_copy(
        update={
            "confidence_label": confidence_label_from_score(verdict.confidence_score),
            "what_to_expect": what_to_expect,
        },
        deep=True,
    )


# ── Operations ───────────────────────────────────────────────────────────


def create_decision(request: NewDecision, now: Optional[datetime] = None) -> Decision:
    """Build a fresh decision: both counters at 1, histories empty, status proposed."""
    now = now or utcnow()
    validate_context(request.context)
    verdict = normalize_verdict(request.verdict)
    details = verdict.supporting_details

    return Decision(
        decision_id=new_id("dec"),
        user_id=request.user_id,
        workspace_id=request.workspace_id,
        company_name=request.company_name,
        website_url=request.website_url,
        verdict=verdict,
        verdict_version=1,
        model_meta=request.model_meta,
        inference_signals=list(request.inference_signals),
        context=request.context.model_copy(deep=True),
        context_version=1,
        status=DecisionStatus.PROPOSED,
        status_events=[
            StatusEvent(
                event_id=new_id("evt"),
                status=DecisionStatus.PROPOSED,
                reason="created",
                created_by=request.created_by,
                created_at=now,
            )
        ],
        expected_impact=ExpectedImpact(
            revenue_range=details.expected_revenue_impact,
            churn_note=details.churn_outlook,
            confidence_rationale=verdict.summary,
        ),
        created_at=now,
        updated_at=now,
    )


def update_context(
    decision: Decision,
    changes: ContextChanges,
    reason: str = "",
    actor: str = "",
    now: Optional[datetime] = None,
) -> Decision:
    """
    Archive the current context, apply user changes, bump the version.

    Changed fields are attributed to the user at full confidence.
    """
    requested = {
        _CHANGE_TO_PATH[name]: value
        for name, value in changes.model_dump().items()
        if value is not None
    }
    if not requested:
        raise ValidationError("No context fields to update", field="changes")
    for path, value in requested.items():
        _check_value(path, value)

    now = now or utcnow()
    updated = decision.model_copy(deep=True)
    updated.context_versions.append(
        ContextVersion(
            version=decision.context_version,
            context=decision.context.model_copy(deep=True),
            reason=reason,
            created_at=now,
            created_by=actor,
        )
    )
    for path, value in requested.items():
        _set_field(
            updated.context,
            path,
            ContextField(value=value, source=ContextSource.USER, confidence_score=1.0),
        )
    updated.context_version = decision.context_version + 1
    updated.updated_at = now
    return updated


def regenerate_verdict(
    decision: Decision,
    new_verdict: Verdict,
    reason: str = "",
    actor: str = "",
    model_meta: Optional[ModelMeta] = None,
    now: Optional[datetime] = None,
) -> Decision:
    """Archive the current verdict and install a freshly generated one."""
    now = now or utcnow()
    updated = decision.model_copy(deep=True)
    updated.verdict_versions.append(
        VerdictVersion(
            version=decision.verdict_version,
            verdict=decision.verdict.model_copy(deep=True),
            reason=reason,
            created_at=now,
            created_by=actor,
            model_meta=decision.model_meta,
        )
    )
    updated.verdict = normalize_verdict(new_verdict)
    updated.verdict_version = decision.verdict_version + 1
    if model_meta is not None:
        updated.model_meta = model_meta
    details = updated.verdict.supporting_details
    updated.expected_impact = ExpectedImpact(
        revenue_range=details.expected_revenue_impact,
        churn_note=details.churn_outlook,
        confidence_rationale=updated.verdict.summary,
    )
    updated.updated_at = now
    return updated


def soft_delete(decision: Decision, now: Optional[datetime] = None) -> Decision:
    now = now or utcnow()
    return decision.model_copy(
        update={"is_deleted": True, "deleted_at": now, "updated_at": now},
        deep=True,
    )
