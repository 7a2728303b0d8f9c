"""
Correction chain for inline outcome entries.

Entries are append-only. A correction names the entry it revises; the
revised entry stays in the log but stops being "effective". Chains are kept
linear: only the head of a chain (an entry nothing points at yet) may be
corrected.

The current outcome of a decision is the latest effective entry by
``created_at``; ties go to the entry appended last.
"""

from datetime import datetime
from typing import Optional, Sequence

from revcast.decisions.ledger import new_id, utcnow
from revcast.errors import ConflictError, NotFoundError, ValidationError
from revcast.outcomes.kpis import calculate_delta_percent
from revcast.outcomes.schemas import AddOutcomeRequest, OutcomeEntry, OutcomeType


def superseded_ids(outcomes: Sequence[OutcomeEntry]) -> set[str]:
    return {
        o.corrects_outcome_id
        for o in outcomes
        if o.is_correction and o.corrects_outcome_id
    }


def effective_outcomes(outcomes: Sequence[OutcomeEntry]) -> list[OutcomeEntry]:
    """Entries no correction points at, in log order."""
    superseded = superseded_ids(outcomes)
    return [o for o in outcomes if o.outcome_id not in superseded]


def current_outcome(outcomes: Sequence[OutcomeEntry]) -> Optional[OutcomeEntry]:
    effective = effective_outcomes(outcomes)
    if not effective:
        return None
    # max() keeps the first maximum, so walk newest-appended first
    return max(reversed(effective), key=lambda o: o.created_at)


def correction_chain(outcomes: Sequence[OutcomeEntry], outcome_id: str) -> list[OutcomeEntry]:
    """Every entry in ``outcome_id``'s chain, original first."""
    by_id = {o.outcome_id: o for o in outcomes}
    if outcome_id not in by_id:
        raise NotFoundError("Outcome", outcome_id)

    corrected_by = {
        o.corrects_outcome_id: o
        for o in outcomes
        if o.is_correction and o.corrects_outcome_id
    }

    root = by_id[outcome_id]
    seen = {root.outcome_id}
    while root.is_correction and root.corrects_outcome_id in by_id:
        root = by_id[root.corrects_outcome_id]
        if root.outcome_id in seen:
            break
        seen.add(root.outcome_id)

    chain = [root]
    while chain[-1].outcome_id in corrected_by:
        nxt = corrected_by[chain[-1].outcome_id]
        if nxt in chain:
            break
        chain.append(nxt)
    return chain


def outcome_summary(outcomes: Sequence[OutcomeEntry]) -> str:
    """One-line summary of the current outcome, e.g. "+12.3% revenue (30d)"."""
    latest = current_outcome(outcomes)
    if latest is None:
        return ""
    if latest.delta_percent is None:
        return "Outcome recorded"
    sign = "+" if latest.delta_percent >= 0 else ""
    return (
        f"{sign}{latest.delta_percent:.1f}% {latest.outcome_type.value} "
        f"({latest.timeframe_days}d)"
    )


def build_outcome_entry(
    existing: Sequence[OutcomeEntry],
    request: AddOutcomeRequest,
    actor: str = "",
    now: Optional[datetime] = None,
) -> OutcomeEntry:
    """Validate an add-outcome request against the decision's log and build the entry."""
    try:
        outcome_type = OutcomeType(request.outcome_type)
    except ValueError:
        raise ValidationError(
            f"Invalid outcome type: '{request.outcome_type}'",
            field="outcome_type",
            details={"allowed": [t.value for t in OutcomeType]},
        ) from None

    if request.is_correction != bool(request.corrects_outcome_id):
        raise ValidationError(
            "A correction must name the outcome it corrects, and only corrections may",
            field="corrects_outcome_id",
        )

    if request.is_correction:
        target_id = request.corrects_outcome_id
        if target_id not in {o.outcome_id for o in existing}:
            raise NotFoundError("Outcome", target_id)
        if target_id in superseded_ids(existing):
            raise ConflictError(
                f"Outcome {target_id} was already corrected; correct the latest entry instead",
                details={"corrects_outcome_id": target_id},
            )

    return OutcomeEntry(
        outcome_id=new_id("out"),
        outcome_type=outcome_type,
        timeframe_days=request.timeframe_days,
        metric_name=request.metric_name,
        metric_before=request.metric_before,
        metric_after=request.metric_after,
        delta_percent=calculate_delta_percent(request.metric_before, request.metric_after),
        notes=request.notes,
        evidence_url=request.evidence_url,
        is_correction=request.is_correction,
        corrects_outcome_id=request.corrects_outcome_id,
        correction_reason=request.correction_reason,
        created_by=actor,
        created_at=now or utcnow(),
    )
