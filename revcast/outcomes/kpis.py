"""
KPI math, plan gating and seeding.

delta = actual - baseline and delta_pct = delta / baseline * 100. Both stay
None until an actual is recorded; delta_pct also stays None on a zero
baseline rather than dividing by zero.
"""

from typing import Optional, Sequence

from revcast.config import settings
from revcast.errors import ValidationError
from revcast.outcomes.schemas import (
    BusinessMetrics,
    KPIConfidence,
    KPIKey,
    KPIUnit,
    OutcomeKPI,
    PlanTier,
)
from revcast.scenarios.delta import range_midpoint
from revcast.scenarios.schemas import ScenarioItem

# Decision primary KPI → tracked KPI key
PRIMARY_KPI_TO_KEY: dict[str, KPIKey] = {
    "mrr_growth": KPIKey.MRR,
    "churn_reduction": KPIKey.CHURN,
    "activation": KPIKey.ACTIVATION,
    "arpu": KPIKey.ARPA,
    "nrr": KPIKey.RETENTION,
    "cvr": KPIKey.CONVERSION,
}

_PERCENT_KEYS = {KPIKey.CHURN, KPIKey.CONVERSION, KPIKey.ACTIVATION, KPIKey.RETENTION}
_MONEY_KEYS = {KPIKey.MRR, KPIKey.ARR, KPIKey.ARPA, KPIKey.CAC, KPIKey.LTV}


def unit_for_kpi(key: KPIKey, currency: KPIUnit = KPIUnit.EUR) -> KPIUnit:
    if key in _PERCENT_KEYS:
        return KPIUnit.PERCENT
    if key in _MONEY_KEYS:
        return currency
    if key == KPIKey.NPS:
        return KPIUnit.COUNT
    return KPIUnit.PERCENT


# ── Delta ────────────────────────────────────────────────────────────────


def calculate_delta_percent(before: Optional[float], after: Optional[float]) -> Optional[float]:
    """Percent change from ``before`` to ``after``; None if undefined."""
    if before is None or after is None or before == 0:
        return None
    return (after - before) / before * 100


def compute_kpi_delta(kpi: OutcomeKPI) -> OutcomeKPI:
    """Return a copy of ``kpi`` with delta and delta_pct recomputed."""
    if kpi.actual is None:
        return kpi.model_copy(update={"delta": None, "delta_pct": None})
    delta = kpi.actual - kpi.baseline
    return kpi.model_copy(
        update={
            "delta": delta,
            "delta_pct": calculate_delta_percent(kpi.baseline, kpi.actual),
        }
    )


# ── Plan gating ──────────────────────────────────────────────────────────


def parse_plan_tier(plan_tier: PlanTier | str) -> PlanTier:
    try:
        return PlanTier(plan_tier)
    except ValueError:
        raise ValidationError(
            f"Invalid plan tier: '{plan_tier}'",
            field="plan_tier",
            details={"allowed": [p.value for p in PlanTier]},
        ) from None


def plan_allows_kpis(plan_tier: PlanTier) -> bool:
    return plan_tier != PlanTier.STARTER


def validate_kpis_for_plan(
    kpis: Sequence[OutcomeKPI],
    plan_tier: PlanTier,
    min_count: int | None = None,
    max_count: int | None = None,
) -> None:
    """Starter plans may not track KPIs; paid plans track between min and max."""
    min_count = settings.kpi_min_count if min_count is None else min_count
    max_count = settings.kpi_max_count if max_count is None else max_count

    if not plan_allows_kpis(plan_tier):
        if kpis:
            raise ValidationError(
                "KPI tracking is not available on the starter plan",
                field="kpis",
                details={"plan_tier": plan_tier.value},
            )
        return

    if not (min_count <= len(kpis) <= max_count):
        raise ValidationError(
            f"Expected between {min_count} and {max_count} KPIs, got {len(kpis)}",
            field="kpis",
            details={"count": len(kpis), "min": min_count, "max": max_count},
        )

    keys = [k.key for k in kpis]
    if len(set(keys)) != len(keys):
        raise ValidationError("Duplicate KPI keys", field="kpis")


# ── Seeding ──────────────────────────────────────────────────────────────


def _baseline_for(key: KPIKey, metrics: Optional[BusinessMetrics]) -> Optional[float]:
    if metrics is None:
        return None
    if key in (KPIKey.MRR, KPIKey.REVENUE):
        return metrics.mrr
    if key == KPIKey.ARR and metrics.mrr is not None:
        return metrics.mrr * 12
    if key == KPIKey.ARPA and metrics.mrr is not None and metrics.customers:
        return metrics.mrr / metrics.customers
    if key == KPIKey.CHURN:
        return metrics.monthly_churn_rate
    return None


def seed_kpis(
    scenario: ScenarioItem,
    primary_kpi: Optional[str],
    metrics: Optional[BusinessMetrics] = None,
    plan_tier: PlanTier = PlanTier.GROWTH,
) -> list[OutcomeKPI]:
    """
    Prefill KPIs for a freshly chosen scenario.

    Revenue and Churn targets come from the scenario's impact ranges. When
    current metrics are known they become the baseline and the target is
    expressed in the same unit; otherwise the KPI tracks the change itself.
    The decision's primary KPI is added when it is something else.
    """
    if not plan_allows_kpis(plan_tier):
        return []

    currency = metrics.currency if metrics is not None else KPIUnit.EUR
    revenue_mid = range_midpoint(scenario.metrics.revenue_impact_range)
    churn_mid = range_midpoint(scenario.metrics.churn_impact_range)
    kpis: list[OutcomeKPI] = []

    mrr = _baseline_for(KPIKey.REVENUE, metrics)
    if mrr:
        kpis.append(OutcomeKPI(
            key=KPIKey.REVENUE,
            unit=currency,
            baseline=mrr,
            target=round(mrr * (1 + revenue_mid / 100), 2),
            confidence=KPIConfidence.MEDIUM,
            notes=f"Expected impact: {scenario.metrics.revenue_impact_range}",
        ))
    else:
        kpis.append(OutcomeKPI(
            key=KPIKey.REVENUE,
            unit=KPIUnit.PERCENT,
            baseline=0.0,
            target=revenue_mid,
            confidence=KPIConfidence.MEDIUM,
            notes=f"Expected impact: {scenario.metrics.revenue_impact_range}",
        ))

    churn = _baseline_for(KPIKey.CHURN, metrics)
    if churn is not None:
        kpis.append(OutcomeKPI(
            key=KPIKey.CHURN,
            unit=KPIUnit.PERCENT,
            baseline=churn,
            target=round(churn + churn_mid, 2),
            confidence=KPIConfidence.MEDIUM,
            notes=f"Expected impact: {scenario.metrics.churn_impact_range}",
        ))
    else:
        kpis.append(OutcomeKPI(
            key=KPIKey.CHURN,
            unit=KPIUnit.PERCENTAGE_POINTS,
            baseline=0.0,
            target=churn_mid,
            confidence=KPIConfidence.MEDIUM,
            notes=f"Expected impact: {scenario.metrics.churn_impact_range}",
        ))

    primary = PRIMARY_KPI_TO_KEY.get(primary_kpi or "", KPIKey.MRR)
    if primary not in (KPIKey.REVENUE, KPIKey.CHURN):
        kpis.append(OutcomeKPI(
            key=primary,
            unit=unit_for_kpi(primary, currency),
            baseline=_baseline_for(primary, metrics) or 0.0,
            target=0.0,
            confidence=KPIConfidence.LOW,
            notes="Set your baseline and target",
        ))

    return kpis
