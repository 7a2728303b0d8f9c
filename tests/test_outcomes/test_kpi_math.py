"""
KPI Math and Plan Gating Tests.
"""

import pytest

from revcast.errors import ValidationError
from revcast.outcomes.kpis import (
    calculate_delta_percent,
    compute_kpi_delta,
    parse_plan_tier,
    seed_kpis,
    unit_for_kpi,
    validate_kpis_for_plan,
)
from revcast.outcomes.schemas import (
    BusinessMetrics,
    KPIConfidence,
    KPIKey,
    KPIUnit,
    OutcomeKPI,
    PlanTier,
)
from tests.factories import make_scenarios

_KEYS = [KPIKey.MRR, KPIKey.CHURN, KPIKey.ARPA, KPIKey.CAC, KPIKey.NPS, KPIKey.LTV, KPIKey.ARR]


def _kpis(n: int) -> list[OutcomeKPI]:
    return [OutcomeKPI(key=k, unit=unit_for_kpi(k), baseline=1.0, target=2.0) for k in _KEYS[:n]]


class TestDelta:
    def test_delta_and_percent(self):
        kpi = compute_kpi_delta(OutcomeKPI(key=KPIKey.MRR, unit=KPIUnit.EUR, baseline=100, actual=120))
        assert kpi.delta == 20
        assert kpi.delta_pct == 20.0

    def test_negative_change(self):
        kpi = compute_kpi_delta(OutcomeKPI(key=KPIKey.MRR, unit=KPIUnit.EUR, baseline=200, actual=150))
        assert kpi.delta == -50
        assert kpi.delta_pct == -25.0

    def test_zero_baseline_has_no_percent(self):
        kpi = compute_kpi_delta(OutcomeKPI(key=KPIKey.CHURN, unit=KPIUnit.PERCENTAGE_POINTS, baseline=0, actual=1.5))
        assert kpi.delta == 1.5
        assert kpi.delta_pct is None

    def test_no_actual_clears_deltas(self):
        stale = OutcomeKPI(key=KPIKey.MRR, unit=KPIUnit.EUR, baseline=100, delta=5, delta_pct=5)
        kpi = compute_kpi_delta(stale)
        assert kpi.delta is None
        assert kpi.delta_pct is None

    def test_calculate_delta_percent_undefined(self):
        assert calculate_delta_percent(None, 5) is None
        assert calculate_delta_percent(5, None) is None
        assert calculate_delta_percent(0, 5) is None
        assert calculate_delta_percent(50, 75) == 50.0


class TestPlanGating:
    def test_growth_accepts_three_to_six(self):
        for n in (3, 6):
            validate_kpis_for_plan(_kpis(n), PlanTier.GROWTH)

    @pytest.mark.parametrize("n", [0, 2, 7])
    def test_growth_rejects_out_of_range(self, n):
        with pytest.raises(ValidationError):
            validate_kpis_for_plan(_kpis(n), PlanTier.GROWTH)

    def test_enterprise_same_bounds(self):
        validate_kpis_for_plan(_kpis(4), PlanTier.ENTERPRISE)
        with pytest.raises(ValidationError):
            validate_kpis_for_plan(_kpis(7), PlanTier.ENTERPRISE)

    def test_starter_rejects_any_kpi(self):
        validate_kpis_for_plan([], PlanTier.STARTER)
        with pytest.raises(ValidationError):
            validate_kpis_for_plan(_kpis(1), PlanTier.STARTER)

    def test_duplicate_keys_rejected(self):
        kpis = _kpis(3) + [_kpis(1)[0]]
        with pytest.raises(ValidationError):
            validate_kpis_for_plan(kpis, PlanTier.GROWTH)

    def test_parse_plan_tier(self):
        assert parse_plan_tier("enterprise") == PlanTier.ENTERPRISE
        with pytest.raises(ValidationError):
            parse_plan_tier("platinum")


class TestSeeding:
    def _scenario(self, scenario_id="balanced"):
        return next(s for s in make_scenarios() if s.scenario_id == scenario_id)

    def test_primary_kpi_mapping(self):
        kpis = seed_kpis(self._scenario(), "activation")
        assert [k.key for k in kpis] == [KPIKey.REVENUE, KPIKey.CHURN, KPIKey.ACTIVATION]
        primary = kpis[-1]
        assert primary.confidence == KPIConfidence.LOW
        assert primary.target == 0.0
        assert primary.unit == KPIUnit.PERCENT

    def test_unknown_primary_kpi_defaults_to_mrr(self):
        kpis = seed_kpis(self._scenario(), None)
        assert kpis[-1].key == KPIKey.MRR
        assert kpis[-1].unit == KPIUnit.EUR

    def test_arpu_baseline_from_metrics(self):
        metrics = BusinessMetrics(currency=KPIUnit.USD, mrr=12000, customers=40)
        kpis = seed_kpis(self._scenario(), "arpu", metrics=metrics)
        arpa = kpis[-1]
        assert arpa.key == KPIKey.ARPA
        assert arpa.baseline == 300.0
        assert arpa.unit == KPIUnit.USD

    def test_starter_gets_nothing(self):
        assert seed_kpis(self._scenario(), "mrr_growth", plan_tier=PlanTier.STARTER) == []

    def test_stagnating_scenario_targets_zero(self):
        kpis = seed_kpis(self._scenario("do_nothing"), "mrr_growth")
        assert kpis[0].target == 0.0
        assert kpis[1].target == 0.0
