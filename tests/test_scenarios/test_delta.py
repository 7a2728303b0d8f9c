"""
Delta Calculator Tests.
"""

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from revcast.decisions.schemas import Level
from revcast.errors import ValidationError
from revcast.scenarios.delta import (
    compare_level,
    compute_scenario_delta,
    confidence_label_from_score,
    horizon_days,
    parse_days_range,
    parse_percent_range,
    risk_label_from_score,
)
from revcast.scenarios.schemas import DeltaDirection
from tests.factories import make_scenarios


def _by_id():
    return {s.scenario_id: s for s in make_scenarios()}


class TestParsing:
    @pytest.mark.parametrize(
        "text, expected",
        [
            ("+15–25%", (15.0, 25.0)),
            ("+8-12%", (8.0, 12.0)),
            ("-5−10%", (-5.0, 10.0)),
            ("+2–4pp", (2.0, 4.0)),
            ("+3%", (3.0, 3.0)),
            ("0%", (0.0, 0.0)),
            ("Stagnates", (0.0, 0.0)),
            ("N/A", (0.0, 0.0)),
            ("", (0.0, 0.0)),
            ("unclear", (0.0, 0.0)),
        ],
    )
    def test_percent_range(self, text, expected):
        assert parse_percent_range(text) == expected

    @pytest.mark.parametrize(
        "text, expected",
        [
            ("30–60 days", (30, 60)),
            ("14-30 days", (14, 30)),
            ("7 days", (7, 7)),
            ("N/A", (0, 0)),
            ("", (0, 0)),
        ],
    )
    def test_days_range(self, text, expected):
        assert parse_days_range(text) == expected

    def test_horizon_is_midpoint(self):
        assert horizon_days("30–60 days") == 45
        assert horizon_days("14–30 days") == 22

    def test_horizon_falls_back_to_default(self):
        assert horizon_days("N/A") == 90
        assert horizon_days("soon", default=30) == 30


class TestLabels:
    @pytest.mark.parametrize(
        "score, expected",
        [
            (1.0, Level.HIGH),
            (0.8, Level.HIGH),
            (0.79999, Level.MEDIUM),
            (0.6, Level.MEDIUM),
            (0.59999, Level.LOW),
            (0.0, Level.LOW),
        ],
    )
    def test_confidence_label(self, score, expected):
        assert confidence_label_from_score(score) == expected

    @pytest.mark.parametrize(
        "score, expected",
        [
            (0.7, Level.HIGH),
            (0.69999, Level.MEDIUM),
            (0.4, Level.MEDIUM),
            (0.39999, Level.LOW),
        ],
    )
    def test_risk_label(self, score, expected):
        assert risk_label_from_score(score) == expected

    def test_compare_level(self):
        assert compare_level("medium", "High") == DeltaDirection.UP
        assert compare_level("medium", "low") == DeltaDirection.DOWN
        assert compare_level("low", "low") == DeltaDirection.SAME


class TestScenarioDelta:
    def test_aggressive_vs_baseline(self):
        s = _by_id()
        delta = compute_scenario_delta(s["balanced"], s["aggressive"])
        assert (delta.revenue_impact_pct.min, delta.revenue_impact_pct.max) == (7.0, 13.0)
        assert (delta.churn_impact_pp.min, delta.churn_impact_pp.max) == (2.0, 3.0)
        assert (delta.time_to_impact_days.min, delta.time_to_impact_days.max) == (-16.0, -30.0)
        assert delta.risk_delta == DeltaDirection.UP
        assert delta.effort_delta == DeltaDirection.UP

    def test_conservative_vs_baseline(self):
        s = _by_id()
        delta = compute_scenario_delta(s["balanced"], s["conservative"])
        assert (delta.revenue_impact_pct.min, delta.revenue_impact_pct.max) == (-5.0, -7.0)
        assert (delta.churn_impact_pp.min, delta.churn_impact_pp.max) == (0.0, -1.0)
        assert (delta.time_to_impact_days.min, delta.time_to_impact_days.max) == (30.0, 30.0)
        assert delta.risk_delta == DeltaDirection.DOWN
        assert delta.effort_delta == DeltaDirection.DOWN

    def test_do_nothing_vs_baseline(self):
        s = _by_id()
        delta = compute_scenario_delta(s["balanced"], s["do_nothing"])
        assert (delta.revenue_impact_pct.min, delta.revenue_impact_pct.max) == (-8.0, -12.0)
        assert (delta.time_to_impact_days.min, delta.time_to_impact_days.max) == (-30.0, -60.0)

    def test_baseline_against_itself_is_zero(self):
        s = _by_id()
        delta = compute_scenario_delta(s["balanced"], s["balanced"])
        assert delta.revenue_impact_pct.min == 0.0
        assert delta.risk_delta == DeltaDirection.SAME

    def test_non_baseline_reference_refused(self):
        s = _by_id()
        with pytest.raises(ValidationError):
            compute_scenario_delta(s["aggressive"], s["conservative"])


_bounds = st.integers(min_value=0, max_value=200)


@settings(max_examples=50, deadline=None)
@given(_bounds, _bounds, _bounds, _bounds)
def test_revenue_delta_is_endwise_difference(base_lo, base_hi, cand_lo, cand_hi):
    s = _by_id()
    baseline = s["balanced"].model_copy(deep=True)
    candidate = s["aggressive"].model_copy(deep=True)
    baseline.metrics.revenue_impact_range = f"+{base_lo}–{base_hi}%"
    candidate.metrics.revenue_impact_range = f"+{cand_lo}–{cand_hi}%"

    delta = compute_scenario_delta(baseline, candidate)
    assert delta.revenue_impact_pct.min == cand_lo - base_lo
    assert delta.revenue_impact_pct.max == cand_hi - base_hi

    itself = compute_scenario_delta(baseline, baseline)
    assert itself.revenue_impact_pct.min == itself.revenue_impact_pct.max == 0.0
