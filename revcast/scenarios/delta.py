"""
Delta Calculator — candidate-versus-baseline comparisons and score labels.

Scenario metrics arrive as display strings ("+15–25%", "Stagnates",
"30–60 days"). They are parsed into ranges and subtracted end-for-end from
the baseline's. Deltas are only ever computed against the designated
baseline, never between two candidates.
"""

import re

from revcast.decisions.schemas import Level
from revcast.errors import ValidationError
from revcast.scenarios.schemas import (
    DeltaDirection,
    DeltaRange,
    DeltaValues,
    ScenarioItem,
)

# ── Configuration ─────────────────────────────────────────────────────

CONFIDENCE_HIGH_THRESHOLD: float = 0.8
CONFIDENCE_MEDIUM_THRESHOLD: float = 0.6
RISK_HIGH_THRESHOLD: float = 0.7
RISK_MEDIUM_THRESHOLD: float = 0.4

# Separator may be a hyphen, en dash or minus sign
_PERCENT_RANGE_RE = re.compile(r"([+-]?\d+\.?\d*)[–\-−](\d+\.?\d*)")
_PERCENT_SINGLE_RE = re.compile(r"([+-]?\d+\.?\d*)")
_DAYS_RANGE_RE = re.compile(r"(\d+)[–\-−](\d+)")
_DAYS_SINGLE_RE = re.compile(r"(\d+)")
_FLAT_MARKERS = {"", "stagnates", "n/a"}

_LEVEL_ORDER = {"low": 1, "medium": 2, "high": 3}


# ── Labels ─────────────────────────────────────────────────────────────


def confidence_label_from_score(score: float) -> Level:
    """≥0.8 high, ≥0.6 medium, else low. Boundaries round up."""
    if score >= CONFIDENCE_HIGH_THRESHOLD:
        return Level.HIGH
    if score >= CONFIDENCE_MEDIUM_THRESHOLD:
        return Level.MEDIUM
    return Level.LOW


def risk_label_from_score(score: float) -> Level:
    """≥0.7 high, ≥0.4 medium, else low. Boundaries round up."""
    if score >= RISK_HIGH_THRESHOLD:
        return Level.HIGH
    if score >= RISK_MEDIUM_THRESHOLD:
        return Level.MEDIUM
    return Level.LOW


# ── Parsing ────────────────────────────────────────────────────────────


def parse_percent_range(text: str) -> tuple[float, float]:
    """Parse "+15–25%", "-5-10%", "+3%" or "Stagnates" into (min, max)."""
    text = (text or "").strip()
    if text.lower() in _FLAT_MARKERS:
        return 0.0, 0.0

    match = _PERCENT_RANGE_RE.search(text)
    if match:
        return float(match.group(1)), float(match.group(2))

    match = _PERCENT_SINGLE_RE.search(text)
    if match:
        value = float(match.group(1))
        return value, value

    return 0.0, 0.0


def parse_days_range(text: str) -> tuple[int, int]:
    """Parse "30–60 days" or "14 days" into (min, max) days."""
    text = (text or "").strip()
    if text.lower() in ("", "n/a"):
        return 0, 0

    match = _DAYS_RANGE_RE.search(text)
    if match:
        return int(match.group(1)), int(match.group(2))

    match = _DAYS_SINGLE_RE.search(text)
    if match:
        value = int(match.group(1))
        return value, value

    return 0, 0


def range_midpoint(text: str) -> float:
    low, high = parse_percent_range(text)
    return (low + high) / 2


def horizon_days(time_to_impact: str, default: int = 90) -> int:
    """Midpoint of a time-to-impact range, in whole days."""
    low, high = parse_days_range(time_to_impact)
    if low == 0 and high == 0:
        return default
    return (low + high) // 2


def compare_level(baseline: str, candidate: str) -> DeltaDirection:
    base = _LEVEL_ORDER.get((baseline or "").lower(), 0)
    cand = _LEVEL_ORDER.get((candidate or "").lower(), 0)
    if cand > base:
        return DeltaDirection.UP
    if cand < base:
        return DeltaDirection.DOWN
    return DeltaDirection.SAME


# ── Delta ──────────────────────────────────────────────────────────────


def compute_scenario_delta(baseline: ScenarioItem, candidate: ScenarioItem) -> DeltaValues:
    """
    Candidate minus baseline for every metric.

    Raises ValidationError if ``baseline`` is not the designated baseline.
    """
    if not baseline.is_baseline:
        raise ValidationError(
            f"Deltas are computed against the baseline scenario, "
            f"got '{baseline.scenario_id}'",
            field="baseline",
        )

    base_rev = parse_percent_range(baseline.metrics.revenue_impact_range)
    cand_rev = parse_percent_range(candidate.metrics.revenue_impact_range)
    base_churn = parse_percent_range(baseline.metrics.churn_impact_range)
    cand_churn = parse_percent_range(candidate.metrics.churn_impact_range)
    base_time = parse_days_range(baseline.metrics.time_to_impact)
    cand_time = parse_days_range(candidate.metrics.time_to_impact)

    return DeltaValues(
        revenue_impact_pct=DeltaRange(
            min=cand_rev[0] - base_rev[0],
            max=cand_rev[1] - base_rev[1],
        ),
        churn_impact_pp=DeltaRange(
            min=cand_churn[0] - base_churn[0],
            max=cand_churn[1] - base_churn[1],
        ),
        time_to_impact_days=DeltaRange(
            min=float(cand_time[0] - base_time[0]),
            max=float(cand_time[1] - base_time[1]),
        ),
        risk_delta=compare_level(baseline.metrics.risk_label, candidate.metrics.risk_label),
        effort_delta=compare_level(
            baseline.metrics.execution_effort, candidate.metrics.execution_effort
        ),
    )
