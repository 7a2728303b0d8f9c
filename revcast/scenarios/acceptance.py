"""
Scenario set acceptance.

Inference output is normalised first (labels lower-cased, fixed-length
lists padded or trimmed), then checked:

1. every scenario tag is one of the four known ones   → ValidationError
2. the four tags appear exactly once each             → ConflictError
3. exactly one baseline, it is ``balanced``, and its
   narrative deltas all read "Baseline"               → ConflictError

Accepted sets carry machine-computed deltas against the baseline.
"""

from collections import Counter
from typing import Sequence

from revcast.errors import ConflictError, ValidationError
from revcast.scenarios.delta import compute_scenario_delta
from revcast.scenarios.schemas import (
    BASELINE_SCENARIO_ID,
    BASELINE_SENTINEL,
    SUCCESS_METRIC_COUNT,
    TRADEOFF_COUNT,
    ScenarioID,
    ScenarioItem,
)

_KNOWN_IDS = {s.value for s in ScenarioID}


def _fit(items: list[str], size: int) -> list[str]:
    items = list(items[:size])
    while len(items) < size:
        items.append("")
    return items


def normalize_scenario(item: ScenarioItem) -> ScenarioItem:
    item = item.model_copy(deep=True)
    item.scenario_id = item.scenario_id.strip().lower()
    item.metrics.risk_label = item.metrics.risk_label.strip().lower()
    item.metrics.execution_effort = item.metrics.execution_effort.strip().lower()
    item.tradeoffs = _fit(item.tradeoffs, TRADEOFF_COUNT)
    item.details.success_metrics = _fit(item.details.success_metrics, SUCCESS_METRIC_COUNT)
    return item


def validate_scenarios(scenarios: Sequence[ScenarioItem]) -> None:
    unknown = [s.scenario_id for s in scenarios if s.scenario_id not in _KNOWN_IDS]
    if unknown:
        raise ValidationError(
            f"Unknown scenario id: '{unknown[0]}'",
            field="scenario_id",
            details={"allowed": sorted(_KNOWN_IDS)},
        )

    counts = Counter(s.scenario_id for s in scenarios)
    if len(scenarios) != len(_KNOWN_IDS) or set(counts) != _KNOWN_IDS:
        raise ConflictError(
            "A scenario set must contain each of the four scenarios exactly once",
            details={"received": dict(counts)},
        )

    baselines = [s for s in scenarios if s.is_baseline]
    if len(baselines) != 1:
        raise ConflictError(
            f"A scenario set must have exactly one baseline, found {len(baselines)}",
            details={"baselines": [s.scenario_id for s in baselines]},
        )
    baseline = baselines[0]
    if baseline.scenario_id != BASELINE_SCENARIO_ID:
        raise ConflictError(
            f"The baseline must be '{BASELINE_SCENARIO_ID}', not '{baseline.scenario_id}'",
            details={"baseline": baseline.scenario_id},
        )
    sentinel = BASELINE_SENTINEL.lower()
    if any(d.strip().lower() != sentinel for d in baseline.deltas.as_tuple()):
        raise ConflictError(
            f"Baseline deltas must all read '{BASELINE_SENTINEL}'",
            details={"deltas": baseline.deltas.model_dump()},
        )


def prepare_scenarios(scenarios: Sequence[ScenarioItem]) -> list[ScenarioItem]:
    """Normalise, validate, and attach baseline-relative deltas."""
    normalized = [normalize_scenario(s) for s in scenarios]
    validate_scenarios(normalized)

    baseline = next(s for s in normalized if s.is_baseline)
    for item in normalized:
        item.computed_deltas = (
            None if item.is_baseline else compute_scenario_delta(baseline, item)
        )
    return normalized
