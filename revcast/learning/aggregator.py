"""
Learning Aggregator — cross-decision outcome statistics.

Groups finished outcomes by (company stage, primary KPI, chosen scenario)
and reports how often each combination achieved its target. Pure and
deterministic: the same observations in any order give the same insights.
"""

import math
from collections import defaultdict
from typing import Iterable

from revcast.decisions.schemas import Level
from revcast.learning.schemas import LearningInsight, LearningKey, OutcomeObservation
from revcast.outcomes.schemas import OutcomeStatus, TERMINAL_OUTCOME_STATUSES

# ── Configuration ─────────────────────────────────────────────────────
MEDIUM_CONFIDENCE_MIN_SAMPLES: int = 5     # 5..15 → medium
HIGH_CONFIDENCE_MIN_SAMPLES: int = 16      # >15 → high


def confidence_for_sample(sample_size: int) -> Level:
    if sample_size >= HIGH_CONFIDENCE_MIN_SAMPLES:
        return Level.HIGH
    if sample_size >= MEDIUM_CONFIDENCE_MIN_SAMPLES:
        return Level.MEDIUM
    return Level.LOW


def compute_learning_aggregates(
    observations: Iterable[OutcomeObservation],
) -> list[LearningInsight]:
    """
    One insight per key, sorted by key.

    Non-terminal observations are ignored. Sums go through math.fsum so the
    average is exact regardless of input order.
    """
    groups: dict[LearningKey, list[OutcomeObservation]] = defaultdict(list)
    for obs in observations:
        if obs.status not in TERMINAL_OUTCOME_STATUSES:
            continue
        groups[obs.key].append(obs)

    insights = []
    for key in sorted(groups):
        members = groups[key]
        count = len(members)
        achieved = sum(1 for m in members if m.status == OutcomeStatus.ACHIEVED)
        missed = sum(1 for m in members if m.status == OutcomeStatus.MISSED)
        timestamps = [m.recorded_at for m in members]
        insights.append(LearningInsight(
            company_stage=key.company_stage,
            primary_kpi=key.primary_kpi,
            scenario_type=key.scenario_type,
            sample_size=count,
            achieved_count=achieved,
            missed_count=missed,
            success_rate=achieved / count,
            miss_rate=missed / count,
            average_delta=math.fsum(m.delta_percent for m in members) / count,
            confidence=confidence_for_sample(count),
            oldest_outcome_at=min(timestamps),
            newest_outcome_at=max(timestamps),
        ))
    return insights
