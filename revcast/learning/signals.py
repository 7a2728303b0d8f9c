"""
Historical signals — turn stored insights into context for a new verdict.

Each related insight becomes a signal whose relevance depends on how many
of (company stage, primary KPI) it shares with the new decision. Relevance
also sets its weight in the confidence boost.
"""

from typing import Sequence

from revcast.config import settings
from revcast.decisions.schemas import Level
from revcast.learning.schemas import (
    HistoricalSignal,
    LearningContext,
    LearningIndicator,
    LearningInsight,
)

# ── Configuration ─────────────────────────────────────────────────────
BOOST_WEIGHTS: dict[Level, float] = {
    Level.HIGH: 0.15,
    Level.MEDIUM: 0.08,
    Level.LOW: 0.03,
}
LARGE_SAMPLE_SIZE: int = 10
LARGE_SAMPLE_MULTIPLIER: float = 1.5
SUMMARY_MIN_SUCCESS: float = 0.7
SUMMARY_MIN_SAMPLES: int = 5
INDICATOR_MIN_BOOST: float = 0.05
INDICATOR_MIN_SUCCESS: float = 0.65
INDICATOR_MIN_SAMPLES: int = 5
MAX_INDICATORS: int = 3


def matching_fields(insight: LearningInsight, company_stage: str, primary_kpi: str) -> list[str]:
    fields = []
    if company_stage and insight.company_stage == company_stage:
        fields.append("company_stage")
    if primary_kpi and insight.primary_kpi == primary_kpi:
        fields.append("primary_kpi")
    return fields


def relevance_for(match_count: int) -> Level:
    if match_count >= 2:
        return Level.HIGH
    if match_count == 1:
        return Level.MEDIUM
    return Level.LOW


def describe(insight: LearningInsight) -> str:
    label = insight.scenario_type.replace("_", " ").title()
    return (
        f"In similar past decisions, the {label} scenario succeeded "
        f"{insight.success_rate * 100:.0f}% of the time (n={insight.sample_size})"
    )


def build_learning_context(
    insights: Sequence[LearningInsight],
    company_stage: str,
    primary_kpi: str,
    boost_cap: float | None = None,
) -> LearningContext:
    """Signals, capped confidence boost and a summary of strong patterns."""
    boost_cap = settings.learning_boost_cap if boost_cap is None else boost_cap

    signals = []
    boost = 0.0
    summary_parts = []
    for insight in insights:
        fields = matching_fields(insight, company_stage, primary_kpi)
        relevance = relevance_for(len(fields))
        signals.append(HistoricalSignal(
            description=describe(insight),
            scenario_type=insight.scenario_type,
            sample_size=insight.sample_size,
            success_rate=insight.success_rate,
            average_delta=insight.average_delta,
            relevance=relevance,
            matching_fields=fields,
        ))

        weight = BOOST_WEIGHTS[relevance]
        if insight.sample_size >= LARGE_SAMPLE_SIZE:
            weight *= LARGE_SAMPLE_MULTIPLIER
        boost += weight

        if insight.success_rate >= SUMMARY_MIN_SUCCESS and insight.sample_size >= SUMMARY_MIN_SAMPLES:
            summary_parts.append(
                f"{insight.success_rate * 100:.0f}% success with "
                f"{insight.scenario_type} path (n={insight.sample_size})"
            )

    return LearningContext(
        historical_signals=signals,
        confidence_boost=min(boost, boost_cap),
        learning_summary=(
            "Historical patterns: " + "; ".join(summary_parts) if summary_parts else ""
        ),
    )


def learning_indicators(context: LearningContext) -> list[LearningIndicator]:
    """At most three display badges derived from a learning context."""
    indicators = []
    if context.confidence_boost >= INDICATOR_MIN_BOOST:
        indicators.append(LearningIndicator(
            type="confidence_boost",
            title="Confidence boosted by past outcomes",
            description=f"+{context.confidence_boost * 100:.0f}% confidence from historical patterns",
            relevance=Level.HIGH,
        ))
    for signal in context.historical_signals:
        if (
            signal.success_rate >= INDICATOR_MIN_SUCCESS
            and signal.sample_size >= INDICATOR_MIN_SAMPLES
            and signal.relevance != Level.LOW
        ):
            indicators.append(LearningIndicator(
                type="historical_success",
                title="Historically successful in similar cases",
                description=signal.description,
                sample_size=signal.sample_size,
                relevance=signal.relevance,
            ))
    return indicators[:MAX_INDICATORS]
