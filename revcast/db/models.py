"""
RevCast SQLAlchemy Models.

Decisions, scenario sets and measurable outcomes are stored as whole pydantic
documents in a JSON column, with the fields we filter on copied into real
columns. ``revision`` is the optimistic-concurrency token: every write is a
compare-and-swap on it.
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import (
    Boolean,
    DateTime,
    Float,
    Index,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from revcast.db.compat import JSONType
from revcast.db.engine import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ──────────────────────────────────────────────────────────────────────────────
# Decisions
# ──────────────────────────────────────────────────────────────────────────────


class DecisionRecord(Base):
    __tablename__ = "rc_decisions"
    __table_args__ = (
        Index("ix_decisions_user_id", "user_id"),
        Index("ix_decisions_created_at", "created_at"),
    )

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    user_id: Mapped[str] = mapped_column(String(128), nullable=False)
    workspace_id: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    status: Mapped[str] = mapped_column(String(32), nullable=False)
    chosen_scenario_id: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    revision: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    is_deleted: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    document: Mapped[dict] = mapped_column(JSONType(), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)


# ──────────────────────────────────────────────────────────────────────────────
# Scenario sets
# ──────────────────────────────────────────────────────────────────────────────


class ScenarioSetRecord(Base):
    __tablename__ = "rc_scenario_sets"
    __table_args__ = (
        Index("ix_scenario_sets_decision_id", "decision_id"),
    )

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    decision_id: Mapped[str] = mapped_column(String(64), nullable=False)
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    revision: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    is_deleted: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    document: Mapped[dict] = mapped_column(JSONType(), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)


# ──────────────────────────────────────────────────────────────────────────────
# Measurable outcomes
# ──────────────────────────────────────────────────────────────────────────────


class MeasurableOutcomeRecord(Base):
    __tablename__ = "rc_measurable_outcomes"
    __table_args__ = (
        Index("ix_measurable_outcomes_status", "status"),
    )

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    decision_id: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    user_id: Mapped[str] = mapped_column(String(128), nullable=False)
    status: Mapped[str] = mapped_column(String(32), nullable=False)
    revision: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    is_deleted: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    document: Mapped[dict] = mapped_column(JSONType(), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)


# ──────────────────────────────────────────────────────────────────────────────
# Learning insights
# ──────────────────────────────────────────────────────────────────────────────


class LearningInsightRecord(Base):
    """One row per (company_stage, primary_kpi, scenario_type); rebuilt in batch."""

    __tablename__ = "rc_learning_insights"
    __table_args__ = (
        UniqueConstraint(
            "company_stage", "primary_kpi", "scenario_type",
            name="uq_learning_insights_key",
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    company_stage: Mapped[str] = mapped_column(String(32), nullable=False)
    primary_kpi: Mapped[str] = mapped_column(String(32), nullable=False)
    scenario_type: Mapped[str] = mapped_column(String(32), nullable=False)
    sample_size: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    achieved_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    missed_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    success_rate: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    miss_rate: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    average_delta: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    confidence: Mapped[str] = mapped_column(String(16), nullable=False)
    oldest_outcome_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    newest_outcome_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    computed_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
