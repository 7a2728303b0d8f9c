"""
RevCast Configuration.

Pydantic Settings v2 — loads from .env, environment variables.
"""

from typing import Dict, List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ── Application ──────────────────────────────────────────────────────
    app_name: str = "RevCast"
    app_version: str = "1.0.0"
    environment: str = Field(default="development", alias="ENVIRONMENT")
    debug: bool = Field(default=False, alias="DEBUG")

    # ── Database ─────────────────────────────────────────────────────────
    database_url: str = Field(
        default="sqlite+aiosqlite:///./revcast.db",
        alias="DATABASE_URL",
    )
    db_pool_size: int = Field(default=10, alias="DB_POOL_SIZE")
    db_max_overflow: int = Field(default=20, alias="DB_MAX_OVERFLOW")
    db_pool_recycle: int = Field(default=3600, alias="DB_POOL_RECYCLE")

    # ── Decisions ────────────────────────────────────────────────────────
    # Minimum confidence for an inferred context value to be used
    inferred_confidence_floor: float = Field(default=0.6, alias="INFERRED_CONFIDENCE_FLOOR")
    # {"from_status": ["to_status", ...]}; unset means any-to-any
    status_transition_whitelist: Optional[Dict[str, List[str]]] = Field(
        default=None,
        alias="STATUS_TRANSITION_WHITELIST",
    )

    # ── Outcomes ─────────────────────────────────────────────────────────
    kpi_min_count: int = Field(default=3, alias="KPI_MIN_COUNT")
    kpi_max_count: int = Field(default=6, alias="KPI_MAX_COUNT")
    default_horizon_days: int = Field(default=90, alias="DEFAULT_HORIZON_DAYS")

    # ── Learning ─────────────────────────────────────────────────────────
    learning_refresh_minutes: int = Field(default=360, alias="LEARNING_REFRESH_MINUTES")
    learning_min_sample_size: int = Field(default=3, alias="LEARNING_MIN_SAMPLE_SIZE")
    learning_max_signals: int = Field(default=10, alias="LEARNING_MAX_SIGNALS")
    learning_boost_cap: float = Field(default=0.25, alias="LEARNING_BOOST_CAP")

    # ── Operational ────────────────────────────────────────────────────────
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_format: str = Field(default="json", alias="LOG_FORMAT")

    @property
    def async_database_url(self) -> str:
        """Ensure the database URL uses an async driver."""
        url = self.database_url
        if url.startswith("postgresql://"):
            url = url.replace("postgresql://", "postgresql+asyncpg://", 1)
        if url.startswith("sqlite://"):
            url = url.replace("sqlite://", "sqlite+aiosqlite://", 1)
        return url


settings = Settings()
