"""
Test fixtures for RevCast.

Provides:
- Async DB session fixture (SQLite in-memory, one database per test)
- Services wired to a deterministic clock
"""

from typing import AsyncGenerator

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import revcast.db.models  # noqa: F401  register all tables
from revcast.db.engine import Base
from revcast.decisions.service import DecisionService
from revcast.decisions.status import StatusTransitionPolicy
from revcast.learning.service import LearningService
from revcast.outcomes.tracker import OutcomeTracker
from revcast.scenarios.service import ScenarioService
from tests.factories import FakeClock

# In-memory SQLite for fast, isolated tests
TEST_DB_URL = "sqlite+aiosqlite:///:memory:"


@pytest_asyncio.fixture
async def engine():
    """Create a test database engine with all tables."""
    eng = create_async_engine(TEST_DB_URL, echo=False, poolclass=StaticPool)
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest_asyncio.fixture
async def session_factory(engine):
    """Create a session factory bound to the test engine."""
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Provide a clean DB session per test."""
    async with session_factory() as session:
        yield session
        await session.rollback()


# ── Services ─────────────────────────────────────────────────────────────


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def decision_service(clock) -> DecisionService:
    return DecisionService(transitions=StatusTransitionPolicy(), clock=clock)


@pytest.fixture
def scenario_service(decision_service) -> ScenarioService:
    return ScenarioService(decisions=decision_service)


@pytest.fixture
def outcome_tracker(decision_service) -> OutcomeTracker:
    return OutcomeTracker(decisions=decision_service)


@pytest.fixture
def learning_service(clock) -> LearningService:
    return LearningService(clock=clock)
