"""Pytest configuration and fixtures."""

import os
import tempfile
from pathlib import Path

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlmodel import SQLModel

# Set required environment variables for testing BEFORE any imports of Settings
_TEST_ROOT = Path(tempfile.gettempdir()) / "gridline-tests"
os.environ.setdefault("ODDS_API_KEY", "test_odds_key")
os.environ.setdefault("STATS_API_KEY", "test_stats_key")
os.environ.setdefault("DATABASE_URL", f"sqlite+aiosqlite:///{_TEST_ROOT / 'gridline.db'}")
os.environ.setdefault("LOG_FILE", str(_TEST_ROOT / "logs" / "gridline.log"))

import gridline_core.models  # noqa: E402,F401  register table metadata

from tests.test_helpers import load_fixture  # noqa: E402

# Test database URL - a per-test SQLite file unless overridden (e.g. PostgreSQL)
TEST_DATABASE_URL = os.getenv("TEST_DATABASE_URL")


@pytest.fixture
def event_odds_payload():
    """Single-event odds payload: fanduel with core markets and a player prop."""
    return load_fixture("event_odds_response.json")


@pytest.fixture
def events_payload():
    """Event list payload for one NFL week."""
    return load_fixture("events_response.json")


@pytest.fixture
def player_statistics_payload():
    """Stats provider player-statistics envelope."""
    return load_fixture("stats_player_statistics.json")


@pytest.fixture
def stats_games_payload():
    """Stats provider games envelope."""
    return load_fixture("stats_games.json")


@pytest.fixture
def stats_injuries_payload():
    """Stats provider injuries envelope."""
    return load_fixture("stats_injuries.json")


@pytest.fixture
async def test_engine(tmp_path):
    """Create test database engine."""
    url = TEST_DATABASE_URL or f"sqlite+aiosqlite:///{tmp_path / 'test.db'}"
    engine = create_async_engine(url, echo=False)

    # Create all tables
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

    yield engine

    # Cleanup
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
async def test_session(test_engine):
    """Create test database session."""
    session_maker = async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)

    async with session_maker() as session:
        yield session


@pytest.fixture
async def mock_session_factory(test_engine):
    """Create a session factory for testing that uses the test engine."""
    return async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
def mock_settings(tmp_path):
    """Mock settings for testing."""
    from gridline_core.config import (
        DatabaseConfig,
        DataCollectionConfig,
        EnrichmentConfig,
        LoggingConfig,
        OddsAPIConfig,
        Settings,
        StatsAPIConfig,
    )

    return Settings(
        odds_api=OddsAPIConfig(key="test_odds_key", base_url="https://odds.test/v4"),
        stats_api=StatsAPIConfig(
            key="test_stats_key", base_url="https://stats.test", league="1", season=2024
        ),
        database=DatabaseConfig(url=f"sqlite+aiosqlite:///{tmp_path / 'settings.db'}"),
        data_collection=DataCollectionConfig(
            sport="americanfootball_nfl",
            bookmakers=["fanduel"],
            markets=["h2h", "spreads", "totals", "player_pass_yds"],
            regions=["us"],
        ),
        enrichment=EnrichmentConfig(window_days=7),
        logging=LoggingConfig(level="INFO", file=str(tmp_path / "logs" / "test.log")),
    )
