"""
Core foundation layer for the gridline pipelines.

Provides models, database connection, configuration and provider payload types.
"""

from gridline_core.api_models import (
    EventOddsResponse,
    EventsResponse,
    OddsEvent,
    OddsResponse,
    StatsResponse,
    parse_odds_event,
)
from gridline_core.config import Settings, get_settings
from gridline_core.database import engine, get_session
from gridline_core.exceptions import (
    ConfigurationError,
    GridlineError,
    ProviderError,
    RateLimitExceeded,
    TeamNotFoundError,
)
from gridline_core.models import (
    BettingLine,
    Event,
    Game,
    GameStatus,
    InjuryStatus,
    Odds,
    PlayerInjury,
    Team,
)

__all__ = [
    # Models
    "Event",
    "Game",
    "GameStatus",
    "Team",
    "Odds",
    "BettingLine",
    "PlayerInjury",
    "InjuryStatus",
    # Database
    "engine",
    "get_session",
    # Config
    "Settings",
    "get_settings",
    # Errors
    "GridlineError",
    "ConfigurationError",
    "ProviderError",
    "RateLimitExceeded",
    "TeamNotFoundError",
    # API Models
    "OddsEvent",
    "EventsResponse",
    "OddsResponse",
    "EventOddsResponse",
    "StatsResponse",
    "parse_odds_event",
]
