"""SQLModel database schema definitions."""

from datetime import datetime
from enum import Enum

from sqlalchemy import Column, DateTime, Index, UniqueConstraint
from sqlalchemy.types import TypeDecorator
from sqlmodel import Field, SQLModel

from gridline_core.time import ensure_utc, utc_now


class UTCDateTime(TypeDecorator):
    """Timezone-aware DateTime that always binds and returns UTC.

    SQLite drops offsets on storage, so values read back are re-tagged as UTC.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        return ensure_utc(value)

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return ensure_utc(value)


class GameStatus(str, Enum):
    """Internal game status vocabulary."""

    NOT_STARTED = "NS"
    IN_PROGRESS = "IP"
    FINAL = "FT"
    POSTPONED = "PPD"
    CANCELLED = "CANC"


class InjuryStatus(str, Enum):
    """Internal injury status vocabulary."""

    OUT = "OUT"
    DOUBTFUL = "DOUBTFUL"
    QUESTIONABLE = "QUESTIONABLE"
    PROBABLE = "PROBABLE"


class Event(SQLModel, table=True):
    """Contest as known to the odds provider."""

    __tablename__ = "events"

    id: str = Field(primary_key=True, description="Odds provider event ID")
    sport_key: str = Field(index=True, description="Odds provider sport key")

    commence_time: datetime = Field(
        sa_column=Column(UTCDateTime(), index=True), description="Scheduled start time"
    )
    home_team: str = Field(index=True, description="Home team name")
    away_team: str = Field(index=True, description="Away team name")

    created_at: datetime = Field(
        sa_column=Column(UTCDateTime()),
        default_factory=utc_now,
        description="Record creation time",
    )
    updated_at: datetime = Field(
        sa_column=Column(UTCDateTime()),
        default_factory=utc_now,
        description="Record last update time",
    )


class Game(SQLModel, table=True):
    """Contest in the system's own namespace, matched to events by name and date."""

    __tablename__ = "games"

    id: int | None = Field(default=None, primary_key=True)
    home_team: str = Field(index=True, description="Home team name")
    away_team: str = Field(index=True, description="Away team name")
    game_date: datetime = Field(
        sa_column=Column(UTCDateTime(), index=True), description="Scheduled start time"
    )
    season: int = Field(description="Season year")
    week: int | None = Field(default=None, description="Season week from the stats provider")
    status: str = Field(
        default=GameStatus.NOT_STARTED.value,
        description="NS, IP, FT, PPD, CANC or an unmapped provider code",
    )

    home_score: int | None = Field(default=None, description="Home team score")
    away_score: int | None = Field(default=None, description="Away team score")
    venue: str | None = Field(default=None, description="Venue name")
    surface_type: str | None = Field(default=None, description="Playing surface: grass, turf")
    weather_conditions: str | None = Field(default=None, description="Weather summary")

    created_at: datetime = Field(
        sa_column=Column(UTCDateTime()),
        default_factory=utc_now,
        description="Record creation time",
    )
    updated_at: datetime = Field(
        sa_column=Column(UTCDateTime()),
        default_factory=utc_now,
        description="Record last update time",
    )

    __table_args__ = (Index("ix_game_home_away_date", "home_team", "away_team", "game_date"),)


class Team(SQLModel, table=True):
    """Franchise as named by the stats provider."""

    __tablename__ = "teams"

    id: int | None = Field(default=None, primary_key=True)
    name: str = Field(unique=True, description="Full team name")
    city: str | None = Field(default=None, description="Home city")
    abbreviation: str | None = Field(default=None, description="Short code, e.g. KC")
    conference: str | None = Field(default=None, description="AFC / NFC")
    division: str | None = Field(default=None, description="North, South, East, West")
    primary_color: str | None = Field(default=None)
    secondary_color: str | None = Field(default=None)

    created_at: datetime = Field(
        sa_column=Column(UTCDateTime()),
        default_factory=utc_now,
        description="Record creation time",
    )
    updated_at: datetime = Field(
        sa_column=Column(UTCDateTime()),
        default_factory=utc_now,
        description="Record last update time",
    )


class Odds(SQLModel, table=True):
    """One priced outcome of one market for one event."""

    __tablename__ = "odds"

    id: int | None = Field(default=None, primary_key=True)
    event_id: str = Field(foreign_key="events.id", index=True, description="Event reference")

    market_key: str = Field(index=True, description="Market: h2h, spreads, player_pass_yds, ...")
    outcome_name: str = Field(description="Team name, Over/Under, or qualified prop selection")
    description: str | None = Field(default=None, description="Prop participant, if any")
    price: int = Field(description="American odds (e.g., -110, +150)")
    point: float | None = Field(default=None, description="Line value (e.g., -2.5, 47.5)")

    bookmaker_key: str | None = Field(default=None, description="Bookmaker that priced it")
    last_update: datetime | None = Field(
        sa_column=Column(UTCDateTime()), default=None, description="Bookmaker's last update time"
    )

    created_at: datetime = Field(
        sa_column=Column(UTCDateTime()),
        default_factory=utc_now,
        description="Record creation time",
    )
    updated_at: datetime = Field(
        sa_column=Column(UTCDateTime()),
        default_factory=utc_now,
        description="Record last update time",
    )

    __table_args__ = (
        UniqueConstraint(
            "event_id",
            "market_key",
            "outcome_name",
            "point",
            name="uq_odds_event_market_outcome_point",
        ),
    )


class BettingLine(SQLModel, table=True):
    """Denormalized spread / moneyline / total summary per game and bookmaker."""

    __tablename__ = "betting_lines"

    id: int | None = Field(default=None, primary_key=True)
    game_id: int = Field(foreign_key="games.id", index=True, description="Game reference")
    bookmaker: str = Field(default="fanduel", description="Bookmaker key")

    # Spread betting
    spread_home: float | None = Field(default=None, description="e.g., -3.5 for home team")
    spread_away: float | None = Field(default=None, description="e.g., +3.5 for away team")
    spread_home_odds: int | None = Field(default=None)
    spread_away_odds: int | None = Field(default=None)

    # Moneyline betting
    moneyline_home: int | None = Field(default=None)
    moneyline_away: int | None = Field(default=None)

    # Totals (Over/Under) betting
    total_points: float | None = Field(default=None, description="e.g., 47.5")
    over_odds: int | None = Field(default=None)
    under_odds: int | None = Field(default=None)

    last_updated: datetime = Field(
        sa_column=Column(UTCDateTime()), description="Bookmaker's last update time"
    )
    created_at: datetime = Field(
        sa_column=Column(UTCDateTime()),
        default_factory=utc_now,
        description="Record creation time",
    )
    updated_at: datetime = Field(
        sa_column=Column(UTCDateTime()),
        default_factory=utc_now,
        description="Record last update time",
    )

    __table_args__ = (UniqueConstraint("game_id", "bookmaker", name="uq_betting_line_game_book"),)


class PlayerInjury(SQLModel, table=True):
    """Reported injury status; append-only time series."""

    __tablename__ = "player_injuries"

    id: int | None = Field(default=None, primary_key=True)
    player_name: str = Field(description="Player name")
    team: str = Field(index=True, description="Team name as reported by the stats provider")
    position: str | None = Field(default=None)
    injury_status: InjuryStatus = Field(description="Mapped injury status")
    body_part: str | None = Field(default=None)
    description: str | None = Field(default=None, description="Provider injury detail")
    game_id: int | None = Field(
        default=None, foreign_key="games.id", index=True, description="Game reference"
    )
    reported_at: datetime = Field(
        sa_column=Column(UTCDateTime(), index=True), description="Provider report time"
    )
    created_at: datetime = Field(
        sa_column=Column(UTCDateTime()),
        default_factory=utc_now,
        description="Record creation time",
    )
    updated_at: datetime = Field(
        sa_column=Column(UTCDateTime()),
        default_factory=utc_now,
        description="Record last update time",
    )
