"""Configuration management using Pydantic Settings."""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from gridline_core.exceptions import ConfigurationError

NFL_MARKETS: list[str] = [
    "totals",
    "team_totals",
    "spreads",
    "player_rush_yds_q1",
    "player_rush_yds_alternate",
    "player_rush_yds",
    "player_rush_reception_yds_alternate",
    "player_rush_reception_yds",
    "player_receptions_alternate",
    "player_rush_attempts",
    "player_receptions",
    "player_reception_yds_alternate",
    "player_reception_yds",
    "player_pass_yds_alternate",
    "player_pass_yds",
    "player_pass_tds_alternate",
    "player_pass_tds",
    "player_anytime_td",
    "h2h",
    "alternate_totals",
    "alternate_team_totals",
    "alternate_spreads",
]


class OddsAPIConfig(BaseSettings):
    """The Odds API configuration."""

    model_config = SettingsConfigDict(
        env_prefix="ODDS_API_", env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    key: str | None = Field(default=None, description="The Odds API key")
    base_url: str = Field(
        default="https://api.the-odds-api.com/v4", description="Base URL for The Odds API"
    )
    requests_per_minute: int = Field(default=500, description="Client-side request ceiling")


class StatsAPIConfig(BaseSettings):
    """API-American-Football (stats provider) configuration."""

    model_config = SettingsConfigDict(
        env_prefix="STATS_API_", env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    key: str | None = Field(default=None, description="Stats provider API key")
    base_url: str = Field(
        default="https://v1.american-football.api-sports.io",
        description="Base URL for the stats provider",
    )
    host: str = Field(
        default="v1.american-football.api-sports.io", description="Value for x-rapidapi-host"
    )
    requests_per_minute: int = Field(default=100, description="Client-side request ceiling")
    league: str = Field(default="1", description="Stats provider league id (1 = NFL)")
    season: int | None = Field(
        default=None, description="Season override; derived from the current date when unset"
    )


class DatabaseConfig(BaseSettings):
    """Database connection configuration."""

    model_config = SettingsConfigDict(
        env_prefix="DATABASE_", env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    url: str = Field(
        default="sqlite+aiosqlite:///./db/gridline.db", description="Async SQLAlchemy URL"
    )
    pool_size: int = Field(default=5, description="Database connection pool size")


class DataCollectionConfig(BaseSettings):
    """Data collection parameters for the odds pipeline."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    sport: str = Field(default="americanfootball_nfl", description="Odds API sport key")
    bookmakers: list[str] = Field(default=["fanduel"], description="Bookmakers to track")
    markets: list[str] = Field(
        default_factory=lambda: list(NFL_MARKETS), description="Markets to collect"
    )
    regions: list[str] = Field(default=["us"], description="Regions for odds data")


class EnrichmentConfig(BaseSettings):
    """Enrichment pass parameters."""

    model_config = SettingsConfigDict(
        env_prefix="ENRICHMENT_", env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    window_days: int = Field(
        default=7, description="Games within +/- this many days of now are enriched"
    )


class LoggingConfig(BaseSettings):
    """Logging configuration."""

    model_config = SettingsConfigDict(
        env_prefix="LOG_", env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    level: str = Field(default="INFO", description="Logging level")
    file: str = Field(default="logs/gridline.log", description="Log file path")


class Settings(BaseSettings):
    """
    Composed application settings loaded from environment variables.

    Example usage:
        settings = get_settings()
        odds_key = settings.odds_api.key
        db_url = settings.database.url
        bookmakers = settings.data_collection.bookmakers
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    odds_api: OddsAPIConfig = Field(default_factory=OddsAPIConfig)
    stats_api: StatsAPIConfig = Field(default_factory=StatsAPIConfig)
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    data_collection: DataCollectionConfig = Field(default_factory=DataCollectionConfig)
    enrichment: EnrichmentConfig = Field(default_factory=EnrichmentConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


def require_api_key(key: str | None, env_var: str) -> str:
    """Return the key or fail setup before any network call is made."""
    if not key or not key.strip():
        raise ConfigurationError(f"{env_var} environment variable is required")
    return key.strip()


@lru_cache
def get_settings() -> Settings:
    """Return cached application settings instance."""
    return Settings()


def reset_settings_cache() -> None:
    """Clear cached settings; primarily for testing overrides."""
    get_settings.cache_clear()
