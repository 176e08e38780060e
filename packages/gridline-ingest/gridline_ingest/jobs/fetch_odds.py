"""
Fetch odds job - persist odds for the current week (or all upcoming events).

This job:
1. Fails fast when ODDS_API_KEY is missing
2. Loads the week's events (database first, provider event list otherwise)
3. Fetches odds per event and upserts events, games, betting lines and outcomes
4. Logs a per-event line and a final request-count summary
"""

import asyncio
from enum import Enum

import structlog
import typer
from gridline_core.config import Settings, get_settings, require_api_key
from gridline_core.database import async_session_maker, close_db, init_db
from gridline_core.exceptions import ConfigurationError
from gridline_core.logging_setup import configure_logging

from gridline_ingest.ingestion import OddsIngestionResult, OddsIngestionService
from gridline_ingest.odds_fetcher import OddsAPIClient

logger = structlog.get_logger()


class FetchMode(str, Enum):
    WEEK = "week"
    CURRENT = "current"


def build_client(settings: Settings) -> OddsAPIClient:
    """Construct the odds client; raises ConfigurationError without an API key."""
    api_key = require_api_key(settings.odds_api.key, "ODDS_API_KEY")
    return OddsAPIClient(
        api_key,
        settings.odds_api.base_url,
        requests_per_minute=settings.odds_api.requests_per_minute,
    )


async def main(
    mode: FetchMode = FetchMode.WEEK,
    *,
    refresh_events: bool = False,
    settings: Settings | None = None,
    session_factory=async_session_maker,
    client: OddsAPIClient | None = None,
) -> OddsIngestionResult:
    """
    Main job execution flow.

    Raises:
        ConfigurationError: ODDS_API_KEY is not set
    """
    app_settings = settings or get_settings()
    odds_client = client or build_client(app_settings)

    logger.info("fetch_odds_job_started", mode=mode.value, sport=app_settings.data_collection.sport)

    async with odds_client:
        service = OddsIngestionService(
            odds_client, settings=app_settings, session_factory=session_factory
        )
        if mode is FetchMode.CURRENT:
            result = await service.ingest_current()
        else:
            result = await service.ingest_week(refresh_events=refresh_events)

    logger.info(
        "fetch_odds_job_completed",
        mode=mode.value,
        processed_events=result.processed_events,
        total_events=result.total_events,
        failures=result.error_count,
        quota_remaining=result.quota_remaining,
        **odds_client.stats,
    )
    return result


async def _execute(mode: FetchMode, refresh_events: bool, settings: Settings) -> None:
    client = build_client(settings)
    await init_db()
    try:
        await main(mode, refresh_events=refresh_events, settings=settings, client=client)
    finally:
        await close_db()


def run(mode: FetchMode = FetchMode.WEEK, refresh_events: bool = False) -> int:
    """
    Run the job synchronously and return the process exit code.

    Only setup failures produce a non-zero code; individual event failures are
    logged and do not.
    """
    settings = get_settings()
    configure_logging(settings, json_output=True)

    try:
        asyncio.run(_execute(mode, refresh_events, settings))
    except ConfigurationError as e:
        logger.error("fetch_odds_setup_failed", error=str(e))
        return 1
    return 0


def _cli(
    mode: FetchMode = typer.Option(FetchMode.WEEK, "--mode", "-m", help="week or current"),
    refresh_events: bool = typer.Option(
        False, "--refresh-events", help="Re-list the week's events from the provider"
    ),
) -> None:
    raise typer.Exit(code=run(mode, refresh_events))


def entrypoint() -> None:
    """Console script entry point."""
    typer.run(_cli)


if __name__ == "__main__":
    entrypoint()
