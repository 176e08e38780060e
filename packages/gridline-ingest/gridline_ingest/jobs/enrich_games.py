"""
Enrich games job - add stats-provider detail to recently stored games.

This job:
1. Fails fast when STATS_API_KEY is missing
2. Loads games inside the rolling enrichment window
3. Resolves teams, appends injuries and updates game details per game
4. Logs a per-game line and a final request-count summary
"""

import asyncio

import structlog
import typer
from gridline_core.config import Settings, get_settings, require_api_key
from gridline_core.database import async_session_maker, close_db, init_db
from gridline_core.exceptions import ConfigurationError
from gridline_core.logging_setup import configure_logging

from gridline_ingest.enrichment import EnrichmentResult, EnrichmentService
from gridline_ingest.stats_fetcher import StatsAPIClient
from gridline_ingest.windows import rolling_window

logger = structlog.get_logger()


def build_client(settings: Settings) -> StatsAPIClient:
    """Construct the stats client; raises ConfigurationError without an API key."""
    api_key = require_api_key(settings.stats_api.key, "STATS_API_KEY")
    return StatsAPIClient(
        api_key,
        settings.stats_api.base_url,
        host=settings.stats_api.host,
        requests_per_minute=settings.stats_api.requests_per_minute,
    )


async def main(
    days: int | None = None,
    *,
    settings: Settings | None = None,
    session_factory=async_session_maker,
    client: StatsAPIClient | None = None,
) -> EnrichmentResult:
    """
    Main job execution flow.

    Args:
        days: Window half-width in days (defaults to ``enrichment.window_days``)

    Raises:
        ConfigurationError: STATS_API_KEY is not set
    """
    app_settings = settings or get_settings()
    stats_client = client or build_client(app_settings)
    window = rolling_window(days=days or app_settings.enrichment.window_days)

    logger.info(
        "enrich_games_job_started",
        window_start=window.start.isoformat(),
        window_end=window.end.isoformat(),
    )

    async with stats_client:
        service = EnrichmentService(
            stats_client, settings=app_settings, session_factory=session_factory
        )
        result = await service.enrich_window(window)

    logger.info(
        "enrich_games_job_completed",
        seen=result.seen,
        enriched=result.enriched,
        skipped=result.skipped,
        failed=result.failed,
        **stats_client.stats,
    )
    return result


async def _execute(days: int | None, settings: Settings) -> None:
    client = build_client(settings)
    await init_db()
    try:
        await main(days, settings=settings, client=client)
    finally:
        await close_db()


def run(days: int | None = None) -> int:
    """Run the job synchronously and return the process exit code."""
    settings = get_settings()
    configure_logging(settings, json_output=True)

    try:
        asyncio.run(_execute(days, settings))
    except ConfigurationError as e:
        logger.error("enrich_games_setup_failed", error=str(e))
        return 1
    return 0


def _cli(
    days: int | None = typer.Option(None, "--days", "-d", help="Window half-width in days"),
) -> None:
    raise typer.Exit(code=run(days))


def entrypoint() -> None:
    """Console script entry point."""
    typer.run(_cli)


if __name__ == "__main__":
    entrypoint()
