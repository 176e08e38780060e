"""CLI commands for fetching odds data."""

import asyncio

import typer
from gridline_core.config import get_settings
from gridline_core.database import close_db, init_db
from gridline_core.exceptions import ConfigurationError
from gridline_ingest.ingestion import (
    OddsIngestionCallbacks,
    OddsIngestionResult,
    OddsIngestionService,
)
from gridline_ingest.jobs.fetch_odds import build_client
from gridline_ingest.windows import current_week_window
from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn

app = typer.Typer()
console = Console()


@app.command("week")
def fetch_week(
    refresh_events: bool = typer.Option(
        False, "--refresh-events", help="Re-list the week's events from the provider"
    ),
):
    """Fetch odds (props included) for every event in the current week."""
    asyncio.run(_closing(_fetch("week", refresh_events)))


@app.command("current")
def fetch_current():
    """Fetch current odds for all upcoming events in one bulk call."""
    asyncio.run(_closing(_fetch("current", False)))


async def _closing(coro):
    try:
        await coro
    finally:
        await close_db()


def _print_summary(result: OddsIngestionResult, client_stats: dict) -> None:
    console.print("\n[bold green]✓ Fetch completed[/bold green]")
    if result.window is not None:
        console.print(
            f"  Window: {result.window.start:%Y-%m-%d} to {result.window.end:%Y-%m-%d}"
        )
    console.print(f"  Events processed: {result.processed_events} of {result.total_events}")
    console.print(f"  Betting lines written: {result.betting_lines}")
    console.print(f"  Outcome rows written: {result.outcomes}")
    if result.failures:
        console.print(f"  [yellow]Failed events: {result.error_count}[/yellow]")
    if result.quota_remaining is not None:
        console.print(f"  API quota remaining: {result.quota_remaining:,}")
    console.print(f"  Requests issued: {client_stats['request_count']}")


async def _fetch(mode: str, refresh_events: bool):
    """Async implementation of fetch week / current."""
    app_settings = get_settings()

    try:
        client = build_client(app_settings)
    except ConfigurationError as e:
        console.print(f"[bold red]✗ {e}[/bold red]")
        raise typer.Exit(code=1) from e

    await init_db()

    if mode == "week":
        window = current_week_window()
        console.print(
            f"[bold blue]Fetching odds for week of {window.start:%Y-%m-%d}...[/bold blue]"
        )
    else:
        console.print(
            f"[bold blue]Fetching current odds for {app_settings.data_collection.sport}...[/bold blue]"
        )

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
    ) as progress:
        task = progress.add_task(description="Loading events...", total=None)

        def _on_events_loaded(count: int) -> None:
            progress.update(task, description=f"Processing {count} events...")

        def _on_event_failed(event_id: str | None, exc: Exception) -> None:
            identifier = event_id or "unknown"
            console.print(f"[yellow]Warning: Failed to process event {identifier}: {exc}[/yellow]")

        callbacks = OddsIngestionCallbacks(
            on_events_loaded=_on_events_loaded,
            on_event_failed=_on_event_failed,
        )

        try:
            async with client:
                service = OddsIngestionService(client, settings=app_settings)
                if mode == "week":
                    result = await service.ingest_week(
                        refresh_events=refresh_events, callbacks=callbacks
                    )
                else:
                    result = await service.ingest_current(callbacks=callbacks)
        except Exception as e:
            progress.update(task, description="Failed!", completed=True)
            console.print(f"\n[bold red]✗ Fetch failed: {str(e)}[/bold red]")
            raise typer.Exit(code=1) from e

        progress.update(task, description="Complete!", completed=True)

    _print_summary(result, client.stats)
