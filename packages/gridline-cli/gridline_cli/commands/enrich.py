"""CLI commands for the stats enrichment pass."""

import asyncio

import typer
from gridline_core.config import get_settings
from gridline_core.database import close_db, init_db
from gridline_core.exceptions import ConfigurationError
from gridline_ingest.enrichment import EnrichmentCallbacks, EnrichmentService
from gridline_ingest.jobs.enrich_games import build_client
from gridline_ingest.windows import rolling_window
from rich.console import Console
from rich.progress import BarColumn, Progress, SpinnerColumn, TextColumn

app = typer.Typer()
console = Console()


@app.command("run")
def enrich_run(
    days: int = typer.Option(
        None, "--days", "-d", help="Enrich games within this many days of now"
    ),
):
    """Enrich stored games with teams, injuries, scores and venue detail."""
    asyncio.run(_closing(_enrich_run(days)))


async def _closing(coro):
    try:
        await coro
    finally:
        await close_db()


async def _enrich_run(days: int | None):
    """Async implementation of enrich run."""
    app_settings = get_settings()

    try:
        client = build_client(app_settings)
    except ConfigurationError as e:
        console.print(f"[bold red]✗ {e}[/bold red]")
        raise typer.Exit(code=1) from e

    await init_db()

    window = rolling_window(days=days or app_settings.enrichment.window_days)
    console.print(
        f"[bold blue]Enriching games from {window.start:%Y-%m-%d} "
        f"to {window.end:%Y-%m-%d}...[/bold blue]"
    )

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        console=console,
    ) as progress:
        task = progress.add_task(description="Loading games...", total=None)

        callbacks = EnrichmentCallbacks(
            on_games_loaded=lambda count: progress.update(
                task, total=count, description=f"Enriching {count} games..."
            ),
            on_game_done=lambda _game_id: progress.advance(task),
        )

        async with client:
            service = EnrichmentService(client, settings=app_settings)
            result = await service.enrich_window(window, callbacks=callbacks)

    console.print("\n[bold green]✓ Enrichment completed[/bold green]")
    console.print(f"  Games seen: {result.seen}")
    console.print(f"  Enriched: {result.enriched}")
    console.print(f"  Skipped (team not found): {result.skipped}")
    if result.failed:
        console.print(f"  [yellow]Failed: {result.failed}[/yellow]")
    console.print(f"  Injury rows appended: {result.injuries_appended}")
    console.print(f"  Requests issued: {result.request_count}")
