"""CLI commands for system status."""

import asyncio

import typer
from gridline_core.database import async_session_maker, close_db
from gridline_ingest.storage.readers import GameReader
from gridline_ingest.windows import current_week_window
from rich.console import Console
from rich.table import Table

console = Console()


def show_status():
    """Show row counts per table and this week's schedule size."""
    asyncio.run(_show_status())


async def _show_status():
    """Async implementation of show status."""
    console.print("\n[bold blue]Gridline Pipeline Status[/bold blue]\n")

    window = current_week_window()
    try:
        async with async_session_maker() as session:
            reader = GameReader(session)
            counts = await reader.table_counts()
            week_events = await reader.events_in_window(window)
            week_games = await reader.games_in_window(window)
    except Exception as e:
        console.print(f"[bold red]✗ Could not read database: {e}[/bold red]")
        console.print("Run [cyan]gridline db init[/cyan] first if the schema is missing.")
        raise typer.Exit(code=1) from e
    finally:
        await close_db()

    table = Table(show_header=True)
    table.add_column("Table", style="cyan")
    table.add_column("Rows", style="white", justify="right")
    for name, count in counts.items():
        table.add_row(name, f"{count:,}")
    console.print(table)

    console.print(
        f"\nWeek of {window.start:%Y-%m-%d}: "
        f"{len(week_events)} events, {len(week_games)} games"
    )
