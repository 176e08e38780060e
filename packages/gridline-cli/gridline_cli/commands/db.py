"""CLI commands for database management."""

import asyncio

import typer
from gridline_core.config import get_settings
from gridline_core.database import close_db, init_db
from rich.console import Console

app = typer.Typer()
console = Console()


@app.command("init")
def db_init():
    """Create all tables (safe to run repeatedly)."""
    asyncio.run(_db_init())


async def _db_init():
    url = get_settings().database.url
    try:
        await init_db()
    finally:
        await close_db()
    console.print(f"[bold green]✓ Database initialized[/bold green] ({url.split('@')[-1]})")
