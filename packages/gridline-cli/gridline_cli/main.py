"""Main CLI entry point using Typer."""

import typer
from gridline_core.config import get_settings
from gridline_core.logging_setup import configure_logging

from gridline_cli.commands import db, enrich, fetch, status

app = typer.Typer(
    name="gridline",
    help="Gridline - NFL odds and stats reconciliation pipeline",
    add_completion=False,
)

# Add command groups
app.add_typer(fetch.app, name="fetch", help="Fetch odds data")
app.add_typer(enrich.app, name="enrich", help="Enrich games from the stats provider")
app.add_typer(db.app, name="db", help="Database management")
app.command("status", help="Row counts and schedule overview")(status.show_status)


@app.callback()
def callback():
    """
    Gridline

    Ingests NFL odds into a local store and enriches games with stats-provider detail.
    """
    configure_logging(get_settings())


if __name__ == "__main__":
    app()
