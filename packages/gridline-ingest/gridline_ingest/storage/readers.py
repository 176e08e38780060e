"""Database read operations used by the pipelines and the CLI."""

from __future__ import annotations

from gridline_core.models import BettingLine, Event, Game, Odds, PlayerInjury, Team
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import SQLModel

from gridline_ingest.windows import TimeWindow

COUNTED_TABLES: tuple[type[SQLModel], ...] = (Event, Game, Team, Odds, BettingLine, PlayerInjury)


class GameReader:
    """Handles read queries over events and games."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def events_in_window(self, window: TimeWindow, sport_key: str | None = None) -> list[Event]:
        """Stored events commencing inside the window, earliest first."""
        query = select(Event).where(
            Event.commence_time >= window.start,
            Event.commence_time < window.end,
        )
        if sport_key is not None:
            query = query.where(Event.sport_key == sport_key)

        result = await self.session.execute(query.order_by(Event.commence_time, Event.id))
        return list(result.scalars().all())

    async def games_in_window(self, window: TimeWindow) -> list[Game]:
        """Stored games dated inside the window, earliest first."""
        query = (
            select(Game)
            .where(Game.game_date >= window.start, Game.game_date < window.end)
            .order_by(Game.game_date, Game.id)
        )
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def table_counts(self) -> dict[str, int]:
        """Row count per pipeline table."""
        counts: dict[str, int] = {}
        for model in COUNTED_TABLES:
            result = await self.session.execute(select(func.count()).select_from(model))
            counts[model.__tablename__] = result.scalar_one()
        return counts
