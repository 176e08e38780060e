"""Database write operations for odds data."""

from __future__ import annotations

import structlog
from gridline_core.api_models import OddsEvent
from gridline_core.models import BettingLine, Event, Odds
from gridline_core.time import utc_now
from sqlalchemy.ext.asyncio import AsyncSession

from gridline_ingest.markets import MarketDecomposition, OutcomeRow
from gridline_ingest.storage.upsert import UpsertEngine

logger = structlog.get_logger()


class OddsWriter:
    """Handles all odds-side writes: events, betting lines and outcome rows."""

    def __init__(self, session: AsyncSession, upserts: UpsertEngine | None = None):
        """
        Initialize writer with database session.

        Args:
            session: Async database session
            upserts: Shared upsert engine (created when omitted)
        """
        self.session = session
        self.upserts = upserts or UpsertEngine(session)

    async def upsert_event(self, odds_event: OddsEvent) -> Event:
        """
        Insert or refresh an Event keyed on the provider event id.

        Team names and commence time follow the latest fetch.
        """
        event = await self.upserts.upsert(
            Event,
            {"id": odds_event.id},
            {
                "sport_key": odds_event.sport_key,
                "home_team": odds_event.home_team,
                "away_team": odds_event.away_team,
                "commence_time": odds_event.commence_time,
            },
        )
        logger.debug("event_upserted", event_id=odds_event.id)
        return event

    async def upsert_events(self, odds_events: list[OddsEvent]) -> int:
        """Upsert a batch of events; returns the number written."""
        for odds_event in odds_events:
            await self.upsert_event(odds_event)
        logger.info("events_upserted", count=len(odds_events))
        return len(odds_events)

    async def upsert_betting_line(
        self, game_id: int, decomposition: MarketDecomposition
    ) -> BettingLine:
        """
        Write the (game, bookmaker) summary row, overwriting every price field.

        Example:
            line = await writer.upsert_betting_line(game.id, decompose(event, book))
        """
        values = decomposition.to_betting_line_values()
        values["last_updated"] = decomposition.last_update or utc_now()

        return await self.upserts.upsert(
            BettingLine,
            {"game_id": game_id, "bookmaker": decomposition.bookmaker_key},
            values,
        )

    async def upsert_outcomes(self, event_id: str, rows: list[OutcomeRow]) -> int:
        """
        Upsert one Odds row per outcome keyed on (event, market, outcome name, point).

        Returns:
            Number of rows written
        """
        for row in rows:
            await self.upserts.upsert(
                Odds,
                {
                    "event_id": event_id,
                    "market_key": row.market_key,
                    "outcome_name": row.outcome_name,
                    "point": row.point,
                },
                {
                    "price": row.price,
                    "description": row.description,
                    "bookmaker_key": row.bookmaker_key,
                    "last_update": row.last_update,
                },
            )

        logger.debug("outcomes_upserted", event_id=event_id, count=len(rows))
        return len(rows)
