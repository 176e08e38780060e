"""The Odds API v4 client."""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Mapping
from datetime import datetime

import aiohttp
import structlog
from gridline_core.api_models import (
    EventOddsResponse,
    EventsResponse,
    OddsResponse,
    parse_odds_event,
)
from gridline_core.config import get_settings
from gridline_core.time import odds_api_timestamp

from gridline_ingest.throttle import ODDS_RETRY_POLICY, ThrottledClient

logger = structlog.get_logger()


class OddsAPIClient(ThrottledClient):
    """Client for The Odds API, authenticated with an ``apiKey`` query parameter."""

    provider = "odds"

    def __init__(
        self,
        api_key: str,
        base_url: str | None = None,
        *,
        requests_per_minute: int | None = None,
        session: aiohttp.ClientSession | None = None,
        clock: Callable[[], float] | None = None,
        sleep: Callable[[float], Awaitable[None]] | None = None,
    ):
        """
        Initialize API client.

        Args:
            api_key: The Odds API key
            base_url: Base URL (defaults to settings)
            requests_per_minute: Request ceiling (defaults to settings)
            session: Optional externally owned aiohttp session
            clock: Optional monotonic clock override
            sleep: Optional sleep override
        """
        config = get_settings().odds_api
        overrides = {}
        if clock is not None:
            overrides["clock"] = clock
        if sleep is not None:
            overrides["sleep"] = sleep

        super().__init__(
            base_url or config.base_url,
            requests_per_minute=requests_per_minute or config.requests_per_minute,
            retry_policy=ODDS_RETRY_POLICY,
            session=session,
            **overrides,
        )
        self.api_key = api_key
        self._quota_remaining: int | None = None

    @property
    def quota_remaining(self) -> int | None:
        """Remaining API quota reported by the last response."""
        return self._quota_remaining

    def _auth_params(self) -> dict:
        return {"apiKey": self.api_key}

    def _quota_from_headers(self, headers: Mapping[str, str]) -> int | None:
        raw = headers.get("x-requests-remaining")
        if raw is not None:
            try:
                self._quota_remaining = int(float(raw))
            except ValueError:
                logger.warning("quota_header_unparseable", value=raw)
        return self._quota_remaining

    async def get_events(
        self,
        sport: str,
        commence_time_from: datetime | None = None,
        commence_time_to: datetime | None = None,
    ) -> EventsResponse:
        """
        List events for a sport without odds; does not consume quota.

        Args:
            sport: Sport key (e.g., 'americanfootball_nfl')
            commence_time_from: Inclusive lower bound on commence time
            commence_time_to: Upper bound on commence time

        Returns:
            EventsResponse with parsed events
        """
        params = {
            "commenceTimeFrom": odds_api_timestamp(commence_time_from)
            if commence_time_from
            else None,
            "commenceTimeTo": odds_api_timestamp(commence_time_to) if commence_time_to else None,
            "dateFormat": "iso",
        }
        response = await self.fetch(f"sports/{sport}/events", params)
        events = [parse_odds_event(item) for item in response.data or []]

        logger.info("events_fetched", sport=sport, events_count=len(events))

        return EventsResponse(
            events=events,
            response_time_ms=response.elapsed_ms,
            quota_remaining=response.quota_remaining,
            timestamp=response.timestamp,
        )

    async def get_odds(
        self,
        sport: str,
        regions: list[str],
        markets: list[str],
        bookmakers: list[str] | None = None,
        date_format: str = "iso",
        odds_format: str = "american",
    ) -> OddsResponse:
        """
        Fetch current odds for every upcoming event of a sport.

        Example:
            async with OddsAPIClient(api_key) as client:
                response = await client.get_odds(
                    "americanfootball_nfl", ["us"], ["h2h", "spreads", "totals"]
                )
        """
        params = {
            "regions": ",".join(regions),
            "markets": ",".join(markets),
            "bookmakers": ",".join(bookmakers) if bookmakers else None,
            "dateFormat": date_format,
            "oddsFormat": odds_format,
        }
        response = await self.fetch(f"sports/{sport}/odds", params)
        events = [parse_odds_event(item) for item in response.data or []]

        logger.info(
            "odds_fetched",
            sport=sport,
            events_count=len(events),
            response_time_ms=response.elapsed_ms,
        )

        return OddsResponse(
            events=events,
            response_time_ms=response.elapsed_ms,
            quota_remaining=response.quota_remaining,
            timestamp=response.timestamp,
        )

    async def get_event_odds(
        self,
        sport: str,
        event_id: str,
        regions: list[str],
        markets: list[str],
        bookmakers: list[str] | None = None,
    ) -> EventOddsResponse:
        """
        Fetch odds for a single event, including player prop markets.

        Args:
            sport: Sport key
            event_id: Odds provider event id
            regions: Regions to price
            markets: Market keys to request
            bookmakers: Restrict to these bookmakers

        Returns:
            EventOddsResponse for the event
        """
        params = {
            "regions": ",".join(regions),
            "markets": ",".join(markets),
            "bookmakers": ",".join(bookmakers) if bookmakers else None,
            "dateFormat": "iso",
            "oddsFormat": "american",
        }
        response = await self.fetch(f"sports/{sport}/events/{event_id}/odds", params)
        event = parse_odds_event(response.data)

        logger.info(
            "event_odds_fetched",
            event_id=event_id,
            bookmakers=len(event.bookmakers),
            response_time_ms=response.elapsed_ms,
        )

        return EventOddsResponse(
            event=event,
            response_time_ms=response.elapsed_ms,
            quota_remaining=response.quota_remaining,
            timestamp=response.timestamp,
        )
