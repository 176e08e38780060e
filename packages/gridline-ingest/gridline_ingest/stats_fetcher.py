"""API-American-Football (stats provider) client."""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Mapping
from typing import Any

import aiohttp
import structlog
from gridline_core.api_models import (
    StatsResponse,
    parse_stats_game,
    parse_stats_injury,
    parse_stats_player,
)
from gridline_core.config import get_settings
from gridline_core.exceptions import ProviderError

from gridline_ingest.throttle import STATS_RETRY_POLICY, ProviderResponse, ThrottledClient

logger = structlog.get_logger()


class StatsAPIClient(ThrottledClient):
    """
    Client for the stats provider, authenticated with RapidAPI-style headers.

    Every call returns the provider's ``{results, response}`` envelope as a
    StatsResponse. Games, injuries and players are parsed into dataclasses;
    player statistics are returned as raw dicts.
    """

    provider = "stats"

    def __init__(
        self,
        api_key: str,
        base_url: str | None = None,
        *,
        host: str | None = None,
        requests_per_minute: int | None = None,
        session: aiohttp.ClientSession | None = None,
        clock: Callable[[], float] | None = None,
        sleep: Callable[[float], Awaitable[None]] | None = None,
    ):
        config = get_settings().stats_api
        overrides = {}
        if clock is not None:
            overrides["clock"] = clock
        if sleep is not None:
            overrides["sleep"] = sleep

        super().__init__(
            base_url or config.base_url,
            requests_per_minute=requests_per_minute or config.requests_per_minute,
            retry_policy=STATS_RETRY_POLICY,
            session=session,
            **overrides,
        )
        self.api_key = api_key
        self.host = host or config.host

    def _auth_headers(self) -> dict:
        return {"x-rapidapi-key": self.api_key, "x-rapidapi-host": self.host}

    def _quota_from_headers(self, headers: Mapping[str, str]) -> int | None:
        raw = headers.get("x-ratelimit-requests-remaining")
        try:
            return int(raw) if raw is not None else None
        except ValueError:
            return None

    def _check_payload(self, data: Any, status: int) -> None:
        # Auth and plan failures come back as 200 with an "errors" member
        errors = data.get("errors") if isinstance(data, dict) else None
        if errors:
            raise ProviderError(status, str(errors), provider=self.provider)

    def _envelope(self, response: ProviderResponse, parser=None, kind: str = "entry") -> StatsResponse:
        payload = response.data if isinstance(response.data, dict) else {}
        items = payload.get("response") or []

        if parser is not None:
            parsed = []
            for item in items:
                try:
                    parsed.append(parser(item))
                except (AttributeError, KeyError, TypeError, ValueError) as e:
                    logger.warning("stats_entry_unparseable", kind=kind, error=str(e))
            items = parsed

        return StatsResponse(
            results=int(payload.get("results", len(items)) or 0),
            response=items,
            response_time_ms=response.elapsed_ms,
            timestamp=response.timestamp,
        )

    async def get_games(
        self,
        league: str,
        season: int,
        week: int | None = None,
        team: int | None = None,
    ) -> StatsResponse:
        """Fetch games for a league season, optionally narrowed to a week or team."""
        response = await self.fetch(
            "games", {"league": league, "season": season, "week": week, "team": team}
        )
        result = self._envelope(response, parse_stats_game, kind="game")
        logger.info("stats_games_fetched", season=season, team=team, games=len(result.response))
        return result

    async def get_players(self, team: int | None = None, season: int | None = None) -> StatsResponse:
        """Fetch the roster for a team and season."""
        response = await self.fetch("players", {"team": team, "season": season})
        return self._envelope(response, parse_stats_player, kind="player")

    async def get_player_statistics(
        self, league: str, season: int, team: int | None = None
    ) -> StatsResponse:
        """Fetch season player statistics; entries carry the player's team."""
        response = await self.fetch(
            "players/statistics", {"league": league, "season": season, "team": team}
        )
        return self._envelope(response)

    async def get_injuries(
        self, league: str, season: int, team: int | None = None
    ) -> StatsResponse:
        """Fetch the current injury report, optionally for one team."""
        response = await self.fetch(
            "injuries", {"league": league, "season": season, "team": team}
        )
        result = self._envelope(response, parse_stats_injury, kind="injury")
        logger.info("stats_injuries_fetched", team=team, injuries=len(result.response))
        return result
