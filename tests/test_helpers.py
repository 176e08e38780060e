"""Reusable test helpers and stub implementations for API clients."""

from __future__ import annotations

import asyncio
import copy
import json
from datetime import UTC, datetime
from pathlib import Path

from gridline_core.api_models import (
    EventOddsResponse,
    EventsResponse,
    OddsResponse,
    StatsResponse,
    parse_odds_event,
    parse_stats_game,
    parse_stats_injury,
)

FIXTURES_DIR = Path(__file__).parent / "fixtures"
FETCHED_AT = datetime(2024, 9, 8, 15, 30, tzinfo=UTC)


def load_fixture(name: str):
    """Load a JSON payload from tests/fixtures."""
    with open(FIXTURES_DIR / name) as f:
        return json.load(f)


def with_prices(payload: dict, **overrides) -> dict:
    """
    Copy an event payload, replacing fanduel core-market values.

    Supported keys: ``moneyline_home``, ``moneyline_away``, ``spread_home_point``,
    ``spread_away_point``, ``total_point``.
    """
    payload = copy.deepcopy(payload)
    fanduel = next(book for book in payload["bookmakers"] if book["key"] == "fanduel")
    markets = {market["key"]: market for market in fanduel["markets"]}
    home, away = payload["home_team"], payload["away_team"]

    for outcome in markets["h2h"]["outcomes"]:
        if outcome["name"] == home and "moneyline_home" in overrides:
            outcome["price"] = overrides["moneyline_home"]
        if outcome["name"] == away and "moneyline_away" in overrides:
            outcome["price"] = overrides["moneyline_away"]
    for outcome in markets["spreads"]["outcomes"]:
        if outcome["name"] == home and "spread_home_point" in overrides:
            outcome["point"] = overrides["spread_home_point"]
        if outcome["name"] == away and "spread_away_point" in overrides:
            outcome["point"] = overrides["spread_away_point"]
    if "total_point" in overrides:
        for outcome in markets["totals"]["outcomes"]:
            outcome["point"] = overrides["total_point"]
    return payload


def event_odds_response(payload: dict) -> EventOddsResponse:
    """Wrap a single-event payload the way OddsAPIClient.get_event_odds does."""
    return EventOddsResponse(
        event=parse_odds_event(payload),
        response_time_ms=25,
        quota_remaining=480,
        timestamp=FETCHED_AT,
    )


class _StubClientBase:
    """Async context manager with the request counter the jobs report."""

    provider = "stub"

    def __init__(self):
        self.request_count = 0
        self.calls: list[tuple[str, tuple, dict]] = []

    async def __aenter__(self):
        """Enter async context manager."""
        return self

    async def __aexit__(self, exc_type, exc, tb):
        """Exit async context manager."""
        return False

    @property
    def stats(self) -> dict:
        return {"provider": self.provider, "request_count": self.request_count, "last_request_time": None}

    def _record(self, method: str, args: tuple, kwargs: dict) -> None:
        self.request_count += 1
        self.calls.append((method, args, kwargs))

    def calls_to(self, method: str) -> list[tuple[tuple, dict]]:
        return [(args, kwargs) for name, args, kwargs in self.calls if name == method]


class StubOddsClient(_StubClientBase):
    """
    Reusable stub for OddsAPIClient.

    Example:
        >>> client = StubOddsClient(
        ...     events=[event_payload],
        ...     event_odds={"evt_1": event_payload, "evt_2": ProviderError(500, "boom")},
        ... )
        >>> async with client as c:
        ...     response = await c.get_event_odds("americanfootball_nfl", "evt_1", ["us"], ["h2h"])
    """

    provider = "odds"

    def __init__(
        self,
        *,
        events: list[dict] | None = None,
        odds: list[dict] | None = None,
        event_odds: dict[str, dict | Exception] | None = None,
    ):
        """
        Initialize stub with payloads to return.

        Args:
            events: Payloads returned by get_events()
            odds: Payloads returned by get_odds()
            event_odds: Per-event payloads (or exceptions to raise) for get_event_odds()
        """
        super().__init__()
        self._events = events or []
        self._odds = odds or []
        self._event_odds = event_odds or {}

    async def get_events(self, *args, **kwargs) -> EventsResponse:
        self._record("get_events", args, kwargs)
        return EventsResponse(
            events=[parse_odds_event(item) for item in self._events],
            response_time_ms=10,
            quota_remaining=500,
            timestamp=FETCHED_AT,
        )

    async def get_odds(self, *args, **kwargs) -> OddsResponse:
        self._record("get_odds", args, kwargs)
        return OddsResponse(
            events=[parse_odds_event(item) for item in self._odds],
            response_time_ms=40,
            quota_remaining=470,
            timestamp=FETCHED_AT,
        )

    async def get_event_odds(self, sport: str, event_id: str, *args, **kwargs) -> EventOddsResponse:
        self._record("get_event_odds", (sport, event_id, *args), kwargs)
        payload = self._event_odds.get(event_id)
        if isinstance(payload, Exception):
            raise payload
        if payload is None:
            raise KeyError(f"no stubbed odds for {event_id}")
        return event_odds_response(payload)


class StubStatsClient(_StubClientBase):
    """
    Reusable stub for StatsAPIClient keyed on stats team id.

    Payloads are raw provider envelopes (as in tests/fixtures) and are parsed
    the same way the real client parses them.
    """

    provider = "stats"

    def __init__(
        self,
        *,
        player_statistics: dict | None = None,
        games_by_team: dict[int, dict] | None = None,
        injuries_by_team: dict[int, dict] | None = None,
    ):
        super().__init__()
        self._player_statistics = player_statistics or {"results": 0, "response": []}
        self._games_by_team = games_by_team or {}
        self._injuries_by_team = injuries_by_team or {}

    @staticmethod
    def _response(items: list) -> StatsResponse:
        return StatsResponse(
            results=len(items),
            response=items,
            response_time_ms=15,
            timestamp=FETCHED_AT,
        )

    async def get_player_statistics(self, league, season, team=None) -> StatsResponse:
        self._record("get_player_statistics", (league, season), {"team": team})
        return self._response(list(self._player_statistics["response"]))

    async def get_games(self, league, season, week=None, team=None) -> StatsResponse:
        self._record("get_games", (league, season), {"week": week, "team": team})
        payload = self._games_by_team.get(team, {"response": []})
        return self._response([parse_stats_game(item) for item in payload["response"]])

    async def get_injuries(self, league, season, team=None) -> StatsResponse:
        self._record("get_injuries", (league, season), {"team": team})
        payload = self._injuries_by_team.get(team, {"response": []})
        return self._response([parse_stats_injury(item) for item in payload["response"]])


class FakeResponse:
    """Minimal stand-in for aiohttp.ClientResponse used as an async context manager."""

    def __init__(
        self,
        status: int = 200,
        payload=None,
        headers: dict | None = None,
        text: str = "",
    ):
        self.status = status
        self._payload = payload
        self.headers = headers or {}
        self._text = text

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return False

    async def json(self, content_type=None):
        return self._payload

    async def text(self):
        return self._text


class FakeSession:
    """
    Stand-in for aiohttp.ClientSession returning queued responses.

    Queue entries that are exceptions are raised from ``get``.
    """

    def __init__(self, responses: list, clock: FakeClock | None = None):
        self._responses = list(responses)
        self._clock = clock
        self.calls: list[dict] = []
        self.closed = False

    def get(self, url, params=None, headers=None, timeout=None):
        self.calls.append(
            {
                "url": url,
                "params": params or {},
                "headers": headers or {},
                "at": self._clock() if self._clock else None,
            }
        )
        item = self._responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return item

    async def close(self):
        self.closed = True


class FakeClock:
    """Monotonic clock whose sleep advances time instead of waiting."""

    def __init__(self, start: float = 1000.0):
        self.now = start
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds

    async def shared_sleep(self, seconds: float) -> None:
        """Sleep that yields to other tasks; overlapping sleepers share one timeline."""
        wake_at = self.now + seconds
        self.sleeps.append(seconds)
        await asyncio.sleep(0)
        self.now = max(self.now, wake_at)
