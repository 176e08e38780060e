"""Provider payload models and conversion utilities.

Both providers return loosely-typed JSON with many optional members. The
parsers here map each payload onto explicit dataclasses where an absent
member becomes ``None`` rather than a zero or empty default.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime

from gridline_core.time import from_unix, parse_api_datetime

_DIGITS_RE = re.compile(r"\d+")


# ---------------------------------------------------------------------------
# Odds provider
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class Outcome:
    """One priced selection within a market."""

    name: str
    price: int
    point: float | None = None
    description: str | None = None

    @property
    def label(self) -> str:
        """Name qualified by participant, so prop selections stay distinct."""
        if self.description:
            return f"{self.description} {self.name}"
        return self.name


@dataclass(slots=True)
class Market:
    """A bet category with its outcomes."""

    key: str
    outcomes: list[Outcome] = field(default_factory=list)
    last_update: datetime | None = None

    def find_outcome(self, name: str) -> Outcome | None:
        """Return the first outcome whose name matches exactly."""
        return next((outcome for outcome in self.outcomes if outcome.name == name), None)


@dataclass(slots=True)
class Bookmaker:
    """One bookmaker's markets for an event."""

    key: str
    title: str
    last_update: datetime | None = None
    markets: list[Market] = field(default_factory=list)

    def market(self, key: str) -> Market | None:
        """Return the market with the given key, if the bookmaker offers it."""
        return next((market for market in self.markets if market.key == key), None)


@dataclass(slots=True)
class OddsEvent:
    """Event as returned by the /events, /odds and /events/{id}/odds endpoints."""

    id: str
    sport_key: str
    sport_title: str
    commence_time: datetime
    home_team: str
    away_team: str
    bookmakers: list[Bookmaker] = field(default_factory=list)

    def bookmaker(self, key: str) -> Bookmaker | None:
        """Return the bookmaker with the given key, if present."""
        return next((book for book in self.bookmakers if book.key == key), None)


@dataclass(slots=True)
class EventsResponse:
    """Response from get_events() API call."""

    events: list[OddsEvent]
    response_time_ms: int
    quota_remaining: int | None
    timestamp: datetime


@dataclass(slots=True)
class OddsResponse:
    """Response from get_odds() API call."""

    events: list[OddsEvent]
    response_time_ms: int
    quota_remaining: int | None
    timestamp: datetime


@dataclass(slots=True)
class EventOddsResponse:
    """Response from get_event_odds() API call."""

    event: OddsEvent
    response_time_ms: int
    quota_remaining: int | None
    timestamp: datetime


def _parse_optional_datetime(value) -> datetime | None:
    if isinstance(value, str) and value.strip():
        try:
            return parse_api_datetime(value)
        except ValueError:
            return None
    if isinstance(value, int | float):
        return from_unix(value)
    return None


def parse_outcome(data: dict) -> Outcome:
    """Convert an outcome dict; price is required, point and description are optional."""
    point = data.get("point")
    return Outcome(
        name=str(data["name"]),
        price=int(data["price"]),
        point=float(point) if point is not None else None,
        description=data.get("description") or None,
    )


def parse_market(data: dict) -> Market:
    """Convert a market dict, skipping outcomes without a name or price."""
    outcomes = [
        parse_outcome(outcome)
        for outcome in data.get("outcomes") or []
        if outcome.get("name") is not None and outcome.get("price") is not None
    ]
    return Market(
        key=str(data.get("key") or ""),
        outcomes=outcomes,
        last_update=_parse_optional_datetime(data.get("last_update")),
    )


def parse_bookmaker(data: dict) -> Bookmaker:
    """Convert a bookmaker dict."""
    key = str(data.get("key") or "").strip()
    return Bookmaker(
        key=key,
        title=str(data.get("title") or key),
        last_update=_parse_optional_datetime(data.get("last_update")),
        markets=[parse_market(market) for market in data.get("markets") or [] if market.get("key")],
    )


def parse_odds_event(data: dict) -> OddsEvent:
    """
    Convert an Odds API event dict to an OddsEvent.

    Example:
        >>> event = parse_odds_event({
        ...     "id": "abc123",
        ...     "sport_key": "americanfootball_nfl",
        ...     "commence_time": "2024-09-08T17:00:00Z",
        ...     "home_team": "Kansas City Chiefs",
        ...     "away_team": "Buffalo Bills",
        ... })
        >>> event.bookmakers
        []
    """
    commence = data["commence_time"]
    commence_time = from_unix(commence) if isinstance(commence, int | float) else parse_api_datetime(commence)

    return OddsEvent(
        id=str(data["id"]),
        sport_key=data["sport_key"],
        sport_title=data.get("sport_title", data["sport_key"]),
        commence_time=commence_time,
        home_team=data["home_team"],
        away_team=data["away_team"],
        bookmakers=[
            parse_bookmaker(book) for book in data.get("bookmakers") or [] if book.get("key")
        ],
    )


# ---------------------------------------------------------------------------
# Stats provider
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class StatsTeam:
    """Team in the stats provider's namespace."""

    id: int
    name: str
    code: str | None = None
    city: str | None = None
    nickname: str | None = None


@dataclass(slots=True)
class StatsGame:
    """Game as listed by the stats provider's /games endpoint."""

    id: int
    date: datetime | None
    week: int | None
    status_short: str | None
    home: StatsTeam
    away: StatsTeam
    home_score: int | None = None
    away_score: int | None = None
    venue_name: str | None = None
    venue_surface: str | None = None


@dataclass(slots=True)
class StatsInjury:
    """One injury report entry."""

    player_name: str
    team_name: str
    status: str
    position: str | None = None
    detail: str | None = None
    reported_at: datetime | None = None


@dataclass(slots=True)
class StatsPlayer:
    """Player entry from the /players endpoint."""

    id: int
    name: str
    position: str | None = None
    injured: bool = False


@dataclass(slots=True)
class StatsResponse:
    """Stats provider envelope: ``{results, response: [...]}``."""

    results: int
    response: list
    response_time_ms: int
    timestamp: datetime


def parse_stats_team(data: dict) -> StatsTeam:
    """Convert a stats provider team dict."""
    return StatsTeam(
        id=int(data["id"]),
        name=str(data["name"]),
        code=data.get("code") or None,
        city=data.get("city") or None,
        nickname=data.get("nickname") or None,
    )


def _parse_stats_date(data: dict) -> datetime | None:
    """Resolve a game date from the provider's various date shapes."""
    raw = data.get("date")
    if isinstance(raw, dict):
        if raw.get("timestamp") is not None:
            return from_unix(raw["timestamp"])
        date_part = raw.get("date")
        time_part = raw.get("time")
        if date_part and time_part:
            return _parse_optional_datetime(f"{date_part}T{time_part}Z")
        return _parse_optional_datetime(date_part)

    if data.get("timestamp") is not None:
        return from_unix(data["timestamp"])
    return _parse_optional_datetime(raw)


def _parse_score(value) -> int | None:
    if isinstance(value, dict):
        value = value.get("total")
    if value is None:
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _parse_week(value) -> int | None:
    if value is None:
        return None
    if isinstance(value, int):
        return value
    match = _DIGITS_RE.search(str(value))
    return int(match.group()) if match else None


def parse_stats_game(data: dict) -> StatsGame:
    """
    Convert a stats provider game dict.

    Accepts both the flat shape (``date``/``week``/``status``/``venue`` at the top
    level) and the nested one (``game: {date, week, status, venue}``).
    """
    game = data.get("game") if isinstance(data.get("game"), dict) else data
    teams = data.get("teams") or {}
    scores = data.get("scores") or {}
    venue = game.get("venue") or {}
    status = game.get("status") or {}

    return StatsGame(
        id=int(game["id"]),
        date=_parse_stats_date(game),
        week=_parse_week(game.get("week")),
        status_short=status.get("short") if isinstance(status, dict) else None,
        home=parse_stats_team(teams["home"]),
        away=parse_stats_team(teams["away"]),
        home_score=_parse_score(scores.get("home")),
        away_score=_parse_score(scores.get("away")),
        venue_name=venue.get("name") or None,
        venue_surface=venue.get("surface") or None,
    )


def parse_stats_injury(data: dict) -> StatsInjury:
    """
    Convert an injury entry.

    The provider has reported status both as ``{"type", "detail"}`` and as a
    plain string alongside a ``description`` member.
    """
    player = data.get("player") or {}
    team = data.get("team") or {}
    status = data.get("status")

    if isinstance(status, dict):
        status_type = status.get("type") or ""
        detail = status.get("detail") or None
    else:
        status_type = status or ""
        detail = data.get("description") or None

    return StatsInjury(
        player_name=str(player.get("name") or "").strip(),
        team_name=str(team.get("name") or "").strip(),
        status=str(status_type),
        position=player.get("position") or None,
        detail=detail,
        reported_at=_parse_optional_datetime(data.get("date")),
    )


def parse_stats_player(data: dict) -> StatsPlayer:
    """Convert a /players entry."""
    status = data.get("status") or {}
    return StatsPlayer(
        id=int(data["id"]),
        name=str(data.get("name") or ""),
        position=data.get("position") or None,
        injured=bool(status.get("injury")) if isinstance(status, dict) else False,
    )


def teams_from_player_statistics(entries: list[dict]) -> list[StatsTeam]:
    """
    Collect distinct teams from a player-statistics payload, in payload order.

    Entries carry their team either as ``team`` or as a ``teams`` list of
    ``{"team": {...}}`` groups.
    """
    seen: set[int] = set()
    teams: list[StatsTeam] = []

    for entry in entries:
        candidates: list[dict] = []
        if isinstance(entry.get("team"), dict):
            candidates.append(entry["team"])
        for group in entry.get("teams") or []:
            if isinstance(group, dict) and isinstance(group.get("team"), dict):
                candidates.append(group["team"])

        for raw in candidates:
            if raw.get("id") is None or not raw.get("name"):
                continue
            team = parse_stats_team(raw)
            if team.id in seen:
                continue
            seen.add(team.id)
            teams.append(team)

    return teams
