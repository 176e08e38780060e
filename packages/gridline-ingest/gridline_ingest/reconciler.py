"""Cross-provider identity resolution: odds events to games, team names to stats teams."""

from __future__ import annotations

from datetime import datetime, timedelta

import structlog
from gridline_core.api_models import OddsEvent, StatsTeam, teams_from_player_statistics
from gridline_core.models import Game, GameStatus
from gridline_core.time import ensure_utc, utc_now
from sqlalchemy import and_, select
from sqlalchemy.ext.asyncio import AsyncSession

from gridline_ingest.stats_fetcher import StatsAPIClient
from gridline_ingest.storage.upsert import UpsertEngine

logger = structlog.get_logger(__name__)


def utc_day_bounds(dt: datetime) -> tuple[datetime, datetime]:
    """Return ``[midnight, next midnight)`` of the UTC calendar day containing ``dt``."""
    day_start = ensure_utc(dt).replace(hour=0, minute=0, second=0, microsecond=0)
    return day_start, day_start + timedelta(days=1)


def select_game(candidates: list[Game], commence_time: datetime) -> Game:
    """Pick the candidate nearest to the commence time, lowest id on ties."""
    target = ensure_utc(commence_time)
    return min(
        candidates,
        key=lambda game: (abs(ensure_utc(game.game_date) - target), game.id or 0),
    )


def team_names_match(candidate: str, target: str) -> bool:
    """Equal, or either name contains the other."""
    if not candidate or not target:
        return False
    return candidate == target or target in candidate or candidate in target


def select_team_match(teams: list[StatsTeam], team_name: str) -> StatsTeam | None:
    """First team, in the given order, whose name matches ``team_name``."""
    return next((team for team in teams if team_names_match(team.name, team_name)), None)


def current_stats_season(now: datetime | None = None) -> int:
    """
    NFL season containing ``now``.

    The regular season runs September through early February, so January and
    February belong to the previous year's season.
    """
    now = ensure_utc(now or utc_now())
    return now.year if now.month >= 3 else now.year - 1


class EventReconciler:
    """Matches odds-provider events to Game rows, creating games when none match."""

    def __init__(self, session: AsyncSession, upserts: UpsertEngine | None = None):
        """
        Initialize reconciler with database session.

        Args:
            session: Async database session
            upserts: Shared upsert engine (created when omitted)
        """
        self.session = session
        self.upserts = upserts or UpsertEngine(session)

    async def find_candidates(self, home_team: str, away_team: str, when: datetime) -> list[Game]:
        """Games with exactly these teams on the same UTC day as ``when``."""
        day_start, day_end = utc_day_bounds(when)
        query = (
            select(Game)
            .where(
                and_(
                    Game.home_team == home_team,
                    Game.away_team == away_team,
                    Game.game_date >= day_start,
                    Game.game_date < day_end,
                )
            )
            .order_by(Game.id)
        )
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def match_or_create_game(self, odds_event: OddsEvent) -> Game:
        """
        Return the Game for an odds event.

        One candidate is the match. None creates a Game with status NS and the
        event's teams and commence time. Several are resolved by nearest start
        time, then lowest id.

        Example:
            game = await reconciler.match_or_create_game(event)
            await writer.upsert_betting_line(game.id, decomposition)
        """
        commence_time = ensure_utc(odds_event.commence_time)
        candidates = await self.find_candidates(
            odds_event.home_team, odds_event.away_team, commence_time
        )

        if len(candidates) == 1:
            return candidates[0]

        if len(candidates) > 1:
            chosen = select_game(candidates, commence_time)
            logger.warning(
                "game_ambiguous_match",
                event_id=odds_event.id,
                home_team=odds_event.home_team,
                away_team=odds_event.away_team,
                candidates=[game.id for game in candidates],
                chosen_game_id=chosen.id,
            )
            return chosen

        game = await self.upserts.insert(
            Game,
            {
                "home_team": odds_event.home_team,
                "away_team": odds_event.away_team,
                "game_date": commence_time,
                "season": commence_time.year,
                "status": GameStatus.NOT_STARTED.value,
            },
        )
        logger.info(
            "game_created",
            game_id=game.id,
            event_id=odds_event.id,
            home_team=game.home_team,
            away_team=game.away_team,
        )
        return game


class StatsTeamMatcher:
    """
    Resolves team names into the stats provider's namespace.

    The current-season player-statistics payload is fetched once per instance
    and reused for every lookup.
    """

    def __init__(self, client: StatsAPIClient, league: str, season: int):
        self.client = client
        self.league = league
        self.season = season
        self._teams: list[StatsTeam] | None = None

    async def teams(self) -> list[StatsTeam]:
        """Distinct teams from the player-statistics payload, in payload order."""
        if self._teams is None:
            response = await self.client.get_player_statistics(self.league, self.season)
            self._teams = teams_from_player_statistics(response.response)
            logger.info("stats_teams_loaded", season=self.season, teams=len(self._teams))
        return self._teams

    async def match_team(self, team_name: str) -> StatsTeam | None:
        """Return the first stats team whose name equals, contains or is contained by ``team_name``."""
        match = select_team_match(await self.teams(), team_name)
        if match is None:
            logger.warning("stats_team_not_found", team_name=team_name, season=self.season)
        return match
