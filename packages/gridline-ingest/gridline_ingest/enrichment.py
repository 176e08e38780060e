"""Best-effort enrichment of stored games with stats-provider detail."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import timedelta

import structlog
from gridline_core.api_models import StatsGame, StatsInjury, StatsTeam
from gridline_core.config import Settings, get_settings
from gridline_core.database import async_session_maker
from gridline_core.exceptions import TeamNotFoundError
from gridline_core.models import Game
from gridline_core.time import ensure_utc

from gridline_ingest.reconciler import StatsTeamMatcher, current_stats_season
from gridline_ingest.stats_fetcher import StatsAPIClient
from gridline_ingest.storage.enrichment_writer import EnrichmentWriter
from gridline_ingest.storage.readers import GameReader
from gridline_ingest.storage.upsert import UpsertEngine
from gridline_ingest.windows import TimeWindow, rolling_window

logger = structlog.get_logger(__name__)

STATS_GAME_TOLERANCE = timedelta(hours=24)


@dataclass(slots=True)
class GameEnrichmentFailure:
    """Information about a single game that failed to enrich."""

    game_id: int | None
    error: str


@dataclass(slots=True)
class GameEnrichment:
    """What one successful enrichment wrote."""

    game_id: int
    home_team: StatsTeam
    away_team: StatsTeam
    injuries_appended: int
    details_updated: bool


@dataclass(slots=True)
class EnrichmentResult:
    """Outcome of one enrichment pass."""

    window: TimeWindow
    seen: int = 0
    enriched: int = 0
    skipped: int = 0
    injuries_appended: int = 0
    request_count: int = 0
    failures: list[GameEnrichmentFailure] = field(default_factory=list)

    @property
    def failed(self) -> int:
        """Number of games that raised during enrichment."""
        return len(self.failures)


@dataclass(slots=True)
class EnrichmentCallbacks:
    """Optional callbacks for progress reporting."""

    on_games_loaded: Callable[[int], None] | None = None
    on_game_done: Callable[[int], None] | None = None


def find_stats_game(candidates: list[StatsGame], game: Game) -> StatsGame | None:
    """
    First stats game within a day of the stored game that shares a team slot.

    A candidate qualifies when its start is less than 24 hours from the game
    date and either its home name equals the game's home team or its away name
    equals the game's away team.
    """
    game_date = ensure_utc(game.game_date)
    for candidate in candidates:
        if candidate.date is None:
            continue
        if abs(candidate.date - game_date) >= STATS_GAME_TOLERANCE:
            continue
        if candidate.home.name == game.home_team or candidate.away.name == game.away_team:
            return candidate
    return None


class EnrichmentService:
    """Resolves stored games against the stats provider and writes what it finds."""

    def __init__(
        self,
        client: StatsAPIClient,
        *,
        settings: Settings | None = None,
        session_factory=async_session_maker,
        season: int | None = None,
        matcher: StatsTeamMatcher | None = None,
    ) -> None:
        self._client = client
        self._settings = settings or get_settings()
        self._session_factory = session_factory
        self.league = self._settings.stats_api.league
        self.season = season or self._settings.stats_api.season or current_stats_season()
        self._matcher = matcher or StatsTeamMatcher(client, self.league, self.season)

    async def _resolve_team(self, team_name: str) -> StatsTeam:
        team = await self._matcher.match_team(team_name)
        if team is None:
            raise TeamNotFoundError(team_name)
        return team

    async def _fetch_injuries(self, team: StatsTeam) -> list[StatsInjury]:
        response = await self._client.get_injuries(self.league, self.season, team.id)
        injuries: list[StatsInjury] = response.response
        for injury in injuries:
            if not injury.team_name:
                injury.team_name = team.name
        return injuries

    async def enrich(self, game: Game) -> GameEnrichment:
        """
        Enrich one game.

        Resolves both teams, fetches their injury reports and the home team's
        game list, then writes teams, injuries and game details in a single
        transaction.

        Raises:
            TeamNotFoundError: Either team has no stats-provider counterpart
        """
        home = await self._resolve_team(game.home_team)
        away = await self._resolve_team(game.away_team)

        injuries = await self._fetch_injuries(home) + await self._fetch_injuries(away)

        games_response = await self._client.get_games(self.league, self.season, team=home.id)
        stats_game = find_stats_game(games_response.response, game)

        async with self._session_factory() as session:
            upserts = UpsertEngine(session)
            writer = EnrichmentWriter(session, upserts)

            await writer.ensure_team(home)
            await writer.ensure_team(away)
            appended = await writer.append_injuries(game.id, injuries)

            if stats_game is not None:
                stored = await session.get(Game, game.id)
                if stored is None:
                    raise LookupError(f"Game {game.id} no longer exists")
                await writer.update_game_details(stored, stats_game)
            else:
                logger.info(
                    "stats_game_not_found",
                    game_id=game.id,
                    home_team=game.home_team,
                    away_team=game.away_team,
                )

            await session.commit()

        logger.info(
            "game_enriched",
            game_id=game.id,
            home_team=home.name,
            away_team=away.name,
            injuries=appended,
            details_updated=stats_game is not None,
        )
        return GameEnrichment(
            game_id=game.id,
            home_team=home,
            away_team=away,
            injuries_appended=appended,
            details_updated=stats_game is not None,
        )

    async def enrich_window(
        self,
        window: TimeWindow | None = None,
        *,
        callbacks: EnrichmentCallbacks | None = None,
    ) -> EnrichmentResult:
        """
        Enrich every stored game dated inside the window.

        Defaults to a rolling window of ``enrichment.window_days`` around now.
        Failures are caught per game; one bad game never stops the pass.
        """
        window = window or rolling_window(days=self._settings.enrichment.window_days)
        callback_bundle = callbacks or EnrichmentCallbacks()

        async with self._session_factory() as session:
            games = await GameReader(session).games_in_window(window)

        if callback_bundle.on_games_loaded:
            callback_bundle.on_games_loaded(len(games))

        result = EnrichmentResult(window=window)
        for game in games:
            result.seen += 1
            try:
                enrichment = await self.enrich(game)
            except TeamNotFoundError as exc:
                result.skipped += 1
                logger.warning(
                    "game_enrichment_skipped",
                    game_id=game.id,
                    team_name=exc.team_name,
                )
            except Exception as exc:
                result.failures.append(GameEnrichmentFailure(game_id=game.id, error=str(exc)))
                logger.error(
                    "game_enrichment_failed",
                    game_id=game.id,
                    error=str(exc),
                    error_type=type(exc).__name__,
                )
            else:
                result.enriched += 1
                result.injuries_appended += enrichment.injuries_appended

            if callback_bundle.on_game_done and game.id is not None:
                callback_bundle.on_game_done(game.id)

        result.request_count = self._client.request_count
        logger.info(
            "enrichment_completed",
            window_start=window.start.isoformat(),
            window_end=window.end.isoformat(),
            seen=result.seen,
            enriched=result.enriched,
            skipped=result.skipped,
            failed=result.failed,
            injuries_appended=result.injuries_appended,
            request_count=result.request_count,
        )
        return result
