"""Database write operations for stats-provider enrichment."""

from __future__ import annotations

import structlog
from gridline_core.api_models import StatsGame, StatsInjury, StatsTeam
from gridline_core.models import Game, PlayerInjury, Team
from gridline_core.time import utc_now
from sqlalchemy.ext.asyncio import AsyncSession

from gridline_ingest.status_mapping import map_game_status, map_injury_status
from gridline_ingest.storage.upsert import UpsertEngine

logger = structlog.get_logger(__name__)


class EnrichmentWriter:
    """Writes teams, injuries and stats-derived game fields."""

    def __init__(self, session: AsyncSession, upserts: UpsertEngine | None = None):
        self.session = session
        self.upserts = upserts or UpsertEngine(session)

    async def ensure_team(self, stats_team: StatsTeam) -> Team:
        """Create the Team row on first sighting; later sightings only fill null fields."""
        return await self.upserts.ensure(
            Team,
            {"name": stats_team.name},
            {"city": stats_team.city, "abbreviation": stats_team.code},
        )

    async def append_injuries(self, game_id: int | None, injuries: list[StatsInjury]) -> int:
        """
        Append one PlayerInjury row per report entry.

        Rows are never deduplicated: each sighting is a point in the injury
        time series.

        Returns:
            Number of rows appended
        """
        appended = 0
        now = utc_now()
        for injury in injuries:
            if not injury.player_name:
                continue
            await self.upserts.insert(
                PlayerInjury,
                {
                    "player_name": injury.player_name,
                    "team": injury.team_name,
                    "position": injury.position,
                    "injury_status": map_injury_status(injury.status),
                    "body_part": None,
                    "description": injury.detail,
                    "game_id": game_id,
                    "reported_at": injury.reported_at or now,
                },
            )
            appended += 1

        logger.debug("injuries_appended", game_id=game_id, count=appended)
        return appended

    async def update_game_details(self, game: Game, stats_game: StatsGame) -> Game:
        """
        Overwrite week, status, scores, venue and surface from the stats game.

        Fields the provider leaves empty keep their stored value.
        """
        candidates = {
            "week": stats_game.week,
            "status": map_game_status(stats_game.status_short) if stats_game.status_short else None,
            "home_score": stats_game.home_score,
            "away_score": stats_game.away_score,
            "venue": stats_game.venue_name,
            "surface_type": stats_game.venue_surface,
        }
        values = {field: value for field, value in candidates.items() if value is not None}

        await self.upserts.update(game, values)
        logger.info(
            "game_details_updated",
            game_id=game.id,
            stats_game_id=stats_game.id,
            fields=sorted(values),
        )
        return game
