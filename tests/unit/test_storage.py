"""Tests for natural-key upserts, writers and readers."""

from datetime import UTC, datetime

import pytest
from gridline_core.api_models import (
    StatsTeam,
    parse_odds_event,
    parse_stats_game,
    parse_stats_injury,
)
from gridline_core.models import (
    BettingLine,
    Game,
    GameStatus,
    InjuryStatus,
    Odds,
    PlayerInjury,
    Team,
)
from gridline_ingest.markets import decompose
from gridline_ingest.status_mapping import map_game_status, map_injury_status
from gridline_ingest.storage.enrichment_writer import EnrichmentWriter
from gridline_ingest.storage.readers import GameReader
from gridline_ingest.storage.upsert import UpsertEngine
from gridline_ingest.storage.writers import OddsWriter
from gridline_ingest.windows import TimeWindow
from sqlalchemy import func, select

from tests.test_helpers import with_prices

WEEK = TimeWindow(datetime(2024, 9, 8, tzinfo=UTC), datetime(2024, 9, 15, tzinfo=UTC))


async def _count(session, model) -> int:
    result = await session.execute(select(func.count()).select_from(model))
    return result.scalar_one()


async def _game(session, **overrides) -> Game:
    values = {
        "home_team": "Kansas City Chiefs",
        "away_team": "Buffalo Bills",
        "game_date": datetime(2024, 9, 8, 17, tzinfo=UTC),
        "season": 2024,
    }
    values.update(overrides)
    game = Game(**values)
    session.add(game)
    await session.flush()
    return game


class TestUpsertEngine:
    """Select-then-write semantics."""

    async def test_upsert_inserts_then_updates(self, test_session):
        engine = UpsertEngine(test_session)

        first = await engine.upsert(Team, {"name": "Buffalo Bills"}, {"city": "Orchard Park"})
        second = await engine.upsert(Team, {"name": "Buffalo Bills"}, {"city": "Buffalo"})

        assert first.id == second.id
        assert second.city == "Buffalo"
        assert (engine.inserted, engine.updated) == (1, 1)
        assert await _count(test_session, Team) == 1

    async def test_null_key_value_matches_is_null(self, test_session, event_odds_payload):
        await OddsWriter(test_session).upsert_event(parse_odds_event(event_odds_payload))
        engine = UpsertEngine(test_session)
        key = {
            "event_id": "evt_kc_buf_20240908",
            "market_key": "h2h",
            "outcome_name": "Buffalo Bills",
            "point": None,
        }

        await engine.upsert(Odds, key, {"price": 130})
        row = await engine.upsert(Odds, key, {"price": 135})

        assert row.price == 135
        assert await _count(test_session, Odds) == 1

    async def test_ensure_only_fills_missing_fields(self, test_session):
        engine = UpsertEngine(test_session)
        await engine.ensure(Team, {"name": "Kansas City Chiefs"}, {"city": "Kansas City"})

        team = await engine.ensure(
            Team, {"name": "Kansas City Chiefs"}, {"city": "KC", "abbreviation": "KC"}
        )

        assert team.city == "Kansas City"
        assert team.abbreviation == "KC"

    async def test_ensure_without_changes_is_not_an_update(self, test_session):
        engine = UpsertEngine(test_session)
        await engine.ensure(Team, {"name": "Kansas City Chiefs"}, {"city": "Kansas City"})
        await engine.ensure(Team, {"name": "Kansas City Chiefs"}, {"city": None})

        assert (engine.inserted, engine.updated) == (1, 0)


class TestOddsWriter:
    """Events, betting lines and outcome rows."""

    async def test_event_refresh_overwrites_teams_and_time(self, test_session, event_odds_payload):
        writer = OddsWriter(test_session)
        await writer.upsert_event(parse_odds_event(event_odds_payload))

        event_odds_payload["commence_time"] = "2024-09-08T20:25:00Z"
        event = await writer.upsert_event(parse_odds_event(event_odds_payload))

        assert event.commence_time == datetime(2024, 9, 8, 20, 25, tzinfo=UTC)
        assert await writer.upsert_events([parse_odds_event(event_odds_payload)]) == 1

    async def test_betting_line_last_write_wins(self, test_session, event_odds_payload):
        game = await _game(test_session)
        writer = OddsWriter(test_session)

        first = parse_odds_event(event_odds_payload)
        await writer.upsert_betting_line(game.id, decompose(first, first.bookmaker("fanduel")))
        moved = parse_odds_event(
            with_prices(event_odds_payload, moneyline_home=-170, total_point=48.5)
        )
        line = await writer.upsert_betting_line(
            game.id, decompose(moved, moved.bookmaker("fanduel"))
        )

        assert await _count(test_session, BettingLine) == 1
        assert line.moneyline_home == -170
        assert line.total_points == 48.5
        assert line.last_updated == datetime(2024, 9, 8, 15, 30, tzinfo=UTC)

    async def test_betting_lines_are_per_bookmaker(self, test_session, event_odds_payload):
        game = await _game(test_session)
        writer = OddsWriter(test_session)
        event = parse_odds_event(event_odds_payload)

        for book in event.bookmakers:
            await writer.upsert_betting_line(game.id, decompose(event, book))

        assert await _count(test_session, BettingLine) == 2

    async def test_moved_point_is_a_new_outcome_row(self, test_session, event_odds_payload):
        writer = OddsWriter(test_session)
        event = parse_odds_event(event_odds_payload)
        await writer.upsert_event(event)
        rows = decompose(event, event.bookmaker("fanduel")).outcomes

        assert await writer.upsert_outcomes(event.id, rows) == 10
        await writer.upsert_outcomes(event.id, rows)
        assert await _count(test_session, Odds) == 10

        moved = parse_odds_event(with_prices(event_odds_payload, total_point=48.5))
        moved_rows = decompose(moved, moved.bookmaker("fanduel")).outcomes
        await writer.upsert_outcomes(event.id, moved_rows)
        assert await _count(test_session, Odds) == 12


class TestEnrichmentWriter:
    """Teams, injuries and stats-derived game fields."""

    async def test_ensure_team_keeps_first_values(self, test_session):
        writer = EnrichmentWriter(test_session)
        await writer.ensure_team(StatsTeam(id=1, name="Kansas City Chiefs", code="KC"))

        team = await writer.ensure_team(
            StatsTeam(id=1, name="Kansas City Chiefs", code="KAN", city="Kansas City")
        )

        assert team.abbreviation == "KC"
        assert team.city == "Kansas City"
        assert await _count(test_session, Team) == 1

    async def test_injuries_are_appended_every_time(self, test_session, stats_injuries_payload):
        game = await _game(test_session)
        writer = EnrichmentWriter(test_session)
        injuries = [parse_stats_injury(item) for item in stats_injuries_payload["response"]]

        assert await writer.append_injuries(game.id, injuries) == 2
        assert await writer.append_injuries(game.id, injuries) == 2

        result = await test_session.execute(select(PlayerInjury).order_by(PlayerInjury.id))
        rows = list(result.scalars().all())
        assert len(rows) == 4
        assert rows[0].injury_status == InjuryStatus.QUESTIONABLE
        assert rows[0].description == "Ankle"
        assert rows[1].injury_status == InjuryStatus.OUT
        assert rows[1].team == "Kansas City Chiefs"
        assert rows[0].created_at is not None
        assert rows[0].updated_at is not None

    async def test_update_game_details_keeps_unreported_fields(
        self, test_session, stats_games_payload
    ):
        game = await _game(test_session, surface_type="grass")
        stats_game = parse_stats_game(stats_games_payload["response"][0])

        await EnrichmentWriter(test_session).update_game_details(game, stats_game)

        assert game.week == 1
        assert game.status == GameStatus.FINAL.value
        assert (game.home_score, game.away_score) == (27, 20)
        assert game.venue == "GEHA Field at Arrowhead Stadium"
        assert game.surface_type == "grass"


class TestGameReader:
    """Window-scoped reads and table counts."""

    async def test_events_and_games_in_window(self, test_session, events_payload):
        writer = OddsWriter(test_session)
        await writer.upsert_events([parse_odds_event(item) for item in events_payload])
        await _game(test_session)
        await _game(test_session, game_date=datetime(2024, 9, 15, tzinfo=UTC))
        reader = GameReader(test_session)

        events = await reader.events_in_window(WEEK, "americanfootball_nfl")
        games = await reader.games_in_window(WEEK)

        assert [event.id for event in events] == ["evt_kc_buf_20240908", "evt_phi_dal_20240909"]
        assert await reader.events_in_window(WEEK, "basketball_nba") == []
        assert len(games) == 1

    async def test_table_counts(self, test_session):
        await _game(test_session)

        counts = await GameReader(test_session).table_counts()

        assert counts["games"] == 1
        assert counts["events"] == 0
        assert set(counts) == {
            "events",
            "games",
            "teams",
            "odds",
            "betting_lines",
            "player_injuries",
        }


class TestStatusMapping:
    """Provider status vocabularies."""

    @pytest.mark.parametrize(
        ("short", "expected"),
        [
            ("NS", "NS"),
            ("1Q", "IP"),
            ("HT", "IP"),
            ("OT", "IP"),
            ("FT", "FT"),
            ("AOT", "FT"),
            ("PPD", "PPD"),
            ("CANC", "CANC"),
            ("susp", "SUSP"),
        ],
    )
    def test_map_game_status(self, short, expected):
        assert map_game_status(short) == expected

    @pytest.mark.parametrize(
        ("status", "expected"),
        [
            ("Out", InjuryStatus.OUT),
            ("Injured Reserve", InjuryStatus.OUT),
            ("Doubtful", InjuryStatus.DOUBTFUL),
            ("Probable", InjuryStatus.PROBABLE),
            ("Day-To-Day", InjuryStatus.QUESTIONABLE),
        ],
    )
    def test_map_injury_status(self, status, expected):
        assert map_injury_status(status) == expected
