"""Tests for bookmaker market decomposition."""

from datetime import UTC, datetime

from gridline_core.api_models import parse_odds_event
from gridline_ingest.markets import decompose


def _fanduel(payload):
    event = parse_odds_event(payload)
    return event, event.bookmaker("fanduel")


class TestDecompose:
    """Core-market summaries and flat outcome rows."""

    def test_core_markets_summarized(self, event_odds_payload):
        event, fanduel = _fanduel(event_odds_payload)

        result = decompose(event, fanduel)

        assert result.bookmaker_key == "fanduel"
        assert (result.moneyline.home, result.moneyline.away) == (-150, 130)
        assert (result.spread.home_point, result.spread.away_point) == (-2.5, 2.5)
        assert (result.spread.home_price, result.spread.away_price) == (-110, -110)
        assert result.totals.point == 47.5
        assert (result.totals.over_price, result.totals.under_price) == (-108, -112)

    def test_every_outcome_becomes_a_row(self, event_odds_payload):
        event, fanduel = _fanduel(event_odds_payload)

        rows = decompose(event, fanduel).outcomes

        assert len(rows) == 10
        assert {row.market_key for row in rows} == {"h2h", "spreads", "totals", "player_pass_yds"}
        assert all(row.bookmaker_key == "fanduel" for row in rows)

        h2h = [row for row in rows if row.market_key == "h2h"]
        assert all(row.point is None for row in h2h)

    def test_prop_rows_are_qualified_by_participant(self, event_odds_payload):
        event, fanduel = _fanduel(event_odds_payload)

        rows = decompose(event, fanduel).outcomes
        props = [row for row in rows if row.market_key == "player_pass_yds"]

        assert [row.outcome_name for row in props] == [
            "Patrick Mahomes Over",
            "Patrick Mahomes Under",
            "Josh Allen Over",
            "Josh Allen Under",
        ]
        assert props[0].description == "Patrick Mahomes"
        assert props[0].last_update == datetime(2024, 9, 8, 15, 25, tzinfo=UTC)

    def test_missing_markets_stay_none(self, event_odds_payload):
        event = parse_odds_event(event_odds_payload)
        draftkings = event.bookmaker("draftkings")

        result = decompose(event, draftkings)

        assert (result.moneyline.home, result.moneyline.away) == (-145, 125)
        assert result.spread.home_point is None
        assert result.totals.point is None
        assert result.totals.over_price is None
        # h2h has no market-level timestamp, so rows inherit the bookmaker's
        assert result.outcomes[0].last_update == datetime(2024, 9, 8, 15, 29, tzinfo=UTC)

    def test_outcome_names_must_match_teams_exactly(self, event_odds_payload):
        event_odds_payload["bookmakers"][0]["markets"][0]["outcomes"][0]["name"] = "Kansas City"
        event, fanduel = _fanduel(event_odds_payload)

        result = decompose(event, fanduel)

        assert result.moneyline.home is None
        assert result.moneyline.away == 130

    def test_no_name_matches_leave_moneyline_empty(self, event_odds_payload):
        for outcome in event_odds_payload["bookmakers"][0]["markets"][0]["outcomes"]:
            outcome["name"] = outcome["name"].upper()
        event, fanduel = _fanduel(event_odds_payload)

        result = decompose(event, fanduel)

        assert (result.moneyline.home, result.moneyline.away) == (None, None)
        assert len(result.outcomes) == 10

    def test_betting_line_values(self, event_odds_payload):
        event, fanduel = _fanduel(event_odds_payload)

        values = decompose(event, fanduel).to_betting_line_values()

        assert values == {
            "spread_home": -2.5,
            "spread_away": 2.5,
            "spread_home_odds": -110,
            "spread_away_odds": -110,
            "moneyline_home": -150,
            "moneyline_away": 130,
            "total_points": 47.5,
            "over_odds": -108,
            "under_odds": -112,
        }
