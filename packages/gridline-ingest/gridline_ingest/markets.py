"""Decompose one bookmaker's markets into summary lines and flat outcome rows."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from gridline_core.api_models import Bookmaker, Market, OddsEvent


@dataclass(slots=True)
class Moneyline:
    home: int | None = None
    away: int | None = None


@dataclass(slots=True)
class Spread:
    home_point: float | None = None
    away_point: float | None = None
    home_price: int | None = None
    away_price: int | None = None


@dataclass(slots=True)
class Totals:
    point: float | None = None
    over_price: int | None = None
    under_price: int | None = None


@dataclass(slots=True)
class OutcomeRow:
    """One priced outcome ready to be keyed on (event, market, outcome name, point)."""

    market_key: str
    outcome_name: str
    price: int
    point: float | None
    description: str | None
    bookmaker_key: str
    last_update: datetime | None


@dataclass(slots=True)
class MarketDecomposition:
    """Summary lines for the three core markets plus every outcome as a row."""

    bookmaker_key: str
    last_update: datetime | None
    moneyline: Moneyline = field(default_factory=Moneyline)
    spread: Spread = field(default_factory=Spread)
    totals: Totals = field(default_factory=Totals)
    outcomes: list[OutcomeRow] = field(default_factory=list)

    def to_betting_line_values(self) -> dict:
        """Column values for the (game, bookmaker) BettingLine row."""
        return {
            "spread_home": self.spread.home_point,
            "spread_away": self.spread.away_point,
            "spread_home_odds": self.spread.home_price,
            "spread_away_odds": self.spread.away_price,
            "moneyline_home": self.moneyline.home,
            "moneyline_away": self.moneyline.away,
            "total_points": self.totals.point,
            "over_odds": self.totals.over_price,
            "under_odds": self.totals.under_price,
        }


def _moneyline(market: Market | None, event: OddsEvent) -> Moneyline:
    if market is None:
        return Moneyline()
    home = market.find_outcome(event.home_team)
    away = market.find_outcome(event.away_team)
    return Moneyline(
        home=home.price if home is not None else None,
        away=away.price if away is not None else None,
    )


def _spread(market: Market | None, event: OddsEvent) -> Spread:
    if market is None:
        return Spread()
    home = market.find_outcome(event.home_team)
    away = market.find_outcome(event.away_team)
    return Spread(
        home_point=home.point if home is not None else None,
        away_point=away.point if away is not None else None,
        home_price=home.price if home is not None else None,
        away_price=away.price if away is not None else None,
    )


def _totals(market: Market | None) -> Totals:
    if market is None:
        return Totals()
    over = market.find_outcome("Over")
    under = market.find_outcome("Under")

    point = None
    if over is not None and over.point is not None:
        point = over.point
    elif under is not None:
        point = under.point

    return Totals(
        point=point,
        over_price=over.price if over is not None else None,
        under_price=under.price if under is not None else None,
    )


def decompose(event: OddsEvent, bookmaker: Bookmaker) -> MarketDecomposition:
    """
    Split a bookmaker's markets for an event.

    ``h2h`` and ``spreads`` outcomes are matched to the event's home and away
    team names exactly; ``totals`` uses ``Over`` / ``Under``. Every outcome of
    every market also becomes an OutcomeRow. Anything missing stays ``None``.
    """
    outcomes = [
        OutcomeRow(
            market_key=market.key,
            outcome_name=outcome.label,
            price=outcome.price,
            point=outcome.point,
            description=outcome.description,
            bookmaker_key=bookmaker.key,
            last_update=market.last_update or bookmaker.last_update,
        )
        for market in bookmaker.markets
        for outcome in market.outcomes
    ]

    return MarketDecomposition(
        bookmaker_key=bookmaker.key,
        last_update=bookmaker.last_update,
        moneyline=_moneyline(bookmaker.market("h2h"), event),
        spread=_spread(bookmaker.market("spreads"), event),
        totals=_totals(bookmaker.market("totals")),
        outcomes=outcomes,
    )
