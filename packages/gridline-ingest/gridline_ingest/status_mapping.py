"""Stats provider status vocabularies mapped onto internal codes."""

from __future__ import annotations

from gridline_core.models import GameStatus, InjuryStatus

GAME_STATUS_MAP: dict[str, GameStatus] = {
    "ns": GameStatus.NOT_STARTED,
    "live": GameStatus.IN_PROGRESS,
    "1q": GameStatus.IN_PROGRESS,
    "2q": GameStatus.IN_PROGRESS,
    "3q": GameStatus.IN_PROGRESS,
    "4q": GameStatus.IN_PROGRESS,
    "ht": GameStatus.IN_PROGRESS,
    "ot": GameStatus.IN_PROGRESS,
    "ft": GameStatus.FINAL,
    "aot": GameStatus.FINAL,
    "ppd": GameStatus.POSTPONED,
    "canc": GameStatus.CANCELLED,
}

INJURY_STATUS_MAP: dict[str, InjuryStatus] = {
    "out": InjuryStatus.OUT,
    "injured reserve": InjuryStatus.OUT,
    "doubtful": InjuryStatus.DOUBTFUL,
    "questionable": InjuryStatus.QUESTIONABLE,
    "probable": InjuryStatus.PROBABLE,
}


def map_game_status(short: str) -> str:
    """
    Map a provider short status to the internal code.

    Unknown codes pass through uppercased so nothing is silently lost.

    Example:
        >>> map_game_status("3Q")
        'IP'
        >>> map_game_status("susp")
        'SUSP'
    """
    key = short.strip().lower()
    mapped = GAME_STATUS_MAP.get(key)
    return mapped.value if mapped is not None else short.strip().upper()


def map_injury_status(status: str) -> InjuryStatus:
    """Map a provider injury status; unknown values default to QUESTIONABLE."""
    return INJURY_STATUS_MAP.get(status.strip().lower(), InjuryStatus.QUESTIONABLE)
