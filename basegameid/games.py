"""Known games and resolution of raw game identifiers to canonical keys."""

from enum import Enum
from typing import Dict, Union


class UnknownGameError(ValueError):
    """Raised when a game identifier does not name a known game."""


class MEGame(str, Enum):
    """Canonical game keys used in the identification database."""

    ME1 = "ME1"
    ME2 = "ME2"
    ME3 = "ME3"
    LE1 = "LE1"
    LE2 = "LE2"
    LE3 = "LE3"
    LELAUNCHER = "LELauncher"

    def __str__(self) -> str:
        return self.value


# Raw identifier the installer uses for the Legendary Edition launcher
LAUNCHER_ID = "0"

# Numeric identifiers as reported by the installer (game number)
_GAME_NUMBERS: Dict[str, MEGame] = {
    LAUNCHER_ID: MEGame.LELAUNCHER,
    "1": MEGame.ME1,
    "2": MEGame.ME2,
    "3": MEGame.ME3,
    "4": MEGame.LE1,
    "5": MEGame.LE2,
    "6": MEGame.LE3,
}

_GAME_NAMES: Dict[str, MEGame] = {g.value.upper(): g for g in MEGame}

KNOWN_GAME_KEYS = tuple(g.value for g in MEGame)


def resolve_game(raw: Union[str, int, MEGame]) -> MEGame:
    """
    Resolve a raw game identifier to an MEGame.
    Accepts MEGame members, game numbers (int or str, "0" = launcher) and key names in any case.
    Raises UnknownGameError for anything else.
    """
    if isinstance(raw, MEGame):
        return raw
    if isinstance(raw, bool) or raw is None:
        raise UnknownGameError(f"Unknown game identifier: {raw!r}")
    token = str(raw).strip()
    game = _GAME_NUMBERS.get(token) or _GAME_NAMES.get(token.upper())
    if game is None:
        raise UnknownGameError(f"Unknown game identifier: {raw!r}")
    return game


def resolve_game_key(raw: Union[str, int, MEGame]) -> str:
    """Canonical database key for a raw game identifier."""
    return resolve_game(raw).value
