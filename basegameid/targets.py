"""Game installation targets and relative path normalization."""

import re
from pathlib import Path
from typing import List, Union

from pydantic import BaseModel, ConfigDict, field_validator

from basegameid.games import MEGame, resolve_game

_SEPARATORS = re.compile(r"[\\/]+")


def _split(path: Union[str, Path]) -> List[str]:
    """Path segments, accepting both separators; empty segments dropped."""
    return [part for part in _SEPARATORS.split(str(path)) if part]


def normalize_relative_path(path: Union[str, Path]) -> str:
    """
    Canonical form of a path relative to an installation root: backslash separators,
    no leading/trailing separator, upper case. Game file systems are case-insensitive,
    so two paths differing only in case map to the same key.
    """
    return "\\".join(_split(path)).upper()


class GameTarget(BaseModel):
    """An installed game: which game it is and where its root folder is."""

    model_config = ConfigDict(frozen=True)

    game: MEGame
    target_path: str

    @field_validator("game", mode="before")
    @classmethod
    def resolve_game_identifier(cls, v):
        return resolve_game(v)

    @field_validator("target_path", mode="before")
    @classmethod
    def path_to_str(cls, v):
        return str(v)

    def relative_path(self, full_path: Union[str, Path]) -> str:
        """
        Path of full_path relative to the installation root (root and its separator removed).
        Raises ValueError if full_path is not inside the root.
        """
        root_parts = _split(self.target_path)
        parts = _split(full_path)
        head = parts[: len(root_parts)]
        if len(parts) <= len(root_parts) or [p.casefold() for p in head] != [p.casefold() for p in root_parts]:
            raise ValueError(f"{full_path} is not inside {self.target_path}")
        return "\\".join(parts[len(root_parts):])
