"""Pydantic models for identification records and the snapshot document."""

from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, TypeAdapter, field_validator

# Fields that locate a record; implied by its position once stored
IDENTITY_FIELDS = ("game", "file")


class BasegameFileRecord(BaseModel):
    """
    One known variant of a game file: content hash plus descriptive metadata.
    Unknown metadata keys are kept so snapshots written by newer tools survive a round-trip.
    The hash is canonicalized to trimmed lower-case hex on construction, so "AAA" is stored
    and compared as "aaa".
    """

    model_config = ConfigDict(frozen=True, extra="allow")

    hash: str
    size: Optional[int] = None
    source: Optional[str] = None  # display name of where this file came from (e.g. "Vanilla", mod name)

    @field_validator("hash", mode="before")
    @classmethod
    def normalize_hash(cls, v):
        if not isinstance(v, str) or not v.strip():
            raise ValueError("hash must be a non-empty string")
        return v.strip().lower()

    def has_identity(self) -> bool:
        """True if the record still carries a game or file field."""
        data = self.model_dump()
        return any(data.get(k) is not None for k in IDENTITY_FIELDS)

    def to_stored(self) -> "BasegameFileRecord":
        """Copy of this record without game/file, as it is kept inside the database."""
        data = self.model_dump()
        for key in IDENTITY_FIELDS:
            data.pop(key, None)
        return BasegameFileRecord.model_validate(data)


class IdentifiedFileRecord(BasegameFileRecord):
    """A record as reported by a scan: also says which game and relative file it belongs to."""

    game: str
    file: str

    @field_validator("game", mode="before")
    @classmethod
    def game_to_str(cls, v):
        return str(v)


# game key -> relative path -> known records
GameDatabase = Dict[str, List[BasegameFileRecord]]
RootDatabase = Dict[str, GameDatabase]

snapshot_adapter: TypeAdapter = TypeAdapter(RootDatabase)
