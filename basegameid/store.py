"""Basegame file identification database: which installed game files are known, by path and hash.

One BasegameFileStore owns the whole database (game key -> relative path -> records).
It is loaded lazily from a JSON snapshot on first use and written back in full whenever
a mutation changes it. Construct one per process and pass it to whatever needs it.

Robustness principles:
- A missing snapshot is a normal first run; a corrupt one is logged and replaced by a
  blank database. Neither ever raises to the caller.
- Failing to write the snapshot is logged and swallowed. Memory keeps the change and the
  next successful commit rewrites everything, so the file catches up.
- Every mutation (load, add, purge, commit) runs under one lock for its whole
  read-modify-write-then-persist sequence.
"""

import logging
import os
import threading
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Union

from pydantic import ValidationError

from basegameid.config import get_settings, get_snapshot_path
from basegameid.games import KNOWN_GAME_KEYS, LAUNCHER_ID, MEGame, UnknownGameError, resolve_game_key
from basegameid.hashing import calculate_hash
from basegameid.models import (
    BasegameFileRecord,
    GameDatabase,
    IdentifiedFileRecord,
    RootDatabase,
    snapshot_adapter,
)
from basegameid.targets import GameTarget, normalize_relative_path

log = logging.getLogger(__name__)

SERVICE_NAME = "Basegame File Identification Service"

# (path) -> content hash; swapped out in tests
HashFunction = Callable[[Union[str, Path]], str]
GameResolver = Callable[[str], str]


def blank_database() -> RootDatabase:
    """One empty game database per known game."""
    return {key: {} for key in KNOWN_GAME_KEYS}


def _game_key(raw: Union[str, int, MEGame]) -> str:
    """Database key for a game: known identifiers resolve to their canonical key, anything else is used as-is."""
    try:
        return resolve_game_key(raw)
    except UnknownGameError:
        return str(raw)



def _default_game_resolver(raw: str) -> str:
    """Raw game identifier of an incoming record -> database key. "0" is the LE launcher."""
    if raw == LAUNCHER_ID:
        return MEGame.LELAUNCHER.value
    return resolve_game_key(raw)


class BasegameFileStore:
    """
    Process-wide database of recognized basegame files.

    snapshot_path, hash_file and resolve_game default to the real collaborators
    (configured snapshot location, MD5 of the file, game-number lookup).
    """

    def __init__(
        self,
        snapshot_path: Optional[Path] = None,
        hash_file: Optional[HashFunction] = None,
        resolve_game: Optional[GameResolver] = None,
        pretty: Optional[bool] = None,
    ) -> None:
        settings = get_settings()
        self._snapshot_path = Path(snapshot_path) if snapshot_path else get_snapshot_path(settings)
        self._hash_file = hash_file or calculate_hash
        self._resolve_game = resolve_game or _default_game_resolver
        self._pretty = settings.pretty_snapshot if pretty is None else pretty
        self._lock = threading.Lock()
        self._db: Optional[RootDatabase] = None
        self.service_loaded = False

    @property
    def snapshot_path(self) -> Path:
        return self._snapshot_path

    @property
    def is_loaded(self) -> bool:
        return self._db is not None

    # --- Loading ---

    def load_service(self, data: object = None) -> bool:
        """Service-loader entry point. This service takes no data; the payload is ignored."""
        self.ensure_loaded()
        self.service_loaded = True
        return True

    def ensure_loaded(self) -> None:
        """Load the database on first use. No I/O once loaded."""
        if self._db is not None:
            return
        with self._lock:
            self._ensure_loaded_locked()

    def reload(self) -> None:
        """Discard in-memory state and load the snapshot again."""
        with self._lock:
            self._db = None
            self._ensure_loaded_locked()

    def reset(self) -> None:
        """Drop in-memory state; the next operation loads from the snapshot."""
        with self._lock:
            self._db = None
            self.service_loaded = False

    def _ensure_loaded_locked(self) -> None:
        if self._db is None:
            self._db = self._read_snapshot()

    def _read_snapshot(self) -> RootDatabase:
        """Snapshot contents, or a blank database if missing or unreadable."""
        path = self._snapshot_path
        if not path.exists():
            log.info("Loaded blank local %s", SERVICE_NAME)
            return blank_database()
        try:
            raw = snapshot_adapter.validate_json(path.read_bytes())
        except (ValidationError, OSError) as e:
            log.error("Error loading local %s from %s: %s", SERVICE_NAME, path, e)
            return blank_database()
        db = self._normalize(raw)
        log.info("Loaded local %s (%d records)", SERVICE_NAME, sum(len(r) for g in db.values() for r in g.values()))
        return db

    @staticmethod
    def _normalize(raw: RootDatabase) -> RootDatabase:
        """Canonical path keys, hash-unique lists, identity fields stripped, every known game present."""
        db = blank_database()
        for raw_game, entries in raw.items():
            game = _game_key(raw_game)
            if game not in db:
                log.warning("Snapshot contains unknown game key %r; keeping it", game)
            game_db: GameDatabase = db.setdefault(game, {})
            for path, records in entries.items():
                existing = game_db.setdefault(normalize_relative_path(path), [])
                for record in records:
                    if record.has_identity():
                        record = record.to_stored()
                    if all(r.hash != record.hash for r in existing):
                        existing.append(record)
        return db

    # --- Persisting ---

    def commit(self) -> bool:
        """Write the whole database to the snapshot. Returns False (and logs) on failure."""
        with self._lock:
            self._ensure_loaded_locked()
            return self._commit_locked()

    def _commit_locked(self) -> bool:
        path = self._snapshot_path
        tmp = path.with_name(path.name + ".tmp")
        try:
            body = snapshot_adapter.dump_json(self._db, exclude_none=True, indent=2 if self._pretty else None)
            path.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_bytes(body)
            os.replace(tmp, path)
        except Exception as e:
            log.error("Error saving local %s to %s: %s", SERVICE_NAME, path, e)
            try:
                tmp.unlink(missing_ok=True)
            except OSError:
                pass
            return False
        log.info("Updated local %s", SERVICE_NAME)
        return True

    # --- Mutation ---

    def add_entries(self, entries: Iterable[IdentifiedFileRecord]) -> int:
        """
        Merge newly observed records. A record whose hash is already known for its
        game and path is skipped. The snapshot is written once, and only if something
        was added. Returns the number of records added.
        """
        with self._lock:
            self._ensure_loaded_locked()
            added = 0
            for entry in entries:
                try:
                    game_key = self._resolve_game(entry.game)
                except UnknownGameError as e:
                    log.warning("Skipping %s: %s", entry.file, e)
                    continue
                game_db = self._db.get(game_key)
                if game_db is None:
                    log.warning("Skipping %s: no database for game %s", entry.file, game_key)
                    continue
                known = game_db.setdefault(normalize_relative_path(entry.file), [])
                if all(r.hash != entry.hash for r in known):
                    known.append(entry.to_stored())
                    added += 1
            if added:
                log.debug("Added %d new records", added)
                self._commit_locked()
            else:
                log.info("Local %s did not need updating", SERVICE_NAME)
            return added

    def purge_game(self, game: Union[str, int, MEGame]) -> None:
        """Remove every record for a game and write the snapshot (even if it was already empty)."""
        key = _game_key(game)
        with self._lock:
            self._ensure_loaded_locked()
            if key not in self._db:
                log.warning("Not purging unknown game %s", key)
                return
            log.info("Clearing basegame file database entries for %s", key)
            self._db[key] = {}
            self._commit_locked()

    # --- Lookup ---

    def find_record(
        self,
        target: GameTarget,
        full_path: Union[str, Path],
        md5: Optional[str] = None,
    ) -> Optional[BasegameFileRecord]:
        """
        Record for an installed file, matched by relative path and content hash, or None.
        md5 skips hashing the file when the caller already has it.
        """
        try:
            relative = normalize_relative_path(target.relative_path(full_path))
        except ValueError:
            log.debug("%s is not inside %s", full_path, target.target_path)
            relative = None
        with self._lock:
            self._ensure_loaded_locked()
            if relative is None:
                return None
            game_db = self._db.get(target.game.value)
            candidates = list(game_db.get(relative, ())) if game_db is not None else []
        if not candidates:
            return None
        if md5 is None:
            try:
                md5 = self._hash_file(full_path)
            except OSError as e:
                log.warning("Could not hash %s: %s", full_path, e)
                return None
        md5 = md5.strip().lower()
        return next((r for r in candidates if r.hash == md5), None)

    def entries_for_game(self, game: Union[str, int, MEGame]) -> Dict[str, List[BasegameFileRecord]]:
        """All records for a game (relative path -> records). Empty if the game is unknown."""
        with self._lock:
            self._ensure_loaded_locked()
            game_db = self._db.get(_game_key(game))
            if game_db is None:
                return {}
            return {path: list(records) for path, records in game_db.items()}

    def games(self) -> List[str]:
        """Game keys present in the database."""
        with self._lock:
            self._ensure_loaded_locked()
            return list(self._db)

    def record_count(self, game: Union[str, int, MEGame, None] = None) -> int:
        """Number of records for one game, or for all games."""
        with self._lock:
            self._ensure_loaded_locked()
            if game is None:
                dbs = list(self._db.values())
            else:
                dbs = [self._db.get(_game_key(game), {})]
            return sum(len(records) for game_db in dbs for records in game_db.values())
