"""Command-line entry point: scan an installation into the database, identify files, list, purge."""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from basegameid.config import get_settings
from basegameid.games import UnknownGameError, resolve_game
from basegameid.hashing import calculate_hash, file_size
from basegameid.models import IdentifiedFileRecord
from basegameid.store import BasegameFileStore
from basegameid.targets import GameTarget

log = logging.getLogger(__name__)


def setup_logging(verbose: bool = False) -> None:
    """Configure logging from settings (stderr always; optional file)."""
    settings = get_settings()
    level = logging.DEBUG if verbose else getattr(logging, settings.log_level.upper(), logging.INFO)
    fmt = logging.Formatter(
        "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    root = logging.getLogger("basegameid")
    root.setLevel(level)
    root.handlers.clear()
    sh = logging.StreamHandler()
    sh.setLevel(level)
    sh.setFormatter(fmt)
    root.addHandler(sh)
    if settings.log_file and str(settings.log_file).strip():
        try:
            fh = logging.FileHandler(settings.log_file, encoding="utf-8")
            fh.setLevel(level)
            fh.setFormatter(fmt)
            root.addHandler(fh)
            root.info("Logging to file %s", settings.log_file)
        except OSError as e:
            root.warning("Could not open log file %s: %s", settings.log_file, e)


def _list_files(root: Path) -> List[Path]:
    """All files under root, sorted."""
    out: List[Path] = []
    try:
        for f in root.rglob("*"):
            if f.is_file():
                out.append(f)
    except OSError as e:
        log.warning("Could not list %s: %s", root, e)
    return sorted(out)


def cmd_scan(store: BasegameFileStore, args) -> int:
    target = GameTarget(game=resolve_game(args.game), target_path=Path(args.root).resolve())
    records = []
    for path in _list_files(Path(target.target_path)):
        try:
            records.append(IdentifiedFileRecord(
                game=target.game.value,
                file=target.relative_path(path),
                hash=calculate_hash(path),
                size=file_size(path),
                source=args.source,
            ))
        except OSError as e:
            log.warning("Skipping %s: %s", path, e)
    added = store.add_entries(records)
    print(f"Scanned {len(records)} files, {added} new records for {target.game}")
    return 0


def cmd_identify(store: BasegameFileStore, args) -> int:
    target = GameTarget(game=resolve_game(args.game), target_path=Path(args.root).resolve())
    for name in args.files:
        record = store.find_record(target, Path(name).resolve())
        source = (record.source or "known") if record else "unknown"
        print(f"{name}: {source}")
    return 0


def cmd_list(store: BasegameFileStore, args) -> int:
    game = resolve_game(args.game)
    entries = store.entries_for_game(game)
    for path in sorted(entries):
        for record in entries[path]:
            size = "" if record.size is None else record.size
            print(f"{path}\t{record.hash}\t{size}\t{record.source or ''}")
    print(f"{store.record_count(game)} records for {game}")
    return 0


def cmd_purge(store: BasegameFileStore, args) -> int:
    game = resolve_game(args.game)
    store.purge_game(game)
    print(f"Purged all records for {game}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="basegameid",
        description="Record and identify known basegame files of installed games.",
    )
    parser.add_argument("--snapshot", type=Path, help="Database file (default: platform data directory)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    scan = sub.add_parser("scan", help="Hash every file of an installation and record it")
    scan.add_argument("game", help="Game key or number (e.g. ME3, LE1, 0 for the launcher)")
    scan.add_argument("root", help="Installation root folder")
    scan.add_argument("--source", default="Vanilla", help="Source name stored with each record")
    scan.set_defaults(func=cmd_scan)

    identify = sub.add_parser("identify", help="Show the recorded source of installed files")
    identify.add_argument("game")
    identify.add_argument("root")
    identify.add_argument("files", nargs="+")
    identify.set_defaults(func=cmd_identify)

    list_cmd = sub.add_parser("list", help="List all records of a game")
    list_cmd.add_argument("game")
    list_cmd.set_defaults(func=cmd_list)

    purge = sub.add_parser("purge", help="Remove all records of a game")
    purge.add_argument("game")
    purge.set_defaults(func=cmd_purge)
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.verbose)
    store = BasegameFileStore(snapshot_path=args.snapshot)
    store.load_service()
    try:
        return args.func(store, args)
    except UnknownGameError as e:
        print(str(e), file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
