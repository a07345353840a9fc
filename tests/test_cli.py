"""Tests for the command-line tool: scan, identify, list, purge."""

import json
import logging
from pathlib import Path

import pytest

from basegameid import cli
from basegameid.store import BasegameFileStore


@pytest.fixture
def install(tmp_path: Path) -> Path:
    """A tiny game installation."""
    root = tmp_path / "Mass Effect 3"
    (root / "BioGame" / "CookedPCConsole").mkdir(parents=True)
    (root / "BioGame" / "CookedPCConsole" / "Foo.pcc").write_bytes(b"foo")
    (root / "Binaries").mkdir()
    (root / "Binaries" / "MassEffect3.exe").write_bytes(b"exe")
    return root


@pytest.fixture(autouse=True)
def _restore_logging():
    """setup_logging replaces handlers on the package logger; put them back."""
    logger = logging.getLogger("basegameid")
    handlers, level = list(logger.handlers), logger.level
    yield
    logger.handlers[:] = handlers
    logger.setLevel(level)


def _run(snapshot: Path, *args: str) -> int:
    return cli.main(["--snapshot", str(snapshot), *args])


def test_scan_records_files(capsys, tmp_path: Path, install: Path) -> None:
    """scan hashes every file and stores size and source."""
    snapshot = tmp_path / "db.json"
    assert _run(snapshot, "scan", "ME3", str(install), "--source", "Vanilla") == 0
    assert "2 new records" in capsys.readouterr().out
    data = json.loads(snapshot.read_text(encoding="utf-8"))
    assert data["ME3"]["BIOGAME\\COOKEDPCCONSOLE\\FOO.PCC"] == [
        {"hash": "acbd18db4cc2f85cedef654fccc4a4d8", "size": 3, "source": "Vanilla"},
    ]
    assert "BINARIES\\MASSEFFECT3.EXE" in data["ME3"]


def test_scan_twice_adds_nothing(capsys, tmp_path: Path, install: Path) -> None:
    """Rescanning an unchanged installation adds no records."""
    snapshot = tmp_path / "db.json"
    _run(snapshot, "scan", "3", str(install))
    capsys.readouterr()
    _run(snapshot, "scan", "3", str(install))
    assert "0 new records" in capsys.readouterr().out


def test_identify_known_and_modified(capsys, tmp_path: Path, install: Path) -> None:
    """identify reports the source of stock files and 'unknown' for changed ones."""
    snapshot = tmp_path / "db.json"
    _run(snapshot, "scan", "ME3", str(install), "--source", "Vanilla")
    foo = install / "BioGame" / "CookedPCConsole" / "Foo.pcc"
    exe = install / "Binaries" / "MassEffect3.exe"
    exe.write_bytes(b"modded")
    capsys.readouterr()
    assert _run(snapshot, "identify", "ME3", str(install), str(foo), str(exe)) == 0
    out = capsys.readouterr().out
    assert f"{foo}: Vanilla" in out
    assert f"{exe}: unknown" in out


def test_list_and_purge(capsys, tmp_path: Path, install: Path) -> None:
    """list prints records; purge empties the game but keeps the key."""
    snapshot = tmp_path / "db.json"
    _run(snapshot, "scan", "LE3", str(install))
    capsys.readouterr()
    _run(snapshot, "list", "LE3")
    out = capsys.readouterr().out
    assert "BIOGAME\\COOKEDPCCONSOLE\\FOO.PCC" in out
    assert "2 records for LE3" in out
    assert _run(snapshot, "purge", "le3") == 0
    store = BasegameFileStore(snapshot_path=snapshot)
    assert store.entries_for_game("LE3") == {}
    assert "LE3" in store.games()


def test_unknown_game_exit_code(capsys, tmp_path: Path) -> None:
    """Unknown game name exits with 1 and a message on stderr."""
    assert _run(tmp_path / "db.json", "list", "ME9") == 1
    assert "ME9" in capsys.readouterr().err


def test_usage_error_exits_2(tmp_path: Path) -> None:
    """Missing subcommand is an argparse usage error."""
    with pytest.raises(SystemExit) as exc:
        cli.main(["--snapshot", str(tmp_path / "db.json")])
    assert exc.value.code == 2


def test_setup_logging_levels(monkeypatch, tmp_path: Path) -> None:
    """Verbose forces DEBUG; log_file adds a file handler."""
    log_file = tmp_path / "basegameid.log"
    monkeypatch.setenv("BASEGAMEID_LOG_FILE", str(log_file))
    cli.setup_logging(verbose=True)
    logger = logging.getLogger("basegameid")
    assert logger.level == logging.DEBUG
    assert any(isinstance(h, logging.FileHandler) for h in logger.handlers)
    for h in logger.handlers:
        h.close()


def test_setup_logging_writes_log_file(monkeypatch, tmp_path: Path) -> None:
    """With log_file set, package log records end up in that file with the configured format."""
    log_file = tmp_path / "basegameid.log"
    monkeypatch.setenv("BASEGAMEID_LOG_FILE", str(log_file))
    monkeypatch.setenv("BASEGAMEID_LOG_LEVEL", "INFO")
    cli.setup_logging()
    logging.getLogger("basegameid.store").info("Updated local database")
    logging.getLogger("basegameid.store").debug("not at INFO")
    for h in logging.getLogger("basegameid").handlers:
        h.flush()
        h.close()
    text = log_file.read_text(encoding="utf-8")
    assert f"Logging to file {log_file}" in text
    assert "[INFO] basegameid.store: Updated local database" in text
    assert "not at INFO" not in text


def test_setup_logging_bad_log_file_falls_back_to_stderr(monkeypatch, tmp_path: Path) -> None:
    """An unopenable log file leaves only the stderr handler."""
    blocker = tmp_path / "blocker"
    blocker.write_text("", encoding="utf-8")
    monkeypatch.setenv("BASEGAMEID_LOG_FILE", str(blocker / "x.log"))
    cli.setup_logging()
    handlers = logging.getLogger("basegameid").handlers
    assert len(handlers) == 1
    assert not isinstance(handlers[0], logging.FileHandler)
