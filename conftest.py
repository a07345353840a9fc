"""Pytest configuration: point the data directory at a temp dir before any basegameid imports."""

import os
import tempfile

import pytest

# Set before basegameid.config is used so a default store never touches the real user data dir
_tmp = tempfile.mkdtemp(prefix="basegameid_test_")
os.environ.setdefault("BASEGAMEID_DATA_DIR", _tmp)


@pytest.fixture
def snapshot_path(tmp_path):
    """Per-test snapshot location (file does not exist yet)."""
    return tmp_path / "db" / "basegamefileidentificationservice.json"


@pytest.fixture
def store(snapshot_path):
    """Store on a fresh snapshot path; hashing must be given explicitly via md5 or monkeypatch."""
    from basegameid.store import BasegameFileStore

    return BasegameFileStore(snapshot_path=snapshot_path)
