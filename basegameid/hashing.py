"""Content hashing of installed files. Hash is MD5 of file body (lowercase hex)."""

import hashlib
import logging
from pathlib import Path
from typing import Union

log = logging.getLogger(__name__)

# 256 KB reads keep memory flat for multi-GB game archives
CHUNK_SIZE = 256 * 1024


def compute_hash(body: bytes) -> str:
    """MD5 hex digest of a byte string."""
    return hashlib.md5(body).hexdigest()


def calculate_hash(path: Union[str, Path]) -> str:
    """MD5 hex digest of a file, read in chunks. Raises OSError if the file cannot be read."""
    md5 = hashlib.md5()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(CHUNK_SIZE), b""):
            md5.update(chunk)
    digest = md5.hexdigest()
    log.debug("Hashed %s: %s", path, digest)
    return digest


def file_size(path: Union[str, Path]) -> int:
    """Size of a file in bytes."""
    return Path(path).stat().st_size
