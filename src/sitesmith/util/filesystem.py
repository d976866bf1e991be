"""
Filesystem helpers shared by the workspace and export modules.
"""

from __future__ import annotations

import logging
import os
import shutil
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import BinaryIO, Iterator

from filelock import FileLock

logger = logging.getLogger(__name__)


def lock_path_for(path: Path | str) -> Path:
    """Return the sibling lock file used to serialize changes to ``path``."""
    target = Path(path).expanduser().resolve()
    return target.with_name(f"{target.name}.lock")


@contextmanager
def file_lock(path: Path | str) -> Iterator[None]:
    """
    Hold an inter-process lock guarding ``path``.

    The lock file lives next to the target, never inside it, so a directory can
    be removed and recreated while the lock is held.
    """
    lock_path = lock_path_for(path)
    lock_path.parent.mkdir(parents=True, exist_ok=True)
    with FileLock(str(lock_path)):
        yield


def remove_tree(path: Path | str) -> bool:
    """Recursively delete a directory; return False when it did not exist."""
    target = Path(path)
    if not target.exists():
        return False
    shutil.rmtree(target)
    logger.debug("Removed %s", target)
    return True


@contextmanager
def atomic_output(path: Path | str) -> Iterator[BinaryIO]:
    """
    Yield a binary handle on a temp file that replaces ``path`` on success.

    The temp file sits in the target directory. If the block raises, it is
    removed and an existing ``path`` is left untouched.
    """
    target = Path(path)
    fd, tmp_path = tempfile.mkstemp(prefix=f".{target.name}.", suffix=".tmp", dir=target.parent)
    try:
        with os.fdopen(fd, "wb") as handle:
            yield handle
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(tmp_path, target)
    finally:
        try:
            os.unlink(tmp_path)
        except FileNotFoundError:
            pass


def atomic_write_bytes(path: Path | str, data: bytes) -> Path:
    """Write bytes by staging a temp file in the same directory and renaming it."""
    with atomic_output(path) as handle:
        handle.write(data)
    return Path(path)


def write_text_file(path: Path | str, content: str, encoding: str = "utf-8") -> Path:
    """
    Atomically write text to a file whose parent directory already exists.
    """
    return atomic_write_bytes(path, content.encode(encoding))
