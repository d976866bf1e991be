"""
Stream the workspace as a zip archive.
"""

from __future__ import annotations

import io
import logging
import zipfile
from pathlib import Path
from typing import BinaryIO, Iterator, List

from ..errors import ArchiveError
from ..workspace import Workspace

logger = logging.getLogger(__name__)

ARCHIVE_FILENAME = "generated-site.zip"
DEFAULT_COMPRESSLEVEL = 9


class _ChunkSink(io.RawIOBase):
    """Write-only, unseekable buffer drained after every archive entry."""

    def __init__(self) -> None:
        super().__init__()
        self._chunks: List[bytes] = []

    def writable(self) -> bool:
        return True

    def write(self, data) -> int:
        self._chunks.append(bytes(data))
        return len(data)

    def drain(self) -> bytes:
        data = b"".join(self._chunks)
        self._chunks.clear()
        return data


def _archive_entries(root: Path) -> List[Path]:
    return sorted(path for path in root.rglob("*") if path.is_file())


def iter_archive(workspace: Workspace, *, compresslevel: int = DEFAULT_COMPRESSLEVEL) -> Iterator[bytes]:
    """
    Yield a deflate-compressed zip of the workspace chunk by chunk.

    Entries are named relative to the workspace root. The archive is built from
    a snapshot of the workspace and emitted after each entry, so the complete
    archive is never held in memory.

    Raises:
        WorkspaceError: If the workspace does not exist (before any byte is yielded).
        ArchiveError: If building the archive fails; bytes already yielded are
            not retracted.
    """
    with workspace.snapshot() as root:
        sink = _ChunkSink()
        entries = 0
        try:
            with zipfile.ZipFile(
                sink,
                mode="w",
                compression=zipfile.ZIP_DEFLATED,
                compresslevel=compresslevel,
            ) as archive:
                for path in _archive_entries(root):
                    archive.write(path, arcname=path.relative_to(root).as_posix())
                    entries += 1
                    chunk = sink.drain()
                    if chunk:
                        yield chunk
        except (OSError, ValueError, zipfile.LargeZipFile) as exc:
            logger.error("Archive error for %s: %s", workspace.root, exc)
            raise ArchiveError(f"Could not create archive: {exc}") from exc
        tail = sink.drain()
        if tail:
            yield tail
        logger.info("Archived %d file(s) from %s", entries, workspace.root)


def write_archive(
    workspace: Workspace,
    stream: BinaryIO,
    *,
    compresslevel: int = DEFAULT_COMPRESSLEVEL,
) -> int:
    """
    Write the workspace archive into a writable binary stream.

    The stream does not need to be seekable (sockets, pipes, HTTP responses).

    Returns:
        Number of bytes written.
    """
    written = 0
    for chunk in iter_archive(workspace, compresslevel=compresslevel):
        try:
            stream.write(chunk)
        except OSError as exc:
            raise ArchiveError(f"Could not write archive stream: {exc}") from exc
        written += len(chunk)
    return written
