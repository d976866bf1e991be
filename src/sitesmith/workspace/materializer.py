"""
Materialize parsed files into the on-disk workspace.

A workspace is a flat directory holding the current generated project. Every
change to it (full replacement, single-file edit, snapshot copy) runs under a
file lock kept next to the directory so readers never observe a half-written
file set from another command.
"""

from __future__ import annotations

import logging
import re
import shutil
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Iterable, Iterator, List, Mapping

from ..errors import InvalidInputError, WorkspaceError
from ..parsing import FILENAME_PATTERN
from ..util import file_lock, remove_tree, write_text_file

logger = logging.getLogger(__name__)

DEFAULT_WORKSPACE_DIR = Path("generated-site")
_SAFE_FILENAME_RE = re.compile(FILENAME_PATTERN)


def validate_filename(name: str) -> str:
    """
    Return ``name`` when it is a safe flat filename, else raise InvalidInputError.

    Only word characters, dots and hyphens are allowed, and at least one word
    character is required. That rules out path separators, absolute paths,
    "." and "..", and names made only of dashes.
    """
    candidate = name or ""
    if not _SAFE_FILENAME_RE.fullmatch(candidate):
        raise InvalidInputError(f"Unsafe or empty filename: {name!r}")
    return candidate


def validate_filenames(names: Iterable[str]) -> List[str]:
    return [validate_filename(name) for name in names]


class Workspace:
    """
    Handle for one workspace directory.

    Attributes:
        root: Absolute path of the workspace directory.
    """

    def __init__(self, root: Path | str = DEFAULT_WORKSPACE_DIR) -> None:
        self.root = Path(root).expanduser().resolve()

    def __repr__(self) -> str:
        return f"Workspace({str(self.root)!r})"

    def exists(self) -> bool:
        return self.root.is_dir()

    def list_files(self) -> List[str]:
        """Return the sorted filenames currently in the workspace."""
        if not self.exists():
            return []
        return sorted(entry.name for entry in self.root.iterdir() if entry.is_file())

    def read_file(self, name: str) -> str:
        target = self.root / validate_filename(name)
        try:
            return target.read_text(encoding="utf-8")
        except OSError as exc:
            raise WorkspaceError(f"Unable to read {target}: {exc}") from exc

    def materialize(self, files: Mapping[str, str]) -> List[str]:
        """
        Replace the whole workspace with ``files``.

        Filenames are validated before anything is removed, so rejected input
        leaves the previous workspace intact. A write failure after the clear
        leaves a partial workspace and raises WorkspaceError.

        Args:
            files: Mapping of flat filename to text content.

        Returns:
            The filenames written, in mapping order.
        """
        names = validate_filenames(files.keys())
        with file_lock(self.root):
            try:
                removed = remove_tree(self.root)
                self.root.mkdir(parents=True)
                for name in names:
                    write_text_file(self.root / name, files[name])
            except OSError as exc:
                raise WorkspaceError(f"Failed to materialize workspace {self.root}: {exc}") from exc
        logger.info(
            "Materialized %d file(s) into %s%s",
            len(names),
            self.root,
            " (previous contents removed)" if removed else "",
        )
        return names

    def write_file(self, name: str, content: str) -> Path:
        """
        Create or overwrite a single file without touching the others.

        Raises:
            InvalidInputError: If ``name`` is not a safe flat filename.
            WorkspaceError: If the workspace does not exist or the write fails.
        """
        filename = validate_filename(name)
        with file_lock(self.root):
            if not self.exists():
                raise WorkspaceError(f"Workspace {self.root} does not exist; generate a site first.")
            try:
                target = write_text_file(self.root / filename, content)
            except OSError as exc:
                raise WorkspaceError(f"Failed to write {filename}: {exc}") from exc
        logger.info("Saved %s in %s", filename, self.root)
        return target

    @contextmanager
    def snapshot(self) -> Iterator[Path]:
        """
        Yield a private copy of the workspace taken under the workspace lock.

        Long-running readers (archive export, deployment) work from the copy so a
        concurrent materialization cannot mix old and new files into their output.
        """
        with tempfile.TemporaryDirectory(prefix="sitesmith-snapshot-") as tmp:
            copy_root = Path(tmp) / self.root.name
            with file_lock(self.root):
                if not self.exists():
                    raise WorkspaceError(f"Workspace {self.root} does not exist; generate a site first.")
                try:
                    shutil.copytree(self.root, copy_root)
                except (OSError, shutil.Error) as exc:
                    raise WorkspaceError(f"Failed to snapshot workspace {self.root}: {exc}") from exc
            logger.debug("Snapshot of %s taken at %s", self.root, copy_root)
            yield copy_root
