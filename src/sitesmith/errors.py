"""
Exception types shared by the parsing, workspace, export and publish modules.

Each exception carries a ``kind`` string so the pipeline layer can turn it into a
structured outcome without inspecting messages.
"""

from __future__ import annotations

from typing import Optional


class SitesmithError(RuntimeError):
    """Base class for every failure reported by an operation."""

    kind = "error"


class InvalidInputError(SitesmithError):
    """Raised when required text input is missing, empty, or unsafe."""

    kind = "invalid_input"


class GenerationError(SitesmithError):
    """
    Raised when the generation service fails or returns unusable output.

    Attributes:
        retryable: True when the failure was a timeout or another transient error.
    """

    kind = "upstream_generation_failure"

    def __init__(self, message: str, *, retryable: bool = False) -> None:
        super().__init__(message)
        self.retryable = retryable


class NoFilesParsedError(SitesmithError):
    """Raised when a generation result contains no recognizable file sections."""

    kind = "parse_produced_no_files"


class WorkspaceError(SitesmithError):
    """Raised for filesystem failures while clearing, writing, or reading the workspace."""

    kind = "workspace_io_failure"


class ArchiveError(SitesmithError):
    """Raised when the zip archive cannot be produced."""

    kind = "archive_failure"


class StorageError(SitesmithError):
    """
    Raised when object storage calls fail.

    Attributes:
        stage: One of "container", "upload" or "registry". A "registry" failure
            after a successful upload means the site is published but unregistered.
        version_id: Deployment id allocated before the failure, when known.
    """

    kind = "storage_failure"

    def __init__(self, message: str, *, stage: str, version_id: Optional[str] = None) -> None:
        super().__init__(message)
        self.stage = stage
        self.version_id = version_id
