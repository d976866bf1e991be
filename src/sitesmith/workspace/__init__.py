"""
Workspace handling: materializing parsed files, single-file edits and snapshots.
"""

from .materializer import DEFAULT_WORKSPACE_DIR, Workspace, validate_filename, validate_filenames

__all__ = ["DEFAULT_WORKSPACE_DIR", "Workspace", "validate_filename", "validate_filenames"]
