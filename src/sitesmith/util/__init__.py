"""
Shared utility helpers for filesystem access and timestamps.
"""

from .filesystem import (
    atomic_output,
    atomic_write_bytes,
    file_lock,
    lock_path_for,
    remove_tree,
    write_text_file,
)
from .time import epoch_millis, utc_now

__all__ = [
    "atomic_output",
    "atomic_write_bytes",
    "file_lock",
    "lock_path_for",
    "remove_tree",
    "write_text_file",
    "epoch_millis",
    "utc_now",
]
