"""
Archive export of the current workspace.
"""

from .archive import ARCHIVE_FILENAME, DEFAULT_COMPRESSLEVEL, iter_archive, write_archive

__all__ = ["ARCHIVE_FILENAME", "DEFAULT_COMPRESSLEVEL", "iter_archive", "write_archive"]
