"""
Parsing helpers for the delimited multi-file output of the generation model.
"""

from .multifile import (
    FILENAME_PATTERN,
    GeneratedFile,
    iter_generated_files,
    match_marker,
    parse_files,
    render_files,
    strip_code_fence,
)

__all__ = [
    "FILENAME_PATTERN",
    "GeneratedFile",
    "iter_generated_files",
    "match_marker",
    "parse_files",
    "render_files",
    "strip_code_fence",
]
