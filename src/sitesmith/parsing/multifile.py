"""
Split a delimited multi-file blob into named file contents.

The generation model is asked to emit every file behind a marker line::

    --- index.html ---
    <!DOCTYPE html>
    ...
    --- style.css ---
    body { ... }

The parser is a small line-oriented state machine: it seeks a marker line,
captures the filename, then accumulates body lines until the next marker or
the end of the text. Anything before the first marker is ignored.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Dict, Iterator, List, Mapping, Optional

logger = logging.getLogger(__name__)

FILENAME_PATTERN = r"[.-]*\w[\w.-]*"
_MARKER_RE = re.compile(rf"^---\s*({FILENAME_PATTERN})\s*---$")
_FENCE_OPEN_RE = re.compile(r"^```[\w+#.-]*[ \t]*\n?")
_FENCE_CLOSE_RE = re.compile(r"\n?```$")


@dataclass(frozen=True)
class GeneratedFile:
    """One file produced by the generation model."""

    filename: str
    content: str


def match_marker(line: str) -> Optional[str]:
    """Return the filename when ``line`` is a section marker, else None."""
    match = _MARKER_RE.match(line.strip())
    if match is None:
        return None
    return match.group(1)


def strip_code_fence(body: str) -> str:
    """
    Trim a section body and unwrap an optional fenced code block.

    Models are told not to wrap files in ``` fences but often do anyway, with or
    without a language tag after the opening fence.
    """
    text = body.strip()
    if not text.startswith("```"):
        return text
    text = _FENCE_OPEN_RE.sub("", text, count=1)
    text = _FENCE_CLOSE_RE.sub("", text, count=1)
    return text.strip()


def iter_generated_files(text: str) -> Iterator[GeneratedFile]:
    """
    Yield every section of ``text`` in order of appearance.

    Duplicate filenames are yielded each time they occur; callers that want a
    mapping should use :func:`parse_files`.
    """
    current: Optional[str] = None
    body: List[str] = []

    for line in (text or "").splitlines():
        filename = match_marker(line)
        if filename is None:
            if current is not None:
                body.append(line)
            continue
        if current is not None:
            yield GeneratedFile(current, strip_code_fence("\n".join(body)))
        current = filename
        body = []

    if current is not None:
        yield GeneratedFile(current, strip_code_fence("\n".join(body)))


def parse_files(text: str) -> Dict[str, str]:
    """
    Parse a delimited multi-file blob into a ``filename -> content`` mapping.

    Later sections replace earlier ones with the same filename, while the
    mapping keeps the order in which each filename was first introduced.
    Text without any marker yields an empty mapping.

    Args:
        text: Raw output of the generation model.

    Returns:
        Ordered mapping of filename to trimmed file content.
    """
    files: Dict[str, str] = {}
    for generated in iter_generated_files(text):
        if generated.filename in files:
            logger.debug("Section %s repeated; keeping the later content", generated.filename)
        if not generated.content:
            logger.debug("Section %s has an empty body", generated.filename)
        files[generated.filename] = generated.content
    logger.debug("Parsed %d file section(s)", len(files))
    return files


def render_files(files: Mapping[str, str]) -> str:
    """Render a ``filename -> content`` mapping in the delimited marker format."""
    sections = [f"--- {filename} ---\n{content}" for filename, content in files.items()]
    return "\n".join(sections)
