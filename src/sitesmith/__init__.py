"""
Core package for sitesmith: LLM-generated multi-file websites, exported and published.
"""

from importlib import metadata as _metadata

try:
    __version__ = _metadata.version("sitesmith")
except _metadata.PackageNotFoundError:  # pragma: no cover
    __version__ = "0.0.0"

__all__ = ["__version__"]
