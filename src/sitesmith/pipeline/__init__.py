"""
High-level operations returning structured outcomes.
"""

from .executor import (
    Outcome,
    build_site,
    deploy,
    detect_intent,
    export_archive,
    generate_site,
    list_deployments,
    resolve_workspace,
    save_edit,
)

__all__ = [
    "Outcome",
    "build_site",
    "deploy",
    "detect_intent",
    "export_archive",
    "generate_site",
    "list_deployments",
    "resolve_workspace",
    "save_edit",
]
