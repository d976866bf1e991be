"""
Pipeline executor ties together the generation service, parser, workspace,
archive export and publisher.

Each operation returns an Outcome instead of raising, so callers (the CLI or an
HTTP layer) can report success or the failing error kind uniformly.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, BinaryIO, Dict, List, Optional, Union

from ..config import ConfigError, SitesmithConfig, get_secrets
from ..errors import ArchiveError, InvalidInputError, NoFilesParsedError, SitesmithError, WorkspaceError
from ..export import ARCHIVE_FILENAME, write_archive
from ..llm import (
    build_intent_system_prompt,
    build_intent_user_prompt,
    build_site_system_prompt,
    build_site_user_prompt,
    generate_text,
    resolve_llm_settings,
)
from ..parsing import parse_files
from ..publish import BlobStore, deploy_workspace, list_sites
from ..util import atomic_output
from ..workspace import Workspace

logger = logging.getLogger(__name__)


@dataclass
class Outcome:
    """
    Structured result of one operation.

    Attributes:
        success: Whether the operation completed.
        message: Human-readable summary.
        kind: Error kind when the operation failed (see ``sitesmith.errors``).
        intent: Elaborated intent (intent detection).
        files: Filenames produced, edited, or uploaded.
        path: Local artifact (archive) or edited file.
        url: Public URL of a deployment.
        sites: Registry records, as ``{"id", "url"}`` dicts.
        retryable: True when a failed call may succeed if repeated.
        stage: Storage stage that failed ("container", "upload", "registry").
    """
    success: bool
    message: str
    kind: Optional[str] = None
    intent: Optional[str] = None
    files: List[str] = field(default_factory=list)
    path: Optional[Path] = None
    url: Optional[str] = None
    sites: List[Dict[str, str]] = field(default_factory=list)
    retryable: bool = False
    stage: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """JSON-friendly representation without empty fields."""
        payload = asdict(self)
        if self.path is not None:
            payload["path"] = str(self.path)
        return {key: value for key, value in payload.items() if value not in (None, [], False) or key == "success"}


def _failure(exc: Exception, message: Optional[str] = None) -> Outcome:
    if isinstance(exc, ConfigError):
        kind = InvalidInputError.kind
    else:
        kind = getattr(exc, "kind", SitesmithError.kind)
    return Outcome(
        success=False,
        message=message or str(exc),
        kind=kind,
        retryable=getattr(exc, "retryable", False),
        stage=getattr(exc, "stage", None),
    )


def _require_text(value: Optional[str], message: str) -> str:
    if value is None or not value.strip():
        raise InvalidInputError(message)
    return value


def resolve_workspace(config: SitesmithConfig, override: Optional[Path] = None) -> Workspace:
    """Return the workspace handle for this invocation."""
    return Workspace(override or config.workspace_dir)


def detect_intent(text: Optional[str], config: SitesmithConfig) -> Outcome:
    """
    Turn a raw (spoken, possibly non-English) request into an elaborated intent.
    """
    try:
        text = _require_text(text, f"{config.source_language} text is required")
        settings = resolve_llm_settings(
            config.intent_llm,
            temperature=config.intent_temperature,
            max_tokens=config.intent_max_tokens,
            timeout_seconds=config.llm_timeout_seconds,
        )
        intent = generate_text(
            build_intent_user_prompt(text, config.source_language),
            build_intent_system_prompt(config.source_language),
            settings,
        )
    except (SitesmithError, ConfigError) as exc:
        logger.error("Intent detection failed: %s", exc)
        return _failure(exc)
    logger.info("Input text: %s", text)
    logger.info("Intent: %s", intent)
    return Outcome(success=True, message="Intent detected", intent=intent)


def generate_site(intent: Optional[str], config: SitesmithConfig, workspace: Optional[Workspace] = None) -> Outcome:
    """
    Generate the site files for ``intent`` and replace the workspace with them.

    The workspace is only touched once the model output parsed into at least
    one file.
    """
    workspace = workspace or resolve_workspace(config)
    try:
        intent = _require_text(intent, "Intent is required to generate code.")
        settings = resolve_llm_settings(
            config.site_llm,
            temperature=config.site_temperature,
            max_tokens=config.site_max_tokens,
            timeout_seconds=config.llm_timeout_seconds,
        )
        output = generate_text(
            build_site_user_prompt(intent, config.site_files),
            build_site_system_prompt(),
            settings,
        )
        logger.debug("Generation output:\n%s", output)
        files = parse_files(output)
        if not files:
            raise NoFilesParsedError("The model output contained no file sections; workspace left unchanged.")
        written = workspace.materialize(files)
    except (SitesmithError, ConfigError) as exc:
        logger.error("Code generation failed: %s", exc)
        return _failure(exc)
    missing = [name for name in config.site_files if name not in files]
    if missing:
        logger.warning("Generated site is missing requested file(s): %s", ", ".join(missing))
    return Outcome(success=True, message="Code generated and saved", files=written, path=workspace.root)


def build_site(text: Optional[str], config: SitesmithConfig, workspace: Optional[Workspace] = None) -> Outcome:
    """Run intent detection followed by site generation."""
    intent_outcome = detect_intent(text, config)
    if not intent_outcome.success:
        return intent_outcome
    outcome = generate_site(intent_outcome.intent, config, workspace)
    outcome.intent = intent_outcome.intent
    return outcome


def save_edit(filename: Optional[str], content: Optional[str], workspace: Workspace) -> Outcome:
    """Write one file into the existing workspace."""
    try:
        if not filename or not content:
            raise InvalidInputError("Filename and content required")
        target = workspace.write_file(filename, content)
    except SitesmithError as exc:
        logger.error("Saving %s failed: %s", filename, exc)
        return _failure(exc, message=f"Failed to save edits: {exc}")
    return Outcome(success=True, message="Edits saved successfully!", files=[filename], path=target)


def export_archive(workspace: Workspace, destination: Union[Path, str, BinaryIO, None] = None) -> Outcome:
    """
    Write the workspace archive to a path (default ``generated-site.zip``) or stream.

    A path is only replaced once the whole archive is written; a failed export
    leaves any previous file in place.
    """
    if not workspace.exists():
        return Outcome(
            success=False,
            message=f"Workspace {workspace.root} does not exist; nothing to archive.",
            kind=WorkspaceError.kind,
        )
    target = destination if destination is not None else Path(ARCHIVE_FILENAME)
    files = workspace.list_files()
    try:
        if isinstance(target, (str, Path)):
            path = Path(target).expanduser().resolve()
            with atomic_output(path) as handle:
                size = write_archive(workspace, handle)
        else:
            path = None
            size = write_archive(workspace, target)
    except OSError as exc:
        logger.error("Archive error: %s", exc)
        return Outcome(success=False, message=f"Could not create archive: {exc}", kind=ArchiveError.kind)
    except SitesmithError as exc:
        logger.error("Archive error: %s", exc)
        return _failure(exc)
    logger.info("Archive of %d file(s), %d bytes, written to %s", len(files), size, path or "stream")
    return Outcome(success=True, message=f"Archive created ({size} bytes)", files=files, path=path)


def _build_store(config: SitesmithConfig) -> BlobStore:
    secrets = get_secrets()
    if not secrets.storage_connection_string:
        raise ConfigError("AZURE_STORAGE_CONNECTION_STRING is required to deploy.")
    return BlobStore.from_connection_string(
        secrets.storage_connection_string,
        config.container,
        timeout_seconds=config.storage_timeout_seconds,
    )


def _public_base_url(config: SitesmithConfig) -> str:
    base_url = config.public_base_url or get_secrets().static_site_url
    if not base_url:
        raise ConfigError("Set public_base_url in the config or STATIC_SITE_URL in the environment.")
    return base_url


def deploy(config: SitesmithConfig, workspace: Optional[Workspace] = None, store: Optional[BlobStore] = None) -> Outcome:
    """Publish the workspace and append it to the site registry."""
    workspace = workspace or resolve_workspace(config)
    try:
        base_url = _public_base_url(config)
        store = store or _build_store(config)
        result = deploy_workspace(
            workspace,
            store,
            base_url,
            asset_max_age=config.asset_max_age_seconds,
            registry_retries=config.registry_retries,
        )
    except (SitesmithError, ConfigError) as exc:
        logger.error("Deploy error: %s", exc)
        outcome = _failure(exc, message=f"Failed to deploy site: {exc}")
        if getattr(exc, "stage", None) == "registry":
            outcome.message = f"Site published but not registered: {exc}"
        return outcome
    return Outcome(success=True, message="Website deployed successfully!", url=result.url, files=result.files)


def list_deployments(config: SitesmithConfig, store: Optional[BlobStore] = None) -> Outcome:
    """Read the site registry."""
    try:
        store = store or _build_store(config)
        registry = list_sites(store)
    except (SitesmithError, ConfigError) as exc:
        logger.error("Unable to list deployments: %s", exc)
        return _failure(exc)
    return Outcome(
        success=True,
        message=f"{len(registry)} deployment(s)",
        sites=[record.model_dump() for record in registry],
    )
