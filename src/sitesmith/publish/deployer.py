"""
Publish the workspace as a versioned static site and record it in the registry.
"""

from __future__ import annotations

import logging
import mimetypes
import secrets
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from ..errors import StorageError, WorkspaceError
from ..util import epoch_millis
from ..workspace import Workspace
from .registry import DeploymentRecord, SiteRegistry
from .storage import BlobStore, RegistryConflict

logger = logging.getLogger(__name__)

INDEX_FILENAME = "index.html"
DEFAULT_CONTENT_TYPE = "application/octet-stream"
DEFAULT_ASSET_MAX_AGE = 3600
DEFAULT_REGISTRY_RETRIES = 5


@dataclass
class DeploymentResult:
    """
    Outcome of one successful deployment.

    Attributes:
        record: Registry entry created for the deployment.
        files: Filenames uploaded under the deployment prefix.
        registry_size: Number of records in the registry after the append.
    """
    record: DeploymentRecord
    files: List[str] = field(default_factory=list)
    registry_size: int = 0

    @property
    def url(self) -> str:
        return self.record.url


def new_version_id(now: Optional[datetime] = None) -> str:
    """Return a time-ordered deployment id such as ``site-1760774400000-3fa9c2``."""
    return f"site-{epoch_millis(now)}-{secrets.token_hex(3)}"


def content_type_for(filename: str) -> str:
    guessed, _ = mimetypes.guess_type(filename)
    return guessed or DEFAULT_CONTENT_TYPE


def cache_control_for(filename: str, *, max_age: int = DEFAULT_ASSET_MAX_AGE) -> str:
    """
    The index page must always be revalidated; every other file lives under a
    unique version prefix and can be cached.
    """
    if filename == INDEX_FILENAME:
        return "no-cache"
    return f"public, max-age={max_age}"


def build_site_url(public_base_url: str, version_id: str) -> str:
    return f"{public_base_url.rstrip('/')}/{version_id}/{INDEX_FILENAME}"


def _snapshot_files(root: Path) -> List[Path]:
    return sorted(path for path in root.rglob("*") if path.is_file())


def upload_snapshot(
    store: BlobStore,
    root: Path,
    version_id: str,
    *,
    asset_max_age: int = DEFAULT_ASSET_MAX_AGE,
) -> List[str]:
    """Upload every file below ``root`` under ``<version_id>/``."""
    uploaded: List[str] = []
    for path in _snapshot_files(root):
        name = path.relative_to(root).as_posix()
        try:
            data = path.read_bytes()
        except OSError as exc:
            raise WorkspaceError(f"Unable to read {name} for upload: {exc}") from exc
        try:
            store.upload_file(
                f"{version_id}/{name}",
                data,
                content_type=content_type_for(name),
                cache_control=cache_control_for(name, max_age=asset_max_age),
            )
        except StorageError as exc:
            exc.version_id = version_id
            raise
        uploaded.append(name)
    return uploaded


def record_deployment(
    store: BlobStore,
    record: DeploymentRecord,
    *,
    retries: int = DEFAULT_REGISTRY_RETRIES,
) -> SiteRegistry:
    """
    Append ``record`` to the stored registry with an ETag-guarded write.

    When another deployment updates the registry between the read and the
    write, the registry is read again and the append retried.

    Raises:
        StorageError: stage "registry", when storage fails or every attempt
            conflicted. The files are published but not registered.
    """
    attempts = max(retries, 0) + 1
    for attempt in range(1, attempts + 1):
        snapshot = store.fetch_registry()
        updated = snapshot.registry.append(record)
        try:
            store.write_registry(updated, snapshot)
        except RegistryConflict as exc:
            logger.warning(
                "Registry changed while recording %s (attempt %d/%d): %s",
                record.id,
                attempt,
                attempts,
                exc,
            )
            continue
        return updated
    raise StorageError(
        f"Registry kept changing; {record.id} is published but not registered",
        stage="registry",
        version_id=record.id,
    )


def deploy_workspace(
    workspace: Workspace,
    store: BlobStore,
    public_base_url: str,
    *,
    asset_max_age: int = DEFAULT_ASSET_MAX_AGE,
    registry_retries: int = DEFAULT_REGISTRY_RETRIES,
) -> DeploymentResult:
    """
    Publish a snapshot of the workspace under a fresh version prefix.

    Steps: ensure the container, allocate a version id, upload every file, then
    append a record to the registry. Failures before the registry step leave the
    registry untouched; a registry failure after the upload leaves the files
    reachable only by their direct URL.

    Args:
        workspace: Workspace to publish.
        store: Target container wrapper.
        public_base_url: Base URL that serves the container publicly.

    Returns:
        A DeploymentResult holding the new registry record.
    """
    with workspace.snapshot() as root:
        if not _snapshot_files(root):
            raise WorkspaceError(f"Workspace {workspace.root} is empty; nothing to deploy.")

        store.ensure_container()
        version_id = new_version_id()
        logger.info("Deploying %s as %s to container %s", workspace.root, version_id, store.container_name)
        uploaded = upload_snapshot(store, root, version_id, asset_max_age=asset_max_age)

    record = DeploymentRecord(id=version_id, url=build_site_url(public_base_url, version_id))
    try:
        registry = record_deployment(store, record, retries=registry_retries)
    except StorageError as exc:
        exc.version_id = version_id
        logger.error("Deployment %s uploaded but not registered: %s", version_id, exc)
        raise
    logger.info("Deployed %d file(s) to %s", len(uploaded), record.url)
    return DeploymentResult(record=record, files=uploaded, registry_size=len(registry))


def list_sites(store: BlobStore) -> SiteRegistry:
    """Return the stored registry (empty when it has never been written)."""
    return store.fetch_registry().registry
