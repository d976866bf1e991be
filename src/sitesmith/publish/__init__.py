"""
Deployment to object storage and the site registry.
"""

from .deployer import (
    INDEX_FILENAME,
    DeploymentResult,
    build_site_url,
    cache_control_for,
    content_type_for,
    deploy_workspace,
    list_sites,
    new_version_id,
    record_deployment,
)
from .registry import REGISTRY_BLOB_NAME, DeploymentRecord, RegistryFormatError, SiteRegistry
from .storage import DEFAULT_CONTAINER, BlobStore, RegistryConflict, RegistrySnapshot

__all__ = [
    "INDEX_FILENAME",
    "DeploymentResult",
    "build_site_url",
    "cache_control_for",
    "content_type_for",
    "deploy_workspace",
    "list_sites",
    "new_version_id",
    "record_deployment",
    "REGISTRY_BLOB_NAME",
    "DeploymentRecord",
    "RegistryFormatError",
    "SiteRegistry",
    "DEFAULT_CONTAINER",
    "BlobStore",
    "RegistryConflict",
    "RegistrySnapshot",
]
