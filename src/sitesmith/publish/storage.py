"""
Thin wrapper around an Azure Blob Storage container.

Only the calls the publisher needs are exposed: container creation, object
upload with delivery headers, and ETag-guarded reads and writes of the site
registry document.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from azure.core import MatchConditions
from azure.core.exceptions import (
    AzureError,
    ResourceExistsError,
    ResourceModifiedError,
    ResourceNotFoundError,
)
from azure.storage.blob import BlobServiceClient, ContainerClient, ContentSettings

from ..errors import StorageError
from .registry import REGISTRY_BLOB_NAME, RegistryFormatError, SiteRegistry

logger = logging.getLogger(__name__)

DEFAULT_CONTAINER = "$web"


class RegistryConflict(Exception):
    """The registry changed between read and conditional write."""


@dataclass
class RegistrySnapshot:
    """
    Result of reading the registry document.

    Attributes:
        registry: Decoded registry (empty when the document does not exist).
        etag: ETag of the stored document, or None when it does not exist.
    """
    registry: SiteRegistry
    etag: Optional[str] = None

    @property
    def found(self) -> bool:
        return self.etag is not None


class BlobStore:
    """
    Publishing operations against a single blob container.
    """

    def __init__(self, container: ContainerClient, *, registry_blob: str = REGISTRY_BLOB_NAME) -> None:
        self.container = container
        self.registry_blob = registry_blob

    @classmethod
    def from_connection_string(
        cls,
        connection_string: str,
        container_name: str = DEFAULT_CONTAINER,
        *,
        timeout_seconds: Optional[float] = None,
    ) -> "BlobStore":
        client_kwargs = {}
        if timeout_seconds:
            client_kwargs = {"connection_timeout": timeout_seconds, "read_timeout": timeout_seconds}
        try:
            service = BlobServiceClient.from_connection_string(connection_string, **client_kwargs)
        except (ValueError, AzureError) as exc:
            raise StorageError(f"Invalid storage connection string: {exc}", stage="container") from exc
        return cls(service.get_container_client(container_name))

    @property
    def container_name(self) -> str:
        return self.container.container_name

    def ensure_container(self) -> bool:
        """
        Create the container with anonymous read access if it is missing.

        Returns:
            True when the container was created by this call.
        """
        try:
            if self.container.exists():
                return False
            self.container.create_container(public_access="container")
        except ResourceExistsError:
            logger.debug("Container %s was created concurrently", self.container_name)
            return False
        except AzureError as exc:
            raise StorageError(
                f"Unable to prepare container {self.container_name}: {exc}", stage="container"
            ) from exc
        logger.info("Created public container %s", self.container_name)
        return True

    def upload_file(self, key: str, data: bytes, *, content_type: str, cache_control: str) -> None:
        """Upload ``data`` under ``key``, replacing any existing object."""
        try:
            self.container.upload_blob(
                name=key,
                data=data,
                overwrite=True,
                content_settings=ContentSettings(content_type=content_type, cache_control=cache_control),
            )
        except AzureError as exc:
            raise StorageError(f"Upload of {key} failed: {exc}", stage="upload") from exc
        logger.debug("Uploaded %s (%s, %s)", key, content_type, cache_control)

    def fetch_registry(self) -> RegistrySnapshot:
        """
        Read the registry document.

        A missing document is reported as an empty snapshot; any other storage
        failure raises StorageError rather than being mistaken for "missing".
        """
        blob = self.container.get_blob_client(self.registry_blob)
        try:
            downloader = blob.download_blob()
            raw = downloader.readall()
            etag = downloader.properties.etag
        except ResourceNotFoundError:
            logger.info("No existing %s; starting a new registry", self.registry_blob)
            return RegistrySnapshot(registry=SiteRegistry())
        except AzureError as exc:
            raise StorageError(f"Unable to read {self.registry_blob}: {exc}", stage="registry") from exc
        try:
            registry = SiteRegistry.from_json(raw)
        except RegistryFormatError as exc:
            raise StorageError(str(exc), stage="registry") from exc
        return RegistrySnapshot(registry=registry, etag=etag)

    def write_registry(self, registry: SiteRegistry, snapshot: RegistrySnapshot) -> None:
        """
        Store ``registry`` only if the document is unchanged since ``snapshot``.

        Raises:
            RegistryConflict: If another writer updated or created the document.
            StorageError: For any other storage failure.
        """
        blob = self.container.get_blob_client(self.registry_blob)
        payload = registry.to_json().encode("utf-8")
        settings = ContentSettings(content_type="application/json", cache_control="no-cache")
        try:
            if snapshot.found:
                blob.upload_blob(
                    payload,
                    overwrite=True,
                    content_settings=settings,
                    etag=snapshot.etag,
                    match_condition=MatchConditions.IfNotModified,
                )
            else:
                blob.upload_blob(payload, overwrite=False, content_settings=settings)
        except (ResourceModifiedError, ResourceExistsError) as exc:
            raise RegistryConflict(str(exc)) from exc
        except AzureError as exc:
            raise StorageError(f"Unable to write {self.registry_blob}: {exc}", stage="registry") from exc
        logger.debug("Wrote %s with %d record(s)", self.registry_blob, len(registry))
