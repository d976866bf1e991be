from __future__ import annotations

import itertools
from dataclasses import dataclass, field
from pathlib import Path
from types import SimpleNamespace
from typing import Callable, Dict, List, Optional

import pytest
from azure.core import MatchConditions
from azure.core.exceptions import (
    HttpResponseError,
    ResourceExistsError,
    ResourceModifiedError,
    ResourceNotFoundError,
)
from typer.testing import CliRunner

from sitesmith.publish import BlobStore
from sitesmith.workspace import Workspace

_ETAGS = itertools.count(1)


@dataclass
class StoredBlob:
    data: bytes
    content_type: Optional[str]
    cache_control: Optional[str]
    etag: str = field(default_factory=lambda: f'"0x{next(_ETAGS):04d}"')


class FakeBlobClient:
    def __init__(self, container: "FakeContainerClient", name: str) -> None:
        self._container = container
        self._name = name

    def download_blob(self):
        if self._container.download_error is not None:
            raise self._container.download_error
        blob = self._container.blobs.get(self._name)
        if blob is None:
            raise ResourceNotFoundError("The specified blob does not exist.")
        return SimpleNamespace(readall=lambda: blob.data, properties=SimpleNamespace(etag=blob.etag))

    def upload_blob(self, data, overwrite=False, content_settings=None, etag=None, match_condition=None, **_kwargs):
        hook = self._container.before_registry_write
        if hook is not None:
            self._container.before_registry_write = None
            hook(self._container)
        current = self._container.blobs.get(self._name)
        if match_condition == MatchConditions.IfNotModified and (current is None or current.etag != etag):
            raise ResourceModifiedError("The condition specified using HTTP conditional header(s) is not met.")
        self._container.put(self._name, data, overwrite=overwrite, content_settings=content_settings)


class FakeContainerClient:
    """In-memory stand-in for ``azure.storage.blob.ContainerClient``."""

    def __init__(self, container_name: str = "$web", *, created: bool = False) -> None:
        self.container_name = container_name
        self.created = created
        self.public_access: Optional[str] = None
        self.blobs: Dict[str, StoredBlob] = {}
        self.upload_log: List[str] = []
        self.fail_upload_suffix: Optional[str] = None
        self.download_error: Optional[Exception] = None
        self.before_registry_write: Optional[Callable[["FakeContainerClient"], None]] = None

    def exists(self) -> bool:
        return self.created

    def create_container(self, public_access=None, **_kwargs) -> None:
        if self.created:
            raise ResourceExistsError("The specified container already exists.")
        self.created = True
        self.public_access = public_access

    def put(self, name: str, data, *, overwrite: bool, content_settings=None) -> None:
        if not overwrite and name in self.blobs:
            raise ResourceExistsError("The specified blob already exists.")
        payload = data if isinstance(data, bytes) else bytes(data)
        self.blobs[name] = StoredBlob(
            data=payload,
            content_type=getattr(content_settings, "content_type", None),
            cache_control=getattr(content_settings, "cache_control", None),
        )
        self.upload_log.append(name)

    def upload_blob(self, name, data, overwrite=False, content_settings=None, **_kwargs) -> None:
        if self.fail_upload_suffix and name.endswith(self.fail_upload_suffix):
            raise HttpResponseError(f"Simulated failure uploading {name}")
        self.put(name, data, overwrite=overwrite, content_settings=content_settings)

    def get_blob_client(self, name: str) -> FakeBlobClient:
        return FakeBlobClient(self, name)


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def fake_container() -> FakeContainerClient:
    return FakeContainerClient()


@pytest.fixture
def store(fake_container: FakeContainerClient) -> BlobStore:
    return BlobStore(fake_container)


@pytest.fixture
def workspace(tmp_path: Path) -> Workspace:
    return Workspace(tmp_path / "generated-site")


@pytest.fixture
def site_files() -> Dict[str, str]:
    return {
        "index.html": "<!DOCTYPE html>\n<html><body><h1>Kadai</h1></body></html>",
        "style.css": "body { margin: 0; }",
        "script.js": "console.log('ready');",
    }
