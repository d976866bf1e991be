from __future__ import annotations

import json
from datetime import datetime, timezone

import pytest
from azure.core.exceptions import ServiceRequestError

from sitesmith.errors import StorageError, WorkspaceError
from sitesmith.publish import (
    BlobStore,
    DeploymentRecord,
    SiteRegistry,
    build_site_url,
    cache_control_for,
    content_type_for,
    deploy_workspace,
    list_sites,
    new_version_id,
)
from sitesmith.workspace import Workspace

BASE_URL = "https://example.z13.web.core.windows.net/"


def _registry(fake_container) -> list:
    return json.loads(fake_container.blobs["sites.json"].data)


def test_first_deploy_creates_public_container_and_registry(workspace: Workspace, store: BlobStore, fake_container, site_files) -> None:
    workspace.materialize(site_files)

    result = deploy_workspace(workspace, store, BASE_URL)

    assert fake_container.created
    assert fake_container.public_access == "container"
    version = result.record.id
    assert result.url == f"https://example.z13.web.core.windows.net/{version}/index.html"
    assert sorted(result.files) == sorted(site_files)
    for name, content in site_files.items():
        assert fake_container.blobs[f"{version}/{name}"].data == content.encode("utf-8")
    assert _registry(fake_container) == [{"id": version, "url": result.url}]
    assert result.registry_size == 1


def test_delivery_headers_per_file(workspace: Workspace, store: BlobStore, fake_container, site_files) -> None:
    workspace.materialize({**site_files, "logo.unknownext": "??"})

    version = deploy_workspace(workspace, store, BASE_URL, asset_max_age=600).record.id

    index = fake_container.blobs[f"{version}/index.html"]
    assert index.content_type == "text/html"
    assert index.cache_control == "no-cache"
    style = fake_container.blobs[f"{version}/style.css"]
    assert style.content_type == "text/css"
    assert style.cache_control == "public, max-age=600"
    assert fake_container.blobs[f"{version}/logo.unknownext"].content_type == "application/octet-stream"


def test_sequential_deploys_append_distinct_records(workspace: Workspace, store: BlobStore, fake_container, site_files) -> None:
    workspace.materialize(site_files)

    urls = [deploy_workspace(workspace, store, BASE_URL).url for _ in range(3)]

    records = _registry(fake_container)
    assert [record["url"] for record in records] == urls
    assert len({record["id"] for record in records}) == 3
    assert list_sites(store).latest.url == urls[-1]


def test_existing_container_is_reused(workspace: Workspace, fake_container, site_files) -> None:
    fake_container.created = True
    workspace.materialize(site_files)

    deploy_workspace(workspace, BlobStore(fake_container), BASE_URL)

    assert fake_container.public_access is None


def test_upload_failure_leaves_registry_untouched(workspace: Workspace, store: BlobStore, fake_container, site_files) -> None:
    workspace.materialize(site_files)
    first = deploy_workspace(workspace, store, BASE_URL)
    before = fake_container.blobs["sites.json"].data
    fake_container.fail_upload_suffix = "/style.css"

    with pytest.raises(StorageError) as exc:
        deploy_workspace(workspace, store, BASE_URL)

    assert exc.value.stage == "upload"
    assert exc.value.version_id and exc.value.version_id != first.record.id
    assert fake_container.blobs["sites.json"].data == before


def test_empty_workspace_is_not_deployed(workspace: Workspace, store: BlobStore, fake_container) -> None:
    workspace.materialize({})

    with pytest.raises(WorkspaceError):
        deploy_workspace(workspace, store, BASE_URL)

    assert fake_container.upload_log == []


def test_missing_workspace_is_not_deployed(workspace: Workspace, store: BlobStore, fake_container) -> None:
    with pytest.raises(WorkspaceError):
        deploy_workspace(workspace, store, BASE_URL)

    assert not fake_container.created


def test_concurrent_registry_update_is_not_lost(workspace: Workspace, store: BlobStore, fake_container, site_files) -> None:
    workspace.materialize(site_files)
    rival = DeploymentRecord(id="site-rival", url="https://example.net/site-rival/index.html")

    def rival_deploy(container) -> None:
        # Another deployment creates the registry between our read and our write.
        container.put(
            "sites.json",
            SiteRegistry(records=[rival]).to_json().encode("utf-8"),
            overwrite=True,
        )

    fake_container.before_registry_write = rival_deploy

    result = deploy_workspace(workspace, store, BASE_URL)

    assert [record["id"] for record in _registry(fake_container)] == ["site-rival", result.record.id]


def test_registry_update_gives_up_after_retries(workspace: Workspace, store: BlobStore, fake_container, site_files) -> None:
    workspace.materialize(site_files)
    deploy_workspace(workspace, store, BASE_URL)

    def always_conflict(container) -> None:
        blob = container.blobs["sites.json"]
        container.put("sites.json", blob.data, overwrite=True)
        container.before_registry_write = always_conflict

    fake_container.before_registry_write = always_conflict

    with pytest.raises(StorageError) as exc:
        deploy_workspace(workspace, store, BASE_URL, registry_retries=2)

    assert exc.value.stage == "registry"
    version = exc.value.version_id
    assert f"{version}/index.html" in fake_container.blobs
    assert len(_registry(fake_container)) == 1


def test_transient_registry_read_error_is_not_treated_as_missing(workspace: Workspace, store: BlobStore, fake_container, site_files) -> None:
    workspace.materialize(site_files)
    deploy_workspace(workspace, store, BASE_URL)
    fake_container.download_error = ServiceRequestError("connection reset")

    with pytest.raises(StorageError) as exc:
        deploy_workspace(workspace, store, BASE_URL)

    assert exc.value.stage == "registry"
    assert len(_registry(fake_container)) == 1


def test_corrupt_registry_is_not_overwritten(workspace: Workspace, store: BlobStore, fake_container, site_files) -> None:
    fake_container.put("sites.json", b"{oops", overwrite=True)
    workspace.materialize(site_files)

    with pytest.raises(StorageError):
        deploy_workspace(workspace, store, BASE_URL)

    assert fake_container.blobs["sites.json"].data == b"{oops"


def test_version_ids_are_time_ordered_and_unique() -> None:
    moment = datetime(2026, 1, 1, tzinfo=timezone.utc)

    first = new_version_id(moment)
    second = new_version_id(moment)

    assert first.startswith(f"site-{int(moment.timestamp() * 1000)}-")
    assert first != second


def test_header_and_url_helpers() -> None:
    assert cache_control_for("index.html") == "no-cache"
    assert cache_control_for("about.html") == "public, max-age=3600"
    assert content_type_for("package.json") == "application/json"
    assert content_type_for("README") == "application/octet-stream"
    assert build_site_url("https://cdn.example/", "site-1") == "https://cdn.example/site-1/index.html"


def test_existing_record_keys_survive_the_append(workspace: Workspace, store: BlobStore, fake_container, site_files) -> None:
    seeded = [{"id": "site-1", "url": "https://example.net/site-1/index.html", "title": "Kadai", "tags": ["food"]}]
    fake_container.put("sites.json", json.dumps(seeded).encode("utf-8"), overwrite=True)
    workspace.materialize(site_files)

    result = deploy_workspace(workspace, store, BASE_URL)

    records = _registry(fake_container)
    assert records[0] == seeded[0]
    assert records[1] == {"id": result.record.id, "url": result.url}
