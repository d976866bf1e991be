from __future__ import annotations

import io
import zipfile

import pytest

from sitesmith.errors import ArchiveError, WorkspaceError
from sitesmith.export import iter_archive, write_archive
from sitesmith.export import archive as archive_module
from sitesmith.workspace import Workspace


class _UnseekableStream(io.RawIOBase):
    def __init__(self) -> None:
        super().__init__()
        self.buffer = bytearray()

    def writable(self) -> bool:
        return True

    def write(self, data) -> int:
        self.buffer.extend(data)
        return len(data)


def test_archive_contains_workspace_files_without_wrapping_directory(workspace: Workspace, site_files) -> None:
    workspace.materialize(site_files)
    output = io.BytesIO()

    size = write_archive(workspace, output)

    assert size == len(output.getvalue())
    with zipfile.ZipFile(io.BytesIO(output.getvalue())) as archive:
        assert sorted(archive.namelist()) == sorted(site_files)
        for info in archive.infolist():
            assert info.compress_type == zipfile.ZIP_DEFLATED
        assert archive.read("index.html").decode("utf-8") == site_files["index.html"]


def test_archive_can_be_written_to_unseekable_stream(workspace: Workspace, site_files) -> None:
    workspace.materialize(site_files)
    stream = _UnseekableStream()

    write_archive(workspace, stream)

    with zipfile.ZipFile(io.BytesIO(bytes(stream.buffer))) as archive:
        assert archive.testzip() is None
        assert archive.read("style.css").decode("utf-8") == site_files["style.css"]


def test_default_archive_uses_maximum_deflate_level(
    workspace: Workspace,
    site_files,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    workspace.materialize(site_files)
    opened = []

    class RecordingZipFile(zipfile.ZipFile):
        def __init__(self, *args, **kwargs):
            opened.append(kwargs)
            super().__init__(*args, **kwargs)

    monkeypatch.setattr(archive_module.zipfile, "ZipFile", RecordingZipFile)

    list(iter_archive(workspace))

    assert opened[0]["compression"] == zipfile.ZIP_DEFLATED
    assert opened[0]["compresslevel"] == 9


def test_default_level_compresses_at_least_as_well_as_fastest(workspace: Workspace) -> None:
    workspace.materialize({"index.html": "<section class=\"team\">member</section>\n" * 2000})

    best = b"".join(iter_archive(workspace))
    fastest = b"".join(iter_archive(workspace, compresslevel=1))

    assert len(best) <= len(fastest)


def test_iter_archive_yields_one_chunk_per_entry_plus_directory(workspace: Workspace, site_files) -> None:
    workspace.materialize(site_files)

    chunks = list(iter_archive(workspace))

    assert len(chunks) == len(site_files) + 1
    with zipfile.ZipFile(io.BytesIO(b"".join(chunks))) as archive:
        assert len(archive.namelist()) == len(site_files)


def test_missing_workspace_is_an_error_not_an_empty_archive(workspace: Workspace) -> None:
    output = io.BytesIO()

    with pytest.raises(WorkspaceError):
        write_archive(workspace, output)

    assert output.getvalue() == b""


def test_failure_while_archiving_surfaces_archive_error(
    workspace: Workspace,
    site_files,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    workspace.materialize(site_files)
    original_write = zipfile.ZipFile.write

    def flaky_write(self, filename, arcname=None, *args, **kwargs):
        if arcname == "script.js":
            raise OSError("disk read error")
        return original_write(self, filename, arcname, *args, **kwargs)

    monkeypatch.setattr(archive_module.zipfile.ZipFile, "write", flaky_write)

    with pytest.raises(ArchiveError):
        write_archive(workspace, io.BytesIO())


def test_package_exports_resolve() -> None:
    from sitesmith import export

    assert sorted(export.__all__) == ["ARCHIVE_FILENAME", "DEFAULT_COMPRESSLEVEL", "iter_archive", "write_archive"]
    assert all(hasattr(export, name) for name in export.__all__)
