"""Behaviour shared by every adapter; each test runs against the memory and S3 adapters."""

import io
from datetime import timedelta

import pytest

from filestore.core import timezone
from filestore.core.exceptions import (
    DirectoryAlreadyExistsError,
    DirectoryNotFoundError,
    FileAlreadyExistsError,
    FileNotFoundError,
    InvalidPathError,
)
from filestore.schemas.directories import (
    CopyDirectoryRequest,
    CreateDirectoryRequest,
    DeleteDirectoryRequest,
    DirectoryExistsRequest,
    ListDirectoryContentsRequest,
    MoveDirectoryRequest,
)
from filestore.schemas.files import (
    CopyFileRequest,
    DeleteFileRequest,
    FileExistsRequest,
    GetFilePublicUrlRequest,
    GetFileRequest,
    MoveFileRequest,
    ReadFileAsStreamRequest,
    ReadFileAsStringRequest,
    TouchFileRequest,
    WriteStreamToFileRequest,
    WriteTextToFileRequest,
)
from filestore.utils.path_utils import normalize


async def _write(adapter, path: str, text: str) -> None:
    await adapter.write_text_to_file(WriteTextToFileRequest(file_path=path, text_to_write=text))


async def _read(adapter, path: str) -> str:
    return (await adapter.read_file_as_string(ReadFileAsStringRequest(file_path=path))).file_contents


async def _exists(adapter, path: str) -> bool:
    return (await adapter.file_exists(FileExistsRequest(file_path=path))).file_exists


async def _dir_exists(adapter, path: str) -> bool:
    return (await adapter.directory_exists(DirectoryExistsRequest(directory_path=path))).directory_exists


# ----------------------------
# Files
# ----------------------------


@pytest.mark.asyncio
async def test_touch_creates_an_empty_file(adapter):
    response = await adapter.touch_file(TouchFileRequest(file_path="x.txt"))

    assert response.file.path == normalize("x.txt")
    assert await _exists(adapter, "x.txt")
    assert await _read(adapter, "x.txt") == ""


@pytest.mark.asyncio
async def test_touch_twice_fails_and_keeps_content(adapter):
    await adapter.touch_file(TouchFileRequest(file_path="x.txt"))
    with pytest.raises(FileAlreadyExistsError):
        await adapter.touch_file(TouchFileRequest(file_path="x.txt"))

    await _write(adapter, "y.txt", "keep me")
    with pytest.raises(FileAlreadyExistsError):
        await adapter.touch_file(TouchFileRequest(file_path="/y.txt"))
    assert await _read(adapter, "y.txt") == "keep me"


@pytest.mark.asyncio
async def test_write_overwrites_silently(adapter):
    await _write(adapter, "notes/today.txt", "first")
    await _write(adapter, "notes//today.txt", "second")
    assert await _read(adapter, "notes/today.txt") == "second"


@pytest.mark.asyncio
async def test_write_and_read_stream(adapter):
    await adapter.write_stream_to_file(
        WriteStreamToFileRequest(file_path="bin/data.bin", stream=io.BytesIO(b"\x00\x01\x02"))
    )
    response = await adapter.read_file_as_stream(ReadFileAsStreamRequest(file_path="bin/data.bin"))
    assert response.file_contents.read() == b"\x00\x01\x02"


@pytest.mark.asyncio
async def test_read_as_string_replaces_undecodable_bytes(adapter):
    await adapter.write_stream_to_file(WriteStreamToFileRequest(file_path="blob.bin", stream=io.BytesIO(b"\xff\xfeok")))

    assert await _read(adapter, "blob.bin") == "\ufffd\ufffdok"


@pytest.mark.asyncio
async def test_reads_of_missing_files_fail(adapter):
    with pytest.raises(FileNotFoundError):
        await _read(adapter, "missing.txt")
    with pytest.raises(FileNotFoundError):
        await adapter.read_file_as_stream(ReadFileAsStreamRequest(file_path="missing.txt"))


@pytest.mark.asyncio
async def test_get_file_distinguishes_missing_from_present(adapter):
    assert (await adapter.get_file(GetFileRequest(file_path="a/b.txt"))).file is None

    await _write(adapter, "a/b.txt", "b")
    response = await adapter.get_file(GetFileRequest(file_path="/a/b.txt"))
    assert response.file is not None
    assert response.file.path == normalize("a/b.txt")


@pytest.mark.asyncio
async def test_copy_file(adapter):
    await _write(adapter, "src.txt", "payload")

    response = await adapter.copy_file(CopyFileRequest(source_file_path="src.txt", destination_file_path="dst/copy.txt"))

    assert response.destination_file.path == normalize("dst/copy.txt")
    assert await _read(adapter, "src.txt") == "payload"
    assert await _read(adapter, "dst/copy.txt") == "payload"


@pytest.mark.asyncio
async def test_copy_file_preconditions(adapter):
    with pytest.raises(FileNotFoundError):
        await adapter.copy_file(CopyFileRequest(source_file_path="nope.txt", destination_file_path="d.txt"))

    await _write(adapter, "src.txt", "new")
    await _write(adapter, "dst.txt", "old")
    with pytest.raises(FileAlreadyExistsError):
        await adapter.copy_file(CopyFileRequest(source_file_path="src.txt", destination_file_path="dst.txt"))
    assert await _read(adapter, "dst.txt") == "old"


@pytest.mark.asyncio
async def test_move_file(adapter):
    await _write(adapter, "a/src.txt", "payload")

    response = await adapter.move_file(MoveFileRequest(source_file_path="a/src.txt", destination_file_path="b/dst.txt"))

    assert response.destination_file.path == normalize("b/dst.txt")
    assert await _read(adapter, "b/dst.txt") == "payload"
    assert not await _exists(adapter, "a/src.txt")


@pytest.mark.asyncio
async def test_move_file_preconditions(adapter):
    with pytest.raises(FileNotFoundError):
        await adapter.move_file(MoveFileRequest(source_file_path="nope.txt", destination_file_path="d.txt"))

    await _write(adapter, "src.txt", "new")
    await _write(adapter, "dst.txt", "old")
    with pytest.raises(FileAlreadyExistsError):
        await adapter.move_file(MoveFileRequest(source_file_path="src.txt", destination_file_path="dst.txt"))
    assert await _read(adapter, "src.txt") == "new"
    assert await _read(adapter, "dst.txt") == "old"


@pytest.mark.asyncio
async def test_move_file_leaves_both_copies_when_delete_fails(adapter, monkeypatch):
    await _write(adapter, "src.txt", "payload")

    async def failing_delete(path):
        raise RuntimeError("delete failed")

    monkeypatch.setattr(adapter, "_delete_object", failing_delete)

    with pytest.raises(RuntimeError, match="delete failed"):
        await adapter.move_file(MoveFileRequest(source_file_path="src.txt", destination_file_path="dst.txt"))

    assert await _read(adapter, "src.txt") == "payload"
    assert await _read(adapter, "dst.txt") == "payload"


@pytest.mark.asyncio
async def test_delete_file(adapter):
    with pytest.raises(FileNotFoundError):
        await adapter.delete_file(DeleteFileRequest(file_path="gone.txt"))

    await _write(adapter, "dir/gone.txt", "x")
    await adapter.delete_file(DeleteFileRequest(file_path="dir/gone.txt"))
    assert not await _exists(adapter, "dir/gone.txt")


@pytest.mark.asyncio
async def test_public_url_defaults_to_a_day(adapter):
    await _write(adapter, "a/b.txt", "b")

    response = await adapter.get_file_public_url(GetFilePublicUrlRequest(file_path="a/b.txt"))

    assert "a/b.txt" in response.url
    remaining = response.expiry - timezone.now()
    assert timedelta(hours=23) < remaining <= timedelta(hours=24)


@pytest.mark.asyncio
async def test_public_url_honours_explicit_expiry(adapter):
    await _write(adapter, "a.txt", "a")
    expiry = timezone.now() + timedelta(hours=2)

    response = await adapter.get_file_public_url(GetFilePublicUrlRequest(file_path="a.txt", expiry=expiry))

    assert response.expiry == expiry


@pytest.mark.asyncio
async def test_public_url_requires_the_file(adapter):
    with pytest.raises(FileNotFoundError):
        await adapter.get_file_public_url(GetFilePublicUrlRequest(file_path="missing.txt"))


# ----------------------------
# Directories
# ----------------------------


@pytest.mark.asyncio
async def test_directories_are_implied_by_files(adapter):
    await _write(adapter, "a/b/c.txt", "c")

    assert await _dir_exists(adapter, "/")
    assert await _dir_exists(adapter, "a/")
    assert await _dir_exists(adapter, "a/b/")
    assert not await _dir_exists(adapter, "a/b/d/")


@pytest.mark.asyncio
async def test_create_directory(adapter):
    response = await adapter.create_directory(CreateDirectoryRequest(directory_path="docs/"))

    assert response.directory.path == normalize("docs/")
    assert await _dir_exists(adapter, "docs/")
    with pytest.raises(DirectoryAlreadyExistsError):
        await adapter.create_directory(CreateDirectoryRequest(directory_path="/docs/"))


@pytest.mark.asyncio
async def test_list_directory_contents(adapter):
    await _write(adapter, "a/b/c.txt", "c")
    await _write(adapter, "a/d.txt", "d")
    await _write(adapter, "e.txt", "e")

    listed = await adapter.list_directory_contents(ListDirectoryContentsRequest(directory_path="a/"))
    assert [entry.path.normalised_path for entry in listed.contents] == ["a/b/", "a/b/c.txt", "a/d.txt"]
    assert [entry.path.is_directory for entry in listed.contents] == [True, False, False]

    everything = await adapter.list_directory_contents(ListDirectoryContentsRequest(directory_path="/"))
    assert [entry.path.normalised_path for entry in everything.contents] == [
        "a/",
        "a/b/",
        "a/b/c.txt",
        "a/d.txt",
        "e.txt",
    ]


@pytest.mark.asyncio
async def test_list_missing_directory_fails(adapter):
    with pytest.raises(DirectoryNotFoundError):
        await adapter.list_directory_contents(ListDirectoryContentsRequest(directory_path="missing/"))


@pytest.mark.asyncio
async def test_delete_directory_cascades(adapter):
    await _write(adapter, "a/b/c.txt", "c")
    await _write(adapter, "a/d.txt", "d")
    await _write(adapter, "ab.txt", "sibling")

    await adapter.delete_directory(DeleteDirectoryRequest(directory_path="a/"))

    assert not await _dir_exists(adapter, "a/")
    assert not await _exists(adapter, "a/b/c.txt")
    assert not await _exists(adapter, "a/d.txt")
    assert await _read(adapter, "ab.txt") == "sibling"
    with pytest.raises(DirectoryNotFoundError):
        await adapter.delete_directory(DeleteDirectoryRequest(directory_path="a/"))


@pytest.mark.asyncio
async def test_delete_directory_across_many_pages(adapter):
    adapter.page_size = 2
    for i in range(5):
        await _write(adapter, f"bulk/{i}.txt", str(i))

    await adapter.delete_directory(DeleteDirectoryRequest(directory_path="bulk/"))

    assert not await _dir_exists(adapter, "bulk/")
    for i in range(5):
        assert not await _exists(adapter, f"bulk/{i}.txt")


@pytest.mark.asyncio
async def test_copy_directory(adapter):
    adapter.page_size = 2
    await _write(adapter, "a/1.txt", "one")
    await _write(adapter, "a/sub/2.txt", "two")
    await _write(adapter, "a/sub/3.txt", "three")

    response = await adapter.copy_directory(
        CopyDirectoryRequest(source_directory_path="a/", destination_directory_path="b/")
    )

    assert response.destination_directory.path == normalize("b/")
    assert await _read(adapter, "b/1.txt") == "one"
    assert await _read(adapter, "b/sub/2.txt") == "two"
    assert await _read(adapter, "b/sub/3.txt") == "three"
    assert await _read(adapter, "a/sub/2.txt") == "two"


@pytest.mark.asyncio
async def test_copy_empty_directory(adapter):
    await adapter.create_directory(CreateDirectoryRequest(directory_path="empty/"))

    await adapter.copy_directory(CopyDirectoryRequest(source_directory_path="empty/", destination_directory_path="copy/"))

    assert await _dir_exists(adapter, "copy/")
    assert await _dir_exists(adapter, "empty/")


@pytest.mark.asyncio
async def test_copy_directory_preconditions(adapter):
    with pytest.raises(DirectoryNotFoundError):
        await adapter.copy_directory(CopyDirectoryRequest(source_directory_path="x/", destination_directory_path="y/"))

    await _write(adapter, "x/1.txt", "1")
    await _write(adapter, "y/keep.txt", "keep")
    with pytest.raises(DirectoryAlreadyExistsError):
        await adapter.copy_directory(CopyDirectoryRequest(source_directory_path="x/", destination_directory_path="y/"))
    assert not await _exists(adapter, "y/1.txt")

    with pytest.raises(InvalidPathError):
        await adapter.copy_directory(
            CopyDirectoryRequest(source_directory_path="x/", destination_directory_path="x/inner/")
        )


@pytest.mark.asyncio
async def test_move_directory(adapter):
    await _write(adapter, "old/1.txt", "one")
    await _write(adapter, "old/deep/2.txt", "two")

    response = await adapter.move_directory(
        MoveDirectoryRequest(source_directory_path="old/", destination_directory_path="new/")
    )

    assert response.destination_directory.path == normalize("new/")
    assert await _read(adapter, "new/1.txt") == "one"
    assert await _read(adapter, "new/deep/2.txt") == "two"
    assert not await _dir_exists(adapter, "old/")


@pytest.mark.asyncio
async def test_move_directory_into_itself_is_rejected(adapter):
    await _write(adapter, "a/1.txt", "1")
    with pytest.raises(InvalidPathError):
        await adapter.move_directory(MoveDirectoryRequest(source_directory_path="a/", destination_directory_path="a/b/"))
    assert await _read(adapter, "a/1.txt") == "1"
