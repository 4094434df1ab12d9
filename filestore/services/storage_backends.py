"""Storage adapter abstraction: the file and directory operations shared by every backend.

Concrete adapters implement a handful of unchecked primitives (``_file_exists``,
``_put_object``, ``_copy_object``, ``_delete_object``, ``_list_page`` ...). The
public operations layered on top perform the existence preconditions before
any mutating call and drive every bulk directory operation through the
pagination protocol in ``filestore.services.pagination``.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import AsyncIterator, BinaryIO, Dict, Optional, Union

from filestore.core import timezone
from filestore.core.config import get_settings
from filestore.core.exceptions import (
    AdapterConfigurationError,
    DirectoryAlreadyExistsError,
    DirectoryNotFoundError,
    FileAlreadyExistsError,
    FileNotFoundError,
    InvalidPathError,
)
from filestore.core.logger import logger
from filestore.schemas.common import DirectoryRepresentation, FileRepresentation
from filestore.schemas.directories import (
    CopyDirectoryRequest,
    CopyDirectoryResponse,
    CreateDirectoryRequest,
    CreateDirectoryResponse,
    DeleteDirectoryRequest,
    DeleteDirectoryResponse,
    DirectoryExistsRequest,
    DirectoryExistsResponse,
    ListDirectoryContentsRequest,
    ListDirectoryContentsResponse,
    MoveDirectoryRequest,
    MoveDirectoryResponse,
)
from filestore.schemas.files import (
    CopyFileRequest,
    CopyFileResponse,
    DeleteFileRequest,
    DeleteFileResponse,
    FileExistsRequest,
    FileExistsResponse,
    GetFilePublicUrlRequest,
    GetFilePublicUrlResponse,
    GetFileRequest,
    GetFileResponse,
    MoveFileRequest,
    MoveFileResponse,
    ReadFileAsStreamRequest,
    ReadFileAsStreamResponse,
    ReadFileAsStringRequest,
    ReadFileAsStringResponse,
    TouchFileRequest,
    TouchFileResponse,
    WriteStreamToFileRequest,
    WriteStreamToFileResponse,
    WriteTextToFileRequest,
    WriteTextToFileResponse,
)
from filestore.services.pagination import ListPage, collect_keys, for_each_page, iter_pages
from filestore.utils.path_utils import SEPARATOR, PathRepresentation, from_key

Body = Union[bytes, BinaryIO]


class StorageAdapter:
    """Storage adapter interface."""

    def __init__(self, *, page_size: Optional[int] = None, public_url_expiry_hours: Optional[int] = None):
        settings = get_settings()
        self.page_size = page_size or settings.list_page_size
        self.public_url_expiry = timedelta(hours=public_url_expiry_hours or settings.public_url_expiry_hours)

    # ------------------------------------------
    # Backend primitives (no validation)
    # ------------------------------------------

    async def _file_exists(self, path: PathRepresentation) -> bool:
        raise NotImplementedError

    async def _read_bytes(self, path: PathRepresentation) -> bytes:
        raise NotImplementedError

    async def _open_stream(self, path: PathRepresentation) -> BinaryIO:
        raise NotImplementedError

    async def _put_object(self, path: PathRepresentation, body: Body, content_type: str) -> None:
        raise NotImplementedError

    async def _copy_object(self, source: PathRepresentation, destination: PathRepresentation) -> None:
        raise NotImplementedError

    async def _delete_object(self, path: PathRepresentation) -> None:
        raise NotImplementedError

    async def _list_page(self, prefix: str, cursor: Optional[str]) -> ListPage:
        raise NotImplementedError

    async def _create_directory(self, path: PathRepresentation) -> None:
        raise NotImplementedError

    async def _presign(self, path: PathRepresentation, expiry: datetime) -> str:
        raise NotImplementedError

    async def _directory_exists(self, path: PathRepresentation) -> bool:
        if path.is_root:
            return True
        page = await self._list_page(path.s3_safe_directory_path(), None)
        return bool(page.keys)

    def _pages_under(self, path: PathRepresentation) -> AsyncIterator[ListPage]:
        return iter_pages(self._list_page, path.s3_safe_directory_path())

    # ------------------------------------------
    # Preconditions
    # ------------------------------------------

    async def _ensure_file_exists(self, path: PathRepresentation) -> None:
        if not await self._file_exists(path):
            raise FileNotFoundError(path.normalised_path)

    async def _ensure_file_does_not_exist(self, path: PathRepresentation) -> None:
        if await self._file_exists(path):
            raise FileAlreadyExistsError(path.normalised_path)

    async def _ensure_directory_exists(self, path: PathRepresentation) -> None:
        if not await self._directory_exists(path):
            raise DirectoryNotFoundError(path.normalised_path)

    async def _ensure_directory_does_not_exist(self, path: PathRepresentation) -> None:
        if await self._directory_exists(path):
            raise DirectoryAlreadyExistsError(path.normalised_path)

    # ------------------------------------------
    # File operations
    # ------------------------------------------

    async def copy_file(self, request: CopyFileRequest) -> CopyFileResponse:
        await self._ensure_file_exists(request.source_file_path)
        await self._ensure_file_does_not_exist(request.destination_file_path)

        await self._copy_object(request.source_file_path, request.destination_file_path)
        return CopyFileResponse(destination_file=FileRepresentation(path=request.destination_file_path))

    async def move_file(self, request: MoveFileRequest) -> MoveFileResponse:
        source, destination = request.source_file_path, request.destination_file_path
        await self._ensure_file_exists(source)
        await self._ensure_file_does_not_exist(destination)

        await self._copy_object(source, destination)
        try:
            await self._delete_object(source)
        except Exception:
            # no rollback: both paths stay populated
            logger.exception("Moved %s to %s but could not delete the source", source, destination)
            raise
        return MoveFileResponse(destination_file=FileRepresentation(path=destination))

    async def delete_file(self, request: DeleteFileRequest) -> DeleteFileResponse:
        await self._ensure_file_exists(request.file_path)
        await self._delete_object(request.file_path)
        return DeleteFileResponse()

    async def file_exists(self, request: FileExistsRequest) -> FileExistsResponse:
        return FileExistsResponse(file_exists=await self._file_exists(request.file_path))

    async def get_file(self, request: GetFileRequest) -> GetFileResponse:
        if not await self._file_exists(request.file_path):
            return GetFileResponse(file=None)
        return GetFileResponse(file=FileRepresentation(path=request.file_path))

    async def get_file_public_url(self, request: GetFilePublicUrlRequest) -> GetFilePublicUrlResponse:
        await self._ensure_file_exists(request.file_path)
        expiry = timezone.to_local(request.expiry) or (timezone.now() + self.public_url_expiry)
        url = await self._presign(request.file_path, expiry)
        return GetFilePublicUrlResponse(url=url, expiry=expiry)

    async def read_file_as_stream(self, request: ReadFileAsStreamRequest) -> ReadFileAsStreamResponse:
        await self._ensure_file_exists(request.file_path)
        return ReadFileAsStreamResponse(file_contents=await self._open_stream(request.file_path))

    async def read_file_as_string(self, request: ReadFileAsStringRequest) -> ReadFileAsStringResponse:
        await self._ensure_file_exists(request.file_path)
        data = await self._read_bytes(request.file_path)
        return ReadFileAsStringResponse(file_contents=data.decode("utf-8", errors="replace"))

    async def touch_file(self, request: TouchFileRequest) -> TouchFileResponse:
        await self._ensure_file_does_not_exist(request.file_path)
        await self._put_object(request.file_path, b"", "text/plain")
        return TouchFileResponse(file=FileRepresentation(path=request.file_path))

    async def write_stream_to_file(self, request: WriteStreamToFileRequest) -> WriteStreamToFileResponse:
        await self._put_object(request.file_path, request.stream, request.content_type)
        return WriteStreamToFileResponse()

    async def write_text_to_file(self, request: WriteTextToFileRequest) -> WriteTextToFileResponse:
        await self._put_object(request.file_path, request.text_to_write.encode("utf-8"), request.content_type)
        return WriteTextToFileResponse()

    # ------------------------------------------
    # Directory operations
    # ------------------------------------------

    async def create_directory(self, request: CreateDirectoryRequest) -> CreateDirectoryResponse:
        await self._ensure_directory_does_not_exist(request.directory_path)
        await self._create_directory(request.directory_path)
        return CreateDirectoryResponse(directory=DirectoryRepresentation(path=request.directory_path))

    async def directory_exists(self, request: DirectoryExistsRequest) -> DirectoryExistsResponse:
        return DirectoryExistsResponse(directory_exists=await self._directory_exists(request.directory_path))

    async def delete_directory(self, request: DeleteDirectoryRequest) -> DeleteDirectoryResponse:
        await self._ensure_directory_exists(request.directory_path)
        await self._delete_directory_contents(request.directory_path)
        return DeleteDirectoryResponse()

    async def copy_directory(self, request: CopyDirectoryRequest) -> CopyDirectoryResponse:
        source, destination = request.source_directory_path, request.destination_directory_path
        await self._ensure_directory_can_be_copied(source, destination)

        await self._copy_directory_contents(source, destination)
        return CopyDirectoryResponse(destination_directory=DirectoryRepresentation(path=destination))

    async def move_directory(self, request: MoveDirectoryRequest) -> MoveDirectoryResponse:
        source, destination = request.source_directory_path, request.destination_directory_path
        await self._ensure_directory_can_be_copied(source, destination)

        await self._copy_directory_contents(source, destination)
        await self._delete_directory_contents(source)
        return MoveDirectoryResponse(destination_directory=DirectoryRepresentation(path=destination))

    async def list_directory_contents(
        self, request: ListDirectoryContentsRequest
    ) -> ListDirectoryContentsResponse:
        path = request.directory_path.as_directory()
        await self._ensure_directory_exists(path)

        entries: Dict[str, Union[DirectoryRepresentation, FileRepresentation]] = {}
        for key in await collect_keys(self._pages_under(path)):
            relative = from_key(key).relative_to(path)
            if not relative:
                continue
            parts = relative.split(SEPARATOR)
            # every segment between the listed directory and the key is a directory
            for depth in range(1, len(parts)):
                directory = path.join(SEPARATOR.join(parts[:depth]) + SEPARATOR)
                entries.setdefault(directory.normalised_path, DirectoryRepresentation(path=directory))
            if not key.endswith(SEPARATOR):
                entries[key] = FileRepresentation(path=from_key(key))
        return ListDirectoryContentsResponse(contents=[entries[key] for key in sorted(entries)])

    # ------------------------------------------
    # Bulk helpers built on the pagination protocol
    # ------------------------------------------

    async def _ensure_directory_can_be_copied(
        self, source: PathRepresentation, destination: PathRepresentation
    ) -> None:
        if destination.s3_safe_directory_path().startswith(source.s3_safe_directory_path()):
            raise InvalidPathError(
                destination.normalised_path, "Cannot copy or move a directory into itself"
            )
        await self._ensure_directory_exists(source)
        await self._ensure_directory_does_not_exist(destination)

    async def _copy_directory_contents(self, source: PathRepresentation, destination: PathRepresentation) -> None:
        source_prefix = source.s3_safe_directory_path()
        destination_prefix = destination.s3_safe_directory_path()
        copied = 0

        async def _copy_page(page: ListPage) -> bool:
            nonlocal copied
            for key in page.keys:
                item = from_key(key)
                await self._copy_object(item, destination.as_directory().join(item.relative_to(source)))
                copied += 1
            return True

        pages = await for_each_page(self._pages_under(source), _copy_page)
        logger.info("Copied %d object(s) in %d page(s) from %r to %r", copied, pages, source_prefix, destination_prefix)

    async def _delete_directory_contents(self, path: PathRepresentation) -> None:
        deleted = 0

        async def _delete_page(page: ListPage) -> bool:
            nonlocal deleted
            for key in page.keys:
                await self._delete_object(from_key(key))
                deleted += 1
            return True

        pages = await for_each_page(self._pages_under(path), _delete_page)
        logger.info("Deleted %d object(s) in %d page(s) under %r", deleted, pages, path.s3_safe_directory_path())


def build_adapter(
    *,
    type: str,
    region: Optional[str] = None,
    bucket_name: Optional[str] = None,
    path_prefix: Optional[str] = None,
    endpoint_url: Optional[str] = None,
    access_key_id: Optional[str] = None,
    secret_access_key: Optional[str] = None,
    page_size: Optional[int] = None,
    client=None,
) -> StorageAdapter:
    t = (type or "").upper()
    if t == "MEMORY":
        from filestore.services.memory_backend import MemoryAdapter

        return MemoryAdapter(page_size=page_size)
    if t == "S3":
        from filestore.services.s3_backend import S3Adapter

        if not bucket_name:
            raise AdapterConfigurationError("S3 adapter requires a bucket name")
        return S3Adapter(
            bucket=bucket_name,
            region=region,
            prefix=path_prefix,
            endpoint_url=endpoint_url,
            access_key_id=access_key_id,
            secret_access_key=secret_access_key,
            page_size=page_size,
            client=client,
        )
    raise AdapterConfigurationError(f"Unsupported adapter type: {type!r}")


def build_adapter_from_settings() -> StorageAdapter:
    settings = get_settings()
    return build_adapter(
        type=settings.default_adapter,
        region=settings.s3_region,
        bucket_name=settings.s3_bucket_name,
        path_prefix=settings.s3_path_prefix,
        endpoint_url=settings.s3_endpoint_url,
        access_key_id=settings.aws_access_key_id,
        secret_access_key=settings.aws_secret_access_key,
        page_size=settings.list_page_size,
    )
