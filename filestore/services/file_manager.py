"""Manager layer: adapter registry, request validation and dispatch by adapter name."""

from __future__ import annotations

import uuid
from typing import Awaitable, Callable, Dict, List, Optional, TypeVar

from filestore.core.config import get_settings
from filestore.core.exceptions import (
    AdapterConfigurationError,
    AdapterNotFoundError,
    PathIsADirectoryError,
    PathIsAFileError,
)
from filestore.core.logger import logger, reset_operation_id, set_operation_id
from filestore.schemas import directories as dir_schemas
from filestore.schemas import files as file_schemas
from filestore.services.storage_backends import StorageAdapter
from filestore.utils.path_utils import PathRepresentation

T = TypeVar("T")


class AdapterManager:
    """Registry of adapters, addressed by name."""

    def __init__(self, default_adapter_name: Optional[str] = None) -> None:
        self.default_adapter_name = default_adapter_name or get_settings().default_adapter_name
        self._adapters: Dict[str, StorageAdapter] = {}

    def register(self, name: str, adapter: StorageAdapter) -> None:
        if not name or not name.strip():
            raise AdapterConfigurationError("Adapter name must not be empty")
        if name in self._adapters:
            raise AdapterConfigurationError(f"An adapter is already registered under the name {name!r}")
        self._adapters[name] = adapter
        logger.info("Registered %s adapter as %r", type(adapter).__name__, name)

    def get(self, name: Optional[str] = None) -> StorageAdapter:
        name = name or self.default_adapter_name
        try:
            return self._adapters[name]
        except KeyError as exc:
            raise AdapterNotFoundError(name) from exc

    def names(self) -> List[str]:
        return sorted(self._adapters)


def _require(request: Optional[T]) -> T:
    if request is None:
        raise ValueError("request must not be None")
    return request


def _validate_file_path(path: PathRepresentation) -> None:
    if path.is_directory:
        raise PathIsADirectoryError(path.original_path)


def _validate_directory_path(path: PathRepresentation) -> None:
    if not path.is_directory:
        raise PathIsAFileError(path.original_path)


class _BaseManager:
    def __init__(self, adapters: AdapterManager) -> None:
        self.adapters = adapters

    async def _dispatch(
        self,
        operation: str,
        adapter_name: Optional[str],
        call: Callable[[StorageAdapter], Awaitable[T]],
    ) -> T:
        adapter = self.adapters.get(adapter_name)
        token = set_operation_id(uuid.uuid4().hex[:12])
        try:
            logger.debug("%s via %r", operation, adapter_name or self.adapters.default_adapter_name)
            return await call(adapter)
        finally:
            reset_operation_id(token)


class FileManager(_BaseManager):
    """File operations against a named adapter (the default one when no name is given)."""

    async def copy(
        self, request: file_schemas.CopyFileRequest, adapter: Optional[str] = None
    ) -> file_schemas.CopyFileResponse:
        request = _require(request)
        _validate_file_path(request.source_file_path)
        _validate_file_path(request.destination_file_path)
        return await self._dispatch("copy_file", adapter, lambda a: a.copy_file(request))

    async def move(
        self, request: file_schemas.MoveFileRequest, adapter: Optional[str] = None
    ) -> file_schemas.MoveFileResponse:
        request = _require(request)
        _validate_file_path(request.source_file_path)
        _validate_file_path(request.destination_file_path)
        return await self._dispatch("move_file", adapter, lambda a: a.move_file(request))

    async def delete(
        self, request: file_schemas.DeleteFileRequest, adapter: Optional[str] = None
    ) -> file_schemas.DeleteFileResponse:
        request = _require(request)
        _validate_file_path(request.file_path)
        return await self._dispatch("delete_file", adapter, lambda a: a.delete_file(request))

    async def exists(
        self, request: file_schemas.FileExistsRequest, adapter: Optional[str] = None
    ) -> file_schemas.FileExistsResponse:
        request = _require(request)
        _validate_file_path(request.file_path)
        return await self._dispatch("file_exists", adapter, lambda a: a.file_exists(request))

    async def get(
        self, request: file_schemas.GetFileRequest, adapter: Optional[str] = None
    ) -> file_schemas.GetFileResponse:
        request = _require(request)
        _validate_file_path(request.file_path)
        return await self._dispatch("get_file", adapter, lambda a: a.get_file(request))

    async def get_public_url(
        self, request: file_schemas.GetFilePublicUrlRequest, adapter: Optional[str] = None
    ) -> file_schemas.GetFilePublicUrlResponse:
        request = _require(request)
        _validate_file_path(request.file_path)
        return await self._dispatch("get_file_public_url", adapter, lambda a: a.get_file_public_url(request))

    async def read_as_stream(
        self, request: file_schemas.ReadFileAsStreamRequest, adapter: Optional[str] = None
    ) -> file_schemas.ReadFileAsStreamResponse:
        request = _require(request)
        _validate_file_path(request.file_path)
        return await self._dispatch("read_file_as_stream", adapter, lambda a: a.read_file_as_stream(request))

    async def read_as_string(
        self, request: file_schemas.ReadFileAsStringRequest, adapter: Optional[str] = None
    ) -> file_schemas.ReadFileAsStringResponse:
        request = _require(request)
        _validate_file_path(request.file_path)
        return await self._dispatch("read_file_as_string", adapter, lambda a: a.read_file_as_string(request))

    async def touch(
        self, request: file_schemas.TouchFileRequest, adapter: Optional[str] = None
    ) -> file_schemas.TouchFileResponse:
        request = _require(request)
        _validate_file_path(request.file_path)
        return await self._dispatch("touch_file", adapter, lambda a: a.touch_file(request))

    async def write_stream(
        self, request: file_schemas.WriteStreamToFileRequest, adapter: Optional[str] = None
    ) -> file_schemas.WriteStreamToFileResponse:
        request = _require(request)
        _validate_file_path(request.file_path)
        if request.stream is None:
            raise ValueError("stream must not be None")
        return await self._dispatch("write_stream_to_file", adapter, lambda a: a.write_stream_to_file(request))

    async def write_text(
        self, request: file_schemas.WriteTextToFileRequest, adapter: Optional[str] = None
    ) -> file_schemas.WriteTextToFileResponse:
        request = _require(request)
        _validate_file_path(request.file_path)
        return await self._dispatch("write_text_to_file", adapter, lambda a: a.write_text_to_file(request))


class DirectoryManager(_BaseManager):
    """Directory operations against a named adapter."""

    async def create(
        self, request: dir_schemas.CreateDirectoryRequest, adapter: Optional[str] = None
    ) -> dir_schemas.CreateDirectoryResponse:
        request = _require(request)
        _validate_directory_path(request.directory_path)
        return await self._dispatch("create_directory", adapter, lambda a: a.create_directory(request))

    async def exists(
        self, request: dir_schemas.DirectoryExistsRequest, adapter: Optional[str] = None
    ) -> dir_schemas.DirectoryExistsResponse:
        request = _require(request)
        _validate_directory_path(request.directory_path)
        return await self._dispatch("directory_exists", adapter, lambda a: a.directory_exists(request))

    async def delete(
        self, request: dir_schemas.DeleteDirectoryRequest, adapter: Optional[str] = None
    ) -> dir_schemas.DeleteDirectoryResponse:
        request = _require(request)
        _validate_directory_path(request.directory_path)
        return await self._dispatch("delete_directory", adapter, lambda a: a.delete_directory(request))

    async def copy(
        self, request: dir_schemas.CopyDirectoryRequest, adapter: Optional[str] = None
    ) -> dir_schemas.CopyDirectoryResponse:
        request = _require(request)
        _validate_directory_path(request.source_directory_path)
        _validate_directory_path(request.destination_directory_path)
        return await self._dispatch("copy_directory", adapter, lambda a: a.copy_directory(request))

    async def move(
        self, request: dir_schemas.MoveDirectoryRequest, adapter: Optional[str] = None
    ) -> dir_schemas.MoveDirectoryResponse:
        request = _require(request)
        _validate_directory_path(request.source_directory_path)
        _validate_directory_path(request.destination_directory_path)
        return await self._dispatch("move_directory", adapter, lambda a: a.move_directory(request))

    async def list_contents(
        self, request: dir_schemas.ListDirectoryContentsRequest, adapter: Optional[str] = None
    ) -> dir_schemas.ListDirectoryContentsResponse:
        request = _require(request)
        _validate_directory_path(request.directory_path)
        return await self._dispatch(
            "list_directory_contents", adapter, lambda a: a.list_directory_contents(request)
        )
