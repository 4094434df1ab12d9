"""filestore: path-addressed file operations over interchangeable storage adapters."""

from filestore.core.config import get_settings
from filestore.core.exceptions import (
    AdapterConfigurationError,
    AdapterNotFoundError,
    DirectoryAlreadyExistsError,
    DirectoryNotFoundError,
    FileAlreadyExistsError,
    FileNotFoundError,
    FilestoreError,
    InvalidPathError,
    PathIsADirectoryError,
    PathIsAFileError,
)
from filestore.core.logger import logger, setup_logging
from filestore.services.file_manager import AdapterManager, DirectoryManager, FileManager
from filestore.services.memory_backend import MemoryAdapter, MemoryFilesystem
from filestore.services.storage_backends import StorageAdapter, build_adapter, build_adapter_from_settings
from filestore.utils.path_utils import PathRepresentation, normalize

__all__ = [
    "AdapterConfigurationError",
    "AdapterManager",
    "AdapterNotFoundError",
    "DirectoryAlreadyExistsError",
    "DirectoryManager",
    "DirectoryNotFoundError",
    "FileAlreadyExistsError",
    "FileManager",
    "FileNotFoundError",
    "FilestoreError",
    "InvalidPathError",
    "MemoryAdapter",
    "MemoryFilesystem",
    "PathIsADirectoryError",
    "PathIsAFileError",
    "PathRepresentation",
    "StorageAdapter",
    "build_adapter",
    "build_adapter_from_settings",
    "get_settings",
    "logger",
    "normalize",
    "setup_logging",
]
