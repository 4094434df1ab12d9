"""In-memory backend: a mutable tree of directory nodes addressed by normalised path segments.

The tree has a single logical owner and performs no locking; concurrent
mutation from several tasks is not supported.
"""

from __future__ import annotations

import io
import itertools
from dataclasses import dataclass, field
from datetime import datetime
from typing import BinaryIO, Dict, Iterable, Iterator, List, Optional, Sequence, Tuple
from urllib.parse import quote

from filestore.core.exceptions import FileNotFoundError, PathIsADirectoryError, PathIsAFileError
from filestore.services.pagination import ListPage
from filestore.services.storage_backends import Body, StorageAdapter
from filestore.utils.path_utils import SEPARATOR, PathRepresentation, from_key, normalize


@dataclass
class MemoryFileRepresentation:
    content: bytes = b""
    content_type: str = "application/octet-stream"


@dataclass(eq=False)
class MemoryDirectoryRepresentation:
    child_directories: Dict[PathRepresentation, "MemoryDirectoryRepresentation"] = field(default_factory=dict)
    files: Dict[PathRepresentation, MemoryFileRepresentation] = field(default_factory=dict)


class MemoryFilesystem:
    """An in-memory representation of a filesystem.

    Directory nodes are created lazily, either explicitly or by writing a file
    beneath them, and are only removed by an explicit delete. ``directory_exists``
    and the other lookups never mutate; the ``get_or_create_*`` family does.
    """

    def __init__(self) -> None:
        self.root_directory = MemoryDirectoryRepresentation()

    def directory_exists(self, path: PathRepresentation) -> bool:
        return self.get_directory(path) is not None

    def get_directory(self, path: PathRepresentation) -> Optional[MemoryDirectoryRepresentation]:
        working_directory = self.root_directory
        for path_part in path.as_directory().path_tree:
            working_directory = working_directory.child_directories.get(path_part)
            if working_directory is None:
                return None
        return working_directory

    def get_or_create_directory(self, path: PathRepresentation) -> MemoryDirectoryRepresentation:
        working_directory = self.root_directory
        for path_part in path.as_directory().path_tree:
            child = working_directory.child_directories.get(path_part)
            if child is None:
                child = MemoryDirectoryRepresentation()
                working_directory.child_directories[path_part] = child
            working_directory = child
        return working_directory

    def get_or_create_parent_directory_of(self, path: PathRepresentation) -> MemoryDirectoryRepresentation:
        """Gets or creates the directory holding ``path`` (the second to last element of its tree)."""
        path_tree = path.path_tree
        if len(path_tree) <= 1:
            return self.root_directory
        return self.get_or_create_directory(path_tree[-2])

    def get_directory_from_nth_level_of_path_tree(
        self, path_tree: Sequence[PathRepresentation], level: int
    ) -> MemoryDirectoryRepresentation:
        """Walk ``level + 1`` segments of ``path_tree`` (0 based) from the root.

        Raises ``IndexError`` when ``level`` is outside the tree and ``KeyError``
        when one of the walked directories does not exist.
        """
        if level < 0 or level >= len(path_tree):
            raise IndexError(f"Level {level} is outside a path tree of length {len(path_tree)}")

        working_directory = self.root_directory
        for path_part in path_tree[: level + 1]:
            working_directory = working_directory.child_directories[path_part]
        return working_directory

    def get_file(self, path: PathRepresentation) -> Optional[MemoryFileRepresentation]:
        parent = self.get_directory(path.parent)
        if parent is None:
            return None
        return parent.files.get(path)

    def put_file(self, path: PathRepresentation, file: MemoryFileRepresentation) -> None:
        self.get_or_create_parent_directory_of(path).files[path] = file

    def remove_file(self, path: PathRepresentation) -> bool:
        parent = self.get_directory(path.parent)
        if parent is None:
            return False
        return parent.files.pop(path, None) is not None

    def remove_directory(self, path: PathRepresentation) -> bool:
        """Delete a directory and, with it, every descendant directory and file."""
        if path.is_root:
            self.root_directory.child_directories.clear()
            self.root_directory.files.clear()
            return True
        parent = self.get_directory(path.parent)
        if parent is None:
            return False
        return parent.child_directories.pop(path.as_directory(), None) is not None

    def walk(self, path: PathRepresentation) -> List[str]:
        """Sorted keys of the directory at ``path`` and everything below it.

        Directories are reported with a trailing separator; the root itself is
        never reported.
        """
        return list(self.iter_keys(path))

    def iter_keys(self, path: PathRepresentation, after: Optional[str] = None) -> Iterator[str]:
        """Lazily yield the keys of ``walk(path)`` that sort strictly after ``after``.

        Subtrees lying entirely before ``after`` are skipped without being visited.
        """
        start = self.get_directory(path)
        if start is None:
            return
        if not path.is_root:
            own_key = path.as_directory().normalised_path
            if after is None or own_key > after:
                yield own_key
        yield from self._iter_directory(start, after)

    def _iter_directory(self, directory: MemoryDirectoryRepresentation, after: Optional[str]) -> Iterator[str]:
        entries: List[Tuple[str, Optional[MemoryDirectoryRepresentation]]] = [
            (file_path.normalised_path, None) for file_path in directory.files
        ]
        entries.extend(
            (child_path.normalised_path, child) for child_path, child in directory.child_directories.items()
        )
        # every key of a subtree starts with its directory key, so sibling order is key order
        for key, child in sorted(entries, key=lambda entry: entry[0]):
            if after is None or key > after:
                yield key
                if child is not None:
                    yield from self._iter_directory(child, after)
            elif child is not None and after.startswith(key):
                yield from self._iter_directory(child, after)


class MemoryAdapter(StorageAdapter):
    def __init__(
        self,
        filesystem: Optional[MemoryFilesystem] = None,
        *,
        page_size: Optional[int] = None,
        public_url_expiry_hours: Optional[int] = None,
    ):
        super().__init__(page_size=page_size, public_url_expiry_hours=public_url_expiry_hours)
        self.filesystem = filesystem or MemoryFilesystem()

    def _reject_directory_conflict(self, path: PathRepresentation) -> None:
        if self.filesystem.directory_exists(path.as_directory()):
            raise PathIsADirectoryError(path.normalised_path)

    def _reject_file_conflicts(self, directories: Iterable[PathRepresentation]) -> None:
        """Raise when any of ``directories`` already exists as a file of the same name."""
        for directory in directories:
            as_file = normalize(directory.normalised_path.rstrip(SEPARATOR))
            if self.filesystem.get_file(as_file) is not None:
                raise PathIsAFileError(as_file.normalised_path)

    async def _file_exists(self, path: PathRepresentation) -> bool:
        return self.filesystem.get_file(path) is not None

    async def _directory_exists(self, path: PathRepresentation) -> bool:
        return self.filesystem.directory_exists(path)

    def _require_file(self, path: PathRepresentation) -> MemoryFileRepresentation:
        file = self.filesystem.get_file(path)
        if file is None:
            raise FileNotFoundError(path.normalised_path)
        return file

    async def _read_bytes(self, path: PathRepresentation) -> bytes:
        return self._require_file(path).content

    async def _open_stream(self, path: PathRepresentation) -> BinaryIO:
        return io.BytesIO(self._require_file(path).content)

    async def _put_object(self, path: PathRepresentation, body: Body, content_type: str) -> None:
        self._reject_directory_conflict(path)
        self._reject_file_conflicts(path.path_tree[:-1])
        data = body if isinstance(body, (bytes, bytearray)) else body.read()
        if isinstance(data, str):
            data = data.encode("utf-8")
        self.filesystem.put_file(path, MemoryFileRepresentation(content=bytes(data), content_type=content_type))

    async def _copy_object(self, source: PathRepresentation, destination: PathRepresentation) -> None:
        if source.is_directory:
            self._reject_file_conflicts(destination.as_directory().path_tree)
            self.filesystem.get_or_create_directory(destination)
            return
        self._reject_directory_conflict(destination)
        self._reject_file_conflicts(destination.path_tree[:-1])
        file = self._require_file(source)
        self.filesystem.put_file(
            destination, MemoryFileRepresentation(content=file.content, content_type=file.content_type)
        )

    async def _delete_object(self, path: PathRepresentation) -> None:
        if path.is_directory:
            self.filesystem.remove_directory(path)
        else:
            self.filesystem.remove_file(path)

    async def _list_page(self, prefix: str, cursor: Optional[str]) -> ListPage:
        keys = list(itertools.islice(self.filesystem.iter_keys(from_key(prefix), cursor), self.page_size + 1))
        page = keys[: self.page_size]
        truncated = len(keys) > self.page_size
        return ListPage(keys=tuple(page), next_cursor=page[-1] if page else None, is_truncated=truncated)

    async def _create_directory(self, path: PathRepresentation) -> None:
        self._reject_file_conflicts(path.as_directory().path_tree)
        self.filesystem.get_or_create_directory(path)

    async def _presign(self, path: PathRepresentation, expiry: datetime) -> str:
        return f"memory:///{quote(path.normalised_path)}?expires={quote(expiry.isoformat())}"
