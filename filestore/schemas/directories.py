"""Directory operations: request/response models."""

from typing import List, Union

from filestore.schemas.common import (
    DirectoryRepresentation,
    FileRepresentation,
    FilesystemPath,
    FilestoreModel,
)


class SingleDirectoryRequest(FilestoreModel):
    directory_path: FilesystemPath


class CreateDirectoryRequest(SingleDirectoryRequest):
    pass


class DeleteDirectoryRequest(SingleDirectoryRequest):
    pass


class DirectoryExistsRequest(SingleDirectoryRequest):
    pass


class ListDirectoryContentsRequest(SingleDirectoryRequest):
    pass


class CopyDirectoryRequest(FilestoreModel):
    source_directory_path: FilesystemPath
    destination_directory_path: FilesystemPath


class MoveDirectoryRequest(FilestoreModel):
    source_directory_path: FilesystemPath
    destination_directory_path: FilesystemPath


# ---------------- responses ----------------


class CreateDirectoryResponse(FilestoreModel):
    directory: DirectoryRepresentation


class DeleteDirectoryResponse(FilestoreModel):
    pass


class DirectoryExistsResponse(FilestoreModel):
    directory_exists: bool


class CopyDirectoryResponse(FilestoreModel):
    destination_directory: DirectoryRepresentation


class MoveDirectoryResponse(FilestoreModel):
    destination_directory: DirectoryRepresentation


class ListDirectoryContentsResponse(FilestoreModel):
    contents: List[Union[DirectoryRepresentation, FileRepresentation]]
