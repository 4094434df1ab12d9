"""File operations: request/response models."""

from datetime import datetime
from typing import Any, Optional

from pydantic import Field

from filestore.schemas.common import FileRepresentation, FilesystemPath, FilestoreModel


class SingleFileRequest(FilestoreModel):
    file_path: FilesystemPath


class CopyFileRequest(FilestoreModel):
    source_file_path: FilesystemPath
    destination_file_path: FilesystemPath


class MoveFileRequest(FilestoreModel):
    source_file_path: FilesystemPath
    destination_file_path: FilesystemPath


class DeleteFileRequest(SingleFileRequest):
    pass


class FileExistsRequest(SingleFileRequest):
    pass


class GetFileRequest(SingleFileRequest):
    pass


class GetFilePublicUrlRequest(SingleFileRequest):
    expiry: Optional[datetime] = None


class ReadFileAsStreamRequest(SingleFileRequest):
    pass


class ReadFileAsStringRequest(SingleFileRequest):
    pass


class TouchFileRequest(SingleFileRequest):
    pass


class WriteStreamToFileRequest(SingleFileRequest):
    stream: Any
    content_type: str = Field(default="application/octet-stream", min_length=1)


class WriteTextToFileRequest(SingleFileRequest):
    text_to_write: str
    content_type: str = Field(default="text/plain", min_length=1)


# ---------------- responses ----------------


class CopyFileResponse(FilestoreModel):
    destination_file: FileRepresentation


class MoveFileResponse(FilestoreModel):
    destination_file: FileRepresentation


class DeleteFileResponse(FilestoreModel):
    pass


class FileExistsResponse(FilestoreModel):
    file_exists: bool


class GetFileResponse(FilestoreModel):
    file: Optional[FileRepresentation] = None


class GetFilePublicUrlResponse(FilestoreModel):
    url: str
    expiry: datetime


class ReadFileAsStreamResponse(FilestoreModel):
    file_contents: Any


class ReadFileAsStringResponse(FilestoreModel):
    file_contents: str


class TouchFileResponse(FilestoreModel):
    file: FileRepresentation


class WriteStreamToFileResponse(FilestoreModel):
    pass


class WriteTextToFileResponse(FilestoreModel):
    pass
