"""Shared request/response building blocks."""

from typing import Annotated

from pydantic import BaseModel, BeforeValidator, ConfigDict

from filestore.utils.path_utils import PathRepresentation, normalize

# Accepts a raw string (or an existing representation) and normalises it.
FilesystemPath = Annotated[PathRepresentation, BeforeValidator(normalize)]


class FilestoreModel(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)


class FileRepresentation(FilestoreModel):
    path: FilesystemPath


class DirectoryRepresentation(FilestoreModel):
    path: FilesystemPath
