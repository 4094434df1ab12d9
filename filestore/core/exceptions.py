"""Exception module: the error taxonomy raised by adapters and managers."""

from typing import Optional


class FilestoreError(Exception):
    """Base class for every error raised by filestore itself.

    Backend failures that are not part of this taxonomy (for example a
    ``botocore`` error other than "not found") are never wrapped, they
    propagate to the caller unchanged.
    """

    default_message = "filestore error"

    def __init__(self, path: Optional[str] = None, msg: Optional[str] = None) -> None:
        self.path = path
        message = msg or self.default_message
        if path is not None:
            message = f"{message}: {path!r}"
        super().__init__(message)


class InvalidPathError(FilestoreError):
    default_message = "Invalid path"


class PathIsADirectoryError(FilestoreError):
    """A file-only operation received a directory-flagged path."""

    default_message = "Path is a directory"


class PathIsAFileError(FilestoreError):
    """A directory-only operation received a file path."""

    default_message = "Path is a file"


class FileNotFoundError(FilestoreError):  # noqa: A001
    default_message = "File not found"


class FileAlreadyExistsError(FilestoreError):
    default_message = "File already exists"


class DirectoryNotFoundError(FilestoreError):
    default_message = "Directory not found"


class DirectoryAlreadyExistsError(FilestoreError):
    default_message = "Directory already exists"


class AdapterNotFoundError(FilestoreError):
    """No adapter is registered under the requested name."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(msg=f"No adapter registered under the name {name!r}")


class AdapterConfigurationError(FilestoreError):
    """An adapter could not be built from the supplied configuration."""

    def __init__(self, msg: str) -> None:
        super().__init__(msg=msg)
