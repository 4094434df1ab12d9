"""Path utilities: turn raw caller paths into canonical ``PathRepresentation`` values.

These helpers centralize the rules every adapter relies on:
- separators are ``/``; backslashes are accepted and converted;
- runs of separators collapse and a leading separator is dropped, so the root is ``""``;
- a trailing separator marks a directory, extensions are never inspected;
- two paths are equal iff their normalised forms are equal (case is significant).
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from functools import cached_property
from typing import Optional, Tuple, Union

from filestore.core.exceptions import InvalidPathError

SEPARATOR = "/"

_SEPARATOR_RUNS = re.compile(r"/{2,}")


@dataclass(frozen=True, eq=False)
class PathRepresentation:
    original_path: str
    normalised_path: str
    final_path_part_is_a_directory: bool = field(default=False)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PathRepresentation):
            return NotImplemented
        return self.normalised_path == other.normalised_path

    def __hash__(self) -> int:
        return hash(self.normalised_path)

    def __str__(self) -> str:
        return self.normalised_path

    @property
    def is_root(self) -> bool:
        return self.normalised_path == ""

    @property
    def is_directory(self) -> bool:
        return self.final_path_part_is_a_directory

    @cached_property
    def path_tree(self) -> Tuple["PathRepresentation", ...]:
        """Cumulative ancestors, e.g. ``a/``, ``a/b/``, ``a/b/c/`` for ``a/b/c/``.

        Every element is a directory except the last one of a file path,
        which is the path itself.
        """
        if self.is_root:
            return ()
        parts = self.normalised_path.rstrip(SEPARATOR).split(SEPARATOR)
        tree = []
        for depth in range(1, len(parts) + 1):
            if depth == len(parts) and not self.is_directory:
                tree.append(self)
                continue
            tree.append(_directory(SEPARATOR.join(parts[:depth]) + SEPARATOR))
        return tuple(tree)

    @property
    def name(self) -> str:
        """Final segment without any trailing separator; ``""`` for the root."""
        return self.normalised_path.rstrip(SEPARATOR).rsplit(SEPARATOR, 1)[-1]

    @property
    def parent(self) -> "PathRepresentation":
        tree = self.path_tree
        if len(tree) <= 1:
            return ROOT
        return tree[-2]

    def s3_safe_directory_path(self) -> str:
        """Listing prefix for this path: the normalised directory form, ``""`` for the root."""
        if self.is_root:
            return ""
        return self.as_directory().normalised_path

    def as_directory(self) -> "PathRepresentation":
        if self.is_directory:
            return self
        return _directory(self.normalised_path + SEPARATOR)

    def join(self, child: str) -> "PathRepresentation":
        """Resolve ``child`` beneath this directory."""
        if not self.is_directory:
            raise InvalidPathError(self.original_path, "Cannot join onto a file path")
        return normalize(self.normalised_path.rstrip(SEPARATOR) + SEPARATOR + child)

    def relative_to(self, prefix: "PathRepresentation") -> str:
        """Return the remainder of this path below the directory ``prefix``."""
        base = prefix.s3_safe_directory_path()
        if not self.normalised_path.startswith(base):
            raise InvalidPathError(self.normalised_path, f"Path is not below {base!r}")
        return self.normalised_path[len(base):]


ROOT = PathRepresentation(original_path=SEPARATOR, normalised_path="", final_path_part_is_a_directory=True)


def _directory(normalised: str) -> PathRepresentation:
    return PathRepresentation(
        original_path=normalised,
        normalised_path=normalised,
        final_path_part_is_a_directory=True,
    )


def normalize(raw: Optional[Union[str, PathRepresentation]]) -> PathRepresentation:
    """Parse ``raw`` into its canonical representation.

    Raises ``InvalidPathError`` for ``None`` and for strings that are empty
    once surrounding whitespace is removed. A bare separator is the root.
    """
    if isinstance(raw, PathRepresentation):
        return raw
    if raw is None or not isinstance(raw, str) or not raw.strip():
        raise InvalidPathError(raw if isinstance(raw, str) else None)

    cleaned = raw.strip().replace("\\", SEPARATOR)
    is_directory = cleaned.endswith(SEPARATOR)
    collapsed = _SEPARATOR_RUNS.sub(SEPARATOR, cleaned)
    if collapsed.startswith(SEPARATOR):
        collapsed = collapsed[1:]

    if not collapsed:
        return ROOT
    return PathRepresentation(
        original_path=raw,
        normalised_path=collapsed,
        final_path_part_is_a_directory=is_directory,
    )


def from_key(key: str) -> PathRepresentation:
    """Representation of an object-store key; keys ending in ``/`` are directory markers."""
    return normalize(key) if key else ROOT
