"""Filesystem errors — one exception class per failure kind.

Every operation on the virtual filesystem either succeeds or raises a
subclass of ``FsError``.  The ``kind`` attribute gives callers (the
shell, the web front end) a structured tag they can report without
parsing messages.
"""

from __future__ import annotations

from enum import StrEnum
from typing import ClassVar


class ErrorKind(StrEnum):
    """Categories of filesystem failure."""

    NOT_FOUND = "not_found"
    INVALID_PATH = "invalid_path"
    ALREADY_EXISTS = "already_exists"
    NOT_EMPTY = "not_empty"
    IS_A_DIRECTORY = "is_a_directory"
    NOT_A_DIRECTORY = "not_a_directory"
    INVALID_MODE = "invalid_mode"
    PERSISTENCE_FAILURE = "persistence_failure"


class FsError(Exception):
    """Base class for every virtual filesystem failure.

    Attributes:
        kind: The failure category.
        path: The path the failure concerns, if any.

    """

    kind: ClassVar[ErrorKind]

    def __init__(self, message: str, *, path: str | None = None) -> None:
        """Create an error with a message and optional path."""
        super().__init__(message)
        self.path = path


class NotFoundError(FsError):
    """A required path segment does not exist."""

    kind = ErrorKind.NOT_FOUND


class InvalidPathError(FsError):
    """The path descends through a file, or targets the root illegally."""

    kind = ErrorKind.INVALID_PATH


class AlreadyExistsError(FsError):
    """A directory entry with that name already exists."""

    kind = ErrorKind.ALREADY_EXISTS


class NotEmptyError(FsError):
    """A populated directory was removed without ``recursive``."""

    kind = ErrorKind.NOT_EMPTY


class IsADirectoryError(FsError):  # noqa: A001
    """A file operation was applied to a directory."""

    kind = ErrorKind.IS_A_DIRECTORY


class NotADirectoryError(FsError):  # noqa: A001
    """A directory operation was applied to a file."""

    kind = ErrorKind.NOT_A_DIRECTORY


class InvalidModeError(FsError):
    """A chmod mode string is not a 3-character ``rwx`` triplet."""

    kind = ErrorKind.INVALID_MODE


class PersistenceError(FsError):
    """Reading or writing the backing store failed."""

    kind = ErrorKind.PERSISTENCE_FAILURE


class SnapshotError(PersistenceError):
    """The backing store holds something that is not a valid snapshot."""
