"""Nodes — the files and directories of the virtual tree.

A ``Node`` is either a file (holding raw bytes) or a directory (holding
an ordered mapping of child names to child nodes).  Directories own
their children outright: there are no parent pointers, so the tree is
acyclic by construction and dropping a directory's entry discards the
whole subtree.

Permissions are a single advisory ``rwx`` triplet stored as three bits.
They are recorded and reported, never enforced.
"""

from __future__ import annotations

import base64
import binascii
import time
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

from py_vfs.fs.errors import InvalidModeError, SnapshotError

PERM_READ = 0b100
PERM_WRITE = 0b010
PERM_EXEC = 0b001
DEFAULT_PERMS = PERM_READ | PERM_WRITE | PERM_EXEC

_MODE_LENGTH = 3
_MODE_LETTERS = (("r", PERM_READ), ("w", PERM_WRITE), ("x", PERM_EXEC))


class NodeKind(StrEnum):
    """The kind of object a node represents."""

    FILE = "file"
    DIRECTORY = "directory"


def now_ms() -> int:
    """Return the current wall-clock time in epoch milliseconds."""
    return time.time_ns() // 1_000_000


def format_perms(bits: int) -> str:
    """Render permission bits as a triplet like ``rw-``."""
    return "".join(letter if bits & bit else "-" for letter, bit in _MODE_LETTERS)


def parse_mode(mode: str) -> int:
    """Parse a symbolic triplet (``rwx``, ``r-x``, ``---``) into bits.

    Raises:
        InvalidModeError: If *mode* is not exactly three characters, each
            either its positional letter or ``-``.

    """
    if len(mode) != _MODE_LENGTH:
        msg = f"Invalid mode '{mode}': use a triplet like rwx, r-x, rw-, ---"
        raise InvalidModeError(msg)
    bits = 0
    for position, (char, (letter, bit)) in enumerate(zip(mode, _MODE_LETTERS, strict=True)):
        if char == letter:
            bits |= bit
        elif char != "-":
            msg = f"Invalid mode '{mode}': position {position + 1} must be '{letter}' or '-'"
            raise InvalidModeError(msg)
    return bits


@dataclass
class Node:
    """A file or directory in the virtual tree.

    For files, ``data`` holds the content bytes.
    For directories, ``children`` maps names to nodes in insertion order.
    ``kind`` is fixed at construction.
    """

    name: str
    kind: NodeKind
    data: bytes = b""
    children: dict[str, Node] = field(default_factory=dict)  # pyright: ignore[reportUnknownVariableType]
    ctime: int = 0
    mtime: int = 0
    perms: int = DEFAULT_PERMS

    def __setattr__(self, name: str, value: Any) -> None:
        """Refuse to change ``kind`` once it has been set."""
        if name == "kind" and "kind" in self.__dict__:
            msg = "A node's kind cannot change after creation"
            raise AttributeError(msg)
        super().__setattr__(name, value)

    @classmethod
    def file(cls, name: str, data: bytes = b"") -> Node:
        """Create a file node stamped with the current time."""
        stamp = now_ms()
        return cls(name=name, kind=NodeKind.FILE, data=data, ctime=stamp, mtime=stamp)

    @classmethod
    def directory(cls, name: str) -> Node:
        """Create an empty directory node stamped with the current time."""
        stamp = now_ms()
        return cls(name=name, kind=NodeKind.DIRECTORY, ctime=stamp, mtime=stamp)

    @property
    def is_dir(self) -> bool:
        """Return True if this node is a directory."""
        return self.kind is NodeKind.DIRECTORY

    @property
    def size(self) -> int:
        """Return the entry count of a directory or the byte length of a file."""
        if self.is_dir:
            return len(self.children)
        return len(self.data)

    def touch(self) -> None:
        """Set the modification time to now."""
        self.mtime = now_ms()

    def deep_copy(self, name: str | None = None) -> Node:
        """Return an independent recursive copy of this node.

        Timestamps, permissions and content are preserved.  If *name* is
        given the copy's top-level node takes that name.  Iterative, so
        tree depth is not bounded by the recursion limit.
        """
        copy = self._copy_fields(self.name if name is None else name)
        stack = [(self, copy)]
        while stack:
            original, duplicate = stack.pop()
            for child_name, child in original.children.items():
                child_copy = child._copy_fields(child.name)
                duplicate.children[child_name] = child_copy
                stack.append((child, child_copy))
        return copy

    def _copy_fields(self, name: str) -> Node:
        return Node(
            name=name,
            kind=self.kind,
            data=self.data,
            ctime=self.ctime,
            mtime=self.mtime,
            perms=self.perms,
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize this node and its subtree.

        File data is base64-encoded so binary content survives JSON.
        Children are stored as a list to make their order explicit.
        """
        record: dict[str, Any] = {
            "kind": self.kind.value,
            "name": self.name,
            "ctime": self.ctime,
            "mtime": self.mtime,
            "perms": self.perms,
        }
        if self.is_dir:
            record["children"] = [child.to_dict() for child in self.children.values()]
        else:
            record["data"] = base64.b64encode(self.data).decode("ascii")
        return record

    @classmethod
    def from_dict(cls, record: Any) -> Node:
        """Rebuild a node (and its subtree) from ``to_dict()`` output.

        Raises:
            SnapshotError: If the record is malformed in any way.

        """
        if not isinstance(record, dict):
            msg = f"Node record must be an object, got {type(record).__name__}"
            raise SnapshotError(msg)

        try:
            kind = NodeKind(_require(record, "kind", str))
        except ValueError as exc:
            msg = f"Unknown node kind: {record['kind']!r}"
            raise SnapshotError(msg) from exc

        name = _require(record, "name", str)
        if not name:
            msg = "Node name must not be empty"
            raise SnapshotError(msg)
        perms = _require(record, "perms", int)
        if not 0 <= perms <= DEFAULT_PERMS:
            msg = f"Permission bits out of range for '{name}': {perms}"
            raise SnapshotError(msg)

        node = cls(
            name=name,
            kind=kind,
            ctime=_require(record, "ctime", int),
            mtime=_require(record, "mtime", int),
            perms=perms,
        )

        if kind is NodeKind.FILE:
            try:
                node.data = base64.b64decode(_require(record, "data", str), validate=True)
            except binascii.Error as exc:
                msg = f"Corrupt content for '{name}': {exc}"
                raise SnapshotError(msg) from exc
            return node

        for child_record in _require(record, "children", list):
            child = cls.from_dict(child_record)
            if "/" in child.name or child.name in (".", ".."):
                msg = f"Invalid entry name under '{name}': {child.name!r}"
                raise SnapshotError(msg)
            if child.name in node.children:
                msg = f"Duplicate entry '{child.name}' under '{name}'"
                raise SnapshotError(msg)
            node.children[child.name] = child
        return node


def _require(record: dict[str, Any], key: str, expected: type) -> Any:
    """Return ``record[key]`` if present and of the expected type."""
    if key not in record:
        msg = f"Node record is missing '{key}'"
        raise SnapshotError(msg)
    value = record[key]
    # bool is an int subclass; timestamps and perms must be real ints
    if not isinstance(value, expected) or (expected is int and isinstance(value, bool)):
        msg = f"Node field '{key}' must be {expected.__name__}, got {type(value).__name__}"
        raise SnapshotError(msg)
    return value
