"""In-memory virtual filesystem — a tree of nodes plus a working directory.

``FileSystem`` is the mutable root container.  It owns the root
directory and the current working directory, and every operation takes
a path that is resolved against that working directory:

- **Mutations** — ``create_file``, ``write``, ``create_dir``,
  ``delete``, ``move``, ``copy``, ``chmod`` — change the tree in place.
- **Queries** — ``list_dir``, ``tree``, ``stat``, ``read``, ``find``,
  ``walk`` — never change it.

Collisions in ``move`` and ``copy`` are resolved by overwriting the
existing destination entry without asking, matching ``mv -f`` and
``cp -f``.

Persistence is not this class's concern: ``VirtualDisk`` (in
``py_vfs.fs.disk``) wraps a ``FileSystem`` and flushes it after each
mutation.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from py_vfs.fs.errors import (
    AlreadyExistsError,
    InvalidPathError,
    IsADirectoryError,
    NotADirectoryError,
    NotEmptyError,
    NotFoundError,
)
from py_vfs.fs.node import Node, NodeKind, format_perms, parse_mode
from py_vfs.fs.paths import ROOT_PATH, ResolvedPath, join_path, normalize, resolve, split_path

if TYPE_CHECKING:
    from collections.abc import Iterator

_TREE_INDENT = "  "


@dataclass(frozen=True)
class DirEntry:
    """One row of a directory listing."""

    name: str
    kind: NodeKind
    size: int


@dataclass(frozen=True)
class NodeStat:
    """Read-only snapshot of a node's metadata (returned by stat)."""

    path: str
    kind: NodeKind
    size: int
    ctime: int
    mtime: int
    perms: str


class FileSystem:
    """A virtual filesystem with a root directory and a working directory.

    A fresh filesystem has an empty root named ``/`` and its working
    directory at the root.
    """

    def __init__(self, root: Node | None = None, cwd: str = ROOT_PATH) -> None:
        """Create a filesystem, optionally around an existing tree."""
        self._root = root if root is not None else Node.directory(ROOT_PATH)
        self._cwd = normalize(cwd)

    @property
    def root(self) -> Node:
        """Return the root directory node."""
        return self._root

    @property
    def cwd(self) -> str:
        """Return the current working directory."""
        return self._cwd

    # -- Resolution -------------------------------------------------------

    def resolve(
        self,
        path: str,
        *,
        create_parents: bool = False,
        want_parent: bool = False,
    ) -> ResolvedPath:
        """Resolve *path* against the working directory.

        See ``py_vfs.fs.paths.resolve`` for the flag semantics.
        """
        return resolve(
            self._root,
            path,
            self._cwd,
            create_parents=create_parents,
            want_parent=want_parent,
        )

    def _lookup(self, path: str) -> ResolvedPath:
        """Resolve an existing path (read-only lookup)."""
        return self.resolve(path)

    def _target(self, path: str) -> ResolvedPath:
        """Resolve a creation target, creating missing parent directories."""
        resolved = self.resolve(path, create_parents=True, want_parent=True)
        if resolved.is_root:
            msg = "Cannot create the root directory"
            raise InvalidPathError(msg, path=ROOT_PATH)
        return resolved

    def exists(self, path: str) -> bool:
        """Check whether *path* names an existing node."""
        try:
            self._lookup(path)
        except (NotFoundError, InvalidPathError):
            return False
        return True

    # -- Working directory --------------------------------------------------

    def pwd(self) -> str:
        """Return the current working directory."""
        return self._cwd

    def change_dir(self, path: str) -> str:
        """Change the working directory.

        Raises:
            NotFoundError: If the path does not exist.
            NotADirectoryError: If the path is a file.

        """
        resolved = self._lookup(path)
        assert resolved.node is not None  # noqa: S101
        if not resolved.node.is_dir:
            msg = f"Not a directory: {resolved.path}"
            raise NotADirectoryError(msg, path=resolved.path)
        self._cwd = resolved.path
        return self._cwd

    def _repair_cwd(self) -> None:
        """Move the working directory up until it names a live directory."""
        current = self._root
        survivors: list[str] = []
        for segment in split_path(self._cwd):
            child = current.children.get(segment)
            if child is None or not child.is_dir:
                break
            survivors.append(segment)
            current = child
        self._cwd = normalize("/" + "/".join(survivors))

    # -- Mutations ----------------------------------------------------------

    def create_file(self, path: str) -> str:
        """Create an empty file, or refresh the mtime of an existing node.

        Existing content is never truncated.  Missing parent directories
        are created.

        Returns:
            The absolute path of the file.

        """
        resolved = self._target(path)
        node = resolved.node
        if node is None:
            resolved.attach(Node.file(resolved.name))
        else:
            node.touch()
        return resolved.path

    def write(self, path: str, data: bytes, *, append: bool = False) -> int:
        """Write *data* to a file, creating it (and its parents) if needed.

        Args:
            path: The file to write.
            data: The bytes to write.
            append: Add *data* after the existing content instead of
                replacing it.  No separator is inserted.

        Returns:
            The new size of the file in bytes.

        Raises:
            IsADirectoryError: If the path is a directory.

        """
        resolved = self._target(path)
        node = resolved.node
        if node is None:
            node = Node.file(resolved.name)
            resolved.attach(node)
        if node.is_dir:
            msg = f"Is a directory: {resolved.path}"
            raise IsADirectoryError(msg, path=resolved.path)
        node.data = node.data + data if append else data
        node.touch()
        return node.size

    def create_dir(self, path: str) -> str:
        """Create a directory, creating missing parents along the way.

        The parent's mtime is left unchanged.

        Raises:
            AlreadyExistsError: If the name is already taken.

        """
        resolved = self._target(path)
        if resolved.node is not None:
            msg = f"Already exists: {resolved.path}"
            raise AlreadyExistsError(msg, path=resolved.path)
        resolved.attach(Node.directory(resolved.name))
        return resolved.path

    def delete(self, path: str, *, recursive: bool = False) -> str:
        """Remove a file or directory.

        Dropping a directory's entry discards its whole subtree, since
        nothing else refers to the descendants.

        Raises:
            NotFoundError: If the path does not exist.
            NotEmptyError: If the path is a populated directory and
                *recursive* is False.
            InvalidPathError: If the path is the root.

        """
        resolved = self._lookup(path)
        node = resolved.node
        assert node is not None  # noqa: S101
        if node.is_dir and node.children and not recursive:
            msg = f"Directory not empty: {resolved.path} (use recursive removal)"
            raise NotEmptyError(msg, path=resolved.path)
        if resolved.is_root:
            msg = "Cannot remove the root directory"
            raise InvalidPathError(msg, path=ROOT_PATH)
        resolved.detach()
        self._repair_cwd()
        return resolved.path

    def move(self, src: str, dst: str) -> str:
        """Move or rename a node.

        If *dst* is an existing directory the node moves inside it under
        its own name; otherwise it is renamed to *dst*.  Either way an
        existing entry with the target name is overwritten.

        Returns:
            The node's new absolute path.

        Raises:
            NotFoundError: If *src* does not exist.
            InvalidPathError: If *src* is the root, or a directory would
                be moved into itself.

        """
        source = self._lookup(src)
        node = source.node
        assert node is not None  # noqa: S101
        if source.is_root:
            msg = "Cannot move the root directory"
            raise InvalidPathError(msg, path=ROOT_PATH)

        dst_path = normalize(dst, self._cwd)
        if node.is_dir and (dst_path == source.path or dst_path.startswith(source.path + "/")):
            msg = f"Cannot move {source.path} into itself"
            raise InvalidPathError(msg, path=dst_path)

        target = self.resolve(dst, create_parents=True, want_parent=True)
        # Detach first so moving into the current parent is a no-op.
        source.detach()

        if target.node is not None and target.node.is_dir:
            target.node.children[source.name] = node
            new_path = join_path(target.path, source.name)
        else:
            node.name = target.name
            target.attach(node)
            new_path = target.path

        self._repair_cwd()
        return new_path

    def copy(self, src: str, dst: str) -> str:
        """Copy a node and its whole subtree.

        The copy is taken before *dst* is resolved, so copying a
        directory into itself copies its original contents once.  If
        *dst* is an existing directory the copy lands inside it under
        the source's name; otherwise it is named after *dst*.  Existing
        entries with the target name are overwritten.

        Returns:
            The absolute path of the copy.  If the copy replaced an entry
            holding the working directory, the working directory moves up
            to the deepest surviving directory.

        Raises:
            NotFoundError: If *src* does not exist.
            InvalidPathError: If the root would be copied into a
                directory under its own name.

        """
        source = self._lookup(src)
        assert source.node is not None  # noqa: S101
        duplicate = source.node.deep_copy()

        target = self.resolve(dst, create_parents=True, want_parent=True)
        if target.node is not None and target.node.is_dir:
            if source.is_root:
                msg = "Cannot copy the root directory into a directory; give the copy a name"
                raise InvalidPathError(msg, path=target.path)
            target.node.children[source.name] = duplicate
            self._repair_cwd()
            return join_path(target.path, source.name)

        duplicate.name = target.name
        target.attach(duplicate)
        # An overwritten entry may have held the working directory.
        self._repair_cwd()
        return target.path

    def chmod(self, path: str, mode: str) -> str:
        """Set a node's advisory permission triplet.

        The mtime is left unchanged.

        Returns:
            The rendered permissions, e.g. ``r-x``.

        Raises:
            InvalidModeError: If *mode* is not a valid triplet.

        """
        resolved = self._lookup(path)
        bits = parse_mode(mode)
        assert resolved.node is not None  # noqa: S101
        resolved.node.perms = bits
        return format_perms(bits)

    # -- Queries ------------------------------------------------------------

    def list_dir(self, path: str | None = None) -> list[DirEntry]:
        """List a directory's entries in insertion order.

        A file lists as a single entry describing itself.  With no
        *path*, the working directory is listed.
        """
        node = self._lookup(self._cwd if path is None else path).node
        assert node is not None  # noqa: S101
        if not node.is_dir:
            return [DirEntry(name=node.name, kind=node.kind, size=node.size)]
        return [
            DirEntry(name=name, kind=child.kind, size=child.size)
            for name, child in node.children.items()
        ]

    def tree(self, path: str | None = None) -> list[str]:
        """Render a subtree, one line per node.

        The first line is the absolute path of the subtree's top; each
        descendant is indented two spaces per level.  Directories carry
        a trailing ``/``.
        """
        resolved = self._lookup(self._cwd if path is None else path)
        base_depth = len(split_path(resolved.path))
        lines: list[str] = []
        for node_path, node in self.walk(resolved.path):
            depth = len(split_path(node_path)) - base_depth
            label = node_path if depth == 0 else node.name
            if node.is_dir and not label.endswith("/"):
                label += "/"
            lines.append(_TREE_INDENT * depth + label)
        return lines

    def stat(self, path: str) -> NodeStat:
        """Return metadata for *path*."""
        resolved = self._lookup(path)
        node = resolved.node
        assert node is not None  # noqa: S101
        return NodeStat(
            path=resolved.path,
            kind=node.kind,
            size=node.size,
            ctime=node.ctime,
            mtime=node.mtime,
            perms=format_perms(node.perms),
        )

    def read(self, path: str) -> bytes:
        """Return the contents of a file.

        Raises:
            NotFoundError: If the path does not exist.
            IsADirectoryError: If the path is a directory.

        """
        resolved = self._lookup(path)
        node = resolved.node
        assert node is not None  # noqa: S101
        if node.is_dir:
            msg = f"Is a directory: {resolved.path}"
            raise IsADirectoryError(msg, path=resolved.path)
        return node.data

    def find(self, pattern: str) -> list[str]:
        """Return the paths of every node whose name contains *pattern*.

        Matching is case-insensitive and covers the whole tree in
        pre-order, children in insertion order.  The root matches by
        its name ``/``.
        """
        needle = pattern.casefold()
        return [path for path, node in self.walk(ROOT_PATH) if needle in node.name.casefold()]

    def walk(self, path: str = ROOT_PATH) -> Iterator[tuple[str, Node]]:
        """Yield ``(path, node)`` for a subtree in pre-order.

        Lazy: the tree is walked as the iterator is consumed.  Each call
        starts a fresh traversal.
        """
        resolved = self._lookup(path)
        assert resolved.node is not None  # noqa: S101
        stack: list[tuple[str, Node]] = [(resolved.path, resolved.node)]
        while stack:
            node_path, node = stack.pop()
            yield node_path, node
            stack.extend(
                (join_path(node_path, name), child)
                for name, child in reversed(node.children.items())
            )

    # -- Serialization ------------------------------------------------------

    def to_dict(self) -> dict[str, Any]:
        """Serialize the tree and working directory to a dictionary."""
        return {"cwd": self._cwd, "root": self._root.to_dict()}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> FileSystem:
        """Rebuild a filesystem from ``to_dict()`` output.

        Node-level validation raises ``SnapshotError``; checks on the
        root and working directory live in ``py_vfs.fs.persistence``.
        """
        return cls(root=Node.from_dict(data["root"]), cwd=data["cwd"])
