"""Path resolution — from text to tree locations.

Two steps turn a user-supplied path into nodes:

1. **Normalization** — ``normalize()`` folds a path (absolute or
   relative to the working directory) into a canonical absolute form,
   resolving ``.`` and ``..`` lexically.  ``..`` at the root stays at
   the root, as in Unix.

2. **Walking** — ``resolve()`` walks the normalized segments from the
   root, looking each one up in the current directory's children.
   Since nodes have no parent pointers, the parent of the target is
   whatever directory the walk passed through last.

Examples::

    normalize("docs/../a/./b", "/home")  → "/home/a/b"
    normalize("/../..", "/home")         → "/"
    normalize("", "/home")               → "/home"

"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from py_vfs.fs.errors import InvalidPathError, NotFoundError
from py_vfs.fs.node import Node

if TYPE_CHECKING:
    from collections.abc import Sequence

ROOT_PATH = "/"


def split_path(path: str) -> list[str]:
    """Return the non-empty segments of *path*."""
    return [segment for segment in path.split("/") if segment]


def join_path(parent: str, name: str) -> str:
    """Join a directory path and a child name without doubling the root slash."""
    if parent == ROOT_PATH:
        return ROOT_PATH + name
    return f"{parent}/{name}"


def _join_segments(segments: Sequence[str]) -> str:
    return ROOT_PATH + "/".join(segments)


def normalize(path: str, cwd: str = ROOT_PATH) -> str:
    """Return the canonical absolute form of *path*.

    Relative paths are interpreted against *cwd*.  Empty segments and
    ``.`` are dropped; ``..`` removes the previous segment if there is
    one.  An empty *path* names *cwd* itself.
    """
    stack: list[str] = [] if path.startswith("/") else split_path(cwd)
    for segment in path.split("/"):
        if not segment or segment == ".":
            continue
        if segment == "..":
            if stack:
                stack.pop()
        else:
            stack.append(segment)
    return _join_segments(stack)


@dataclass(frozen=True)
class ResolvedPath:
    """The outcome of resolving a path against the tree.

    Attributes:
        parent: The directory holding the target (None for the root).
        node: The target itself, or None if it does not exist yet.
        name: The final path segment (``/`` for the root).
        path: The normalized absolute path.

    """

    parent: Node | None
    node: Node | None
    name: str
    path: str

    @property
    def is_root(self) -> bool:
        """Return True if this resolution names the root directory."""
        return self.parent is None

    def attach(self, node: Node) -> None:
        """Insert *node* under the parent as ``name``, replacing any entry."""
        assert self.parent is not None  # noqa: S101
        self.parent.children[self.name] = node

    def detach(self) -> None:
        """Remove the ``name`` entry from the parent."""
        assert self.parent is not None  # noqa: S101
        del self.parent.children[self.name]


def resolve(
    root: Node,
    path: str,
    cwd: str = ROOT_PATH,
    *,
    create_parents: bool = False,
    want_parent: bool = False,
) -> ResolvedPath:
    """Walk *path* from *root* and return what it names.

    Args:
        root: The root directory of the tree.
        path: An absolute path, or one relative to *cwd*.
        cwd: The working directory for relative paths.
        create_parents: Create missing intermediate directories.
        want_parent: Accept a missing final segment, returning its
            would-be parent so the caller can create it.

    Raises:
        NotFoundError: If a required segment is missing.
        InvalidPathError: If the walk would descend through a file.

    """
    abs_path = normalize(path, cwd)
    if abs_path == ROOT_PATH:
        return ResolvedPath(parent=None, node=root, name=ROOT_PATH, path=ROOT_PATH)

    segments = split_path(abs_path)
    last = len(segments) - 1

    # Check the walk can succeed before creating anything, so a failed
    # resolution leaves the tree untouched.
    current = root
    for index, segment in enumerate(segments[:last]):
        child = current.children.get(segment)
        if child is None:
            if not create_parents:
                msg = f"Path not found: {_join_segments(segments[: index + 1])}"
                raise NotFoundError(msg, path=abs_path)
            break
        if not child.is_dir:
            msg = f"Not a directory: {_join_segments(segments[: index + 1])}"
            raise InvalidPathError(msg, path=abs_path)
        current = child

    current = root
    for segment in segments[:last]:
        child = current.children.get(segment)
        if child is None:
            child = Node.directory(segment)
            current.children[segment] = child
        current = child

    name = segments[last]
    node = current.children.get(name)
    if node is None and not want_parent:
        msg = f"Path not found: {abs_path}"
        raise NotFoundError(msg, path=abs_path)
    return ResolvedPath(parent=current, node=node, name=name, path=abs_path)
