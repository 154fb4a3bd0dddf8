"""Snapshot persistence — save the whole filesystem to disk and load it back.

The backing store is a single JSON document holding the complete tree
and the working directory::

    {
      "format": "py-vfs-snapshot",
      "version": 1,
      "cwd": "/docs",
      "root": {"kind": "directory", "name": "/", "children": [...], ...}
    }

Every save rewrites the document in full; there is no incremental or
atomic update.  Loading validates the document explicitly, so a
truncated or foreign file surfaces as ``SnapshotError`` instead of a
random ``KeyError`` deep inside the decoder.
"""

import json
from pathlib import Path
from typing import Any

from py_vfs.fs.errors import InvalidPathError, NotFoundError, PersistenceError, SnapshotError
from py_vfs.fs.filesystem import FileSystem
from py_vfs.fs.node import NodeKind
from py_vfs.fs.paths import ROOT_PATH, normalize

SNAPSHOT_FORMAT = "py-vfs-snapshot"
SNAPSHOT_VERSION = 1


def encode_snapshot(fs: FileSystem) -> dict[str, Any]:
    """Return the snapshot document for *fs*."""
    return {"format": SNAPSHOT_FORMAT, "version": SNAPSHOT_VERSION, **fs.to_dict()}


def decode_snapshot(data: Any) -> FileSystem:
    """Rebuild a filesystem from a snapshot document.

    Raises:
        SnapshotError: If the document is not a valid snapshot.

    """
    if not isinstance(data, dict):
        msg = "Snapshot must be a JSON object"
        raise SnapshotError(msg)
    if data.get("format") != SNAPSHOT_FORMAT:
        msg = f"Not a py-vfs snapshot (format={data.get('format')!r})"
        raise SnapshotError(msg)
    version = data.get("version")
    if version != SNAPSHOT_VERSION:
        msg = f"Unsupported snapshot version: {version!r}"
        raise SnapshotError(msg)
    if "root" not in data:
        msg = "Snapshot has no root"
        raise SnapshotError(msg)

    cwd = data.get("cwd")
    if not isinstance(cwd, str) or not cwd.startswith("/"):
        msg = f"Snapshot working directory must be an absolute path, got {cwd!r}"
        raise SnapshotError(msg)

    fs = FileSystem.from_dict(data)
    if fs.root.kind is not NodeKind.DIRECTORY or fs.root.name != ROOT_PATH:
        msg = "Snapshot root must be a directory named '/'"
        raise SnapshotError(msg)
    try:
        cwd_node = fs.resolve(cwd).node
    except (NotFoundError, InvalidPathError) as exc:
        msg = f"Snapshot working directory does not exist: {normalize(cwd)}"
        raise SnapshotError(msg) from exc
    assert cwd_node is not None  # noqa: S101
    if not cwd_node.is_dir:
        msg = f"Snapshot working directory is not a directory: {cwd}"
        raise SnapshotError(msg)
    return fs


def dump_filesystem(fs: FileSystem, path: Path, *, indent: int | None = 2) -> None:
    """Save a filesystem to a JSON file, replacing its previous contents.

    Analogous to unmounting: all in-memory state is flushed to the
    backing store.

    Args:
        fs: The filesystem to save.
        path: The file path to write to.
        indent: JSON indentation (None for a compact document).

    Raises:
        PersistenceError: If the file cannot be written.

    """
    try:
        text = json.dumps(encode_snapshot(fs), indent=indent)
    except RecursionError as exc:
        msg = f"Cannot write disk image {path}: tree is too deep to encode"
        raise PersistenceError(msg, path=str(path)) from exc
    try:
        path.write_text(text, encoding="utf-8")
    except OSError as exc:
        msg = f"Cannot write disk image {path}: {exc}"
        raise PersistenceError(msg, path=str(path)) from exc


def load_filesystem(path: Path) -> FileSystem:
    """Load a filesystem from a JSON file.

    Analogous to mounting: the on-disk snapshot is read into memory.

    Args:
        path: The file path to read from.

    Returns:
        A reconstructed FileSystem instance.

    Raises:
        PersistenceError: If the file cannot be read.
        SnapshotError: If the file is not a valid snapshot.

    """
    try:
        text = path.read_text(encoding="utf-8")
    except UnicodeDecodeError as exc:
        msg = f"Disk image {path} is not UTF-8 text: {exc}"
        raise SnapshotError(msg, path=str(path)) from exc
    except OSError as exc:
        msg = f"Cannot read disk image {path}: {exc}"
        raise PersistenceError(msg, path=str(path)) from exc

    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        msg = f"Disk image {path} is not valid JSON: {exc}"
        raise SnapshotError(msg, path=str(path)) from exc
    except RecursionError as exc:
        msg = f"Disk image {path} is nested too deeply to decode"
        raise SnapshotError(msg, path=str(path)) from exc
    try:
        return decode_snapshot(data)
    except RecursionError as exc:
        msg = f"Disk image {path} is nested too deeply to load"
        raise SnapshotError(msg, path=str(path)) from exc
