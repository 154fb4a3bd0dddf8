"""Virtual filesystem subsystem — nodes, paths, operations and persistence.

Re-exports public symbols so callers can write::

    from py_vfs.fs import FileSystem, VirtualDisk
"""

from py_vfs.fs.disk import VirtualDisk
from py_vfs.fs.errors import (
    AlreadyExistsError,
    ErrorKind,
    FsError,
    InvalidModeError,
    InvalidPathError,
    IsADirectoryError,
    NotADirectoryError,
    NotEmptyError,
    NotFoundError,
    PersistenceError,
    SnapshotError,
)
from py_vfs.fs.filesystem import DirEntry, FileSystem, NodeStat
from py_vfs.fs.node import Node, NodeKind, format_perms, parse_mode
from py_vfs.fs.paths import ROOT_PATH, ResolvedPath, normalize, resolve
from py_vfs.fs.persistence import (
    SNAPSHOT_FORMAT,
    SNAPSHOT_VERSION,
    decode_snapshot,
    dump_filesystem,
    encode_snapshot,
    load_filesystem,
)

__all__ = [
    "ROOT_PATH",
    "SNAPSHOT_FORMAT",
    "SNAPSHOT_VERSION",
    "AlreadyExistsError",
    "DirEntry",
    "ErrorKind",
    "FileSystem",
    "FsError",
    "InvalidModeError",
    "InvalidPathError",
    "IsADirectoryError",
    "Node",
    "NodeKind",
    "NodeStat",
    "NotADirectoryError",
    "NotEmptyError",
    "NotFoundError",
    "PersistenceError",
    "ResolvedPath",
    "SnapshotError",
    "VirtualDisk",
    "decode_snapshot",
    "dump_filesystem",
    "encode_snapshot",
    "format_perms",
    "load_filesystem",
    "normalize",
    "parse_mode",
    "resolve",
]
