"""Mounted disk — a filesystem bound to its backing store.

``VirtualDisk`` is a layer on top of ``FileSystem``: read operations
pass straight through, and every mutating operation is applied to the
in-memory tree and then flushed to the disk image as a full snapshot.

Mounting follows a load-or-format rule:

- image present and valid → load it;
- image present but unreadable or corrupt → log a warning, format a
  fresh filesystem and save it over the bad image;
- image missing → format and save.

A save that fails after a successful mutation is reported as a
``PersistenceError`` but the mutation stays in memory.  The next
successful save brings the image back in line.
"""

from __future__ import annotations

import contextlib
from typing import TYPE_CHECKING

from py_vfs.fs.errors import PersistenceError
from py_vfs.fs.filesystem import DirEntry, FileSystem, NodeStat
from py_vfs.fs.paths import normalize
from py_vfs.fs.persistence import dump_filesystem, load_filesystem
from py_vfs.logging import Logger, LogLevel

if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path

    from py_vfs.fs.node import Node

_SOURCE = "disk"


class VirtualDisk:
    """A virtual filesystem persisted to a single disk image."""

    def __init__(
        self,
        fs: FileSystem,
        image_path: Path,
        *,
        logger: Logger | None = None,
        indent: int | None = 2,
    ) -> None:
        """Bind *fs* to *image_path* without touching the disk.

        Use ``VirtualDisk.mount()`` to load or format the image.
        """
        self._fs = fs
        self._image_path = image_path
        self._logger = logger if logger is not None else Logger()
        self._indent = indent

    @classmethod
    def mount(
        cls,
        image_path: Path,
        *,
        logger: Logger | None = None,
        indent: int | None = 2,
    ) -> VirtualDisk:
        """Load the disk image at *image_path*, or format a new one.

        Never raises for a bad or unwritable image: problems are logged
        and the disk comes up with an empty filesystem.
        """
        log = logger if logger is not None else Logger()
        path = str(image_path)

        if image_path.exists():
            try:
                fs = load_filesystem(image_path)
            except PersistenceError as exc:
                log.log(
                    LogLevel.WARNING,
                    f"Could not load disk image, formatting new filesystem: {exc}",
                    source=_SOURCE,
                    path=path,
                )
            else:
                log.log(LogLevel.INFO, f"Mounted disk image: {path}", source=_SOURCE, path=path)
                return cls(fs, image_path, logger=log, indent=indent)
        else:
            log.log(LogLevel.INFO, f"Formatting new disk image: {path}", source=_SOURCE, path=path)

        disk = cls(FileSystem(), image_path, logger=log, indent=indent)
        # save() has already logged the failure; the disk still works in memory.
        with contextlib.suppress(PersistenceError):
            disk.save()
        return disk

    @property
    def fs(self) -> FileSystem:
        """Return the mounted filesystem."""
        return self._fs

    @property
    def image_path(self) -> Path:
        """Return the path of the backing disk image."""
        return self._image_path

    @property
    def logger(self) -> Logger:
        """Return the event log."""
        return self._logger

    @property
    def cwd(self) -> str:
        """Return the filesystem's working directory."""
        return self._fs.cwd

    # -- Persistence ----------------------------------------------------------

    def save(self) -> None:
        """Write a full snapshot over the disk image.

        Raises:
            PersistenceError: If the image cannot be written.  The
                in-memory filesystem is unaffected.

        """
        try:
            dump_filesystem(self._fs, self._image_path, indent=self._indent)
        except PersistenceError as exc:
            self._logger.log(
                LogLevel.ERROR, f"Save failed: {exc}", source=_SOURCE, path=str(self._image_path)
            )
            raise

    def unmount(self) -> None:
        """Flush the filesystem one last time before shutdown."""
        self.save()
        self._logger.log(
            LogLevel.INFO,
            f"Unmounted disk image: {self._image_path}",
            source=_SOURCE,
            path=str(self._image_path),
        )

    def _flushed(self, op: str, path: str) -> None:
        """Record a completed mutation and persist it."""
        self._logger.log(LogLevel.DEBUG, f"{op} {path}", source=_SOURCE, path=path)
        self.save()

    # -- Queries (no flush) ---------------------------------------------------

    def pwd(self) -> str:
        """Return the working directory."""
        return self._fs.pwd()

    def change_dir(self, path: str) -> str:
        """Change the working directory (not persisted until the next save)."""
        return self._fs.change_dir(path)

    def exists(self, path: str) -> bool:
        """Check whether *path* names an existing node."""
        return self._fs.exists(path)

    def list_dir(self, path: str | None = None) -> list[DirEntry]:
        """List a directory (or describe a file)."""
        return self._fs.list_dir(path)

    def tree(self, path: str | None = None) -> list[str]:
        """Render a subtree."""
        return self._fs.tree(path)

    def stat(self, path: str) -> NodeStat:
        """Return metadata for *path*."""
        return self._fs.stat(path)

    def read(self, path: str) -> bytes:
        """Return a file's contents."""
        return self._fs.read(path)

    def find(self, pattern: str) -> list[str]:
        """Search the whole tree by name."""
        return self._fs.find(pattern)

    def walk(self, path: str = "/") -> Iterator[tuple[str, Node]]:
        """Walk a subtree in pre-order."""
        return self._fs.walk(path)

    # -- Mutations (flushed) --------------------------------------------------

    def create_file(self, path: str) -> str:
        """Create a file or refresh its mtime, then save."""
        abs_path = self._fs.create_file(path)
        self._flushed("touch", abs_path)
        return abs_path

    def write(self, path: str, data: bytes) -> int:
        """Replace a file's contents, then save."""
        size = self._fs.write(path, data)
        self._flushed("write", normalize(path, self._fs.cwd))
        return size

    def append(self, path: str, data: bytes) -> int:
        """Append to a file's contents, then save."""
        size = self._fs.write(path, data, append=True)
        self._flushed("append", normalize(path, self._fs.cwd))
        return size

    def create_dir(self, path: str) -> str:
        """Create a directory, then save."""
        abs_path = self._fs.create_dir(path)
        self._flushed("mkdir", abs_path)
        return abs_path

    def delete(self, path: str, *, recursive: bool = False) -> str:
        """Remove a node, then save."""
        abs_path = self._fs.delete(path, recursive=recursive)
        self._flushed("rm", abs_path)
        return abs_path

    def move(self, src: str, dst: str) -> str:
        """Move or rename a node, then save."""
        new_path = self._fs.move(src, dst)
        self._flushed("mv", new_path)
        return new_path

    def copy(self, src: str, dst: str) -> str:
        """Copy a node recursively, then save."""
        new_path = self._fs.copy(src, dst)
        self._flushed("cp", new_path)
        return new_path

    def chmod(self, path: str, mode: str) -> str:
        """Change advisory permissions, then save."""
        perms = self._fs.chmod(path, mode)
        self._flushed("chmod", normalize(path, self._fs.cwd))
        return perms
