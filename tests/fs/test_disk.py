"""Tests for the mounted virtual disk.

The disk wraps a filesystem and flushes a full snapshot after every
mutation.  Mounting loads an existing image, or formats a new one when
the image is missing or corrupt.
"""

from pathlib import Path

import pytest

from py_vfs.fs.disk import VirtualDisk
from py_vfs.fs.errors import NotFoundError, PersistenceError
from py_vfs.fs.persistence import load_filesystem
from py_vfs.logging import Logger, LogLevel


def _mounted(tmp_path: Path, *, min_level: LogLevel = LogLevel.INFO) -> VirtualDisk:
    return VirtualDisk.mount(tmp_path / "disk.vfs", logger=Logger(min_level=min_level))


class TestMount:
    """Verify the load-or-format rule."""

    def test_missing_image_is_formatted(self, tmp_path: Path) -> None:
        """A missing image yields an empty filesystem saved to disk."""
        disk = _mounted(tmp_path)
        assert disk.list_dir("/") == []
        assert disk.image_path.exists()
        assert any("Formatting new disk image" in msg for msg in disk.logger.messages())

    def test_existing_image_is_loaded(self, tmp_path: Path) -> None:
        """A valid image is loaded with its tree and working directory."""
        first = _mounted(tmp_path)
        first.write("/docs/a.txt", b"persisted")
        first.change_dir("/docs")
        first.save()

        second = _mounted(tmp_path)
        assert second.read("/docs/a.txt") == b"persisted"
        assert second.pwd() == "/docs"
        assert any("Mounted disk image" in msg for msg in second.logger.messages())

    def test_corrupt_image_is_reformatted(self, tmp_path: Path) -> None:
        """A corrupt image is logged as a warning and replaced."""
        image = tmp_path / "disk.vfs"
        image.write_text("this is not json", encoding="utf-8")
        logger = Logger()

        disk = VirtualDisk.mount(image, logger=logger)

        assert disk.list_dir("/") == []
        warnings = logger.filter(min_level=LogLevel.WARNING)
        assert len(warnings) == 1
        assert warnings[0].level is LogLevel.WARNING
        assert load_filesystem(image).list_dir("/") == []

    def test_deeply_nested_image_is_reformatted(self, tmp_path: Path) -> None:
        """An image too deep to decode is recovered by formatting."""
        image = tmp_path / "disk.vfs"
        image.write_text("[" * 200_000, encoding="utf-8")
        logger = Logger()

        disk = VirtualDisk.mount(image, logger=logger)

        assert disk.list_dir("/") == []
        assert len(logger.filter(min_level=LogLevel.WARNING)) == 1
        assert load_filesystem(image).list_dir("/") == []

    def test_copy_over_cwd_survives_remount(self, tmp_path: Path) -> None:
        """A copy that replaces the cwd's directory still leaves a loadable image."""
        disk = _mounted(tmp_path)
        disk.create_dir("/d/e")
        disk.write("/keep.txt", b"keep")
        disk.write("/src/d", b"file")
        disk.change_dir("/d/e")
        disk.copy("/src/d", "/")

        remounted = _mounted(tmp_path)
        assert remounted.read("/keep.txt") == b"keep"
        assert remounted.pwd() == "/"
        assert remounted.logger.filter(min_level=LogLevel.WARNING) == []

    def test_unusable_image_path_does_not_raise(self, tmp_path: Path) -> None:
        """An image path that is a directory still mounts, in memory only."""
        image = tmp_path / "image_dir"
        image.mkdir()
        logger = Logger()

        disk = VirtualDisk.mount(image, logger=logger)

        assert disk.list_dir("/") == []
        levels = [entry.level for entry in logger.entries]
        assert LogLevel.WARNING in levels
        assert LogLevel.ERROR in levels


class TestFlushing:
    """Verify every mutation reaches the disk image."""

    def test_each_mutation_is_saved(self, tmp_path: Path) -> None:
        """Reloading after each kind of mutation sees the change."""
        disk = _mounted(tmp_path)
        disk.create_dir("/docs")
        disk.create_file("/docs/empty.txt")
        disk.write("/docs/a.txt", b"hello")
        disk.append("/docs/a.txt", b" world")
        disk.copy("/docs/a.txt", "/docs/b.txt")
        disk.move("/docs/b.txt", "/c.txt")
        disk.chmod("/c.txt", "r--")
        disk.delete("/docs/empty.txt")

        loaded = load_filesystem(disk.image_path)
        assert loaded.to_dict() == disk.fs.to_dict()
        assert loaded.read("/docs/a.txt") == b"hello world"
        assert loaded.stat("/c.txt").perms == "r--"
        assert not loaded.exists("/docs/empty.txt")

    def test_cd_alone_is_not_saved(self, tmp_path: Path) -> None:
        """Changing directory does not rewrite the image."""
        disk = _mounted(tmp_path)
        disk.create_dir("/docs")
        disk.change_dir("/docs")
        assert load_filesystem(disk.image_path).pwd() == "/"
        disk.save()
        assert load_filesystem(disk.image_path).pwd() == "/docs"

    def test_failed_mutation_is_not_logged(self, tmp_path: Path) -> None:
        """Only successful mutations produce DEBUG entries."""
        disk = _mounted(tmp_path, min_level=LogLevel.DEBUG)
        disk.logger.clear()
        with pytest.raises(NotFoundError):
            disk.delete("/missing")
        assert disk.logger.entries == []

    def test_mutations_logged_at_debug(self, tmp_path: Path) -> None:
        """Each flushed mutation records its operation and path."""
        disk = _mounted(tmp_path, min_level=LogLevel.DEBUG)
        disk.logger.clear()
        disk.create_dir("/docs")
        disk.write("docs/a.txt", b"x")
        entries = disk.logger.filter(source="disk")
        assert [entry.message for entry in entries] == ["mkdir /docs", "write /docs/a.txt"]
        assert all(entry.level is LogLevel.DEBUG for entry in entries)

    def test_debug_entries_dropped_at_info(self, tmp_path: Path) -> None:
        """At the default level per-operation entries are not kept."""
        disk = _mounted(tmp_path)
        disk.logger.clear()
        disk.create_dir("/docs")
        assert disk.logger.entries == []


class TestSaveFailure:
    """Verify a failed save keeps the in-memory change."""

    def test_save_failure_raises_but_keeps_mutation(self, tmp_path: Path) -> None:
        """The mutation stays applied while the error propagates."""
        disk = VirtualDisk.mount(tmp_path / "missing_dir" / "disk.vfs", logger=Logger())

        with pytest.raises(PersistenceError):
            disk.create_dir("/docs")

        assert disk.exists("/docs")
        errors = disk.logger.filter(min_level=LogLevel.ERROR)
        assert errors
        assert "Save failed" in errors[-1].message

    def test_unmount_saves(self, tmp_path: Path) -> None:
        """Unmounting flushes state such as the working directory."""
        disk = _mounted(tmp_path)
        disk.create_dir("/docs")
        disk.change_dir("/docs")
        disk.unmount()
        assert load_filesystem(disk.image_path).pwd() == "/docs"
        assert "Unmounted" in disk.logger.messages()[-1]
