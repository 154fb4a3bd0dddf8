"""The shell — command interpreter for the virtual filesystem.

The shell reads a command string, splits it into a command name and
arguments, dispatches to the matching handler, and returns a string
result.

Design choices:
    - **Returns strings, not prints.**  This keeps the shell fully
      testable and leaves display to the caller (REPL or web UI).
    - **Command dispatch via a dict.**  Adding a command means writing a
      method and adding one dict entry.
    - **Quote-aware tokenizing.**  ``shlex`` keeps ``"hello world"`` as a
      single argument, so file content can contain spaces.
    - **Errors never escape.**  Every ``FsError`` is rendered as an
      ``Error: ...`` line, so one failed command never stops the loop.
"""

from __future__ import annotations

import contextlib
import shlex
from collections.abc import Callable
from datetime import datetime
from typing import TYPE_CHECKING

from py_vfs.fs.errors import FsError, PersistenceError
from py_vfs.fs.node import NodeKind

if TYPE_CHECKING:
    from py_vfs.fs.disk import VirtualDisk

# Type alias for a command handler: takes a list of args, returns output.
_Handler = Callable[[list[str]], str]

_KIND_LABELS = {NodeKind.DIRECTORY: "DIR ", NodeKind.FILE: "FILE"}


def _format_time(epoch_ms: int) -> str:
    return datetime.fromtimestamp(epoch_ms / 1000).isoformat(sep=" ", timespec="seconds")


class Shell:
    """Command interpreter bound to a mounted virtual disk."""

    EXIT_SENTINEL = "__EXIT__"

    def __init__(self, *, disk: VirtualDisk) -> None:
        """Create a shell that operates on *disk*."""
        self._disk = disk

        # Command dispatch table — maps command names to handler methods.
        self._commands: dict[str, _Handler] = {
            "help": self._cmd_help,
            "pwd": self._cmd_pwd,
            "cd": self._cmd_cd,
            "ls": self._cmd_ls,
            "tree": self._cmd_tree,
            "mkdir": self._cmd_mkdir,
            "touch": self._cmd_touch,
            "write": self._cmd_write,
            "append": self._cmd_append,
            "cat": self._cmd_cat,
            "rm": self._cmd_rm,
            "mv": self._cmd_mv,
            "cp": self._cmd_cp,
            "stat": self._cmd_stat,
            "chmod": self._cmd_chmod,
            "find": self._cmd_find,
            "save": self._cmd_save,
            "log": self._cmd_log,
            "exit": self._cmd_exit,
        }

    @property
    def commands(self) -> list[str]:
        """Return the names of all commands, sorted."""
        return sorted(self._commands)

    def execute(self, command: str) -> str:
        """Parse and execute one command line.

        Args:
            command: The raw command string (e.g. ``write a.txt "hi there"``).

        Returns:
            The command output, an ``Error: ...`` line, or
            ``EXIT_SENTINEL`` after ``exit``.

        """
        try:
            parts = shlex.split(command)
        except ValueError as e:
            return f"Error: {e}"
        if not parts:
            return ""

        name, args = parts[0], parts[1:]
        handler = self._commands.get(name)
        if handler is None:
            return f"Unknown command: {name}. Try 'help'."

        try:
            return handler(args)
        except FsError as e:
            return f"Error: {e}"

    # -- Command handlers ------------------------------------------------

    def _cmd_help(self, _args: list[str]) -> str:
        """List available commands."""
        return "Available commands: " + ", ".join(self.commands)

    def _cmd_pwd(self, _args: list[str]) -> str:
        """Print the working directory."""
        return self._disk.pwd()

    def _cmd_cd(self, args: list[str]) -> str:
        """Change the working directory."""
        if not args:
            return "Usage: cd <path>"
        return f"cwd -> {self._disk.change_dir(args[0])}"

    def _cmd_ls(self, args: list[str]) -> str:
        """List a directory, or describe a file."""
        entries = self._disk.list_dir(args[0] if args else None)
        return "\n".join(f"{e.name}\t{_KIND_LABELS[e.kind]}\t{e.size}" for e in entries)

    def _cmd_tree(self, args: list[str]) -> str:
        """Show a directory tree."""
        return "\n".join(self._disk.tree(args[0] if args else None))

    def _cmd_mkdir(self, args: list[str]) -> str:
        """Create a directory (parents are created too)."""
        if not args:
            return "Usage: mkdir <path>"
        self._disk.create_dir(args[0])
        return ""

    def _cmd_touch(self, args: list[str]) -> str:
        """Create an empty file or update its mtime."""
        if not args:
            return "Usage: touch <path>"
        self._disk.create_file(args[0])
        return ""

    def _cmd_write(self, args: list[str]) -> str:
        """Replace a file's content."""
        if len(args) < 2:  # noqa: PLR2004
            return 'Usage: write <path> "text"'
        self._disk.write(args[0], " ".join(args[1:]).encode())
        return ""

    def _cmd_append(self, args: list[str]) -> str:
        """Append to a file's content."""
        if len(args) < 2:  # noqa: PLR2004
            return 'Usage: append <path> "text"'
        self._disk.append(args[0], " ".join(args[1:]).encode())
        return ""

    def _cmd_cat(self, args: list[str]) -> str:
        """Print a file's content."""
        if not args:
            return "Usage: cat <path>"
        return self._disk.read(args[0]).decode(errors="replace")

    def _cmd_rm(self, args: list[str]) -> str:
        """Remove a file or empty directory; ``-r`` removes recursively."""
        match args:
            case ["-r", path]:
                self._disk.delete(path, recursive=True)
            case [path]:
                self._disk.delete(path)
            case _:
                return "Usage: rm <path> | rm -r <path>"
        return ""

    def _cmd_mv(self, args: list[str]) -> str:
        """Move or rename a file or directory."""
        if len(args) < 2:  # noqa: PLR2004
            return "Usage: mv <src> <dst>"
        self._disk.move(args[0], args[1])
        return ""

    def _cmd_cp(self, args: list[str]) -> str:
        """Copy a file or directory recursively."""
        if len(args) < 2:  # noqa: PLR2004
            return "Usage: cp <src> <dst>"
        self._disk.copy(args[0], args[1])
        return ""

    def _cmd_stat(self, args: list[str]) -> str:
        """Display node metadata."""
        if not args:
            return "Usage: stat <path>"
        info = self._disk.stat(args[0])
        unit = "entries" if info.kind is NodeKind.DIRECTORY else "bytes"
        lines = [
            f"path: {info.path}",
            f"type: {info.kind}",
            f"size: {info.size} {unit}",
            f"ctime: {_format_time(info.ctime)}",
            f"mtime: {_format_time(info.mtime)}",
            f"perms: {info.perms}",
        ]
        return "\n".join(lines)

    def _cmd_chmod(self, args: list[str]) -> str:
        """Set advisory permissions (``rwx``, ``r-x``, ``rw-``, ``---``)."""
        if len(args) < 2:  # noqa: PLR2004
            return "Usage: chmod <path> <rwx>"
        return f"perms -> {self._disk.chmod(args[0], args[1])}"

    def _cmd_find(self, args: list[str]) -> str:
        """Search every node's name for a substring (case-insensitive)."""
        if not args:
            return "Usage: find <name>"
        matches = self._disk.find(args[0])
        return "\n".join(matches) if matches else "No matches."

    def _cmd_save(self, _args: list[str]) -> str:
        """Flush the filesystem to the disk image."""
        self._disk.save()
        return "Saved."

    def _cmd_log(self, _args: list[str]) -> str:
        """Show the event log."""
        entries = self._disk.logger.messages()
        return "\n".join(entries) if entries else "No log entries."

    def _cmd_exit(self, _args: list[str]) -> str:
        """Save and signal the REPL to stop."""
        # A failed final save is already in the log; exiting proceeds.
        with contextlib.suppress(PersistenceError):
            self._disk.unmount()
        return self.EXIT_SENTINEL
