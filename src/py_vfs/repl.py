"""Interactive REPL (Read-Eval-Print Loop) for the virtual filesystem.

The REPL mounts the disk image, creates a shell, and enters the
classic loop:

    1. **Read** — display a prompt and read user input.
    2. **Eval** — pass the command to ``shell.execute()``.
    3. **Print** — display the result.
    4. **Loop** — repeat until the shell returns the exit sentinel.

The shell is fully testable (returns strings, no I/O); the REPL is the
thin I/O wrapper that connects it to ``stdin``/``stdout``.  The helper
functions (``build_prompt``, ``format_mount_log``) are pure and
testable.  The ``run()`` function is the I/O entrypoint.
"""

from __future__ import annotations

import contextlib
import os
import readline  # noqa: F401  (line editing and history for input())
import sys
from typing import TYPE_CHECKING

from py_vfs import __version__
from py_vfs.config import VfsConfig
from py_vfs.fs.disk import VirtualDisk
from py_vfs.fs.errors import PersistenceError
from py_vfs.logging import Logger
from py_vfs.shell import Shell

if TYPE_CHECKING:
    from collections.abc import Sequence

_BANNER_WIDTH = 38


def format_mount_log(mount_log: list[str]) -> str:
    """Format the mount log into a displayable banner string.

    Args:
        mount_log: Messages recorded while mounting the disk image.

    Returns:
        A formatted string suitable for printing to the console.

    """
    border = "=" * _BANNER_WIDTH
    header = f"\n  {border}\n            py-vfs v{__version__}\n     A virtual filesystem shell\n  {border}\n\n"
    body = "\n".join(f"  {msg}" for msg in mount_log)
    footer = (
        "\nType 'help' for commands, 'exit' to save and quit.\n"
        "Paths can be absolute (/a/b) or relative.\n"
    )
    return header + body + footer


def build_prompt(disk: VirtualDisk) -> str:
    """Build the prompt string showing the working directory.

    Returns:
        A prompt like ``vfs:/docs$ ``.

    """
    return f"vfs:{disk.cwd}$ "


def run(argv: Sequence[str] | None = None) -> None:
    """Mount the disk image and run the interactive REPL.

    This is the ``py-vfs`` console entry point.  It handles:
    - Configuration from arguments and environment.
    - Mounting (load or format) the disk image.
    - The read-eval-print loop.
    - Graceful handling of Ctrl+C and Ctrl+D.
    - A final save on the way out.
    """
    try:
        config = VfsConfig.from_env(sys.argv[1:] if argv is None else argv, os.environ)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)  # noqa: T201
        raise SystemExit(2) from e

    logger = Logger(min_level=config.log_level)
    disk = VirtualDisk.mount(config.image_path, logger=logger, indent=config.indent)
    shell = Shell(disk=disk)

    print(format_mount_log(logger.messages()))  # noqa: T201

    exited = False
    try:
        while True:
            try:
                command = input(build_prompt(disk))
            except EOFError:
                # Ctrl+D — graceful exit
                print()  # noqa: T201
                break

            result = shell.execute(command)
            if result == Shell.EXIT_SENTINEL:
                exited = True
                break
            if result:
                print(result)  # noqa: T201

    except KeyboardInterrupt:
        # Ctrl+C — graceful exit
        print("\nInterrupted.")  # noqa: T201

    finally:
        if not exited:
            # A failed final save is already in the log.
            with contextlib.suppress(PersistenceError):
                disk.unmount()
        print("bye")  # noqa: T201
