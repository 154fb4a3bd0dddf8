"""Runtime configuration — where the disk image lives and how loud to log.

Settings come from, in order of precedence:

1. the first positional command-line argument (the image path);
2. environment variables ``PY_VFS_IMAGE`` and ``PY_VFS_LOG_LEVEL``;
3. built-in defaults.

Like a kernel image's boot arguments, the configuration is a frozen
value built once at startup and handed to the components that need it.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from py_vfs.logging import LogLevel

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

DEFAULT_IMAGE = "disk.vfs"
ENV_IMAGE = "PY_VFS_IMAGE"
ENV_LOG_LEVEL = "PY_VFS_LOG_LEVEL"


@dataclass(frozen=True)
class VfsConfig:
    """Settings for a py-vfs session.

    Attributes:
        image_path: The backing disk image.
        log_level: The minimum level the event log records.
        indent: JSON indentation of the disk image (None for compact).

    """

    image_path: Path = Path(DEFAULT_IMAGE)
    log_level: LogLevel = LogLevel.INFO
    indent: int | None = 2

    @classmethod
    def from_env(cls, argv: Sequence[str], environ: Mapping[str, str]) -> VfsConfig:
        """Build a configuration from command-line arguments and environment.

        Args:
            argv: Arguments after the program name.
            environ: Environment variables (usually ``os.environ``).

        Raises:
            ValueError: If ``PY_VFS_LOG_LEVEL`` is not a level name.

        """
        if argv:
            image = argv[0]
        else:
            image = environ.get(ENV_IMAGE) or DEFAULT_IMAGE

        level_name = environ.get(ENV_LOG_LEVEL)
        log_level = LogLevel.from_name(level_name) if level_name else LogLevel.INFO

        return cls(image_path=Path(image), log_level=log_level)
