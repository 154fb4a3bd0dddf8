"""py-vfs — a persistent virtual hierarchical filesystem.

An in-memory tree of files and directories with Unix-style path
resolution, mutation and query commands, and whole-tree snapshots saved
to a single disk image after every change.
"""

__version__ = "0.1.0"
