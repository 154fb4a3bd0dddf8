"""Browser-based web UI for py-vfs.

This package provides a Flask application that exposes the py-vfs shell
through a web browser.  It is an **optional** extra — install with::

    pip install py-vfs[web]

The ``create_app`` factory in ``app.py`` mounts a disk image, creates a
shell, and serves three endpoints:

- ``GET /`` — HTML terminal page.
- ``POST /api/execute`` — execute a shell command and return JSON.
- ``GET /api/status`` — mount state and working directory.
"""
