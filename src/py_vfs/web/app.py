"""Flask application factory for the py-vfs web UI.

The ``create_app`` function mounts a disk image, creates a shell, and
returns a Flask app with three endpoints:

- ``GET /`` — render the terminal HTML page with the mount log.
- ``POST /api/execute`` — execute a command and return JSON.
- ``GET /api/status`` — return mount state, working directory and image.

After ``exit`` the disk is unmounted and further commands are refused.
"""

from __future__ import annotations

import os
import sys

from flask import Flask, Response, jsonify, render_template, request

from py_vfs.config import VfsConfig
from py_vfs.fs.disk import VirtualDisk
from py_vfs.logging import Logger
from py_vfs.shell import Shell

_HTTP_BAD_REQUEST = 400


def create_app(config: VfsConfig | None = None) -> Flask:
    """Create and configure the Flask application.

    Mount the configured disk image, create a shell, and wire up routes.

    Args:
        config: Session settings; defaults are used when omitted.

    Returns:
        A configured Flask application ready to serve.

    """
    config = config if config is not None else VfsConfig()
    logger = Logger(min_level=config.log_level)
    disk = VirtualDisk.mount(config.image_path, logger=logger, indent=config.indent)
    shell = Shell(disk=disk)
    mounted = True

    mount_log = "\n".join(logger.messages())

    app = Flask(__name__)

    @app.route("/")
    def index() -> str:  # pyright: ignore[reportUnusedFunction]
        """Render the terminal HTML page."""
        return render_template("index.html", mount_log=mount_log, cwd=disk.cwd)

    @app.route("/api/execute", methods=["POST"])
    def execute() -> tuple[Response, int] | Response:  # pyright: ignore[reportUnusedFunction]
        """Execute a shell command and return JSON output.

        Expects JSON body: ``{"command": "..."}``

        Returns:
            JSON with ``output``, ``cwd`` and ``halted`` fields.

        """
        nonlocal mounted
        data = request.get_json(silent=True)
        if not isinstance(data, dict) or "command" not in data:
            return jsonify({"error": "Missing 'command' field"}), _HTTP_BAD_REQUEST
        command = data["command"]
        if not isinstance(command, str):
            return jsonify({"error": "'command' must be a string"}), _HTTP_BAD_REQUEST

        if not mounted:
            return jsonify({"output": "Disk unmounted.", "cwd": disk.cwd, "halted": True})

        result = shell.execute(command)

        if result == Shell.EXIT_SENTINEL:
            mounted = False
            return jsonify({"output": "Disk unmounted.", "cwd": disk.cwd, "halted": True})

        return jsonify({"output": result, "cwd": disk.cwd, "halted": False})

    @app.route("/api/status")
    def status() -> Response:  # pyright: ignore[reportUnusedFunction]
        """Return the mount state for status polling.

        Returns:
            JSON with ``mounted``, ``cwd`` and ``image`` fields.

        """
        return jsonify({"mounted": mounted, "cwd": disk.cwd, "image": str(disk.image_path)})

    return app


def main() -> None:
    """Run the web UI development server.

    This is the ``py-vfs-web`` console entry point.
    """
    app = create_app(VfsConfig.from_env(sys.argv[1:], os.environ))
    app.run(debug=True, port=8080)
