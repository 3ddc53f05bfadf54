"""Static bundle routes with an ``index.html`` fallback for client routing."""

from __future__ import annotations

from pathlib import Path

from flask import abort, send_from_directory

from ...extensions import get_services
from . import bp


def _static_dir() -> Path:
    return get_services().config.STATIC_DIR.resolve()


@bp.get("/", defaults={"path": ""})
@bp.get("/<path:path>")
def spa(path: str):
    """Serve a bundle file if it exists, otherwise the app shell."""

    static_dir = _static_dir()
    if path.startswith("api/"):
        abort(404)
    if path and (static_dir / path).is_file():
        return send_from_directory(static_dir, path)
    if not (static_dir / "index.html").is_file():
        abort(404)
    return send_from_directory(static_dir, "index.html")
