"""Single-page app blueprint: serves the built frontend bundle."""

from __future__ import annotations

from flask import Blueprint

bp = Blueprint("web", __name__)

from . import routes  # noqa: E402,F401 - import routes for registration

__all__ = ["bp"]
