"""Service module exports."""

from . import advisor, auth, goals, habits

__all__ = [
    "advisor",
    "auth",
    "goals",
    "habits",
]
