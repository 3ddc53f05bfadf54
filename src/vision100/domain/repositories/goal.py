"""Goal repository protocol."""

from __future__ import annotations

from typing import Any, Protocol, Sequence


class GoalRepository(Protocol):
    """Per-user goal rows in the storage-agnostic shape.

    A row is a mapping with ``id, username, text, category, completed,
    created_at`` and a ``data`` dict holding everything else.
    """

    def list_goal_rows(self, username: str) -> list[dict[str, Any]]:
        """Return the user's rows, newest ``created_at`` first."""
        ...

    def replace_goal_rows(self, username: str, rows: Sequence[dict[str, Any]]) -> None:
        """Delete every stored row for ``username`` and insert ``rows``."""
        ...
