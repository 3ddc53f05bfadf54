"""Goal persistence facade over the active storage backend.

Every sync replaces the user's whole collection. There is no version check:
two clients syncing the same user interleave as last-writer-wins.
"""

from __future__ import annotations

from typing import Any, Iterable, Sequence

from ..domain.goal import MAX_GOALS, Goal
from ..domain.repositories import GoalRepository
from ..errors import PersistenceError, ValidationError
from ..logging_config import get_logger

logger = get_logger(__name__)


def parse_goals(payload: Iterable[Any]) -> list[Goal]:
    """Convert client JSON into goals, raising ``ValidationError`` on bad items."""

    goals = []
    for index, item in enumerate(payload):
        try:
            goals.append(Goal.from_dict(item))
        except (KeyError, TypeError, ValueError) as exc:
            raise ValidationError(f"Invalid goal at position {index}: {exc}") from exc
    return goals


class GoalService:
    """``load_goals`` / ``replace_goals`` for one user's collection."""

    def __init__(self, repository: GoalRepository, *, max_goals: int = MAX_GOALS):
        self.repository = repository
        self.max_goals = max_goals

    def load_goals(self, username: str | None) -> list[Goal]:
        """Return stored goals; a missing username simply yields nothing."""

        if not username:
            return []
        rows = self.repository.list_goal_rows(username)
        goals = []
        for row in rows:
            try:
                goals.append(Goal.from_row(row))
            except (KeyError, TypeError, ValueError) as exc:
                raise PersistenceError(
                    f"Stored goal {row.get('id')!r} is unreadable: {exc}", cause=exc
                ) from exc
        return goals

    def replace_goals(self, username: str | None, goals: Sequence[Goal]) -> None:
        """Atomically swap the stored collection for ``goals``.

        Atomicity is as strong as the backend allows; see
        ``StorageBackend.transactional``.
        """

        if not username:
            raise ValidationError("username is required")
        if len(goals) > self.max_goals:
            raise ValidationError(f"At most {self.max_goals} goals may be stored per user")
        seen: set[str] = set()
        for goal in goals:
            if goal.id in seen:
                raise ValidationError(f"Duplicate goal id {goal.id!r}")
            seen.add(goal.id)

        try:
            self.repository.replace_goal_rows(username, [goal.to_row(username) for goal in goals])
        except PersistenceError:
            logger.exception("Goal sync failed", extra={"username": username})
            raise


__all__ = ["GoalService", "parse_goals"]
