"""SQLModel table exports."""

from .goal import GoalRow
from .user import User

__all__ = [
    "GoalRow",
    "User",
]
