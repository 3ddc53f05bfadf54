"""Repository protocol definitions for domain layer."""

from .goal import GoalRepository
from .storage import StorageBackend
from .user import UserRepository

__all__ = [
    "GoalRepository",
    "StorageBackend",
    "UserRepository",
]
