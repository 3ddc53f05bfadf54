"""The single backend interface selected at startup."""

from __future__ import annotations

from typing import Protocol

from .goal import GoalRepository
from .user import UserRepository


class StorageBackend(GoalRepository, UserRepository, Protocol):
    """One of the embedded-file, networked-relational or hosted-table stores."""

    name: str
    transactional: bool

    def init_schema(self) -> None:
        """Create tables when the backend owns its schema."""
        ...

    def close(self) -> None:
        """Release pooled connections."""
        ...
