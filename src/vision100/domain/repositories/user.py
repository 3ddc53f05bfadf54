"""User credential repository protocol."""

from __future__ import annotations

from typing import Optional, Protocol

from ...models.user import User


class UserRepository(Protocol):
    """Lookup and insert of credential rows; no update or delete."""

    def get_user(self, username: str) -> Optional[User]:
        """Retrieve a user by exact username."""
        ...

    def add_user(self, user: User) -> User:
        """Insert a new user; raise ``ConflictError`` if the name is taken."""
        ...
