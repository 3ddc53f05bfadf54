"""Password credential store: registration and verification."""

from __future__ import annotations

import hmac
import secrets

from argon2.low_level import Type, hash_secret_raw

from ..domain.repositories import UserRepository
from ..errors import AuthError, ConflictError, ValidationError
from ..logging_config import get_logger
from ..models.user import User

logger = get_logger(__name__)

SALT_BYTES = 16
HASH_BYTES = 32
# argon2-cffi's RFC 9106 low-memory profile
TIME_COST = 3
MEMORY_COST = 64 * 1024
PARALLELISM = 4

_DUMMY_SALT = bytes(SALT_BYTES)


def _derive(password: str, salt: bytes) -> bytes:
    return hash_secret_raw(
        secret=password.encode("utf-8"),
        salt=salt,
        time_cost=TIME_COST,
        memory_cost=MEMORY_COST,
        parallelism=PARALLELISM,
        hash_len=HASH_BYTES,
        type=Type.ID,
    )


def _require(username: str, password: str) -> None:
    if not username or not password:
        raise ValidationError("Username and password are required")


class CredentialStore:
    """Salted Argon2id credentials kept in the active storage backend."""

    def __init__(self, users: UserRepository):
        self.users = users

    def register(self, username: str, password: str) -> str:
        """Create an account and return its username.

        Raises ``ConflictError`` when the name is taken; the stored
        credential is left untouched.
        """

        _require(username, password)
        if self.users.get_user(username) is not None:
            raise ConflictError("Username already exists")
        salt = secrets.token_bytes(SALT_BYTES)
        user = User(
            username=username,
            salt=salt.hex(),
            password_hash=_derive(password, salt).hex(),
        )
        self.users.add_user(user)
        logger.info("User registered", extra={"username": username})
        return username

    def verify(self, username: str, password: str) -> bool:
        """Return True for matching credentials, otherwise raise ``AuthError``."""

        _require(username, password)
        user = self.users.get_user(username)
        if user is None:
            # burn the same work so response time does not reveal unknown names
            _derive(password, _DUMMY_SALT)
            raise AuthError("Invalid username or password")
        computed = _derive(password, bytes.fromhex(user.salt))
        if not hmac.compare_digest(computed, bytes.fromhex(user.password_hash)):
            logger.warning("Password mismatch", extra={"username": username})
            raise AuthError("Invalid username or password")
        return True


__all__ = ["CredentialStore"]
