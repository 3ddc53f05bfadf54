"""Exception taxonomy shared by services and the HTTP layer."""

from __future__ import annotations


class Vision100Error(Exception):
    """Base class for errors that map onto an HTTP status."""

    status_code = 500

    def __init__(self, message: str = "", *, cause: BaseException | None = None) -> None:
        super().__init__(message or self.__class__.__name__)
        self.message = message or self.__class__.__name__
        self.cause = cause


class ValidationError(Vision100Error):
    """Required fields missing or malformed."""

    status_code = 400


class AuthError(Vision100Error):
    """Unknown user or wrong password."""

    status_code = 401


class ConflictError(Vision100Error):
    """Username already registered."""

    status_code = 409


class PersistenceError(Vision100Error):
    """The storage backend failed; ``cause`` holds the driver error."""

    status_code = 500


class UpstreamError(Vision100Error):
    """The generative-language service failed or timed out."""

    status_code = 500


__all__ = [
    "AuthError",
    "ConflictError",
    "PersistenceError",
    "UpstreamError",
    "ValidationError",
    "Vision100Error",
]
