"""Request payload models for the JSON API."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ...errors import ValidationError as RequestValidationError


class CredentialsForm(BaseModel):
    """Body of ``/api/register`` and ``/api/login``."""

    model_config = ConfigDict(validate_default=True)

    username: str = Field(default="", max_length=64)
    password: str = Field(default="", max_length=256)

    @field_validator("username", "password")
    @classmethod
    def require_value(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("Username and password are required")
        return value


class GoalSyncForm(BaseModel):
    """Body of ``POST /api/goals``; goals stay raw dicts until domain parsing."""

    model_config = ConfigDict(validate_default=True)

    username: str = Field(default="")
    goals: list[dict[str, Any]] = Field(default_factory=list)

    @field_validator("username")
    @classmethod
    def require_username(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("username is required")
        return value

    @field_validator("goals", mode="before")
    @classmethod
    def wrap_single_goal(cls, value: Any) -> Any:
        """Accept one goal object as shorthand for a one-item list."""

        if isinstance(value, dict):
            return [value]
        return value


class ChatForm(BaseModel):
    """Body of ``/api/chat``: message, prior turns, and the goal snapshot."""

    message: str
    context: list[dict[str, Any]] = Field(default_factory=list)
    goal: dict[str, Any] = Field(default_factory=dict)

    @field_validator("message")
    @classmethod
    def require_message(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("message is required")
        return value


def parse_form(form_cls: type[BaseModel], payload: Any) -> Any:
    """Validate ``payload`` or raise the API's 400-class error."""

    if not isinstance(payload, dict):
        raise RequestValidationError("Request body must be a JSON object")
    try:
        return form_cls.model_validate(payload)
    except ValidationError as exc:
        first = exc.errors(include_url=False)[0]
        message = str(first.get("msg", "Invalid request"))
        # pydantic prefixes custom validator messages
        message = message.removeprefix("Value error, ")
        raise RequestValidationError(message) from exc


__all__ = ["ChatForm", "CredentialsForm", "GoalSyncForm", "parse_form"]
