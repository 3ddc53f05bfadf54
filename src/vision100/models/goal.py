"""Goal rows: fixed indexed columns plus a schema-free JSON blob."""

from __future__ import annotations

from typing import Any, ClassVar, Optional

from sqlalchemy import JSON, Column
from sqlalchemy.dialects.postgresql import JSONB
from sqlmodel import Field, SQLModel

# JSONB on postgres, plain JSON (TEXT) elsewhere.
JSONType = JSON().with_variant(JSONB(), "postgresql")


class GoalRow(SQLModel, table=True):
    """One goal owned by ``username``; ``id`` is unique per user only."""

    __tablename__: ClassVar[str] = "goals"

    username: str = Field(primary_key=True, max_length=64, index=True)
    id: str = Field(primary_key=True, max_length=64)
    text: str = Field(default="", nullable=False)
    category: str = Field(default="PENDING", nullable=False, max_length=16, index=True)
    completed: bool = Field(default=False, nullable=False)
    created_at: Optional[str] = Field(default=None, max_length=40, index=True)
    data: dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSONType, nullable=False))

    def as_record(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "username": self.username,
            "text": self.text,
            "category": self.category,
            "completed": self.completed,
            "created_at": self.created_at,
            "data": dict(self.data or {}),
        }
