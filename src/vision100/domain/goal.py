"""Goal value objects and their wire/row representations."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, Mapping

MAX_GOALS = 100
MAX_AI_SUBTASKS = 3

# Columns stored outside the JSON blob.
FIXED_FIELDS = ("id", "text", "category", "completed", "createdAt")
_BLOB_FIELDS = (
    "subTasks",
    "doneSubTasks",
    "history",
    "roadmap",
    "advice",
    "rewardIdea",
    "deadlineMonth",
    "isExam",
)
# Keys a client may send as an explicit null; the null is echoed back.
_NULLABLE_FIELDS = ("createdAt", "advice", "rewardIdea", "deadlineMonth", "isExam")


class Category(str, Enum):
    """Classification assigned to a goal."""

    CHALLENGE = "CHALLENGE"
    HABIT = "HABIT"
    HOBBY = "HOBBY"
    PENDING = "PENDING"
    NONE = "NONE"


USER_SELECTABLE = (Category.CHALLENGE, Category.HABIT, Category.HOBBY)

_FRACTION_RE = re.compile(r"\.(\d+)(?=$|[+-])")


@dataclass(frozen=True, slots=True)
class RoadmapStep:
    """One month of a CHALLENGE goal's yearly plan."""

    month: int
    task: str

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "RoadmapStep":
        month = int(payload["month"])
        if not 1 <= month <= 12:
            raise ValueError(f"Roadmap month must be within 1-12, got {month}")
        return cls(month=month, task=str(payload.get("task", "")))

    def to_dict(self) -> dict[str, Any]:
        return {"month": self.month, "task": self.task}


def day_key(day: date) -> str:
    """Return the ``YYYY-MM-DD`` key used by ``Goal.history``."""

    return day.isoformat()


def parse_timestamp(value: str | None) -> datetime | None:
    """Parse an ISO-8601 timestamp into an aware UTC datetime, or None."""

    if not value:
        return None
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    # older interpreters only accept 3 or 6 fractional digits
    text = _FRACTION_RE.sub(lambda m: "." + m.group(1).ljust(6, "0")[:6], text)
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def format_timestamp(moment: datetime) -> str:
    """Render ``moment`` the way browsers do: UTC, millisecond precision, ``Z`` suffix."""

    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    text = moment.astimezone(timezone.utc).isoformat(timespec="milliseconds")
    return text.replace("+00:00", "Z")


def _normalize_subtasks(raw: Any, done_raw: Any) -> tuple[tuple[str, ...], tuple[str, ...]]:
    """Accept plain strings or ``{id, text, completed}`` objects."""

    sub_tasks: list[str] = []
    done: list[str] = [str(item) for item in (done_raw or [])]
    for item in raw or []:
        if isinstance(item, Mapping):
            text = str(item.get("text", ""))
            if item.get("completed") and text not in done:
                done.append(text)
        else:
            text = str(item)
        sub_tasks.append(text)
    # keep first occurrence order, drop duplicates
    return tuple(sub_tasks), tuple(dict.fromkeys(done))


@dataclass(frozen=True)
class Goal:
    """A user-authored aspiration, optionally enriched by the advisor."""

    id: str
    text: str
    category: Category = Category.PENDING
    completed: bool = False
    created_at: str | None = None
    sub_tasks: tuple[str, ...] = ()
    done_sub_tasks: tuple[str, ...] = ()
    history: dict[str, Any] = field(default_factory=dict)
    roadmap: tuple[RoadmapStep, ...] = ()
    advice: str | None = None
    reward_idea: str | None = None
    deadline_month: int | None = None
    is_exam: bool | None = None
    extra: dict[str, Any] = field(default_factory=dict)
    explicit_nulls: frozenset[str] = frozenset()

    @property
    def created_at_dt(self) -> datetime | None:
        return parse_timestamp(self.created_at)

    def did_habit_on(self, day: date) -> bool:
        return bool(self.history.get(day_key(day)))

    def is_subtask_done(self, text: str) -> bool:
        return text in self.done_sub_tasks

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "Goal":
        """Build a goal from its camelCase JSON form.

        Raises ``ValueError`` for missing ids, unknown categories, or
        malformed nested structures.
        """

        if not isinstance(payload, Mapping):
            raise ValueError("Goal must be a JSON object")
        raw_id = payload.get("id")
        if raw_id is None or raw_id == "":
            raise ValueError("Goal is missing an id")
        category_raw = payload.get("category") or Category.PENDING.value
        try:
            category = Category(category_raw)
        except ValueError as exc:
            raise ValueError(f"Unknown goal category: {category_raw!r}") from exc

        history = payload.get("history") or {}
        if not isinstance(history, Mapping):
            raise ValueError("Goal history must be an object keyed by day")
        for key in history:
            date.fromisoformat(key)

        sub_tasks, done = _normalize_subtasks(payload.get("subTasks"), payload.get("doneSubTasks"))
        deadline = payload.get("deadlineMonth")
        is_exam = payload.get("isExam")
        created_at = payload.get("createdAt")
        text = payload.get("text")

        return cls(
            id=str(raw_id),
            text="" if text is None else str(text),
            category=category,
            completed=bool(payload.get("completed", False)),
            created_at=str(created_at) if created_at is not None else None,
            sub_tasks=sub_tasks,
            done_sub_tasks=done,
            history=dict(history),
            roadmap=tuple(RoadmapStep.from_dict(step) for step in payload.get("roadmap") or []),
            advice=payload.get("advice"),
            reward_idea=payload.get("rewardIdea"),
            deadline_month=int(deadline) if deadline is not None else None,
            is_exam=bool(is_exam) if is_exam is not None else None,
            extra={
                key: value
                for key, value in payload.items()
                if key not in FIXED_FIELDS and key not in _BLOB_FIELDS
            },
            explicit_nulls=frozenset(
                key for key in _NULLABLE_FIELDS if key in payload and payload[key] is None
            ),
        )

    def _blob(self) -> dict[str, Any]:
        data: dict[str, Any] = dict(self.extra)
        data["subTasks"] = list(self.sub_tasks)
        data["doneSubTasks"] = list(self.done_sub_tasks)
        data["history"] = dict(self.history)
        data["roadmap"] = [step.to_dict() for step in self.roadmap]
        if self.created_at is None and "createdAt" in self.explicit_nulls:
            # the column is NULL either way; the blob remembers the client sent null
            data["createdAt"] = None
        optional = {
            "advice": self.advice,
            "rewardIdea": self.reward_idea,
            "deadlineMonth": self.deadline_month,
            "isExam": self.is_exam,
        }
        for key, value in optional.items():
            if value is not None or key in self.explicit_nulls:
                data[key] = value
        return data

    def to_dict(self) -> dict[str, Any]:
        """Return the camelCase JSON form sent to clients.

        Unset optional fields are omitted; fields the client sent as null
        come back as null.
        """

        payload: dict[str, Any] = {
            "id": self.id,
            "text": self.text,
            "category": self.category.value,
            "completed": self.completed,
        }
        if self.created_at is not None:
            payload["createdAt"] = self.created_at
        payload.update(self._blob())
        return payload

    def to_row(self, username: str) -> dict[str, Any]:
        """Split into fixed columns plus the opaque ``data`` blob."""

        return {
            "id": self.id,
            "username": username,
            "text": self.text,
            "category": self.category.value,
            "completed": self.completed,
            "created_at": self.created_at,
            "data": self._blob(),
        }

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Goal":
        payload: dict[str, Any] = dict(row.get("data") or {})
        payload.update(
            {
                "id": row["id"],
                "text": row.get("text") or "",
                "category": row.get("category"),
                "completed": bool(row.get("completed")),
            }
        )
        if row.get("created_at") is not None:
            payload["createdAt"] = row["created_at"]
        return cls.from_dict(payload)


__all__ = [
    "Category",
    "FIXED_FIELDS",
    "Goal",
    "MAX_AI_SUBTASKS",
    "MAX_GOALS",
    "RoadmapStep",
    "USER_SELECTABLE",
    "day_key",
    "format_timestamp",
    "parse_timestamp",
]
