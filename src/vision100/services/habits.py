"""Habit statistics and pure goal state transitions."""

from __future__ import annotations

import math
from dataclasses import dataclass, replace
from datetime import date, datetime, timedelta, timezone
from typing import Any, Iterable, Mapping

from ..domain.goal import (
    MAX_AI_SUBTASKS,
    Category,
    Goal,
    RoadmapStep,
    day_key,
)

STATS_WINDOW_DAYS = 30
AT_RISK_RATE = 80
AT_RISK_MIN_DAYS = 3
HISTORY_STRIP_DAYS = 60


@dataclass(frozen=True, slots=True)
class HabitStats:
    """Trailing-window completion figures for a HABIT goal."""

    rate: int = 0
    days_elapsed: int = 0
    count: int = 0

    def to_dict(self) -> dict[str, int]:
        return {"rate": self.rate, "daysElapsed": self.days_elapsed, "count": self.count}


def _utc(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def compute_habit_stats(goal: Goal, as_of: datetime | None = None) -> HabitStats:
    """Return completion rate over the last ``min(age in days, 30)`` days.

    The window ends on ``as_of``'s calendar day and steps backward. Non-HABIT
    goals and goals without a parseable ``createdAt`` report zeros.
    """

    created = goal.created_at_dt
    if goal.category is not Category.HABIT or created is None:
        return HabitStats()

    now = _utc(as_of or datetime.now(timezone.utc))
    hours = abs((now - created).total_seconds()) / 3600
    days_elapsed = min(max(math.ceil(hours / 24), 1), STATS_WINDOW_DAYS)

    today = now.date()
    count = sum(
        1 for offset in range(days_elapsed) if goal.did_habit_on(today - timedelta(days=offset))
    )
    # round half up, matching the browser's Math.round
    rate = math.floor(100 * count / days_elapsed + 0.5)
    return HabitStats(rate=rate, days_elapsed=days_elapsed, count=count)


def is_at_risk(stats: HabitStats) -> bool:
    """Flag habits under 80% once at least three days have elapsed."""

    return stats.rate < AT_RISK_RATE and stats.days_elapsed >= AT_RISK_MIN_DAYS


def toggle_completed(goal: Goal) -> Goal:
    return replace(goal, completed=not goal.completed)


def toggle_subtask(goal: Goal, subtask_text: str) -> Goal:
    """Flip the done mark of one subtask; unknown texts leave the goal unchanged."""

    if subtask_text not in goal.sub_tasks:
        return goal
    if subtask_text in goal.done_sub_tasks:
        done = tuple(text for text in goal.done_sub_tasks if text != subtask_text)
    else:
        done = goal.done_sub_tasks + (subtask_text,)
    return replace(goal, done_sub_tasks=done)


def toggle_habit_today(goal: Goal, today: date) -> Goal:
    """Mark ``today`` done, or remove the mark if it is already set."""

    history = dict(goal.history)
    key = day_key(today)
    if history.get(key):
        history.pop(key)
    else:
        history[key] = True
    return replace(goal, history=history)


def change_category(goal: Goal, category: Category) -> Goal:
    return replace(goal, category=Category(category))


def _list_field(analysis: Mapping[str, Any], key: str) -> list[Any]:
    value = analysis.get(key)
    return value if isinstance(value, list) else []


def apply_analysis(goal: Goal, analysis: Mapping[str, Any]) -> Goal:
    """Patch a PENDING goal with the advisor's result.

    Only a PENDING goal is patched; a goal the user already reclassified is
    returned unchanged so the transition happens at most once.
    """

    if goal.category is not Category.PENDING:
        return goal
    try:
        category = Category(analysis.get("category") or Category.NONE.value)
    except ValueError:
        category = Category.NONE
    if category is Category.PENDING:
        category = Category.NONE

    roadmap: list[RoadmapStep] = []
    for step in _list_field(analysis, "roadmap"):
        try:
            roadmap.append(RoadmapStep.from_dict(step))
        except (KeyError, TypeError, ValueError):
            continue

    deadline = analysis.get("deadlineMonth")
    try:
        deadline_month = int(deadline) if deadline is not None else None
    except (TypeError, ValueError):
        deadline_month = None
    is_exam = analysis.get("isExam")

    return replace(
        goal,
        category=category,
        deadline_month=deadline_month,
        is_exam=bool(is_exam) if is_exam is not None else None,
        roadmap=tuple(roadmap),
        sub_tasks=tuple(str(task) for task in _list_field(analysis, "subTasks")[:MAX_AI_SUBTASKS]),
        done_sub_tasks=(),
        advice=analysis.get("advice"),
        reward_idea=analysis.get("rewardIdea"),
    )


def roadmap_progress(goal: Goal, current_month: int) -> list[tuple[RoadmapStep, str]]:
    """Tag each roadmap step as ``passed``, ``current`` or ``upcoming``."""

    tagged = []
    for step in goal.roadmap:
        if step.month == current_month:
            state = "current"
        elif step.month < current_month:
            state = "passed"
        else:
            state = "upcoming"
        tagged.append((step, state))
    return tagged


def roadmap_is_complete(roadmap: Iterable[RoadmapStep]) -> bool:
    """True when there is exactly one step for each month 1-12."""

    months = [step.month for step in roadmap]
    return sorted(months) == list(range(1, 13))


def is_daily_challenge(goal: Goal, current_month: int) -> bool:
    """Whether an open CHALLENGE goal still deserves a slot in today's actions.

    Deadlines early in the year are treated as next year's once we are past
    September.
    """

    if goal.category is not Category.CHALLENGE or goal.completed:
        return False
    deadline = goal.deadline_month
    if not deadline:
        return True
    if current_month <= deadline:
        return True
    return current_month > 9 and deadline < 6


def history_strip(goal: Goal, today: date, days: int = HISTORY_STRIP_DAYS) -> list[dict[str, Any]]:
    """Return oldest-first day cells for the habit log grid."""

    start = today - timedelta(days=days - 1)
    cells = []
    for offset in range(days):
        day = start + timedelta(days=offset)
        cells.append({"date": day_key(day), "done": goal.did_habit_on(day)})
    return cells


def summarize(goals: Iterable[Goal]) -> dict[str, int]:
    """Return header counters: totals, per-category counts and completion %."""

    goals = list(goals)
    completed = sum(1 for goal in goals if goal.completed)
    summary = {
        "total": len(goals),
        "completed": completed,
        "challenge": sum(1 for goal in goals if goal.category is Category.CHALLENGE),
        "habit": sum(1 for goal in goals if goal.category is Category.HABIT),
        "hobby": sum(1 for goal in goals if goal.category is Category.HOBBY),
    }
    summary["completionRate"] = math.floor(100 * completed / (len(goals) or 1) + 0.5)
    return summary


__all__ = [
    "HabitStats",
    "apply_analysis",
    "change_category",
    "compute_habit_stats",
    "history_strip",
    "is_at_risk",
    "is_daily_challenge",
    "roadmap_is_complete",
    "roadmap_progress",
    "summarize",
    "toggle_completed",
    "toggle_habit_today",
    "toggle_subtask",
]
