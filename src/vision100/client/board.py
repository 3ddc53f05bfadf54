"""Client-side goal board: the session's authoritative in-memory goal list.

Every mutation is applied locally first and then scheduled for a debounced
full-set sync. The board is the source of truth between syncs.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Any, Callable, Iterable, Mapping

from ..domain.goal import MAX_GOALS, Category, Goal, format_timestamp
from ..logging_config import get_logger
from ..services import habits
from .sync import SYNC_DELAY_SECONDS, Debouncer

logger = get_logger(__name__)

Analyzer = Callable[[str], Mapping[str, Any]]
Saver = Callable[[list[Goal]], None]


@dataclass(frozen=True, slots=True)
class HabitCard:
    goal: Goal
    stats: habits.HabitStats
    at_risk: bool
    done_today: bool


@dataclass(frozen=True, slots=True)
class ActionCard:
    goal: Goal
    pending_sub_tasks: tuple[str, ...]


@dataclass(frozen=True, slots=True)
class TodayView:
    habits: tuple[HabitCard, ...]
    actions: tuple[ActionCard, ...]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class GoalBoard:
    """Goal list, filters and the today view for one signed-in user."""

    def __init__(
        self,
        analyzer: Analyzer,
        saver: Saver,
        *,
        sync_delay: float = SYNC_DELAY_SECONDS,
        clock: Callable[[], datetime] = _utcnow,
        max_goals: int = MAX_GOALS,
    ):
        self.analyzer = analyzer
        self.saver = saver
        self.clock = clock
        self.max_goals = max_goals
        self.category_filter: Category | None = None
        self.search_term = ""
        self._goals: list[Goal] = []
        self._loaded = False
        self._lock = threading.RLock()
        self._analysis_slot = threading.Lock()
        self.sync = Debouncer(self._push, delay=sync_delay)

    # State -----------------------------------------------------------------
    @property
    def goals(self) -> list[Goal]:
        with self._lock:
            return list(self._goals)

    @property
    def is_analyzing(self) -> bool:
        return self._analysis_slot.locked()

    def load(self, goals: Iterable[Goal]) -> None:
        """Install the server's copy; syncing is enabled from here on."""
        with self._lock:
            self._goals = list(goals)
            self._loaded = True

    def get(self, goal_id: str) -> Goal | None:
        with self._lock:
            return next((goal for goal in self._goals if goal.id == goal_id), None)

    def _push(self) -> None:
        self.saver(self.goals)

    def _changed(self) -> None:
        # nothing is written before the initial load, or we would wipe the stored set
        if self._loaded:
            self.sync.trigger()

    def _update(self, goal_id: str, transition: Callable[[Goal], Goal]) -> Goal | None:
        with self._lock:
            for index, goal in enumerate(self._goals):
                if goal.id == goal_id:
                    updated = transition(goal)
                    self._goals[index] = updated
                    break
            else:
                return None
        self._changed()
        return updated

    def _new_id(self, now: datetime) -> str:
        candidate = int(now.timestamp() * 1000)
        taken = {goal.id for goal in self._goals}
        while str(candidate) in taken:
            candidate += 1
        return str(candidate)

    # Gestures --------------------------------------------------------------
    def add_goal(self, text: str) -> Goal | None:
        """Create a PENDING goal, sync it, then patch in the advisor's analysis.

        Returns None without changing anything for blank text, a full board,
        or while another analysis is still outstanding.
        """

        if not text.strip():
            return None
        if not self._analysis_slot.acquire(blocking=False):
            return None
        try:
            with self._lock:
                if len(self._goals) >= self.max_goals:
                    logger.info("Goal limit reached", extra={"limit": self.max_goals})
                    return None
                now = self.clock()
                goal = Goal(
                    id=self._new_id(now),
                    text=text,
                    category=Category.PENDING,
                    created_at=format_timestamp(now),
                )
                self._goals.insert(0, goal)
            self._changed()

            analysis = self.analyzer(text)
            return self._update(goal.id, lambda current: habits.apply_analysis(current, analysis))
        finally:
            self._analysis_slot.release()

    def delete_goal(self, goal_id: str) -> bool:
        with self._lock:
            before = len(self._goals)
            self._goals = [goal for goal in self._goals if goal.id != goal_id]
            removed = len(self._goals) != before
        if removed:
            self._changed()
        return removed

    def toggle_goal(self, goal_id: str) -> Goal | None:
        return self._update(goal_id, habits.toggle_completed)

    def toggle_subtask(self, goal_id: str, subtask_text: str) -> Goal | None:
        return self._update(goal_id, lambda goal: habits.toggle_subtask(goal, subtask_text))

    def toggle_habit(self, goal_id: str, today: date | None = None) -> Goal | None:
        day = today or self.clock().date()
        return self._update(goal_id, lambda goal: habits.toggle_habit_today(goal, day))

    def change_category(self, goal_id: str, category: Category) -> Goal | None:
        if Category(category) not in (Category.CHALLENGE, Category.HABIT, Category.HOBBY):
            raise ValueError(f"{category} cannot be chosen by hand")
        return self._update(goal_id, lambda goal: habits.change_category(goal, category))

    # Views -----------------------------------------------------------------
    def set_filter(self, category: Category | None) -> None:
        """Select a category; selecting the active one again clears the filter."""
        self.category_filter = None if category == self.category_filter else category

    def visible_goals(self) -> list[Goal]:
        term = self.search_term.lower()
        return [
            goal
            for goal in self.goals
            if (self.category_filter is None or goal.category is self.category_filter)
            and term in goal.text.lower()
        ]

    def today_view(self) -> TodayView:
        """Pending habits with their stats, plus open subtasks of live challenges."""

        now = self.clock()
        today = now.date()
        goals = self.goals
        habit_cards = []
        for goal in goals:
            if goal.category is not Category.HABIT:
                continue
            stats = habits.compute_habit_stats(goal, now)
            habit_cards.append(
                HabitCard(
                    goal=goal,
                    stats=stats,
                    at_risk=habits.is_at_risk(stats),
                    done_today=goal.did_habit_on(today),
                )
            )
        actions = [
            ActionCard(
                goal=goal,
                pending_sub_tasks=tuple(
                    task for task in goal.sub_tasks if not goal.is_subtask_done(task)
                ),
            )
            for goal in goals
            if habits.is_daily_challenge(goal, today.month)
        ]
        return TodayView(habits=tuple(habit_cards), actions=tuple(actions))

    def summary(self) -> dict[str, int]:
        return habits.summarize(self.goals)

    def close(self) -> None:
        """Write any pending change before the session ends."""
        self.sync.flush()


__all__ = ["ActionCard", "GoalBoard", "HabitCard", "TodayView"]
