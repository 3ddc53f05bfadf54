"""Client-side session: API access, goal board and debounced sync."""

from __future__ import annotations

from .api import ApiClient
from .board import ActionCard, GoalBoard, HabitCard, TodayView
from .sync import Debouncer


def open_board(api: ApiClient, *, sync_delay: float = 1.0) -> GoalBoard:
    """Load the signed-in user's goals into a board that syncs back through ``api``."""

    board = GoalBoard(api.analyze, api.save_goals, sync_delay=sync_delay)
    board.load(api.load_goals())
    return board


__all__ = [
    "ActionCard",
    "ApiClient",
    "Debouncer",
    "GoalBoard",
    "HabitCard",
    "TodayView",
    "open_board",
]
