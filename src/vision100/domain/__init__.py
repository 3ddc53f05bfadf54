"""Domain values and repository protocols."""

from .goal import Category, Goal, RoadmapStep

__all__ = ["Category", "Goal", "RoadmapStep"]
