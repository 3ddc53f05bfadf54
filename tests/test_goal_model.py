"""Tests for goal JSON and row representations."""

from __future__ import annotations

import pytest

from vision100.domain.goal import (
    Category,
    Goal,
    RoadmapStep,
    format_timestamp,
    parse_timestamp,
)


def test_to_dict_uses_camel_case_wire_names(full_goal):
    payload = full_goal.to_dict()

    assert payload["createdAt"] == "2026-01-05T08:00:00Z"
    assert payload["subTasks"] == ["Vocabulary deck", "Grammar drill", "Listening 20 min"]
    assert payload["doneSubTasks"] == ["Grammar drill"]
    assert payload["rewardIdea"] == "Weekend trip"
    assert payload["deadlineMonth"] == 7
    assert payload["isExam"] is True
    assert payload["roadmap"][0] == {"month": 1, "task": "Step 1"}
    assert payload["color"] == "emerald"


def test_from_dict_inverts_to_dict(full_goal):
    assert Goal.from_dict(full_goal.to_dict()) == full_goal


def test_unset_advisor_fields_are_omitted(goal_factory):
    payload = goal_factory(category=Category.PENDING).to_dict()

    for key in ("advice", "rewardIdea", "deadlineMonth", "isExam"):
        assert key not in payload


def test_numeric_ids_become_strings():
    goal = Goal.from_dict({"id": 1767600000123, "text": "Learn piano", "category": "HOBBY"})

    assert goal.id == "1767600000123"


def test_legacy_subtask_objects_are_normalized():
    goal = Goal.from_dict(
        {
            "id": "1",
            "text": "Pass the exam",
            "category": "CHALLENGE",
            "subTasks": [
                {"id": "1_0", "text": "Past paper", "completed": True},
                {"id": "1_1", "text": "Flashcards", "completed": False},
            ],
        }
    )

    assert goal.sub_tasks == ("Past paper", "Flashcards")
    assert goal.done_sub_tasks == ("Past paper",)


def test_to_row_splits_fixed_columns_from_blob(full_goal):
    row = full_goal.to_row("alice")

    assert set(row) == {"id", "username", "text", "category", "completed", "created_at", "data"}
    assert row["username"] == "alice"
    assert row["category"] == "CHALLENGE"
    assert "text" not in row["data"]
    assert "createdAt" not in row["data"]
    assert row["data"]["history"] == {"2026-01-05": True, "2026-01-07": True}
    assert row["data"]["tags"] == ["study", {"nested": [1, 2]}]


def test_from_row_inverts_to_row(full_goal):
    assert Goal.from_row(full_goal.to_row("alice")) == full_goal


@pytest.mark.parametrize(
    "payload",
    [
        {"text": "no id"},
        {"id": "1", "category": "SOMEDAY"},
        {"id": "1", "history": {"yesterday": True}},
        {"id": "1", "history": ["2026-01-01"]},
        {"id": "1", "roadmap": [{"month": 13, "task": "x"}]},
        "not an object",
    ],
)
def test_malformed_goals_raise_value_error(payload):
    with pytest.raises(ValueError):
        Goal.from_dict(payload)


def test_roadmap_step_round_trip():
    step = RoadmapStep.from_dict({"month": "3", "task": "Mock exam"})

    assert step == RoadmapStep(month=3, task="Mock exam")
    assert step.to_dict() == {"month": 3, "task": "Mock exam"}


class TestTimestamps:
    def test_z_suffix_parses_as_utc(self):
        parsed = parse_timestamp("2026-01-05T08:00:00.000Z")

        assert parsed is not None
        assert parsed.utcoffset().total_seconds() == 0
        assert parsed.hour == 8

    def test_format_matches_browser_iso_strings(self):
        parsed = parse_timestamp("2026-01-05T08:00:00.250Z")

        assert format_timestamp(parsed) == "2026-01-05T08:00:00.250Z"

    @pytest.mark.parametrize("value", [None, "", "yesterday"])
    def test_unparseable_values_are_none(self, value):
        assert parse_timestamp(value) is None


@pytest.mark.parametrize(
    "value,micro",
    [
        ("2026-01-05T08:00:00.12345+00:00", 123450),
        ("2026-01-05T08:00:00.1234567Z", 123456),
        ("2026-01-05T08:00:00.5Z", 500000),
    ],
)
def test_uneven_fractional_seconds_parse(value, micro):
    assert parse_timestamp(value).microsecond == micro


class TestNullHandling:
    def test_null_text_becomes_empty_string(self):
        assert Goal.from_dict({"id": "1", "text": None}).text == ""

    def test_explicit_nulls_are_echoed(self):
        payload = {
            "id": "1",
            "text": "Swim",
            "category": "HOBBY",
            "completed": False,
            "createdAt": "2026-01-05T08:00:00.000Z",
            "advice": None,
            "deadlineMonth": None,
            "isExam": None,
        }

        out = Goal.from_dict(payload).to_dict()

        assert out["advice"] is None
        assert out["deadlineMonth"] is None
        assert out["isExam"] is None
        assert "rewardIdea" not in out

    def test_missing_created_at_stays_missing(self):
        out = Goal.from_dict({"id": "1", "text": "Swim"}).to_dict()

        assert "createdAt" not in out

    def test_null_created_at_survives_the_row_split(self):
        goal = Goal.from_dict({"id": "1", "text": "Swim", "createdAt": None})
        row = goal.to_row("alice")

        assert row["created_at"] is None
        assert Goal.from_row(row).to_dict() == {
            "id": "1",
            "text": "Swim",
            "category": "PENDING",
            "completed": False,
            "createdAt": None,
            "subTasks": [],
            "doneSubTasks": [],
            "history": {},
            "roadmap": [],
        }
