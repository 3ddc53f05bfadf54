"""Pytest configuration and shared fixtures for Vision100 tests.

Provides an isolated SQLite database per test, fake HTTP sessions for the
advisory service and hosted table service, and a Flask test client wired to
both.
"""

from __future__ import annotations

import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import pytest
from sqlmodel import SQLModel, create_engine

from vision100 import create_app
from vision100.config import TestConfig
from vision100.domain.goal import Category, Goal, RoadmapStep
from vision100.infra.database import create_session_factory
from vision100.infra.repositories import SQLiteStore
from vision100.models import GoalRow, User  # noqa: F401  # register tables
from vision100.services.advisor import AdvisoryGateway

_ENV_VARS = (
    "VISION100_DATABASE_URL",
    "VISION100_TABLE_SERVICE_URL",
    "VISION100_TABLE_SERVICE_KEY",
    "VISION100_STORAGE_BACKEND",
    "VISION100_ADVISOR_API_KEY",
    "VISION100_ADVISOR_TIMEOUT",
    "VISION100_SECRET_KEY",
    "VISION100_DEV_MODE",
)


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path):
    """Keep every test away from the developer's .env and data directory."""

    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("VISION100_DATA_DIR", str(tmp_path / "data"))
    monkeypatch.setenv("VISION100_STATIC_DIR", str(tmp_path / "dist"))


# =============================================================================
# Fake HTTP plumbing
# =============================================================================


class FakeResponse:
    """Just enough of ``requests.Response`` for the code under test."""

    def __init__(self, status_code: int = 200, payload: Any = None, text: str = ""):
        self.status_code = status_code
        self._payload = payload
        self.text = text or ("" if payload is None else str(payload))

    def json(self) -> Any:
        if self._payload is None:
            raise ValueError("No JSON body")
        return self._payload

    def raise_for_status(self) -> None:
        import requests

        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")


class FakeSession:
    """Records calls and replays queued responses (or raises queued errors)."""

    def __init__(self, *responses: Any):
        self.queue = list(responses)
        self.calls: list[dict[str, Any]] = []
        self.headers: dict[str, str] = {}
        self.closed = False

    def _next(self) -> FakeResponse:
        item = self.queue.pop(0) if self.queue else FakeResponse(200, [])
        if isinstance(item, BaseException):
            raise item
        return item

    def request(self, method: str, url: str, **kwargs: Any) -> FakeResponse:
        self.calls.append({"method": method, "url": url, **kwargs})
        return self._next()

    def post(self, url: str, **kwargs: Any) -> FakeResponse:
        return self.request("POST", url, **kwargs)

    def get(self, url: str, **kwargs: Any) -> FakeResponse:
        return self.request("GET", url, **kwargs)

    def close(self) -> None:
        self.closed = True


def gemini_reply(text: str) -> dict[str, Any]:
    """Shape of a ``generateContent`` response carrying ``text``."""

    return {"candidates": [{"content": {"parts": [{"text": text}], "role": "model"}}]}


@pytest.fixture
def fake_http():
    return FakeSession()


@pytest.fixture
def advisor(fake_http) -> AdvisoryGateway:
    return AdvisoryGateway(
        "test-key",
        model="test-model",
        base_url="https://advisor.invalid/v1beta/models",
        timeout=1.0,
        session=fake_http,
    )


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest.fixture(scope="function")
def db_engine():
    """Create an isolated SQLite database file for each test."""

    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
        db_path = Path(f.name)

    engine = create_engine(f"sqlite:///{db_path}", echo=False)
    SQLModel.metadata.create_all(engine)

    yield engine

    engine.dispose()
    db_path.unlink(missing_ok=True)


@pytest.fixture
def session_factory(db_engine):
    return create_session_factory(db_engine)


@pytest.fixture
def store(db_engine) -> SQLiteStore:
    return SQLiteStore(db_engine)


# =============================================================================
# Application Fixtures
# =============================================================================


@pytest.fixture
def app(store, advisor):
    app = create_app(config=TestConfig(), store=store, advisor=advisor)
    app.config.update(TESTING=True)
    return app


@pytest.fixture
def client(app):
    with app.test_client() as client:
        yield client


# =============================================================================
# Test Data Factories
# =============================================================================

CREATED = datetime(2026, 1, 5, 8, 0, tzinfo=timezone.utc)


@pytest.fixture
def goal_factory():
    """Factory for goals with sensible defaults."""

    counter = {"next": 1}

    def _create_goal(
        text: str = "Read 12 books",
        category: Category = Category.CHALLENGE,
        created_at: datetime | str | None = CREATED,
        **fields: Any,
    ) -> Goal:
        goal_id = fields.pop("id", None) or str(1767600000000 + counter["next"])
        counter["next"] += 1
        if isinstance(created_at, datetime):
            created_at = created_at.isoformat().replace("+00:00", "Z")
        return Goal(id=goal_id, text=text, category=category, created_at=created_at, **fields)

    return _create_goal


@pytest.fixture
def full_goal(goal_factory) -> Goal:
    """A CHALLENGE goal with every blob field populated."""

    return goal_factory(
        text="Pass the JLPT N2 in July",
        category=Category.CHALLENGE,
        completed=False,
        sub_tasks=("Vocabulary deck", "Grammar drill", "Listening 20 min"),
        done_sub_tasks=("Grammar drill",),
        history={"2026-01-05": True, "2026-01-07": True},
        roadmap=tuple(RoadmapStep(month=m, task=f"Step {m}") for m in range(1, 13)),
        advice="Little and often beats cramming.",
        reward_idea="Weekend trip",
        deadline_month=7,
        is_exam=True,
        extra={"color": "emerald", "tags": ["study", {"nested": [1, 2]}]},
    )
