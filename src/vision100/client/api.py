"""HTTP client for the Vision100 JSON API."""

from __future__ import annotations

from typing import Any, Sequence

import requests

from ..domain.goal import Goal
from ..errors import AuthError, PersistenceError, UpstreamError, ValidationError
from ..logging_config import get_logger
from ..services.advisor import FALLBACK_ANALYSIS, build_analysis_payload, parse_analysis

logger = get_logger(__name__)


class ApiClient:
    """Thin ``requests`` wrapper; one instance per signed-in user."""

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 35.0,
        session: requests.Session | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.username: str | None = None

    def _post(self, path: str, payload: Any) -> requests.Response:
        return self.session.post(f"{self.base_url}{path}", json=payload, timeout=self.timeout)

    @staticmethod
    def _error(response: requests.Response) -> str:
        try:
            return str(response.json().get("error", response.text))
        except ValueError:
            return response.text

    def register(self, username: str, password: str) -> str:
        response = self._post("/api/register", {"username": username, "password": password})
        if response.status_code != 200:
            raise ValidationError(self._error(response))
        return response.json()["username"]

    def login(self, username: str, password: str) -> str:
        response = self._post("/api/login", {"username": username, "password": password})
        if response.status_code == 401:
            raise AuthError(self._error(response))
        if response.status_code != 200:
            raise ValidationError(self._error(response))
        self.username = response.json()["username"]
        return self.username

    def load_goals(self) -> list[Goal]:
        try:
            response = self.session.get(
                f"{self.base_url}/api/goals",
                params={"username": self.username or ""},
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            raise PersistenceError(f"Could not load goals: {exc}", cause=exc) from exc
        if response.status_code != 200:
            raise PersistenceError(self._error(response))
        return [Goal.from_dict(item) for item in response.json()]

    def save_goals(self, goals: Sequence[Goal]) -> None:
        try:
            response = self._post(
                "/api/goals",
                {"username": self.username, "goals": [goal.to_dict() for goal in goals]},
            )
        except requests.RequestException as exc:
            raise PersistenceError(f"Could not save goals: {exc}", cause=exc) from exc
        if response.status_code != 200:
            raise PersistenceError(self._error(response))

    def analyze(self, goal_text: str) -> dict[str, Any]:
        """Ask the server-side proxy to analyze a goal; never raises."""
        try:
            response = self._post("/api/analyze", build_analysis_payload(goal_text))
            reply = response.json()
        except (requests.RequestException, ValueError) as exc:
            logger.warning("Analyze request failed; using fallback", extra={"error": str(exc)})
            return dict(FALLBACK_ANALYSIS)
        return parse_analysis(reply)

    def chat(self, message: str, context: Sequence[dict[str, Any]], goal: Goal) -> str:
        try:
            response = self._post(
                "/api/chat",
                {"message": message, "context": list(context), "goal": goal.to_dict()},
            )
            response.raise_for_status()
            return response.json()["candidates"][0]["content"]["parts"][0]["text"]
        except (requests.RequestException, KeyError, IndexError, ValueError) as exc:
            raise UpstreamError(f"Chat failed: {exc}", cause=exc) from exc


__all__ = ["ApiClient"]
