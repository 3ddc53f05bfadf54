"""Advisory gateway to the external generative-language service.

``analyze`` never raises: goal creation must not block on the service, so
any failure collapses into ``FALLBACK_ANALYSIS``. ``forward`` and ``chat``
raise ``UpstreamError`` for the HTTP layer to report.
"""

from __future__ import annotations

import json
import re
from typing import Any, Mapping, Sequence

import requests

from ..domain.goal import MAX_AI_SUBTASKS, Category, RoadmapStep
from ..errors import UpstreamError
from ..logging_config import get_logger
from .habits import roadmap_is_complete

logger = get_logger(__name__)

FALLBACK_ANALYSIS: dict[str, Any] = {
    "category": Category.NONE.value,
    "roadmap": [],
    "subTasks": [],
    "advice": "analysis failed",
}

ANALYSIS_PROMPT = """
You are a strategy consultant and mentor for personal goals.
Analyze the goal you are given and reply with JSON only.

Rules:
1. If the goal mentions an exam, a certification or passing a test, set
   isExam to true and base the steps on the usual difficulty of that exam.
2. If the goal names a deadline month, plan backwards from that deadline,
   starting in January.
3. A CHALLENGE goal always gets a roadmap with exactly twelve entries, one
   for every month from 1 to 12.
4. Give at most three focused TODO items for today in subTasks.
5. Months after the deadline get maintenance or next-step tasks; never
   leave a month empty.

Reply format:
{
  "category": "CHALLENGE" | "HABIT" | "HOBBY",
  "deadlineMonth": 5,
  "isExam": true,
  "roadmap": [{"month": 1, "task": "..."}, ..., {"month": 12, "task": "..."}],
  "subTasks": ["TODO1", "TODO2", "TODO3"],
  "advice": "...",
  "rewardIdea": "..."
}
"""

CHAT_PROMPT = """
You are a supportive coach helping the user make progress on one goal.
Keep answers short and concrete. The goal as currently tracked:
{goal}
"""

_FENCE_RE = re.compile(r"^\s*```[A-Za-z0-9_-]*\s*\n?|\n?\s*```\s*$")
_ROLE_ALIASES = {"assistant": "model", "ai": "model", "bot": "model", "model": "model"}


def strip_code_fence(text: str) -> str:
    """Remove one leading and one trailing Markdown code fence, if present."""

    return _FENCE_RE.sub("", text).strip()


def extract_text(response: Mapping[str, Any]) -> str:
    """Pull the first candidate's text out of a ``generateContent`` reply."""

    try:
        return response["candidates"][0]["content"]["parts"][0]["text"]
    except (KeyError, IndexError, TypeError) as exc:
        raise UpstreamError("Upstream reply has no candidate text", cause=exc) from exc


def build_analysis_payload(goal_text: str) -> dict[str, Any]:
    """Request body asking the model to classify and plan one goal."""

    return {
        "contents": [{"parts": [{"text": f"Goal: {goal_text}"}]}],
        "systemInstruction": {"parts": [{"text": ANALYSIS_PROMPT}]},
        "generationConfig": {"responseMimeType": "application/json"},
    }


def _check_roadmap(roadmap: Sequence[Any]) -> None:
    try:
        steps = [RoadmapStep.from_dict(step) for step in roadmap]
    except (KeyError, TypeError, ValueError):
        steps = []
    if not roadmap_is_complete(steps):
        logger.warning(
            "Roadmap does not cover months 1-12 exactly once",
            extra={"months": [step.month for step in steps]},
        )


def parse_analysis(reply: Mapping[str, Any]) -> dict[str, Any]:
    """Decode the model's analysis, or return ``FALLBACK_ANALYSIS``.

    The model sometimes wraps its JSON in a Markdown fence; that is removed
    before decoding. Subtasks beyond the third are dropped.
    """

    try:
        content = json.loads(strip_code_fence(extract_text(reply)))
        if not isinstance(content, dict):
            raise UpstreamError("Analysis is not a JSON object")
    except (UpstreamError, TypeError, ValueError) as exc:
        logger.warning("Goal analysis unreadable; using fallback", extra={"error": str(exc)})
        return dict(FALLBACK_ANALYSIS)

    if "subTasks" in content:
        content["subTasks"] = _as_list(content, "subTasks")[:MAX_AI_SUBTASKS]
    if "roadmap" in content:
        content["roadmap"] = _as_list(content, "roadmap")
    if content.get("category") == Category.CHALLENGE.value:
        _check_roadmap(content.get("roadmap") or [])
    return content


def _as_list(content: Mapping[str, Any], key: str) -> list[Any]:
    value = content.get(key)
    if isinstance(value, list):
        return value
    if value is not None:
        logger.warning("Analysis field is not a list; dropped", extra={"field": key})
    return []


def chat_reply(text: str) -> dict[str, Any]:
    """Wrap reply text in the candidate shape clients already parse."""

    return {"candidates": [{"content": {"parts": [{"text": text}]}}]}


class AdvisoryGateway:
    """Stateless proxy holding only the endpoint, key and timeout."""

    def __init__(
        self,
        api_key: str,
        *,
        model: str,
        base_url: str,
        timeout: float = 30.0,
        session: requests.Session | None = None,
    ):
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}/{self.model}:generateContent"

    def forward(self, payload: Mapping[str, Any]) -> dict[str, Any]:
        """POST ``payload`` upstream and return the decoded JSON reply as-is."""

        if not self.api_key:
            raise UpstreamError("API key not configured")
        try:
            response = self.session.post(
                self.endpoint,
                params={"key": self.api_key},
                json=dict(payload),
                timeout=self.timeout,
            )
            return response.json()
        except requests.Timeout as exc:
            raise UpstreamError(f"Upstream timed out after {self.timeout}s", cause=exc) from exc
        except requests.RequestException as exc:
            raise UpstreamError(f"Upstream request failed: {exc}", cause=exc) from exc
        except ValueError as exc:
            raise UpstreamError("Upstream reply is not JSON", cause=exc) from exc

    def analyze(self, goal_text: str) -> dict[str, Any]:
        """Classify a goal and draft its plan, or return the fallback."""

        try:
            reply = self.forward(build_analysis_payload(goal_text))
        except UpstreamError as exc:
            logger.warning("Goal analysis failed; using fallback", extra={"error": exc.message})
            return dict(FALLBACK_ANALYSIS)
        return parse_analysis(reply)

    def chat(
        self,
        message: str,
        prior_turns: Sequence[Mapping[str, Any]] | None,
        goal_context: Mapping[str, Any] | None,
    ) -> str:
        """Answer one chat message; the caller supplies the whole conversation."""

        contents = [self._turn(turn) for turn in prior_turns or []]
        contents.append({"role": "user", "parts": [{"text": message}]})
        goal_json = json.dumps(dict(goal_context or {}), ensure_ascii=False)
        payload = {
            "contents": contents,
            "systemInstruction": {"parts": [{"text": CHAT_PROMPT.format(goal=goal_json)}]},
        }
        return extract_text(self.forward(payload))

    @staticmethod
    def _turn(turn: Mapping[str, Any]) -> dict[str, Any]:
        role = _ROLE_ALIASES.get(str(turn.get("role", "user")).lower(), "user")
        if "parts" in turn:
            return {"role": role, "parts": list(turn["parts"])}
        return {"role": role, "parts": [{"text": str(turn.get("text", ""))}]}


__all__ = [
    "AdvisoryGateway",
    "FALLBACK_ANALYSIS",
    "build_analysis_payload",
    "chat_reply",
    "extract_text",
    "parse_analysis",
    "strip_code_fence",
]
