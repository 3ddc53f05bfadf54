"""JSON API routes: accounts, goal sync, and the advisory proxy."""

from __future__ import annotations

from flask import jsonify, request

from ...errors import ConflictError, PersistenceError, UpstreamError, ValidationError, Vision100Error
from ...extensions import get_services
from ...logging_config import get_logger
from ...services.advisor import chat_reply
from ...services.goals import parse_goals
from . import bp
from .forms import ChatForm, CredentialsForm, GoalSyncForm, parse_form

logger = get_logger(__name__)

REGISTRATION_FAILED = "Registration failed"


@bp.errorhandler(Vision100Error)
def handle_error(exc: Vision100Error):
    """Render service errors as ``{"error": message}`` with their status."""

    if exc.status_code >= 500:
        logger.error("Request failed", extra={"path": request.path, "error": exc.message})
    return jsonify({"error": exc.message}), exc.status_code


@bp.post("/register")
def register():
    """Create an account.

    A taken username and a storage failure produce the same response so the
    endpoint cannot be used to probe for existing accounts.
    """

    form = parse_form(CredentialsForm, request.get_json(silent=True))
    services = get_services()
    try:
        username = services.credentials.register(form.username, form.password)
    except (ConflictError, PersistenceError) as exc:
        logger.warning(
            "Registration rejected",
            extra={"username": form.username, "reason": type(exc).__name__},
        )
        raise ValidationError(REGISTRATION_FAILED) from exc
    return jsonify({"success": True, "username": username})


@bp.post("/login")
def login():
    form = parse_form(CredentialsForm, request.get_json(silent=True))
    get_services().credentials.verify(form.username, form.password)
    return jsonify({"success": True, "username": form.username})


@bp.get("/goals")
def list_goals():
    """Return the user's goals; no username means an empty list."""

    username = request.args.get("username", "").strip()
    goals = get_services().goals.load_goals(username)
    return jsonify([goal.to_dict() for goal in goals])


@bp.post("/goals")
def replace_goals():
    """Replace the user's whole goal collection with the posted one."""

    form = parse_form(GoalSyncForm, request.get_json(silent=True))
    goals = parse_goals(form.goals)
    get_services().goals.replace_goals(form.username, goals)
    return jsonify({"status": "success"})


@bp.post("/analyze")
def analyze():
    """Forward the body to the model endpoint and relay its JSON verbatim."""

    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        raise ValidationError("Request body must be a JSON object")
    try:
        reply = get_services().advisor.forward(payload)
    except UpstreamError as exc:
        logger.error("Analyze proxy failed", extra={"error": exc.message})
        return jsonify({"error": "Failed to fetch from the advisory service"}), 500
    return jsonify(reply)


@bp.post("/chat")
def chat():
    form = parse_form(ChatForm, request.get_json(silent=True))
    try:
        text = get_services().advisor.chat(form.message, form.context, form.goal)
    except UpstreamError as exc:
        logger.error("Chat failed", extra={"error": exc.message})
        return jsonify({"error": "Failed to fetch from the advisory service"}), 500
    return jsonify(chat_reply(text))


@bp.get("/health")
def health():
    store = get_services().store
    return jsonify({"status": "ok", "backend": store.name, "transactional": store.transactional})
