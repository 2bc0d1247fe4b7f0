"""Triage Service HTTP handler - hosts in-memory sessions.

Thin adapter for a presentation layer. Sessions live in this process
only and are discarded on DELETE or after SESSION_IDLE_TTL_SECONDS
without a request; nothing is persisted.

Replies are delivered by a cooperative ClockScheduler: every session
request first calls scheduler.run_due(), so due replies are appended on
the request thread and no background timer ever touches a session.
The dev server is threaded, so every session route runs under one
module lock: check-and-transition on a session and the scheduler pump
never interleave across requests.
"""
import functools
import logging
import os
import threading
from typing import Dict, Optional

from flask import Flask, request, jsonify

from safehaven.services.emergency_directory import list_resources
from .config import TriageConfig
from .quick_prompts import QuickPromptTable, UnknownQuickPromptError
from .scheduler import ClockScheduler
from .session import TriageSession, create_session

logger = logging.getLogger(__name__)

# Initialize Flask app
app = Flask(__name__)

config = TriageConfig(
    reply_delay_seconds=float(os.getenv("REPLY_DELAY_SECONDS", "1.5")),
    quick_prompt_delay_seconds=float(os.getenv("QUICK_PROMPT_DELAY_SECONDS", "1.0")),
)
session_idle_ttl_seconds = float(os.getenv("SESSION_IDLE_TTL_SECONDS", "1800"))
scheduler = ClockScheduler()
quick_prompts = QuickPromptTable()

_sessions: Dict[str, TriageSession] = {}
_last_seen: Dict[str, float] = {}
_lock = threading.RLock()


def _serialized(view):
    """Run a view while holding the module lock."""
    @functools.wraps(view)
    def wrapper(*args, **kwargs):
        with _lock:
            return view(*args, **kwargs)
    return wrapper


def _expire_idle_sessions(now: float) -> None:
    expired = [
        sid for sid, seen in _last_seen.items()
        if now - seen > session_idle_ttl_seconds
    ]
    for sid in expired:
        _last_seen.pop(sid, None)
        session = _sessions.pop(sid, None)
        if session is not None:
            session.close()
            logger.info(
                "TRIAGE_SESSION_EXPIRED",
                extra={"session_id": sid, "idle_ttl_seconds": session_idle_ttl_seconds}
            )


def _get_session(session_id: str) -> Optional[TriageSession]:
    scheduler.run_due()
    now = scheduler.now()
    _expire_idle_sessions(now)
    session = _sessions.get(session_id)
    if session is not None:
        _last_seen[session_id] = now
    return session


def _not_found(session_id: str):
    logger.warning("TRIAGE_SESSION_NOT_FOUND", extra={"session_id": session_id})
    return jsonify({"error": "Session not found"}), 404


@app.route("/health", methods=["GET"])
def health():
    """Health check endpoint."""
    return jsonify({
        "status": "healthy",
        "service": "triage-service",
        "lexicon_version": config.lexicon_version,
    }), 200


@app.route("/ready", methods=["GET"])
@_serialized
def ready():
    """Readiness check."""
    return jsonify({"status": "ready", "active_sessions": len(_sessions)}), 200


@app.route("/quick-prompts", methods=["GET"])
def get_quick_prompts():
    return jsonify({"quick_prompts": [p.to_dict() for p in quick_prompts]}), 200


@app.route("/resources", methods=["GET"])
def get_resources():
    return jsonify({"resources": [r.to_dict() for r in list_resources()]}), 200


@app.route("/sessions", methods=["POST"])
@_serialized
def open_session():
    """Open a support session seeded with the greeting.

    Response (201):
        Session snapshot: session_id, state, composing, last_tier,
        transcript, emergency
    """
    scheduler.run_due()
    now = scheduler.now()
    _expire_idle_sessions(now)
    session = create_session(config=config, scheduler=scheduler)
    _sessions[session.session_id] = session
    _last_seen[session.session_id] = now
    return jsonify(session.to_dict()), 201


@app.route("/sessions/<session_id>", methods=["GET"])
@_serialized
def get_session(session_id: str):
    session = _get_session(session_id)
    if session is None:
        return _not_found(session_id)
    return jsonify(session.to_dict()), 200


@app.route("/sessions/<session_id>/messages", methods=["POST"])
@_serialized
def post_message(session_id: str):
    """Submit a user message.

    Request Body:
        {"message": "Free text from the user"}

    Response:
        202 with the session snapshot if accepted
        400 if the message is missing or blank
        409 if a reply is still being composed
    """
    session = _get_session(session_id)
    if session is None:
        return _not_found(session_id)

    data = request.get_json(silent=True) or {}
    message = data.get("message")
    if not isinstance(message, str) or not message.strip():
        logger.warning(
            "MESSAGE_REQUEST_INVALID",
            extra={"session_id": session_id, "reason": "missing_message"}
        )
        return jsonify({"error": "Missing required field: message"}), 400

    if not session.submit_message(message):
        return jsonify({"error": "Reply still being composed"}), 409
    return jsonify(session.to_dict()), 202


@app.route("/sessions/<session_id>/quick-prompts", methods=["POST"])
@_serialized
def post_quick_prompt(session_id: str):
    """Submit a quick-prompt button.

    Request Body:
        {"label": "Relaxation"}

    Response:
        202 with the session snapshot if accepted
        400 with error "unknown_quick_prompt" for an unconfigured label
        409 if a reply is still being composed
    """
    session = _get_session(session_id)
    if session is None:
        return _not_found(session_id)

    data = request.get_json(silent=True) or {}
    label = data.get("label")
    if not isinstance(label, str):
        return jsonify({"error": "Missing required field: label"}), 400

    try:
        accepted = session.submit_quick_prompt(label)
    except UnknownQuickPromptError as e:
        return jsonify({
            "error": "unknown_quick_prompt",
            "label": e.label,
            "known_labels": list(e.known_labels),
        }), 400

    if not accepted:
        return jsonify({"error": "Reply still being composed"}), 409
    return jsonify(session.to_dict()), 202


@app.route("/sessions/<session_id>", methods=["DELETE"])
@_serialized
def close_session(session_id: str):
    """Close a session; a pending reply is cancelled."""
    _last_seen.pop(session_id, None)
    session = _sessions.pop(session_id, None)
    if session is None:
        return _not_found(session_id)
    session.close()
    return "", 204


if __name__ == "__main__":
    # Configure logging
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    # Run development server
    port = int(os.getenv("PORT", "8003"))
    app.run(host="0.0.0.0", port=port, debug=False)
