from __future__ import annotations

from flask import Blueprint, Response, request, stream_with_context

import clients.openai_client as openai_client
from config import log
from services.chat_service import reply, stream_reply
from services.speech_service import transcribe
from services.suggestion_service import generate_suggestions
from utils.auth_helpers import get_user, get_user_id, login_required
from utils.errors import ServiceError
from utils.json_helpers import jerror, jok, json_object

chat_bp = Blueprint("chat", __name__)

CHAT_STREAM_ERROR = "\n\n[error] Failed to generate a reply"


# =========================
# Chat (with long-term memory)
# =========================
@chat_bp.post("/api/chat")
@login_required
def chat():
    """
    Body: { messages: [ {role, content}, ... ] }

    Streams the reply as plain text. Without an OpenAI key the offline
    reply comes back in the JSON envelope instead.
    """
    data = json_object()
    user_id = get_user_id()
    try:
        if not openai_client.client:
            return jok(reply(user_id, data.get("messages")))
        chunks, used_memory = stream_reply(user_id, data.get("messages"))
    except ServiceError as e:
        return jerror(e.message, e.status, e.code)
    except Exception:
        log.exception("chat failed")
        return jerror("Failed to generate a reply", 500, "internal_error")

    def generate():
        try:
            for piece in chunks:
                yield piece
        except Exception:
            log.exception("chat stream failed user=%s", user_id)
            yield CHAT_STREAM_ERROR

    resp = Response(stream_with_context(generate()), mimetype="text/plain")
    resp.headers["X-Used-Memory"] = "true" if used_memory else "false"
    return resp


# =========================
# Speech-to-text
# =========================
@chat_bp.post("/api/speech")
@login_required
def speech():
    audio = request.files.get("audio")
    try:
        text = transcribe(
            audio.stream if audio else None,
            audio.filename if audio else None,
            audio.mimetype if audio else None,
        )
    except ServiceError as e:
        return jerror(e.message, e.status, e.code)
    return jok({"text": text})


# =========================
# Assistant suggestions
# =========================
@chat_bp.post("/api/assistant/suggestions")
@login_required
def suggestions():
    data = json_object()
    out = generate_suggestions(
        tasks=data.get("tasks") if isinstance(data.get("tasks"), list) else [],
        events=data.get("events") if isinstance(data.get("events"), list) else [],
        preferences=data.get("preferences") if isinstance(data.get("preferences"), dict) else {},
        name=get_user().get("name"),
    )
    return jok({"suggestions": out})
