from __future__ import annotations

from flask import Blueprint, current_app

from storage.conversation_store import ConversationStore, title_from_message
from utils.auth_helpers import get_user_id, login_required
from utils.json_helpers import jerror, jok, json_object

conversations_bp = Blueprint("conversations", __name__)


def _store() -> ConversationStore:
    return current_app.extensions["conversations"]


@conversations_bp.get("/api/conversations")
@login_required
def conversations_list():
    return jok({"conversations": _store().list(get_user_id())})


@conversations_bp.post("/api/conversations")
@login_required
def conversations_create():
    data = json_object()
    first_message = (data.get("firstMessage") or "").strip() or None
    title = (data.get("title") or "").strip() or (title_from_message(first_message) if first_message else None)
    conv = _store().create(get_user_id(), title=title, first_message=first_message)
    return jok({"conversation": conv}, 201)


@conversations_bp.get("/api/conversations/<conversation_id>")
@login_required
def conversations_get(conversation_id: str):
    store = _store()
    conv = store.get(get_user_id(), conversation_id)
    if not conv:
        return jerror("Conversation not found", 404, "not_found")
    return jok({"conversation": conv, "messages": store.messages(get_user_id(), conversation_id) or []})


@conversations_bp.put("/api/conversations/<conversation_id>")
@login_required
def conversations_update(conversation_id: str):
    data = json_object()
    conv = _store().update(get_user_id(), conversation_id, data)
    if not conv:
        return jerror("Conversation not found", 404, "not_found")
    return jok({"conversation": conv})


@conversations_bp.delete("/api/conversations/<conversation_id>")
@login_required
def conversations_delete(conversation_id: str):
    if not _store().delete(get_user_id(), conversation_id):
        return jerror("Conversation not found", 404, "not_found")
    return jok({"success": True})


@conversations_bp.post("/api/conversations/<conversation_id>/messages")
@login_required
def conversations_add_message(conversation_id: str):
    data = json_object()
    role = (data.get("role") or "").strip()
    content = (data.get("content") or "").strip()
    if role not in ("user", "assistant") or not content:
        return jerror("'role' must be user|assistant and 'content' is required.", 400)
    message = _store().add_message(get_user_id(), conversation_id, role, content)
    if not message:
        return jerror("Conversation not found", 404, "not_found")
    return jok({"message": message}, 201)
