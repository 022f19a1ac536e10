from __future__ import annotations

from flask import Blueprint, request

from services.memory_service import (
    create_memory,
    delete_memory,
    get_memory,
    list_memories,
    search_memories,
    update_memory,
)
from utils.auth_helpers import get_user_id, login_required
from utils.errors import ServiceError
from utils.json_helpers import jerror, jok, json_object

memory_bp = Blueprint("memory", __name__)


@memory_bp.get("/api/memory")
@login_required
def memory_list():
    memory_type = request.args.get("type") or None
    search = (request.args.get("search") or "").strip()
    try:
        if search:
            memories = search_memories(get_user_id(), search, memory_type=memory_type)
        else:
            memories = list_memories(get_user_id(), memory_type)
    except ServiceError as e:
        return jerror(e.message, e.status, e.code)
    return jok({"memories": memories})


@memory_bp.post("/api/memory")
@login_required
def memory_create():
    data = json_object()
    try:
        memory = create_memory(
            get_user_id(),
            (data.get("title") or "").strip(),
            (data.get("content") or "").strip(),
            (data.get("type") or "").strip(),
            data.get("metadata") if isinstance(data.get("metadata"), dict) else None,
        )
    except ServiceError as e:
        return jerror(e.message, e.status, e.code)
    return jok({"memory": memory}, 201)


@memory_bp.get("/api/memory/<memory_id>")
@login_required
def memory_get(memory_id: str):
    try:
        memory = get_memory(get_user_id(), memory_id)
    except ServiceError as e:
        return jerror(e.message, e.status, e.code)
    if not memory:
        return jerror("Memory not found", 404, "not_found")
    return jok({"memory": memory})


@memory_bp.put("/api/memory/<memory_id>")
@login_required
def memory_update(memory_id: str):
    data = json_object()
    try:
        return jok({"memory": update_memory(get_user_id(), memory_id, data)})
    except ServiceError as e:
        return jerror(e.message, e.status, e.code)


@memory_bp.delete("/api/memory/<memory_id>")
@login_required
def memory_delete(memory_id: str):
    try:
        delete_memory(get_user_id(), memory_id)
    except ServiceError as e:
        return jerror(e.message, e.status, e.code)
    return jok({"success": True})
