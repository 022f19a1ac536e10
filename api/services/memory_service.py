from __future__ import annotations

from typing import Any, Dict, List, Optional

import requests

import clients.openai_client as openai_client
from config import log
from storage.memory_store import (
    delete_memory_row,
    insert_memory,
    select_memories,
    text_search,
    update_memory_row,
    vector_search,
)
from storage.supabase_store import supabase_enabled
from utils.errors import ServiceError

MEMORY_TYPES = ("resume", "document", "preference", "context", "file")
TEXT_MATCH_SIMILARITY = 0.5
CONTEXT_HEADER = "Here's some relevant information I remember about you:"


def _require_store() -> None:
    if not supabase_enabled():
        raise ServiceError("Supabase not configured", 500, "no_store")


def _validate_type(memory_type: Optional[str]) -> None:
    if memory_type and memory_type not in MEMORY_TYPES:
        raise ServiceError(f"Invalid memory type: {memory_type}", 400)


def create_memory(
    user_id: str,
    title: str,
    content: str,
    memory_type: str,
    metadata: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    if not title or not content or not memory_type:
        raise ServiceError("Missing required fields", 400)
    _validate_type(memory_type)
    _require_store()

    row: Dict[str, Any] = {
        "user_id": user_id,
        "title": title,
        "content": content,
        "type": memory_type,
        "metadata": metadata or {},
    }
    embedding = openai_client._embed(f"{title} {content}")
    if embedding:
        row["embedding"] = embedding

    saved = insert_memory(row)
    if not saved:
        raise ServiceError("Failed to create memory", 500)
    log.info("[Memory] created id=%s type=%s embedded=%s", saved.get("id"), memory_type, bool(embedding))
    return saved


def list_memories(user_id: str, memory_type: Optional[str] = None) -> List[Dict[str, Any]]:
    _validate_type(memory_type)
    _require_store()
    rows = select_memories(user_id, memory_type=memory_type)
    if rows is None:
        raise ServiceError("Failed to fetch memories", 500)
    return rows


def get_memory(user_id: str, memory_id: str) -> Optional[Dict[str, Any]]:
    _require_store()
    rows = select_memories(user_id, memory_id=memory_id)
    if rows is None:
        raise ServiceError("Failed to fetch memory", 500)
    return rows[0] if rows else None


def update_memory(user_id: str, memory_id: str, updates: Dict[str, Any]) -> Dict[str, Any]:
    _require_store()
    changes = {k: v for k, v in updates.items() if k in ("title", "content", "type", "metadata") and v is not None}
    _validate_type(changes.get("type"))

    if changes.get("title") or changes.get("content"):
        current = get_memory(user_id, memory_id)
        if not current:
            raise ServiceError("Memory not found", 404, "not_found")
        title = changes.get("title") or current.get("title") or ""
        content = changes.get("content") or current.get("content") or ""
        embedding = openai_client._embed(f"{title} {content}")
        if embedding:
            changes["embedding"] = embedding

    if not changes:
        raise ServiceError("Nothing to update", 400)

    saved = update_memory_row(user_id, memory_id, changes)
    if not saved:
        raise ServiceError("Memory not found", 404, "not_found")
    return saved


def delete_memory(user_id: str, memory_id: str) -> None:
    _require_store()
    if not delete_memory_row(user_id, memory_id):
        raise ServiceError("Failed to delete memory", 500)


# =========================
# Retrieval
# =========================
def _fallback_text_search(
    user_id: str,
    query: str,
    limit: int,
    memory_type: Optional[str],
) -> List[Dict[str, Any]]:
    try:
        rows = text_search(user_id, query, limit, memory_type)
    except requests.RequestException:
        log.exception("[Memory] text search failed")
        return []
    if rows is None:
        return []
    return [{**row, "similarity": TEXT_MATCH_SIMILARITY} for row in rows]


def search_memories(
    user_id: str,
    query: str,
    threshold: float = 0.7,
    limit: int = 10,
    memory_type: Optional[str] = None,
) -> List[Dict[str, Any]]:
    """
    Vector search over the user's memories, falling back to a title/content
    substring match when there is no embedding or the RPC fails.
    """
    _validate_type(memory_type)
    _require_store()

    query_embedding = openai_client._embed(query)
    if query_embedding:
        try:
            rows = vector_search(user_id, query_embedding, threshold, limit)
        except requests.RequestException as e:
            log.warning("[Memory] vector search failed, falling back to text search: %s", e)
            rows = None
        if rows is not None:
            if memory_type:
                rows = [r for r in rows if r.get("type") == memory_type]
            return rows

    return _fallback_text_search(user_id, query, limit, memory_type)


def get_relevant_context(user_id: str, query: str, limit: int = 5) -> str:
    if not supabase_enabled() or not (query or "").strip():
        return ""
    memories = search_memories(user_id, query, threshold=0.6, limit=limit)
    if not memories:
        return ""
    blocks = "\n\n".join(
        f"[{(m.get('type') or 'context').upper()}] {m.get('title') or ''}: {m.get('content') or ''}"
        for m in memories
    )
    return f"{CONTEXT_HEADER}\n\n{blocks}"
