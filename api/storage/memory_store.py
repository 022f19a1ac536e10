from __future__ import annotations

import os
import re
from typing import Any, Dict, List, Optional

from config import log
from storage.supabase_store import (
    supabase_delete,
    supabase_get,
    supabase_headers,
    supabase_patch,
    supabase_post,
    supabase_rpc_url,
    supabase_table_url,
)


SUPABASE_MEMORIES_TABLE = os.environ.get("SUPABASE_MEMORIES_TABLE", "user_memories")
SUPABASE_SEARCH_RPC = os.environ.get("SUPABASE_MEMORY_SEARCH_RPC", "search_memories")

# Characters that would break a PostgREST or=(...) filter.
_FILTER_UNSAFE_RE = re.compile(r"[(),*%\\]")


def _table_url() -> str:
    return supabase_table_url(SUPABASE_MEMORIES_TABLE)


def _rows(resp, action: str) -> Optional[List[Dict[str, Any]]]:
    if resp.status_code >= 400:
        log.warning("Supabase %s failed: %s", action, resp.text)
        return None
    rows = resp.json()
    return rows if isinstance(rows, list) else []


def insert_memory(row: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    resp = supabase_post(_table_url(), json=row, headers=supabase_headers("return=representation"))
    rows = _rows(resp, "insert_memory")
    if rows is None:
        return None
    return rows[0] if rows else row


def select_memories(
    user_id: str,
    memory_type: Optional[str] = None,
    memory_id: Optional[str] = None,
) -> Optional[List[Dict[str, Any]]]:
    params = {
        "user_id": f"eq.{user_id}",
        "select": "*",
        "order": "created_at.desc",
    }
    if memory_type:
        params["type"] = f"eq.{memory_type}"
    if memory_id:
        params["id"] = f"eq.{memory_id}"
    return _rows(supabase_get(_table_url(), params=params), "select_memories")


def update_memory_row(user_id: str, memory_id: str, updates: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    params = {"user_id": f"eq.{user_id}", "id": f"eq.{memory_id}"}
    resp = supabase_patch(
        _table_url(),
        json=updates,
        params=params,
        headers=supabase_headers("return=representation"),
    )
    rows = _rows(resp, "update_memory")
    if not rows:
        return None
    return rows[0]


def delete_memory_row(user_id: str, memory_id: str) -> bool:
    params = {"user_id": f"eq.{user_id}", "id": f"eq.{memory_id}"}
    resp = supabase_delete(_table_url(), params=params, headers=supabase_headers("return=minimal"))
    if resp.status_code >= 400:
        log.warning("Supabase delete_memory failed: %s", resp.text)
        return False
    return True


def vector_search(
    user_id: str,
    embedding: List[float],
    threshold: float,
    limit: int,
) -> Optional[List[Dict[str, Any]]]:
    """Calls the search_memories RPC (pgvector). None means the RPC failed."""
    payload = {
        "query_embedding": embedding,
        "match_threshold": threshold,
        "match_count": limit,
        "filter_user_id": user_id,
    }
    return _rows(supabase_post(supabase_rpc_url(SUPABASE_SEARCH_RPC), json=payload), "search_memories rpc")


def text_search(
    user_id: str,
    query: str,
    limit: int,
    memory_type: Optional[str] = None,
) -> Optional[List[Dict[str, Any]]]:
    term = _FILTER_UNSAFE_RE.sub(" ", query).strip()
    params = {
        "user_id": f"eq.{user_id}",
        "select": "*",
        "order": "created_at.desc",
        "limit": str(int(limit)),
    }
    if term:
        params["or"] = f"(title.ilike.*{term}*,content.ilike.*{term}*)"
    if memory_type:
        params["type"] = f"eq.{memory_type}"
    return _rows(supabase_get(_table_url(), params=params), "text_search")

