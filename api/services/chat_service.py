from __future__ import annotations

from typing import Any, Dict, Iterator, List, Tuple

from clients.openai_client import DEFAULT_SYSTEM, _chat_complete, _chat_stream, _coerce_messages, _ensure_system_first
from config import log
from services.memory_service import get_relevant_context
from utils.errors import ServiceError


def _last_user_text(messages: List[Dict[str, str]]) -> str:
    for m in reversed(messages):
        if m["role"] == "user":
            return m["content"]
    return ""


def _build_conversation(user_id: str, messages: Any) -> Tuple[List[Dict[str, str]], bool]:
    """
    Prompt for one assistant turn. Memories relevant to the latest user
    message are added as a second system message.
    """
    history = _coerce_messages(messages)
    if not history:
        raise ServiceError("Missing 'messages' in request body.", 400)

    convo = _ensure_system_first([m for m in history if m["role"] != "system"], DEFAULT_SYSTEM)

    context = ""
    query = _last_user_text(history)
    try:
        context = get_relevant_context(user_id, query)
    except ServiceError as e:
        log.warning("[Chat] memory context unavailable: %s", e.message)
    if context:
        convo.insert(1, {"role": "system", "content": context})
    return convo, bool(context)


def reply(user_id: str, messages: Any) -> Dict[str, Any]:
    convo, used_memory = _build_conversation(user_id, messages)
    out = _chat_complete(convo, temperature=0.7)
    log.info("[Chat] reply user=%s context=%s offline=%s", user_id, used_memory, out["offline"])
    return {"message": {"role": "assistant", "content": out["content"]}, "used_memory": used_memory}


def stream_reply(user_id: str, messages: Any) -> Tuple[Iterator[str], bool]:
    """
    Same turn as `reply`, streamed. Bad input raises here, before the first
    chunk; model errors surface while iterating.
    """
    convo, used_memory = _build_conversation(user_id, messages)
    log.info("[Chat] streaming reply user=%s context=%s", user_id, used_memory)
    return _chat_stream(convo, temperature=0.7), used_memory
