from __future__ import annotations

from typing import Any, Dict, Iterator, List, Optional

from openai import OpenAI

from config import EMBED_MODEL, OPENAI_API_KEY, OPENAI_MODEL, log

client: Optional[OpenAI] = None
if OPENAI_API_KEY:
    client = OpenAI(api_key=OPENAI_API_KEY)

# =========================
# OpenAI message assembly
# =========================
DEFAULT_SYSTEM = (
    "You are a helpful AI assistant designed to manage daily activities, organize tasks, "
    "schedule appointments, and provide timely reminders. Maintain a formal and supportive "
    "tone in all interactions. Prioritize user privacy and data security."
)


def _normalize_message_role(m: dict) -> dict:
    role = m.get("role", "user")
    if role not in ("system", "user", "assistant"):
        role = "user"
    return {"role": role, "content": str(m.get("content", "")).strip()}


def _coerce_messages(messages: Any) -> List[Dict[str, str]]:
    """Coerce inbound messages array from the client into OpenAI chat format."""
    if not isinstance(messages, list):
        return []
    out: List[Dict[str, str]] = []
    for m in messages:
        if not isinstance(m, dict):
            continue
        nm = _normalize_message_role(m)
        if nm["content"]:
            out.append(nm)
    return out


def _ensure_system_first(
    messages: List[Dict[str, str]],
    system_fallback: str = DEFAULT_SYSTEM,
) -> List[Dict[str, str]]:
    """Make sure there's a system prompt at the top."""
    if not messages:
        return [{"role": "system", "content": system_fallback}]
    if messages[0]["role"] != "system":
        return [{"role": "system", "content": system_fallback}] + messages
    if not messages[0]["content"].strip():
        messages[0]["content"] = system_fallback
    return messages


def _chat_complete(
    messages: List[Dict[str, str]],
    temperature: float = 0.6,
    max_tokens: Optional[int] = None,
) -> Dict[str, Any]:
    """Wrapper to call OpenAI chat with an offline fallback."""
    if not client:
        joined = "\n".join([f"{m['role']}: {m['content']}" for m in messages[-4:]])
        return {"offline": True, "content": f"(offline) {joined[-400:]}"}
    kwargs: Dict[str, Any] = {
        "model": OPENAI_MODEL,
        "messages": messages,
        "temperature": temperature,
    }
    if max_tokens:
        kwargs["max_tokens"] = max_tokens
    resp = client.chat.completions.create(**kwargs)
    return {"offline": False, "content": (resp.choices[0].message.content or "").strip()}


def _chat_stream(
    messages: List[Dict[str, str]],
    temperature: float = 0.6,
) -> Iterator[str]:
    """Yield reply text as the model produces it. Needs a configured client."""
    if not client:
        raise RuntimeError("OpenAI client is not configured")
    stream = client.chat.completions.create(
        model=OPENAI_MODEL,
        messages=messages,
        temperature=temperature,
        stream=True,
    )
    for chunk in stream:
        if not chunk.choices:
            continue
        delta = chunk.choices[0].delta.content
        if delta:
            yield delta


def _embed(text: str) -> Optional[List[float]]:
    """Embedding for `text`, or None when OpenAI is not configured or the call fails."""
    if not client:
        log.warning("OpenAI API key not found, skipping embedding generation")
        return None
    try:
        resp = client.embeddings.create(model=EMBED_MODEL, input=text)
        return resp.data[0].embedding
    except Exception:
        log.exception("Embedding failed")
        return None
