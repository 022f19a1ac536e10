from __future__ import annotations

import uuid
from threading import Lock
from typing import Any, Dict, List, Optional

from utils.time_helpers import now_iso

DEFAULT_TITLE = "New Conversation"
LAST_MESSAGE_CHARS = 100


class ConversationStore:
    """In-process conversations and their messages, partitioned by user."""

    def __init__(self) -> None:
        self._lock = Lock()
        self._conversations: Dict[str, Dict[str, Dict[str, Any]]] = {}
        self._messages: Dict[str, List[Dict[str, Any]]] = {}

    def list(self, user_id: str) -> List[Dict[str, Any]]:
        with self._lock:
            convs = [dict(c) for c in self._conversations.get(user_id, {}).values()]
        return sorted(convs, key=lambda c: c["updatedAt"], reverse=True)

    def create(self, user_id: str, title: Optional[str] = None, first_message: Optional[str] = None) -> Dict[str, Any]:
        now = now_iso()
        conv = {
            "id": uuid.uuid4().hex,
            "title": (title or "").strip() or DEFAULT_TITLE,
            "createdAt": now,
            "updatedAt": now,
            "messageCount": 0,
            "lastMessage": first_message or None,
        }
        with self._lock:
            self._conversations.setdefault(user_id, {})[conv["id"]] = conv
            self._messages[conv["id"]] = []
        return dict(conv)

    def get(self, user_id: str, conversation_id: str) -> Optional[Dict[str, Any]]:
        with self._lock:
            conv = self._conversations.get(user_id, {}).get(conversation_id)
            return dict(conv) if conv else None

    def messages(self, user_id: str, conversation_id: str) -> Optional[List[Dict[str, Any]]]:
        with self._lock:
            if conversation_id not in self._conversations.get(user_id, {}):
                return None
            return [dict(m) for m in self._messages.get(conversation_id, [])]

    def update(self, user_id: str, conversation_id: str, updates: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        with self._lock:
            conv = self._conversations.get(user_id, {}).get(conversation_id)
            if not conv:
                return None
            if updates.get("title"):
                conv["title"] = str(updates["title"]).strip() or conv["title"]
            conv["updatedAt"] = now_iso()
            return dict(conv)

    def delete(self, user_id: str, conversation_id: str) -> bool:
        with self._lock:
            conv = self._conversations.get(user_id, {}).pop(conversation_id, None)
            self._messages.pop(conversation_id, None)
            return conv is not None

    def add_message(self, user_id: str, conversation_id: str, role: str, content: str) -> Optional[Dict[str, Any]]:
        now = now_iso()
        with self._lock:
            conv = self._conversations.get(user_id, {}).get(conversation_id)
            if not conv:
                return None
            message = {
                "id": uuid.uuid4().hex,
                "conversationId": conversation_id,
                "role": role,
                "content": content,
                "createdAt": now,
            }
            msgs = self._messages.setdefault(conversation_id, [])
            msgs.append(message)
            conv["messageCount"] = len(msgs)
            conv["lastMessage"] = content[:LAST_MESSAGE_CHARS]
            conv["updatedAt"] = now
            return dict(message)


def title_from_message(first_message: str) -> str:
    words = " ".join((first_message or "").split(" ")[:6])
    if len(words) > 50:
        return words[:47] + "..."
    return words or DEFAULT_TITLE
