import io
import json
from datetime import datetime, timezone
from types import SimpleNamespace

import pytest

import clients.openai_client as openai_client
import services.calendar_agent_service as agent
import services.chat_service as chat_service
import services.speech_service as speech_service
from fakes import make_calendar, make_store
from services.suggestion_service import fallback_suggestions, generate_suggestions, parse_suggestions
from storage.conversation_store import ConversationStore, title_from_message
from utils.errors import ServiceError

NOW = datetime(2030, 1, 1, 8, 0, tzinfo=timezone.utc)


def _scripted(*replies):
    """_chat_complete stand-in returning the given contents in order."""
    calls = []
    queue = list(replies)

    def _complete(messages, temperature=0.6, max_tokens=None):
        calls.append({"messages": messages, "temperature": temperature})
        return {"offline": False, "content": queue.pop(0)}

    return _complete, calls


# =========================
# Calendar agent
# =========================
def test_parse_action_strips_code_fences():
    action = agent.parse_action('```json\n{"action": "delete", "eventId": "evt1"}\n```')

    assert action.action == "delete"
    assert action.eventId == "evt1"


def test_parse_action_unparseable_is_none():
    action = agent.parse_action("sure, I can help with that!")

    assert action.action == "none"
    assert action.response == agent.NOT_UNDERSTOOD


def test_agent_creates_event(google, monkeypatch):
    calendar = make_calendar(make_store(), google)
    analysis = json.dumps({
        "action": "create",
        "eventData": {
            "title": "Dentist",
            "startDateTime": "2030-01-02T09:00:00Z",
            "endDateTime": "2030-01-02T10:00:00Z",
        },
        "response": "Booking it.",
    })
    complete, calls = _scripted(analysis, "Done! Your dentist visit is booked.")
    monkeypatch.setattr(agent, "_chat_complete", complete)

    out = agent.run_calendar_agent("book the dentist tomorrow at 9", calendar, now=NOW)

    assert out["action"] == "create"
    assert out["actionResult"].startswith("✅ Event \"Dentist\" created")
    assert out["response"] == "Done! Your dentist visit is booked."
    assert [c["temperature"] for c in calls] == [0.3, 0.7]
    assert "2030-01-01T08:00:00Z" in calls[0]["messages"][0]["content"], "analysis prompt carries the current time"
    assert [e["summary"] for e in google.events.values()] == ["Dentist"]


def test_agent_create_without_times_asks_for_details(google):
    calendar = make_calendar(make_store(), google)
    action = agent.CalendarAction(action="create", eventData={"title": "Lunch"})

    result = agent.execute_action(action, calendar, NOW)

    assert result.startswith("❌ I need more details")
    assert google.api_calls == []


def test_agent_list_defaults_to_next_24_hours(google):
    calendar = make_calendar(make_store(), google)
    calendar.create_event({"title": "Standup", "startDateTime": "2030-01-01T10:00:00Z", "endDateTime": "2030-01-01T10:30:00Z"})

    result = agent.execute_action(agent.CalendarAction(action="list"), calendar, NOW)

    params = google.api_calls[-1]["params"]
    assert params["timeMin"] == "2030-01-01T08:00:00Z"
    assert params["timeMax"] == "2030-01-02T08:00:00Z"
    assert "Found 1 event(s)" in result
    assert "**Standup**" in result


def test_agent_reports_calendar_errors_as_text(google):
    calendar = make_calendar(make_store(access=None, refresh=None, expires_in_ms=None), google)

    result = agent.execute_action(agent.CalendarAction(action="list"), calendar, NOW)

    assert result.startswith("❌ Sorry, I encountered an error")


def test_agent_delete_requires_event_id(google):
    calendar = make_calendar(make_store(), google)

    result = agent.execute_action(agent.CalendarAction(action="delete"), calendar, NOW)

    assert "which event" in result


def test_agent_requires_message(google):
    with pytest.raises(ServiceError):
        agent.run_calendar_agent("   ", make_calendar(make_store(), google))


# =========================
# Conversations
# =========================
def test_conversations_are_partitioned_by_user():
    store = ConversationStore()
    mine = store.create("u1", title="Trip planning")
    store.create("u2", title="Someone else")

    assert [c["id"] for c in store.list("u1")] == [mine["id"]]
    assert store.get("u2", mine["id"]) is None, "other users cannot read it"
    assert store.delete("u2", mine["id"]) is False


def test_add_message_updates_conversation_summary():
    store = ConversationStore()
    conv = store.create("u1")
    long_text = "x" * 150

    store.add_message("u1", conv["id"], "user", "hello")
    store.add_message("u1", conv["id"], "assistant", long_text)

    updated = store.get("u1", conv["id"])
    assert conv["title"] == "New Conversation"
    assert updated["messageCount"] == 2
    assert updated["lastMessage"] == "x" * 100
    assert [m["role"] for m in store.messages("u1", conv["id"])] == ["user", "assistant"]


def test_delete_conversation_drops_messages():
    store = ConversationStore()
    conv = store.create("u1")
    store.add_message("u1", conv["id"], "user", "hello")

    assert store.delete("u1", conv["id"]) is True
    assert store.messages("u1", conv["id"]) is None
    assert store.add_message("u1", conv["id"], "user", "again") is None


def test_title_from_message():
    assert title_from_message("Plan my week with gym sessions and reading time") == "Plan my week with gym sessions"
    assert title_from_message("") == "New Conversation"


# =========================
# Suggestions
# =========================
def test_parse_suggestions_strips_numbering_and_short_lines():
    text = "1. Block two hours for the report draft\n2. ok\n\n3. Confirm the dentist appointment time\n4. Batch email replies after lunch\n5. Extra one that is cut off"

    assert parse_suggestions(text) == [
        "Block two hours for the report draft",
        "Confirm the dentist appointment time",
        "Batch email replies after lunch",
    ]


def test_fallback_suggestions_follow_context():
    out = fallback_suggestions(["write report"], [{"title": "Sync", "date": "2030-01-01"}])

    assert len(out) == 3
    assert out[0].startswith("Prepare materials")
    assert out[1].startswith("Prioritize your current tasks")


def test_generate_suggestions_offline_uses_fallback(monkeypatch):
    monkeypatch.setattr(openai_client, "client", None)

    out = generate_suggestions(tasks=[], events=[])

    assert len(out) == 3
    assert out[0].startswith("Schedule regular breaks")


def test_generate_suggestions_parses_model_output(monkeypatch):
    monkeypatch.setattr(openai_client, "client", object())
    monkeypatch.setattr(
        openai_client,
        "_chat_complete",
        lambda messages, temperature, max_tokens: {"offline": False, "content": "1. Review the Q3 budget sheet\n2. Call the venue about seating"},
    )

    out = generate_suggestions(tasks=["budget"], name="Ada")

    assert out == ["Review the Q3 budget sheet", "Call the venue about seating"]


# =========================
# Chat + speech
# =========================
def test_chat_reply_inserts_memory_context(monkeypatch):
    complete, calls = _scripted("Oat milk latte, coming right up.")
    monkeypatch.setattr(chat_service, "_chat_complete", complete)
    monkeypatch.setattr(chat_service, "get_relevant_context", lambda user_id, query: "[PREFERENCE] Coffee: oat milk")

    out = chat_service.reply("u1", [{"role": "user", "content": "what coffee do I like?"}])

    sent = calls[0]["messages"]
    assert [m["role"] for m in sent] == ["system", "system", "user"]
    assert sent[1]["content"] == "[PREFERENCE] Coffee: oat milk"
    assert out == {"message": {"role": "assistant", "content": "Oat milk latte, coming right up."}, "used_memory": True}


def test_chat_reply_requires_messages():
    with pytest.raises(ServiceError):
        chat_service.reply("u1", [])


def test_transcribe_sends_audio_to_whisper(monkeypatch):
    seen = {}

    def _create(**kwargs):
        seen.update(kwargs)
        return " hello there \n"

    fake = SimpleNamespace(audio=SimpleNamespace(transcriptions=SimpleNamespace(create=_create)))
    monkeypatch.setattr(openai_client, "client", fake)

    text = speech_service.transcribe(io.BytesIO(b"RIFF...."), None, "audio/wav")

    assert text == "hello there"
    assert seen["language"] == "en"
    assert seen["response_format"] == "text"
    assert seen["file"][0] == "recording.wav"


def test_transcribe_without_audio_is_bad_request():
    with pytest.raises(ServiceError) as exc:
        speech_service.transcribe(None, None)
    assert exc.value.status == 400
