from __future__ import annotations

import io
from typing import IO, Optional

import clients.openai_client as openai_client
from config import TRANSCRIBE_MODEL, log
from utils.errors import ServiceError

MIME_EXTENSIONS = {
    "audio/webm": "webm",
    "audio/webm;codecs=opus": "webm",
    "audio/mp4": "mp4",
    "audio/mpeg": "mp3",
    "audio/wav": "wav",
    "audio/ogg": "ogg",
}


def file_extension(mime_type: Optional[str]) -> str:
    return MIME_EXTENSIONS.get((mime_type or "").strip().lower(), "webm")


def transcribe(stream: Optional[IO[bytes]], filename: Optional[str], mime_type: Optional[str] = None) -> str:
    if stream is None:
        raise ServiceError("No audio file provided", 400)
    if not openai_client.client:
        raise ServiceError("OpenAI client not configured", 500, "no_client")

    data = stream.read()
    if not data:
        raise ServiceError("No audio file provided", 400)
    name = filename or f"recording.{file_extension(mime_type)}"

    try:
        text = openai_client.client.audio.transcriptions.create(
            model=TRANSCRIBE_MODEL,
            file=(name, io.BytesIO(data), mime_type or "application/octet-stream"),
            language="en",
            response_format="text",
        )
    except Exception as e:
        log.exception("Speech transcription error")
        raise ServiceError(f"Failed to transcribe audio: {e}", 500) from e

    # response_format="text" yields a plain string
    return (text if isinstance(text, str) else getattr(text, "text", "") or "").strip()
