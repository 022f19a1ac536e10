from __future__ import annotations

from flask import Blueprint

import clients.openai_client as openai_client
from config import APP_ENV, APP_NAME, APP_VERSION, GOOGLE_CLIENT_ID
from storage.pantry_store import pantry_enabled
from storage.supabase_store import supabase_enabled
from utils.json_helpers import jok

meta_bp = Blueprint("meta", __name__)


# =========================
# Meta / Health
# =========================
@meta_bp.get("/health")
def health():
    return jok(
        {
            "name": APP_NAME,
            "version": APP_VERSION,
            "env": APP_ENV,
            "openai": bool(openai_client.client),
            "google_oauth": bool(GOOGLE_CLIENT_ID),
            "supabase": supabase_enabled(),
            "pantry": pantry_enabled(),
        }
    )


@meta_bp.get("/version")
def version():
    return jok({"name": APP_NAME, "version": APP_VERSION})
