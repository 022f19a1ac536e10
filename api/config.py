from __future__ import annotations

import json
import logging
import os

from dotenv import load_dotenv

# =========================
# Config & Initialization
# =========================
BASE_DIR = os.path.dirname(os.path.abspath(__file__))     # api/
ROOT_DIR = os.path.dirname(BASE_DIR)                      # project root

# Load root .env first, then any CWD .env.
load_dotenv(os.path.join(ROOT_DIR, ".env"))
load_dotenv()

APP_NAME = os.getenv("APP_NAME", "Aide API")
APP_VERSION = os.getenv("APP_VERSION", "0.3.0")
APP_ENV = os.getenv("APP_ENV", "development")
PORT = int(os.getenv("PORT", "5050"))
DEBUG = os.getenv("DEBUG", "true").lower() in ("1", "true", "yes")
APP_URL = os.getenv("APP_URL", f"http://localhost:{PORT}").rstrip("/")

COOKIE_SECURE = APP_ENV == "production"
HTTP_TIMEOUT_SECS = float(os.getenv("HTTP_TIMEOUT_SECS", "20"))

# === Google OAuth + Calendar ===
GOOGLE_CLIENT_ID = os.getenv("GOOGLE_CLIENT_ID", "")
GOOGLE_CLIENT_SECRET = os.getenv("GOOGLE_CLIENT_SECRET", "")
GOOGLE_AUTH_URL = "https://accounts.google.com/o/oauth2/v2/auth"
GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
GOOGLE_CAL_BASE = "https://www.googleapis.com/calendar/v3"
GOOGLE_CALENDAR_SCOPE = "https://www.googleapis.com/auth/calendar"
GOOGLE_REDIRECT_PATH = os.getenv("GOOGLE_REDIRECT_PATH", "/api/calendar/auth/callback")

TOKEN_REFRESH_BUFFER_SECS = int(os.getenv("TOKEN_REFRESH_BUFFER_SECS", "300"))
REFRESH_COOKIE_MAX_AGE = 60 * 60 * 24 * 30
DEFAULT_TIMEZONE = os.getenv("DEFAULT_TIMEZONE", "America/New_York")

# === OpenAI ===
OPENAI_API_KEY = os.getenv("OPENAI_API_KEY")
OPENAI_MODEL = os.getenv("OPENAI_MODEL", "gpt-4o")
EMBED_MODEL = os.getenv("OPENAI_EMBED_MODEL", "text-embedding-3-small")
TRANSCRIBE_MODEL = os.getenv("OPENAI_TRANSCRIBE_MODEL", "whisper-1")

# === App session (auth-token cookie) ===
SESSION_SECRET = os.getenv("SESSION_SECRET", "aide-dev-secret")
SESSION_COOKIE_NAME = "auth-token"
SESSION_MAX_AGE_SECS = int(os.getenv("SESSION_MAX_AGE_SECS", str(7 * 24 * 60 * 60)))

# === Pantry user basket ===
PANTRY_ID = os.getenv("PANTRY_ID", "")
PANTRY_BASKET = os.getenv("PANTRY_BASKET", "ai_assistant_users")
PANTRY_TIMEOUT_SECS = float(os.getenv("PANTRY_TIMEOUT_SECS", "10"))
try:
    SEED_USERS = json.loads(os.getenv("SEED_USERS", "[]"))
except ValueError:
    SEED_USERS = []

# === Debug console ===
DEBUG_CONSOLE_ENABLED = os.getenv("DEBUG_CONSOLE_ENABLED", "false").lower() in ("1", "true", "yes")
DEBUG_EVENTS_MAX = int(os.getenv("DEBUG_EVENTS_MAX", "500"))

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")
log = logging.getLogger("aide")

if not SEED_USERS and os.getenv("SEED_USERS"):
    log.warning("SEED_USERS is not valid JSON; ignoring")
