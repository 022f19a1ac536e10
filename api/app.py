from __future__ import annotations

import time
import uuid

from flask import Flask, g, got_request_exception, request
from flask_cors import CORS

from config import APP_URL, SESSION_SECRET
from storage.conversation_store import ConversationStore
from utils.debug_events import debug_enabled, record_event
from utils.error_handlers import register_error_handlers


def create_app() -> Flask:
    app = Flask(__name__)
    app.secret_key = SESSION_SECRET
    CORS(app, supports_credentials=True, origins=[APP_URL])

    # One conversation store per process.
    app.extensions["conversations"] = ConversationStore()

    @app.before_request
    def _request_start():
        rid = request.headers.get("X-Request-Id") or str(uuid.uuid4())
        g.request_id = rid
        g.request_start_ts = time.time()
        record_event(
            "request",
            f"{request.method} {request.path} start",
            data={"method": request.method, "path": request.path},
            request_id=rid,
        )

    @app.after_request
    def _request_end(response):
        rid = getattr(g, "request_id", None)
        start_ts = getattr(g, "request_start_ts", None)
        duration_ms = int((time.time() - start_ts) * 1000) if start_ts else None
        response.headers["X-Request-Id"] = rid or response.headers.get("X-Request-Id", "")
        record_event(
            "request",
            f"{request.method} {request.path} end",
            data={"status": response.status_code, "duration_ms": duration_ms},
            request_id=rid,
        )
        return response

    def _log_exception(sender, exception, **extra):
        if not debug_enabled():
            return
        record_event(
            "error",
            f"{type(exception).__name__}",
            data={"error": str(exception), "path": request.path},
            request_id=getattr(g, "request_id", None),
            level="error",
        )

    got_request_exception.connect(_log_exception, app)

    # Register blueprints
    from routes.auth import auth_bp
    from routes.calendar import calendar_bp
    from routes.calendar_auth import calendar_auth_bp
    from routes.chat import chat_bp
    from routes.conversations import conversations_bp
    from routes.debug import debug_bp
    from routes.memory import memory_bp
    from routes.meta import meta_bp
    from routes.pantry import pantry_bp

    app.register_blueprint(auth_bp)
    app.register_blueprint(calendar_auth_bp)
    app.register_blueprint(calendar_bp)
    app.register_blueprint(chat_bp)
    app.register_blueprint(conversations_bp)
    app.register_blueprint(memory_bp)
    app.register_blueprint(pantry_bp)
    app.register_blueprint(meta_bp)
    app.register_blueprint(debug_bp)

    register_error_handlers(app)
    return app


app = create_app()
