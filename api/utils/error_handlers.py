from __future__ import annotations

from flask import Flask

from config import log
from utils.errors import ServiceError
from utils.json_helpers import jerror


# =========================
# Error Handlers
# =========================
def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(ServiceError)
    def service_error(e: ServiceError):
        if e.status >= 500:
            log.error("ServiceError %s: %s", e.code, e.message)
        return jerror(e.message, e.status, e.code)

    @app.errorhandler(404)
    def not_found(_):
        return jerror("Route not found", 404, "not_found")

    @app.errorhandler(405)
    def method_not_allowed(_):
        return jerror("Method not allowed", 405, "method_not_allowed")

    @app.errorhandler(500)
    def internal(_):
        return jerror("Internal server error", 500, "internal_error")
