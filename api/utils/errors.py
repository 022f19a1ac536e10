from __future__ import annotations


class ServiceError(Exception):
    def __init__(self, message: str, status: int = 400, code: str = "bad_request"):
        super().__init__(message)
        self.message = message
        self.status = status
        self.code = code


# =========================
# Google OAuth / Calendar
# =========================
class NotAuthenticatedError(ServiceError):
    def __init__(self, message: str = "Not authenticated. Please connect Google Calendar first."):
        super().__init__(message, 401, "not_authenticated")


class RefreshRevokedError(ServiceError):
    """The refresh token was rejected with invalid_grant; stored tokens are gone."""

    def __init__(self, message: str = "Google access was revoked or expired. Please reconnect."):
        super().__init__(message, 401, "grant_revoked")


class TokenRefreshError(ServiceError):
    def __init__(self, message: str):
        super().__init__(message, 401, "refresh_failed")


class TokenExchangeError(ServiceError):
    def __init__(self, message: str):
        super().__init__(message, 400, "token_exchange_failed")


class CalendarApiError(ServiceError):
    def __init__(self, status: int, message: str = ""):
        text = message or f"HTTP error! status: {status}"
        super().__init__(text, status if status >= 400 else 502, "calendar_error")
        self.upstream_status = status
