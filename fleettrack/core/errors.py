# fleettrack/core/errors.py
from typing import Any, Optional

NETWORK_ERROR = "Unable to connect to server. Please retry."


class ApiError(Exception):
    """Backend call failed. `message` is safe to show to the user as-is."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status = status


class AuthError(ApiError):
    """401/403 from the backend."""


class NetworkError(ApiError):
    """Backend unreachable (connect/read failures, timeouts)."""


class ServerError(ApiError):
    """Any other non-OK status, usually with a message body."""


class FormError(ValueError):
    """Client-side validation failed; nothing was sent."""

    def __init__(self, title: str, message: str):
        super().__init__(message)
        self.title = title
        self.message = message


def message_from_body(body: Any, status: int) -> str:
    # accept several backend shapes: {message}, {error}, FastAPI-style {detail}
    if isinstance(body, dict):
        for key in ("message", "error", "detail"):
            val = body.get(key)
            if isinstance(val, str) and val.strip():
                return val
    if isinstance(body, str) and body.strip():
        return body.strip()[:200]
    return f"Error: {status}"
