"""Application-level exceptions.

These are business-logic errors, not HTTP errors. The presentation layer
(e.g. FastAPI routes) translates them into appropriate HTTP responses.
"""

from __future__ import annotations

from typing import Any


class ProxyRequestError(ValueError):
    """Raised when a proxy request is malformed (missing body, action or field)."""


class UnknownActionError(ProxyRequestError):
    """Raised when a proxy receives an action it does not support."""

    def __init__(self, action: str) -> None:
        super().__init__(f"Unknown action: {action}")
        self.action = action


class NotConfiguredError(RuntimeError):
    """Raised when the upstream system a proxy forwards to has no credentials/URL."""


class RecordNotFoundError(LookupError):
    """Raised when a database row addressed by its row number does not exist."""


class UpstreamError(RuntimeError):
    """Raised when an external system rejects a request or returns garbage.

    ``status_code`` is the status the proxy should relay; ``details`` carries
    the upstream body when there is one.
    """

    def __init__(self, message: str, status_code: int = 502, details: Any = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.details = details


class InputValidationError(ValueError):
    """Raised client-side when user input is rejected before any network call."""


class UploadValidationError(InputValidationError):
    """Raised when an image file has the wrong type or size."""


class ApiError(RuntimeError):
    """Raised by the dashboard client when a proxy answers with an error."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


# ---------------------------------------------------------------------------
# Live chat
# ---------------------------------------------------------------------------


class LiveChatError(RuntimeError):
    """Base class for failures of one live chat send."""

    notice = "Failed to get response. Please try again."


class RateLimitedError(LiveChatError):
    notice = "Rate limit exceeded. Please try again in a moment."


class CreditsExhaustedError(LiveChatError):
    notice = "AI credits exhausted. Please add credits to continue."


class MissingStreamBodyError(LiveChatError):
    notice = "No response body received from the AI service."


class SessionBusyError(LiveChatError):
    notice = "Please wait for the current reply to finish."
