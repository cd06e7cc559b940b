from __future__ import annotations

from typing import Any, Dict, List, Optional


class AuthMonitorError(Exception):
    """Base error for the webhook pipeline.

    Every subclass maps to exactly one HTTP status and a stable `error` string.
    """

    status_code: int = 500
    error: str = "Internal server error"

    def __init__(self, message: Optional[str] = None) -> None:
        super().__init__(message or self.error)
        if message:
            self.error = message

    def to_body(self) -> Dict[str, Any]:
        return {"error": self.error}


class ValidationError(AuthMonitorError):
    status_code = 400
    error = "Invalid request"

    def __init__(self, message: Optional[str] = None, details: Optional[List[Dict[str, Any]]] = None) -> None:
        super().__init__(message)
        self.details: List[Dict[str, Any]] = details or []

    @property
    def fields(self) -> List[str]:
        return [d["field"] for d in self.details]

    def to_body(self) -> Dict[str, Any]:
        body = super().to_body()
        if self.details:
            body["details"] = self.details
        return body


class RateLimitError(AuthMonitorError):
    status_code = 429
    error = "Too many requests"

    def __init__(self, retry_after: int = 0) -> None:
        super().__init__()
        self.retry_after = retry_after


class ConfigurationError(AuthMonitorError):
    status_code = 500
    error = "Service misconfigured"

    def to_body(self) -> Dict[str, Any]:
        return {"error": self.error, "setup_required": True}


class PersistenceError(AuthMonitorError):
    status_code = 500
    error = "Failed to persist event"


class UnknownEventTypeError(AuthMonitorError):
    status_code = 400
    error = "Unknown event type"

    def __init__(self, event_type: str) -> None:
        super().__init__(f"Unknown event type: {event_type}")
        self.event_type = event_type


class DispatchError(AuthMonitorError):
    status_code = 500
    error = "Failed to dispatch alert"

    def __init__(self, message: Optional[str] = None, status: Optional[int] = None) -> None:
        super().__init__()
        # keep the stable public string; the cause goes to the logs
        self.reason = message
        self.status = status
