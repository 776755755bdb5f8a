"""Typed client errors for GoPlaces."""

from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Stable machine-readable error codes."""

    INVALID_URL = "invalid_url"
    NETWORK_UNAVAILABLE = "network_unavailable"
    TIMEOUT = "timeout"
    TOO_MANY_REQUESTS = "too_many_requests"
    TASK_NOT_FOUND = "task_not_found"
    TASK_NOT_COMPLETE = "task_not_complete"
    PROCESSING_FAILED = "processing_failed"
    SERVER_ERROR = "server_error"
    DECODING_ERROR = "decoding_error"
    UNKNOWN_ERROR = "unknown_error"


DEFAULT_MESSAGES: dict[ErrorCode, str] = {
    ErrorCode.INVALID_URL: "Invalid URL provided",
    ErrorCode.NETWORK_UNAVAILABLE: "Network connection unavailable",
    ErrorCode.TIMEOUT: "Request timed out",
    ErrorCode.TOO_MANY_REQUESTS: "Too many concurrent processing requests",
    ErrorCode.TASK_NOT_FOUND: "Task not found",
    ErrorCode.TASK_NOT_COMPLETE: "Task is not complete yet",
    ErrorCode.PROCESSING_FAILED: "Processing failed",
    ErrorCode.SERVER_ERROR: "Internal server error",
    ErrorCode.DECODING_ERROR: "Failed to parse server response",
    ErrorCode.UNKNOWN_ERROR: "An unexpected error occurred",
}


class ClientError(Exception):
    """Single error type surfaced by the client core.

    Attributes:
        code: Stable error code from the taxonomy.
        message: Human-readable message suitable for display.
        details: Optional structured context (task id, server code, ...).
    """

    def __init__(
        self,
        code: ErrorCode,
        message: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.code = ErrorCode(code)
        self.message = message or DEFAULT_MESSAGES[self.code]
        self.details: dict[str, Any] = dict(details or {})
        super().__init__(self.message)

    def __repr__(self) -> str:
        return f"ClientError(code={self.code.value!r}, message={self.message!r})"

    def with_details(self, **details: Any) -> ClientError:
        """Attach context without changing the code or message.

        Existing keys win so that context added closer to the failure
        is never overwritten.
        """
        for key, value in details.items():
            self.details.setdefault(key, value)
        return self

    @classmethod
    def invalid_url(cls, message: str | None = None) -> ClientError:
        return cls(ErrorCode.INVALID_URL, message)

    @classmethod
    def network_unavailable(cls, message: str | None = None) -> ClientError:
        return cls(ErrorCode.NETWORK_UNAVAILABLE, message)

    @classmethod
    def timeout(cls, message: str | None = None, **details: Any) -> ClientError:
        return cls(ErrorCode.TIMEOUT, message, details)

    @classmethod
    def too_many_requests(cls, message: str | None = None) -> ClientError:
        return cls(ErrorCode.TOO_MANY_REQUESTS, message)

    @classmethod
    def task_not_found(cls, task_id: str | None = None) -> ClientError:
        return cls(ErrorCode.TASK_NOT_FOUND, details={"task_id": task_id} if task_id else None)

    @classmethod
    def task_not_complete(cls, task_id: str | None = None) -> ClientError:
        return cls(ErrorCode.TASK_NOT_COMPLETE, details={"task_id": task_id} if task_id else None)

    @classmethod
    def processing_failed(cls, stage_message: str, task_id: str | None = None) -> ClientError:
        details: dict[str, Any] = {"stage_message": stage_message}
        if task_id:
            details["task_id"] = task_id
        return cls(ErrorCode.PROCESSING_FAILED, f"Processing failed: {stage_message}", details)

    @classmethod
    def server_error(cls, message: str | None = None, **details: Any) -> ClientError:
        return cls(ErrorCode.SERVER_ERROR, message, details)

    @classmethod
    def decoding_error(cls, message: str | None = None, **details: Any) -> ClientError:
        return cls(ErrorCode.DECODING_ERROR, message, details)

    @classmethod
    def unknown_error(cls, message: str | None = None, **details: Any) -> ClientError:
        return cls(ErrorCode.UNKNOWN_ERROR, message, details)


def error_code_from_server(server_code: str | None) -> ErrorCode | None:
    """Map a server-supplied code such as ``TASK_NOT_FOUND`` onto the taxonomy.

    Returns None when the code names nothing in the taxonomy.
    """
    if not server_code:
        return None
    try:
        return ErrorCode(server_code.strip().lower())
    except ValueError:
        return None
