"""Errors surfaced by the completion service client."""

from __future__ import annotations

from typing import Any, Optional

_STATUS_MESSAGES = {
    429: "Too many requests. Please wait a moment and try again.",
    503: "Service temporarily unavailable. Please try again later.",
}


class CompletionServiceError(RuntimeError):
    def __init__(self, message: str, *, status: int = 0, body: Optional[Any] = None) -> None:
        super().__init__(message)
        self.status = status
        self.body = body

    @classmethod
    def from_status(cls, action: str, status: int, body: Any) -> "CompletionServiceError":
        message = _STATUS_MESSAGES.get(status)
        if message is None:
            detail = ""
            if isinstance(body, dict):
                detail = str(body.get("error") or body.get("message") or "")
            elif body:
                detail = str(body)
            message = f"{action} failed {status}: {detail}" if detail else f"{action} failed {status}"
        return cls(message, status=status, body=body)
