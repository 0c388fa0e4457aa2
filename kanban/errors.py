from __future__ import annotations

from typing import Any, Optional


class KanbanError(Exception):
    """Base for errors that map onto an HTTP status and an ``{"error": ...}`` body."""

    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: Optional[str] = None, details: Optional[dict[str, Any]] = None) -> None:
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)

    def to_body(self) -> dict[str, Any]:
        body: dict[str, Any] = {"error": self.message}
        if self.details:
            body["details"] = self.details
        return body


class Unauthenticated(KanbanError):
    status_code = 401
    default_message = "Unauthorized"


class AccessDenied(KanbanError):
    status_code = 403
    default_message = "Access denied"


class ValidationFailed(KanbanError):
    status_code = 400
    default_message = "Invalid request"


class NotFound(KanbanError):
    status_code = 404
    default_message = "Not found"


class Conflict(KanbanError):
    status_code = 400
    default_message = "Conflict"


class Internal(KanbanError):
    pass
