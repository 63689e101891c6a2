"""Domain errors raised by the lifecycle services.

Each error carries a stable ``code`` and the HTTP status the API layer maps it
to, mirroring the ``{"code": ...}`` detail payloads used across the API.
"""

from __future__ import annotations

from typing import Any


class ContentLifecycleError(Exception):
    code = "content_lifecycle_error"
    status_code = 400

    def __init__(self, message: str, *, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_detail(self) -> dict[str, Any]:
        return {"code": self.code, "message": self.message, **self.details}


class ContentItemNotFound(ContentLifecycleError):
    code = "content_item_not_found"
    status_code = 404

    def __init__(self, item_id: int) -> None:
        super().__init__(f"Content item {item_id} not found", details={"item_id": item_id})
        self.item_id = item_id


class VersionNotFound(ContentLifecycleError):
    code = "version_not_found"
    status_code = 404

    def __init__(self, item_id: int, version_number: int) -> None:
        super().__init__(
            f"Version {version_number} of content item {item_id} not found",
            details={"item_id": item_id, "version_number": version_number},
        )


class InvalidStateTransition(ContentLifecycleError):
    code = "invalid_state_transition"
    status_code = 409


class RevisionConflict(ContentLifecycleError):
    code = "revision_conflict"
    status_code = 409

    def __init__(self, item_id: int, *, expected: int, actual: int | None) -> None:
        super().__init__(
            "The content item was modified by another session. Reload and retry.",
            details={"item_id": item_id, "expected_revision": expected, "actual_revision": actual},
        )


class InvalidScheduleTime(ContentLifecycleError):
    code = "invalid_schedule_time"
    status_code = 422
