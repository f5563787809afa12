"""
Event lifecycle state machine.

    pending ──► processing ──► completed
       │            │
       └────────────┴──► failed ──► processing (retry, while retry_count < max_retries)

Each transition mutates the event and returns the changed fields, so a
repository can persist them with a single $set guarded by the previous status.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any

from src.db.errors import InvalidTransitionError
from src.domain.models import MaterialEvent, utcnow

MAX_ERROR_MESSAGE_LENGTH = 1000
MAX_ERROR_STACK_LENGTH = 5000


class EventStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


TRANSITIONS: dict[EventStatus, set[EventStatus]] = {
    EventStatus.PENDING: {EventStatus.PROCESSING, EventStatus.FAILED},
    EventStatus.PROCESSING: {EventStatus.COMPLETED, EventStatus.FAILED},
    EventStatus.FAILED: {EventStatus.PROCESSING},
    EventStatus.COMPLETED: set(),
}


class EventStateMachine:
    """Validates and applies status transitions on MaterialEvent."""

    def __init__(self, max_retries: int = 3):
        self.max_retries = max_retries

    def can_transition(self, current: str, target: str) -> bool:
        return EventStatus(target) in TRANSITIONS[EventStatus(current)]

    def check_transition(self, current: str, target: str) -> None:
        if not self.can_transition(current, target):
            raise InvalidTransitionError(current, target)

    def _apply(self, event: MaterialEvent, target: EventStatus, changes: dict[str, Any]) -> dict[str, Any]:
        self.check_transition(event.status, target.value)
        changes = {"status": target.value, **changes}
        for name, value in changes.items():
            setattr(event, name, value)
        return changes

    def mark_processing(self, event: MaterialEvent) -> dict[str, Any]:
        if event.status == EventStatus.FAILED.value:
            return self.retry(event)
        return self._apply(event, EventStatus.PROCESSING, {})

    def mark_completed(
        self,
        event: MaterialEvent,
        processing_time_ms: int | None = None,
        now: datetime | None = None,
    ) -> dict[str, Any]:
        changes: dict[str, Any] = {"processed_at": now or utcnow()}
        if processing_time_ms is not None:
            changes["processing_time_ms"] = processing_time_ms
        return self._apply(event, EventStatus.COMPLETED, changes)

    def mark_failed(
        self,
        event: MaterialEvent,
        error_message: str,
        error_stack: str | None = None,
        processing_time_ms: int | None = None,
        now: datetime | None = None,
    ) -> dict[str, Any]:
        changes: dict[str, Any] = {
            "error_message": error_message[:MAX_ERROR_MESSAGE_LENGTH],
            "processed_at": now or utcnow(),
        }
        if error_stack:
            changes["error_stack"] = error_stack[:MAX_ERROR_STACK_LENGTH]
        if processing_time_ms is not None:
            changes["processing_time_ms"] = processing_time_ms
        return self._apply(event, EventStatus.FAILED, changes)

    def can_retry(self, event: MaterialEvent) -> bool:
        return event.status == EventStatus.FAILED.value and event.retry_count < self.max_retries

    def retry(self, event: MaterialEvent) -> dict[str, Any]:
        """Move a failed event back to processing and count the attempt."""
        if not self.can_retry(event):
            raise InvalidTransitionError(event.status, EventStatus.PROCESSING.value)
        return self._apply(
            event,
            EventStatus.PROCESSING,
            {"retry_count": event.retry_count + 1, "processed_at": None},
        )
