"""
Unit tests for the event lifecycle state machine.
"""

from datetime import datetime, timezone

import pytest

from src.db.errors import InvalidTransitionError
from src.domain.events import TRANSITIONS, EventStateMachine, EventStatus
from src.domain.models import MaterialEvent


@pytest.fixture
def machine():
    return EventStateMachine(max_retries=3)


@pytest.fixture
def event():
    return MaterialEvent(
        event_type="material_uploaded",
        material_id="550e8400-e29b-41d4-a716-446655440000",
        payload={"s3_key": "materials/intro.pdf"},
    )


class TestTransitions:
    """Allowed and rejected status moves."""

    @pytest.mark.parametrize(
        "current,target",
        [
            ("pending", "processing"),
            ("pending", "failed"),
            ("processing", "completed"),
            ("processing", "failed"),
            ("failed", "processing"),
        ],
    )
    def test_allowed(self, machine, current, target):
        assert machine.can_transition(current, target)

    @pytest.mark.parametrize(
        "current,target",
        [
            ("pending", "completed"),
            ("completed", "processing"),
            ("completed", "failed"),
            ("failed", "completed"),
            ("processing", "pending"),
        ],
    )
    def test_rejected(self, machine, current, target):
        assert not machine.can_transition(current, target)
        with pytest.raises(InvalidTransitionError):
            machine.check_transition(current, target)

    def test_completed_is_terminal(self):
        assert TRANSITIONS[EventStatus.COMPLETED] == set()


class TestLifecycle:
    def test_happy_path(self, machine, event):
        processed = datetime(2025, 11, 18, 12, 0, tzinfo=timezone.utc)

        assert machine.mark_processing(event) == {"status": "processing"}
        changes = machine.mark_completed(event, processing_time_ms=5840, now=processed)

        assert changes == {"status": "completed", "processed_at": processed, "processing_time_ms": 5840}
        assert event.status == "completed"
        assert event.processed_at == processed

    def test_failure_records_error(self, machine, event):
        machine.mark_processing(event)

        changes = machine.mark_failed(event, "failed to extract PDF text", "Traceback ...")

        assert changes["status"] == "failed"
        assert event.error_message == "failed to extract PDF text"
        assert event.error_stack == "Traceback ..."
        assert event.processed_at is not None

    def test_error_fields_truncated_to_validator_limits(self, machine, event):
        machine.mark_failed(event, "x" * 2000, "y" * 6000)

        assert len(event.error_message) == 1000
        assert len(event.error_stack) == 5000

    def test_completed_cannot_fail(self, machine, event):
        machine.mark_processing(event)
        machine.mark_completed(event)

        with pytest.raises(InvalidTransitionError):
            machine.mark_failed(event, "late error")
        assert event.status == "completed"


class TestRetry:
    def test_retry_increments_count(self, machine, event):
        machine.mark_failed(event, "timeout")

        changes = machine.mark_processing(event)

        assert changes == {"status": "processing", "retry_count": 1, "processed_at": None}
        assert event.retry_count == 1
        assert event.processed_at is None

    def test_retry_exhausted(self, machine, event):
        event.status = "failed"
        event.error_message = "timeout"
        event.retry_count = 3

        assert not machine.can_retry(event)
        with pytest.raises(InvalidTransitionError):
            machine.retry(event)

    def test_retry_only_from_failed(self, machine, event):
        assert not machine.can_retry(event)
        with pytest.raises(InvalidTransitionError):
            machine.retry(event)

    def test_zero_retries(self, event):
        machine = EventStateMachine(max_retries=0)
        machine.mark_failed(event, "boom")

        assert not machine.can_retry(event)
