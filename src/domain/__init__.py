"""
Domain layer for the material worker documents.

Components:
- models: Pydantic models for summary, assessment and event documents
- invariants: cross-field rules the store validator cannot express
- events: event lifecycle state machine
"""

from .events import EventStateMachine, EventStatus
from .invariants import check_assessment, check_event, check_summary
from .models import (
    MaterialAssessment,
    MaterialEvent,
    MaterialSummary,
    Question,
    QuestionOption,
    count_words,
)

__all__ = [
    "EventStateMachine",
    "EventStatus",
    "MaterialAssessment",
    "MaterialEvent",
    "MaterialSummary",
    "Question",
    "QuestionOption",
    "check_assessment",
    "check_event",
    "check_summary",
    "count_words",
]
