"""
Document models for the worker collections.

Pydantic models mirroring the store validators in src/db/schemas.py, so
documents can be checked before they reach MongoDB. Cross-field rules the
validator cannot express (totals, single correct option) live in
src/domain/invariants.py.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Annotated, Any, Literal
from uuid import uuid4

from pydantic import BaseModel, Field

from src.db.schemas import UUID_PATTERN

Language = Literal["es", "en", "pt"]
AIModel = Literal["gpt-4", "gpt-3.5-turbo", "gpt-4-turbo", "gpt-4o"]
QuestionType = Literal["multiple_choice", "true_false", "open"]
Difficulty = Literal["easy", "medium", "hard"]
BloomLevel = Literal["remember", "understand", "apply", "analyze", "evaluate", "create"]
EventType = Literal[
    "material_uploaded",
    "material_reprocess",
    "material_deleted",
    "assessment_attempt",
    "student_enrolled",
]
EventStatusValue = Literal["pending", "processing", "completed", "failed"]

DIFFICULTY_WEIGHTS = {"easy": 1, "medium": 2, "hard": 3}


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_uuid() -> str:
    return str(uuid4())


def count_words(text: str) -> int:
    """Count whitespace-separated words."""
    return len(text.split()) if text else 0


class StoreDocument(BaseModel):
    """Base for models persisted as MongoDB documents."""

    def to_document(self) -> dict[str, Any]:
        """BSON-ready dict; unset optional fields are omitted rather than stored as null."""
        return self.model_dump(exclude_none=True)


# =============================================================================
# material_summary
# =============================================================================


class TokenUsage(BaseModel):
    prompt_tokens: int = Field(default=0, ge=0)
    completion_tokens: int = Field(default=0, ge=0)
    total_tokens: int = Field(default=0, ge=0)


class SummaryMetadata(BaseModel):
    source_length: int | None = Field(default=None, ge=0)
    has_images: bool | None = None


class MaterialSummary(StoreDocument):
    """AI summary of one material. Unique per material_id."""

    material_id: str = Field(..., pattern=UUID_PATTERN)
    summary: str = Field(..., min_length=10, max_length=5000)
    key_points: list[Annotated[str, Field(min_length=5, max_length=500)]] = Field(
        ..., min_length=1, max_length=10
    )
    language: Language
    word_count: int = Field(..., ge=1)
    version: int = Field(default=1, ge=1)
    ai_model: AIModel
    processing_time_ms: int = Field(default=0, ge=0)
    token_usage: TokenUsage | None = None
    metadata: SummaryMetadata | None = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @classmethod
    def create(
        cls,
        material_id: str,
        summary: str,
        key_points: list[str],
        language: str,
        ai_model: str,
        **kwargs: Any,
    ) -> MaterialSummary:
        """Build a version-1 summary with word_count derived from the text."""
        kwargs.setdefault("word_count", count_words(summary))
        return cls(
            material_id=material_id,
            summary=summary,
            key_points=key_points,
            language=language,
            ai_model=ai_model,
            **kwargs,
        )


# =============================================================================
# material_assessment
# =============================================================================


class QuestionOption(BaseModel):
    id: str
    text: str = Field(..., min_length=1, max_length=500)
    is_correct: bool = False
    order: int = Field(..., ge=1)


class Question(BaseModel):
    id: str = Field(default_factory=new_uuid, pattern=UUID_PATTERN)
    text: str = Field(..., min_length=10, max_length=1000)
    type: QuestionType
    difficulty: Difficulty
    points: int = Field(..., ge=1, le=100)
    options: Annotated[list[QuestionOption], Field(min_length=2, max_length=6)] | None = None
    correct_answer: str | None = None
    explanation: str = Field(..., min_length=10, max_length=1000)
    bloom_taxonomy_level: BloomLevel | None = None
    order: int = Field(..., ge=1)


class DifficultyDistribution(BaseModel):
    easy: int = Field(default=0, ge=0)
    medium: int = Field(default=0, ge=0)
    hard: int = Field(default=0, ge=0)

    @classmethod
    def from_questions(cls, questions: list[Question]) -> DifficultyDistribution:
        counts = {level: 0 for level in DIFFICULTY_WEIGHTS}
        for question in questions:
            counts[question.difficulty] += 1
        return cls(**counts)


class MaterialAssessment(StoreDocument):
    """AI quiz for one material. Unique per material_id."""

    material_id: str = Field(..., pattern=UUID_PATTERN)
    title: str = Field(..., min_length=3, max_length=200)
    description: str | None = Field(default=None, max_length=1000)
    questions: list[Question] = Field(..., min_length=1, max_length=50)
    total_questions: int = Field(..., ge=1, le=50)
    total_points: int = Field(..., ge=1)
    passing_score: int = Field(..., ge=0)
    time_limit_minutes: int | None = Field(default=None, ge=1)
    difficulty_distribution: DifficultyDistribution | None = None
    version: int = Field(default=1, ge=1)
    ai_model: AIModel
    processing_time_ms: int = Field(default=0, ge=0)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @classmethod
    def from_questions(
        cls,
        material_id: str,
        title: str,
        questions: list[Question],
        ai_model: str,
        passing_ratio: float = 0.6,
        **kwargs: Any,
    ) -> MaterialAssessment:
        """Build an assessment with totals and difficulty histogram derived from the questions."""
        total_points = sum(q.points for q in questions)
        kwargs.setdefault("passing_score", round(total_points * passing_ratio))
        kwargs.setdefault("difficulty_distribution", DifficultyDistribution.from_questions(questions))
        return cls(
            material_id=material_id,
            title=title,
            questions=questions,
            total_questions=len(questions),
            total_points=total_points,
            ai_model=ai_model,
            **kwargs,
        )

    def average_difficulty(self) -> str:
        """Overall difficulty: mean weight <= 1.5 is easy, <= 2.5 medium, else hard."""
        if not self.questions:
            return "medium"
        score = sum(DIFFICULTY_WEIGHTS[q.difficulty] for q in self.questions)
        avg = score / len(self.questions)
        if avg <= 1.5:
            return "easy"
        if avg <= 2.5:
            return "medium"
        return "hard"


# =============================================================================
# material_event
# =============================================================================


class MaterialEvent(StoreDocument):
    """Event log entry. Not unique per material; expires via the TTL index."""

    event_type: EventType
    event_id: str | None = None
    material_id: str | None = Field(default=None, pattern=UUID_PATTERN)
    user_id: str | None = Field(default=None, pattern=UUID_PATTERN)
    payload: dict[str, Any] = Field(default_factory=dict)
    status: EventStatusValue = "pending"
    error_message: str | None = Field(default=None, max_length=1000)
    error_stack: str | None = Field(default=None, max_length=5000)
    retry_count: int = Field(default=0, ge=0, le=10)
    processing_time_ms: int | None = Field(default=None, ge=0)
    processed_at: datetime | None = None
    created_at: datetime = Field(default_factory=utcnow)
