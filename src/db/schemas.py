"""
MongoDB Schema Definitions for the Worker Collections.

Declares the $jsonSchema validators and the named index sets for:
- material_summary     (one AI summary per material)
- material_assessment  (one AI quiz per material)
- material_event       (append-only event log, 90-day TTL)

Validators are applied with validationLevel="strict" and
validationAction="error", so non-conforming writes are rejected.
Indexes are identified by name: renaming one requires dropping the old name.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

# =============================================================================
# Shared Constraints
# =============================================================================

UUID_PATTERN = "^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$"

LANGUAGES = ["es", "en", "pt"]
AI_MODELS = ["gpt-4", "gpt-3.5-turbo", "gpt-4-turbo", "gpt-4o"]
QUESTION_TYPES = ["multiple_choice", "true_false", "open"]
DIFFICULTIES = ["easy", "medium", "hard"]
BLOOM_LEVELS = ["remember", "understand", "apply", "analyze", "evaluate", "create"]
EVENT_TYPES = [
    "material_uploaded",
    "material_reprocess",
    "material_deleted",
    "assessment_attempt",
    "student_enrolled",
]
EVENT_STATUSES = ["pending", "processing", "completed", "failed"]

VALIDATION_LEVEL = "strict"
VALIDATION_ACTION = "error"

DEFAULT_EVENT_RETENTION_SECONDS = 90 * 24 * 60 * 60  # 7,776,000

SUMMARY_COLLECTION = "material_summary"
ASSESSMENT_COLLECTION = "material_assessment"
EVENT_COLLECTION = "material_event"


def _uuid(description: str, nullable: bool = False) -> dict[str, Any]:
    return {
        "bsonType": ["string", "null"] if nullable else "string",
        "pattern": UUID_PATTERN,
        "description": description,
    }


def _int(description: str, minimum: int | None = None, maximum: int | None = None) -> dict[str, Any]:
    prop: dict[str, Any] = {"bsonType": "int", "description": description}
    if minimum is not None:
        prop["minimum"] = minimum
    if maximum is not None:
        prop["maximum"] = maximum
    return prop


def _date(description: str, nullable: bool = False) -> dict[str, Any]:
    return {"bsonType": ["date", "null"] if nullable else "date", "description": description}


# =============================================================================
# material_summary
# =============================================================================

SUMMARY_SCHEMA = {
    "bsonType": "object",
    "required": [
        "material_id",
        "summary",
        "key_points",
        "language",
        "word_count",
        "version",
        "ai_model",
        "processing_time_ms",
        "created_at",
        "updated_at",
    ],
    "properties": {
        "material_id": _uuid("Material UUID issued by the relational store"),
        "summary": {
            "bsonType": "string",
            "minLength": 10,
            "maxLength": 5000,
            "description": "AI generated summary (10-5000 characters)",
        },
        "key_points": {
            "bsonType": "array",
            "minItems": 1,
            "maxItems": 10,
            "items": {"bsonType": "string", "minLength": 5, "maxLength": 500},
            "description": "Ordered key points (1-10 items)",
        },
        "language": {"enum": LANGUAGES, "description": "Summary language"},
        "word_count": _int("Words in the summary", minimum=1),
        "version": _int("Summary version, bumped on reprocessing", minimum=1),
        "ai_model": {"enum": AI_MODELS, "description": "Model that generated the summary"},
        "processing_time_ms": _int("Processing latency in milliseconds", minimum=0),
        "token_usage": {
            "bsonType": "object",
            "properties": {
                "prompt_tokens": _int("Prompt tokens", minimum=0),
                "completion_tokens": _int("Completion tokens", minimum=0),
                "total_tokens": _int("Total tokens", minimum=0),
            },
            "description": "Token usage breakdown (optional)",
        },
        "metadata": {
            "bsonType": "object",
            "properties": {
                "source_length": _int("Length of the source text", minimum=0),
                "has_images": {"bsonType": "bool", "description": "Source contains images"},
            },
            "description": "Processing metadata (optional)",
        },
        "created_at": _date("Creation timestamp"),
        "updated_at": _date("Last update timestamp"),
    },
    "additionalProperties": True,
}


# =============================================================================
# material_assessment
# =============================================================================

OPTION_SCHEMA = {
    "bsonType": "object",
    "required": ["id", "text", "is_correct", "order"],
    "properties": {
        "id": {"bsonType": "string", "description": "Option identifier"},
        "text": {"bsonType": "string", "minLength": 1, "maxLength": 500, "description": "Option text"},
        "is_correct": {"bsonType": "bool", "description": "Whether this option is the answer"},
        "order": _int("Display order", minimum=1),
    },
}

QUESTION_SCHEMA = {
    "bsonType": "object",
    "required": ["id", "text", "type", "difficulty", "points", "explanation", "order"],
    "properties": {
        "id": _uuid("Question UUID"),
        "text": {
            "bsonType": "string",
            "minLength": 10,
            "maxLength": 1000,
            "description": "Question text (10-1000 characters)",
        },
        "type": {"enum": QUESTION_TYPES, "description": "Question type"},
        "difficulty": {"enum": DIFFICULTIES, "description": "Difficulty level"},
        "points": _int("Points awarded (1-100)", minimum=1, maximum=100),
        "options": {
            "bsonType": "array",
            "minItems": 2,
            "maxItems": 6,
            "items": OPTION_SCHEMA,
            "description": "Options for multiple_choice questions",
        },
        "correct_answer": {"bsonType": "string", "description": "Answer for true_false questions"},
        "explanation": {
            "bsonType": "string",
            "minLength": 10,
            "maxLength": 1000,
            "description": "Why the answer is correct",
        },
        "bloom_taxonomy_level": {"enum": BLOOM_LEVELS, "description": "Bloom's taxonomy level (optional)"},
        "order": _int("Position in the quiz", minimum=1),
    },
}

ASSESSMENT_SCHEMA = {
    "bsonType": "object",
    "required": [
        "material_id",
        "title",
        "questions",
        "total_questions",
        "total_points",
        "passing_score",
        "version",
        "ai_model",
        "processing_time_ms",
        "created_at",
        "updated_at",
    ],
    "properties": {
        "material_id": _uuid("Material UUID issued by the relational store"),
        "title": {"bsonType": "string", "minLength": 3, "maxLength": 200, "description": "Quiz title"},
        "description": {"bsonType": "string", "maxLength": 1000, "description": "Quiz description (optional)"},
        "questions": {
            "bsonType": "array",
            "minItems": 1,
            "maxItems": 50,
            "items": QUESTION_SCHEMA,
            "description": "Ordered questions (1-50)",
        },
        "total_questions": _int("Number of questions", minimum=1, maximum=50),
        "total_points": _int("Sum of question points", minimum=1),
        "passing_score": _int("Minimum score to pass", minimum=0),
        "time_limit_minutes": {
            "bsonType": ["int", "null"],
            "minimum": 1,
            "description": "Time limit in minutes (null = unlimited)",
        },
        "difficulty_distribution": {
            "bsonType": "object",
            "properties": {level: _int(f"Number of {level} questions", minimum=0) for level in DIFFICULTIES},
            "description": "Difficulty histogram (optional)",
        },
        "version": _int("Assessment version", minimum=1),
        "ai_model": {"enum": AI_MODELS, "description": "Model that generated the quiz"},
        "processing_time_ms": _int("Processing latency in milliseconds", minimum=0),
        "created_at": _date("Creation timestamp"),
        "updated_at": _date("Last update timestamp"),
    },
    "additionalProperties": True,
}


# =============================================================================
# material_event
# =============================================================================

EVENT_SCHEMA = {
    "bsonType": "object",
    "required": ["event_type", "payload", "status", "created_at"],
    "properties": {
        "event_type": {"enum": EVENT_TYPES, "description": "Processed event type"},
        "event_id": {"bsonType": "string", "description": "Upstream event identifier (optional)"},
        "material_id": _uuid("Material UUID (null for events without a material)", nullable=True),
        "user_id": _uuid("User UUID (nullable)", nullable=True),
        # Payload shape varies by event_type and is left to the producer/consumer
        "payload": {"bsonType": "object", "description": "Original event body"},
        "status": {"enum": EVENT_STATUSES, "description": "Processing status"},
        "error_message": {"bsonType": "string", "maxLength": 1000, "description": "Error when failed"},
        "error_stack": {"bsonType": "string", "maxLength": 5000, "description": "Stack trace when failed"},
        "retry_count": _int("Retries performed", minimum=0, maximum=10),
        "processing_time_ms": _int("Processing latency in milliseconds", minimum=0),
        "processed_at": _date("Completion timestamp", nullable=True),
        "created_at": _date("Receipt timestamp (drives the TTL index)"),
    },
    "additionalProperties": True,
}


# =============================================================================
# Collection Specs
# =============================================================================


def normalize_keys(keys: Any) -> list[tuple[str, Any]]:
    """Index key list with numeric directions as int; "text", "2dsphere", "hashed" kept as-is."""
    # Servers may report numeric directions as floats (1.0) depending on the creator
    return [
        (name, int(direction) if isinstance(direction, (int, float)) else direction)
        for name, direction in keys
    ]


@dataclass(frozen=True)
class IndexSpec:
    """A named index declaration."""

    name: str
    keys: list[tuple[str, int]]
    unique: bool = False
    expire_after_seconds: int | None = None

    def create_options(self) -> dict[str, Any]:
        """Keyword options for Collection.create_index()."""
        options: dict[str, Any] = {"name": self.name}
        if self.unique:
            options["unique"] = True
        if self.expire_after_seconds is not None:
            options["expireAfterSeconds"] = self.expire_after_seconds
        return options

    @property
    def is_ttl(self) -> bool:
        return self.expire_after_seconds is not None

    def differences(self, info: dict[str, Any]) -> list[str]:
        """
        Compare an existing index against this declaration.

        Args:
            info: One entry of Collection.index_information()

        Returns:
            Human-readable differences in keys, uniqueness or TTL (empty when equal)
        """
        diffs = []
        keys = normalize_keys(info.get("key", []))
        if keys != self.keys:
            diffs.append(f"keys {keys}, declared {self.keys}")

        unique = bool(info.get("unique", False))
        if unique != self.unique:
            diffs.append(f"unique={unique}, declared unique={self.unique}")

        expire = info.get("expireAfterSeconds")
        if expire is not None:
            expire = int(expire)
        if expire != self.expire_after_seconds:
            diffs.append(f"expireAfterSeconds={expire}, declared {self.expire_after_seconds}")

        return diffs


@dataclass(frozen=True)
class CollectionSpec:
    """A collection with its validator and declared indexes."""

    name: str
    schema: dict[str, Any]
    indexes: list[IndexSpec] = field(default_factory=list)

    @property
    def validator(self) -> dict[str, Any]:
        return {"$jsonSchema": self.schema}

    def index_names(self) -> list[str]:
        return [idx.name for idx in self.indexes]


def build_collection_specs(
    event_retention_seconds: int = DEFAULT_EVENT_RETENTION_SECONDS,
) -> list[CollectionSpec]:
    """
    Build the collection specs in application order.

    Args:
        event_retention_seconds: TTL for material_event documents

    Returns:
        Specs for material_summary, material_assessment, material_event
    """
    return [
        CollectionSpec(
            name=SUMMARY_COLLECTION,
            schema=SUMMARY_SCHEMA,
            indexes=[
                IndexSpec("idx_material_id", [("material_id", 1)], unique=True),
                IndexSpec("idx_created_at", [("created_at", -1)]),
                IndexSpec("idx_version", [("version", 1)]),
                IndexSpec("idx_language_created", [("language", 1), ("created_at", -1)]),
            ],
        ),
        CollectionSpec(
            name=ASSESSMENT_COLLECTION,
            schema=ASSESSMENT_SCHEMA,
            indexes=[
                IndexSpec("idx_material_id", [("material_id", 1)], unique=True),
                IndexSpec("idx_created_at", [("created_at", -1)]),
                IndexSpec("idx_version", [("version", 1)]),
                IndexSpec("idx_questions_difficulty", [("questions.difficulty", 1)]),
                IndexSpec("idx_total_questions_created", [("total_questions", 1), ("created_at", -1)]),
            ],
        ),
        CollectionSpec(
            name=EVENT_COLLECTION,
            schema=EVENT_SCHEMA,
            indexes=[
                IndexSpec("idx_event_type", [("event_type", 1)]),
                IndexSpec("idx_material_id", [("material_id", 1)]),
                IndexSpec("idx_status", [("status", 1)]),
                IndexSpec("idx_created_at", [("created_at", -1)]),
                IndexSpec("idx_processed_at", [("processed_at", -1)]),
                IndexSpec("idx_status_created", [("status", 1), ("created_at", -1)]),
                IndexSpec(
                    "idx_ttl_created_at",
                    [("created_at", 1)],
                    expire_after_seconds=event_retention_seconds,
                ),
            ],
        ),
    ]


COLLECTION_SPECS = build_collection_specs()

COLLECTION_NAMES = [spec.name for spec in COLLECTION_SPECS]


def get_collection_spec(name: str) -> CollectionSpec:
    """Look up a default collection spec by name."""
    for spec in COLLECTION_SPECS:
        if spec.name == name:
            return spec
    raise KeyError(f"Unknown collection: {name}")
