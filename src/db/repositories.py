"""
Repositories for the worker collections.

Summary and assessment records are keyed by material_id: save() is an
atomic upsert that inserts version 1 or bumps the version of the existing
record in place. Events are append-only; status changes go through
EventStateMachine and are written with the previous status as a guard.
"""

from __future__ import annotations

from typing import Any

from bson import ObjectId
from loguru import logger
from pymongo import ASCENDING, DESCENDING, ReturnDocument
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

from config import get_settings
from src.db.errors import DocumentNotFoundError, DuplicateMaterialError, InvalidDocumentError
from src.db.schemas import ASSESSMENT_COLLECTION, EVENT_COLLECTION, SUMMARY_COLLECTION
from src.domain.events import EventStateMachine, EventStatus
from src.domain.invariants import check_assessment, check_event, check_summary
from src.domain.models import MaterialAssessment, MaterialEvent, MaterialSummary, utcnow

# Maintained by save() itself, never copied from the record
MANAGED_FIELDS = ("version", "created_at", "updated_at")


class MaterialRecordRepository:
    """Shared upsert-by-material behaviour for summary and assessment records."""

    collection_name: str = ""

    def __init__(self, db: Database):
        self.collection = db.get_collection(self.collection_name)

    def _check(self, doc: dict[str, Any]) -> list[str]:
        return []

    def save(self, record: MaterialSummary | MaterialAssessment) -> dict[str, Any]:
        """
        Insert the record, or replace the stored one for the same material.

        Optional fields the record leaves unset are removed from the stored
        document, so nothing from the previous version survives.

        The stored version is incremented on every save after the first;
        created_at is kept from the original insert.

        Returns:
            The stored document after the write

        Raises:
            InvalidDocumentError: the record breaks an application invariant
        """
        doc = record.to_document()
        violations = self._check(doc)
        if violations:
            raise InvalidDocumentError(self.collection_name, violations)

        now = utcnow()
        fields = {k: v for k, v in doc.items() if k not in MANAGED_FIELDS}
        fields["updated_at"] = now
        update: dict[str, Any] = {
            "$set": fields,
            "$inc": {"version": 1},
            "$setOnInsert": {"created_at": now},
        }
        stale = [name for name in type(record).model_fields if name not in doc and name not in MANAGED_FIELDS]
        if stale:
            update["$unset"] = {name: "" for name in stale}

        try:
            stored = self.collection.find_one_and_update(
                {"material_id": record.material_id},
                update,
                upsert=True,
                return_document=ReturnDocument.AFTER,
            )
        except DuplicateKeyError:
            # Two concurrent upserts for a new material: one inserts, the other loses the race
            logger.warning(f"Concurrent insert for material {record.material_id} in '{self.collection_name}'")
            raise DuplicateMaterialError(self.collection_name, record.material_id) from None

        logger.debug(
            f"Saved '{self.collection_name}' record for {record.material_id} (version {stored.get('version')})"
        )
        return stored

    def insert(self, record: MaterialSummary | MaterialAssessment) -> ObjectId:
        """
        Insert a new record as given.

        Raises:
            DuplicateMaterialError: the material already has a record
            InvalidDocumentError: the record breaks an application invariant
        """
        doc = record.to_document()
        violations = self._check(doc)
        if violations:
            raise InvalidDocumentError(self.collection_name, violations)
        try:
            return self.collection.insert_one(doc).inserted_id
        except DuplicateKeyError:
            raise DuplicateMaterialError(self.collection_name, record.material_id) from None

    def find_by_material_id(self, material_id: str) -> dict[str, Any] | None:
        return self.collection.find_one({"material_id": material_id})

    def get_by_material_id(self, material_id: str) -> dict[str, Any]:
        doc = self.find_by_material_id(material_id)
        if doc is None:
            raise DocumentNotFoundError(self.collection_name, material_id)
        return doc

    def exists(self, material_id: str) -> bool:
        return self.collection.count_documents({"material_id": material_id}, limit=1) > 0

    def find_recent(self, limit: int = 10) -> list[dict[str, Any]]:
        return list(self.collection.find().sort("created_at", DESCENDING).limit(limit))

    def delete_by_material_id(self, material_id: str) -> None:
        result = self.collection.delete_one({"material_id": material_id})
        if result.deleted_count == 0:
            raise DocumentNotFoundError(self.collection_name, material_id)


class SummaryRepository(MaterialRecordRepository):
    collection_name = SUMMARY_COLLECTION

    def _check(self, doc: dict[str, Any]) -> list[str]:
        return check_summary(doc)

    def find_by_language(self, language: str, limit: int = 10) -> list[dict[str, Any]]:
        cursor = self.collection.find({"language": language}).sort("created_at", DESCENDING).limit(limit)
        return list(cursor)

    def count_by_language(self, language: str) -> int:
        return self.collection.count_documents({"language": language})


class AssessmentRepository(MaterialRecordRepository):
    collection_name = ASSESSMENT_COLLECTION

    def _check(self, doc: dict[str, Any]) -> list[str]:
        return check_assessment(doc)

    def find_by_difficulty(self, difficulty: str, limit: int = 10) -> list[dict[str, Any]]:
        cursor = (
            self.collection.find({"questions.difficulty": difficulty})
            .sort("created_at", DESCENDING)
            .limit(limit)
        )
        return list(cursor)


class EventRepository:
    """Event log access. Events are never upserted."""

    def __init__(self, db: Database, state_machine: EventStateMachine | None = None):
        self.collection = db.get_collection(EVENT_COLLECTION)
        self.state_machine = state_machine or EventStateMachine(get_settings().event_max_retries)

    @staticmethod
    def _to_event(doc: dict[str, Any]) -> MaterialEvent:
        return MaterialEvent.model_validate({k: v for k, v in doc.items() if k != "_id"})

    def create(self, event: MaterialEvent) -> ObjectId:
        doc = event.to_document()
        violations = check_event(doc)
        if violations:
            raise InvalidDocumentError(EVENT_COLLECTION, violations)
        return self.collection.insert_one(doc).inserted_id

    def find_by_id(self, event_id: ObjectId) -> dict[str, Any] | None:
        return self.collection.find_one({"_id": event_id})

    def get(self, event_id: ObjectId) -> MaterialEvent:
        doc = self.find_by_id(event_id)
        if doc is None:
            raise DocumentNotFoundError(EVENT_COLLECTION, event_id)
        return self._to_event(doc)

    def find_by_material_id(self, material_id: str, limit: int = 50) -> list[dict[str, Any]]:
        cursor = self.collection.find({"material_id": material_id}).sort("created_at", DESCENDING).limit(limit)
        return list(cursor)

    def find_by_status(self, status: str, limit: int = 50) -> list[dict[str, Any]]:
        cursor = self.collection.find({"status": status}).sort("created_at", DESCENDING).limit(limit)
        return list(cursor)

    def find_pending(self, limit: int = 50) -> list[dict[str, Any]]:
        """Oldest pending events first."""
        cursor = (
            self.collection.find({"status": EventStatus.PENDING.value})
            .sort("created_at", ASCENDING)
            .limit(limit)
        )
        return list(cursor)

    def find_retryable(self, limit: int = 50) -> list[dict[str, Any]]:
        query = {
            "status": EventStatus.FAILED.value,
            "retry_count": {"$lt": self.state_machine.max_retries},
        }
        return list(self.collection.find(query).sort("created_at", DESCENDING).limit(limit))

    def count_by_status(self) -> dict[str, int]:
        pipeline = [{"$group": {"_id": "$status", "count": {"$sum": 1}}}]
        return {row["_id"]: row["count"] for row in self.collection.aggregate(pipeline)}

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def _transition(self, event_id: ObjectId, change) -> MaterialEvent:
        event = self.get(event_id)
        previous = event.status
        changes = change(event)
        result = self.collection.update_one({"_id": event_id, "status": previous}, {"$set": changes})
        if result.matched_count == 0:
            # Status moved underneath us (another worker or the TTL sweep)
            raise DocumentNotFoundError(EVENT_COLLECTION, {"_id": event_id, "status": previous})
        logger.debug(f"Event {event_id}: {previous} -> {event.status}")
        return event

    def mark_processing(self, event_id: ObjectId) -> MaterialEvent:
        return self._transition(event_id, self.state_machine.mark_processing)

    def mark_completed(self, event_id: ObjectId, processing_time_ms: int | None = None) -> MaterialEvent:
        return self._transition(
            event_id,
            lambda event: self.state_machine.mark_completed(event, processing_time_ms=processing_time_ms),
        )

    def mark_failed(
        self,
        event_id: ObjectId,
        error_message: str,
        error_stack: str | None = None,
        processing_time_ms: int | None = None,
    ) -> MaterialEvent:
        return self._transition(
            event_id,
            lambda event: self.state_machine.mark_failed(
                event, error_message, error_stack, processing_time_ms=processing_time_ms
            ),
        )
