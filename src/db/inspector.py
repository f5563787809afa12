"""
Inspector - report what the database actually holds.

- ping():        connection health check
- describe():    document counts and index listings per collection
- check_drift(): declared indexes missing, undeclared or defined differently in the database
- verify():      application-level invariants over stored documents
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from loguru import logger
from pymongo import MongoClient
from pymongo.database import Database
from pymongo.errors import PyMongoError

from src.db.schemas import (
    ASSESSMENT_COLLECTION,
    COLLECTION_SPECS,
    EVENT_COLLECTION,
    SUMMARY_COLLECTION,
    CollectionSpec,
    normalize_keys,
)
from src.domain.invariants import check_assessment, check_event, check_summary

# The implicit _id index is never declared
IMPLICIT_INDEXES = {"_id_"}

CHECKS: dict[str, Callable[[dict[str, Any]], list[str]]] = {
    SUMMARY_COLLECTION: check_summary,
    ASSESSMENT_COLLECTION: check_assessment,
    EVENT_COLLECTION: check_event,
}


@dataclass
class IndexInfo:
    name: str
    keys: list[tuple[str, Any]]
    unique: bool = False
    expire_after_seconds: int | None = None

    def as_index_information(self) -> dict[str, Any]:
        """The shape Collection.index_information() reports for this index."""
        info: dict[str, Any] = {"key": self.keys, "unique": self.unique}
        if self.expire_after_seconds is not None:
            info["expireAfterSeconds"] = self.expire_after_seconds
        return info

    def describe_keys(self) -> str:
        return ", ".join(f"{name}: {direction}" for name, direction in self.keys)


@dataclass
class CollectionState:
    name: str
    exists: bool
    document_count: int = 0
    indexes: list[IndexInfo] = field(default_factory=list)
    validation_level: str | None = None
    validation_action: str | None = None

    def index_names(self) -> set[str]:
        return {idx.name for idx in self.indexes}


@dataclass
class DriftReport:
    collection: str
    missing: list[str] = field(default_factory=list)
    undeclared: list[str] = field(default_factory=list)
    # "name: difference" for declared indexes present with other keys, uniqueness or TTL
    mismatched: list[str] = field(default_factory=list)
    collection_missing: bool = False

    @property
    def clean(self) -> bool:
        return not (self.missing or self.undeclared or self.mismatched or self.collection_missing)


@dataclass
class Violation:
    collection: str
    document_id: Any
    message: str


def ping(client: MongoClient) -> bool:
    """Return True if the server answers a ping."""
    try:
        client.admin.command("ping")
        return True
    except PyMongoError as e:
        logger.error(f"MongoDB ping failed: {e}")
        return False


def _index_info(name: str, info: dict[str, Any]) -> IndexInfo:
    return IndexInfo(
        name=name,
        keys=normalize_keys(info.get("key", [])),
        unique=bool(info.get("unique", False)),
        expire_after_seconds=info.get("expireAfterSeconds"),
    )


def describe_collection(db: Database, name: str) -> CollectionState:
    infos = list(db.list_collections(filter={"name": name}))
    if not infos:
        return CollectionState(name=name, exists=False)

    options = infos[0].get("options", {})
    collection = db.get_collection(name)
    indexes = [_index_info(idx_name, info) for idx_name, info in collection.index_information().items()]
    return CollectionState(
        name=name,
        exists=True,
        document_count=collection.count_documents({}),
        indexes=sorted(indexes, key=lambda idx: idx.name),
        validation_level=options.get("validationLevel"),
        validation_action=options.get("validationAction"),
    )


def describe(db: Database, specs: list[CollectionSpec] | None = None) -> list[CollectionState]:
    """Describe each declared collection."""
    return [describe_collection(db, spec.name) for spec in specs or COLLECTION_SPECS]


def check_drift(db: Database, specs: list[CollectionSpec] | None = None) -> list[DriftReport]:
    """Compare declared indexes with those present in the database, by name and definition."""
    reports = []
    for spec in specs or COLLECTION_SPECS:
        state = describe_collection(db, spec.name)
        report = DriftReport(collection=spec.name)
        if not state.exists:
            report.collection_missing = True
            report.missing = spec.index_names()
        else:
            present = state.index_names() - IMPLICIT_INDEXES
            declared = set(spec.index_names())
            report.missing = sorted(declared - present)
            report.undeclared = sorted(present - declared)
            existing = {idx.name: idx for idx in state.indexes}
            for index in spec.indexes:
                if index.name in existing:
                    for difference in index.differences(existing[index.name].as_index_information()):
                        report.mismatched.append(f"{index.name}: {difference}")
        reports.append(report)
    return reports


def verify(db: Database, limit: int | None = None) -> list[Violation]:
    """Run the invariant checks over stored documents."""
    violations = []
    for name, check in CHECKS.items():
        cursor = db.get_collection(name).find()
        if limit:
            cursor = cursor.limit(limit)
        for doc in cursor:
            for message in check(doc):
                violations.append(Violation(collection=name, document_id=doc.get("_id"), message=message))
    if violations:
        logger.warning(f"Found {len(violations)} invariant violations")
    return violations
