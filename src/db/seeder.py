"""
Seed Loader: insert the example documents from src/db/seed_data.py.

Development/testing only. Each collection is loaded independently with an
unordered insert_many, so one bad document (or a duplicate material_id on a
re-run) does not stop the rest of the batch or the following collections.
Duplicate-key rejections are expected and reported as counts.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from loguru import logger
from pymongo.database import Database
from pymongo.errors import BulkWriteError, PyMongoError

from src.db.schemas import COLLECTION_NAMES
from src.db.seed_data import build_seed_documents

DUPLICATE_KEY_ERROR = 11000


@dataclass
class SeedResult:
    """Outcome of loading one collection."""

    collection: str
    attempted: int = 0
    inserted: int = 0
    duplicates: int = 0
    errors: list[str] = field(default_factory=list)

    @property
    def failed(self) -> int:
        return self.attempted - self.inserted - self.duplicates

    @property
    def complete(self) -> bool:
        return self.inserted == self.attempted


@dataclass
class SeedReport:
    """Statistics from a seed run."""

    results: list[SeedResult] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        """True when nothing failed besides expected duplicate keys."""
        return all(result.failed == 0 for result in self.results)

    def get(self, collection: str) -> SeedResult | None:
        for result in self.results:
            if result.collection == collection:
                return result
        return None

    def summary(self) -> str:
        return " | ".join(
            f"{r.collection}: {r.inserted}/{r.attempted}"
            + (f" ({r.duplicates} duplicates)" if r.duplicates else "")
            for r in self.results
        )


class SeedLoader:
    """Inserts fixed example batches into the worker collections."""

    def __init__(self, db: Database, documents: dict[str, list[dict[str, Any]]] | None = None):
        self.db = db
        self.documents = documents if documents is not None else build_seed_documents()

    def clean(self) -> dict[str, int]:
        """Delete every document in the seeded collections."""
        deleted = {}
        for name in self.documents:
            result = self.db.get_collection(name).delete_many({})
            deleted[name] = result.deleted_count
            logger.info(f"Removed {result.deleted_count} documents from '{name}'")
        return deleted

    def load_collection(self, name: str, documents: list[dict[str, Any]]) -> SeedResult:
        """Insert one batch, recording errors instead of raising."""
        result = SeedResult(collection=name, attempted=len(documents))
        if not documents:
            return result

        # insert_many adds _id to the dicts it is given
        batch = [dict(doc) for doc in documents]
        try:
            inserted = self.db.get_collection(name).insert_many(batch, ordered=False)
            result.inserted = len(inserted.inserted_ids)
        except BulkWriteError as e:
            details = e.details or {}
            result.inserted = details.get("nInserted", 0)
            for error in details.get("writeErrors", []):
                if error.get("code") == DUPLICATE_KEY_ERROR:
                    result.duplicates += 1
                else:
                    result.errors.append(f"document {error.get('index')}: {error.get('errmsg')}")
        except PyMongoError as e:
            result.errors.append(str(e))

        if result.duplicates:
            logger.warning(f"'{name}': {result.duplicates} documents already present (duplicate key)")
        for error in result.errors:
            logger.error(f"'{name}': {error}")
        logger.info(f"Inserted {result.inserted}/{result.attempted} documents into '{name}'")
        return result

    def load(self) -> SeedReport:
        report = SeedReport()
        for name in COLLECTION_NAMES:
            if name in self.documents:
                report.results.append(self.load_collection(name, self.documents[name]))
        logger.info(f"Seed data loaded: {report.summary()}")
        return report
