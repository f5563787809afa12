"""
Schema Initializer: declare the worker collections, validators and indexes.

Idempotency:
- Missing collections are created with a strict validator
- Existing collections get the validator re-applied in place via collMod (no drop)
- Indexes are matched by name; an existing name is skipped, never recreated

Failure policy:
- Every collection, validator and index fails on its own; the run continues
  with the next unrelated object and ends with a report of all failures
- A collection that could not be created gets no indexes, since
  create_index() would implicitly create it without a validator
- Re-running the initializer is the recovery path
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from loguru import logger
from pymongo.collection import Collection
from pymongo.database import Database
from pymongo.errors import CollectionInvalid, PyMongoError

from src.db.schemas import (
    COLLECTION_SPECS,
    VALIDATION_ACTION,
    VALIDATION_LEVEL,
    CollectionSpec,
    IndexSpec,
)


class CollectionAction(str, Enum):
    """What the initializer did to a collection."""

    CREATED = "created"
    UPDATED = "updated"
    CREATE_FAILED = "create_failed"
    UPDATE_FAILED = "update_failed"


@dataclass
class CollectionResult:
    """Outcome of applying one collection spec."""

    name: str
    action: CollectionAction | None = None
    indexes_created: list[str] = field(default_factory=list)
    indexes_skipped: list[str] = field(default_factory=list)
    indexes_failed: list[str] = field(default_factory=list)
    # Existing indexes whose keys, uniqueness or TTL differ from the declaration
    indexes_mismatched: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


@dataclass
class InitReport:
    """Statistics from an initializer run."""

    collections: list[CollectionResult] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return all(result.ok for result in self.collections)

    @property
    def errors(self) -> list[str]:
        return [error for result in self.collections for error in result.errors]

    def get(self, name: str) -> CollectionResult | None:
        for result in self.collections:
            if result.name == name:
                return result
        return None

    def summary(self) -> str:
        created = sum(len(r.indexes_created) for r in self.collections)
        skipped = sum(len(r.indexes_skipped) for r in self.collections)
        return (
            f"Collections: {len(self.collections)} | "
            f"Indexes created: {created} | "
            f"Indexes skipped: {skipped} | "
            f"Errors: {len(self.errors)}"
        )


class SchemaInitializer:
    """Applies collection specs to a database."""

    def __init__(self, db: Database, specs: list[CollectionSpec] | None = None):
        self.db = db
        self.specs = specs if specs is not None else COLLECTION_SPECS

    # ------------------------------------------------------------------
    # Collections
    # ------------------------------------------------------------------

    def collection_exists(self, name: str) -> bool:
        return name in self.db.list_collection_names(filter={"name": name})

    def create_collection(self, spec: CollectionSpec) -> None:
        self.db.create_collection(
            spec.name,
            validator=spec.validator,
            validationLevel=VALIDATION_LEVEL,
            validationAction=VALIDATION_ACTION,
        )

    def update_validator(self, spec: CollectionSpec) -> None:
        self.db.command(
            "collMod",
            spec.name,
            validator=spec.validator,
            validationLevel=VALIDATION_LEVEL,
            validationAction=VALIDATION_ACTION,
        )

    def ensure_collection(self, spec: CollectionSpec, exists: bool | None = None) -> CollectionAction:
        """
        Create the collection with its validator, or update the validator in place.

        Args:
            spec: Collection to apply
            exists: Result of a prior existence check, if the caller made one

        Raises:
            PyMongoError: creation or collMod failed
        """
        if exists is None:
            exists = self.collection_exists(spec.name)

        if exists:
            logger.info(f"Collection '{spec.name}' already exists, updating validator")
            self.update_validator(spec)
            return CollectionAction.UPDATED

        try:
            self.create_collection(spec)
        except CollectionInvalid:
            # Created by a concurrent run between the existence check and create
            logger.info(f"Collection '{spec.name}' appeared concurrently, updating validator")
            self.update_validator(spec)
            return CollectionAction.UPDATED

        logger.info(f"Collection '{spec.name}' created")
        return CollectionAction.CREATED

    # ------------------------------------------------------------------
    # Indexes
    # ------------------------------------------------------------------

    def ensure_index(
        self, collection: Collection, index: IndexSpec, result: CollectionResult | None = None
    ) -> bool:
        """
        Create the index unless one with the same name exists.

        An existing index that differs from the declaration is left in place,
        logged and recorded in result.indexes_mismatched.

        Returns:
            True if created, False if skipped

        Raises:
            PyMongoError: index creation failed
        """
        existing = collection.index_information()
        if index.name in existing:
            differences = index.differences(existing[index.name])
            if differences:
                if result is not None:
                    result.indexes_mismatched.append(index.name)
                logger.warning(
                    f"Index '{index.name}' on '{collection.name}' differs from its declaration "
                    f"({'; '.join(differences)}); drop it manually to apply the new definition"
                )
            logger.debug(f"Index '{index.name}' already exists on '{collection.name}', skipping")
            return False

        collection.create_index(index.keys, **index.create_options())
        logger.info(f"Index '{index.name}' created on '{collection.name}'")
        return True

    # ------------------------------------------------------------------
    # Orchestration
    # ------------------------------------------------------------------

    def apply_collection(self, spec: CollectionSpec) -> CollectionResult:
        """Apply one spec, recording failures instead of raising."""
        result = CollectionResult(name=spec.name)

        exists = False
        try:
            exists = self.collection_exists(spec.name)
            result.action = self.ensure_collection(spec, exists=exists)
        except PyMongoError as e:
            if exists:
                result.action = CollectionAction.UPDATE_FAILED
                result.errors.append(f"{spec.name}: validator update failed: {e}")
                logger.error(f"Error updating validator for '{spec.name}': {e}")
            else:
                result.action = CollectionAction.CREATE_FAILED
                result.errors.append(f"{spec.name}: collection creation failed: {e}")
                logger.error(f"Error creating '{spec.name}': {e}; skipping its indexes")
                return result

        collection = self.db.get_collection(spec.name)
        for index in spec.indexes:
            try:
                if self.ensure_index(collection, index, result):
                    result.indexes_created.append(index.name)
                else:
                    result.indexes_skipped.append(index.name)
            except PyMongoError as e:
                result.indexes_failed.append(index.name)
                result.errors.append(f"{spec.name}.{index.name}: index creation failed: {e}")
                logger.error(f"Error creating index '{index.name}' on '{spec.name}': {e}")

        return result

    def apply(self) -> InitReport:
        """Apply every spec in order."""
        report = InitReport()
        logger.info(f"Initializing {len(self.specs)} collections in database '{self.db.name}'")

        for spec in self.specs:
            report.collections.append(self.apply_collection(spec))

        if report.ok:
            logger.info(f"Schema initialization completed: {report.summary()}")
        else:
            logger.warning(f"Schema initialization finished with errors: {report.summary()}")
        return report
