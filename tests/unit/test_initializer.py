"""
Unit tests for SchemaInitializer.

Covers create vs update, index skipping by name, idempotent re-runs and the
per-object failure policy.
"""

import pytest
from pymongo.errors import CollectionInvalid, OperationFailure

from src.db.initializer import CollectionAction, CollectionResult, SchemaInitializer
from src.db.schemas import (
    ASSESSMENT_COLLECTION,
    COLLECTION_SPECS,
    EVENT_COLLECTION,
    SUMMARY_COLLECTION,
    VALIDATION_ACTION,
    VALIDATION_LEVEL,
    IndexSpec,
    build_collection_specs,
    get_collection_spec,
)


# ============================================================================
# In-memory fake
# ============================================================================


class FakeCollection:
    def __init__(self, name):
        self.name = name
        self.indexes = {"_id_": {"key": [("_id", 1)]}}

    def index_information(self):
        return dict(self.indexes)

    def create_index(self, keys, name, **options):
        info = {"key": list(keys)}
        info.update(options)
        self.indexes[name] = info
        return name


class FakeDatabase:
    """Tracks collections, validators and indexes like a server would."""

    def __init__(self):
        self.name = "fake_db"
        self.collections = {}
        self.validators = {}
        self.collmod_calls = []

    def list_collection_names(self, filter=None):
        names = list(self.collections)
        if filter:
            names = [n for n in names if n == filter["name"]]
        return names

    def create_collection(self, name, validator=None, **options):
        if name in self.collections:
            raise CollectionInvalid(f"collection {name} already exists")
        self.collections[name] = FakeCollection(name)
        self.validators[name] = (validator, options)

    def command(self, cmd, name, validator=None, **options):
        assert cmd == "collMod"
        self.collmod_calls.append(name)
        self.validators[name] = (validator, options)

    def get_collection(self, name):
        # Mirrors MongoDB: touching a missing collection through create_index creates it
        return self.collections.setdefault(name, FakeCollection(name))


@pytest.fixture
def fake_db():
    return FakeDatabase()


# ============================================================================
# Fresh database
# ============================================================================


class TestFreshDatabase:
    """Applying the specs to an empty database."""

    def test_creates_every_collection(self, fake_db):
        report = SchemaInitializer(fake_db).apply()

        assert report.ok
        assert [r.name for r in report.collections] == [
            SUMMARY_COLLECTION,
            ASSESSMENT_COLLECTION,
            EVENT_COLLECTION,
        ]
        assert all(r.action == CollectionAction.CREATED for r in report.collections)

    def test_validator_applied_strict(self, fake_db):
        SchemaInitializer(fake_db).apply()

        for spec in COLLECTION_SPECS:
            validator, options = fake_db.validators[spec.name]
            assert validator == {"$jsonSchema": spec.schema}
            assert options == {"validationLevel": VALIDATION_LEVEL, "validationAction": VALIDATION_ACTION}
            assert options["validationLevel"] == "strict"
            assert options["validationAction"] == "error"

    def test_creates_every_index(self, fake_db):
        report = SchemaInitializer(fake_db).apply()

        for spec in COLLECTION_SPECS:
            result = report.get(spec.name)
            assert result.indexes_created == spec.index_names()
            assert set(fake_db.collections[spec.name].indexes) == {"_id_", *spec.index_names()}

    def test_ttl_and_unique_options_passed(self, fake_db):
        SchemaInitializer(fake_db).apply()

        events = fake_db.collections[EVENT_COLLECTION].indexes
        summaries = fake_db.collections[SUMMARY_COLLECTION].indexes
        assert events["idx_ttl_created_at"]["expireAfterSeconds"] == 7_776_000
        assert summaries["idx_material_id"]["unique"] is True
        assert "unique" not in events["idx_material_id"]


# ============================================================================
# Idempotence
# ============================================================================


class TestIdempotence:
    """Running the initializer again converges to the same state."""

    def test_second_run_updates_and_skips(self, fake_db):
        SchemaInitializer(fake_db).apply()
        before = {name: col.index_information() for name, col in fake_db.collections.items()}

        report = SchemaInitializer(fake_db).apply()

        assert report.ok
        assert all(r.action == CollectionAction.UPDATED for r in report.collections)
        assert all(not r.indexes_created for r in report.collections)
        assert fake_db.collmod_calls == [SUMMARY_COLLECTION, ASSESSMENT_COLLECTION, EVENT_COLLECTION]
        after = {name: col.index_information() for name, col in fake_db.collections.items()}
        assert after == before

    def test_existing_collection_not_dropped(self, fake_db):
        fake_db.create_collection(SUMMARY_COLLECTION)
        fake_db.collections[SUMMARY_COLLECTION].indexes["legacy_idx"] = {"key": [("title", 1)]}

        report = SchemaInitializer(fake_db).apply()

        assert report.get(SUMMARY_COLLECTION).action == CollectionAction.UPDATED
        assert "legacy_idx" in fake_db.collections[SUMMARY_COLLECTION].indexes

    def test_existing_index_with_other_keys_is_skipped(self, fake_db):
        fake_db.create_collection(EVENT_COLLECTION)
        fake_db.collections[EVENT_COLLECTION].indexes["idx_status"] = {"key": [("status", -1)]}

        report = SchemaInitializer(fake_db).apply()

        result = report.get(EVENT_COLLECTION)
        assert "idx_status" in result.indexes_skipped
        assert fake_db.collections[EVENT_COLLECTION].indexes["idx_status"]["key"] == [("status", -1)]
        assert result.indexes_mismatched == ["idx_status"]

    def test_changed_retention_recorded_not_applied(self, fake_db):
        SchemaInitializer(fake_db).apply()

        specs = build_collection_specs(event_retention_seconds=30 * 86400)
        report = SchemaInitializer(fake_db, specs).apply()

        result = report.get(EVENT_COLLECTION)
        assert result.indexes_mismatched == ["idx_ttl_created_at"]
        assert report.ok
        ttl = fake_db.collections[EVENT_COLLECTION].indexes["idx_ttl_created_at"]
        assert ttl["expireAfterSeconds"] == 7_776_000

    def test_unchanged_indexes_not_mismatched(self, fake_db):
        SchemaInitializer(fake_db).apply()

        report = SchemaInitializer(fake_db).apply()

        assert all(not r.indexes_mismatched for r in report.collections)

    def test_concurrent_create_falls_back_to_update(self, fake_db):
        initializer = SchemaInitializer(fake_db)
        spec = get_collection_spec(SUMMARY_COLLECTION)
        fake_db.create_collection(spec.name)

        # Existence check said "missing" but the collection was created meanwhile
        assert initializer.ensure_collection(spec, exists=False) == CollectionAction.UPDATED
        assert fake_db.collmod_calls == [spec.name]


# ============================================================================
# Failure policy
# ============================================================================


class TestFailurePolicy:
    """Each collection, validator and index fails independently."""

    def test_create_failure_skips_that_collections_indexes(self, fake_db):
        original = fake_db.create_collection

        def create_collection(name, **kwargs):
            if name == ASSESSMENT_COLLECTION:
                raise OperationFailure("not authorized", code=13)
            return original(name, **kwargs)

        fake_db.create_collection = create_collection

        report = SchemaInitializer(fake_db).apply()

        assert not report.ok
        result = report.get(ASSESSMENT_COLLECTION)
        assert result.action == CollectionAction.CREATE_FAILED
        assert not result.indexes_created
        assert ASSESSMENT_COLLECTION not in fake_db.collections
        assert report.get(SUMMARY_COLLECTION).ok
        assert report.get(EVENT_COLLECTION).ok
        assert "collection creation failed" in report.errors[0]

    def test_validator_update_failure_still_ensures_indexes(self, fake_db):
        fake_db.create_collection(EVENT_COLLECTION)

        def command(cmd, name, **kwargs):
            raise OperationFailure("collMod failed", code=2)

        fake_db.command = command

        report = SchemaInitializer(fake_db).apply()

        result = report.get(EVENT_COLLECTION)
        assert result.action == CollectionAction.UPDATE_FAILED
        assert result.indexes_created == get_collection_spec(EVENT_COLLECTION).index_names()
        assert len(report.errors) == 1

    def test_index_failure_continues_with_next_index(self, fake_db):
        SchemaInitializer(fake_db).apply()
        events = fake_db.collections[EVENT_COLLECTION]
        del events.indexes["idx_status"]
        del events.indexes["idx_ttl_created_at"]
        original = events.create_index

        def create_index(keys, name, **options):
            if name == "idx_status":
                raise OperationFailure("Index build failed", code=67)
            return original(keys, name, **options)

        events.create_index = create_index

        report = SchemaInitializer(fake_db).apply()

        result = report.get(EVENT_COLLECTION)
        assert result.indexes_failed == ["idx_status"]
        assert result.indexes_created == ["idx_ttl_created_at"]
        assert not report.ok
        assert report.get(SUMMARY_COLLECTION).ok


class TestEnsureIndex:
    """ensure_index() on a mocked collection."""

    def test_returns_true_when_created(self, mock_db):
        collection = mock_db.get_collection(SUMMARY_COLLECTION)
        index = IndexSpec("idx_version", [("version", 1)])

        assert SchemaInitializer(mock_db).ensure_index(collection, index) is True
        collection.create_index.assert_called_once_with([("version", 1)], name="idx_version")

    def test_float_directions_match(self, mock_db):
        collection = mock_db.get_collection(SUMMARY_COLLECTION)
        collection.index_information.return_value = {"idx_version": {"key": [("version", 1.0)]}}
        index = IndexSpec("idx_version", [("version", 1)])

        assert SchemaInitializer(mock_db).ensure_index(collection, index) is False
        collection.create_index.assert_not_called()

    def test_unique_mismatch_recorded(self, mock_db):
        collection = mock_db.get_collection(SUMMARY_COLLECTION)
        collection.index_information.return_value = {"idx_material_id": {"key": [("material_id", 1)]}}
        index = IndexSpec("idx_material_id", [("material_id", 1)], unique=True)
        result = CollectionResult(name=SUMMARY_COLLECTION)

        assert SchemaInitializer(mock_db).ensure_index(collection, index, result) is False
        assert result.indexes_mismatched == ["idx_material_id"]
        collection.create_index.assert_not_called()


class TestInitReport:
    def test_summary_counts(self, fake_db):
        report = SchemaInitializer(fake_db).apply()

        assert report.summary() == "Collections: 3 | Indexes created: 16 | Indexes skipped: 0 | Errors: 0"
