"""Exceptions raised by the material-store repositories and domain services."""

from __future__ import annotations


class MaterialStoreError(Exception):
    """Base class for material-store errors."""
    pass


class DocumentNotFoundError(MaterialStoreError):
    """Raised when a lookup or update matches no document."""

    def __init__(self, collection: str, key: object):
        self.collection = collection
        self.key = key
        super().__init__(f"No document in '{collection}' for {key!r}")


class DuplicateMaterialError(MaterialStoreError):
    """Raised when a material already has a record in a unique-keyed collection."""

    def __init__(self, collection: str, material_id: str):
        self.collection = collection
        self.material_id = material_id
        super().__init__(f"'{collection}' already holds a record for material {material_id}")


class InvalidDocumentError(MaterialStoreError):
    """Raised when a document breaks an application-level invariant."""

    def __init__(self, collection: str, violations: list[str]):
        self.collection = collection
        self.violations = violations
        super().__init__(f"Invalid '{collection}' document: {'; '.join(violations)}")


class InvalidTransitionError(MaterialStoreError):
    """Raised when an event status change is not allowed."""

    def __init__(self, current: str, target: str):
        self.current = current
        self.target = target
        super().__init__(f"Cannot move event from '{current}' to '{target}'")
