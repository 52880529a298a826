"""
MockDB Kernel — Store

Owns every collection and the per-class field masks.

    collections = {class_name: {object_id: record}}
    masks       = {class_name: {field_name, ...}}

No validation: callers are trusted to pass well-formed class names.
First access to an unknown class materializes an empty collection.
"""

from __future__ import annotations

import uuid
from typing import Any

from mockdb.kernel.types import OBJECT_ID_LENGTH


class Store:
    """In-memory class-keyed document storage."""

    def __init__(self) -> None:
        self.collections: dict[str, dict[str, dict[str, Any]]] = {}
        self.masks: dict[str, set[str]] = {}

    def collection(self, class_name: str) -> dict[str, dict[str, Any]]:
        """Get-or-create. Insertion order is the class's natural creation order."""
        if class_name not in self.collections:
            self.collections[class_name] = {}
        return self.collections[class_name]

    def mask(self, class_name: str) -> set[str]:
        """Get-or-create the set of fields hidden from responses for a class."""
        if class_name not in self.masks:
            self.masks[class_name] = set()
        return self.masks[class_name]

    def records(self, class_name: str) -> list[dict[str, Any]]:
        return list(self.collection(class_name).values())

    def get(self, class_name: str, object_id: str | None) -> dict[str, Any] | None:
        if object_id is None:
            return None
        return self.collection(class_name).get(object_id)

    def put(self, class_name: str, record: dict[str, Any]) -> None:
        self.collection(class_name)[record["objectId"]] = record

    def remove(self, class_name: str, object_id: str) -> None:
        self.collection(class_name).pop(object_id, None)

    def new_object_id(self, class_name: str) -> str:
        """A fresh id, unique within the class."""
        collection = self.collection(class_name)
        while True:
            object_id = uuid.uuid4().hex[:OBJECT_ID_LENGTH]
            if object_id not in collection:
                return object_id

    def strip_masked(self, class_name: str, record: dict[str, Any]) -> dict[str, Any]:
        """Drop masked fields from a response copy (never from the stored record)."""
        hidden = self.masks.get(class_name)
        if not hidden:
            return record
        return {k: v for k, v in record.items() if k not in hidden}

    def clear(self) -> None:
        self.collections = {}
        self.masks = {}
