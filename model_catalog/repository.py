"""Accessors for the `models` and `purchases` collections.

Both classes wrap a single pymongo collection handed to them by the app
factory. They return plain dicts with ObjectIds rendered as hex strings, and
raise the errors from `errors.py` instead of driver exceptions where the
caller can act on the difference.
"""

from __future__ import annotations

from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Iterator

from bson import ObjectId
from pymongo import ReturnDocument, errors
from pymongo.collection import Collection

from .config import GUEST_EMAIL
from .errors import InvalidIdentifier, NotFound, StoreUnavailable
from .mongo import to_public


def parse_object_id(value: str) -> ObjectId:
    """Parse a 24-char hex id, raising `InvalidIdentifier` otherwise."""
    if not isinstance(value, str) or not ObjectId.is_valid(value):
        raise InvalidIdentifier(value)
    return ObjectId(value)


@contextmanager
def _store_call() -> Iterator[None]:
    # Network level failures only; other driver errors pass through untouched.
    try:
        yield
    except errors.ConnectionFailure as e:
        raise StoreUnavailable(str(e)) from e


class ModelRepository:
    """CRUD over the `models` collection plus the purchase counter."""

    def __init__(self, collection: Collection):
        self.collection = collection

    def list_all(self) -> list[dict[str, Any]]:
        with _store_call():
            return [to_public(doc) for doc in self.collection.find()]

    def get(self, model_id: str) -> dict[str, Any]:
        oid = parse_object_id(model_id)
        with _store_call():
            doc = self.collection.find_one({"_id": oid})
        if doc is None:
            raise NotFound("Model")
        return to_public(doc)

    def exists(self, model_id: str) -> bool:
        oid = parse_object_id(model_id)
        with _store_call():
            return self.collection.find_one({"_id": oid}, {"_id": 1}) is not None

    def create(self, fields: dict[str, Any]) -> dict[str, Any]:
        """Insert a model and return it as stored.

        `purchased` is forced to 0 when missing or falsy; any other value is
        kept as given.
        """
        doc = dict(fields)
        if not doc.get("purchased"):
            doc["purchased"] = 0
        with _store_call():
            result = self.collection.insert_one(doc)
            created = self.collection.find_one({"_id": result.inserted_id})
        return to_public(created)

    def update(self, model_id: str, fields: dict[str, Any]) -> dict[str, Any]:
        """Merge-patch: only the given keys are overwritten."""
        oid = parse_object_id(model_id)
        if not fields:
            # Mongo rejects an empty $set; nothing to change anyway.
            return self.get(model_id)
        with _store_call():
            doc = self.collection.find_one_and_update(
                {"_id": oid},
                {"$set": fields},
                return_document=ReturnDocument.AFTER,
            )
        if doc is None:
            raise NotFound("Model")
        return to_public(doc)

    def delete(self, model_id: str) -> None:
        oid = parse_object_id(model_id)
        with _store_call():
            result = self.collection.delete_one({"_id": oid})
        if result.deleted_count == 0:
            raise NotFound("Model")

    def increment_purchased(self, model_id: str) -> dict[str, Any] | None:
        """Atomically bump `purchased` by one.

        Returns the updated document, or None when no model matched.
        """
        oid = parse_object_id(model_id)
        with _store_call():
            doc = self.collection.find_one_and_update(
                {"_id": oid},
                {"$inc": {"purchased": 1}},
                return_document=ReturnDocument.AFTER,
            )
        return to_public(doc)


class PurchaseRecorder:
    """Append-only log of purchase events in the `purchases` collection."""

    def __init__(self, collection: Collection, guest_email: str = GUEST_EMAIL):
        self.collection = collection
        self.guest_email = guest_email

    def append(self, model_id: str, buyer_email: str | None = None) -> dict[str, Any]:
        # modelId is stored as the raw string, not an ObjectId reference.
        record = {
            "modelId": model_id,
            "buyerEmail": buyer_email or self.guest_email,
            "date": datetime.now(timezone.utc),
        }
        with _store_call():
            result = self.collection.insert_one(record)
        record["_id"] = result.inserted_id
        return to_public(record)

    def list_all(self) -> list[dict[str, Any]]:
        with _store_call():
            return [to_public(doc) for doc in self.collection.find()]

    def remove(self, record_id: str) -> None:
        with _store_call():
            self.collection.delete_one({"_id": parse_object_id(record_id)})
