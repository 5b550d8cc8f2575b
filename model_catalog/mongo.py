"""MongoDB connection helpers.

This module only knows how to reach the database. Reads and writes live in
`repository.py`.
"""

from __future__ import annotations

import logging
from typing import Any

from bson import ObjectId
from pymongo import MongoClient, errors
from pymongo.database import Database
from pymongo.server_api import ServerApi

from .config import MONGO_DB, MONGODB_URI

logger = logging.getLogger(__name__)


def get_database(uri: str = MONGODB_URI, name: str = MONGO_DB) -> Database:
    """Connect to MongoDB and return the configured database.

    The client pins the stable server API (v1, strict) so a server upgrade
    cannot silently change command behaviour.

    A failed ping is logged, not raised: the client reconnects lazily, and
    until it does every route answers 500.
    """
    client: MongoClient = MongoClient(
        uri,
        server_api=ServerApi("1", strict=True, deprecation_errors=True),
    )
    try:
        client.admin.command("ping")
        logger.info("Connected to MongoDB database %r", name)
    except errors.PyMongoError:
        logger.exception("MongoDB connection error")
    return client[name]


def to_public(doc: dict[str, Any] | None) -> dict[str, Any] | None:
    """Return a JSON-friendly copy of a Mongo document (ObjectIds as hex)."""
    if doc is None:
        return None
    out = dict(doc)
    for key, value in out.items():
        if isinstance(value, ObjectId):
            out[key] = str(value)
    return out
