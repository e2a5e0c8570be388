"""
Storage Backends

Document stores for round snapshots and player statistics. MongoDB is used
when MONGO_URI is configured; otherwise the in-memory stores keep data for
the lifetime of the process.
"""

import copy
import datetime
import logging
import threading
from typing import Any, Dict, Optional

from pymongo.mongo_client import MongoClient
from pymongo.server_api import ServerApi

logger = logging.getLogger(__name__)


def connect_mongo(mongo_uri: str, db_name: str):
    """
    Connect to MongoDB and return the game database.

    Args:
        mongo_uri: MongoDB connection string
        db_name: Database name

    Raises:
        Exception: If the server does not answer the ping
    """
    client = MongoClient(mongo_uri, server_api=ServerApi('1'))
    try:
        client.admin.command('ping')
        logger.info("Successfully connected to MongoDB")
    except Exception as e:
        logger.error("MongoDB connection error: %s", e)
        raise
    return client[db_name]


class MemoryDocumentStore:
    """Thread-safe dict of player_id -> document."""

    def __init__(self):
        self._documents: Dict[str, Dict[str, Any]] = {}
        self._lock = threading.Lock()

    def save(self, player_id: str, document: Dict[str, Any]) -> None:
        with self._lock:
            self._documents[player_id] = copy.deepcopy(document)

    def load(self, player_id: str) -> Optional[Dict[str, Any]]:
        with self._lock:
            document = self._documents.get(player_id)
            return copy.deepcopy(document) if document is not None else None

    def clear(self, player_id: str) -> None:
        with self._lock:
            self._documents.pop(player_id, None)


class MongoDocumentStore:
    """One document per player in a MongoDB collection."""

    def __init__(self, collection, field_name: str):
        self.collection = collection
        self.field_name = field_name
        self.collection.create_index("player_id", unique=True)

    def save(self, player_id: str, document: Dict[str, Any]) -> None:
        self.collection.replace_one(
            {"player_id": player_id},
            {
                "player_id": player_id,
                self.field_name: document,
                "updated_at": datetime.datetime.now(datetime.timezone.utc),
            },
            upsert=True
        )

    def load(self, player_id: str) -> Optional[Dict[str, Any]]:
        record = self.collection.find_one({"player_id": player_id})
        if not record:
            return None
        return record.get(self.field_name)

    def clear(self, player_id: str) -> None:
        self.collection.delete_one({"player_id": player_id})


# Round snapshots (resume feature)
MemorySnapshotStore = MemoryDocumentStore


class MongoSnapshotStore(MongoDocumentStore):
    """Resumable round snapshots, collection saved_rounds."""

    def __init__(self, db):
        super().__init__(db.saved_rounds, "snapshot")


# Player statistics, progress, word history and achievements
MemoryStatsStore = MemoryDocumentStore


class MongoStatsStore(MongoDocumentStore):
    """Per-player statistics documents, collection player_stats."""

    def __init__(self, db):
        super().__init__(db.player_stats, "stats")
