"""MongoDB persistence for purchase-order records."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from bson import ObjectId
from pymongo import DESCENDING, AsyncMongoClient, ReturnDocument
from pymongo.asynchronous.collection import AsyncCollection

from po_scanner.core.config import Settings

logger = logging.getLogger(__name__)


def _stringify_id(document: Dict[str, Any]) -> Dict[str, Any]:
    if "_id" in document and not isinstance(document["_id"], str):
        document = {**document, "_id": str(document["_id"])}
    return document


def id_filter(order_id: str) -> Dict[str, Any]:
    """Match ``order_id`` as an ObjectId when it looks like one, and as a plain string."""

    filters: List[Dict[str, Any]] = [{"_id": order_id}]
    if ObjectId.is_valid(order_id):
        filters.insert(0, {"_id": ObjectId(order_id)})
    return filters[0] if len(filters) == 1 else {"$or": filters}


class PurchaseOrderRepository:
    """Insert, list and atomically update purchase-order documents."""

    def __init__(self, collection: AsyncCollection) -> None:
        self.collection = collection

    async def insert(self, document: Dict[str, Any]) -> str:
        result = await self.collection.insert_one(dict(document))
        return str(result.inserted_id)

    async def list_recent(self, limit: int) -> List[Dict[str, Any]]:
        cursor = self.collection.find({}).sort("createdAt", DESCENDING).limit(limit)
        return [_stringify_id(document) async for document in cursor]

    async def find_and_update(
        self, order_id: str, fields: Dict[str, Any]
    ) -> Optional[Dict[str, Any]]:
        document = await self.collection.find_one_and_update(
            id_filter(order_id),
            {"$set": fields},
            return_document=ReturnDocument.AFTER,
        )
        return _stringify_id(document) if document is not None else None


class MongoStore:
    """Owns the Mongo client; opened and closed by the application lifespan."""

    def __init__(self, client: AsyncMongoClient, db_name: str, collection_name: str) -> None:
        self.client = client
        self.db_name = db_name
        self.collection_name = collection_name

    @classmethod
    def from_settings(cls, settings: Settings) -> "MongoStore":
        client = AsyncMongoClient(
            settings.mongodb_uri,
            maxPoolSize=settings.mongodb_max_pool_size,
            tz_aware=True,
        )
        logger.info("Connecting to MongoDB database %s", settings.mongodb_db)
        return cls(client, settings.mongodb_db, settings.mongodb_collection)

    def repository(self) -> PurchaseOrderRepository:
        return PurchaseOrderRepository(self.client[self.db_name][self.collection_name])

    async def close(self) -> None:
        await self.client.close()
        logger.info("MongoDB connection closed")
