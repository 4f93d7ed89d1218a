from __future__ import annotations
import logging
from typing import Any, Optional
from datetime import datetime, timezone
from bson import ObjectId
from bson.errors import InvalidId
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo import ReturnDocument

from config import settings

logger = logging.getLogger("okna-db")

_client: Optional[AsyncIOMotorClient] = None
_db: Optional[AsyncIOMotorDatabase] = None

async def get_db() -> AsyncIOMotorDatabase:
    global _client, _db
    if _db is None:
        _client = AsyncIOMotorClient(settings.DATABASE_URL, serverSelectionTimeoutMS=5000)
        _db = _client[settings.DATABASE_NAME]
        logger.info("MongoDB client created for database %s", settings.DATABASE_NAME)
    return _db

def close_db() -> None:
    global _client, _db
    if _client is not None:
        _client.close()
    _client = None
    _db = None

def to_object_id(value: str) -> Optional[ObjectId]:
    """Parse a client-supplied id; None when it cannot be a stored id."""
    try:
        return ObjectId(value)
    except (InvalidId, TypeError):
        return None

def _to_client(doc: dict[str, Any]) -> dict[str, Any]:
    doc["id"] = str(doc.pop("_id"))
    return doc

async def _resolve(db: Optional[AsyncIOMotorDatabase]) -> AsyncIOMotorDatabase:
    return db if db is not None else await get_db()

async def create_document(collection_name: str, data: dict[str, Any], db: Optional[AsyncIOMotorDatabase] = None) -> dict[str, Any]:
    db = await _resolve(db)
    now = datetime.now(timezone.utc)
    data_with_meta = {**data, "created_at": now, "updated_at": now}
    result = await db[collection_name].insert_one(data_with_meta)
    inserted = await db[collection_name].find_one({"_id": result.inserted_id})
    if inserted and "_id" in inserted:
        _to_client(inserted)
    return inserted or {}

async def get_documents(collection_name: str, filter_dict: dict[str, Any] | None = None, limit: int = 0, db: Optional[AsyncIOMotorDatabase] = None) -> list[dict[str, Any]]:
    db = await _resolve(db)
    cursor = db[collection_name].find(filter_dict or {})
    if limit:
        cursor = cursor.limit(limit)
    docs = []
    async for d in cursor:
        docs.append(_to_client(d))
    return docs

async def get_document(collection_name: str, doc_id: str, db: Optional[AsyncIOMotorDatabase] = None) -> Optional[dict[str, Any]]:
    oid = to_object_id(doc_id)
    if oid is None:
        return None
    db = await _resolve(db)
    doc = await db[collection_name].find_one({"_id": oid})
    return _to_client(doc) if doc else None

async def update_document(collection_name: str, doc_id: str, fields: dict[str, Any], db: Optional[AsyncIOMotorDatabase] = None) -> Optional[dict[str, Any]]:
    """Field-level merge of ``fields``; returns the stored document or None if no match."""
    oid = to_object_id(doc_id)
    if oid is None:
        return None
    db = await _resolve(db)
    doc = await db[collection_name].find_one_and_update(
        {"_id": oid},
        {"$set": {**fields, "updated_at": datetime.now(timezone.utc)}},
        return_document=ReturnDocument.AFTER,
    )
    return _to_client(doc) if doc else None

async def delete_document(collection_name: str, doc_id: str, db: Optional[AsyncIOMotorDatabase] = None) -> bool:
    oid = to_object_id(doc_id)
    if oid is None:
        return False
    db = await _resolve(db)
    result = await db[collection_name].delete_one({"_id": oid})
    return result.deleted_count > 0
