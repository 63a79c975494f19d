"""
Database Helper Functions

MongoDB helpers shared by every router. Routers never touch the client
directly; they go through these functions so the connection can be swapped
(tests replace ``db`` with an in-memory database).
"""

import logging
import os
from datetime import datetime, timezone
from typing import Union, Optional, Dict, Any, List

from bson import ObjectId
from bson.errors import InvalidId
from dotenv import load_dotenv
from pydantic import BaseModel
from pymongo import MongoClient, ReturnDocument, ASCENDING, DESCENDING

# Load environment variables from .env file
load_dotenv()

logger = logging.getLogger(__name__)

_client = None
db = None

database_url = os.getenv("DATABASE_URL")
database_name = os.getenv("DATABASE_NAME")

if database_url and database_name:
    _client = MongoClient(database_url, serverSelectionTimeoutMS=5000)
    db = _client[database_name]


def _ensure_db():
    if db is None:
        raise Exception("Database not available. Check DATABASE_URL and DATABASE_NAME environment variables.")


def _to_dict(data: Union[BaseModel, dict]) -> dict:
    if isinstance(data, BaseModel):
        return data.model_dump()
    return dict(data)


def _now() -> datetime:
    return datetime.now(timezone.utc)


def to_object_id(_id: str) -> Optional[ObjectId]:
    """Parse a path identifier; None when it is not a valid ObjectId."""
    if isinstance(_id, ObjectId):
        return _id
    try:
        return ObjectId(_id)
    except (InvalidId, TypeError):
        return None


def get_collection(collection_name: str):
    _ensure_db()
    return db[collection_name]


def connect() -> None:
    """Ping the server and create indexes. Raises if the database is unreachable."""
    _ensure_db()
    _client.admin.command("ping")
    logger.info("Connected to MongoDB database %s", db.name)
    ensure_indexes()


def ensure_indexes() -> None:
    _ensure_db()
    # One cart per (user, restaurant); cart lookups rely on it.
    db["cart"].create_index(
        [("user_id", ASCENDING), ("restaurant_id", ASCENDING)],
        unique=True,
        name="user_restaurant_unique",
    )
    db["user"].create_index([("email", ASCENDING)], unique=True, name="email_unique")
    db["user"].create_index([("created_at", DESCENDING)])
    db["order"].create_index([("user_id", ASCENDING), ("created_at", DESCENDING)])
    db["review"].create_index([("restaurant_id", ASCENDING), ("created_at", DESCENDING)])


# CRUD helpers

def create_document(collection_name: str, data: Union[BaseModel, dict]) -> str:
    _ensure_db()
    payload = _to_dict(data)
    now = _now()
    payload['created_at'] = now
    payload['updated_at'] = now
    result = db[collection_name].insert_one(payload)
    return str(result.inserted_id)


def get_documents(
    collection_name: str,
    filter_dict: Optional[dict] = None,
    limit: Optional[int] = None,
    sort: Optional[list] = None,
    skip: Optional[int] = None,
) -> List[dict]:
    _ensure_db()
    cursor = db[collection_name].find(filter_dict or {})
    if sort:
        cursor = cursor.sort(sort)
    if skip:
        cursor = cursor.skip(int(skip))
    if limit:
        cursor = cursor.limit(int(limit))
    return [serialize_doc(doc) for doc in cursor]


def count_documents(collection_name: str, filter_dict: Optional[dict] = None) -> int:
    _ensure_db()
    return db[collection_name].count_documents(filter_dict or {})


def get_document_by_id(collection_name: str, _id: str) -> Optional[dict]:
    _ensure_db()
    oid = to_object_id(_id)
    if oid is None:
        return None
    doc = db[collection_name].find_one({"_id": oid})
    return serialize_doc(doc) if doc else None


def update_document(collection_name: str, _id: str, update_data: Dict[str, Any]) -> bool:
    _ensure_db()
    oid = to_object_id(_id)
    if oid is None:
        return False
    update = {"$set": _to_dict(update_data)}
    update["$set"]["updated_at"] = _now()
    result = db[collection_name].update_one({"_id": oid}, update)
    return result.matched_count > 0


def update_document_if(collection_name: str, _id: str, expected: Dict[str, Any], update_data: Dict[str, Any]) -> Optional[dict]:
    """Apply ``update_data`` only while the document still matches ``expected``.

    Returns the updated document, or None when the id is unknown or the
    document no longer matches (another request changed it first).
    """
    _ensure_db()
    oid = to_object_id(_id)
    if oid is None:
        return None
    update = {"$set": _to_dict(update_data)}
    update["$set"]["updated_at"] = _now()
    doc = db[collection_name].find_one_and_update(
        {"_id": oid, **expected},
        update,
        return_document=ReturnDocument.AFTER,
    )
    return serialize_doc(doc) if doc else None


def delete_document(collection_name: str, _id: str) -> bool:
    _ensure_db()
    oid = to_object_id(_id)
    if oid is None:
        return False
    result = db[collection_name].delete_one({"_id": oid})
    return result.deleted_count > 0


# Utility

def serialize_doc(doc: Optional[dict]) -> Optional[dict]:
    if not doc:
        return None
    d = dict(doc)
    if "_id" in d:
        d["_id"] = str(d["_id"])  # convert ObjectId to string
    return d
