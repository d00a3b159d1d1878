"""
Database Helper Functions

MongoDB helper functions used by the order endpoints.
Every helper goes through the module-level ``db`` handle so it can be swapped
out (tests replace it with an in-memory database).
"""

from pymongo import MongoClient, ReturnDocument
from bson import ObjectId
from datetime import datetime, timezone
import os
from dotenv import load_dotenv
from typing import Union, Optional, Dict, Any, List
from pydantic import BaseModel

# Load environment variables from .env file
load_dotenv()

_client = None
db = None

database_url = os.getenv("DATABASE_URL")
database_name = os.getenv("DATABASE_NAME")

if database_url and database_name:
    _client = MongoClient(database_url)
    db = _client[database_name]


def _ensure_db():
    if db is None:
        raise RuntimeError("Database not available. Check DATABASE_URL and DATABASE_NAME environment variables.")


def _to_dict(data: Union[BaseModel, dict]) -> dict:
    if isinstance(data, BaseModel):
        return data.model_dump()
    return dict(data)


def is_valid_id(_id: Any) -> bool:
    return isinstance(_id, str) and ObjectId.is_valid(_id)


# CRUD helpers

def create_document(collection_name: str, data: Union[BaseModel, dict]) -> str:
    _ensure_db()
    payload = _to_dict(data)
    now = datetime.now(timezone.utc)
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
    projection: Optional[dict] = None,
) -> List[dict]:
    _ensure_db()
    cursor = db[collection_name].find(filter_dict or {}, projection)
    if sort:
        cursor = cursor.sort(sort)
    if skip:
        cursor = cursor.skip(int(skip))
    if limit:
        cursor = cursor.limit(int(limit))
    return [serialize_doc(doc) for doc in cursor]


def get_document_by_id(collection_name: str, _id: str, projection: Optional[dict] = None) -> Optional[dict]:
    _ensure_db()
    if not is_valid_id(_id):
        return None
    doc = db[collection_name].find_one({"_id": ObjectId(_id)}, projection)
    return serialize_doc(doc) if doc else None


def get_documents_by_ids(collection_name: str, ids: List[str], projection: Optional[dict] = None) -> Dict[str, dict]:
    """Fetch several documents at once, keyed by their string id. Invalid ids are skipped."""
    oids = [ObjectId(i) for i in set(ids) if is_valid_id(i)]
    if not oids:
        return {}
    docs = get_documents(collection_name, {"_id": {"$in": oids}}, projection=projection)
    return {d["_id"]: d for d in docs}


def update_document(collection_name: str, _id: str, update_data: Dict[str, Any]) -> bool:
    _ensure_db()
    update = {"$set": _to_dict(update_data)}
    update["$set"]["updated_at"] = datetime.now(timezone.utc)
    result = db[collection_name].update_one({"_id": ObjectId(_id)}, update)
    return result.matched_count > 0


def count_documents(collection_name: str, filter_dict: Optional[dict] = None) -> int:
    _ensure_db()
    return db[collection_name].count_documents(filter_dict or {})


# Stock

def reserve_stock(product_id: str, quantity: int) -> bool:
    """
    Atomically take ``quantity`` units from a product.

    The decrement only applies while enough stock remains, so concurrent
    purchases can never drive stock below zero. Returns False when the
    product is missing or short.
    """
    _ensure_db()
    doc = db["product"].find_one_and_update(
        {"_id": ObjectId(product_id), "stock": {"$gte": quantity}},
        {"$inc": {"stock": -quantity}, "$set": {"updated_at": datetime.now(timezone.utc)}},
        return_document=ReturnDocument.AFTER,
    )
    return doc is not None


def release_stock(product_id: str, quantity: int) -> None:
    _ensure_db()
    db["product"].update_one(
        {"_id": ObjectId(product_id)},
        {"$inc": {"stock": quantity}, "$set": {"updated_at": datetime.now(timezone.utc)}},
    )


# Utility

def serialize_doc(doc: Optional[dict]) -> Optional[dict]:
    if not doc:
        return None
    d = dict(doc)
    if "_id" in d:
        d["_id"] = str(d["_id"])  # convert ObjectId to string
    return d
