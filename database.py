"""
MongoDB access for the storefront API.

`db` is None when DATABASE_URL / DATABASE_NAME are not set; routes get the
database through the `get_db` dependency so tests can swap it out.
"""
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Union

from bson import ObjectId
from bson.errors import InvalidId
from fastapi import HTTPException
from pydantic import BaseModel
from pymongo import MongoClient
from pymongo.database import Database

from config import get_settings
from errors import NotFound
from logger import get_logger

log = get_logger("database")

_settings = get_settings()

client: Optional[MongoClient] = None
db: Optional[Database] = None

if _settings.database_configured:
    client = MongoClient(_settings.database_url)
    db = client[_settings.database_name]
else:
    log.warning("DATABASE_URL / DATABASE_NAME not set, database disabled")


def get_db() -> Database:
    if db is None:
        raise HTTPException(status_code=500, detail="Database not configured")
    return db


def now() -> datetime:
    return datetime.now(timezone.utc)


def create_document(collection_name: str, data: Union[BaseModel, dict], database: Database = None) -> str:
    """Insert a document with created_at/updated_at stamps and return its id."""
    database = database if database is not None else get_db()
    doc = data.model_dump() if isinstance(data, BaseModel) else dict(data)
    stamp = now()
    doc.setdefault("created_at", stamp)
    doc["updated_at"] = stamp
    result = database[collection_name].insert_one(doc)
    return str(result.inserted_id)


def get_documents(
    collection_name: str,
    filter_dict: Optional[dict] = None,
    limit: Optional[int] = None,
    database: Database = None,
) -> List[dict]:
    database = database if database is not None else get_db()
    cursor = database[collection_name].find(filter_dict or {})
    if limit:
        cursor = cursor.limit(limit)
    return list(cursor)


def parse_object_id(value: Any, label: str = "Document") -> ObjectId:
    """Turn a path/body id into an ObjectId; ids that cannot exist are NotFound."""
    if isinstance(value, ObjectId):
        return value
    try:
        return ObjectId(str(value))
    except (InvalidId, TypeError):
        raise NotFound(f"{label} not found")


def doc_to_dict(doc: Any) -> Any:
    """Make a Mongo document JSON friendly: ObjectId -> str, datetime -> ISO, _id -> id."""
    if isinstance(doc, list):
        return [doc_to_dict(v) for v in doc]
    if isinstance(doc, ObjectId):
        return str(doc)
    if isinstance(doc, datetime):
        return doc.isoformat()
    if not isinstance(doc, dict):
        return doc
    out: Dict[str, Any] = {}
    for k, v in doc.items():
        out[k] = doc_to_dict(v)
    if "_id" in out:
        out["id"] = out.pop("_id")
    return out
