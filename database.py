"""
MongoDB access for the storefront API.

Collections follow the schema module's naming: the lowercase of the pydantic
model name (``Product`` -> ``product``).
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple, Union

from bson import ObjectId
from pydantic import BaseModel
from pymongo import ASCENDING, DESCENDING, MongoClient
from pymongo.database import Database

import config
from errors import DatabaseUnavailableError

client: Optional[MongoClient] = None
db: Optional[Database] = None

if config.DATABASE_URL and config.DATABASE_NAME:
    client = MongoClient(config.DATABASE_URL)
    db = client[config.DATABASE_NAME]


def get_db() -> Database:
    """FastAPI dependency returning the configured database."""
    if db is None:
        raise DatabaseUnavailableError("Database not available")
    return db


def create_document(collection_name: str, data: Union[BaseModel, dict], database: Optional[Database] = None) -> str:
    """Insert a document with timestamps and return its id as a string."""
    target = database if database is not None else db
    if target is None:
        raise DatabaseUnavailableError("Database not available")

    if isinstance(data, BaseModel):
        doc = data.model_dump()
    else:
        doc = dict(data)
    now = datetime.now(timezone.utc)
    doc.setdefault("created_at", now)
    doc["updated_at"] = now

    result = target[collection_name].insert_one(doc)
    return str(result.inserted_id)


def get_documents(
    collection_name: str,
    filter_dict: Optional[Dict[str, Any]] = None,
    limit: Optional[int] = None,
    sort: Optional[List[Tuple[str, int]]] = None,
    database: Optional[Database] = None,
) -> List[Dict[str, Any]]:
    """Return the raw documents matching ``filter_dict``, optionally sorted and capped."""
    target = database if database is not None else db
    if target is None:
        raise DatabaseUnavailableError("Database not available")

    cursor = target[collection_name].find(filter_dict or {})
    if sort:
        cursor = cursor.sort(sort)
    if limit:
        cursor = cursor.limit(limit)
    return list(cursor)


def ensure_indexes(database: Database) -> None:
    """Create the indexes the catalog queries and facet pipelines rely on."""
    product = database["product"]
    product.create_index([("title", ASCENDING)])
    product.create_index([("brand_id", ASCENDING), ("price", ASCENDING)])
    product.create_index([("category_ids", ASCENDING), ("price", ASCENDING)])
    product.create_index([("category_ids", ASCENDING), ("brand_id", ASCENDING), ("price", ASCENDING)])
    product.create_index([("is_active", ASCENDING), ("price", ASCENDING)])
    product.create_index([("availability", ASCENDING)])
    # Wildcard index for the dynamic spec filters
    product.create_index([("specs.$**", ASCENDING)])
    product.create_index([("sku", ASCENDING)], unique=True, sparse=True)
    product.create_index([("slug", ASCENDING)], unique=True, sparse=True)

    database["category"].create_index([("slug", ASCENDING)], unique=True)
    database["brand"].create_index([("slug", ASCENDING)], unique=True)
    database["categoryfeaturedspecs"].create_index([("category_key", ASCENDING)], unique=True)
    database["auditlog"].create_index(
        [("entity_type", ASCENDING), ("entity_id", ASCENDING), ("created_at", DESCENDING)]
    )


def to_jsonable(value: Any) -> Any:
    """Convert a Mongo document for a JSON response.

    ``_id`` becomes a string ``id`` and every nested ``ObjectId`` becomes its
    hex string.
    """
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, dict):
        out: Dict[str, Any] = {}
        for key, item in value.items():
            if key == "_id":
                out["id"] = to_jsonable(item)
            else:
                out[key] = to_jsonable(item)
        return out
    if isinstance(value, (list, tuple)):
        return [to_jsonable(item) for item in value]
    return value
