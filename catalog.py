"""Plain catalog reads: single products, brand/category lists, grouped listing."""

from typing import Any, Dict, List, Optional

from bson import ObjectId
from pymongo.database import Database

from database import get_documents, to_jsonable

_BRAND_LOOKUP = [
    {"$lookup": {"from": "brand", "localField": "brand_id", "foreignField": "_id", "as": "brand"}},
    {"$unwind": {"path": "$brand", "preserveNullAndEmptyArrays": True}},
]

_BY_NAME = [("name", 1)]


def get_product(db: Database, query: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """Fetch one active product with its brand and categories joined in."""
    pipeline = [
        {"$match": dict(query, is_active=True)},
        {"$limit": 1},
        *_BRAND_LOOKUP,
        {"$lookup": {"from": "category", "localField": "category_ids", "foreignField": "_id", "as": "categories"}},
    ]
    rows = list(db["product"].aggregate(pipeline))
    return to_jsonable(rows[0]) if rows else None


def get_product_by_slug(db: Database, slug: str) -> Optional[Dict[str, Any]]:
    return get_product(db, {"slug": slug})


def get_product_by_id(db: Database, product_id: str) -> Optional[Dict[str, Any]]:
    if not ObjectId.is_valid(product_id):
        return None
    return get_product(db, {"_id": ObjectId(product_id)})


def list_brands(db: Database) -> List[Dict[str, Any]]:
    return to_jsonable(get_documents("brand", {"is_active": True}, sort=_BY_NAME, database=db))


def list_categories(db: Database) -> List[Dict[str, Any]]:
    return to_jsonable(get_documents("category", {"is_active": True}, sort=_BY_NAME, database=db))


def grouped_products(db: Database, per_category: int = 4) -> List[Dict[str, Any]]:
    """Newest active products under each active category, categories by name."""
    pipeline = [
        {"$match": {"is_active": True}},
        *_BRAND_LOOKUP,
        {"$unwind": "$category_ids"},
        {"$sort": {"created_at": -1, "_id": 1}},
        {"$group": {"_id": "$category_ids", "products": {"$push": "$$ROOT"}}},
        {"$project": {"products": {"$slice": ["$products", per_category]}}},
        {"$lookup": {"from": "category", "localField": "_id", "foreignField": "_id", "as": "category"}},
        {"$unwind": "$category"},
        {"$match": {"category.is_active": True}},
        {"$sort": {"category.name": 1}},
    ]
    return to_jsonable(list(db["product"].aggregate(pipeline)))
