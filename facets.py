"""
Faceted product search.

One ``$facet`` aggregation returns the product page, the total count and all
facet groups. Each group matches against its own predicate:

- products, count, availability and specs use the strict predicate
- price ignores the price range
- categories ignore the category filter
- brands ignore the brand filter

so picking a category, brand or price range never hides its siblings. Spec
histograms are not relaxed per key: selecting one spec value narrows the
counts shown for the other spec keys.
"""

import math
from typing import Any, Dict, Iterable, List

from pymongo.database import Database

from database import to_jsonable
from featured_specs import DEFAULT_ALL, NONE, RESTRICTED, FeaturedSpecsStore, derive_mode
from logging_config import get_logger
from product_filters import ProductFilterParams, ProductMatchBuilder
from spec_keys import normalize_spec_key

logger = get_logger("facets")

# _id breaks ties so pagination is deterministic
SORT_STAGES = {
    "newest": {"created_at": -1, "_id": 1},
    "price_asc": {"price": 1, "_id": 1},
    "price_desc": {"price": -1, "_id": 1},
}
DEFAULT_SORT = "newest"

EMPTY_PRICE = {"min": 0, "max": 0}


def build_facet_pipeline(
    strict: Dict[str, Any],
    relaxed: Dict[str, Dict[str, Any]],
    sort: str = DEFAULT_SORT,
    skip: int = 0,
    limit: int = 20,
    include_products: bool = True,
) -> List[Dict[str, Any]]:
    """Build the single-stage ``$facet`` pipeline.

    ``relaxed`` maps ``"price"``, ``"category"`` and ``"brand"`` to the
    predicate with that dimension left out.
    """
    branches: Dict[str, List[Dict[str, Any]]] = {}

    if include_products:
        branches["products"] = [
            {"$match": strict},
            {"$sort": SORT_STAGES.get(sort, SORT_STAGES[DEFAULT_SORT])},
            {"$skip": skip},
            {"$limit": limit},
            {"$lookup": {"from": "brand", "localField": "brand_id", "foreignField": "_id", "as": "brand"}},
            {"$unwind": {"path": "$brand", "preserveNullAndEmptyArrays": True}},
            {"$lookup": {"from": "category", "localField": "category_ids", "foreignField": "_id", "as": "categories"}},
        ]
        branches["totalCount"] = [
            {"$match": strict},
            {"$count": "count"},
        ]

    branches["price"] = [
        {"$match": relaxed["price"]},
        {"$group": {"_id": None, "min": {"$min": "$price"}, "max": {"$max": "$price"}}},
        {"$project": {"_id": 0, "min": 1, "max": 1}},
    ]
    branches["categories"] = [
        {"$match": relaxed["category"]},
        {"$unwind": "$category_ids"},
        {"$group": {"_id": "$category_ids", "count": {"$sum": 1}}},
        {"$lookup": {"from": "category", "localField": "_id", "foreignField": "_id", "as": "category"}},
        {"$unwind": "$category"},
        {"$project": {"_id": 0, "value": "$category.slug", "label": "$category.name", "count": 1}},
        {"$sort": {"label": 1}},
    ]
    branches["brands"] = [
        {"$match": relaxed["brand"]},
        {"$group": {"_id": "$brand_id", "count": {"$sum": 1}}},
        {"$lookup": {"from": "brand", "localField": "_id", "foreignField": "_id", "as": "brand"}},
        {"$unwind": "$brand"},
        {"$project": {"_id": 0, "value": "$brand.slug", "label": "$brand.name", "count": 1}},
        {"$sort": {"label": 1}},
    ]
    branches["availability"] = [
        {"$match": strict},
        {"$group": {"_id": "$availability", "count": {"$sum": 1}}},
        {"$project": {"_id": 0, "value": "$_id", "count": 1}},
        {"$sort": {"value": 1}},
    ]
    branches["specs"] = [
        {"$match": strict},
        {"$project": {"specs": {"$objectToArray": {"$ifNull": ["$specs", {}]}}}},
        {"$unwind": "$specs"},
        {"$group": {"_id": {"key": "$specs.k", "value": "$specs.v"}, "count": {"$sum": 1}}},
        {"$group": {"_id": "$_id.key", "values": {"$push": {"value": "$_id.value", "count": "$count"}}}},
    ]

    return [{"$facet": branches}]


def collapse_spec_histogram(rows: Iterable[Dict[str, Any]]) -> Dict[str, List[Dict[str, Any]]]:
    """Key the raw ``{_id: key, values: [...]}`` rows by normalized spec key.

    Raw keys that normalize to the same key ("VRAM", "Vram") are merged and
    counts for equal values are summed.
    """
    merged: Dict[str, Dict[Any, int]] = {}
    for row in rows:
        key = normalize_spec_key(row.get("_id") or "")
        if not key:
            continue
        counts = merged.setdefault(key, {})
        for item in row.get("values") or []:
            value = item.get("value")
            counts[value] = counts.get(value, 0) + int(item.get("count", 0))

    return {
        key: [{"value": value, "count": count} for value, count in sorted(counts.items(), key=lambda kv: str(kv[0]))]
        for key, counts in merged.items()
    }


def apply_featured_gate(
    histogram: Dict[str, List[Dict[str, Any]]],
    mode: str,
    featured_spec_keys: Iterable[str],
) -> Dict[str, List[Dict[str, Any]]]:
    """Filter the spec histogram down to the facets the category exposes."""
    if mode == NONE:
        return {}
    if mode == RESTRICTED:
        allowed = {normalize_spec_key(k) for k in featured_spec_keys}
        return {key: values for key, values in histogram.items() if normalize_spec_key(key) in allowed}
    return dict(histogram)


def empty_facets() -> Dict[str, Any]:
    return {"price": dict(EMPTY_PRICE), "categories": [], "brands": [], "availability": [], "specs": {}}


def search_products(
    db: Database,
    params: ProductFilterParams,
    page: int = 1,
    limit: int = 20,
    sort: str = DEFAULT_SORT,
    include_products: bool = True,
) -> Dict[str, Any]:
    """Run a catalog search and assemble products, pagination and facets.

    With ``include_products=False`` only the facet part of the response is
    computed.
    """
    builder = ProductMatchBuilder(db, params)
    strict = builder.build()
    relaxed = {
        "price": builder.build(exclude=["price"]),
        "category": builder.build(exclude=["category"]),
        "brand": builder.build(exclude=["brand"]),
    }
    skip = (page - 1) * limit
    pipeline = build_facet_pipeline(strict, relaxed, sort=sort, skip=skip, limit=limit, include_products=include_products)

    logger.debug("Search params=%s page=%s limit=%s sort=%s", params, page, limit, sort)
    results = list(db["product"].aggregate(pipeline))
    data = results[0] if results else {}

    category_key = builder.category_key()
    featured_spec_keys: List[str] = []
    mode = DEFAULT_ALL
    if category_key:
        config = FeaturedSpecsStore(db).find_config(category_key)
        mode = derive_mode(config)
        if config:
            featured_spec_keys = list(config.get("featured_spec_keys") or [])

    facets = empty_facets()
    if data:
        price_rows = data.get("price") or []
        if price_rows:
            facets["price"] = {"min": price_rows[0].get("min", 0), "max": price_rows[0].get("max", 0)}
        facets["categories"] = data.get("categories") or []
        facets["brands"] = data.get("brands") or []
        facets["availability"] = data.get("availability") or []
        facets["specs"] = apply_featured_gate(
            collapse_spec_histogram(data.get("specs") or []), mode, featured_spec_keys
        )

    response: Dict[str, Any] = {}
    if include_products:
        count_rows = data.get("totalCount") or []
        total = count_rows[0]["count"] if count_rows else 0
        response["products"] = to_jsonable(data.get("products") or [])
        response["pagination"] = {
            "total": total,
            "page": page,
            "limit": limit,
            "pages": math.ceil(total / limit) if limit else 0,
        }

    response.update(
        {
            "categoryKey": category_key,
            "featuredMode": mode,
            "featuredSpecKeys": featured_spec_keys,
            "facets": to_jsonable(facets),
        }
    )
    return response
