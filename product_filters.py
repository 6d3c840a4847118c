"""Translate catalog query parameters into a Mongo ``$match`` predicate.

The builder can leave out named dimensions so the facet pipelines can count
against a relaxed predicate (e.g. brand counts ignore the selected brand).
"""

import json
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from bson import ObjectId
from pymongo.database import Database

import config
from errors import ValidationError
from spec_keys import normalize_spec_key

DIMENSIONS = ("search", "price", "in_stock", "availability", "brand", "category", "specs")

_SPEC_BRACKET = re.compile(r"^spec\[(.*?)\]$")


def split_csv(value: Optional[str]) -> List[str]:
    if not value:
        return []
    return [part.strip() for part in str(value).split(",") if part.strip()]


def _spec_values(value: Any) -> List[str]:
    if isinstance(value, (list, tuple)):
        return [str(v).strip() for v in value if str(v).strip()]
    return split_csv(value)


def parse_spec_filters(query_items: Iterable[Tuple[str, str]]) -> Dict[str, List[str]]:
    """Collect spec selections from the query string.

    Both ``spec[VRAM]=12GB,16GB`` and ``spec={"VRAM": "12GB,16GB"}`` are
    accepted; selections for the same key are merged.
    """
    specs: Dict[str, List[str]] = {}

    def add(key: str, value: Any) -> None:
        key = key.strip()
        # "$"-prefixed keys would be read as operators
        if not key or key.startswith("$"):
            return
        values = specs.setdefault(key, [])
        for v in _spec_values(value):
            if v not in values:
                values.append(v)

    for name, raw in query_items:
        if name == "spec":
            try:
                nested = json.loads(raw)
            except (TypeError, ValueError) as e:
                raise ValidationError(
                    "Invalid spec filter",
                    details=[{"field": "spec", "message": "Expected a JSON object"}],
                ) from e
            if not isinstance(nested, dict):
                raise ValidationError(
                    "Invalid spec filter",
                    details=[{"field": "spec", "message": "Expected a JSON object"}],
                )
            for key, value in nested.items():
                add(str(key), value)
            continue

        match = _SPEC_BRACKET.match(name)
        if match:
            add(match.group(1), raw)

    return {key: values for key, values in specs.items() if values}


@dataclass
class ProductFilterParams:
    search: Optional[str] = None
    min_price: Optional[float] = None
    max_price: Optional[float] = None
    brand: Optional[str] = None
    category: Optional[str] = None
    availability: Optional[str] = None
    in_stock: bool = False
    spec: Dict[str, List[str]] = field(default_factory=dict)


class ProductMatchBuilder:
    """Builds match predicates for one request.

    Brand and category lookups and the stored spec-key scan are cached on
    the instance, so build one builder per request and call ``build`` once
    per predicate variant.
    """

    def __init__(self, db: Database, params: ProductFilterParams, strict_references: Optional[bool] = None):
        self.db = db
        self.params = params
        if strict_references is None:
            strict_references = config.STRICT_REFERENCE_FILTERS
        self.strict_references = strict_references
        self._resolved: Dict[Tuple[str, str], List[Dict[str, Any]]] = {}
        self._stored_spec_keys: Optional[List[str]] = None

    def resolve(self, collection: str, raw: Optional[str]) -> List[Dict[str, Any]]:
        """Find documents whose slug or id appears in a comma-separated list."""
        cache_key = (collection, raw or "")
        if cache_key in self._resolved:
            return self._resolved[cache_key]

        values = split_csv(raw)
        docs: List[Dict[str, Any]] = []
        if values:
            clauses: List[Dict[str, Any]] = [{"slug": {"$in": values}}]
            ids = [ObjectId(v) for v in values if ObjectId.is_valid(v)]
            if ids:
                clauses.append({"_id": {"$in": ids}})
            docs = list(self.db[collection].find({"$or": clauses}, {"_id": 1, "slug": 1}))

        self._resolved[cache_key] = docs
        return docs

    def _reference_constraint(self, collection: str, raw: Optional[str]) -> Optional[Dict[str, Any]]:
        docs = self.resolve(collection, raw)
        if docs:
            return {"$in": [doc["_id"] for doc in docs]}
        if self.strict_references:
            return {"$in": []}
        # Nothing resolved: drop the constraint
        return None

    def build(self, exclude: Sequence[str] = ()) -> Dict[str, Any]:
        """Return the predicate with every dimension except those in ``exclude``."""
        unknown = set(exclude) - set(DIMENSIONS)
        if unknown:
            raise ValueError(f"Unknown filter dimension(s): {sorted(unknown)}")

        p = self.params
        match: Dict[str, Any] = {"is_active": True}

        if p.search and "search" not in exclude:
            match["title"] = {"$regex": re.escape(p.search), "$options": "i"}

        if (p.min_price is not None or p.max_price is not None) and "price" not in exclude:
            price: Dict[str, float] = {}
            if p.min_price is not None:
                price["$gte"] = p.min_price
            if p.max_price is not None:
                price["$lte"] = p.max_price
            match["price"] = price

        if p.in_stock and "in_stock" not in exclude:
            match["stock.qty"] = {"$gt": 0}

        availability = split_csv(p.availability)
        if availability and "availability" not in exclude:
            match["availability"] = {"$in": availability}

        if p.brand and "brand" not in exclude:
            constraint = self._reference_constraint("brand", p.brand)
            if constraint is not None:
                match["brand_id"] = constraint

        if p.category and "category" not in exclude:
            constraint = self._reference_constraint("category", p.category)
            if constraint is not None:
                match["category_ids"] = constraint

        if p.spec and "specs" not in exclude:
            # AND across keys, OR across the values and stored spellings of one key
            clauses = []
            for key, values in p.spec.items():
                if not values:
                    continue
                clauses.append({
                    "$or": [{f"specs.{raw}": {"$in": list(values)}} for raw in self.stored_spellings(key)]
                })
            if clauses:
                match["$and"] = clauses

        return match

    def stored_spec_keys(self) -> List[str]:
        """Distinct raw spec keys across active products, scanned once per builder."""
        if self._stored_spec_keys is None:
            pipeline = [
                {"$match": {"is_active": True}},
                {"$project": {"specs": {"$objectToArray": {"$ifNull": ["$specs", {}]}}}},
                {"$unwind": "$specs"},
                {"$group": {"_id": "$specs.k"}},
            ]
            self._stored_spec_keys = [
                row["_id"] for row in self.db["product"].aggregate(pipeline) if isinstance(row.get("_id"), str)
            ]
        return self._stored_spec_keys

    def stored_spellings(self, key: str) -> List[str]:
        """Raw keys that normalize like ``key``, with ``key`` itself always first."""
        wanted = normalize_spec_key(key)
        spellings = [key]
        for raw in self.stored_spec_keys():
            # dotted or "$" keys cannot be addressed as a field path
            if raw in spellings or not raw or raw.startswith("$") or "." in raw:
                continue
            if normalize_spec_key(raw) == wanted:
                spellings.append(raw)
        return spellings

    def category_key(self) -> Optional[str]:
        """Slug of the single requested category, used to look up featured specs.

        Returns None when zero or several categories are requested. An id that
        resolves to a category is reported as that category's slug.
        """
        values = split_csv(self.params.category)
        if len(values) != 1:
            return None
        value = values[0]
        if ObjectId.is_valid(value):
            for doc in self.resolve("category", self.params.category):
                if doc["_id"] == ObjectId(value):
                    return doc.get("slug", value)
        return value
