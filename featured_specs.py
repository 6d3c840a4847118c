"""Per-category featured spec configuration.

A category is in one of three modes, derived from its configuration row:

- ``default_all``: no row, every spec key on the category's products is a facet
- ``restricted``: a row listing one or more normalized keys, only those show
- ``none``: a row with an empty list, no spec facets at all
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pydantic import ValidationError as PydanticValidationError
from pymongo import ReturnDocument
from pymongo.database import Database

from errors import NotFoundError, ValidationError
from logging_config import get_logger
from schemas import FeaturedSpecsUpdate
from spec_keys import normalize_spec_key, normalize_spec_keys

logger = get_logger("featured_specs")

DEFAULT_ALL = "default_all"
RESTRICTED = "restricted"
NONE = "none"

COLLECTION = "categoryfeaturedspecs"


def derive_mode(config: Optional[Dict[str, Any]]) -> str:
    if config is None:
        return DEFAULT_ALL
    return RESTRICTED if config.get("featured_spec_keys") else NONE


def featured_state(category_key: str, config: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """Response shape shared by every featured-spec operation."""
    return {
        "categoryKey": category_key,
        "featuredSpecKeys": list(config.get("featured_spec_keys") or []) if config else [],
        "mode": derive_mode(config),
    }


def parse_featured_update(payload: Any) -> List[str]:
    """Validate an update body and return its raw key list."""
    try:
        body = FeaturedSpecsUpdate.model_validate(payload)
    except PydanticValidationError as e:
        details = [
            {"field": ".".join(str(p) for p in err["loc"]), "message": err["msg"]}
            for err in e.errors()
        ]
        raise ValidationError("Invalid input", details=details) from e
    return body.featuredSpecKeys


class FeaturedSpecsStore:
    """Reads and writes the ``categoryfeaturedspecs`` collection.

    Configuration rows are keyed on the category slug, not its id. Product and
    category documents are only read.
    """

    def __init__(self, db: Database):
        self.db = db
        self.collection = db[COLLECTION]

    def _require_category(self, category_key: str) -> Dict[str, Any]:
        category = self.db["category"].find_one({"slug": category_key})
        if not category:
            raise NotFoundError("Category not found", code="CATEGORY_NOT_FOUND")
        return category

    def get_available_spec_keys(self, category_key: str) -> Dict[str, Any]:
        """List every normalized spec key present on the category's active products."""
        category = self._require_category(category_key)
        pipeline = [
            {"$match": {"category_ids": category["_id"], "is_active": True}},
            {"$project": {"specs": {"$objectToArray": {"$ifNull": ["$specs", {}]}}}},
            {"$unwind": "$specs"},
            {"$group": {"_id": "$specs.k"}},
        ]
        raw_keys = [row["_id"] for row in self.db["product"].aggregate(pipeline)]
        keys = sorted({normalize_spec_key(k) for k in raw_keys if k} - {""})
        return {"categoryKey": category_key, "availableSpecKeys": keys}

    def find_config(self, category_key: str) -> Optional[Dict[str, Any]]:
        return self.collection.find_one({"category_key": category_key})

    def get_featured_specs(self, category_key: str) -> Dict[str, Any]:
        # A missing row is the default_all state, not an error
        return featured_state(category_key, self.find_config(category_key))

    def update_featured_specs(self, category_key: str, featured_spec_keys: Any) -> Dict[str, Any]:
        """Upsert the allow-list. An empty list is valid and selects ``none`` mode."""
        if not isinstance(featured_spec_keys, list) or not all(
            isinstance(k, str) for k in featured_spec_keys
        ):
            raise ValidationError(
                "Invalid input",
                details=[{"field": "featuredSpecKeys", "message": "Expected an array of strings"}],
            )
        self._require_category(category_key)

        keys = normalize_spec_keys(featured_spec_keys)
        now = datetime.now(timezone.utc)
        config = self.collection.find_one_and_update(
            {"category_key": category_key},
            {
                "$set": {"category_key": category_key, "featured_spec_keys": keys, "updated_at": now},
                "$setOnInsert": {"created_at": now},
            },
            upsert=True,
            return_document=ReturnDocument.AFTER,
        )
        state = featured_state(category_key, config)
        logger.info("Featured specs for %s set to %s (%s)", category_key, keys, state["mode"])
        return state

    def delete_featured_specs(self, category_key: str) -> Dict[str, Any]:
        """Remove the row, reverting the category to ``default_all``.

        Returns the deleted configuration's state.
        """
        removed = self.collection.find_one_and_delete({"category_key": category_key})
        if not removed:
            raise NotFoundError("Configuration not found", code="CONFIG_NOT_FOUND")
        logger.info("Featured specs for %s deleted, reverted to default_all", category_key)
        return featured_state(category_key, removed)
