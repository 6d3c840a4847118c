"""Test the featured spec configuration store."""

from unittest.mock import ANY

import pytest

from errors import NotFoundError, ValidationError
from featured_specs import (
    DEFAULT_ALL,
    NONE,
    RESTRICTED,
    FeaturedSpecsStore,
    derive_mode,
    featured_state,
    parse_featured_update,
)


def echo_upsert(filter_doc, update, **kwargs):
    """Mimic find_one_and_update(..., upsert=True, return_document=AFTER)."""
    return dict(update["$set"])


class TestDeriveMode:
    """Test mode derivation from the configuration row."""

    def test_no_row_is_default_all(self):
        assert derive_mode(None) == DEFAULT_ALL

    def test_empty_keys_is_none(self):
        assert derive_mode({"category_key": "gpus", "featured_spec_keys": []}) == NONE

    def test_keys_is_restricted(self):
        assert derive_mode({"category_key": "gpus", "featured_spec_keys": ["Vram"]}) == RESTRICTED

    def test_missing_field_is_none(self):
        assert derive_mode({"category_key": "gpus"}) == NONE

    def test_state_shape(self):
        assert featured_state("gpus", None) == {"categoryKey": "gpus", "featuredSpecKeys": [], "mode": "default_all"}


class TestParseFeaturedUpdate:
    """Test request body validation."""

    def test_valid_body(self):
        assert parse_featured_update({"featuredSpecKeys": ["VRAM"]}) == ["VRAM"]

    @pytest.mark.parametrize(
        "payload",
        [None, [], "VRAM", {}, {"featuredSpecKeys": "VRAM"}, {"featuredSpecKeys": [1, 2]}, {"featuredSpecKeys": None}],
    )
    def test_invalid_bodies(self, payload):
        with pytest.raises(ValidationError) as exc_info:
            parse_featured_update(payload)
        assert exc_info.value.status == 400
        assert exc_info.value.code == "VALIDATION_ERROR"
        assert exc_info.value.details


class TestAvailableSpecKeys:
    """Test listing the spec keys present in a category."""

    def test_unknown_category(self, mock_db):
        mock_db["category"].find_one.return_value = None
        with pytest.raises(NotFoundError) as exc_info:
            FeaturedSpecsStore(mock_db).get_available_spec_keys("nope")
        assert exc_info.value.code == "CATEGORY_NOT_FOUND"
        assert exc_info.value.status == 404

    def test_inconsistent_casing_collapses(self, mock_db, graphics_category):
        mock_db["category"].find_one.return_value = graphics_category
        mock_db["product"].aggregate.return_value = [{"_id": "VRAM"}, {"_id": "Vram"}]

        result = FeaturedSpecsStore(mock_db).get_available_spec_keys("Graphics-Cards")

        assert result == {"categoryKey": "Graphics-Cards", "availableSpecKeys": ["Vram"]}

    def test_sorted_and_empty_keys_dropped(self, mock_db, graphics_category):
        mock_db["category"].find_one.return_value = graphics_category
        mock_db["product"].aggregate.return_value = [
            {"_id": "wattage"},
            {"_id": ""},
            {"_id": "Chipset"},
            {"_id": "boost-clock"},
        ]

        result = FeaturedSpecsStore(mock_db).get_available_spec_keys("Graphics-Cards")

        assert result["availableSpecKeys"] == ["Boost_Clock", "Chipset", "Wattage"]

    def test_scans_active_products_of_category(self, mock_db, graphics_category):
        mock_db["category"].find_one.return_value = graphics_category
        mock_db["product"].aggregate.return_value = []

        FeaturedSpecsStore(mock_db).get_available_spec_keys("Graphics-Cards")

        pipeline = mock_db["product"].aggregate.call_args[0][0]
        assert pipeline[0] == {"$match": {"category_ids": graphics_category["_id"], "is_active": True}}


class TestGetFeaturedSpecs:
    """Test reading a category's configuration."""

    def test_missing_row_is_default_all(self, mock_db):
        mock_db["categoryfeaturedspecs"].find_one.return_value = None

        state = FeaturedSpecsStore(mock_db).get_featured_specs("Graphics-Cards")

        assert state == {"categoryKey": "Graphics-Cards", "featuredSpecKeys": [], "mode": "default_all"}
        mock_db["categoryfeaturedspecs"].find_one.assert_called_once_with({"category_key": "Graphics-Cards"})

    def test_restricted_row(self, mock_db):
        mock_db["categoryfeaturedspecs"].find_one.return_value = {
            "category_key": "Graphics-Cards",
            "featured_spec_keys": ["Vram", "Chipset"],
        }

        state = FeaturedSpecsStore(mock_db).get_featured_specs("Graphics-Cards")

        assert state["mode"] == "restricted"
        assert state["featuredSpecKeys"] == ["Vram", "Chipset"]


class TestUpdateFeaturedSpecs:
    """Test upserting a category's configuration."""

    def test_normalizes_and_dedupes(self, mock_db, graphics_category):
        mock_db["category"].find_one.return_value = graphics_category
        mock_db["categoryfeaturedspecs"].find_one_and_update.side_effect = echo_upsert

        state = FeaturedSpecsStore(mock_db).update_featured_specs(
            "Graphics-Cards", ["VRAM", "v ram", "vram", "chipset", ""]
        )

        assert state == {
            "categoryKey": "Graphics-Cards",
            "featuredSpecKeys": ["Vram", "V_Ram", "Chipset"],
            "mode": "restricted",
        }
        mock_db["categoryfeaturedspecs"].find_one_and_update.assert_called_once_with(
            {"category_key": "Graphics-Cards"},
            ANY,
            upsert=True,
            return_document=ANY,
        )

    def test_empty_list_selects_none_mode(self, mock_db, graphics_category):
        mock_db["category"].find_one.return_value = graphics_category
        mock_db["categoryfeaturedspecs"].find_one_and_update.side_effect = echo_upsert

        state = FeaturedSpecsStore(mock_db).update_featured_specs("Graphics-Cards", [])

        assert state["mode"] == "none"
        assert state["featuredSpecKeys"] == []

    def test_unknown_category(self, mock_db):
        mock_db["category"].find_one.return_value = None
        with pytest.raises(NotFoundError) as exc_info:
            FeaturedSpecsStore(mock_db).update_featured_specs("nope", ["Vram"])
        assert exc_info.value.code == "CATEGORY_NOT_FOUND"
        mock_db["categoryfeaturedspecs"].find_one_and_update.assert_not_called()

    @pytest.mark.parametrize("keys", ["Vram", None, ["Vram", 3], {"Vram": True}])
    def test_rejects_non_string_arrays(self, mock_db, graphics_category, keys):
        mock_db["category"].find_one.return_value = graphics_category
        with pytest.raises(ValidationError):
            FeaturedSpecsStore(mock_db).update_featured_specs("Graphics-Cards", keys)
        mock_db["categoryfeaturedspecs"].find_one_and_update.assert_not_called()


class TestDeleteFeaturedSpecs:
    """Test removing a category's configuration."""

    def test_missing_row(self, mock_db):
        mock_db["categoryfeaturedspecs"].find_one_and_delete.return_value = None
        with pytest.raises(NotFoundError) as exc_info:
            FeaturedSpecsStore(mock_db).delete_featured_specs("Graphics-Cards")
        assert exc_info.value.code == "CONFIG_NOT_FOUND"

    def test_delete_then_get_is_default_all(self, mock_db):
        configs = mock_db["categoryfeaturedspecs"]
        configs.find_one_and_delete.return_value = {
            "category_key": "Graphics-Cards",
            "featured_spec_keys": ["Vram"],
        }
        configs.find_one.return_value = None
        store = FeaturedSpecsStore(mock_db)

        removed = store.delete_featured_specs("Graphics-Cards")
        state = store.get_featured_specs("Graphics-Cards")

        assert removed["featuredSpecKeys"] == ["Vram"]
        assert state == {"categoryKey": "Graphics-Cards", "featuredSpecKeys": [], "mode": "default_all"}
