"""Tests for raw record normalization and product extraction."""

import pytest

from pento.foodref.errors import UpstreamUnavailable
from pento.foodref.models import FoodGroup, Source, UnitType
from pento.foodref.normalizer import (
    UNKNOWN_PRODUCT,
    best_image_url,
    extract_product_info,
    normalize,
    normalize_batch,
    product_name,
)


def _record(name, group="FruitsVegetables", unit="Weight", **extra):
    record = {
        "name": name,
        "foodGroup": group,
        "notes": f"Fresh {name.lower()}",
        "typicalShelfLifeDays_Pantry": 5,
        "typicalShelfLifeDays_Fridge": 14,
        "typicalShelfLifeDays_Freezer": 0,
        "unitType": unit,
    }
    record.update(extra)
    return record


class TestNormalize:
    def test_fields_mapped(self):
        item = normalize(Source.VISION, _record("Apple"))
        assert item.name == "Apple"
        assert item.food_group is FoodGroup.FRUITS_VEGETABLES
        assert item.unit_type is UnitType.WEIGHT
        assert item.notes == "Fresh apple"
        assert item.shelf_life_pantry_days == 5
        assert item.shelf_life_fridge_days == 14
        assert item.shelf_life_freezer_days == 0
        assert item.barcode is None
        assert item.image_url is None

    def test_mixed_dishes_forced_to_count(self):
        item = normalize(Source.VISION, _record("Lasagna", "MixedDishes", "Weight"))
        assert item.unit_type is UnitType.COUNT

    def test_name_whitespace_collapsed(self):
        item = normalize(Source.RECEIPT, _record("  Whole   Milk "))
        assert item.name == "Whole Milk"

    def test_missing_notes_and_shelf_life_default(self):
        item = normalize(
            Source.RECEIPT,
            {"name": "Rice", "foodGroup": "CerealGrainsPasta", "unitType": "Weight",
             "notes": None},
        )
        assert item.notes == ""
        assert item.shelf_life_pantry_days == 0

    def test_barcode_context_attached(self):
        item = normalize(
            Source.BARCODE,
            _record("Cola", "Beverages", "Volume"),
            barcode="5449000000996",
            image_url="https://img/cola.jpg",
            brand="Coca-Cola",
        )
        assert item.barcode == "5449000000996"
        assert item.image_url == "https://img/cola.jpg"
        assert item.brand == "Coca-Cola"

    @pytest.mark.parametrize(
        "record",
        [
            _record("Apple", group="Fruit"),
            _record("Apple", unit="Kilogram"),
            _record("Apple", typicalShelfLifeDays_Fridge=-3),
            _record("   "),
            {"foodGroup": "Dairy", "unitType": "Volume"},
            "Apple",
        ],
    )
    def test_malformed_records_rejected(self, record):
        with pytest.raises(UpstreamUnavailable, match="Malformed vision record"):
            normalize(Source.VISION, record)


class TestNormalizeBatch:
    def test_none_is_empty(self):
        assert normalize_batch(Source.VISION, None) == []

    def test_single_object_is_one_item(self):
        items = normalize_batch(Source.VISION, _record("Apple"))
        assert [i.name for i in items] == ["Apple"]

    def test_vision_truncated_to_five(self):
        payload = [_record(f"Item {i}") for i in range(7)]
        items = normalize_batch(Source.VISION, payload)
        assert len(items) == 5
        assert items[-1].name == "Item 4"

    def test_receipt_truncated_to_ten(self):
        payload = [_record(f"Item {i}") for i in range(14)]
        assert len(normalize_batch(Source.RECEIPT, payload)) == 10

    def test_explicit_limit(self):
        payload = [_record(f"Item {i}") for i in range(4)]
        assert len(normalize_batch(Source.VISION, payload, limit=2)) == 2

    def test_malformed_item_fails_batch(self):
        payload = [_record("Apple"), {"name": "Broken"}]
        with pytest.raises(UpstreamUnavailable):
            normalize_batch(Source.RECEIPT, payload)

    def test_items_beyond_limit_not_validated(self):
        payload = [_record(f"Item {i}") for i in range(5)] + [{"broken": True}]
        assert len(normalize_batch(Source.VISION, payload)) == 5


class TestProductName:
    def test_first_localized_name_wins(self):
        product = {"product_name": "", "product_name_en": "Oat Drink",
                   "generic_name": "Drink"}
        assert product_name(product) == "Oat Drink"

    def test_brand_and_first_category(self):
        product = {"brands": "Oatly", "categories": "Plant milks, Beverages"}
        assert product_name(product) == "Oatly Plant milks"

    def test_keywords(self):
        product = {"_keywords": ["oat", "drink", "organic", "vegan"]}
        assert product_name(product) == "oat drink organic"

    def test_unknown(self):
        assert product_name({}) == UNKNOWN_PRODUCT


class TestExtractProductInfo:
    def test_best_image_order(self):
        product = {"image_small_url": "small", "image_url": "main"}
        assert best_image_url(product) == "main"
        assert best_image_url({}) is None

    def test_tags_cleaned_and_deduped(self):
        product = {
            "product_name": "Nutella",
            "brands": "Ferrero",
            "categories": "Spreads",
            "categories_tags": ["en:spreads", "en:sweet-spreads"],
            "labels_tags": ["en:palm-oil"],
            "food_groups_tags": ["en:sugary-snacks"],
            "quantity": "400 g",
            "ingredients_text": "Sugar, palm oil, hazelnuts",
            "_keywords": ["nutella", "ferrero"],
            "image_front_url": "https://img/front.jpg",
        }
        info = extract_product_info(product)
        assert info.name == "Nutella"
        assert info.brand == "Ferrero"
        assert info.categories == ["Spreads", "spreads", "sweet spreads"]
        assert info.labels == ["palm oil"]
        assert info.food_group_hints == ["sugary snacks"]
        assert info.quantity == "400 g"
        assert info.ingredients == "Sugar, palm oil, hazelnuts"
        assert info.keywords == ["nutella", "ferrero"]
        assert info.image_url == "https://img/front.jpg"

    def test_prompt_dict_excludes_image(self):
        info = extract_product_info({"product_name": "Tea", "image_url": "x"})
        data = info.to_prompt_dict()
        assert data["name"] == "Tea"
        assert "imageUrl" not in data
        assert "image_url" not in data
