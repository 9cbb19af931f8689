"""Tests for the keyword-rule food group classifier."""

import pytest

from pento.foodref.heuristics import (
    SHELF_LIFE_DEFAULTS,
    classify_product,
    guess_food_group,
)
from pento.foodref.models import ExtractedProductInfo, FoodGroup, Source, UnitType
from pento.foodref.normalizer import normalize


@pytest.mark.parametrize(
    "text, expected",
    [
        ("Chicken breast fillets", FoodGroup.MEAT),
        ("Atlantic Salmon", FoodGroup.SEAFOOD),
        ("Granny Smith apples", FoodGroup.FRUITS_VEGETABLES),
        ("Semi-skimmed milk", FoodGroup.DAIRY),
        ("Wholemeal bread", FoodGroup.CEREAL_GRAINS_PASTA),
        ("Penne Rigate", FoodGroup.CEREAL_GRAINS_PASTA),
        ("Fusilli integrali", FoodGroup.CEREAL_GRAINS_PASTA),
        ("Red lentils", FoodGroup.LEGUMES_NUTS_SEEDS),
        ("Extra virgin olive oil", FoodGroup.FATS_OILS),
        ("Dark chocolate", FoodGroup.CONFECTIONERY),
        ("Orange juice", FoodGroup.BEVERAGES),
        ("Tomato ketchup", FoodGroup.CONDIMENTS),
        ("Frozen pizza", FoodGroup.MIXED_DISHES),
    ],
)
def test_guess_food_group(text, expected):
    assert guess_food_group(text) is expected


def test_unmatched_text_defaults_to_mixed_dishes():
    assert guess_food_group("Mystery item", "") is FoodGroup.MIXED_DISHES


def test_earlier_text_wins():
    assert guess_food_group("Cheddar", "Snacks, beverages") is FoodGroup.DAIRY


def test_every_group_has_defaults():
    assert set(SHELF_LIFE_DEFAULTS) == set(FoodGroup)
    assert SHELF_LIFE_DEFAULTS[FoodGroup.MIXED_DISHES][3] is UnitType.COUNT


def test_classify_product_record_decodes():
    info = ExtractedProductInfo(
        name="Greek Yogurt",
        brand="Fage",
        categories=["Dairies", "Yogurts"],
        quantity="500 g",
        labels=["high protein"],
    )
    record = classify_product(info)

    assert record["foodGroup"] == "Dairy"
    assert record["notes"] == "Brand: Fage; Quantity: 500 g; Labels: high protein"

    item = normalize(Source.BARCODE, record, brand=info.brand)
    assert item.food_group is FoodGroup.DAIRY
    assert item.unit_type is UnitType.VOLUME
    assert item.shelf_life_fridge_days == 10


def test_classify_product_uses_categories():
    info = ExtractedProductInfo(name="Heinz", categories=["Sauces", "Ketchup"])
    assert classify_product(info)["foodGroup"] == "Condiments"
