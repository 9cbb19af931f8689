"""Keyword-rule food group classifier used when AI normalization is unavailable."""

from __future__ import annotations

import re

from .models import ExtractedProductInfo, FoodGroup, UnitType

# Ordered: the first matching rule wins.
_GROUP_RULES: list[tuple[FoodGroup, re.Pattern[str]]] = [
    (
        FoodGroup.MIXED_DISHES,
        re.compile(
            r"\b(pizzas?|lasagnas?|lasagne|sandwich(es)?|burgers?|soups?|curr(y|ies)|"
            r"stews?|ready[ -]meals?|prepared meals?|dumplings?|sushi|burritos?|"
            r"tacos?|quiches?|pies?)\b"
        ),
    ),
    (
        FoodGroup.BEVERAGES,
        re.compile(
            r"\b(juices?|sodas?|colas?|waters?|teas?|coffees?|beverages?|drinks?|"
            r"lemonades?|smoothies?|beers?|wines?|nectars?)\b"
        ),
    ),
    (
        FoodGroup.CONFECTIONERY,
        re.compile(
            r"\b(chocolates?|cand(y|ies)|confectioner(y|ies)|biscuits?|cookies?|"
            r"cakes?|ice[ -]creams?|sweets|gums?|desserts?|wafers?|pastr(y|ies))\b"
        ),
    ),
    (
        FoodGroup.FATS_OILS,
        re.compile(r"\b(oils?|margarines?|lard|ghee|fats?|shortening)\b"),
    ),
    (
        FoodGroup.CONDIMENTS,
        re.compile(
            r"\b(sauces?|ketchup|mustards?|mayonnaise|mayo|dressings?|vinegars?|"
            r"spices?|salt|seasonings?|condiments?|jams?|honey|syrups?|relish)\b"
        ),
    ),
    (
        FoodGroup.LEGUMES_NUTS_SEEDS,
        re.compile(
            r"\b(beans?|lentils?|chickpeas?|peas|nuts?|almonds?|peanuts?|"
            r"cashews?|walnuts?|seeds?|tofu|soy|soya|hummus|legumes?)\b"
        ),
    ),
    (
        FoodGroup.DAIRY,
        re.compile(
            r"\b(milks?|cheeses?|yogh?urts?|butter|creams?|dairy|kefir|"
            r"mozzarella|cheddar)\b"
        ),
    ),
    (
        FoodGroup.MEAT,
        re.compile(
            r"\b(beef|pork|chicken|turkey|lamb|ham|bacon|sausages?|salami|"
            r"meats?|veal|duck|mince)\b"
        ),
    ),
    (
        FoodGroup.SEAFOOD,
        re.compile(
            r"\b(fish|salmon|tuna|shrimps?|prawns?|cod|sardines?|mackerel|"
            r"seafoods?|crabs?|mussels?|squid)\b"
        ),
    ),
    (
        FoodGroup.CEREAL_GRAINS_PASTA,
        re.compile(
            r"\b(breads?|pasta|rice|cereals?|oats?|oatmeal|flours?|noodles?|"
            r"grains?|wheat|spaghetti|crackers?|tortillas?|bagels?|muesli|"
            r"macaroni|penne|fusilli|rigatoni|farfalle|linguine|tagliatelle|"
            r"fettuccine|couscous)\b"
        ),
    ),
    (
        FoodGroup.FRUITS_VEGETABLES,
        re.compile(
            r"\b(apples?|bananas?|oranges?|tomato(es)?|potato(es)?|carrots?|"
            r"onions?|lettuces?|spinach|fruits?|vegetables?|berr(y|ies)|grapes?|"
            r"lemons?|avocados?|broccoli|cucumbers?|peppers?|mushrooms?)\b"
        ),
    ),
]

# (pantry, fridge, freezer) days and the usual unit for each group.
SHELF_LIFE_DEFAULTS: dict[FoodGroup, tuple[int, int, int, UnitType]] = {
    FoodGroup.MEAT: (0, 3, 180, UnitType.WEIGHT),
    FoodGroup.SEAFOOD: (0, 2, 180, UnitType.WEIGHT),
    FoodGroup.FRUITS_VEGETABLES: (5, 10, 240, UnitType.WEIGHT),
    FoodGroup.DAIRY: (0, 10, 90, UnitType.VOLUME),
    FoodGroup.CEREAL_GRAINS_PASTA: (365, 7, 180, UnitType.WEIGHT),
    FoodGroup.LEGUMES_NUTS_SEEDS: (365, 30, 365, UnitType.WEIGHT),
    FoodGroup.FATS_OILS: (365, 180, 365, UnitType.VOLUME),
    FoodGroup.CONFECTIONERY: (180, 60, 365, UnitType.COUNT),
    FoodGroup.BEVERAGES: (270, 7, 0, UnitType.VOLUME),
    FoodGroup.CONDIMENTS: (730, 180, 0, UnitType.VOLUME),
    FoodGroup.MIXED_DISHES: (0, 3, 90, UnitType.COUNT),
}


def _normalize_text(value: str) -> str:
    return " ".join(value.lower().strip().split())


def guess_food_group(*texts: str) -> FoodGroup:
    """Guess a food group from free text.

    Each text is checked against all rules before moving on to the next, so
    callers should pass the most specific text (the product name) first.
    """
    for text in texts:
        normalized = _normalize_text(text or "")
        if not normalized:
            continue
        for group, pattern in _GROUP_RULES:
            if pattern.search(normalized):
                return group
    return FoodGroup.MIXED_DISHES


def classify_product(info: ExtractedProductInfo) -> dict:
    """Build a raw item record for a product without asking the AI backend.

    The record has the same shape as an AI response so it goes through the
    normal decoding path.
    """
    group = guess_food_group(
        info.name,
        " ".join(info.categories),
        " ".join(info.food_group_hints),
        " ".join(info.keywords),
    )
    pantry, fridge, freezer, unit = SHELF_LIFE_DEFAULTS[group]

    notes: list[str] = []
    if info.brand:
        notes.append(f"Brand: {info.brand}")
    if info.quantity:
        notes.append(f"Quantity: {info.quantity}")
    if info.labels:
        notes.append(f"Labels: {', '.join(info.labels[:3])}")

    return {
        "name": info.name,
        "foodGroup": group.value,
        "notes": "; ".join(notes),
        "typicalShelfLifeDays_Pantry": pantry,
        "typicalShelfLifeDays_Fridge": fridge,
        "typicalShelfLifeDays_Freezer": freezer,
        "unitType": unit.value,
    }
