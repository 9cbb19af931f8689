"""Convert source-specific raw records into canonical ObservedItems.

Everything here is pure: no I/O, no collaborators. Raw AI records are decoded
through a strict schema and rejected when malformed.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .errors import UpstreamUnavailable
from .models import (
    ExtractedProductInfo,
    FoodGroup,
    ObservedItem,
    Source,
    UnitType,
    enforce_unit_rule,
)

MAX_ITEMS: dict[Source, int] = {
    Source.VISION: 5,
    Source.RECEIPT: 10,
    Source.BARCODE: 1,
}

# Localized name fields, in priority order
_NAME_FIELDS: list[str] = [
    "product_name",
    "product_name_en",
    "generic_name",
    "generic_name_en",
    "abbreviated_product_name",
    "product_name_fr",
    "product_name_de",
    "product_name_es",
    "product_name_it",
    "product_name_pt",
    "product_name_nl",
    "product_name_vi",
    "generic_name_fr",
    "generic_name_de",
]

_IMAGE_FIELDS: list[str] = [
    "image_front_url",
    "image_url",
    "image_front_small_url",
    "image_small_url",
]

UNKNOWN_PRODUCT = "Unknown Product"


class RawFoodItem(BaseModel):
    """One food item as described by the recognition backend."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    name: str
    food_group: FoodGroup = Field(alias="foodGroup")
    unit_type: UnitType = Field(alias="unitType")
    notes: str = ""
    shelf_life_pantry_days: int = Field(0, ge=0, alias="typicalShelfLifeDays_Pantry")
    shelf_life_fridge_days: int = Field(0, ge=0, alias="typicalShelfLifeDays_Fridge")
    shelf_life_freezer_days: int = Field(0, ge=0, alias="typicalShelfLifeDays_Freezer")

    @field_validator("name")
    @classmethod
    def _clean_name(cls, value: str) -> str:
        cleaned = " ".join(value.split())
        if not cleaned:
            raise ValueError("name must not be blank")
        return cleaned

    @field_validator("notes", mode="before")
    @classmethod
    def _default_notes(cls, value: Any) -> Any:
        return "" if value is None else value


def _decode(source: Source, record: Any) -> RawFoodItem:
    if not isinstance(record, dict):
        raise UpstreamUnavailable(
            f"Malformed {source.value} record: expected an object, "
            f"got {type(record).__name__}"
        )
    try:
        return RawFoodItem.model_validate(record)
    except ValidationError as e:
        first = e.errors()[0]
        where = ".".join(str(p) for p in first.get("loc", ())) or "record"
        raise UpstreamUnavailable(
            f"Malformed {source.value} record ({where}): {first.get('msg')}"
        ) from e


def normalize(
    source: Source,
    raw_record: Any,
    *,
    barcode: str | None = None,
    image_url: str | None = None,
    brand: str | None = None,
) -> ObservedItem:
    """Normalize a single raw record into an ObservedItem.

    Raises:
        UpstreamUnavailable: If the record does not match the item schema.
    """
    raw = _decode(source, raw_record)
    return ObservedItem(
        name=raw.name,
        food_group=raw.food_group,
        unit_type=enforce_unit_rule(raw.food_group, raw.unit_type),
        notes=raw.notes,
        shelf_life_pantry_days=raw.shelf_life_pantry_days,
        shelf_life_fridge_days=raw.shelf_life_fridge_days,
        shelf_life_freezer_days=raw.shelf_life_freezer_days,
        barcode=barcode or None,
        image_url=image_url or None,
        brand=brand or None,
    )


def normalize_batch(
    source: Source,
    payload: Any,
    *,
    limit: int | None = None,
    barcode: str | None = None,
    image_url: str | None = None,
    brand: str | None = None,
) -> list[ObservedItem]:
    """Normalize a whole upstream response.

    A single object is treated as a list of one; lists are truncated to the
    per-source maximum before decoding.
    """
    if payload is None:
        return []
    records = payload if isinstance(payload, list) else [payload]
    max_items = limit if limit is not None else MAX_ITEMS[source]
    return [
        normalize(source, record, barcode=barcode, image_url=image_url, brand=brand)
        for record in records[:max_items]
    ]


def _split_text(value: Any) -> list[str]:
    if not isinstance(value, str):
        return []
    return [part.strip() for part in value.split(",") if part.strip()]


def _clean_tags(tags: Any) -> list[str]:
    if not isinstance(tags, list):
        return []
    cleaned: list[str] = []
    for tag in tags:
        if not isinstance(tag, str):
            continue
        if tag.startswith("en:"):
            tag = tag[3:]
        cleaned.append(tag.replace("-", " "))
    return cleaned


def _dedupe(values: list[str]) -> list[str]:
    return list(dict.fromkeys(values))


def product_name(product: dict) -> str:
    """Pick a display name for a product lookup payload."""
    for key in _NAME_FIELDS:
        value = product.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()

    brands = product.get("brands")
    categories = _split_text(product.get("categories"))
    if brands and categories:
        return f"{brands} {categories[0]}"

    keywords = product.get("_keywords") or []
    if keywords:
        return " ".join(str(k) for k in keywords[:3])

    return UNKNOWN_PRODUCT


def best_image_url(product: dict) -> str | None:
    for key in _IMAGE_FIELDS:
        value = product.get(key)
        if value:
            return value
    return None


def extract_product_info(product: dict) -> ExtractedProductInfo:
    """Build the intermediate product structure from a lookup payload."""
    categories = _dedupe(
        _split_text(product.get("categories"))
        + _clean_tags(product.get("categories_tags"))
        + _clean_tags(product.get("categories_hierarchy"))
    )
    hints: list[str] = []
    if product.get("food_groups"):
        hints.append(str(product["food_groups"]))
    hints.extend(_clean_tags(product.get("food_groups_tags")))

    labels = _dedupe(
        _split_text(product.get("labels")) + _clean_tags(product.get("labels_tags"))
    )
    packaging = _dedupe(
        _split_text(product.get("packaging"))
        + _clean_tags(product.get("packaging_tags"))
    )

    return ExtractedProductInfo(
        name=product_name(product),
        brand=product.get("brands") or None,
        categories=categories,
        food_group_hints=hints,
        quantity=product.get("quantity") or None,
        serving_size=product.get("serving_size") or None,
        serving_quantity=product.get("serving_quantity") or None,
        product_quantity=product.get("product_quantity") or None,
        ingredients=product.get("ingredients_text")
        or product.get("ingredients_text_en")
        or None,
        labels=labels,
        packaging=packaging,
        nutriments=product.get("nutriments") or None,
        nutriscore_grade=product.get("nutriscore_grade") or None,
        nova_group=product.get("nova_group") or None,
        ecoscore_grade=product.get("ecoscore_grade") or None,
        keywords=[str(k) for k in product.get("_keywords") or []],
        image_url=best_image_url(product),
    )
