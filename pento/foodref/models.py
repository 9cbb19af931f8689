"""Data types shared by the normalizer, resolver and orchestrator."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from .errors import ErrorKind


class FoodGroup(str, Enum):
    MEAT = "Meat"
    SEAFOOD = "Seafood"
    FRUITS_VEGETABLES = "FruitsVegetables"
    DAIRY = "Dairy"
    CEREAL_GRAINS_PASTA = "CerealGrainsPasta"
    LEGUMES_NUTS_SEEDS = "LegumesNutsSeeds"
    FATS_OILS = "FatsOils"
    CONFECTIONERY = "Confectionery"
    BEVERAGES = "Beverages"
    CONDIMENTS = "Condiments"
    MIXED_DISHES = "MixedDishes"


class UnitType(str, Enum):
    WEIGHT = "Weight"
    COUNT = "Count"
    VOLUME = "Volume"


class Source(str, Enum):
    """Where a batch of observations came from."""

    VISION = "vision"
    RECEIPT = "receipt"
    BARCODE = "barcode"


FOOD_GROUP_CHOICES = ", ".join(g.value for g in FoodGroup)
UNIT_TYPE_CHOICES = ", ".join(u.value for u in UnitType)


def enforce_unit_rule(food_group: FoodGroup, unit_type: UnitType) -> UnitType:
    """Mixed dishes are always counted, whatever the source said."""
    if food_group is FoodGroup.MIXED_DISHES:
        return UnitType.COUNT
    return unit_type


@dataclass
class FoodReference:
    """A durable catalog entry."""

    id: str
    name: str
    food_group: FoodGroup
    unit_type: UnitType
    shelf_life_pantry_days: int = 0
    shelf_life_fridge_days: int = 0
    shelf_life_freezer_days: int = 0
    barcode: str | None = None
    brand: str | None = None
    image_url: str | None = None
    source_tag: str | None = None  # AI-SCAN-... / BARCODE-...
    is_deleted: bool = False
    created_at: str = ""
    updated_at: str = ""


@dataclass
class ObservedItem:
    """One normalized observation, not yet reconciled with the catalog."""

    name: str
    food_group: FoodGroup
    unit_type: UnitType
    notes: str = ""
    shelf_life_pantry_days: int = 0
    shelf_life_fridge_days: int = 0
    shelf_life_freezer_days: int = 0
    barcode: str | None = None
    image_url: str | None = None
    brand: str | None = None


@dataclass
class ResolvedItem:
    """Display payload returned to the caller for one observation."""

    name: str
    food_group: FoodGroup
    unit_type: UnitType
    notes: str
    shelf_life_pantry_days: int
    shelf_life_fridge_days: int
    shelf_life_freezer_days: int
    reference_id: str
    is_existing_reference: bool
    image_url: str | None = None
    barcode: str | None = None

    def to_dict(self) -> dict:
        data = {
            "name": self.name,
            "foodGroup": self.food_group.value,
            "notes": self.notes,
            "typicalShelfLifeDays_Pantry": self.shelf_life_pantry_days,
            "typicalShelfLifeDays_Fridge": self.shelf_life_fridge_days,
            "typicalShelfLifeDays_Freezer": self.shelf_life_freezer_days,
            "unitType": self.unit_type.value,
            "imageUrl": self.image_url,
            "referenceId": self.reference_id,
            "isExistingReference": self.is_existing_reference,
        }
        if self.barcode:
            data["barcode"] = self.barcode
        return data


@dataclass
class PendingCreate:
    """An observation that matched nothing and awaits bulk insertion."""

    reference_id: str
    item: ObservedItem
    image_url: str | None = None

    def to_resolved(self) -> ResolvedItem:
        return ResolvedItem(
            name=self.item.name,
            food_group=self.item.food_group,
            unit_type=enforce_unit_rule(self.item.food_group, self.item.unit_type),
            notes=self.item.notes,
            shelf_life_pantry_days=self.item.shelf_life_pantry_days,
            shelf_life_fridge_days=self.item.shelf_life_fridge_days,
            shelf_life_freezer_days=self.item.shelf_life_freezer_days,
            reference_id=self.reference_id,
            is_existing_reference=False,
            image_url=self.image_url,
            barcode=self.item.barcode,
        )


@dataclass
class ExtractedProductInfo:
    """Product facts pulled out of a barcode lookup payload."""

    name: str
    brand: str | None = None
    categories: list[str] = field(default_factory=list)
    food_group_hints: list[str] = field(default_factory=list)
    quantity: str | None = None
    serving_size: str | None = None
    serving_quantity: float | None = None
    product_quantity: float | None = None
    ingredients: str | None = None
    labels: list[str] = field(default_factory=list)
    packaging: list[str] = field(default_factory=list)
    nutriments: dict | None = None
    nutriscore_grade: str | None = None
    nova_group: int | None = None
    ecoscore_grade: str | None = None
    keywords: list[str] = field(default_factory=list)
    image_url: str | None = None

    def to_prompt_dict(self) -> dict:
        """Fields forwarded to the AI normalizer (image URL excluded)."""
        return {
            "name": self.name,
            "brand": self.brand,
            "categories": self.categories,
            "foodGroupHints": self.food_group_hints,
            "quantity": self.quantity,
            "servingSize": self.serving_size,
            "servingQuantity": self.serving_quantity,
            "productQuantity": self.product_quantity,
            "ingredients": self.ingredients,
            "labels": self.labels,
            "packaging": self.packaging,
            "nutriments": self.nutriments,
            "nutriscoreGrade": self.nutriscore_grade,
            "novaGroup": self.nova_group,
            "ecoscoreGrade": self.ecoscore_grade,
            "keywords": self.keywords,
        }


@dataclass
class IngestFailure:
    kind: ErrorKind
    message: str


@dataclass
class IngestResult:
    """Outcome of one ingestion call."""

    success: bool
    items: list[ResolvedItem] = field(default_factory=list)
    created_ids: list[str] = field(default_factory=list)
    error: IngestFailure | None = None

    @classmethod
    def failed(cls, kind: ErrorKind, message: str) -> IngestResult:
        return cls(success=False, error=IngestFailure(kind=kind, message=message))

    def to_dict(self) -> dict:
        data: dict = {
            "success": self.success,
            "items": [i.to_dict() for i in self.items],
            "createdIds": list(self.created_ids),
        }
        if self.error is not None:
            data["error"] = self.error.message
            data["errorKind"] = self.error.kind.value
        return data
