"""Reconcile observations against the catalog: reuse an entry or plan a new one."""

from __future__ import annotations

import logging
import uuid

from .index import CatalogIndex, normalize_name
from .interfaces import CatalogStore
from .models import (
    FoodReference,
    ObservedItem,
    PendingCreate,
    ResolvedItem,
    enforce_unit_rule,
)

logger = logging.getLogger(__name__)


def _from_reference(
    ref: FoodReference,
    notes: str,
    fallback_image: str | None,
    barcode: str | None = None,
) -> ResolvedItem:
    # Catalog row is the source of truth for everything but the notes.
    return ResolvedItem(
        name=ref.name,
        food_group=ref.food_group,
        unit_type=enforce_unit_rule(ref.food_group, ref.unit_type),
        notes=notes,
        shelf_life_pantry_days=ref.shelf_life_pantry_days,
        shelf_life_fridge_days=ref.shelf_life_fridge_days,
        shelf_life_freezer_days=ref.shelf_life_freezer_days,
        reference_id=ref.id,
        is_existing_reference=True,
        image_url=ref.image_url or fallback_image,
        barcode=barcode or ref.barcode,
    )


class Resolver:
    """Decides reuse-vs-create for each ObservedItem.

    Absence of a match is a normal return value (a PendingCreate), never an
    exception.
    """

    def __init__(self, catalog: CatalogStore) -> None:
        self._catalog = catalog

    def resolve(
        self, item: ObservedItem, index: CatalogIndex
    ) -> ResolvedItem | PendingCreate:
        """Fuzzy-match a name-only observation, or plan a new entry.

        A barcoded observation that reached here missed the exact-barcode
        lookup, so it always gets its own entry keyed by that barcode.
        """
        match = None if item.barcode else index.search(normalize_name(item.name))
        if match is not None:
            existing = self._catalog.find_by_id(match.reference_id)
            if existing is not None:
                logger.debug(
                    "Matched %r to %r (score %.3f)", item.name, existing.name, match.score
                )
                return _from_reference(existing, item.notes, item.image_url)
            logger.info(
                "Matched reference %s is gone, creating a new one", match.reference_id
            )

        return PendingCreate(
            reference_id=str(uuid.uuid4()),
            item=item,
            image_url=item.image_url,
        )

    def resolve_barcode(self, barcode: str) -> ResolvedItem | None:
        """Exact barcode lookup. A hit always wins over fuzzy name matching."""
        existing = self._catalog.find_by_barcode(barcode)
        if existing is None:
            return None
        notes = f"Brand: {existing.brand}" if existing.brand else ""
        return _from_reference(existing, notes, None, barcode=barcode)
