"""Food reference catalog storage."""

from __future__ import annotations

import logging
import sqlite3
from datetime import datetime, timezone
from pathlib import Path

from ..errors import PersistenceFailure
from ..models import FoodGroup, FoodReference, UnitType, enforce_unit_rule
from .schema import ensure_schema

logger = logging.getLogger(__name__)

_COLUMNS = (
    "id, name, food_group, unit_type, shelf_life_pantry_days, "
    "shelf_life_fridge_days, shelf_life_freezer_days, barcode, brand, "
    "image_url, source_tag, is_deleted, created_at, updated_at"
)


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%f")[:-3] + "Z"


def _row_to_reference(row: sqlite3.Row) -> FoodReference:
    return FoodReference(
        id=row["id"],
        name=row["name"],
        food_group=FoodGroup(row["food_group"]),
        unit_type=UnitType(row["unit_type"]),
        shelf_life_pantry_days=row["shelf_life_pantry_days"],
        shelf_life_fridge_days=row["shelf_life_fridge_days"],
        shelf_life_freezer_days=row["shelf_life_freezer_days"],
        barcode=row["barcode"],
        brand=row["brand"],
        image_url=row["image_url"],
        source_tag=row["source_tag"],
        is_deleted=bool(row["is_deleted"]),
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


class CatalogDB:
    """Manages the food_references table.

    Rows are never physically deleted; soft_delete only flips is_deleted.
    """

    def __init__(self, db_path: str | Path = "~/.config/pento/foodref.db") -> None:
        self._db_path = db_path
        self._conn: sqlite3.Connection | None = None

    def _get_conn(self) -> sqlite3.Connection:
        if self._conn is None:
            self._conn = ensure_schema(self._db_path)
        return self._conn

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def _fetch(self, what: str, sql: str, params: tuple = ()) -> list[sqlite3.Row]:
        try:
            return self._get_conn().execute(sql, params).fetchall()
        except sqlite3.Error as e:
            raise PersistenceFailure(f"Failed to read {what}: {e}") from e

    def find_by_id(self, reference_id: str) -> FoodReference | None:
        """Return a non-deleted reference by ID."""
        rows = self._fetch(
            f"food reference {reference_id}",
            f"SELECT {_COLUMNS} FROM food_references WHERE id = ? AND is_deleted = 0",
            (reference_id,),
        )
        return _row_to_reference(rows[0]) if rows else None

    def find_by_barcode(self, barcode: str) -> FoodReference | None:
        """Return the non-deleted reference carrying this exact barcode."""
        rows = self._fetch(
            f"food reference for barcode {barcode}",
            f"SELECT {_COLUMNS} FROM food_references "
            "WHERE barcode = ? AND is_deleted = 0",
            (barcode,),
        )
        return _row_to_reference(rows[0]) if rows else None

    def find_all_non_deleted(self) -> list[FoodReference]:
        """Snapshot of every live reference, used to build the match index.

        Raises:
            PersistenceFailure: If the catalog cannot be read.
        """
        rows = self._fetch(
            "food references",
            f"SELECT {_COLUMNS} FROM food_references WHERE is_deleted = 0",
        )
        return [_row_to_reference(r) for r in rows]

    def bulk_insert(self, references: list[FoodReference]) -> list[str]:
        """Insert all references in a single transaction.

        Returns:
            The inserted IDs, in input order.

        Raises:
            PersistenceFailure: If the insert fails. Nothing is written.
        """
        if not references:
            return []

        now = utc_timestamp()
        params = [
            (
                ref.id,
                ref.name,
                ref.food_group.value,
                enforce_unit_rule(ref.food_group, ref.unit_type).value,
                ref.shelf_life_pantry_days,
                ref.shelf_life_fridge_days,
                ref.shelf_life_freezer_days,
                ref.barcode,
                ref.brand,
                ref.image_url,
                ref.source_tag,
                ref.created_at or now,
                ref.updated_at or now,
            )
            for ref in references
        ]

        try:
            conn = self._get_conn()
            with conn:
                conn.executemany(
                    """INSERT INTO food_references
                       (id, name, food_group, unit_type,
                        shelf_life_pantry_days, shelf_life_fridge_days,
                        shelf_life_freezer_days, barcode, brand, image_url,
                        source_tag, is_deleted, created_at, updated_at)
                       VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, 0, ?, ?)""",
                    params,
                )
        except sqlite3.Error as e:
            raise PersistenceFailure(
                f"Failed to create {len(references)} food references: {e}"
            ) from e

        return [ref.id for ref in references]

    def list_references(self, sort: str = "alpha") -> list[FoodReference]:
        """Return live references sorted by name or newest first."""
        order = "created_at DESC" if sort == "newest" else "name COLLATE NOCASE ASC"
        rows = self._fetch(
            "food references",
            f"SELECT {_COLUMNS} FROM food_references WHERE is_deleted = 0 ORDER BY {order}",
        )
        return [_row_to_reference(r) for r in rows]

    def search(self, query: str, limit: int = 50) -> list[FoodReference]:
        """Case-insensitive substring search over name, barcode and brand."""
        pattern = f"%{query.lower()}%"
        rows = self._fetch(
            f"food references matching {query!r}",
            f"""SELECT {_COLUMNS} FROM food_references
                WHERE is_deleted = 0
                  AND (LOWER(name) LIKE ?
                       OR LOWER(COALESCE(barcode, '')) LIKE ?
                       OR LOWER(COALESCE(brand, '')) LIKE ?)
                ORDER BY name COLLATE NOCASE ASC
                LIMIT ?""",
            (pattern, pattern, pattern, limit),
        )
        return [_row_to_reference(r) for r in rows]

    def soft_delete(self, reference_id: str) -> bool:
        """Flag a reference as deleted. Returns False if it was not live."""
        try:
            conn = self._get_conn()
            with conn:
                cur = conn.execute(
                    """UPDATE food_references
                       SET is_deleted = 1, updated_at = ?
                       WHERE id = ? AND is_deleted = 0""",
                    (utc_timestamp(), reference_id),
                )
        except sqlite3.Error as e:
            raise PersistenceFailure(
                f"Failed to delete food reference {reference_id}: {e}"
            ) from e
        return cur.rowcount > 0
