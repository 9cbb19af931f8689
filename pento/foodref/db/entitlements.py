"""Per-user feature entitlement storage."""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass
from pathlib import Path

from ..errors import PersistenceFailure
from .schema import ensure_schema


@dataclass
class Entitlement:
    user_id: str
    feature_code: str
    quota: int | None  # None = unlimited
    usage_count: int = 0


class EntitlementDB:
    """Manages the user_entitlements table.

    sqlite3 errors surface as PersistenceFailure.
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

    def find_entitlement(self, user_id: str, feature_code: str) -> Entitlement | None:
        try:
            row = self._get_conn().execute(
                """SELECT user_id, feature_code, quota, usage_count
                   FROM user_entitlements
                   WHERE user_id = ? AND feature_code = ?""",
                (user_id, feature_code),
            ).fetchone()
        except sqlite3.Error as e:
            raise PersistenceFailure(
                f"Failed to read entitlement {feature_code} for {user_id}: {e}"
            ) from e
        if row is None:
            return None
        return Entitlement(
            user_id=row["user_id"],
            feature_code=row["feature_code"],
            quota=row["quota"],
            usage_count=row["usage_count"],
        )

    def increment_usage(self, user_id: str, feature_code: str) -> None:
        """Add one to usage_count, regardless of quota."""
        try:
            conn = self._get_conn()
            with conn:
                conn.execute(
                    """UPDATE user_entitlements
                       SET usage_count = usage_count + 1
                       WHERE user_id = ? AND feature_code = ?""",
                    (user_id, feature_code),
                )
        except sqlite3.Error as e:
            raise PersistenceFailure(
                f"Failed to record usage of {feature_code} for {user_id}: {e}"
            ) from e

    def grant(
        self,
        user_id: str,
        feature_code: str,
        quota: int | None = None,
        usage_count: int = 0,
    ) -> None:
        """Create or replace an entitlement."""
        try:
            conn = self._get_conn()
            with conn:
                conn.execute(
                    """INSERT INTO user_entitlements
                       (user_id, feature_code, quota, usage_count)
                       VALUES (?, ?, ?, ?)
                       ON CONFLICT(user_id, feature_code) DO UPDATE SET
                         quota=excluded.quota,
                         usage_count=excluded.usage_count""",
                    (user_id, feature_code, quota, usage_count),
                )
        except sqlite3.Error as e:
            raise PersistenceFailure(
                f"Failed to grant {feature_code} to {user_id}: {e}"
            ) from e
