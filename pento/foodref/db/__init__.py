"""SQLite storage for the food reference catalog and user entitlements."""

from .entitlements import Entitlement, EntitlementDB
from .references import CatalogDB
from .schema import ensure_schema

__all__ = [
    "CatalogDB",
    "Entitlement",
    "EntitlementDB",
    "ensure_schema",
]
