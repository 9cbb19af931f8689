"""Food reference ingestion engine.

Turns photos, grocery receipts and product barcodes into entries of a shared
food catalog, reusing near-duplicate entries instead of creating new ones.
"""

from .config import FoodRefConfig, load_config
from .entitlements import EntitlementGate, GateDecision
from .errors import (
    ConfigurationError,
    EntitlementMissing,
    ErrorKind,
    FoodRefError,
    NotFoundError,
    PersistenceFailure,
    QuotaExceeded,
    UpstreamUnavailable,
)
from .index import CatalogIndex
from .models import (
    FoodGroup,
    FoodReference,
    IngestResult,
    ObservedItem,
    PendingCreate,
    ResolvedItem,
    Source,
    UnitType,
)
from .orchestrator import IngestOrchestrator, build_orchestrator
from .resolver import Resolver

__all__ = [
    "CatalogIndex",
    "ConfigurationError",
    "EntitlementGate",
    "EntitlementMissing",
    "ErrorKind",
    "FoodGroup",
    "FoodRefConfig",
    "FoodRefError",
    "FoodReference",
    "GateDecision",
    "IngestOrchestrator",
    "IngestResult",
    "NotFoundError",
    "ObservedItem",
    "PendingCreate",
    "PersistenceFailure",
    "QuotaExceeded",
    "ResolvedItem",
    "Resolver",
    "Source",
    "UnitType",
    "UpstreamUnavailable",
    "build_orchestrator",
    "load_config",
]
