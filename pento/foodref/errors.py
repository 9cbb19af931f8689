"""Error taxonomy for the food reference ingestion engine."""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    CONFIGURATION = "configuration"
    UPSTREAM = "upstream_unavailable"
    NOT_FOUND = "not_found"
    ENTITLEMENT_MISSING = "entitlement_missing"
    QUOTA_EXCEEDED = "quota_exceeded"
    PERSISTENCE_FAILURE = "persistence_failure"
    NO_ITEMS = "no_items"


class FoodRefError(Exception):
    """Base exception for ingestion failures."""

    kind: ErrorKind = ErrorKind.UPSTREAM


class ConfigurationError(FoodRefError):
    """Raised when a required collaborator has no credentials configured."""

    kind = ErrorKind.CONFIGURATION


class UpstreamUnavailable(FoodRefError):
    """Raised when a collaborator call fails or returns malformed content."""

    kind = ErrorKind.UPSTREAM


class NotFoundError(FoodRefError):
    """Raised when no external product record exists."""

    kind = ErrorKind.NOT_FOUND


class EntitlementMissing(FoodRefError):
    """Raised when an actor has no entitlement for a feature."""

    kind = ErrorKind.ENTITLEMENT_MISSING


class QuotaExceeded(FoodRefError):
    """Raised when an actor's usage has reached the feature quota."""

    kind = ErrorKind.QUOTA_EXCEEDED


class PersistenceFailure(FoodRefError):
    """Raised when a catalog write fails. Nothing is assumed committed."""

    kind = ErrorKind.PERSISTENCE_FAILURE
