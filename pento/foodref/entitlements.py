"""Quota and feature gate for costly operations."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from .errors import EntitlementMissing, ErrorKind, QuotaExceeded
from .interfaces import EntitlementStore

logger = logging.getLogger(__name__)


@dataclass
class GateDecision:
    allowed: bool
    reason: str = ""
    kind: ErrorKind | None = None


class EntitlementGate:
    """Checks a per-user feature allowance before work starts.

    Usage is committed separately, only once the gated operation has fully
    succeeded. A null quota means unlimited, but usage is still counted.
    """

    def __init__(self, store: EntitlementStore) -> None:
        self._store = store

    def check_and_reserve(self, actor_id: str, feature_code: str) -> GateDecision:
        if not actor_id:
            return GateDecision(
                allowed=False,
                reason="User context is required",
                kind=ErrorKind.ENTITLEMENT_MISSING,
            )

        entitlement = self._store.find_entitlement(actor_id, feature_code)
        if entitlement is None:
            return GateDecision(
                allowed=False,
                reason=f"Feature {feature_code} not available for this user",
                kind=ErrorKind.ENTITLEMENT_MISSING,
            )

        quota = entitlement.quota
        if quota is not None and entitlement.usage_count >= quota:
            return GateDecision(
                allowed=False,
                reason=(
                    f"Quota exceeded for feature {feature_code}. "
                    f"Usage: {entitlement.usage_count}/{quota}"
                ),
                kind=ErrorKind.QUOTA_EXCEEDED,
            )

        return GateDecision(allowed=True)

    def require(self, actor_id: str, feature_code: str) -> None:
        """Like check_and_reserve, but raises on denial.

        Raises:
            EntitlementMissing: No entitlement (or no actor).
            QuotaExceeded: The quota has been reached.
        """
        decision = self.check_and_reserve(actor_id, feature_code)
        if decision.allowed:
            return
        if decision.kind is ErrorKind.QUOTA_EXCEEDED:
            raise QuotaExceeded(decision.reason)
        raise EntitlementMissing(decision.reason)

    def commit(self, actor_id: str, feature_code: str) -> None:
        self._store.increment_usage(actor_id, feature_code)
        logger.info("Usage committed for %s on %s", actor_id, feature_code)
