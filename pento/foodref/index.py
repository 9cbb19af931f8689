"""In-memory fuzzy name index over a catalog snapshot."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable

from rapidfuzz import fuzz, process

from .models import FoodReference

logger = logging.getLogger(__name__)

DEFAULT_THRESHOLD = 0.6


def normalize_name(name: str) -> str:
    return name.strip().lower()


@dataclass(frozen=True)
class IndexEntry:
    reference_id: str
    name: str  # normalized


@dataclass(frozen=True)
class IndexMatch:
    reference_id: str
    name: str
    score: float  # 0.0 = identical, 1.0 = nothing in common


class CatalogIndex:
    """Immutable fuzzy-search structure built from non-deleted catalog rows.

    Scores are normalized edit distances: lower is better. A candidate whose
    score exceeds the threshold does not count as a match. The threshold is
    deliberately permissive, so some near-duplicates get merged in exchange
    for fewer duplicate entries.
    """

    def __init__(
        self,
        entries: Iterable[IndexEntry],
        threshold: float = DEFAULT_THRESHOLD,
    ) -> None:
        if not 0.0 <= threshold <= 1.0:
            raise ValueError(f"Threshold must be between 0.0 and 1.0, got {threshold}")
        self._entries: tuple[IndexEntry, ...] = tuple(entries)
        self._names: tuple[str, ...] = tuple(e.name for e in self._entries)
        self.threshold = threshold

    @classmethod
    def build(
        cls,
        snapshot: Iterable[FoodReference],
        threshold: float = DEFAULT_THRESHOLD,
    ) -> CatalogIndex:
        entries = [
            IndexEntry(reference_id=ref.id, name=normalize_name(ref.name))
            for ref in snapshot
            if not ref.is_deleted
        ]
        index = cls(entries, threshold=threshold)
        logger.info("Built food reference index with %d entries", len(index))
        return index

    def __len__(self) -> int:
        return len(self._entries)

    def search(self, normalized_name: str) -> IndexMatch | None:
        """Return the best candidate if it is within the threshold."""
        if not self._names or not normalized_name:
            return None

        result = process.extractOne(normalized_name, self._names, scorer=fuzz.ratio)
        if result is None:
            return None

        _, similarity, position = result
        score = 1.0 - similarity / 100.0
        if score > self.threshold:
            return None

        entry = self._entries[position]
        return IndexMatch(reference_id=entry.reference_id, name=entry.name, score=score)
