"""Batch ingestion: gate, fetch, enrich, resolve, persist, respond."""

from __future__ import annotations

import dataclasses
import logging
import time
import uuid
from typing import Any, Awaitable, Callable, Union

from .config import FeatureConfig, FoodRefConfig
from .db import CatalogDB, EntitlementDB
from .enrichment import ImageEnricher
from .entitlements import EntitlementGate
from .errors import (
    ConfigurationError,
    ErrorKind,
    FoodRefError,
    NotFoundError,
    PersistenceFailure,
)
from .heuristics import classify_product
from .image_search import GoogleImageSearch
from .index import DEFAULT_THRESHOLD, CatalogIndex, IndexEntry, normalize_name
from .interfaces import CatalogStore, OcrClient, ProductLookup
from .models import (
    ExtractedProductInfo,
    FoodReference,
    IngestResult,
    ObservedItem,
    PendingCreate,
    ResolvedItem,
    Source,
    enforce_unit_rule,
)
from .normalizer import MAX_ITEMS, extract_product_info, normalize, normalize_batch
from .ocr import GoogleVisionOcr
from .product_lookup import OpenFoodFactsClient
from .recognition import RecognitionBackend, create_backend
from .resolver import Resolver

logger = logging.getLogger(__name__)

NO_ITEMS_MESSAGES: dict[Source, str] = {
    Source.VISION: "No food items detected in the image",
    Source.RECEIPT: "No food items detected in the receipt",
    Source.BARCODE: "No food items detected for the barcode",
}

# Items coming out of Fetch are either observations or, for a barcode
# short-circuit, already resolved catalog entries.
_Fetched = list[Union[ObservedItem, ResolvedItem]]


def source_tag(source: Source, barcode: str | None = None) -> str:
    """Provenance tag stored on newly minted references."""
    if source is Source.BARCODE and barcode:
        return f"BARCODE-{barcode}"
    return f"AI-SCAN-{int(time.time() * 1000)}-{uuid.uuid4().hex[:9]}"


class IngestOrchestrator:
    """Runs one ingestion batch per call and reports an IngestResult.

    Domain failures never escape as exceptions: every FoodRefError raised by
    a collaborator becomes a failed result with its kind and message. The
    stores report sqlite3 errors as PersistenceFailure.
    Entitlement usage is committed only after a batch has produced at least
    one item and every write has succeeded.
    """

    def __init__(
        self,
        catalog: CatalogStore,
        gate: EntitlementGate,
        *,
        backend: RecognitionBackend | None = None,
        ocr: OcrClient | None = None,
        product_lookup: ProductLookup | None = None,
        enricher: ImageEnricher | None = None,
        features: FeatureConfig | None = None,
        limits: dict[Source, int] | None = None,
        threshold: float = DEFAULT_THRESHOLD,
        merge_within_batch: bool = False,
    ) -> None:
        self._catalog = catalog
        self._gate = gate
        self._backend = backend
        self._ocr = ocr
        self._product_lookup = product_lookup
        self._enricher = enricher
        self._features = features or FeatureConfig()
        self._limits = {**MAX_ITEMS, **(limits or {})}
        self._threshold = threshold
        self._merge_within_batch = merge_within_batch
        self._resolver = Resolver(catalog)
        self._index: CatalogIndex | None = None

    @property
    def index(self) -> CatalogIndex:
        """The most recently built catalog index."""
        if self._index is None:
            return self.refresh_index()
        return self._index

    def refresh_index(self) -> CatalogIndex:
        self._index = CatalogIndex.build(
            self._catalog.find_all_non_deleted(), threshold=self._threshold
        )
        return self._index

    def feature_for(self, source: Source) -> str:
        match source:
            case Source.VISION:
                return self._features.vision
            case Source.RECEIPT:
                return self._features.receipt
            case Source.BARCODE:
                return self._features.barcode
        raise ValueError(f"Unknown source: {source!r}")

    # ------------------------------------------------------------------
    # Entry points

    async def ingest(
        self,
        source: Source,
        raw_payload: Any,
        actor_id: str,
        *,
        barcode: str | None = None,
        image_url: str | None = None,
        brand: str | None = None,
    ) -> IngestResult:
        """Ingest records already fetched from an upstream collaborator."""

        async def fetch() -> _Fetched:
            if source is Source.BARCODE and barcode:
                existing = self._resolver.resolve_barcode(barcode)
                if existing is not None:
                    return [existing]
            return normalize_batch(
                source,
                raw_payload,
                limit=self._limits[source],
                barcode=barcode,
                image_url=image_url,
                brand=brand,
            )

        return await self._run(source, actor_id, fetch, barcode=barcode)

    async def scan_image(
        self, actor_id: str, image_bytes: bytes, mime_type: str = "image/jpeg"
    ) -> IngestResult:
        async def fetch() -> _Fetched:
            backend = self._require_backend()
            payload = await backend.recognize_from_image(image_bytes, mime_type)
            return normalize_batch(
                Source.VISION, payload, limit=self._limits[Source.VISION]
            )

        return await self._run(Source.VISION, actor_id, fetch)

    async def scan_receipt(self, actor_id: str, image_bytes: bytes) -> IngestResult:
        async def fetch() -> _Fetched:
            backend = self._require_backend()
            if self._ocr is None:
                raise ConfigurationError("No OCR client configured")
            text = await self._ocr.extract_text(image_bytes)
            logger.info("Extracted %d characters of receipt text", len(text))
            payload = await backend.recognize_from_receipt_text(text)
            return normalize_batch(
                Source.RECEIPT, payload, limit=self._limits[Source.RECEIPT]
            )

        return await self._run(Source.RECEIPT, actor_id, fetch)

    async def scan_barcode(self, actor_id: str, barcode: str) -> IngestResult:
        barcode = barcode.strip()

        async def fetch() -> _Fetched:
            existing = self._resolver.resolve_barcode(barcode)
            if existing is not None:
                logger.info(
                    "Barcode %s already in catalog as %s", barcode, existing.reference_id
                )
                return [existing]

            if self._product_lookup is None:
                raise ConfigurationError("No product lookup client configured")
            product = await self._product_lookup.fetch_by_barcode(barcode)
            if product is None:
                raise NotFoundError(f"Product not found for barcode: {barcode}")

            info = extract_product_info(product)
            return [await self._observe_product(barcode, info)]

        return await self._run(Source.BARCODE, actor_id, fetch, barcode=barcode)

    # ------------------------------------------------------------------
    # Pipeline

    def _require_backend(self) -> RecognitionBackend:
        if self._backend is None:
            raise ConfigurationError("No recognition backend configured")
        return self._backend

    async def _observe_product(
        self, barcode: str, info: ExtractedProductInfo
    ) -> ObservedItem:
        """Normalize a looked-up product, falling back to keyword rules."""
        if self._backend is not None:
            try:
                payload = await self._backend.normalize_barcode_product(info)
                items = normalize_batch(
                    Source.BARCODE,
                    payload,
                    limit=1,
                    barcode=barcode,
                    image_url=info.image_url,
                    brand=info.brand,
                )
                if items:
                    return items[0]
                logger.warning("AI normalization returned nothing for %s", barcode)
            except FoodRefError as e:
                logger.warning(
                    "AI normalization failed for barcode %s, using keyword rules: %s",
                    barcode,
                    e,
                )

        return normalize(
            Source.BARCODE,
            classify_product(info),
            barcode=barcode,
            image_url=info.image_url,
            brand=info.brand,
        )

    async def _run(
        self,
        source: Source,
        actor_id: str,
        fetch: Callable[[], Awaitable[_Fetched]],
        barcode: str | None = None,
    ) -> IngestResult:
        feature = self.feature_for(source)
        try:
            decision = self._gate.check_and_reserve(actor_id, feature)
            if not decision.allowed:
                logger.info("Denied %s for %r: %s", feature, actor_id, decision.reason)
                return IngestResult.failed(
                    decision.kind or ErrorKind.ENTITLEMENT_MISSING, decision.reason
                )

            fetched = await fetch()
            if not fetched:
                logger.info("No items found in %s batch", source.value)
                return IngestResult.failed(ErrorKind.NO_ITEMS, NO_ITEMS_MESSAGES[source])

            await self._enrich(fetched)
            resolved, pending = self._resolve(fetched)
            created_ids = self._persist(source, pending, barcode)
        except NotFoundError as e:
            logger.info("%s", e)
            return IngestResult.failed(e.kind, str(e))
        except FoodRefError as e:
            logger.exception("%s ingestion aborted", source.value)
            return IngestResult.failed(e.kind, str(e))

        # Rows are already written; a failed usage count must not hide them.
        try:
            self._gate.commit(actor_id, feature)
        except PersistenceFailure:
            logger.exception("Could not record %s usage for %r", feature, actor_id)
        return IngestResult(success=True, items=resolved, created_ids=created_ids)

    async def _enrich(self, fetched: _Fetched) -> None:
        if self._enricher is None:
            return
        missing = [
            item for item in fetched
            if isinstance(item, ObservedItem) and not item.image_url
        ]
        if not missing:
            return
        images = await self._enricher.enrich(item.name for item in missing)
        for item in missing:
            item.image_url = images.get(item.name)

    def _resolve(
        self, fetched: _Fetched
    ) -> tuple[list[ResolvedItem], list[PendingCreate]]:
        index = self.refresh_index()
        resolved: list[ResolvedItem] = []
        pending: list[PendingCreate] = []
        batch_index: CatalogIndex | None = None

        for item in fetched:
            if isinstance(item, ResolvedItem):
                resolved.append(item)
                continue

            outcome = self._resolver.resolve(item, index)
            if isinstance(outcome, ResolvedItem):
                resolved.append(outcome)
                continue

            if batch_index is not None:
                earlier = self._match_pending(item, batch_index, pending)
                if earlier is not None:
                    resolved.append(earlier)
                    continue

            pending.append(outcome)
            resolved.append(outcome.to_resolved())
            if self._merge_within_batch:
                batch_index = CatalogIndex(
                    (
                        IndexEntry(p.reference_id, normalize_name(p.item.name))
                        for p in pending
                    ),
                    threshold=self._threshold,
                )

        return resolved, pending

    @staticmethod
    def _match_pending(
        item: ObservedItem, batch_index: CatalogIndex, pending: list[PendingCreate]
    ) -> ResolvedItem | None:
        match = batch_index.search(normalize_name(item.name))
        if match is None:
            return None
        first = next(p for p in pending if p.reference_id == match.reference_id)
        logger.debug("Merged %r into pending %r", item.name, first.item.name)
        return dataclasses.replace(first.to_resolved(), notes=item.notes)

    def _persist(
        self, source: Source, pending: list[PendingCreate], barcode: str | None
    ) -> list[str]:
        if not pending:
            return []

        references = [
            FoodReference(
                id=p.reference_id,
                name=p.item.name,
                food_group=p.item.food_group,
                unit_type=enforce_unit_rule(p.item.food_group, p.item.unit_type),
                shelf_life_pantry_days=p.item.shelf_life_pantry_days,
                shelf_life_fridge_days=p.item.shelf_life_fridge_days,
                shelf_life_freezer_days=p.item.shelf_life_freezer_days,
                barcode=p.item.barcode,
                brand=p.item.brand,
                image_url=p.image_url,
                source_tag=source_tag(source, p.item.barcode or barcode),
            )
            for p in pending
        ]
        created_ids = self._catalog.bulk_insert(references)
        logger.info("Created %d new food references", len(created_ids))
        self.refresh_index()
        return created_ids


def build_orchestrator(config: FoodRefConfig) -> IngestOrchestrator:
    """Construct every collaborator once from configuration."""
    catalog = CatalogDB(config.catalog.db_path)
    entitlements = EntitlementDB(config.catalog.db_path)

    search = GoogleImageSearch(
        api_key=config.image_search.api_key,
        engine_id=config.image_search.engine_id,
        timeout=config.image_search.timeout,
    )
    return IngestOrchestrator(
        catalog,
        EntitlementGate(entitlements),
        backend=create_backend(config),
        ocr=GoogleVisionOcr(credentials_json=config.ocr.credentials_json),
        product_lookup=OpenFoodFactsClient(
            base_url=config.product_lookup.base_url,
            user_agent=config.product_lookup.user_agent,
            timeout=config.product_lookup.timeout,
        ),
        enricher=ImageEnricher(
            search,
            timeout=config.image_search.timeout,
            max_concurrency=config.ingest.max_concurrency,
        ),
        features=config.features,
        limits={
            Source.VISION: config.ingest.vision_max_items,
            Source.RECEIPT: config.ingest.receipt_max_items,
        },
        threshold=config.catalog.match_threshold,
        merge_within_batch=config.ingest.merge_within_batch,
    )
