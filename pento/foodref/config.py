"""TOML configuration loader for the food reference engine."""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field
from pathlib import Path

if sys.version_info >= (3, 11):
    import tomllib
else:
    try:
        import tomli as tomllib
    except ImportError:
        tomllib = None  # type: ignore[assignment]


@dataclass
class GeminiConfig:
    api_key: str = ""
    model: str = "gemini-2.5-pro"


@dataclass
class ClaudeConfig:
    api_key: str = ""
    model: str = "claude-sonnet-4-5-20250929"


@dataclass
class RecognitionConfig:
    backend: str = "gemini"
    gemini: GeminiConfig = field(default_factory=GeminiConfig)
    claude: ClaudeConfig = field(default_factory=ClaudeConfig)


@dataclass
class OcrConfig:
    credentials_json: str = ""


@dataclass
class ProductLookupConfig:
    base_url: str = "https://world.openfoodfacts.org/api/v2/product"
    user_agent: str = "PentoService/1.0 - Food tracking app"
    timeout: float = 10.0


@dataclass
class ImageSearchConfig:
    api_key: str = ""
    engine_id: str = ""
    timeout: float = 8.0


@dataclass
class CatalogConfig:
    db_path: str = "~/.config/pento/foodref.db"
    match_threshold: float = 0.6


@dataclass
class IngestConfig:
    vision_max_items: int = 5
    receipt_max_items: int = 10
    max_concurrency: int = 10
    merge_within_batch: bool = False


@dataclass
class FeatureConfig:
    vision: str = "SCAN_FOOD"
    receipt: str = "SCAN_BILL"
    barcode: str = "SCAN_BARCODE"


@dataclass
class FoodRefConfig:
    recognition: RecognitionConfig = field(default_factory=RecognitionConfig)
    ocr: OcrConfig = field(default_factory=OcrConfig)
    product_lookup: ProductLookupConfig = field(default_factory=ProductLookupConfig)
    image_search: ImageSearchConfig = field(default_factory=ImageSearchConfig)
    catalog: CatalogConfig = field(default_factory=CatalogConfig)
    ingest: IngestConfig = field(default_factory=IngestConfig)
    features: FeatureConfig = field(default_factory=FeatureConfig)


def load_config(path: str | Path | None = None) -> FoodRefConfig:
    """Load configuration from a TOML file.

    Falls back to defaults if no path is given or the file doesn't exist.
    Credentials can be overridden via environment variables.
    """
    raw: dict = {}

    if path is not None:
        p = Path(path)
        if p.exists():
            if tomllib is None:
                raise ImportError(
                    "tomli is required on Python < 3.11: pip install tomli"
                )
            with open(p, "rb") as f:
                raw = tomllib.load(f)

    rec = raw.get("recognition", {})
    ocr = raw.get("ocr", {})
    lkp = raw.get("product_lookup", {})
    img = raw.get("image_search", {})
    cat = raw.get("catalog", {})
    ing = raw.get("ingest", {})
    fea = raw.get("features", {})

    gemini_cfg = rec.get("gemini", {})
    claude_cfg = rec.get("claude", {})

    # Resolve credentials: config file → environment variable
    gemini_api_key = (
        gemini_cfg.get("api_key", "")
        or os.environ.get("GEM_KEY", "")
        or os.environ.get("GEMINI_API_KEY", "")
    )
    claude_api_key = claude_cfg.get("api_key", "") or os.environ.get(
        "ANTHROPIC_API_KEY", ""
    )
    vision_credentials = ocr.get("credentials_json", "") or os.environ.get(
        "GOOGLE_VISION_CREDENTIALS", ""
    )
    search_api_key = img.get("api_key", "") or os.environ.get(
        "GOOGLE_CUSTOM_SEARCH_API_KEY", ""
    )
    search_engine_id = img.get("engine_id", "") or os.environ.get(
        "GOOGLE_CUSTOM_SEARCH_ENGINE_ID", ""
    )

    return FoodRefConfig(
        recognition=RecognitionConfig(
            backend=rec.get("backend", "gemini"),
            gemini=GeminiConfig(
                api_key=gemini_api_key,
                model=gemini_cfg.get("model", "gemini-2.5-pro"),
            ),
            claude=ClaudeConfig(
                api_key=claude_api_key,
                model=claude_cfg.get("model", "claude-sonnet-4-5-20250929"),
            ),
        ),
        ocr=OcrConfig(credentials_json=vision_credentials),
        product_lookup=ProductLookupConfig(
            base_url=lkp.get(
                "base_url", "https://world.openfoodfacts.org/api/v2/product"
            ),
            user_agent=lkp.get(
                "user_agent", "PentoService/1.0 - Food tracking app"
            ),
            timeout=float(lkp.get("timeout", 10.0)),
        ),
        image_search=ImageSearchConfig(
            api_key=search_api_key,
            engine_id=search_engine_id,
            timeout=float(img.get("timeout", 8.0)),
        ),
        catalog=CatalogConfig(
            db_path=cat.get("db_path", "~/.config/pento/foodref.db"),
            match_threshold=float(cat.get("match_threshold", 0.6)),
        ),
        ingest=IngestConfig(
            vision_max_items=ing.get("vision_max_items", 5),
            receipt_max_items=ing.get("receipt_max_items", 10),
            max_concurrency=ing.get("max_concurrency", 10),
            merge_within_batch=ing.get("merge_within_batch", False),
        ),
        features=FeatureConfig(
            vision=fea.get("vision", "SCAN_FOOD"),
            receipt=fea.get("receipt", "SCAN_BILL"),
            barcode=fea.get("barcode", "SCAN_BARCODE"),
        ),
    )
