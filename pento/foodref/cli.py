"""CLI entry point for the food reference engine."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import mimetypes
import sys
from pathlib import Path

from dotenv import load_dotenv

from .config import load_config
from .db import CatalogDB, EntitlementDB
from .errors import FoodRefError
from .image_search import GoogleImageSearch
from .models import FoodReference, IngestResult
from .orchestrator import build_orchestrator


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        prog="pento-foodref",
        description="Pento food reference engine: scan food, receipts and barcodes "
        "into the shared catalog",
    )
    parser.add_argument(
        "--config",
        "-c",
        type=str,
        default=None,
        help="Path to the config file (TOML)",
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true", help="Enable debug logging"
    )
    parser.add_argument("--json", action="store_true", help="Print JSON output")

    sub = parser.add_subparsers(dest="command")

    # scan
    scan_parser = sub.add_parser("scan", help="Recognize food in a photo")
    scan_parser.add_argument("image", type=str, help="Image file")
    scan_parser.add_argument("--actor", type=str, required=True, help="User ID")

    # receipt
    receipt_parser = sub.add_parser("receipt", help="Extract food from a grocery bill")
    receipt_parser.add_argument("image", type=str, help="Receipt image file")
    receipt_parser.add_argument("--actor", type=str, required=True, help="User ID")

    # barcode
    barcode_parser = sub.add_parser("barcode", help="Look up a product barcode")
    barcode_parser.add_argument("code", type=str, help="EAN/UPC barcode")
    barcode_parser.add_argument("--actor", type=str, required=True, help="User ID")

    # catalog
    catalog_parser = sub.add_parser("catalog", help="List or search food references")
    catalog_parser.add_argument(
        "--sort", choices=["alpha", "newest"], default="alpha", help="Sort order"
    )
    catalog_parser.add_argument(
        "--search", type=str, default=None, help="Filter by name, barcode or brand"
    )

    # grant
    grant_parser = sub.add_parser("grant", help="Grant a feature to a user")
    grant_parser.add_argument("actor", type=str, help="User ID")
    grant_parser.add_argument("feature", type=str, help="Feature code, e.g. SCAN_FOOD")
    grant_parser.add_argument(
        "--quota", type=int, default=None, help="Usage limit (omit for unlimited)"
    )

    # images
    images_parser = sub.add_parser("images", help="Search food images")
    images_parser.add_argument("query", type=str, help="Search query")
    images_parser.add_argument("--num", type=int, default=1, help="Number of results")

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    load_dotenv()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    config = load_config(args.config)

    try:
        match args.command:
            case "scan":
                ok = asyncio.run(_cmd_scan(config, args))
            case "receipt":
                ok = asyncio.run(_cmd_receipt(config, args))
            case "barcode":
                ok = asyncio.run(_cmd_barcode(config, args))
            case "catalog":
                ok = _cmd_catalog(config, args)
            case "grant":
                ok = _cmd_grant(config, args)
            case "images":
                ok = asyncio.run(_cmd_images(config, args))
    except FoodRefError as e:
        print(str(e), file=sys.stderr)
        sys.exit(1)

    if not ok:
        sys.exit(1)


def _read_image(path: str) -> tuple[bytes, str]:
    data = Path(path).read_bytes()
    mime_type = mimetypes.guess_type(path)[0] or "image/jpeg"
    return data, mime_type


async def _cmd_scan(config, args) -> bool:
    data, mime_type = _read_image(args.image)
    result = await build_orchestrator(config).scan_image(args.actor, data, mime_type)
    return _print_result(result, args.json)


async def _cmd_receipt(config, args) -> bool:
    data, _ = _read_image(args.image)
    result = await build_orchestrator(config).scan_receipt(args.actor, data)
    return _print_result(result, args.json)


async def _cmd_barcode(config, args) -> bool:
    result = await build_orchestrator(config).scan_barcode(args.actor, args.code)
    return _print_result(result, args.json)


def _print_result(result: IngestResult, as_json: bool) -> bool:
    if as_json:
        print(json.dumps(result.to_dict(), ensure_ascii=False, indent=2))
        return result.success

    if result.error is not None:
        print(f"Error ({result.error.kind.value}): {result.error.message}", file=sys.stderr)
        return False
    if not result.success:
        print("Error: ingestion failed", file=sys.stderr)
        return False

    print(f"{len(result.items)} item(s), {len(result.created_ids)} new:")
    for item in result.items:
        mark = " " if item.is_existing_reference else "+"
        print(
            f"  {mark} {item.name:<24} {item.food_group.value:<18} "
            f"{item.unit_type.value:<7} "
            f"P{item.shelf_life_pantry_days}/F{item.shelf_life_fridge_days}"
            f"/Z{item.shelf_life_freezer_days}  [{item.reference_id}]"
        )
    return True


def _reference_to_dict(ref: FoodReference) -> dict:
    return {
        "id": ref.id,
        "name": ref.name,
        "foodGroup": ref.food_group.value,
        "unitType": ref.unit_type.value,
        "typicalShelfLifeDays_Pantry": ref.shelf_life_pantry_days,
        "typicalShelfLifeDays_Fridge": ref.shelf_life_fridge_days,
        "typicalShelfLifeDays_Freezer": ref.shelf_life_freezer_days,
        "barcode": ref.barcode,
        "brand": ref.brand,
        "imageUrl": ref.image_url,
        "createdAt": ref.created_at,
    }


def _cmd_catalog(config, args) -> bool:
    db = CatalogDB(config.catalog.db_path)
    try:
        if args.search:
            refs = db.search(args.search)
        else:
            refs = db.list_references(sort=args.sort)
    finally:
        db.close()

    if args.json:
        print(json.dumps([_reference_to_dict(r) for r in refs], ensure_ascii=False, indent=2))
        return True

    if not refs:
        print("No food references found.")
        return True
    print(f"Food references ({len(refs)}):")
    for r in refs:
        barcode = f"  #{r.barcode}" if r.barcode else ""
        print(f"  {r.name:<24} {r.food_group.value:<18} {r.unit_type.value}{barcode}")
    return True


def _cmd_grant(config, args) -> bool:
    db = EntitlementDB(config.catalog.db_path)
    try:
        db.grant(args.actor, args.feature, quota=args.quota)
    finally:
        db.close()
    limit = "unlimited" if args.quota is None else f"quota {args.quota}"
    print(f"Granted {args.feature} to {args.actor} ({limit})")
    return True


async def _cmd_images(config, args) -> bool:
    search = GoogleImageSearch(
        api_key=config.image_search.api_key,
        engine_id=config.image_search.engine_id,
        timeout=config.image_search.timeout,
    )
    hits = await search.search_images(args.query, num=args.num)

    if args.json:
        data = [{"url": h.url, "title": h.title} for h in hits]
        print(json.dumps(data, ensure_ascii=False, indent=2))
        return True

    if not hits:
        print("No images found.")
        return True
    for h in hits:
        print(f"  {h.url}  {h.title or ''}")
    return True
