"""Prompts sent to the recognition backends."""

from __future__ import annotations

import json

from ..models import FOOD_GROUP_CHOICES, UNIT_TYPE_CHOICES, ExtractedProductInfo

_ITEM_SCHEMA = f"""\
{{
  "name": "string (the primary food item name, be specific)",
  "foodGroup": "string (one of: {FOOD_GROUP_CHOICES})",
  "notes": "string (description of the food, its characteristics, or preparation state)",
  "typicalShelfLifeDays_Pantry": number (typical shelf life in days when stored in pantry, 0 if not applicable),
  "typicalShelfLifeDays_Fridge": number (typical shelf life in days when stored in fridge, 0 if not applicable),
  "typicalShelfLifeDays_Freezer": number (typical shelf life in days when stored in freezer, 0 if not applicable),
  "unitType": "string (one of: {UNIT_TYPE_CHOICES})"
}}"""

IMAGE_PROMPT = f"""\
You are a food information expert. Analyze this food image and identify what food items are visible.

Generate a JSON response with the following structure:

{_ITEM_SCHEMA}

Rules:
- If multiple distinct food items are detected, return an array of objects (max 5 items)
- If it's a single food item or dish, return a single object
- Be accurate with shelf life estimates based on standard food safety guidelines for fresh, unprocessed foods
- For unitType, use the most appropriate unit based on how the food is typically measured
- IMPORTANT: If foodGroup is "MixedDishes", unitType MUST always be "Count"
- If the image contains prepared/cooked food, estimate shelf life for the prepared state
- Return ONLY valid JSON, no additional text or explanation"""


def receipt_prompt(ocr_text: str) -> str:
    return f"""\
You are a food receipt analyst. Based on the OCR text from a grocery bill, extract individual food items and map them to structured data.

The OCR text will be provided between triple quotes. Ignore prices or quantities unless helpful for determining unit types. Focus on grocery food items (skip non-food entries).

Return STRICT JSON (no markdown): an array of objects with this structure:
{_ITEM_SCHEMA}

Rules:
- Maximum 10 items.
- If foodGroup is "MixedDishes", unitType must be "Count".
- Shelf life values must be integers (0 when not applicable).
- For unitType, use the most appropriate unit based on OCR text
- Be accurate with shelf life estimates based on standard food safety guidelines for fresh, unprocessed foods
- Only output JSON, no explanation.

OCR TEXT:
\"\"\"
{ocr_text}
\"\"\""""


def barcode_prompt(info: ExtractedProductInfo) -> str:
    product = json.dumps(info.to_prompt_dict(), ensure_ascii=False, indent=2)
    return f"""\
You are a food information expert. The following product data was retrieved from a barcode lookup.
Normalize it into a single food item.

PRODUCT DATA:
{product}

Return a single JSON object with this structure:
{_ITEM_SCHEMA}

Rules:
- Use a short, human-friendly product name; keep the brand out of the name unless it is essential
- Put brand, quantity and notable labels in notes
- Shelf life values must be integers (0 when not applicable), estimated for the unopened product
- If foodGroup is "MixedDishes", unitType must be "Count"
- Return ONLY valid JSON, no additional text or explanation"""
