"""Extraction prompts, one per scan kind."""

from __future__ import annotations

from ..models import ScanKind

NOT_FOUND_SENTINEL = "NOT_FOUND"
UNKNOWN_PRODUCT_SENTINEL = "Unknown Product"

_PRODUCT_NAME_PROMPT = f"""\
Analyze this image and extract the product name or item name visible on the packaging or label.
Return ONLY the product name, nothing else. If you cannot identify a product name, return "{UNKNOWN_PRODUCT_SENTINEL}".
Be concise and accurate.
"""

_EXPIRY_DATE_PROMPT = f"""\
Analyze this image and extract the expiry date, best before date, or use by date visible on the packaging or label.
Return the date in YYYY-MM-DD format (e.g., 2025-12-31).
If you see dates like "12/2025" or "DEC 2025", assume the last day of that month.
If you see "BB 15 MAR 2026", return "2026-03-15".
If you cannot identify an expiry date, return "{NOT_FOUND_SENTINEL}".
Return ONLY the date in YYYY-MM-DD format, nothing else.
"""


def prompt_for(kind: ScanKind) -> str:
    match kind:
        case ScanKind.PRODUCT_NAME:
            return _PRODUCT_NAME_PROMPT
        case ScanKind.EXPIRY_DATE:
            return _EXPIRY_DATE_PROMPT
        case _:
            raise ValueError(f"Invalid extract type: {kind!r}")
