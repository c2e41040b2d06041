"""Utilities shared by price collectors."""

from __future__ import annotations

import re
from decimal import Decimal, InvalidOperation
from typing import Optional


DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/121.0.0.0 Safari/537.36"
)

DEFAULT_HEADERS = {
    "User-Agent": DEFAULT_USER_AGENT,
    "Accept": (
        "text/html,application/xhtml+xml,application/xml;q=0.9,image/avif,"
        "image/webp,*/*;q=0.8"
    ),
    "Accept-Language": "en-CA,en;q=0.9",
}


def normalize_price(price_text: str | None) -> Optional[Decimal]:
    """Convert price text such as "$1,234.50" to Decimal.

    Every character other than digits and "." is dropped before parsing.
    Returns None when nothing numeric is left, so callers can skip the
    listing instead of treating it as free.
    """
    if not price_text:
        return None

    cleaned = re.sub(r"[^\d.]", "", price_text)
    if not cleaned or cleaned.count(".") > 1:
        return None

    try:
        value = Decimal(cleaned)
    except (InvalidOperation, ValueError):
        return None
    if not value.is_finite():
        return None
    return value


def normalize_whitespace(value: str) -> str:
    """Collapse repeated spaces and newlines."""
    return re.sub(r"\s+", " ", value).strip()


def format_cad(value: Decimal | None) -> Optional[str]:
    """Format Decimal values as Canadian dollars for log lines."""
    if value is None:
        return None

    quantized = value.quantize(Decimal("0.01"))
    return f"${quantized:,.2f}"
