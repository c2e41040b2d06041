"""Offline price provider returning fixed, keyword-matched offers."""

from __future__ import annotations

from decimal import Decimal
from typing import List, Tuple

from ..models import PriceListing

# (store, price, unit, distance, icon)
_Row = Tuple[str, str, str, str, str]

_CATALOG: List[Tuple[str, List[_Row]]] = [
    (
        "milk",
        [
            ("Walmart", "4.99", "4L", "2.5 km", "🏪"),
            ("Loblaws", "5.49", "4L", "1.8 km", "🛒"),
            ("Metro", "5.29", "4L", "3.2 km", "🏬"),
        ],
    ),
    (
        "bread",
        [
            ("Walmart", "2.49", "loaf", "2.5 km", "🏪"),
            ("Loblaws", "2.99", "loaf", "1.8 km", "🛒"),
        ],
    ),
    (
        "eggs",
        [
            ("Walmart", "3.99", "dozen", "2.5 km", "🏪"),
            ("Costco", "6.99", "18 pack", "5.0 km", "📦"),
        ],
    ),
]

_GENERIC: List[_Row] = [
    ("Walmart", "3.99", "each", "2.5 km", "🏪"),
    ("Loblaws", "4.49", "each", "1.8 km", "🛒"),
]


class FallbackPriceProvider:
    """Serve demo offers without contacting any retailer."""

    placeholder_url = "#"

    def search(self, query: str) -> List[PriceListing]:
        """Return offers for the first keyword contained in ``query``."""
        lowered = query.lower()
        rows = next(
            (rows for keyword, rows in _CATALOG if keyword in lowered),
            _GENERIC,
        )
        return [
            PriceListing(
                store=store,
                price=Decimal(price),
                unit=unit,
                distance=distance,
                icon=icon,
                product_url=self.placeholder_url,
            )
            for store, price, unit, distance, icon in rows
        ]
