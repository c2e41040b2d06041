"""Declarative configuration for every supported retailer.

Each entry describes where a retailer's search page lives, how the page is
fetched and which CSS selectors locate the listing data. The generic
:class:`~nutrient_navigator.services.price_search.collectors.base.StoreCollector`
consumes these records; adding a store means adding a record here.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, List, Optional
from urllib.parse import quote_plus


class FetchMode(str, Enum):
    """How a retailer's search page is obtained."""

    BROWSER = "browser"
    HTTP = "http"


@dataclass(frozen=True)
class RetailerConfig:
    """Static description of one retailer's search page."""

    key: str
    store: str
    base_url: str
    search_url: str
    marker_selector: str
    item_selector: str
    title_selector: str
    price_selector: str
    link_selector: str = "a[href]"
    unit_selector: Optional[str] = None
    fetch_mode: FetchMode = FetchMode.BROWSER
    default_unit: str = "each"
    distance: str = "Local"
    icon: str = "🏪"

    def build_url(self, query: str) -> str:
        """Return the fully-formed search URL for ``query``."""
        return self.search_url.format(query=quote_plus(query))


WALMART = RetailerConfig(
    key="walmart",
    store="Walmart",
    base_url="https://www.walmart.ca",
    search_url="https://www.walmart.ca/search?q={query}",
    marker_selector="div[data-testid='item-stack']",
    item_selector="div[data-testid='product-stack-tile']",
    title_selector="span[data-automation='product-title']",
    price_selector="span[data-automation='item-price']",
    link_selector="a[href]",
    unit_selector="div[data-testid='product-price-per-unit']",
    icon="🏪",
)

LOBLAWS = RetailerConfig(
    key="loblaws",
    store="Loblaws",
    base_url="https://www.loblaws.ca",
    search_url="https://www.loblaws.ca/search?search-bar={query}",
    marker_selector="div[data-testid='product-grid']",
    item_selector="div[data-testid='product-grid'] > div",
    title_selector="h3[data-testid='product-title']",
    price_selector="span[data-testid='regular-price'], span[data-testid='sale-price']",
    link_selector="a[href*='/p/']",
    unit_selector="p[data-testid='product-package-size']",
    icon="🛒",
)

METRO = RetailerConfig(
    key="metro",
    store="Metro",
    base_url="https://www.metro.ca",
    search_url="https://www.metro.ca/en/online-grocery/search?filter={query}",
    marker_selector="div.products-search--grid",
    item_selector="div.default-product-tile",
    title_selector="div.head__title",
    price_selector="span.price-update",
    link_selector="a.product-details-link",
    unit_selector="span.head__unit-details",
    fetch_mode=FetchMode.HTTP,
    icon="🏬",
)

RETAILERS: Dict[str, RetailerConfig] = {
    retailer.key: retailer for retailer in (WALMART, LOBLAWS, METRO)
}


def resolve_retailers(keys: Iterable[str]) -> List[RetailerConfig]:
    """Return the configs for ``keys`` in order, skipping unknown or repeated keys."""
    resolved: List[RetailerConfig] = []
    seen = set()
    for key in keys:
        normalized = key.strip().lower()
        retailer = RETAILERS.get(normalized)
        if retailer is None or normalized in seen:
            continue
        seen.add(normalized)
        resolved.append(retailer)
    return resolved
