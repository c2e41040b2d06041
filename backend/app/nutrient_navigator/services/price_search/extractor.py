"""Extract raw listings from a rendered search results page."""

from __future__ import annotations

import logging
from typing import List, Optional
from urllib.parse import urljoin

from bs4 import BeautifulSoup, Tag

from .collectors.retailers import RetailerConfig
from .models import RawListing
from .utils import normalize_whitespace

logger = logging.getLogger("price_search.extractor")


class ExtractionElementMissing(LookupError):
    """A required field could not be found inside a candidate element."""


def _required_text(item: Tag, selector: str) -> str:
    tag = item.select_one(selector)
    if tag is None:
        raise ExtractionElementMissing(selector)
    text = normalize_whitespace(tag.get_text(" ", strip=True))
    if not text:
        raise ExtractionElementMissing(selector)
    return text


def _required_link(item: Tag, selector: str, base_url: str) -> str:
    tag = item.select_one(selector)
    href = tag.get("href") if tag is not None else None
    if not href:
        raise ExtractionElementMissing(selector)
    return urljoin(base_url, href)


def _optional_text(item: Tag, selector: Optional[str]) -> Optional[str]:
    if not selector:
        return None
    tag = item.select_one(selector)
    if tag is None:
        return None
    return normalize_whitespace(tag.get_text(" ", strip=True)) or None


def extract_listings(
    html: str,
    retailer: RetailerConfig,
    max_results: int,
) -> List[RawListing]:
    """Return at most ``max_results`` listings in document order.

    Candidates missing a title, a price or a link are skipped; one broken
    tile never stops the rest of the page from being read.
    """
    if max_results <= 0 or not html:
        return []

    soup = BeautifulSoup(html, "html.parser")
    listings: List[RawListing] = []
    for item in soup.select(retailer.item_selector):
        try:
            title = _required_text(item, retailer.title_selector)
            price_text = _required_text(item, retailer.price_selector)
            link = _required_link(item, retailer.link_selector, retailer.base_url)
        except ExtractionElementMissing as exc:
            logger.debug(
                "Skipping %s tile without '%s'.", retailer.store, exc.args[0]
            )
            continue

        listings.append(
            RawListing(
                title=title,
                price_text=price_text,
                link=link,
                unit_text=_optional_text(item, retailer.unit_selector),
            )
        )
        if len(listings) >= max_results:
            break

    return listings
