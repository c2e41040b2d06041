"""Generic store collector driven by a retailer config record."""

from __future__ import annotations

import logging
import threading
from typing import Callable, ContextManager, List, Optional

from ..extractor import extract_listings
from ..models import CollectorError, CollectorOutcome, PriceListing, RawListing
from ..sessions import RenderedPage, SessionOptions, open_session
from ..utils import format_cad, normalize_price
from .retailers import RetailerConfig

logger = logging.getLogger("price_search.collector")

SessionFactory = Callable[
    [RetailerConfig, str, SessionOptions, Optional[threading.Event]],
    ContextManager[RenderedPage],
]


class StoreCollector:
    """Collect offers for one retailer.

    All retailer specifics come from ``retailer``; the session factory is
    injectable so tests can stand in for the browser.
    """

    DEFAULT_RESULTS_PER_STORE = 3

    def __init__(
        self,
        retailer: RetailerConfig,
        options: SessionOptions | None = None,
        max_results: int | None = None,
        session_factory: SessionFactory = open_session,
    ) -> None:
        self.retailer = retailer
        self.options = options or SessionOptions()
        self.max_results = max_results or self.DEFAULT_RESULTS_PER_STORE
        self.session_factory = session_factory

    @property
    def store(self) -> str:
        return self.retailer.store

    def build_url(self, query: str) -> str:
        return self.retailer.build_url(query)

    def collect(
        self,
        query: str,
        cancel_event: Optional[threading.Event] = None,
    ) -> CollectorOutcome:
        """Public entry point; failures come back as an outcome, never raised."""
        try:
            listings = self._collect_impl(query, cancel_event)
            return CollectorOutcome(store=self.store, listings=listings)
        except CollectorError as exc:
            logger.warning(
                "Collector %s failed for '%s': %s", exc.store, query, exc.message
            )
            return CollectorOutcome(store=self.store, error=exc.message)
        except Exception:
            logger.exception(
                "Unexpected error collecting prices from %s for '%s'",
                self.store,
                query,
            )
            return CollectorOutcome(
                store=self.store, error=f"Could not reach {self.store}."
            )

    def _collect_impl(
        self,
        query: str,
        cancel_event: Optional[threading.Event],
    ) -> List[PriceListing]:
        url = self.build_url(query)
        with self.session_factory(self.retailer, url, self.options, cancel_event) as page:
            raw_listings = extract_listings(page.html, self.retailer, self.max_results)

        listings = [
            listing
            for listing in (self._to_price_listing(raw) for raw in raw_listings)
            if listing is not None
        ]
        if not listings:
            logger.info("No priced results from %s for '%s'.", self.store, query)
        return listings

    def _to_price_listing(self, raw: RawListing) -> Optional[PriceListing]:
        price = normalize_price(raw.price_text)
        if price is None:
            logger.debug(
                "Dropping %s listing '%s' with unparsable price %r.",
                self.store,
                raw.title,
                raw.price_text,
            )
            return None

        logger.debug("%s: %s at %s", self.store, raw.title, format_cad(price))
        return PriceListing(
            store=self.store,
            price=price,
            unit=raw.unit_text or self.retailer.default_unit,
            distance=self.retailer.distance,
            icon=self.retailer.icon,
            product_url=raw.link or "#",
        )
