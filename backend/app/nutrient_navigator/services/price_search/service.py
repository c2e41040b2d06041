"""High-level service that orchestrates price lookups."""

from __future__ import annotations

import logging
import threading
from typing import List, Optional

from fastapi import Request

from configs import Settings, settings

from .collectors.base import StoreCollector
from .collectors.fallback import FallbackPriceProvider
from .dispatcher import CollectionDispatcher
from .models import PriceListing
from .ranking import rank_listings

logger = logging.getLogger("price_search.service")


class PriceSearchService:
    """Search every configured store and return offers cheapest first."""

    def __init__(self, dispatcher: CollectionDispatcher) -> None:
        self.dispatcher = dispatcher

    @classmethod
    def from_settings(cls, config: Settings) -> "PriceSearchService":
        """Wire collectors and timeouts from application settings."""
        options = config.session_options()
        collectors = [
            StoreCollector(
                retailer,
                options=options,
                max_results=config.MAX_RESULTS_PER_STORE,
            )
            for retailer in config.enabled_retailers()
        ]
        dispatcher = CollectionDispatcher(
            collectors, collector_timeout=config.COLLECTOR_TIMEOUT_SECONDS
        )
        return cls(dispatcher)

    def search(
        self,
        query: str,
        cancel_event: Optional[threading.Event] = None,
    ) -> List[PriceListing]:
        """Execute the search; an empty list means no offers were found."""
        query = (query or "").strip()
        if not query:
            return []

        try:
            listings = self.dispatcher.collect(query, cancel_event)
        except Exception:
            logger.exception("Price search failed for '%s'", query)
            return []
        return rank_listings(listings)


def get_price_search_service(request: Request) -> PriceSearchService:
    """FastAPI dependency building the service from the app's settings."""
    config = getattr(request.app.state, "settings", None) or settings
    return PriceSearchService.from_settings(config)


def get_fallback_provider() -> FallbackPriceProvider:
    """FastAPI dependency for the offline provider."""
    return FallbackPriceProvider()
