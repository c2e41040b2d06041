"""Price comparison endpoints.

Expose the multi-store price search and the offline demo provider used by
the frontend while scraping is unavailable.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from starlette.concurrency import run_in_threadpool

from nutrient_navigator.models.price_models import PriceListingModel
from nutrient_navigator.services.price_search.collectors.fallback import (
    FallbackPriceProvider,
)
from nutrient_navigator.services.price_search.ranking import rank_listings
from nutrient_navigator.services.price_search.service import (
    PriceSearchService,
    get_fallback_provider,
    get_price_search_service,
)

logger = logging.getLogger("prices.api")

DISCONNECT_POLL_SECONDS = 0.25

price_router = APIRouter(prefix="/api/prices", tags=["Prices"])


def _require_query(query: Optional[str]) -> str:
    cleaned = (query or "").strip()
    if not cleaned:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Query parameter 'query' must not be empty.",
        )
    return cleaned


@price_router.get(
    "/search",
    response_model=List[PriceListingModel],
    responses={
        200: {"description": "Offers sorted by price, possibly empty."},
        400: {"description": "Missing or blank query."},
    },
)
async def search_prices(
    request: Request,
    query: Optional[str] = None,
    service: PriceSearchService = Depends(get_price_search_service),
):
    """
    Search every configured store for ``query``.

    Args:
        query (str): Free-text product name.

    Returns:
        List of offers, cheapest first. Stores that fail or time out are
        left out, so an empty list simply means no offers were found.
    """
    cleaned = _require_query(query)
    cancel_event = threading.Event()
    task = asyncio.ensure_future(run_in_threadpool(service.search, cleaned, cancel_event))
    try:
        while True:
            done, _ = await asyncio.wait({task}, timeout=DISCONNECT_POLL_SECONDS)
            if done:
                break
            if await request.is_disconnected():
                logger.info("Client disconnected; cancelling search for '%s'.", cleaned)
                cancel_event.set()
                await task
                return []
        listings = task.result()
    except Exception:
        logger.exception("Price search endpoint failed for '%s'", cleaned)
        return Response(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)
    finally:
        # Also reached when this coroutine is cancelled, e.g. at shutdown.
        if not task.done():
            cancel_event.set()

    return [PriceListingModel.from_listing(listing) for listing in listings]


@price_router.get("/mock", response_model=List[PriceListingModel])
def mock_prices(
    query: Optional[str] = None,
    provider: FallbackPriceProvider = Depends(get_fallback_provider),
) -> List[PriceListingModel]:
    """Return fixed demo offers for ``query`` without contacting any store."""
    cleaned = _require_query(query)
    listings = rank_listings(provider.search(cleaned))
    return [PriceListingModel.from_listing(listing) for listing in listings]
