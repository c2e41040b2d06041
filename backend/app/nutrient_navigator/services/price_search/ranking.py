"""Ordering of merged price listings."""

from __future__ import annotations

from typing import Iterable, List

from .models import PriceListing


def rank_listings(listings: Iterable[PriceListing]) -> List[PriceListing]:
    """Sort by ascending price; equal prices keep their contribution order."""
    return sorted(listings, key=lambda listing: listing.price)
