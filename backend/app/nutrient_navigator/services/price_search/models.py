"""Domain models for price search results."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import List, Optional


@dataclass(slots=True)
class RawListing:
    """Listing read from a rendered page, before price normalization."""

    title: str
    price_text: str
    link: str
    unit_text: Optional[str] = None


@dataclass(frozen=True, slots=True)
class PriceListing:
    """Single normalized offer returned to callers."""

    store: str
    price: Decimal
    unit: str
    distance: str
    icon: str
    product_url: str

    def as_dict(self) -> dict:
        """Return the wire representation used by the HTTP layer."""
        return {
            "store": self.store,
            "price": float(self.price),
            "unit": self.unit,
            "distance": self.distance,
            "icon": self.icon,
            "productUrl": self.product_url,
        }


@dataclass(slots=True)
class CollectorOutcome:
    """Result of one collector invocation for one query."""

    store: str
    listings: List[PriceListing] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class CollectorError(RuntimeError):
    """Raised when a collector cannot complete the search."""

    def __init__(self, store: str, message: str) -> None:
        super().__init__(message)
        self.store = store
        self.message = message


class ResourceAcquisitionFailure(CollectorError):
    """The browser or HTTP session could not be started."""


class NavigationFailure(CollectorError):
    """The search page could not be loaded."""


class SessionTimeout(CollectorError):
    """The results marker never appeared within the wait bound."""


class SessionCancelled(CollectorError):
    """The whole query was cancelled while the session was running."""
