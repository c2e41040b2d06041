"""Test collection dispatching, failure isolation and ranking."""

import logging
import threading
import time
from decimal import Decimal

import pytest

from nutrient_navigator.services.price_search.dispatcher import CollectionDispatcher
from nutrient_navigator.services.price_search.models import (
    CollectorOutcome,
    PriceListing,
)
from nutrient_navigator.services.price_search.ranking import rank_listings


def listing(store: str, price: str, url: str = "#") -> PriceListing:
    return PriceListing(
        store=store,
        price=Decimal(price),
        unit="each",
        distance="Local",
        icon="🏪",
        product_url=url,
    )


class FakeCollector:
    """Collector double returning canned outcomes."""

    def __init__(
        self, store, listings=(), error=None, raises=None, gate=None, cancel_on_start=False
    ):
        self.store = store
        self.listings = list(listings)
        self.error = error
        self.raises = raises
        self.gate = gate
        self.calls = 0
        self.cancel_event = None
        self.cancel_on_start = cancel_on_start

    def collect(self, query, cancel_event=None):
        self.calls += 1
        self.cancel_event = cancel_event
        if self.cancel_on_start:
            cancel_event.set()
        if self.gate is not None:
            self.gate.wait(5)
        if self.raises is not None:
            raise self.raises
        if self.error is not None:
            return CollectorOutcome(store=self.store, error=self.error)
        return CollectorOutcome(store=self.store, listings=list(self.listings))


@pytest.fixture()
def gate():
    """Event that holds a collector until the test finishes."""
    event = threading.Event()
    yield event
    event.set()


class TestCollectionDispatcher:
    """Test cases for CollectionDispatcher."""

    def test_merges_in_collector_order(self) -> None:
        # Arrange
        walmart = FakeCollector("Walmart", [listing("Walmart", "3.99"), listing("Walmart", "2.00")])
        metro = FakeCollector("Metro", [listing("Metro", "1.50")])
        dispatcher = CollectionDispatcher([walmart, metro], collector_timeout=2)

        # Act
        merged = dispatcher.collect("milk")

        # Assert
        assert [(item.store, item.price) for item in merged] == [
            ("Walmart", Decimal("3.99")),
            ("Walmart", Decimal("2.00")),
            ("Metro", Decimal("1.50")),
        ]

    def test_timed_out_collector_contributes_nothing(self, gate, caplog) -> None:
        """Test that a hung collector is skipped while healthy ones return."""
        # Arrange
        stuck = FakeCollector("Loblaws", [listing("Loblaws", "1.00")], gate=gate)
        healthy = FakeCollector("Walmart", [listing("Walmart", "3.99")])
        dispatcher = CollectionDispatcher([stuck, healthy], collector_timeout=0.3)

        # Act
        started = time.perf_counter()
        merged = dispatcher.collect("milk")
        elapsed = time.perf_counter() - started

        # Assert
        assert merged == [listing("Walmart", "3.99")]
        assert elapsed < 2
        assert "Loblaws" in caplog.text
        assert stuck.calls == 1

    def test_failures_are_isolated(self) -> None:
        failing = FakeCollector("Loblaws", error="HTTP 503")
        exploding = FakeCollector("Metro", raises=RuntimeError("contract violation"))
        healthy = FakeCollector("Walmart", [listing("Walmart", "3.99")])
        dispatcher = CollectionDispatcher([failing, exploding, healthy], collector_timeout=2)

        merged = dispatcher.collect("milk")

        assert merged == [listing("Walmart", "3.99")]

    def test_all_collectors_failing_returns_empty(self) -> None:
        dispatcher = CollectionDispatcher(
            [FakeCollector("Walmart", error="timeout"), FakeCollector("Metro", error="HTTP 500")],
            collector_timeout=2,
        )

        assert dispatcher.collect("milk") == []

    def test_no_collectors_returns_empty(self) -> None:
        assert CollectionDispatcher([]).collect("milk") == []

    def test_cancellation_returns_promptly_and_reaches_collectors(self, gate, caplog) -> None:
        """Test that a caller cancel stops waiting and is handed to collectors."""
        caplog.set_level(logging.INFO, logger="price_search.dispatcher")
        # Arrange
        cancel_event = threading.Event()
        stuck = FakeCollector(
            "Walmart", [listing("Walmart", "3.99")], gate=gate, cancel_on_start=True
        )
        dispatcher = CollectionDispatcher([stuck], collector_timeout=10)

        # Act
        started = time.perf_counter()
        merged = dispatcher.collect("milk", cancel_event)

        # Assert
        assert merged == []
        assert time.perf_counter() - started < 2
        assert stuck.cancel_event is cancel_event
        assert "still running when 'milk' was cancelled" in caplog.text
        assert "gave no result within" not in caplog.text


class TestRankListings:
    """Test cases for rank_listings."""

    def test_sorts_by_ascending_price(self) -> None:
        ranked = rank_listings(
            [listing("A", "5.49"), listing("B", "4.99"), listing("C", "5.29")]
        )

        assert [item.price for item in ranked] == [
            Decimal("4.99"),
            Decimal("5.29"),
            Decimal("5.49"),
        ]

    def test_ties_keep_contribution_order(self) -> None:
        first = listing("Walmart", "3.99", "https://a")
        second = listing("Metro", "3.99", "https://b")
        third = listing("Walmart", "3.99", "https://c")

        ranked = rank_listings([first, listing("Loblaws", "9.00"), second, third])

        assert ranked[:3] == [first, second, third]
