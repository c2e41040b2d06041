"""Test the price HTTP endpoints."""

import asyncio
import threading
import time
from decimal import Decimal
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

from app import create_app
from configs import Settings
from nutrient_navigator.controllers.price_controllers import search_prices
from nutrient_navigator.services.price_search.models import PriceListing
from nutrient_navigator.services.price_search.service import get_price_search_service


class FakeService:
    """Service double recording the queries it receives."""

    def __init__(self, listings=(), error=None):
        self.listings = list(listings)
        self.error = error
        self.queries = []

    def search(self, query, cancel_event=None):
        self.queries.append(query)
        if self.error is not None:
            raise self.error
        return self.listings


@pytest.fixture()
def app():
    return create_app(Settings())


def client_with(app, service) -> TestClient:
    app.dependency_overrides[get_price_search_service] = lambda: service
    return TestClient(app)


class TestSearchEndpoint:
    """Test cases for GET /api/prices/search."""

    def test_returns_listings_with_numeric_price(self, app) -> None:
        # Arrange
        service = FakeService(
            [
                PriceListing(
                    store="Walmart",
                    price=Decimal("3.99"),
                    unit="each",
                    distance="Local",
                    icon="🏪",
                    product_url="https://www.walmart.ca/en/ip/1",
                )
            ]
        )
        client = client_with(app, service)

        # Act
        response = client.get("/api/prices/search", params={"query": " eggs "})

        # Assert
        assert response.status_code == 200
        assert response.json() == [
            {
                "store": "Walmart",
                "price": 3.99,
                "unit": "each",
                "distance": "Local",
                "icon": "🏪",
                "productUrl": "https://www.walmart.ca/en/ip/1",
            }
        ]
        assert service.queries == ["eggs"]

    def test_no_offers_is_empty_list(self, app) -> None:
        client = client_with(app, FakeService())

        response = client.get("/api/prices/search", params={"query": "durian"})

        assert response.status_code == 200
        assert response.json() == []

    @pytest.mark.parametrize("params", [{}, {"query": ""}, {"query": "   "}])
    def test_blank_query_is_rejected_before_search(self, app, params) -> None:
        service = FakeService()
        client = client_with(app, service)

        response = client.get("/api/prices/search", params=params)

        assert response.status_code == 400
        assert service.queries == []

    def test_unexpected_fault_is_server_error_with_empty_body(self, app) -> None:
        client = client_with(app, FakeService(error=RuntimeError("boom")))

        response = client.get("/api/prices/search", params={"query": "milk"})

        assert response.status_code == 500
        assert response.content == b""


class TestMockEndpoint:
    """Test cases for GET /api/prices/mock."""

    def test_milk_is_ranked_by_price(self, app) -> None:
        client = TestClient(app)

        response = client.get("/api/prices/mock", params={"query": "milk"})

        assert response.status_code == 200
        body = response.json()
        assert [item["price"] for item in body] == [4.99, 5.29, 5.49]
        assert [item["store"] for item in body] == ["Walmart", "Metro", "Loblaws"]
        assert body[0]["productUrl"] == "#"

    def test_blank_query_is_rejected(self, app) -> None:
        response = TestClient(app).get("/api/prices/mock", params={"query": " "})

        assert response.status_code == 400


def test_healthcheck(app) -> None:
    response = TestClient(app).get("/")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


class BlockingService:
    """Service double that only returns once its search is cancelled."""

    def __init__(self):
        self.cancel_event = None
        self.started = threading.Event()

    def search(self, query, cancel_event=None):
        self.cancel_event = cancel_event
        self.started.set()
        cancel_event.wait(5)
        return []


def _search_scope(query: str) -> dict:
    return {
        "type": "http",
        "asgi": {"version": "3.0"},
        "http_version": "1.1",
        "method": "GET",
        "scheme": "http",
        "path": "/api/prices/search",
        "raw_path": b"/api/prices/search",
        "root_path": "",
        "query_string": f"query={query}".encode(),
        "headers": [(b"host", b"testserver")],
        "client": ("testclient", 50000),
        "server": ("testserver", 80),
    }


class TestSearchCancellation:
    """Test cases for cancelling in-flight searches."""

    def test_client_disconnect_cancels_search(self, app) -> None:
        """Test that a dropped client sets the cancel event handed to the search."""
        # Arrange
        service = BlockingService()
        app.dependency_overrides[get_price_search_service] = lambda: service
        sent = []
        started = time.monotonic()

        async def receive():
            if time.monotonic() - started < 0.3:
                return {"type": "http.request", "body": b"", "more_body": False}
            return {"type": "http.disconnect"}

        async def send(message):
            sent.append(message)

        # Act
        asyncio.run(app(_search_scope("milk"), receive, send))
        elapsed = time.monotonic() - started

        # Assert
        assert service.cancel_event is not None
        assert service.cancel_event.is_set()
        assert elapsed < 3
        assert sent[0]["status"] == 200

    def test_cancelled_endpoint_sets_cancel_event(self) -> None:
        """Test that cancelling the request coroutine still stops the search."""
        # Arrange
        service = BlockingService()

        async def never_disconnected():
            return False

        request = SimpleNamespace(is_disconnected=never_disconnected)

        async def run_and_cancel():
            endpoint = asyncio.ensure_future(search_prices(request, "milk", service))
            await asyncio.get_running_loop().run_in_executor(
                None, service.started.wait, 2
            )
            endpoint.cancel()
            with pytest.raises(asyncio.CancelledError):
                await endpoint

        # Act
        started = time.monotonic()
        asyncio.run(run_and_cancel())

        # Assert
        assert service.cancel_event.is_set()
        assert time.monotonic() - started < 3
