"""
Shared fixtures for catalog service tests.
"""

import json
from typing import Any, Callable, Dict, List, Optional, Tuple

import httpx
import pytest

from service_catalog.app.adapters.shop_client import ShopApiClient, ShopCredentials


class FakeShop:
    """Routes requests to canned JSON responses and records every call."""

    def __init__(self):
        self.routes: Dict[str, Callable[[httpx.Request], httpx.Response]] = {}
        self.requests: List[httpx.Request] = []

    def add(self, path: str, payload: Any = None, status_code: int = 200) -> None:
        self.routes[path] = lambda request: httpx.Response(status_code, json=payload)

    def add_handler(self, path: str, handler: Callable[[httpx.Request], httpx.Response]) -> None:
        self.routes[path] = handler

    def add_pages(self, path: str, collection: str, pages: List[List[Any]]) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            page = int(request.url.params.get("page", "1"))
            items = pages[page - 1] if page <= len(pages) else []
            return httpx.Response(200, json={collection: items})

        self.routes[path] = handler

    def calls(self, path: str) -> List[httpx.Request]:
        return [request for request in self.requests if request.url.path == path]

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        handler = self.routes.get(request.url.path)
        if handler is None:
            return httpx.Response(404, json={"message": "Not found"})
        return handler(request)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)


class FakeClock:
    """Settable epoch clock."""

    def __init__(self, now: float = 1_700_000_000):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


API = "/api/2.0"


@pytest.fixture
def shop():
    return FakeShop()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def client(shop):
    return ShopApiClient(
        ShopCredentials("https://shop.example.com", "admin@example.com", "secret-key"),
        transport=shop.transport,
    )


@pytest.fixture
def shop_settings(tmp_path):
    """Keyword arguments for ShopConfig that need no environment."""
    return {
        "shop_url": "https://shop.example.com/",
        "email": "admin@example.com",
        "api_key": "secret-key",
        "admin_url": "https://shop.example.com/admin.php",
        "product_link_template": "https://supplier.example.com/item/{id}",
        "telegram_field": "42",
        "cache_time": 3600,
        "data_dir": str(tmp_path / "data"),
        "log_file": "",
        "_env_file": None,
    }
