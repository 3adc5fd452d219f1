"""
CS-Cart REST API client.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import httpx

from shared.logging import get_logger
from shared.errors import BackendError, TransportError

from service_catalog.app.domain.models import as_list


DEFAULT_PAGE_SIZE = 250


@dataclass(frozen=True)
class ShopCredentials:
    """Base URL and the static Basic credential reused for every call."""

    shop_url: str
    email: str
    api_key: str

    @property
    def api_root(self) -> str:
        return f"{self.shop_url.rstrip('/')}/api/2.0"

    @property
    def auth(self) -> httpx.BasicAuth:
        return httpx.BasicAuth(self.email, self.api_key)


class ShopApiClient:
    """Read-only client for the shop's REST API."""

    def __init__(
        self,
        credentials: ShopCredentials,
        *,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.credentials = credentials
        self.timeout = timeout
        self.transport = transport
        self.logger = get_logger("catalog.shop_client")

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.credentials.api_root,
            auth=self.credentials.auth,
            headers={"Accept": "application/json"},
            timeout=self.timeout,
            transport=self.transport,
        )

    async def get_json(self, path: str, resource: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """GET one resource; any failure raises naming the resource."""
        try:
            async with self._client() as client:
                response = await client.get(path, params=params)
        except httpx.HTTPError as exc:
            self.logger.error("Shop API unreachable", resource=resource, path=path, error=str(exc))
            raise TransportError(resource, f"Network error: {exc}", details={"path": path}) from exc

        if not response.is_success:
            self.logger.error(
                "Shop API request failed",
                resource=resource,
                path=path,
                status_code=response.status_code,
            )
            raise BackendError(
                resource,
                response.status_code,
                message=f"{response.status_code} {response.reason_phrase}".strip(),
                details={"path": path},
            )

        try:
            return response.json()
        except ValueError as exc:
            self.logger.error("Shop API returned invalid JSON", resource=resource, path=path)
            raise BackendError(
                resource,
                response.status_code,
                message="Invalid JSON in response",
                details={"path": path},
            ) from exc

    async def fetch_all(self, path: str, collection: str, page_size: int = DEFAULT_PAGE_SIZE) -> List[Any]:
        """
        Drain every page of a collection resource.

        Stops on an empty page or on a short page. Any failed page aborts the
        whole drain; partial results are never returned.
        """
        items: List[Any] = []
        page = 1
        while True:
            data = await self.get_json(
                path,
                f"{collection} page {page}",
                params={"items_per_page": page_size, "page": page},
            )
            page_items = as_list(data.get(collection)) if isinstance(data, dict) else []
            if not page_items:
                break
            items.extend(page_items)
            if len(page_items) < page_size:
                break
            page += 1

        self.logger.info("Collection drained", collection=collection, pages=page, items=len(items))
        return items

    async def get_product(self, product_id: int) -> Dict[str, Any]:
        data = await self.get_json(f"/products/{product_id}", f"product {product_id}")
        if not isinstance(data, dict):
            raise BackendError(f"product {product_id}", message="Unexpected response shape")
        return data

    async def get_product_features(self, product_id: int, page_size: int = DEFAULT_PAGE_SIZE) -> List[Dict[str, Any]]:
        data = await self.get_json(
            f"/products/{product_id}/features",
            f"features of product {product_id}",
            params={"items_per_page": page_size},
        )
        features = as_list(data.get("features")) if isinstance(data, dict) else []
        return [feature for feature in features if isinstance(feature, dict)]

    async def get_feature(self, feature_id: str) -> Dict[str, Any]:
        data = await self.get_json(f"/features/{feature_id}", f"feature {feature_id}")
        return data if isinstance(data, dict) else {}

    async def get_order(self, order_id: int) -> Dict[str, Any]:
        data = await self.get_json(f"/orders/{order_id}", f"order {order_id}")
        if not isinstance(data, dict):
            raise BackendError(f"order {order_id}", message="Unexpected response shape")
        return data
