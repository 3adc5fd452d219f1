"""
Product catalog: full product records cached for listing, summaries for search.
"""

from __future__ import annotations

import asyncio
from typing import Any, Dict, List, Optional

from shared.logging import get_logger

from service_catalog.app.adapters.shop_client import DEFAULT_PAGE_SIZE, ShopApiClient
from service_catalog.app.caching.persistent_cache import PersistentCache
from service_catalog.app.domain.models import ProductSummary


class ProductCatalogService:
    """Serves the product catalog with the same TTL policy as the feature catalog."""

    def __init__(
        self,
        client: ShopApiClient,
        cache: PersistentCache,
        *,
        cache_ttl: int = 0,
        page_size: int = DEFAULT_PAGE_SIZE,
    ):
        self.client = client
        self.cache = cache
        self.cache_ttl = cache_ttl
        self.page_size = page_size
        self.logger = get_logger("catalog.products")
        self._refresh_lock = asyncio.Lock()
        self.summaries: List[ProductSummary] = []

    async def get_products(self) -> List[Dict[str, Any]]:
        """Full product records; the summary projection is rebuilt from them."""
        products = self._cached_products()
        if products is None:
            async with self._refresh_lock:
                products = self._cached_products()
                if products is None:
                    products = await self._refresh()

        self.summaries = [ProductSummary.from_product(product) for product in products]
        return products

    async def search(self, name: Optional[str] = None, code: Optional[str] = None) -> List[Dict[str, Any]]:
        """Summaries whose name and/or code contain the given text (AND when both)."""
        await self.get_products()
        matches = [summary for summary in self.summaries if summary.matches(name=name, code=code)]
        self.logger.debug("Product search", name=name, code=code, matches=len(matches))
        return [summary.to_dict() for summary in matches]

    def _cached_products(self) -> Optional[List[Dict[str, Any]]]:
        if not self.cache.is_fresh(self.cache_ttl):
            return None
        payload = self.cache.payload
        if not isinstance(payload, list):
            self.logger.warning("Cached product catalog is not a list; refreshing")
            return None
        self.logger.debug("Product catalog cache hit", age=self.cache.age(), count=len(payload))
        return [product for product in payload if isinstance(product, dict)]

    async def _refresh(self) -> List[Dict[str, Any]]:
        self.logger.info("Product catalog cache miss, refreshing", ttl=self.cache_ttl)
        raw_products = await self.client.fetch_all("/products", "products", self.page_size)
        products = [product for product in raw_products if isinstance(product, dict)]

        self.cache.store(products)
        self.cache.save()
        self.logger.info("Product catalog refreshed", count=len(products))
        return products
