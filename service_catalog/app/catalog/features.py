"""
Feature catalog: every shop feature, enriched with its variants, cached as one blob.
"""

from __future__ import annotations

import asyncio
from typing import Any, Dict, List, Optional

from shared.logging import get_logger

from service_catalog.app.adapters.shop_client import DEFAULT_PAGE_SIZE, ShopApiClient
from service_catalog.app.caching.persistent_cache import PersistentCache
from service_catalog.app.catalog.variants import FeatureVariantResolver
from service_catalog.app.domain.models import Feature


class FeatureCatalogService:
    """Serves the enriched feature catalog, refreshing it once the TTL runs out."""

    def __init__(
        self,
        client: ShopApiClient,
        resolver: FeatureVariantResolver,
        cache: PersistentCache,
        *,
        cache_ttl: int = 0,
        page_size: int = DEFAULT_PAGE_SIZE,
    ):
        self.client = client
        self.resolver = resolver
        self.cache = cache
        self.cache_ttl = cache_ttl
        self.page_size = page_size
        self.logger = get_logger("catalog.features")
        self._refresh_lock = asyncio.Lock()
        self._features: Optional[List[Feature]] = None
        self._features_epoch: Optional[int] = None

    async def get_features(self) -> List[Feature]:
        cached = self._cached_features()
        if cached is not None:
            return cached

        async with self._refresh_lock:
            # another caller may have refreshed while we waited
            cached = self._cached_features()
            if cached is not None:
                return cached
            return await self._refresh()

    async def get_features_payload(self) -> List[Dict[str, Any]]:
        return [feature.to_dict() for feature in await self.get_features()]

    async def features_by_id(self) -> Dict[str, Feature]:
        return {
            feature.feature_id: feature
            for feature in await self.get_features()
            if feature.feature_id
        }

    def _cached_features(self) -> Optional[List[Feature]]:
        if not self.cache.is_fresh(self.cache_ttl):
            return None
        if self._features is None or self._features_epoch != self.cache.epoch_timestamp:
            payload = self.cache.payload
            if not isinstance(payload, list):
                self.logger.warning("Cached feature catalog is not a list; refreshing")
                return None
            self._features = [Feature.from_dict(item) for item in payload if isinstance(item, dict)]
            self._features_epoch = self.cache.epoch_timestamp
        self.logger.debug("Feature catalog cache hit", age=self.cache.age(), count=len(self._features))
        return self._features

    async def _refresh(self) -> List[Feature]:
        self.logger.info("Feature catalog cache miss, refreshing", ttl=self.cache_ttl)
        raw_features = await self.client.fetch_all("/features", "features", self.page_size)
        features = [Feature.from_dict(item) for item in raw_features if isinstance(item, dict)]
        features = await self.resolver.resolve_all(features)

        # empty catalogs are stored too, so they are not re-fetched within the TTL
        self.cache.store([feature.to_dict() for feature in features])
        self.cache.save()
        self._features = features
        self._features_epoch = self.cache.epoch_timestamp
        self.logger.info("Feature catalog refreshed", count=len(features))
        return features
