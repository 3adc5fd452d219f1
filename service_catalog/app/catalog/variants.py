"""
Feature variant resolution across memory, disk and the backend.
"""

from __future__ import annotations

import asyncio
from typing import List

from shared.errors import ShopApiException
from shared.logging import get_logger

from service_catalog.app.adapters.shop_client import ShopApiClient
from service_catalog.app.caching.variant_store import VariantStore
from service_catalog.app.domain.models import Feature, VariantSet, parse_variants


class FeatureVariantResolver:
    """Attaches a ``VariantSet`` to every feature."""

    def __init__(self, client: ShopApiClient, store: VariantStore):
        self.client = client
        self.store = store
        self.logger = get_logger("catalog.variant_resolver")

    async def resolve(self, feature: Feature) -> Feature:
        """
        Resolve one feature's variants.

        Memory and disk hits short-circuit; a backend success is written through
        both tiers. A backend failure yields a FAILED set and is not cached, so
        the next request retries.
        """
        feature_id = feature.feature_id
        if not feature_id:
            return feature.with_variants(VariantSet.empty())

        variants, tier = self.store.get(feature_id)
        if variants is not None:
            self.logger.debug("Variants served from cache", feature_id=feature_id, tier=tier)
            return feature.with_variants(VariantSet.resolved(variants))

        try:
            data = await self.client.get_feature(feature_id)
        except ShopApiException as exc:
            self.logger.warning("Variant resolution failed", feature_id=feature_id, error=exc.message)
            return feature.with_variants(VariantSet.failed(exc.message))

        variants = parse_variants(data.get("variants"))
        self.store.put(feature_id, variants)
        self.logger.debug("Variants fetched", feature_id=feature_id, count=len(variants))
        return feature.with_variants(VariantSet.resolved(variants))

    async def resolve_all(self, features: List[Feature]) -> List[Feature]:
        """Resolve every feature concurrently; output keeps input order."""
        return list(await asyncio.gather(*(self.resolve(feature) for feature in features)))
