"""
Single-product enrichment: joins a product's feature assignments against the
feature catalog to produce readable ``{feature name: value}`` entries.
"""

from __future__ import annotations

import asyncio
from typing import Any, Dict, List

from shared.errors import ShopApiException
from shared.logging import get_logger

from service_catalog.app.adapters.shop_client import ShopApiClient
from service_catalog.app.catalog.features import FeatureCatalogService
from service_catalog.app.domain.models import (
    Feature,
    FeatureAssignment,
    FeatureKind,
    FeatureValue,
    ListValue,
    NumberValue,
    TextValue,
    as_number,
)


def resolve_feature_value(assignment: FeatureAssignment, catalog: Dict[str, Feature]) -> FeatureValue:
    """Pick the display value of one assignment; first matching rule wins."""
    kind = assignment.kind
    if kind is FeatureKind.MULTI_SELECT and assignment.use_variant_picker and assignment.variants is not None:
        return ListValue([variant.variant for variant in assignment.variants])

    if kind is FeatureKind.NUMBER:
        return NumberValue(as_number(assignment.value_int))

    if assignment.variant_id and assignment.feature_id in catalog:
        variant = catalog[assignment.feature_id].variant_set.by_id().get(assignment.variant_id)
        if variant is not None and variant.variant:
            return TextValue(variant.variant)

    return TextValue(assignment.value)


class ProductEnricher:
    """Fetches one product and attaches its resolved ``product_features``."""

    def __init__(self, client: ShopApiClient, features: FeatureCatalogService):
        self.client = client
        self.features = features
        self.logger = get_logger("catalog.enrichment")

    async def get_product(self, product_id: int) -> Dict[str, Any]:
        product, assignments = await asyncio.gather(
            self.client.get_product(product_id),
            self.client.get_product_features(product_id),
        )
        catalog = await self._feature_catalog()

        product_features: List[Dict[str, Any]] = []
        for item in assignments:
            assignment = FeatureAssignment.from_dict(item)
            value = resolve_feature_value(assignment, catalog)
            product_features.append({assignment.description: value.to_json()})

        self.logger.info(
            "Product enriched",
            product_id=product_id,
            features=len(product_features),
            catalog_size=len(catalog),
        )
        enriched = dict(product)
        enriched["product_features"] = product_features
        return enriched

    async def _feature_catalog(self) -> Dict[str, Feature]:
        try:
            return await self.features.features_by_id()
        except ShopApiException as exc:
            self.logger.warning("Feature catalog unavailable; using raw feature values", error=exc.message)
            return {}
