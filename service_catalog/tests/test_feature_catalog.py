"""
Unit tests for variant resolution and the feature catalog service.
"""

import asyncio
import json

import httpx
import pytest

from shared.errors import BackendError
from service_catalog.app.caching.persistent_cache import PersistentCache
from service_catalog.app.caching.variant_store import VariantStore
from service_catalog.app.catalog.features import FeatureCatalogService
from service_catalog.app.catalog.variants import FeatureVariantResolver
from service_catalog.app.domain.models import Feature, Variant, VariantStatus

API = "/api/2.0"

COLOR_VARIANTS = {
    "variants": {
        "101": {"variant_id": "101", "variant": "Red"},
        "102": {"variant_id": "102", "variant": "Blue"},
    }
}


def make_feature(feature_id, description="Color", feature_type="S"):
    return Feature.from_dict(
        {"feature_id": feature_id, "description": description, "feature_type": feature_type}
    )


class TestFeatureVariantResolver:
    """Test cases for FeatureVariantResolver."""

    @pytest.fixture
    def store(self, tmp_path):
        return VariantStore(tmp_path / "feature")

    @pytest.fixture
    def resolver(self, client, store):
        return FeatureVariantResolver(client, store)

    @pytest.mark.asyncio
    async def test_feature_without_id(self, shop, resolver):
        """Features without an id get an empty set and no backend call."""
        feature = await resolver.resolve(make_feature(None))

        assert feature.variant_set.status is VariantStatus.EMPTY
        assert feature.variant_set.variants == []
        assert shop.requests == []

    @pytest.mark.asyncio
    async def test_second_resolution_served_from_memory(self, shop, resolver, store):
        """Resolving the same feature twice calls the backend once."""
        shop.add(f"{API}/features/7", COLOR_VARIANTS)

        first = await resolver.resolve(make_feature("7"))
        second = await resolver.resolve(make_feature("7"))

        assert len(shop.calls(f"{API}/features/7")) == 1
        assert first.variant_set.status is VariantStatus.RESOLVED
        assert second.variant_set.variants == [Variant("101", "Red"), Variant("102", "Blue")]
        assert (store.directory / "7.json").exists()

    @pytest.mark.asyncio
    async def test_disk_tier_used_before_backend(self, shop, resolver, store):
        """A durable entry avoids the backend call."""
        store.directory.mkdir(parents=True)
        (store.directory / "8.json").write_text(
            json.dumps({"variants": [{"variant_id": "1", "variant": "Cotton"}]}),
            encoding="utf-8",
        )

        feature = await resolver.resolve(make_feature("8"))

        assert feature.variant_set.variants == [Variant("1", "Cotton")]
        assert shop.requests == []

    @pytest.mark.asyncio
    async def test_variant_file_write_failure_still_resolves(self, shop, client, tmp_path):
        """Variants are returned and kept in memory when the file cannot be written."""
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory", encoding="utf-8")
        store = VariantStore(blocker / "feature")
        resolver = FeatureVariantResolver(client, store)
        shop.add(f"{API}/features/7", COLOR_VARIANTS)

        feature = await resolver.resolve(make_feature("7"))

        assert feature.variant_set.status is VariantStatus.RESOLVED
        assert feature.variant_set.variants == [Variant("101", "Red"), Variant("102", "Blue")]
        assert store.get_memory("7") == [Variant("101", "Red"), Variant("102", "Blue")]
        assert not (blocker / "feature").exists()

    @pytest.mark.asyncio
    async def test_non_collection_variants_become_empty(self, shop, resolver, store):
        """Malformed variant payloads resolve to an empty set and are cached."""
        shop.add(f"{API}/features/9", {"variants": "none"})

        feature = await resolver.resolve(make_feature("9"))

        assert feature.variant_set.status is VariantStatus.RESOLVED
        assert feature.variant_set.variants == []
        assert store.get_memory("9") == []

    @pytest.mark.asyncio
    async def test_backend_failure_not_cached(self, shop, resolver, store):
        """Failures yield a FAILED set and the next request retries."""
        shop.add(f"{API}/features/4", {"message": "boom"}, status_code=500)

        failed = await resolver.resolve(make_feature("4"))

        assert failed.variant_set.status is VariantStatus.FAILED
        assert "500" in failed.variant_set.error
        assert store.get("4") == (None, "miss")

        shop.add(f"{API}/features/4", COLOR_VARIANTS)
        recovered = await resolver.resolve(make_feature("4"))

        assert recovered.variant_set.status is VariantStatus.RESOLVED
        assert len(shop.calls(f"{API}/features/4")) == 2

    @pytest.mark.asyncio
    async def test_resolve_all_keeps_order(self, shop, resolver):
        """Results follow input order regardless of completion order."""
        async def slow_handler(request):
            await asyncio.sleep(0.05)
            return httpx.Response(200, json={"variants": [{"variant_id": "1", "variant": "Slow"}]})

        shop.add_handler(f"{API}/features/1", slow_handler)
        shop.add(f"{API}/features/2", {"variants": [{"variant_id": "2", "variant": "Fast"}]})

        features = await resolver.resolve_all([make_feature("1"), make_feature("2"), make_feature(None)])

        assert [f.feature_id for f in features] == ["1", "2", None]
        assert features[0].variant_set.variants[0].variant == "Slow"
        assert features[1].variant_set.variants[0].variant == "Fast"

    @pytest.mark.asyncio
    async def test_one_failure_does_not_block_others(self, shop, resolver):
        """A failing feature degrades alone."""
        shop.add(f"{API}/features/1", COLOR_VARIANTS)

        features = await resolver.resolve_all([make_feature("1"), make_feature("404")])

        assert features[0].variant_set.status is VariantStatus.RESOLVED
        assert features[1].variant_set.status is VariantStatus.FAILED


class TestFeatureCatalogService:
    """Test cases for FeatureCatalogService."""

    @pytest.fixture
    def cache(self, tmp_path, clock):
        return PersistentCache(tmp_path / "features.json", clock=clock)

    @pytest.fixture
    def service(self, client, cache, tmp_path):
        resolver = FeatureVariantResolver(client, VariantStore(tmp_path / "feature"))
        return FeatureCatalogService(client, resolver, cache, cache_ttl=3600)

    @pytest.fixture
    def backend(self, shop):
        shop.add_pages(
            f"{API}/features",
            "features",
            [[
                {"feature_id": "7", "description": "Color", "feature_type": "S"},
                {"feature_id": "8", "description": "Weight", "feature_type": "N"},
            ]],
        )
        shop.add(f"{API}/features/7", COLOR_VARIANTS)
        shop.add(f"{API}/features/8", {"variants": []})
        return shop

    @pytest.mark.asyncio
    async def test_refresh_enriches_and_persists(self, backend, service, cache):
        """A miss drains features, resolves variants and saves the blob."""
        payload = await service.get_features_payload()

        assert [f["feature_id"] for f in payload] == ["7", "8"]
        assert payload[0]["variants"] == {
            "101": {"variant_id": "101", "variant": "Red"},
            "102": {"variant_id": "102", "variant": "Blue"},
        }
        assert payload[1]["variants"] == {}
        assert all(f["variants_status"] == "resolved" for f in payload)

        on_disk = json.loads(cache.path.read_text(encoding="utf-8"))
        assert on_disk["payload"] == payload

    @pytest.mark.asyncio
    async def test_fresh_cache_returned_verbatim(self, backend, service):
        """Within the TTL the backend is not contacted again."""
        await service.get_features()
        count = len(backend.requests)

        features = await service.get_features()

        assert len(backend.requests) == count
        assert len(features) == 2

    @pytest.mark.asyncio
    async def test_stale_cache_refreshes(self, backend, service, clock):
        """After the TTL the catalog is fetched again."""
        await service.get_features()
        clock.advance(3600)

        await service.get_features()

        assert len(backend.calls(f"{API}/features")) == 2
        # variants never expire
        assert len(backend.calls(f"{API}/features/7")) == 1

    @pytest.mark.asyncio
    async def test_loaded_cache_is_decoded(self, shop, service, cache, clock):
        """A catalog saved by a previous process is served without the backend."""
        cache.store([
            {
                "feature_id": "7",
                "description": "Color",
                "feature_type": "S",
                "variants": {"101": {"variant_id": "101", "variant": "Red"}},
                "variants_status": "resolved",
            }
        ])
        cache.save()
        cache.load()

        by_id = await service.features_by_id()

        assert by_id["7"].variant_set.by_id()["101"].variant == "Red"
        assert shop.requests == []

    @pytest.mark.asyncio
    async def test_empty_catalog_is_cached(self, shop, service, cache):
        """An empty result is stored and not re-fetched within the TTL."""
        shop.add_pages(f"{API}/features", "features", [[]])

        assert await service.get_features() == []
        assert await service.get_features() == []

        assert len(shop.calls(f"{API}/features")) == 1
        assert json.loads(cache.path.read_text(encoding="utf-8"))["payload"] == []

    @pytest.mark.asyncio
    async def test_drain_failure_propagates(self, shop, service, cache):
        """Pagination failures surface to the caller and nothing is cached."""
        shop.add(f"{API}/features", {"message": "down"}, status_code=502)

        with pytest.raises(BackendError):
            await service.get_features()

        assert cache.payload is None

    @pytest.mark.asyncio
    async def test_concurrent_callers_share_one_refresh(self, backend, service):
        """Concurrent misses are serialized into a single refresh."""
        results = await asyncio.gather(service.get_features(), service.get_features())

        assert len(backend.calls(f"{API}/features")) == 1
        assert results[0] is results[1]
