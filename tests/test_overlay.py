"""Tests for the TTL cache and the organization overlay store."""

import pytest

from brandpulse.analysis.overlay import OverlayStore, TTLCache
from brandpulse.analysis.types import OverlaySnapshot
from brandpulse.core.exceptions import BadRequestError


class TestTTLCache:
    def test_hit_before_expiry(self, clock):
        cache = TTLCache(ttl_seconds=60, clock=clock)
        cache.set("k", "v")
        clock.advance(59.9)
        entry = cache.get("k")
        assert entry is not None
        assert entry.value == "v"
        assert entry.expires_at == 1060.0

    def test_miss_at_expiry(self, clock):
        cache = TTLCache(ttl_seconds=60, clock=clock)
        cache.set("k", "v")
        clock.advance(60)
        assert cache.get("k") is None
        assert len(cache) == 0

    def test_invalidate_and_clear(self, clock):
        cache = TTLCache(ttl_seconds=60, clock=clock)
        cache.set("a", 1)
        cache.set("b", 2)
        cache.invalidate("a")
        assert cache.get("a") is None
        cache.clear()
        assert len(cache) == 0


class TestOverlayStore:
    @pytest.mark.asyncio
    async def test_read_through_cache(self, repo, overlay_store, clock):
        org = repo.add_org()
        first = await overlay_store.get(repo, org.id)
        assert first.competitor_overrides == []

        # Written behind the store's back: stays invisible until the TTL runs out
        repo.overlays[org.id] = OverlaySnapshot(org_id=org.id, competitor_exclusions=["Zoho"])
        assert (await overlay_store.get(repo, org.id)).competitor_exclusions == []

        clock.advance(301)
        assert (await overlay_store.get(repo, org.id)).competitor_exclusions == ["Zoho"]

    @pytest.mark.asyncio
    async def test_mutation_invalidates_cache(self, repo, overlay_store):
        org = repo.add_org()
        await overlay_store.get(repo, org.id)

        await overlay_store.add_competitor_exclusion(repo, org.id, "Zoho")

        assert (await overlay_store.get(repo, org.id)).competitor_exclusions == ["Zoho"]
        assert repo.commits == 1

    @pytest.mark.asyncio
    async def test_override_and_exclusion_are_exclusive(self, repo, overlay_store):
        org = repo.add_org()
        await overlay_store.add_competitor_exclusion(repo, org.id, "Zoho")
        overlay = await overlay_store.add_competitor_override(repo, org.id, "zoho")
        assert overlay.competitor_overrides == ["zoho"]
        assert overlay.competitor_exclusions == []

        overlay = await overlay_store.add_competitor_exclusion(repo, org.id, "ZOHO")
        assert overlay.competitor_overrides == []
        assert overlay.competitor_exclusions == ["ZOHO"]

    @pytest.mark.asyncio
    async def test_add_is_idempotent_and_remove_matches_normalized(self, repo, overlay_store):
        org = repo.add_org()
        await overlay_store.add_competitor_override(repo, org.id, "Close")
        overlay = await overlay_store.add_competitor_override(repo, org.id, " close ")
        assert overlay.competitor_overrides == ["Close"]

        overlay = await overlay_store.remove_competitor_override(repo, org.id, "CLOSE")
        assert overlay.competitor_overrides == []

        await overlay_store.add_competitor_exclusion(repo, org.id, "Zoho")
        overlay = await overlay_store.remove_competitor_exclusion(repo, org.id, "zoho")
        assert overlay.competitor_exclusions == []

    @pytest.mark.asyncio
    async def test_brand_variant(self, repo, overlay_store):
        org = repo.add_org()
        overlay = await overlay_store.add_brand_variant(repo, org.id, "Acme Cloud")
        assert overlay.brand_variants == ["Acme Cloud"]

    @pytest.mark.asyncio
    async def test_blank_name_rejected(self, repo, overlay_store):
        org = repo.add_org()
        with pytest.raises(BadRequestError):
            await overlay_store.add_competitor_override(repo, org.id, "  ")
        assert repo.commits == 0

    def test_default_cache(self):
        store = OverlayStore()
        assert store.cache.ttl_seconds == 300
