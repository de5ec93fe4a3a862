"""Organization overlay store with an explicit TTL cache.

The cache is a plain object owned by whoever runs the pipeline (app state,
a Celery task run, a test). The clock is injectable so expiry is testable
without sleeping.
"""

from __future__ import annotations

import logging
import time
import uuid
from collections.abc import Callable, Hashable
from dataclasses import dataclass
from typing import Any, Generic, Protocol, TypeVar

from brandpulse.analysis.text import normalize_name
from brandpulse.analysis.types import OverlaySnapshot
from brandpulse.core.exceptions import BadRequestError

logger = logging.getLogger(__name__)

V = TypeVar("V")

DEFAULT_OVERLAY_TTL = 300.0  # 5 minutes


@dataclass(frozen=True)
class CacheEntry(Generic[V]):
    value: V
    expires_at: float


class TTLCache(Generic[V]):
    """Dict-backed cache where each entry expires ``ttl_seconds`` after it is set."""

    def __init__(self, ttl_seconds: float = DEFAULT_OVERLAY_TTL, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[Hashable, CacheEntry[V]] = {}

    def get(self, key: Hashable) -> CacheEntry[V] | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._clock() >= entry.expires_at:
            del self._entries[key]
            return None
        return entry

    def set(self, key: Hashable, value: V) -> CacheEntry[V]:
        entry = CacheEntry(value=value, expires_at=self._clock() + self.ttl_seconds)
        self._entries[key] = entry
        return entry

    def invalidate(self, key: Hashable) -> None:
        self._entries.pop(key, None)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


class OverlayRepository(Protocol):
    async def load_overlay(self, org_id: uuid.UUID) -> OverlaySnapshot: ...

    async def save_overlay(self, overlay: OverlaySnapshot) -> None: ...

    async def commit(self) -> None: ...


def _without(values: list[str], name: str) -> list[str]:
    key = normalize_name(name)
    return [v for v in values if normalize_name(v) != key]


def _with(values: list[str], name: str) -> list[str]:
    key = normalize_name(name)
    if not key:
        raise BadRequestError("Name is required")
    if any(normalize_name(v) == key for v in values):
        return list(values)
    return [*values, name.strip()]


class OverlayStore:
    """Read-through cached access to org overlays plus operator mutations."""

    def __init__(self, cache: TTLCache[OverlaySnapshot] | None = None):
        self.cache: TTLCache[OverlaySnapshot] = cache if cache is not None else TTLCache()

    async def get(self, repo: OverlayRepository, org_id: uuid.UUID) -> OverlaySnapshot:
        entry = self.cache.get(org_id)
        if entry is not None:
            return entry.value
        overlay = await repo.load_overlay(org_id)
        self.cache.set(org_id, overlay)
        return overlay

    async def _update(
        self,
        repo: OverlayRepository,
        org_id: uuid.UUID,
        mutate: Callable[[OverlaySnapshot], Any],
    ) -> OverlaySnapshot:
        # Mutations always start from storage, never from a possibly stale cache entry
        overlay = await repo.load_overlay(org_id)
        mutate(overlay)
        await repo.save_overlay(overlay)
        await repo.commit()
        self.cache.invalidate(org_id)
        return overlay

    async def add_competitor_override(self, repo: OverlayRepository, org_id: uuid.UUID, name: str) -> OverlaySnapshot:
        def mutate(o: OverlaySnapshot) -> None:
            o.competitor_overrides = _with(o.competitor_overrides, name)
            o.competitor_exclusions = _without(o.competitor_exclusions, name)

        logger.info("Overlay %s: force-include %r", org_id, name)
        return await self._update(repo, org_id, mutate)

    async def remove_competitor_override(
        self, repo: OverlayRepository, org_id: uuid.UUID, name: str
    ) -> OverlaySnapshot:
        def mutate(o: OverlaySnapshot) -> None:
            o.competitor_overrides = _without(o.competitor_overrides, name)

        return await self._update(repo, org_id, mutate)

    async def add_competitor_exclusion(
        self, repo: OverlayRepository, org_id: uuid.UUID, name: str
    ) -> OverlaySnapshot:
        def mutate(o: OverlaySnapshot) -> None:
            o.competitor_exclusions = _with(o.competitor_exclusions, name)
            o.competitor_overrides = _without(o.competitor_overrides, name)

        logger.info("Overlay %s: exclude %r", org_id, name)
        return await self._update(repo, org_id, mutate)

    async def remove_competitor_exclusion(
        self, repo: OverlayRepository, org_id: uuid.UUID, name: str
    ) -> OverlaySnapshot:
        def mutate(o: OverlaySnapshot) -> None:
            o.competitor_exclusions = _without(o.competitor_exclusions, name)

        return await self._update(repo, org_id, mutate)

    async def add_brand_variant(self, repo: OverlayRepository, org_id: uuid.UUID, name: str) -> OverlaySnapshot:
        def mutate(o: OverlaySnapshot) -> None:
            o.brand_variants = _with(o.brand_variants, name)

        return await self._update(repo, org_id, mutate)
