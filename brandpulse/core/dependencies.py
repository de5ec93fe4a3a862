from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from brandpulse.analysis.overlay import OverlayStore, TTLCache
from brandpulse.catalog.repository import CatalogRepository
from brandpulse.core.config import settings
from brandpulse.db.postgres import get_db


async def get_repository(db: AsyncSession = Depends(get_db)) -> CatalogRepository:
    return CatalogRepository(db)


def get_overlay_store(request: Request) -> OverlayStore:
    """Overlay store owned by the running app (created in the lifespan)."""
    store = getattr(request.app.state, "overlay_store", None)
    if store is None:
        store = OverlayStore(TTLCache(ttl_seconds=settings.overlay_cache_ttl_seconds))
        request.app.state.overlay_store = store
    return store
