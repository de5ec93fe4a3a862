"""Per-organization overlay: forced competitors, exclusions, extra brand variants."""

from uuid import UUID

from fastapi import APIRouter, Depends

from brandpulse.analysis.overlay import OverlayStore
from brandpulse.catalog.repository import CatalogRepository
from brandpulse.core.dependencies import get_overlay_store, get_repository
from brandpulse.core.exceptions import NotFoundError
from brandpulse.schemas.overlay import OverlayNameRequest, OverlayResponse

router = APIRouter(prefix="/organizations/{org_id}/overlay", tags=["overlay"])


async def _ensure_org(repo: CatalogRepository, org_id: UUID) -> None:
    if await repo.get_organization(org_id) is None:
        raise NotFoundError("Organization not found")


@router.get("", response_model=OverlayResponse)
async def get_overlay(
    org_id: UUID,
    repo: CatalogRepository = Depends(get_repository),
    store: OverlayStore = Depends(get_overlay_store),
):
    await _ensure_org(repo, org_id)
    return OverlayResponse.model_validate(await store.get(repo, org_id))


@router.post("/overrides", response_model=OverlayResponse)
async def add_override(
    org_id: UUID,
    body: OverlayNameRequest,
    repo: CatalogRepository = Depends(get_repository),
    store: OverlayStore = Depends(get_overlay_store),
):
    await _ensure_org(repo, org_id)
    return OverlayResponse.model_validate(await store.add_competitor_override(repo, org_id, body.name))


@router.delete("/overrides", response_model=OverlayResponse)
async def remove_override(
    org_id: UUID,
    body: OverlayNameRequest,
    repo: CatalogRepository = Depends(get_repository),
    store: OverlayStore = Depends(get_overlay_store),
):
    await _ensure_org(repo, org_id)
    return OverlayResponse.model_validate(await store.remove_competitor_override(repo, org_id, body.name))


@router.post("/exclusions", response_model=OverlayResponse)
async def add_exclusion(
    org_id: UUID,
    body: OverlayNameRequest,
    repo: CatalogRepository = Depends(get_repository),
    store: OverlayStore = Depends(get_overlay_store),
):
    await _ensure_org(repo, org_id)
    return OverlayResponse.model_validate(await store.add_competitor_exclusion(repo, org_id, body.name))


@router.delete("/exclusions", response_model=OverlayResponse)
async def remove_exclusion(
    org_id: UUID,
    body: OverlayNameRequest,
    repo: CatalogRepository = Depends(get_repository),
    store: OverlayStore = Depends(get_overlay_store),
):
    await _ensure_org(repo, org_id)
    return OverlayResponse.model_validate(await store.remove_competitor_exclusion(repo, org_id, body.name))


@router.post("/variants", response_model=OverlayResponse)
async def add_variant(
    org_id: UUID,
    body: OverlayNameRequest,
    repo: CatalogRepository = Depends(get_repository),
    store: OverlayStore = Depends(get_overlay_store),
):
    await _ensure_org(repo, org_id)
    return OverlayResponse.model_validate(await store.add_brand_variant(repo, org_id, body.name))
