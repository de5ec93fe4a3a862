"""Brand catalog: list, manual add/delete, sync sweep, duplicates, merge."""

from uuid import UUID

from fastapi import APIRouter, Depends, Query

from brandpulse.catalog import duplicates, entries
from brandpulse.catalog.repository import CatalogRepository
from brandpulse.catalog.sync import sync_organization_catalog
from brandpulse.core.config import settings
from brandpulse.core.dependencies import get_repository
from brandpulse.core.exceptions import NotFoundError
from brandpulse.schemas.catalog import (
    AddCatalogEntryRequest,
    CatalogEntryResponse,
    CatalogListResponse,
    DuplicateGroupResponse,
    MergeRequest,
    MergeResponse,
    SyncReportResponse,
)

router = APIRouter(prefix="/organizations/{org_id}/catalog", tags=["catalog"])


async def _ensure_org(repo: CatalogRepository, org_id: UUID) -> None:
    if await repo.get_organization(org_id) is None:
        raise NotFoundError("Organization not found")


@router.get("", response_model=CatalogListResponse)
async def list_catalog(
    org_id: UUID,
    limit: int = Query(default=settings.catalog_list_limit, ge=1, le=500),
    repo: CatalogRepository = Depends(get_repository),
):
    await _ensure_org(repo, org_id)
    items = await entries.list_catalog(repo, org_id, limit=limit)
    return CatalogListResponse(
        entries=[CatalogEntryResponse.model_validate(e) for e in items],
        total=len(items),
    )


@router.post("", response_model=CatalogEntryResponse, status_code=201)
async def add_entry(
    org_id: UUID,
    body: AddCatalogEntryRequest,
    repo: CatalogRepository = Depends(get_repository),
):
    created = await entries.add_catalog_entry(repo, org_id, body.name, body.variants)
    return CatalogEntryResponse.model_validate(created)


@router.delete("/{entry_id}", status_code=204)
async def delete_entry(org_id: UUID, entry_id: UUID, repo: CatalogRepository = Depends(get_repository)):
    await entries.delete_catalog_entry(repo, org_id, entry_id)


@router.post("/sync", response_model=SyncReportResponse)
async def sync_catalog(org_id: UUID, repo: CatalogRepository = Depends(get_repository)):
    report = await sync_organization_catalog(repo, org_id, settings.thresholds())
    return SyncReportResponse.model_validate(report)


@router.get("/duplicates", response_model=list[DuplicateGroupResponse])
async def find_duplicates(
    org_id: UUID,
    threshold: float = Query(default=settings.duplicate_similarity_threshold, gt=0.0, le=1.0),
    repo: CatalogRepository = Depends(get_repository),
):
    await _ensure_org(repo, org_id)
    catalog = await repo.load_catalog(org_id)
    groups = duplicates.find_duplicate_groups(catalog, threshold=threshold)
    return [
        DuplicateGroupResponse(
            entries=[CatalogEntryResponse.model_validate(e) for e in group.entries],
            similarity=round(group.similarity, 3),
        )
        for group in groups
    ]


@router.post("/merge", response_model=MergeResponse)
async def merge_entries(org_id: UUID, body: MergeRequest, repo: CatalogRepository = Depends(get_repository)):
    plan = await duplicates.merge_group(repo, org_id, body.entry_ids, body.primary_id)
    return MergeResponse(primary=CatalogEntryResponse.model_validate(plan.primary), merged=plan.absorbed_ids)
