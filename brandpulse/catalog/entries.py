"""Operator actions on single catalog entries: list, manual add, delete."""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Protocol

from brandpulse.analysis.classifier import Candidate, ClassificationContext, is_own_brand
from brandpulse.analysis.lexicon import get_lexicon
from brandpulse.analysis.text import normalize_name
from brandpulse.analysis.types import BrandProfile, CatalogBrand, OrganizationInfo, OverlaySnapshot
from brandpulse.core.exceptions import BadRequestError, NotFoundError
from brandpulse.core.metrics import CATALOG_CHANGES

logger = logging.getLogger(__name__)


class EntryRepository(Protocol):
    async def get_organization(self, org_id: uuid.UUID) -> OrganizationInfo | None: ...

    async def load_catalog(self, org_id: uuid.UUID, limit: int | None = None) -> list[CatalogBrand]: ...

    async def load_overlay(self, org_id: uuid.UUID) -> OverlaySnapshot: ...

    async def insert_entry(self, org_id: uuid.UUID, entry: CatalogBrand) -> CatalogBrand: ...

    async def delete_entries(self, org_id: uuid.UUID, entry_ids: list[uuid.UUID]) -> int: ...

    async def commit(self) -> None: ...


async def list_catalog(repo: EntryRepository, org_id: uuid.UUID, limit: int = 50) -> list[CatalogBrand]:
    """Own brand rows first, then competitors by appearances."""
    entries = await repo.load_catalog(org_id, limit=limit)
    return sorted(entries, key=lambda e: (not e.is_org_brand, -e.total_appearances, e.name.lower()))


async def add_catalog_entry(
    repo: EntryRepository,
    org_id: uuid.UUID,
    name: str,
    variants: list[str] | None = None,
    now: datetime | None = None,
) -> CatalogBrand:
    """Manually add a competitor. Refuses the org's own names and existing names."""
    clean = (name or "").strip()
    key = normalize_name(clean)
    if not key:
        raise BadRequestError("Competitor name is required")

    org = await repo.get_organization(org_id)
    if org is None:
        raise NotFoundError(f"Organization {org_id} not found")

    catalog = await repo.load_catalog(org_id)
    overlay = await repo.load_overlay(org_id)
    profile = BrandProfile.build(org, catalog, overlay)
    ctx = ClassificationContext.build(profile, None, overlay, get_lexicon())
    if is_own_brand(Candidate(raw=clean, normalized=key), ctx):
        raise BadRequestError(f"{clean!r} is one of the organization's own brand names")

    for entry in catalog:
        if key in entry.normalized_names():
            raise BadRequestError(f"{clean!r} already exists in the catalog as {entry.name!r}")

    now = now or datetime.now(timezone.utc)
    entry = CatalogBrand(
        id=uuid.uuid4(),
        name=clean,
        is_org_brand=False,
        variants=[v.strip() for v in variants or [] if v and v.strip() and v.strip().lower() != clean.lower()],
        first_detected_at=now,
        last_seen_at=now,
        total_appearances=0,
        average_score=0.0,
    )
    created = await repo.insert_entry(org_id, entry)
    await repo.commit()
    CATALOG_CHANGES.labels(action="manual_add").inc()
    logger.info("Catalog %s: manually added %r", org_id, clean)
    return created


async def delete_catalog_entry(repo: EntryRepository, org_id: uuid.UUID, entry_id: uuid.UUID) -> None:
    deleted = await repo.delete_entries(org_id, [entry_id])
    if not deleted:
        raise NotFoundError("Catalog entry not found")
    await repo.commit()
    CATALOG_CHANGES.labels(action="manual_delete").inc()
    logger.info("Catalog %s: deleted entry %s", org_id, entry_id)
