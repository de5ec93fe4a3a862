"""SQL access for prompts, executions, catalog entries and overlays.

This is the only module that builds SQLAlchemy statements for the pipeline.
It converts ORM rows to the plain dataclasses in ``brandpulse.analysis.types``
so the analysis and catalog logic never hold a session.

Writes are flushed but not committed; callers decide the transaction boundary
with ``commit()`` / ``rollback()``.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone

from sqlalchemy import delete, func, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession

from brandpulse.analysis.types import (
    CatalogBrand,
    ExecutionRecord,
    OrganizationInfo,
    OverlaySnapshot,
    PromptInfo,
)
from brandpulse.catalog.sync import CatalogPlan, ExecutionObservation
from brandpulse.models.catalog_entry import CatalogEntry
from brandpulse.models.org_overlay import OrgOverlay
from brandpulse.models.organization import Organization
from brandpulse.models.provider_execution import ProviderExecution
from brandpulse.models.tracked_prompt import TrackedPrompt

logger = logging.getLogger(__name__)


def _to_brand(row: CatalogEntry) -> CatalogBrand:
    return CatalogBrand(
        id=row.id,
        name=row.name,
        is_org_brand=bool(row.is_org_brand),
        variants=list(row.variants or []),
        first_detected_at=row.first_detected_at,
        last_seen_at=row.last_seen_at,
        total_appearances=row.total_appearances or 0,
        average_score=float(row.average_score or 0.0),
    )


class CatalogRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    # ── Transaction ──────────────────────────────────────────────

    async def commit(self) -> None:
        await self.session.commit()

    async def rollback(self) -> None:
        await self.session.rollback()

    # ── Organizations & prompts ──────────────────────────────────

    async def get_organization(self, org_id: uuid.UUID) -> OrganizationInfo | None:
        org = await self.session.get(Organization, org_id)
        if org is None:
            return None
        return OrganizationInfo(id=org.id, name=org.name, domain=org.domain)

    async def list_organization_ids(self) -> list[uuid.UUID]:
        result = await self.session.execute(select(Organization.id).order_by(Organization.created_at))
        return list(result.scalars().all())

    async def get_prompt(self, prompt_id: uuid.UUID) -> PromptInfo | None:
        prompt = await self.session.get(TrackedPrompt, prompt_id)
        if prompt is None:
            return None
        return PromptInfo(id=prompt.id, org_id=prompt.org_id, text=prompt.text, is_active=bool(prompt.is_active))

    async def list_active_prompts(self) -> list[PromptInfo]:
        result = await self.session.execute(
            select(TrackedPrompt).where(TrackedPrompt.is_active.is_(True)).order_by(TrackedPrompt.created_at)
        )
        return [PromptInfo(id=p.id, org_id=p.org_id, text=p.text, is_active=True) for p in result.scalars().all()]

    # ── Executions ───────────────────────────────────────────────

    async def insert_execution(self, record: ExecutionRecord) -> uuid.UUID:
        row = ProviderExecution(
            id=record.id or uuid.uuid4(),
            org_id=record.org_id,
            prompt_id=record.prompt_id,
            provider=record.provider,
            model=record.model,
            status=record.status,
            answer_text=record.answer_text,
            token_in=record.token_in,
            token_out=record.token_out,
            brands=list(record.brands),
            org_brands=list(record.org_brands),
            competitors=list(record.competitors),
            competitor_count=record.competitor_count,
            brand_present=record.brand_present,
            brand_position=record.brand_position,
            score=record.score,
            error=record.error,
            details=dict(record.details),
            run_at=record.run_at or datetime.now(timezone.utc),
        )
        self.session.add(row)
        await self.session.flush()
        return row.id

    async def load_observations(self, org_id: uuid.UUID, since: datetime) -> list[ExecutionObservation]:
        result = await self.session.execute(
            select(ProviderExecution.competitors, ProviderExecution.score, ProviderExecution.run_at).where(
                ProviderExecution.org_id == org_id,
                ProviderExecution.status == "success",
                ProviderExecution.run_at >= since,
            )
        )
        return [
            ExecutionObservation(competitors=tuple(competitors or []), score=score, run_at=run_at)
            for competitors, score, run_at in result.all()
        ]

    async def load_recent_competitors(self, prompt_id: uuid.UUID, since: datetime) -> list[tuple[str, list[str]]]:
        result = await self.session.execute(
            select(ProviderExecution.provider, ProviderExecution.competitors)
            .where(
                ProviderExecution.prompt_id == prompt_id,
                ProviderExecution.status == "success",
                ProviderExecution.run_at >= since,
            )
            .order_by(ProviderExecution.run_at)
        )
        return [(provider, list(competitors or [])) for provider, competitors in result.all()]

    # ── Catalog ──────────────────────────────────────────────────

    async def load_catalog(self, org_id: uuid.UUID, limit: int | None = None) -> list[CatalogBrand]:
        stmt = (
            select(CatalogEntry)
            .where(CatalogEntry.org_id == org_id)
            .order_by(CatalogEntry.is_org_brand.desc(), CatalogEntry.total_appearances.desc(), CatalogEntry.name)
        )
        if limit is not None:
            stmt = stmt.limit(limit)
        result = await self.session.execute(stmt)
        return [_to_brand(row) for row in result.scalars().all()]

    async def get_entries(self, org_id: uuid.UUID, entry_ids: list[uuid.UUID]) -> list[CatalogBrand]:
        if not entry_ids:
            return []
        result = await self.session.execute(
            select(CatalogEntry).where(CatalogEntry.org_id == org_id, CatalogEntry.id.in_(entry_ids))
        )
        return [_to_brand(row) for row in result.scalars().all()]

    async def insert_entry(self, org_id: uuid.UUID, entry: CatalogBrand) -> CatalogBrand:
        now = datetime.now(timezone.utc)
        row = CatalogEntry(
            id=entry.id or uuid.uuid4(),
            org_id=org_id,
            name=entry.name,
            is_org_brand=entry.is_org_brand,
            variants=list(entry.variants),
            first_detected_at=entry.first_detected_at or now,
            last_seen_at=entry.last_seen_at or now,
            total_appearances=entry.total_appearances,
            average_score=entry.average_score,
        )
        self.session.add(row)
        await self.session.flush()
        return _to_brand(row)

    async def update_entry(self, entry: CatalogBrand) -> None:
        await self.session.execute(
            update(CatalogEntry)
            .where(CatalogEntry.id == entry.id)
            .values(
                name=entry.name,
                is_org_brand=entry.is_org_brand,
                variants=list(entry.variants),
                first_detected_at=entry.first_detected_at,
                last_seen_at=entry.last_seen_at,
                total_appearances=entry.total_appearances,
                average_score=entry.average_score,
            )
        )

    async def delete_entries(self, org_id: uuid.UUID, entry_ids: list[uuid.UUID]) -> int:
        if not entry_ids:
            return 0
        result = await self.session.execute(
            delete(CatalogEntry).where(CatalogEntry.org_id == org_id, CatalogEntry.id.in_(entry_ids))
        )
        return result.rowcount or 0

    async def apply_catalog_plan(self, org_id: uuid.UUID, plan: CatalogPlan) -> None:
        if plan.deletes:
            await self.delete_entries(org_id, plan.deletes)

        for upd in plan.updates:
            await self.session.execute(
                update(CatalogEntry)
                .where(CatalogEntry.id == upd.entry_id, CatalogEntry.org_id == org_id)
                .values(
                    last_seen_at=upd.last_seen_at,
                    # Monotonic even if a concurrent sweep already raised the count
                    total_appearances=func.greatest(CatalogEntry.total_appearances, upd.total_appearances),
                    average_score=upd.average_score,
                )
            )

        for entry in plan.inserts:
            await self.insert_entry(org_id, entry)

        await self.session.flush()
        logger.debug(
            "Applied catalog plan for %s: %d inserts, %d updates, %d deletes",
            org_id,
            len(plan.inserts),
            len(plan.updates),
            len(plan.deletes),
        )

    # ── Overlay ──────────────────────────────────────────────────

    async def load_overlay(self, org_id: uuid.UUID) -> OverlaySnapshot:
        row = await self.session.get(OrgOverlay, org_id)
        if row is None:
            return OverlaySnapshot(org_id=org_id)
        return OverlaySnapshot(
            org_id=org_id,
            competitor_overrides=list(row.competitor_overrides or []),
            competitor_exclusions=list(row.competitor_exclusions or []),
            brand_variants=list(row.brand_variants or []),
            updated_at=row.updated_at,
        )

    async def save_overlay(self, overlay: OverlaySnapshot) -> None:
        now = datetime.now(timezone.utc)
        values = {
            "competitor_overrides": list(overlay.competitor_overrides),
            "competitor_exclusions": list(overlay.competitor_exclusions),
            "brand_variants": list(overlay.brand_variants),
            "updated_at": now,
        }
        stmt = pg_insert(OrgOverlay).values(org_id=overlay.org_id, **values)
        stmt = stmt.on_conflict_do_update(index_elements=["org_id"], set_=values)
        await self.session.execute(stmt)
        overlay.updated_at = now
