"""Catalog sweeps across organizations and per-prompt consensus."""

from __future__ import annotations

import asyncio
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone

from brandpulse.analysis.consensus import ConsensusItem, cross_provider_consensus
from brandpulse.catalog.repository import CatalogRepository
from brandpulse.catalog.sync import SyncReport, sync_organization_catalog
from brandpulse.core.config import Settings, settings
from brandpulse.core.exceptions import NotFoundError

logger = logging.getLogger(__name__)

MAX_PARALLEL_ORGS = 5


@dataclass
class SweepSummary:
    orgs_processed: int = 0
    orgs_failed: int = 0
    inserted: int = 0
    updated: int = 0
    removed: int = 0
    executions_analyzed: int = 0
    errors: dict[str, str] = field(default_factory=dict)

    def add(self, report: SyncReport) -> None:
        self.orgs_processed += 1
        self.inserted += report.inserted
        self.updated += report.updated
        self.removed += report.removed_excluded + report.removed_stale
        self.executions_analyzed += report.executions_analyzed

    def to_dict(self) -> dict:
        return {
            "orgs_processed": self.orgs_processed,
            "orgs_failed": self.orgs_failed,
            "competitors_added": self.inserted,
            "competitors_updated": self.updated,
            "competitors_removed": self.removed,
            "executions_analyzed": self.executions_analyzed,
            "errors": dict(self.errors),
        }


async def sync_all_catalogs(
    session_factory,
    config: Settings = settings,
    now: datetime | None = None,
) -> SweepSummary:
    """Run the catalog sweep for every organization.

    Each organization gets its own session and transaction; one failing org
    is logged and counted, the others still run.
    """
    now = now or datetime.now(timezone.utc)
    policy = config.thresholds()

    async with session_factory() as session:
        org_ids = await CatalogRepository(session).list_organization_ids()

    summary = SweepSummary()
    semaphore = asyncio.Semaphore(MAX_PARALLEL_ORGS)

    async def _run(org_id: uuid.UUID) -> None:
        async with semaphore:
            try:
                async with session_factory() as session:
                    report = await asyncio.wait_for(
                        sync_organization_catalog(CatalogRepository(session), org_id, policy, now=now),
                        timeout=config.catalog_sync_timeout,
                    )
                summary.add(report)
            except Exception as e:
                summary.orgs_failed += 1
                summary.errors[str(org_id)] = str(e) or type(e).__name__
                logger.exception("Catalog sync failed for org %s", org_id)

    await asyncio.gather(*(_run(org_id) for org_id in org_ids))
    logger.info(
        "Catalog sweep: %d orgs (%d failed), +%d / ~%d / -%d competitors, %d executions",
        summary.orgs_processed,
        summary.orgs_failed,
        summary.inserted,
        summary.updated,
        summary.removed,
        summary.executions_analyzed,
    )
    return summary


async def get_prompt_consensus(
    repo,
    prompt_id: uuid.UUID,
    config: Settings = settings,
    now: datetime | None = None,
) -> list[ConsensusItem]:
    prompt = await repo.get_prompt(prompt_id)
    if prompt is None:
        raise NotFoundError(f"Prompt {prompt_id} not found")
    now = now or datetime.now(timezone.utc)
    since = now - timedelta(hours=config.consensus_window_hours)
    observations = await repo.load_recent_competitors(prompt_id, since)
    return cross_provider_consensus(observations, min_ratio=config.consensus_min_ratio)
