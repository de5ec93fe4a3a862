"""Competitor catalog sync: aggregate -> plan -> apply.

Per organization, over the lookback window of successful executions:

  1. Aggregate mentions and per-execution scores by normalized competitor name.
  2. Drop the organization's own names (an org is never its own competitor).
  3. Drop operator exclusions; delete catalog rows that match them.
  4. Frequency gate: mentions >= min_mentions OR average score >= min_avg_score.
  5. Admitted names update a matching competitor row (max() of appearances,
     fresh window average, latest last_seen) or insert a new row.
  6. Competitor rows not re-confirmed and unseen beyond retention are deleted.

Steps 1-6 are computed by ``plan_catalog_sync`` without touching storage.
``apply_catalog_plan`` writes the plan inside one transaction, so a cancelled
or timed-out sweep leaves the catalog untouched. The max() rule makes a rerun
over the same window a no-op for appearance counts and averages.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Protocol

from brandpulse.analysis.classifier import Candidate, ClassificationContext, is_own_brand
from brandpulse.analysis.lexicon import Lexicon, get_lexicon
from brandpulse.analysis.text import normalize_name
from brandpulse.analysis.types import BrandProfile, CatalogBrand, OrganizationInfo, OverlaySnapshot
from brandpulse.core.config import CatalogPolicy
from brandpulse.core.exceptions import NotFoundError, PersistenceError
from brandpulse.core.metrics import CATALOG_CHANGES

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Types
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ExecutionObservation:
    """Competitors and score from one successful execution."""

    competitors: tuple[str, ...]
    score: int | None
    run_at: datetime


@dataclass
class NameStats:
    name: str  # first-seen spelling
    mentions: int = 0
    scores: list[float] = field(default_factory=list)
    first_seen: datetime | None = None
    last_seen: datetime | None = None

    @property
    def average_score(self) -> float:
        return sum(self.scores) / len(self.scores) if self.scores else 0.0


@dataclass(frozen=True)
class CatalogUpdate:
    entry_id: uuid.UUID
    name: str
    last_seen_at: datetime
    total_appearances: int
    average_score: float


@dataclass
class CatalogPlan:
    inserts: list[CatalogBrand] = field(default_factory=list)
    updates: list[CatalogUpdate] = field(default_factory=list)
    delete_excluded: list[uuid.UUID] = field(default_factory=list)
    delete_stale: list[uuid.UUID] = field(default_factory=list)
    skipped: dict[str, str] = field(default_factory=dict)  # name -> own_brand | excluded | below_gate

    @property
    def deletes(self) -> list[uuid.UUID]:
        return [*self.delete_excluded, *self.delete_stale]

    @property
    def is_empty(self) -> bool:
        return not (self.inserts or self.updates or self.delete_excluded or self.delete_stale)


@dataclass
class SyncReport:
    org_id: uuid.UUID
    executions_analyzed: int = 0
    candidates: int = 0
    admitted: int = 0
    inserted: int = 0
    updated: int = 0
    removed_excluded: int = 0
    removed_stale: int = 0

    def to_dict(self) -> dict:
        return {
            "org_id": str(self.org_id),
            "executions_analyzed": self.executions_analyzed,
            "candidates": self.candidates,
            "admitted": self.admitted,
            "inserted": self.inserted,
            "updated": self.updated,
            "removed_excluded": self.removed_excluded,
            "removed_stale": self.removed_stale,
        }


class CatalogSyncRepository(Protocol):
    async def get_organization(self, org_id: uuid.UUID) -> OrganizationInfo | None: ...

    async def load_catalog(self, org_id: uuid.UUID) -> list[CatalogBrand]: ...

    async def load_overlay(self, org_id: uuid.UUID) -> OverlaySnapshot: ...

    async def load_observations(self, org_id: uuid.UUID, since: datetime) -> list[ExecutionObservation]: ...

    async def apply_catalog_plan(self, org_id: uuid.UUID, plan: CatalogPlan) -> None: ...

    async def commit(self) -> None: ...

    async def rollback(self) -> None: ...


# ---------------------------------------------------------------------------
# Pure steps
# ---------------------------------------------------------------------------


def aggregate_observations(observations: list[ExecutionObservation]) -> dict[str, NameStats]:
    """Mention counts and score lists per normalized competitor name.

    A name counts once per execution even if listed twice.
    """
    stats: dict[str, NameStats] = {}
    for obs in sorted(observations, key=lambda o: o.run_at):
        seen_here: set[str] = set()
        for raw in obs.competitors:
            key = normalize_name(raw)
            if not key or key in seen_here:
                continue
            seen_here.add(key)
            entry = stats.setdefault(key, NameStats(name=raw.strip()))
            entry.mentions += 1
            if obs.score is not None:
                entry.scores.append(float(obs.score))
            if entry.first_seen is None or obs.run_at < entry.first_seen:
                entry.first_seen = obs.run_at
            if entry.last_seen is None or obs.run_at > entry.last_seen:
                entry.last_seen = obs.run_at
    return stats


def passes_gate(stats: NameStats, policy: CatalogPolicy) -> bool:
    return stats.mentions >= policy.min_mentions or stats.average_score >= policy.min_avg_score


def _ensure_aware(value: datetime | None) -> datetime | None:
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def plan_catalog_sync(
    stats: dict[str, NameStats],
    catalog: list[CatalogBrand],
    profile: BrandProfile,
    overlay: OverlaySnapshot | None,
    policy: CatalogPolicy,
    now: datetime,
    lexicon: Lexicon | None = None,
) -> CatalogPlan:
    plan = CatalogPlan()
    ctx = ClassificationContext.build(profile, None, overlay, lexicon or get_lexicon())
    excluded = ctx.excluded

    competitors = [e for e in catalog if not e.is_org_brand]

    def _is_own(normalized: str, raw: str) -> bool:
        return is_own_brand(Candidate(raw=raw, normalized=normalized), ctx)

    # Existing rows that must go regardless of this window's counts
    removed: set[uuid.UUID] = set()
    for entry in competitors:
        names = entry.normalized_names()
        if entry.id is None:
            continue
        if names & excluded or _is_own(normalize_name(entry.name), entry.name):
            plan.delete_excluded.append(entry.id)
            removed.add(entry.id)

    # Lookup for the remaining rows by name and variants; first row wins on duplicates
    by_name: dict[str, CatalogBrand] = {}
    for entry in competitors:
        if entry.id in removed:
            continue
        for key in entry.normalized_names():
            by_name.setdefault(key, entry)

    confirmed: set[uuid.UUID] = set()
    for key, item in stats.items():
        if _is_own(key, item.name):
            plan.skipped[item.name] = "own_brand"
            continue
        if key in excluded:
            plan.skipped[item.name] = "excluded"
            continue
        if not passes_gate(item, policy):
            plan.skipped[item.name] = "below_gate"
            continue

        last_seen = _ensure_aware(item.last_seen) or now
        existing = by_name.get(key)
        if existing is not None and existing.id is not None:
            if existing.id in confirmed:
                continue  # two window spellings resolved to the same row
            confirmed.add(existing.id)
            previous_seen = _ensure_aware(existing.last_seen_at)
            plan.updates.append(
                CatalogUpdate(
                    entry_id=existing.id,
                    name=existing.name,
                    last_seen_at=max(last_seen, previous_seen) if previous_seen else last_seen,
                    total_appearances=max(existing.total_appearances, item.mentions),
                    average_score=round(item.average_score, 2),
                )
            )
        else:
            new_entry = CatalogBrand(
                id=uuid.uuid4(),
                name=item.name,
                is_org_brand=False,
                variants=[],
                first_detected_at=_ensure_aware(item.first_seen) or now,
                last_seen_at=last_seen,
                total_appearances=item.mentions,
                average_score=round(item.average_score, 2),
            )
            plan.inserts.append(new_entry)
            by_name[key] = new_entry

    cutoff = now - timedelta(days=policy.retention_days)
    for entry in competitors:
        if entry.id is None or entry.id in removed or entry.id in confirmed:
            continue
        seen = _ensure_aware(entry.last_seen_at)
        if seen is None or seen < cutoff:
            plan.delete_stale.append(entry.id)

    return plan


# ---------------------------------------------------------------------------
# Effectful orchestration
# ---------------------------------------------------------------------------


async def merge_observations(
    repo: CatalogSyncRepository,
    org_id: uuid.UUID,
    policy: CatalogPolicy,
    now: datetime | None = None,
    extra: list[ExecutionObservation] | None = None,
    lexicon: Lexicon | None = None,
) -> SyncReport:
    """Run the sweep for one organization, optionally with unpersisted observations.

    Everything is read and aggregated before the first write.
    """
    now = now or datetime.now(timezone.utc)
    org = await repo.get_organization(org_id)
    if org is None:
        raise NotFoundError(f"Organization {org_id} not found")

    since = now - timedelta(days=policy.lookback_days)
    observations = await repo.load_observations(org_id, since)
    observations = [*observations, *(extra or [])]
    catalog = await repo.load_catalog(org_id)
    overlay = await repo.load_overlay(org_id)

    stats = aggregate_observations(observations)
    profile = BrandProfile.build(org, catalog, overlay)
    plan = plan_catalog_sync(stats, catalog, profile, overlay, policy, now, lexicon)

    report = SyncReport(
        org_id=org_id,
        executions_analyzed=len(observations),
        candidates=len(stats),
        admitted=len(plan.inserts) + len(plan.updates),
        inserted=len(plan.inserts),
        updated=len(plan.updates),
        removed_excluded=len(plan.delete_excluded),
        removed_stale=len(plan.delete_stale),
    )

    if plan.is_empty:
        logger.info("Catalog %s: nothing to change (%d executions)", org_id, len(observations))
        return report

    try:
        await repo.apply_catalog_plan(org_id, plan)
        await repo.commit()
    except (Exception, asyncio.CancelledError) as e:
        await repo.rollback()
        if isinstance(e, asyncio.CancelledError):
            raise
        raise PersistenceError(f"Catalog sync for {org_id} failed: {e}") from e

    CATALOG_CHANGES.labels(action="insert").inc(report.inserted)
    CATALOG_CHANGES.labels(action="update").inc(report.updated)
    CATALOG_CHANGES.labels(action="delete_excluded").inc(report.removed_excluded)
    CATALOG_CHANGES.labels(action="delete_stale").inc(report.removed_stale)
    logger.info(
        "Catalog %s: +%d new, %d updated, -%d excluded, -%d stale (%d executions, %d candidates)",
        org_id,
        report.inserted,
        report.updated,
        report.removed_excluded,
        report.removed_stale,
        report.executions_analyzed,
        report.candidates,
    )
    return report


async def sync_organization_catalog(
    repo: CatalogSyncRepository,
    org_id: uuid.UUID,
    policy: CatalogPolicy,
    now: datetime | None = None,
    lexicon: Lexicon | None = None,
) -> SyncReport:
    return await merge_observations(repo, org_id, policy, now=now, lexicon=lexicon)
