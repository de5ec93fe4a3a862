"""Duplicate detection and merge for catalog entries.

Detection is pure and runs on demand (operator action):

    similarity(a, b) = 1.0                          if a == b
                       0.85                         if one contains the other
                       (longer - levenshtein) / longer   otherwise

Entries are grouped greedily in input order: each unassigned entry seeds a
group and pulls in every later unassigned entry whose similarity to the seed
is above the threshold.

Merging is separate and effectful: the primary absorbs the others' names and
variants, stats are combined, absorbed rows are deleted.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Protocol

from brandpulse.analysis.types import CatalogBrand
from brandpulse.core.exceptions import BadRequestError, NotFoundError, PersistenceError
from brandpulse.core.metrics import CATALOG_CHANGES

logger = logging.getLogger(__name__)

DEFAULT_SIMILARITY_THRESHOLD = 0.7
CONTAINMENT_SIMILARITY = 0.85


def levenshtein_distance(a: str, b: str) -> int:
    if a == b:
        return 0
    if not a:
        return len(b)
    if not b:
        return len(a)
    if len(a) < len(b):
        a, b = b, a

    previous = list(range(len(b) + 1))
    for i, ca in enumerate(a, start=1):
        current = [i]
        for j, cb in enumerate(b, start=1):
            current.append(
                min(
                    previous[j] + 1,  # deletion
                    current[j - 1] + 1,  # insertion
                    previous[j - 1] + (ca != cb),  # substitution
                )
            )
        previous = current
    return previous[-1]


def name_similarity(a: str, b: str) -> float:
    left = (a or "").strip().lower()
    right = (b or "").strip().lower()
    if left == right:
        return 1.0
    if not left or not right:
        return 0.0
    if left in right or right in left:
        return CONTAINMENT_SIMILARITY

    longer = max(len(left), len(right))
    return (longer - levenshtein_distance(left, right)) / longer


@dataclass
class DuplicateGroup:
    entries: list[CatalogBrand] = field(default_factory=list)
    similarity: float = 0.0  # lowest similarity to the seed within the group


def find_duplicate_groups(
    entries: list[CatalogBrand],
    threshold: float = DEFAULT_SIMILARITY_THRESHOLD,
) -> list[DuplicateGroup]:
    """Groups of two or more entries with near-identical names. No side effects."""
    groups: list[DuplicateGroup] = []
    assigned: set[int] = set()

    for i, seed in enumerate(entries):
        if i in assigned:
            continue
        group = DuplicateGroup(entries=[seed], similarity=1.0)
        for j in range(i + 1, len(entries)):
            if j in assigned:
                continue
            sim = name_similarity(seed.name, entries[j].name)
            if sim > threshold:
                group.entries.append(entries[j])
                group.similarity = min(group.similarity, sim)
                assigned.add(j)
        if len(group.entries) > 1:
            assigned.add(i)
            groups.append(group)
    return groups


# ---------------------------------------------------------------------------
# Merge
# ---------------------------------------------------------------------------


@dataclass
class MergePlan:
    primary: CatalogBrand
    absorbed_ids: list[uuid.UUID]


def _earliest(values: list[datetime | None]) -> datetime | None:
    present = [v for v in values if v is not None]
    return min(present) if present else None


def _latest(values: list[datetime | None]) -> datetime | None:
    present = [v for v in values if v is not None]
    return max(present) if present else None


def plan_group_merge(entries: list[CatalogBrand], primary_id: uuid.UUID | None = None) -> MergePlan:
    """Combine entries into one primary. Pure; raises on invalid selections."""
    if len(entries) < 2:
        raise BadRequestError("Select at least two entries to merge")

    if primary_id is not None:
        primary = next((e for e in entries if e.id == primary_id), None)
        if primary is None:
            raise BadRequestError("Primary entry must be one of the selected entries")
    else:
        # Highest appearance count wins; ties keep the earlier entry
        primary = max(entries, key=lambda e: e.total_appearances)

    primary_key = primary.name.strip().lower()
    variants: list[str] = []
    seen: set[str] = {primary_key}
    for entry in [primary, *[e for e in entries if e is not primary]]:
        for value in entry.all_names():
            key = value.strip().lower()
            if key and key not in seen:
                seen.add(key)
                variants.append(value.strip())

    total = sum(e.total_appearances for e in entries)
    if total > 0:
        average = sum(e.average_score * e.total_appearances for e in entries) / total
    else:
        average = sum(e.average_score for e in entries) / len(entries)

    merged = CatalogBrand(
        id=primary.id,
        name=primary.name,
        is_org_brand=any(e.is_org_brand for e in entries),
        variants=variants,
        first_detected_at=_earliest([e.first_detected_at for e in entries]),
        last_seen_at=_latest([e.last_seen_at for e in entries]),
        total_appearances=total,
        average_score=round(average, 2),
    )
    absorbed = [e.id for e in entries if e is not primary and e.id is not None]
    return MergePlan(primary=merged, absorbed_ids=absorbed)


class MergeRepository(Protocol):
    async def get_entries(self, org_id: uuid.UUID, entry_ids: list[uuid.UUID]) -> list[CatalogBrand]: ...

    async def update_entry(self, entry: CatalogBrand) -> None: ...

    async def delete_entries(self, org_id: uuid.UUID, entry_ids: list[uuid.UUID]) -> int: ...

    async def commit(self) -> None: ...

    async def rollback(self) -> None: ...


async def merge_group(
    repo: MergeRepository,
    org_id: uuid.UUID,
    entry_ids: list[uuid.UUID],
    primary_id: uuid.UUID | None = None,
) -> MergePlan:
    """Merge selected catalog entries into one, deleting the absorbed rows."""
    unique_ids = list(dict.fromkeys(entry_ids))
    if len(unique_ids) < 2:
        raise BadRequestError("Select at least two entries to merge")

    entries = await repo.get_entries(org_id, unique_ids)
    missing = set(unique_ids) - {e.id for e in entries}
    if missing:
        raise NotFoundError(f"Catalog entries not found: {', '.join(sorted(str(m) for m in missing))}")

    # Keep the operator's selection order for tie-breaks
    order = {entry_id: i for i, entry_id in enumerate(unique_ids)}
    entries.sort(key=lambda e: order[e.id])
    plan = plan_group_merge(entries, primary_id)

    try:
        await repo.update_entry(plan.primary)
        await repo.delete_entries(org_id, plan.absorbed_ids)
        await repo.commit()
    except (Exception, asyncio.CancelledError) as e:
        await repo.rollback()
        if isinstance(e, asyncio.CancelledError):
            raise
        raise PersistenceError(f"Merge into {plan.primary.id} failed: {e}") from e

    CATALOG_CHANGES.labels(action="merge").inc(len(plan.absorbed_ids))
    logger.info(
        "Catalog %s: merged %d entries into %r (%d appearances)",
        org_id,
        len(plan.absorbed_ids),
        plan.primary.name,
        plan.primary.total_appearances,
    )
    return plan
