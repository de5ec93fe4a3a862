"""Competitor catalog maintenance: sync sweep, duplicate merge, manual edits."""

from brandpulse.catalog.duplicates import (
    DuplicateGroup,
    MergePlan,
    find_duplicate_groups,
    levenshtein_distance,
    merge_group,
    name_similarity,
    plan_group_merge,
)
from brandpulse.catalog.entries import add_catalog_entry, delete_catalog_entry, list_catalog
from brandpulse.catalog.sync import (
    CatalogPlan,
    ExecutionObservation,
    SyncReport,
    aggregate_observations,
    merge_observations,
    plan_catalog_sync,
    sync_organization_catalog,
)

__all__ = [
    "CatalogPlan",
    "DuplicateGroup",
    "ExecutionObservation",
    "MergePlan",
    "SyncReport",
    "add_catalog_entry",
    "aggregate_observations",
    "delete_catalog_entry",
    "find_duplicate_groups",
    "levenshtein_distance",
    "list_catalog",
    "merge_group",
    "merge_observations",
    "name_similarity",
    "plan_catalog_sync",
    "plan_group_merge",
    "sync_organization_catalog",
]
