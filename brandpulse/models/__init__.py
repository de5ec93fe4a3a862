from brandpulse.models.catalog_entry import CatalogEntry
from brandpulse.models.org_overlay import OrgOverlay
from brandpulse.models.organization import Organization
from brandpulse.models.provider_execution import ProviderExecution
from brandpulse.models.tracked_prompt import TrackedPrompt

__all__ = [
    "CatalogEntry",
    "OrgOverlay",
    "Organization",
    "ProviderExecution",
    "TrackedPrompt",
]
