"""Plain data types shared by the analysis and catalog layers.

These mirror the ORM rows but carry no session state, so the classifier,
scorer and catalog planner stay pure and testable without a database.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime

from brandpulse.analysis.text import normalize_name
from brandpulse.analysis.variants import build_brand_variants


@dataclass(frozen=True)
class OrganizationInfo:
    id: uuid.UUID
    name: str
    domain: str | None = None


@dataclass
class CatalogBrand:
    """Snapshot of one brand_catalog row."""

    id: uuid.UUID | None
    name: str
    is_org_brand: bool = False
    variants: list[str] = field(default_factory=list)
    first_detected_at: datetime | None = None
    last_seen_at: datetime | None = None
    total_appearances: int = 0
    average_score: float = 0.0

    def all_names(self) -> list[str]:
        return [self.name, *self.variants]

    def normalized_names(self) -> set[str]:
        return {n for n in (normalize_name(v) for v in self.all_names()) if n}

    def to_dict(self) -> dict:
        return {
            "id": str(self.id) if self.id else None,
            "name": self.name,
            "is_org_brand": self.is_org_brand,
            "variants": list(self.variants),
            "first_detected_at": self.first_detected_at.isoformat() if self.first_detected_at else None,
            "last_seen_at": self.last_seen_at.isoformat() if self.last_seen_at else None,
            "total_appearances": self.total_appearances,
            "average_score": self.average_score,
        }


@dataclass
class OverlaySnapshot:
    """Per-organization manual overrides."""

    org_id: uuid.UUID
    competitor_overrides: list[str] = field(default_factory=list)
    competitor_exclusions: list[str] = field(default_factory=list)
    brand_variants: list[str] = field(default_factory=list)
    updated_at: datetime | None = None

    def excluded(self) -> frozenset[str]:
        return frozenset(n for n in (normalize_name(v) for v in self.competitor_exclusions) if n)

    def forced(self) -> frozenset[str]:
        return frozenset(n for n in (normalize_name(v) for v in self.competitor_overrides) if n)


@dataclass(frozen=True)
class BrandProfile:
    """Everything that identifies the organization's own brand."""

    org_id: uuid.UUID | None
    canonical_name: str
    names: tuple[str, ...] = ()

    def normalized(self) -> frozenset[str]:
        return frozenset(n for n in (normalize_name(v) for v in self.names) if n)

    @classmethod
    def build(
        cls,
        org: OrganizationInfo | None,
        catalog: list[CatalogBrand] | None = None,
        overlay: OverlaySnapshot | None = None,
    ) -> BrandProfile:
        """Org brand rows + organization record + domain variants + overlay variants.

        The organization record is always included, so an org is recognised
        as itself even before any ``is_org_brand`` catalog row exists.
        """
        names: list[str] = []
        canonical = ""
        for entry in catalog or []:
            if entry.is_org_brand:
                canonical = canonical or entry.name
                names.extend(entry.all_names())
        if org is not None:
            canonical = canonical or org.name
            names.extend(build_brand_variants(org.name, org.domain))
        if overlay is not None:
            names.extend(overlay.brand_variants)

        seen: set[str] = set()
        unique: list[str] = []
        for name in names:
            key = name.casefold().strip()
            if key and key not in seen:
                seen.add(key)
                unique.append(name.strip())
        return cls(org_id=org.id if org else None, canonical_name=canonical, names=tuple(unique))


@dataclass(frozen=True)
class PromptInfo:
    id: uuid.UUID
    org_id: uuid.UUID
    text: str
    is_active: bool = True


@dataclass
class ExecutionRecord:
    """One ProviderExecution row, built by the pipeline before insert."""

    org_id: uuid.UUID
    prompt_id: uuid.UUID
    provider: str
    status: str  # success | error
    model: str | None = None
    answer_text: str | None = None
    token_in: int = 0
    token_out: int = 0
    brands: list[str] = field(default_factory=list)
    org_brands: list[str] = field(default_factory=list)
    competitors: list[str] = field(default_factory=list)
    competitor_count: int = 0
    brand_present: bool | None = None
    brand_position: int | None = None
    score: int | None = None
    error: str | None = None
    details: dict = field(default_factory=dict)
    run_at: datetime | None = None
    id: uuid.UUID | None = None

    def to_dict(self) -> dict:
        return {
            "id": str(self.id) if self.id else None,
            "org_id": str(self.org_id),
            "prompt_id": str(self.prompt_id),
            "provider": self.provider,
            "model": self.model,
            "status": self.status,
            "answer_text": self.answer_text,
            "token_in": self.token_in,
            "token_out": self.token_out,
            "brands": list(self.brands),
            "org_brands": list(self.org_brands),
            "competitors": list(self.competitors),
            "competitor_count": self.competitor_count,
            "brand_present": self.brand_present,
            "brand_position": self.brand_position,
            "score": self.score,
            "error": self.error,
            "metadata": dict(self.details),
            "run_at": self.run_at.isoformat() if self.run_at else None,
        }
