from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field


class CatalogEntryResponse(BaseModel):
    id: UUID | None = None
    name: str
    is_org_brand: bool = False
    variants: list[str] = Field(default_factory=list)
    first_detected_at: datetime | None = None
    last_seen_at: datetime | None = None
    total_appearances: int = 0
    average_score: float = 0.0

    model_config = {"from_attributes": True}


class CatalogListResponse(BaseModel):
    entries: list[CatalogEntryResponse]
    total: int


class AddCatalogEntryRequest(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    variants: list[str] = Field(default_factory=list, max_length=50)


class SyncReportResponse(BaseModel):
    org_id: UUID
    executions_analyzed: int = 0
    candidates: int = 0
    admitted: int = 0
    inserted: int = 0
    updated: int = 0
    removed_excluded: int = 0
    removed_stale: int = 0

    model_config = {"from_attributes": True}


class DuplicateGroupResponse(BaseModel):
    entries: list[CatalogEntryResponse]
    similarity: float


class MergeRequest(BaseModel):
    entry_ids: list[UUID] = Field(min_length=2, max_length=50)
    primary_id: UUID | None = None


class MergeResponse(BaseModel):
    primary: CatalogEntryResponse
    merged: list[UUID]
