from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field


class OverlayResponse(BaseModel):
    org_id: UUID
    competitor_overrides: list[str] = Field(default_factory=list)  # force-include
    competitor_exclusions: list[str] = Field(default_factory=list)  # force-exclude
    brand_variants: list[str] = Field(default_factory=list)
    updated_at: datetime | None = None

    model_config = {"from_attributes": True}


class OverlayNameRequest(BaseModel):
    name: str = Field(min_length=1, max_length=255)
