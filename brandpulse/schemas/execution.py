from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field


class ExecuteRequest(BaseModel):
    # Optional here so missing fields surface as 400 from the endpoint, not 422
    prompt_id: UUID | None = None
    provider: str | None = None


class ExecutionResponse(BaseModel):
    id: UUID | None = None
    org_id: UUID
    prompt_id: UUID
    provider: str
    model: str | None = None
    status: str  # success | error
    answer_text: str | None = None
    token_in: int = 0
    token_out: int = 0
    brands: list[str] = Field(default_factory=list)
    org_brands: list[str] = Field(default_factory=list)
    competitors: list[str] = Field(default_factory=list)
    competitor_count: int = 0
    brand_present: bool | None = None
    brand_position: int | None = None
    score: int | None = None
    error: str | None = None
    metadata: dict = Field(default_factory=dict)
    run_at: datetime | None = None
    persisted: bool = True


class ConsensusItemResponse(BaseModel):
    name: str
    providers: list[str]
    provider_count: int
