import uuid
from datetime import datetime, timezone

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from brandpulse.db.base import Base, JSONType


class ProviderExecution(Base):
    """Outcome of one LLM call for one (prompt, provider) pair. Append-only."""

    __tablename__ = "provider_executions"
    __table_args__ = (Index("ix_provider_executions_org_run_at", "org_id", "run_at"),)

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    org_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False)
    prompt_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("tracked_prompts.id", ondelete="CASCADE"), nullable=False, index=True
    )
    provider: Mapped[str] = mapped_column(String(20), nullable=False)  # openai | perplexity | gemini
    model: Mapped[str | None] = mapped_column(String(64), nullable=True)
    status: Mapped[str] = mapped_column(String(10), nullable=False)  # success | error

    answer_text: Mapped[str | None] = mapped_column(Text, nullable=True)
    token_in: Mapped[int] = mapped_column(Integer, default=0)
    token_out: Mapped[int] = mapped_column(Integer, default=0)

    # Analysis results: null on error so "failed" stays distinct from "found nothing"
    brands: Mapped[list] = mapped_column(JSONType, default=list)  # raw extracted names
    org_brands: Mapped[list] = mapped_column(JSONType, default=list)
    competitors: Mapped[list] = mapped_column(JSONType, default=list)
    competitor_count: Mapped[int] = mapped_column(Integer, default=0)
    brand_present: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    brand_position: Mapped[int | None] = mapped_column(Integer, nullable=True)  # 0-based token index
    score: Mapped[int | None] = mapped_column(Integer, nullable=True)  # 0..10

    error: Mapped[str | None] = mapped_column(Text, nullable=True)
    # {"parse": "json"|"pattern", "fallback_reason": ..., "attempts": n, "models_tried": [...]}
    details: Mapped[dict | None] = mapped_column("metadata", JSONType, nullable=True)

    run_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
