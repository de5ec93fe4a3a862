import uuid
from datetime import datetime, timezone

from sqlalchemy import DateTime, ForeignKey
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from brandpulse.db.base import Base, JSONType


class OrgOverlay(Base):
    """Per-organization manual overrides layered over automatic detection."""

    __tablename__ = "org_overlays"

    org_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("organizations.id", ondelete="CASCADE"), primary_key=True
    )
    competitor_overrides: Mapped[list] = mapped_column(JSONType, default=list)  # force-include
    competitor_exclusions: Mapped[list] = mapped_column(JSONType, default=list)  # force-exclude
    brand_variants: Mapped[list] = mapped_column(JSONType, default=list)  # extra org-brand spellings
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc)
    )
