import uuid
from datetime import datetime, timezone

from sqlalchemy import Boolean, DateTime, Float, ForeignKey, Index, Integer, String
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from brandpulse.db.base import Base, JSONType


class CatalogEntry(Base):
    """Known brand name (own or competitor) tracked for one organization.

    No unique constraint on name: duplicates are tolerated and reconciled
    by the operator-driven merge.
    """

    __tablename__ = "brand_catalog"
    __table_args__ = (Index("ix_brand_catalog_org", "org_id", "is_org_brand"),)

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    org_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    is_org_brand: Mapped[bool] = mapped_column(Boolean, default=False)
    variants: Mapped[list] = mapped_column(JSONType, default=list)  # ["Acme Inc", "acme.com"]

    first_detected_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )
    last_seen_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    total_appearances: Mapped[int] = mapped_column(Integer, default=0)
    average_score: Mapped[float] = mapped_column(Float, default=0.0)
