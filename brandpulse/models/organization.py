import uuid
from datetime import datetime, timezone

from sqlalchemy import DateTime, String
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from brandpulse.db.base import Base


class Organization(Base):
    """Tracked organization. Owned by the account layer; read-only here."""

    __tablename__ = "organizations"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    domain: Mapped[str | None] = mapped_column(String(255), nullable=True)  # e.g. "acme.com"

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    # Relationships
    prompts: Mapped[list["TrackedPrompt"]] = relationship(  # noqa: F821
        "TrackedPrompt", back_populates="organization", cascade="all, delete-orphan"
    )
