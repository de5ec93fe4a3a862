"""initial visibility tables

Revision ID: 3f9a1c2b7d10
Revises:
Create Date: 2026-10-17 09:00:00.000000

"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects.postgresql import JSONB, UUID

revision: str = "3f9a1c2b7d10"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    # =========================================================
    # 1. Organizations and tracked prompts
    # =========================================================
    op.create_table(
        "organizations",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("domain", sa.String(255), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_table(
        "tracked_prompts",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "org_id",
            UUID(as_uuid=True),
            sa.ForeignKey("organizations.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        ),
        sa.Column("text", sa.Text(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default="true"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )

    # =========================================================
    # 2. Provider executions (append-only)
    # =========================================================
    op.create_table(
        "provider_executions",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("org_id", UUID(as_uuid=True), nullable=False),
        sa.Column(
            "prompt_id",
            UUID(as_uuid=True),
            sa.ForeignKey("tracked_prompts.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        ),
        sa.Column("provider", sa.String(20), nullable=False),
        sa.Column("model", sa.String(64), nullable=True),
        sa.Column("status", sa.String(10), nullable=False),
        sa.Column("answer_text", sa.Text(), nullable=True),
        sa.Column("token_in", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("token_out", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("brands", JSONB(), nullable=True),
        sa.Column("org_brands", JSONB(), nullable=True),
        sa.Column("competitors", JSONB(), nullable=True),
        sa.Column("competitor_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("brand_present", sa.Boolean(), nullable=True),
        sa.Column("brand_position", sa.Integer(), nullable=True),
        sa.Column("score", sa.Integer(), nullable=True),
        sa.Column("error", sa.Text(), nullable=True),
        sa.Column("metadata", JSONB(), nullable=True),
        sa.Column("run_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_provider_executions_org_run_at", "provider_executions", ["org_id", "run_at"])

    # =========================================================
    # 3. Brand catalog (no unique name: duplicates are merged by operators)
    # =========================================================
    op.create_table(
        "brand_catalog",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "org_id",
            UUID(as_uuid=True),
            sa.ForeignKey("organizations.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("is_org_brand", sa.Boolean(), nullable=False, server_default="false"),
        sa.Column("variants", JSONB(), nullable=True),
        sa.Column("first_detected_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("last_seen_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("total_appearances", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("average_score", sa.Float(), nullable=False, server_default="0"),
    )
    op.create_index("ix_brand_catalog_org", "brand_catalog", ["org_id", "is_org_brand"])

    # =========================================================
    # 4. Organization overlays
    # =========================================================
    op.create_table(
        "org_overlays",
        sa.Column(
            "org_id",
            UUID(as_uuid=True),
            sa.ForeignKey("organizations.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column("competitor_overrides", JSONB(), nullable=True),
        sa.Column("competitor_exclusions", JSONB(), nullable=True),
        sa.Column("brand_variants", JSONB(), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )


def downgrade() -> None:
    op.drop_table("org_overlays")
    op.drop_index("ix_brand_catalog_org", table_name="brand_catalog")
    op.drop_table("brand_catalog")
    op.drop_index("ix_provider_executions_org_run_at", table_name="provider_executions")
    op.drop_table("provider_executions")
    op.drop_table("tracked_prompts")
    op.drop_table("organizations")
