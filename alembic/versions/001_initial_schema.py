"""initial schema

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-18 00:00:00.000000
"""
from typing import Sequence, Union

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import ENUM, JSONB, UUID

from alembic import op

revision: str = "001_initial_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

listing_status = ENUM(
    "DRAFT",
    "PENDING",
    "APPROVED",
    "REJECTED",
    "SOLD",
    "ARCHIVED",
    name="listing_status",
    create_type=False,
)
report_status = ENUM("OPEN", "CLOSED", name="report_status", create_type=False)
user_role = ENUM("BUYER", "SELLER", "ADMIN", name="user_role", create_type=False)
watch_condition = ENUM(
    "NEW",
    "UNWORN",
    "EXCELLENT",
    "VERY_GOOD",
    "GOOD",
    "FAIR",
    name="watch_condition",
    create_type=False,
)

_ENUMS = (listing_status, report_status, user_role, watch_condition)


def upgrade() -> None:
    bind = op.get_bind()
    for enum in _ENUMS:
        enum.create(bind, checkfirst=True)

    # Owned by the identity service; read here for seller summaries
    op.create_table(
        "users",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("email", sa.String(320), nullable=False, unique=True),
        sa.Column("name", sa.String(256), nullable=True),
        sa.Column("role", user_role, nullable=False),
        sa.Column("is_verified", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
    )

    op.create_table(
        "listings",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("seller_id", UUID(as_uuid=True), nullable=False),
        # State
        sa.Column("status", listing_status, nullable=False),
        sa.Column("status_changed_at", sa.DateTime(timezone=True), nullable=False),
        # Descriptive fields
        sa.Column("title", sa.String(256), nullable=False),
        sa.Column("brand", sa.String(128), nullable=False),
        sa.Column("model", sa.String(256), nullable=False),
        sa.Column("reference", sa.String(128), nullable=True),
        sa.Column("year", sa.Integer(), nullable=True),
        sa.Column("condition", watch_condition, nullable=True),
        sa.Column("price_eur_cents", sa.Integer(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("location", sa.String(256), nullable=True),
        sa.Column("photo_urls", JSONB, nullable=False, server_default=sa.text("'[]'")),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.CheckConstraint("price_eur_cents > 0", name="ck_listings_price_positive"),
    )
    op.create_index("ix_listings_seller_id", "listings", ["seller_id"])
    op.create_index("ix_listings_status", "listings", ["status"])
    op.create_index("ix_listings_brand", "listings", ["brand"])
    op.create_index("ix_listings_status_created_at", "listings", ["status", "created_at"])
    op.create_index("ix_listings_brand_status", "listings", ["brand", "status"])

    # Append-only: rows are inserted with the transition and only removed with the listing
    op.create_table(
        "listing_audit_entries",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "listing_id",
            UUID(as_uuid=True),
            sa.ForeignKey("listings.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("from_status", listing_status, nullable=False),
        sa.Column("to_status", listing_status, nullable=False),
        sa.Column("actor_id", UUID(as_uuid=True), nullable=False),
        sa.Column("reason", sa.Text(), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.Column("seq", sa.BigInteger(), sa.Identity(), nullable=False, unique=True),
    )
    op.create_index(
        "ix_listing_audit_entries_listing_id", "listing_audit_entries", ["listing_id"]
    )
    op.create_index(
        "ix_listing_audit_entries_listing_created",
        "listing_audit_entries",
        ["listing_id", "created_at"],
    )

    op.create_table(
        "reports",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "listing_id",
            UUID(as_uuid=True),
            sa.ForeignKey("listings.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("reporter_id", UUID(as_uuid=True), nullable=False),
        sa.Column("reason", sa.Text(), nullable=False),
        sa.Column("status", report_status, nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.Column("closed_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_reports_listing_id", "reports", ["listing_id"])
    op.create_index("ix_reports_reporter_id", "reports", ["reporter_id"])
    op.create_index("ix_reports_status", "reports", ["status"])
    op.create_index("ix_reports_status_created_at", "reports", ["status", "created_at"])
    # At most one OPEN report per reporter and listing
    op.create_index(
        "uq_reports_open_per_reporter",
        "reports",
        ["listing_id", "reporter_id"],
        unique=True,
        postgresql_where=sa.text("status = 'OPEN'"),
    )


def downgrade() -> None:
    op.drop_table("reports")
    op.drop_table("listing_audit_entries")
    op.drop_table("listings")
    op.drop_table("users")
    bind = op.get_bind()
    for enum in reversed(_ENUMS):
        enum.drop(bind, checkfirst=True)
