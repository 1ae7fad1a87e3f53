"""
SQLAlchemy ORM models.

These are purely infrastructure concerns; domain entities are mapped to/from
these models inside the repository implementations.
"""
import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    BigInteger,
    Boolean,
    CheckConstraint,
    DateTime,
    Enum as SAEnum,
    ForeignKey,
    Identity,
    Index,
    Integer,
    String,
    Text,
    func,
    text,
)
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.domain.enums.listing_status import ListingStatus
from src.domain.enums.report_status import ReportStatus
from src.domain.enums.user_role import UserRole
from src.domain.enums.watch_condition import WatchCondition
from src.infrastructure.database.connection import Base


def _pg_enum(enum_cls: type, name: str) -> SAEnum:
    return SAEnum(enum_cls, name=name, values_callable=lambda obj: [e.value for e in obj])


_listing_status_enum = _pg_enum(ListingStatus, "listing_status")
_report_status_enum = _pg_enum(ReportStatus, "report_status")
_user_role_enum = _pg_enum(UserRole, "user_role")
_watch_condition_enum = _pg_enum(WatchCondition, "watch_condition")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class UserModel(Base):
    """Read-only here; rows are owned by the identity service."""

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    email: Mapped[str] = mapped_column(String(320), nullable=False, unique=True)
    name: Mapped[str | None] = mapped_column(String(256), nullable=True)
    role: Mapped[str] = mapped_column(_user_role_enum, nullable=False, default=UserRole.BUYER.value)
    is_verified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )


class ListingModel(Base):
    __tablename__ = "listings"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    # Seller rows belong to the identity service; joined without a foreign key.
    seller_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False, index=True)

    # State
    status: Mapped[str] = mapped_column(_listing_status_enum, nullable=False, index=True)
    status_changed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow
    )

    # Descriptive fields
    title: Mapped[str] = mapped_column(String(256), nullable=False)
    brand: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    model: Mapped[str] = mapped_column(String(256), nullable=False)
    reference: Mapped[str | None] = mapped_column(String(128), nullable=True)
    year: Mapped[int | None] = mapped_column(Integer, nullable=True)
    condition: Mapped[str | None] = mapped_column(_watch_condition_enum, nullable=True)
    price_eur_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    location: Mapped[str | None] = mapped_column(String(256), nullable=True)
    photo_urls: Mapped[list] = mapped_column(JSONB, nullable=False, default=list)  # type: ignore[type-arg]

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now()
    )

    audit_entries: Mapped[list["ListingAuditEntryModel"]] = relationship(
        "ListingAuditEntryModel",
        back_populates="listing",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="select",
    )
    reports: Mapped[list["ReportModel"]] = relationship(
        "ReportModel",
        back_populates="listing",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="select",
    )

    __table_args__ = (
        Index("ix_listings_status_created_at", "status", "created_at"),
        Index("ix_listings_brand_status", "brand", "status"),
        CheckConstraint("price_eur_cents > 0", name="ck_listings_price_positive"),
    )


class ListingAuditEntryModel(Base):
    __tablename__ = "listing_audit_entries"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    listing_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("listings.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    from_status: Mapped[str] = mapped_column(_listing_status_enum, nullable=False)
    to_status: Mapped[str] = mapped_column(_listing_status_enum, nullable=False)
    actor_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False)
    reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    # Insertion order; breaks ties between entries sharing a timestamp.
    seq: Mapped[int] = mapped_column(BigInteger, Identity(), nullable=False, unique=True)

    listing: Mapped[ListingModel] = relationship("ListingModel", back_populates="audit_entries")

    __table_args__ = (
        Index("ix_listing_audit_entries_listing_created", "listing_id", "created_at"),
    )


class ReportModel(Base):
    __tablename__ = "reports"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    listing_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("listings.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    reporter_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False, index=True)
    reason: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[str] = mapped_column(_report_status_enum, nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    closed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    listing: Mapped[ListingModel] = relationship("ListingModel", back_populates="reports")

    __table_args__ = (
        Index("ix_reports_status_created_at", "status", "created_at"),
        Index(
            "uq_reports_open_per_reporter",
            "listing_id",
            "reporter_id",
            unique=True,
            postgresql_where=text("status = 'OPEN'"),
        ),
    )
