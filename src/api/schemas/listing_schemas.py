from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from src.domain.enums.listing_status import ListingStatus, ListingTransition
from src.domain.enums.watch_condition import WatchCondition


class ListingCreateRequest(BaseModel):
    brand: str
    model: str
    price_eur_cents: int
    title: str | None = None
    reference: str | None = None
    year: int | None = None
    condition: WatchCondition | None = None
    description: str | None = None
    location: str | None = None
    photo_urls: list[str] = Field(default_factory=list)


class ListingUpdateRequest(BaseModel):
    """Only the fields present in the request body are changed."""

    title: str | None = None
    brand: str | None = None
    model: str | None = None
    reference: str | None = None
    year: int | None = None
    condition: WatchCondition | None = None
    price_eur_cents: int | None = None
    description: str | None = None
    location: str | None = None
    photo_urls: list[str] | None = None


class ReasonRequest(BaseModel):
    reason: str | None = None


class ListingResponse(BaseModel):
    id: UUID
    seller_id: UUID
    status: ListingStatus
    title: str
    brand: str
    model: str
    reference: str | None = None
    year: int | None = None
    condition: WatchCondition | None = None
    price_eur_cents: int
    description: str | None = None
    location: str | None = None
    photo_urls: list[str]
    thumbnail_url: str | None = None
    created_at: datetime
    updated_at: datetime
    status_changed_at: datetime

    model_config = {"from_attributes": True}


class ListingDetailResponse(ListingResponse):
    allowed_transitions: list[ListingTransition]


class PaginatedListingsResponse(BaseModel):
    listings: list[ListingResponse]
    total: int
    page: int
    page_size: int
    pages: int


class AuditEntryResponse(BaseModel):
    id: UUID
    listing_id: UUID
    from_status: ListingStatus
    to_status: ListingStatus
    actor_id: UUID
    reason: str | None = None
    created_at: datetime

    model_config = {"from_attributes": True}


class TransitionResponse(BaseModel):
    listing: ListingResponse
    audit_entry: AuditEntryResponse


class ListingHistoryResponse(BaseModel):
    listing_id: UUID
    history: list[AuditEntryResponse]


class SellerResponse(BaseModel):
    id: UUID
    name: str | None = None
    email: str | None = None
    is_verified: bool = False

    model_config = {"from_attributes": True}


class PendingListingResponse(BaseModel):
    listing_id: UUID
    title: str
    brand: str
    model: str
    price_eur_cents: int
    photo_count: int
    thumbnail_url: str | None = None
    created_at: datetime
    updated_at: datetime
    seller: SellerResponse

    model_config = {"from_attributes": True}


class PaginatedPendingListingsResponse(BaseModel):
    listings: list[PendingListingResponse]
    total: int
    page: int
    page_size: int
    pages: int
