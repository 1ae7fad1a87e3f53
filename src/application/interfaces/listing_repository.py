from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from src.domain.entities.listing import Listing
from src.domain.enums.listing_status import ListingStatus


@dataclass(frozen=True)
class SellerSummary:
    id: UUID
    name: str | None = None
    email: str | None = None
    is_verified: bool = False


@dataclass(frozen=True)
class PendingListingSummary:
    """Everything the moderation queue renders without further lookups."""

    listing_id: UUID
    title: str
    brand: str
    model: str
    price_eur_cents: int
    photo_count: int
    thumbnail_url: str | None
    created_at: datetime
    updated_at: datetime
    seller: SellerSummary


class ListingRepository(ABC):
    """Port for persisting and querying Listing aggregates."""

    @abstractmethod
    async def add(self, listing: Listing) -> None:
        ...

    @abstractmethod
    async def get_by_id(self, listing_id: UUID) -> Listing | None:
        """Return the committed state of the listing, never a cached copy."""
        ...

    @abstractmethod
    async def save_details(self, listing: Listing, expected_status: ListingStatus) -> bool:
        """Write descriptive fields only if the stored status still equals expected_status."""
        ...

    @abstractmethod
    async def update_status(
        self,
        listing_id: UUID,
        *,
        expected_status: ListingStatus,
        new_status: ListingStatus,
        changed_at: datetime,
    ) -> bool:
        """Compare-and-set the status. Returns False when the precondition fails."""
        ...

    @abstractmethod
    async def delete(self, listing_id: UUID, *, expected_status: ListingStatus) -> bool:
        """Remove the listing with its audit entries and reports."""
        ...

    @abstractmethod
    async def list_by_status(
        self,
        status: ListingStatus,
        *,
        brand: str | None = None,
        limit: int = 20,
        offset: int = 0,
    ) -> tuple[list[Listing], int]:
        """Return (listings newest-first, total_count)."""
        ...

    @abstractmethod
    async def list_pending_summaries(
        self, *, limit: int = 20, offset: int = 0
    ) -> tuple[list[PendingListingSummary], int]:
        ...
