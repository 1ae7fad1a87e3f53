from dataclasses import dataclass, field
from datetime import datetime, timezone
from uuid import UUID, uuid4

from src.domain.enums.listing_status import ListingStatus, ListingTransition


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# Moderation outcomes the seller hears about. An owner's own reactivation also
# lands in APPROVED but is not a moderation decision.
NOTIFYING_TRANSITIONS = frozenset({ListingTransition.APPROVE, ListingTransition.REJECT})


@dataclass(frozen=True)
class DomainEvent:
    """Base class for all domain events."""

    event_id: UUID = field(default_factory=uuid4)
    occurred_at: datetime = field(default_factory=_utcnow)


@dataclass(frozen=True)
class ListingStatusChangedEvent(DomainEvent):
    """Recorded whenever a listing transition is applied."""

    listing_id: UUID = field(default_factory=uuid4)
    seller_id: UUID = field(default_factory=uuid4)
    from_status: ListingStatus = ListingStatus.DRAFT
    to_status: ListingStatus = ListingStatus.DRAFT
    transition: ListingTransition | None = None
    actor_id: UUID | None = None
    reason: str | None = None

    @property
    def notifies_seller(self) -> bool:
        return self.transition in NOTIFYING_TRANSITIONS
