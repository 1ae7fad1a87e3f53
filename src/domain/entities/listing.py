from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any
from uuid import UUID, uuid4

from src.domain.entities.audit_entry import AuditEntry
from src.domain.enums.listing_status import ListingStatus
from src.domain.enums.watch_condition import WatchCondition
from src.domain.errors import ListingNotEditableError, ValidationError
from src.domain.events.domain_events import DomainEvent, ListingStatusChangedEvent
from src.domain.state_machine.moderation_state_machine import TransitionDecision

MAX_PHOTOS = 20
MIN_YEAR = 1800

EDITABLE_FIELDS = frozenset(
    {
        "title",
        "brand",
        "model",
        "reference",
        "year",
        "condition",
        "price_eur_cents",
        "description",
        "location",
        "photo_urls",
    }
)
REQUIRED_FIELDS = ("brand", "model", "price_eur_cents")

_MAX_LENGTHS = {
    "title": 256,
    "brand": 128,
    "model": 256,
    "reference": 128,
    "description": 5000,
    "location": 256,
}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _clean_text(name: str, value: Any, *, required: bool = False) -> str | None:
    if value is None:
        if required:
            raise ValidationError(f"{name} is required.", field=name)
        return None
    if not isinstance(value, str):
        raise ValidationError(f"{name} must be text.", field=name)
    value = value.strip()
    if not value:
        if required:
            raise ValidationError(f"{name} is required.", field=name)
        return None
    if len(value) > _MAX_LENGTHS[name]:
        raise ValidationError(
            f"{name} must be at most {_MAX_LENGTHS[name]} characters.", field=name
        )
    return value


def _normalise_details(values: Mapping[str, Any], *, creating: bool) -> dict[str, Any]:
    unknown = set(values) - EDITABLE_FIELDS
    if unknown:
        name = sorted(unknown)[0]
        raise ValidationError(f"Unknown field {name}.", field=name)

    if creating:
        for name in REQUIRED_FIELDS:
            if values.get(name) is None:
                raise ValidationError(f"{name} is required.", field=name)

    cleaned: dict[str, Any] = {}
    for name, value in values.items():
        if name in _MAX_LENGTHS:
            cleaned[name] = _clean_text(name, value, required=name in REQUIRED_FIELDS)
        elif name == "price_eur_cents":
            if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
                raise ValidationError("Price must be a positive amount.", field=name)
            cleaned[name] = value
        elif name == "year":
            if value is not None:
                max_year = _utcnow().year + 1
                if isinstance(value, bool) or not isinstance(value, int) or not (
                    MIN_YEAR <= value <= max_year
                ):
                    raise ValidationError(
                        f"Year must be between {MIN_YEAR} and {max_year}.", field=name
                    )
            cleaned[name] = value
        elif name == "condition":
            if value is not None:
                try:
                    value = WatchCondition(value)
                except ValueError:
                    raise ValidationError("Unknown watch condition.", field=name) from None
            cleaned[name] = value
        elif name == "photo_urls":
            photos = list(value or [])
            if len(photos) > MAX_PHOTOS:
                raise ValidationError(f"At most {MAX_PHOTOS} photos are allowed.", field=name)
            if any(not isinstance(url, str) or not url.strip() for url in photos):
                raise ValidationError("Photo URLs must be non-empty.", field=name)
            cleaned[name] = [url.strip() for url in photos]
    return cleaned


@dataclass
class Listing:
    """
    A used watch offered by a seller.

    Status only changes through apply_transition(), fed with a decision the
    state machine already allowed. Descriptive fields only change while the
    listing is DRAFT or REJECTED.
    """

    # Identity
    seller_id: UUID
    id: UUID = field(default_factory=uuid4)

    # State
    status: ListingStatus = ListingStatus.DRAFT

    # Descriptive fields
    title: str = ""
    brand: str = ""
    model: str = ""
    reference: str | None = None
    year: int | None = None
    condition: WatchCondition | None = None
    price_eur_cents: int = 0
    description: str | None = None
    location: str | None = None
    photo_urls: list[str] = field(default_factory=list)

    # Timestamps
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)
    status_changed_at: datetime = field(default_factory=_utcnow)

    _events: list[DomainEvent] = field(default_factory=list, repr=False, compare=False)

    # -------------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------------

    @classmethod
    def create_draft(cls, *, seller_id: UUID, details: Mapping[str, Any]) -> "Listing":
        cleaned = _normalise_details(details, creating=True)
        listing = cls(seller_id=seller_id, **cleaned)
        if not cleaned.get("title"):
            listing.title = listing._derived_title()
        return listing

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    @property
    def photo_count(self) -> int:
        return len(self.photo_urls)

    @property
    def thumbnail_url(self) -> str | None:
        return self.photo_urls[0] if self.photo_urls else None

    @property
    def is_publicly_visible(self) -> bool:
        return self.status.is_publicly_visible

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    def update_details(self, changes: Mapping[str, Any]) -> None:
        if not self.status.is_editable:
            raise ListingNotEditableError(self.id, self.status)

        cleaned = _normalise_details(changes, creating=False)
        for name, value in cleaned.items():
            setattr(self, name, value)

        if "brand" in cleaned or "model" in cleaned:
            self.title = self._derived_title()
        elif "title" in cleaned and not cleaned["title"]:
            self.title = self._derived_title()
        self.updated_at = _utcnow()

    def apply_transition(
        self, decision: TransitionDecision, actor_id: UUID, reason: str | None = None
    ) -> AuditEntry:
        """Apply an allowed status change and return the audit entry that must be committed with it."""
        if not decision.allowed or decision.to_status is None:
            raise ValueError("Only allowed status-changing decisions can be applied.")
        if decision.from_status is not self.status:
            raise ValueError(
                f"Decision was taken for {decision.from_status.value}, "
                f"listing is {self.status.value}."
            )

        reason = reason.strip() if reason and reason.strip() else None
        old_status = self.status
        now = _utcnow()

        self.status = decision.to_status
        self.status_changed_at = now
        self.updated_at = now

        self._events.append(
            ListingStatusChangedEvent(
                listing_id=self.id,
                seller_id=self.seller_id,
                from_status=old_status,
                to_status=decision.to_status,
                transition=decision.transition,
                actor_id=actor_id,
                reason=reason,
            )
        )
        return AuditEntry(
            listing_id=self.id,
            from_status=old_status,
            to_status=decision.to_status,
            actor_id=actor_id,
            reason=reason,
            created_at=now,
        )

    def _derived_title(self) -> str:
        return f"{self.brand} {self.model}".strip()

    # -------------------------------------------------------------------------
    # Event collection
    # -------------------------------------------------------------------------

    def collect_events(self) -> list[DomainEvent]:
        """Return pending events and clear the internal buffer."""
        events = list(self._events)
        self._events.clear()
        return events
