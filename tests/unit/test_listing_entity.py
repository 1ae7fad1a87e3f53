"""Unit tests for the Listing and Report domain entities."""
from uuid import uuid4

import pytest

from src.domain.authorization.capability import Actor, Capability
from src.domain.entities.listing import MAX_PHOTOS, Listing
from src.domain.entities.report import Report
from src.domain.enums.listing_status import ListingStatus, ListingTransition
from src.domain.enums.report_status import ReportStatus
from src.domain.enums.user_role import UserRole
from src.domain.enums.watch_condition import WatchCondition
from src.domain.errors import ListingNotEditableError, ValidationError
from src.domain.events.domain_events import ListingStatusChangedEvent
from src.domain.state_machine.moderation_state_machine import ModerationStateMachine


def _details(**overrides):  # type: ignore[no-untyped-def]
    details = {
        "brand": "Rolex",
        "model": "Submariner",
        "price_eur_cents": 950000,
        "photo_urls": ["https://cdn.example.com/sub-1.jpg"],
    }
    details.update(overrides)
    return details


def _make_listing(**overrides) -> Listing:  # type: ignore[no-untyped-def]
    return Listing.create_draft(seller_id=uuid4(), details=_details(**overrides))


class TestCreateDraft:
    def test_creates_in_draft(self) -> None:
        listing = _make_listing()
        assert listing.status is ListingStatus.DRAFT
        assert listing.collect_events() == []

    def test_title_derived_from_brand_and_model(self) -> None:
        assert _make_listing().title == "Rolex Submariner"

    def test_explicit_title_kept(self) -> None:
        assert _make_listing(title="  Sub 16610  ").title == "Sub 16610"

    def test_condition_accepts_plain_value(self) -> None:
        assert _make_listing(condition="VERY_GOOD").condition is WatchCondition.VERY_GOOD

    @pytest.mark.parametrize("missing", ["brand", "model", "price_eur_cents"])
    def test_required_fields(self, missing: str) -> None:
        details = _details()
        del details[missing]
        with pytest.raises(ValidationError) as exc_info:
            Listing.create_draft(seller_id=uuid4(), details=details)
        assert exc_info.value.field == missing

    def test_blank_brand_rejected(self) -> None:
        with pytest.raises(ValidationError):
            _make_listing(brand="   ")

    @pytest.mark.parametrize("price", [0, -100, True, 12.5, "100"])
    def test_price_must_be_positive_integer(self, price) -> None:  # type: ignore[no-untyped-def]
        with pytest.raises(ValidationError) as exc_info:
            _make_listing(price_eur_cents=price)
        assert exc_info.value.field == "price_eur_cents"

    def test_year_bounds(self) -> None:
        with pytest.raises(ValidationError):
            _make_listing(year=1700)
        assert _make_listing(year=1968).year == 1968

    def test_unknown_field_rejected(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            _make_listing(status="APPROVED")
        assert exc_info.value.field == "status"

    def test_too_many_photos(self) -> None:
        photos = [f"https://cdn.example.com/{i}.jpg" for i in range(MAX_PHOTOS + 1)]
        with pytest.raises(ValidationError):
            _make_listing(photo_urls=photos)

    def test_unknown_condition(self) -> None:
        with pytest.raises(ValidationError):
            _make_listing(condition="MINT-ISH")


class TestUpdateDetails:
    def test_updates_in_draft(self) -> None:
        listing = _make_listing()
        listing.update_details({"price_eur_cents": 900000, "location": "Geneva"})
        assert listing.price_eur_cents == 900000
        assert listing.location == "Geneva"

    def test_brand_change_rederives_title(self) -> None:
        listing = _make_listing()
        listing.update_details({"brand": "Tudor"})
        assert listing.title == "Tudor Submariner"

    def test_editable_when_rejected(self) -> None:
        listing = _make_listing()
        listing.status = ListingStatus.REJECTED
        listing.update_details({"description": "Fresh service."})
        assert listing.description == "Fresh service."

    @pytest.mark.parametrize(
        "status",
        [ListingStatus.PENDING, ListingStatus.APPROVED, ListingStatus.SOLD, ListingStatus.ARCHIVED],
    )
    def test_not_editable_elsewhere(self, status: ListingStatus) -> None:
        listing = _make_listing()
        listing.status = status
        with pytest.raises(ListingNotEditableError):
            listing.update_details({"price_eur_cents": 1})


class TestApplyTransition:
    def _submit_decision(self, listing: Listing):  # type: ignore[no-untyped-def]
        owner = Capability.for_actor(
            Actor(listing.seller_id, UserRole.SELLER), owner_id=listing.seller_id
        )
        return ModerationStateMachine().validate(
            listing.status, ListingTransition.SUBMIT, owner, photo_count=listing.photo_count
        )

    def test_returns_audit_entry_and_records_event(self) -> None:
        listing = _make_listing()
        entry = listing.apply_transition(self._submit_decision(listing), listing.seller_id)

        assert listing.status is ListingStatus.PENDING
        assert entry.from_status is ListingStatus.DRAFT
        assert entry.to_status is ListingStatus.PENDING
        assert entry.actor_id == listing.seller_id
        assert listing.status_changed_at == entry.created_at

        events = listing.collect_events()
        assert len(events) == 1
        assert isinstance(events[0], ListingStatusChangedEvent)
        assert events[0].notifies_seller is False

    def test_blank_reason_becomes_none(self) -> None:
        listing = _make_listing()
        entry = listing.apply_transition(self._submit_decision(listing), uuid4(), reason="   ")
        assert entry.reason is None

    def test_stale_decision_refused(self) -> None:
        listing = _make_listing()
        decision = self._submit_decision(listing)
        listing.status = ListingStatus.PENDING
        with pytest.raises(ValueError):
            listing.apply_transition(decision, uuid4())


class TestReport:
    def test_open_strips_reason(self) -> None:
        report = Report.open(
            listing_id=uuid4(), reporter_id=uuid4(), reason="  fake watch  ", min_reason_length=5
        )
        assert report.reason == "fake watch"
        assert report.status is ReportStatus.OPEN

    def test_reason_too_short(self) -> None:
        with pytest.raises(ValidationError):
            Report.open(listing_id=uuid4(), reporter_id=uuid4(), reason="bad ", min_reason_length=5)

    def test_close_is_idempotent(self) -> None:
        report = Report.open(
            listing_id=uuid4(), reporter_id=uuid4(), reason="stolen item", min_reason_length=5
        )
        assert report.close() is True
        closed_at = report.closed_at
        assert report.close() is False
        assert report.closed_at == closed_at
