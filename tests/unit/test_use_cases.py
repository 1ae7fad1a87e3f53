"""
Unit tests for application use cases.

Most run against the in-memory unit of work so the compare-and-set and
commit semantics are exercised; failure paths use mocked ports.
"""
import asyncio
from datetime import datetime, timedelta, timezone
from typing import Any
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest

from src.application.pagination import PageRequest
from src.application.use_cases.create_listing import CreateListing, CreateListingInput
from src.application.use_cases.delete_listing import DeleteListing, DeleteListingInput
from src.application.use_cases.get_listing import GetListing, GetListingInput
from src.application.use_cases.get_listing_history import (
    GetListingHistory,
    GetListingHistoryInput,
)
from src.application.use_cases.list_public_listings import (
    ListPublicListings,
    ListPublicListingsInput,
)
from src.application.use_cases.transition_listing import (
    TransitionListing,
    TransitionListingInput,
)
from src.application.use_cases.update_listing import UpdateListing, UpdateListingInput
from src.domain.authorization.capability import Actor
from src.domain.entities.listing import Listing
from src.domain.entities.report import Report
from src.domain.enums.listing_status import ListingStatus, ListingTransition
from src.domain.enums.user_role import UserRole
from src.domain.errors import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    InvalidTransitionError,
    ListingNotEditableError,
    ListingNotFoundError,
    PersistenceError,
    StaleListingStatusError,
    ValidationError,
)
from src.infrastructure.stubs.in_memory_unit_of_work import InMemoryStore, in_memory_uow_factory


def _seller() -> Actor:
    return Actor(id=uuid4(), role=UserRole.SELLER)


def _admin() -> Actor:
    return Actor(id=uuid4(), role=UserRole.ADMIN)


def _buyer() -> Actor:
    return Actor(id=uuid4(), role=UserRole.BUYER)


def _seed(
    store: InMemoryStore,
    owner: Actor,
    status: ListingStatus = ListingStatus.DRAFT,
    photos: int = 1,
    **overrides: Any,
) -> Listing:
    fields = dict(
        seller_id=owner.id,
        status=status,
        title="Rolex Submariner",
        brand="Rolex",
        model="Submariner",
        price_eur_cents=950000,
        photo_urls=[f"https://cdn.example.com/{i}.jpg" for i in range(photos)],
    )
    fields.update(overrides)
    listing = Listing(**fields)
    store.put_listing(listing)
    return listing


def _make_dispatcher() -> MagicMock:
    return MagicMock()


def _make_mock_uow(listing: Listing | None) -> MagicMock:
    uow = MagicMock()
    uow.__aenter__ = AsyncMock(return_value=uow)
    uow.__aexit__ = AsyncMock(return_value=False)
    uow.listings.get_by_id = AsyncMock(return_value=listing)
    uow.listings.update_status = AsyncMock(return_value=True)
    uow.audit_trail.append = AsyncMock()
    uow.commit = AsyncMock()
    return uow


@pytest.fixture()
def store() -> InMemoryStore:
    return InMemoryStore()


class TestTransitionListing:
    @pytest.mark.asyncio
    async def test_owner_submits_draft(self, store: InMemoryStore) -> None:
        owner = _seller()
        listing = _seed(store, owner)
        dispatcher = _make_dispatcher()
        use_case = TransitionListing(in_memory_uow_factory(store), dispatcher)

        result = await use_case.execute(
            TransitionListingInput(listing.id, ListingTransition.SUBMIT, owner)
        )

        assert result.listing.status is ListingStatus.PENDING
        assert store.listings[listing.id].status is ListingStatus.PENDING
        assert store.audit_for(listing.id) == [result.audit_entry]
        dispatcher.dispatch.assert_not_called()

    @pytest.mark.asyncio
    async def test_submit_without_photo_writes_nothing(self, store: InMemoryStore) -> None:
        owner = _seller()
        listing = _seed(store, owner, photos=0)
        use_case = TransitionListing(in_memory_uow_factory(store), _make_dispatcher())

        with pytest.raises(ValidationError) as exc_info:
            await use_case.execute(
                TransitionListingInput(listing.id, ListingTransition.SUBMIT, owner)
            )

        assert exc_info.value.field == "photos"
        assert store.listings[listing.id].status is ListingStatus.DRAFT
        assert store.audit_for(listing.id) == []

    @pytest.mark.asyncio
    async def test_admin_approval_notifies_seller(self, store: InMemoryStore) -> None:
        owner = _seller()
        admin = _admin()
        listing = _seed(store, owner, ListingStatus.PENDING)
        dispatcher = _make_dispatcher()
        use_case = TransitionListing(in_memory_uow_factory(store), dispatcher)

        result = await use_case.execute(
            TransitionListingInput(listing.id, ListingTransition.APPROVE, admin)
        )

        assert result.audit_entry.actor_id == admin.id
        dispatcher.dispatch.assert_called_once()
        event = dispatcher.dispatch.call_args.args[0]
        assert event.to_status is ListingStatus.APPROVED
        assert event.seller_id == owner.id

    @pytest.mark.asyncio
    async def test_rejection_reason_is_audited(self, store: InMemoryStore) -> None:
        listing = _seed(store, _seller(), ListingStatus.PENDING)
        dispatcher = _make_dispatcher()
        use_case = TransitionListing(in_memory_uow_factory(store), dispatcher)

        result = await use_case.execute(
            TransitionListingInput(
                listing.id, ListingTransition.REJECT, _admin(), reason="Blurry photos"
            )
        )

        assert result.audit_entry.reason == "Blurry photos"
        assert dispatcher.dispatch.call_args.args[0].reason == "Blurry photos"

    @pytest.mark.asyncio
    async def test_dispatch_failure_does_not_fail_committed_transition(
        self, store: InMemoryStore
    ) -> None:
        listing = _seed(store, _seller(), ListingStatus.PENDING)
        dispatcher = _make_dispatcher()
        dispatcher.dispatch.side_effect = RuntimeError("broker down")
        use_case = TransitionListing(in_memory_uow_factory(store), dispatcher)

        result = await use_case.execute(
            TransitionListingInput(listing.id, ListingTransition.APPROVE, _admin())
        )

        assert result.listing.status is ListingStatus.APPROVED
        assert store.listings[listing.id].status is ListingStatus.APPROVED
        assert len(store.audit_for(listing.id)) == 1
        dispatcher.dispatch.assert_called_once()

    @pytest.mark.asyncio
    async def test_owner_reactivation_does_not_notify(self, store: InMemoryStore) -> None:
        owner = _seller()
        listing = _seed(store, owner, ListingStatus.SOLD)
        dispatcher = _make_dispatcher()
        use_case = TransitionListing(in_memory_uow_factory(store), dispatcher)

        result = await use_case.execute(
            TransitionListingInput(listing.id, ListingTransition.REACTIVATE, owner)
        )

        assert result.listing.status is ListingStatus.APPROVED
        dispatcher.dispatch.assert_not_called()

    @pytest.mark.asyncio
    async def test_owner_cannot_approve(self, store: InMemoryStore) -> None:
        owner = _seller()
        listing = _seed(store, owner, ListingStatus.PENDING)
        use_case = TransitionListing(in_memory_uow_factory(store), _make_dispatcher())

        with pytest.raises(AuthorizationError):
            await use_case.execute(
                TransitionListingInput(listing.id, ListingTransition.APPROVE, owner)
            )
        assert store.audit_for(listing.id) == []

    @pytest.mark.asyncio
    async def test_anonymous_is_refused(self, store: InMemoryStore) -> None:
        listing = _seed(store, _seller(), ListingStatus.PENDING)
        use_case = TransitionListing(in_memory_uow_factory(store), _make_dispatcher())

        with pytest.raises(AuthenticationError):
            await use_case.execute(
                TransitionListingInput(listing.id, ListingTransition.APPROVE, None)
            )

    @pytest.mark.asyncio
    async def test_unknown_listing(self, store: InMemoryStore) -> None:
        use_case = TransitionListing(in_memory_uow_factory(store), _make_dispatcher())
        with pytest.raises(ListingNotFoundError):
            await use_case.execute(
                TransitionListingInput(uuid4(), ListingTransition.APPROVE, _admin())
            )

    @pytest.mark.asyncio
    async def test_illegal_transition(self, store: InMemoryStore) -> None:
        listing = _seed(store, _seller(), ListingStatus.APPROVED)
        use_case = TransitionListing(in_memory_uow_factory(store), _make_dispatcher())
        with pytest.raises(InvalidTransitionError):
            await use_case.execute(
                TransitionListingInput(listing.id, ListingTransition.APPROVE, _admin())
            )

    @pytest.mark.asyncio
    async def test_overlong_reason(self, store: InMemoryStore) -> None:
        listing = _seed(store, _seller(), ListingStatus.PENDING)
        use_case = TransitionListing(in_memory_uow_factory(store), _make_dispatcher())
        with pytest.raises(ValidationError):
            await use_case.execute(
                TransitionListingInput(
                    listing.id, ListingTransition.REJECT, _admin(), reason="x" * 2001
                )
            )

    @pytest.mark.asyncio
    async def test_delete_is_not_a_status_transition(self, store: InMemoryStore) -> None:
        use_case = TransitionListing(in_memory_uow_factory(store), _make_dispatcher())
        with pytest.raises(ValueError):
            await use_case.execute(
                TransitionListingInput(uuid4(), ListingTransition.DELETE, _admin())
            )

    @pytest.mark.asyncio
    async def test_concurrent_approve_and_reject(self, store: InMemoryStore) -> None:
        listing = _seed(store, _seller(), ListingStatus.PENDING)
        dispatcher = _make_dispatcher()
        use_case = TransitionListing(in_memory_uow_factory(store), dispatcher)

        results = await asyncio.gather(
            use_case.execute(
                TransitionListingInput(listing.id, ListingTransition.APPROVE, _admin())
            ),
            use_case.execute(
                TransitionListingInput(listing.id, ListingTransition.REJECT, _admin())
            ),
            return_exceptions=True,
        )

        successes = [r for r in results if not isinstance(r, BaseException)]
        failures = [r for r in results if isinstance(r, BaseException)]
        assert len(successes) == 1
        assert len(failures) == 1
        assert isinstance(failures[0], ConflictError)
        assert len(store.audit_for(listing.id)) == 1
        assert store.listings[listing.id].status is successes[0].listing.status
        assert dispatcher.dispatch.call_count == 1

    @pytest.mark.asyncio
    async def test_lost_compare_and_set_is_a_conflict(self) -> None:
        owner = _seller()
        listing = Listing(
            seller_id=owner.id,
            status=ListingStatus.PENDING,
            brand="Rolex",
            model="Datejust",
            title="Rolex Datejust",
            price_eur_cents=700000,
        )
        uow = _make_mock_uow(listing)
        uow.listings.update_status = AsyncMock(return_value=False)
        dispatcher = _make_dispatcher()
        use_case = TransitionListing(lambda: uow, dispatcher)

        with pytest.raises(StaleListingStatusError):
            await use_case.execute(
                TransitionListingInput(listing.id, ListingTransition.APPROVE, _admin())
            )

        uow.audit_trail.append.assert_not_called()
        uow.commit.assert_not_called()
        dispatcher.dispatch.assert_not_called()

    @pytest.mark.asyncio
    async def test_persistence_failure_propagates_without_notification(self) -> None:
        listing = Listing(
            seller_id=uuid4(),
            status=ListingStatus.PENDING,
            brand="Rolex",
            model="Datejust",
            title="Rolex Datejust",
            price_eur_cents=700000,
        )
        uow = _make_mock_uow(listing)
        uow.commit = AsyncMock(side_effect=PersistenceError())
        dispatcher = _make_dispatcher()
        use_case = TransitionListing(lambda: uow, dispatcher)

        with pytest.raises(PersistenceError):
            await use_case.execute(
                TransitionListingInput(listing.id, ListingTransition.APPROVE, _admin())
            )
        dispatcher.dispatch.assert_not_called()


class TestCreateListing:
    @pytest.mark.asyncio
    async def test_seller_creates_draft(self, store: InMemoryStore) -> None:
        seller = _seller()
        use_case = CreateListing(in_memory_uow_factory(store))

        listing = await use_case.execute(
            CreateListingInput(
                actor=seller,
                details={"brand": "Seiko", "model": "SKX007", "price_eur_cents": 25000},
            )
        )

        assert listing.status is ListingStatus.DRAFT
        assert listing.seller_id == seller.id
        assert store.listings[listing.id].title == "Seiko SKX007"

    @pytest.mark.asyncio
    async def test_buyer_cannot_create(self, store: InMemoryStore) -> None:
        use_case = CreateListing(in_memory_uow_factory(store))
        with pytest.raises(AuthorizationError):
            await use_case.execute(
                CreateListingInput(
                    actor=_buyer(),
                    details={"brand": "Seiko", "model": "SKX007", "price_eur_cents": 25000},
                )
            )
        assert store.listings == {}


class TestUpdateListing:
    @pytest.mark.asyncio
    async def test_owner_updates_draft(self, store: InMemoryStore) -> None:
        owner = _seller()
        listing = _seed(store, owner)
        use_case = UpdateListing(in_memory_uow_factory(store))

        updated = await use_case.execute(
            UpdateListingInput(listing.id, owner, {"price_eur_cents": 800000})
        )

        assert updated.price_eur_cents == 800000
        assert store.listings[listing.id].price_eur_cents == 800000

    @pytest.mark.asyncio
    async def test_pending_listing_not_editable(self, store: InMemoryStore) -> None:
        owner = _seller()
        listing = _seed(store, owner, ListingStatus.PENDING)
        use_case = UpdateListing(in_memory_uow_factory(store))

        with pytest.raises(ListingNotEditableError):
            await use_case.execute(UpdateListingInput(listing.id, owner, {"price_eur_cents": 1}))

    @pytest.mark.asyncio
    async def test_admin_cannot_edit(self, store: InMemoryStore) -> None:
        listing = _seed(store, _seller())
        use_case = UpdateListing(in_memory_uow_factory(store))

        with pytest.raises(AuthorizationError):
            await use_case.execute(
                UpdateListingInput(listing.id, _admin(), {"price_eur_cents": 1})
            )

    @pytest.mark.asyncio
    async def test_empty_changes_do_not_commit(self, store: InMemoryStore) -> None:
        owner = _seller()
        listing = _seed(store, owner)
        use_case = UpdateListing(in_memory_uow_factory(store))

        await use_case.execute(UpdateListingInput(listing.id, owner, {}))
        assert store.commit_count == 0


class TestDeleteListing:
    @pytest.mark.asyncio
    async def test_owner_deletes_with_audit_and_reports(self, store: InMemoryStore) -> None:
        owner = _seller()
        listing = _seed(store, owner, ListingStatus.PENDING)
        uow_factory = in_memory_uow_factory(store)
        await TransitionListing(uow_factory, _make_dispatcher()).execute(
            TransitionListingInput(listing.id, ListingTransition.APPROVE, _admin())
        )
        report = Report.open(
            listing_id=listing.id, reporter_id=uuid4(), reason="counterfeit", min_reason_length=5
        )
        store.reports[report.id] = report

        await DeleteListing(uow_factory).execute(DeleteListingInput(listing.id, owner))

        assert listing.id not in store.listings
        assert store.audit_for(listing.id) == []
        assert store.reports == {}

    @pytest.mark.asyncio
    async def test_archived_cannot_be_deleted(self, store: InMemoryStore) -> None:
        listing = _seed(store, _seller(), ListingStatus.ARCHIVED)
        with pytest.raises(InvalidTransitionError):
            await DeleteListing(in_memory_uow_factory(store)).execute(
                DeleteListingInput(listing.id, _admin())
            )
        assert listing.id in store.listings

    @pytest.mark.asyncio
    async def test_other_user_cannot_delete(self, store: InMemoryStore) -> None:
        listing = _seed(store, _seller(), ListingStatus.APPROVED)
        with pytest.raises(AuthorizationError):
            await DeleteListing(in_memory_uow_factory(store)).execute(
                DeleteListingInput(listing.id, _buyer())
            )


class TestGetListing:
    @pytest.mark.asyncio
    async def test_pending_hidden_from_public(self, store: InMemoryStore) -> None:
        listing = _seed(store, _seller(), ListingStatus.PENDING)
        with pytest.raises(ListingNotFoundError):
            await GetListing(in_memory_uow_factory(store)).execute(GetListingInput(listing.id))

    @pytest.mark.asyncio
    async def test_admin_sees_moderation_actions(self, store: InMemoryStore) -> None:
        listing = _seed(store, _seller(), ListingStatus.PENDING)
        result = await GetListing(in_memory_uow_factory(store)).execute(
            GetListingInput(listing.id, _admin())
        )
        assert result.allowed_transitions == {
            ListingTransition.APPROVE,
            ListingTransition.REJECT,
            ListingTransition.DELETE,
        }


class TestListPublicListings:
    @pytest.mark.asyncio
    async def test_only_approved_newest_first(self, store: InMemoryStore) -> None:
        owner = _seller()
        now = datetime.now(timezone.utc)
        older = _seed(store, owner, ListingStatus.APPROVED, created_at=now - timedelta(days=1))
        newer = _seed(store, owner, ListingStatus.APPROVED, created_at=now)
        _seed(store, owner, ListingStatus.PENDING)
        _seed(store, owner, ListingStatus.SOLD)

        page = await ListPublicListings(in_memory_uow_factory(store)).execute(
            ListPublicListingsInput()
        )

        assert [l.id for l in page.items] == [newer.id, older.id]
        assert page.total == 2

    @pytest.mark.asyncio
    async def test_brand_filter_and_paging(self, store: InMemoryStore) -> None:
        owner = _seller()
        for _ in range(3):
            _seed(store, owner, ListingStatus.APPROVED, brand="Omega")
        _seed(store, owner, ListingStatus.APPROVED, brand="Tudor")

        page = await ListPublicListings(in_memory_uow_factory(store)).execute(
            ListPublicListingsInput(page=PageRequest(page=2, page_size=2), brand="omega")
        )

        assert page.total == 3
        assert len(page.items) == 1
        assert page.pages == 2


class TestGetListingHistory:
    @pytest.mark.asyncio
    async def test_default_window_is_five_newest_first(self, store: InMemoryStore) -> None:
        owner = _seller()
        admin = _admin()
        listing = _seed(store, owner)
        use_case = TransitionListing(in_memory_uow_factory(store), _make_dispatcher())
        steps = [
            (ListingTransition.SUBMIT, owner),
            (ListingTransition.REJECT, admin),
            (ListingTransition.SUBMIT, owner),
            (ListingTransition.APPROVE, admin),
            (ListingTransition.MARK_SOLD, owner),
            (ListingTransition.REACTIVATE, owner),
            (ListingTransition.MARK_SOLD, owner),
        ]
        for transition, actor in steps:
            await use_case.execute(TransitionListingInput(listing.id, transition, actor))

        result = await GetListingHistory(in_memory_uow_factory(store)).execute(
            GetListingHistoryInput(listing.id, owner)
        )

        assert [e.to_status for e in result.history] == [
            ListingStatus.SOLD,
            ListingStatus.APPROVED,
            ListingStatus.SOLD,
            ListingStatus.APPROVED,
            ListingStatus.PENDING,
        ]
        assert len(store.audit_for(listing.id)) == 7

    @pytest.mark.asyncio
    async def test_limit_out_of_range(self, store: InMemoryStore) -> None:
        owner = _seller()
        listing = _seed(store, owner)
        with pytest.raises(ValidationError):
            await GetListingHistory(in_memory_uow_factory(store), max_limit=50).execute(
                GetListingHistoryInput(listing.id, owner, limit=0)
            )

    @pytest.mark.asyncio
    async def test_other_user_cannot_read_history(self, store: InMemoryStore) -> None:
        listing = _seed(store, _seller(), ListingStatus.APPROVED)
        with pytest.raises(AuthorizationError):
            await GetListingHistory(in_memory_uow_factory(store)).execute(
                GetListingHistoryInput(listing.id, _buyer())
            )
