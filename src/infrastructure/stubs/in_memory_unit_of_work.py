"""
In-memory persistence stubs.

Implements the same ports as the SQLAlchemy adapters, including the
compare-and-set status precondition, the one-open-report-per-reporter rule
and cascading deletes. Writes are staged and only become visible on commit(),
which first re-checks every staged precondition against committed state, the
way the database does under row locks and unique indexes. Reads return copies.

Used by the test-suite in place of the SQLAlchemy unit of work.
"""
import asyncio
import copy
from collections.abc import Callable
from datetime import datetime
from uuid import UUID

from src.application.interfaces.audit_trail import AuditTrail
from src.application.interfaces.listing_repository import (
    ListingRepository,
    PendingListingSummary,
    SellerSummary,
)
from src.application.interfaces.report_repository import ReportRepository
from src.application.interfaces.unit_of_work import UnitOfWork
from src.domain.entities.audit_entry import AuditEntry
from src.domain.entities.listing import Listing
from src.domain.entities.report import Report
from src.domain.enums.listing_status import ListingStatus
from src.domain.enums.report_status import ReportStatus
from src.domain.errors import DuplicateReportError, StaleListingStatusError

_StagedOp = Callable[[], None]


class _Staging:
    """Writes of one unit of work, plus the checks they depend on."""

    def __init__(self) -> None:
        self.checks: list[_StagedOp] = []
        self.ops: list[_StagedOp] = []

    def clear(self) -> None:
        self.checks.clear()
        self.ops.clear()


class InMemoryStore:
    """Committed state shared by every unit of work created from it."""

    def __init__(self) -> None:
        self.listings: dict[UUID, Listing] = {}
        self.audit_entries: list[AuditEntry] = []
        self.reports: dict[UUID, Report] = {}
        self.users: dict[UUID, SellerSummary] = {}
        self.commit_count = 0

    def clear(self) -> None:
        self.listings.clear()
        self.audit_entries.clear()
        self.reports.clear()
        self.users.clear()
        self.commit_count = 0

    def add_user(self, user: SellerSummary) -> None:
        self.users[user.id] = user

    def put_listing(self, listing: Listing) -> None:
        """Seed a listing directly, bypassing the lifecycle."""
        self.listings[listing.id] = copy.deepcopy(listing)

    def audit_for(self, listing_id: UUID) -> list[AuditEntry]:
        return [e for e in self.audit_entries if e.listing_id == listing_id]


class InMemoryListingRepository(ListingRepository):
    def __init__(self, store: InMemoryStore, staging: _Staging) -> None:
        self._store = store
        self._staging = staging

    def _require_status(self, listing_id: UUID, expected_status: ListingStatus) -> None:
        def _check() -> None:
            current = self._store.listings.get(listing_id)
            if current is None or current.status is not expected_status:
                raise StaleListingStatusError(listing_id, expected_status)

        self._staging.checks.append(_check)

    async def add(self, listing: Listing) -> None:
        snapshot = copy.deepcopy(listing)
        self._staging.ops.append(lambda: self._store.listings.__setitem__(snapshot.id, snapshot))

    async def get_by_id(self, listing_id: UUID) -> Listing | None:
        # A real driver round-trip suspends here; let concurrent tasks interleave.
        await asyncio.sleep(0)
        listing = self._store.listings.get(listing_id)
        return copy.deepcopy(listing) if listing is not None else None

    async def save_details(self, listing: Listing, expected_status: ListingStatus) -> bool:
        stored = self._store.listings.get(listing.id)
        if stored is None or stored.status is not expected_status:
            return False

        snapshot = copy.deepcopy(listing)

        def _apply() -> None:
            target = self._store.listings[snapshot.id]
            for name in (
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
                "updated_at",
            ):
                setattr(target, name, copy.deepcopy(getattr(snapshot, name)))

        self._require_status(snapshot.id, expected_status)
        self._staging.ops.append(_apply)
        return True

    async def update_status(
        self,
        listing_id: UUID,
        *,
        expected_status: ListingStatus,
        new_status: ListingStatus,
        changed_at: datetime,
    ) -> bool:
        stored = self._store.listings.get(listing_id)
        if stored is None or stored.status is not expected_status:
            return False

        def _apply() -> None:
            target = self._store.listings[listing_id]
            target.status = new_status
            target.status_changed_at = changed_at
            target.updated_at = changed_at

        self._require_status(listing_id, expected_status)
        self._staging.ops.append(_apply)
        return True

    async def delete(self, listing_id: UUID, *, expected_status: ListingStatus) -> bool:
        stored = self._store.listings.get(listing_id)
        if stored is None or stored.status is not expected_status:
            return False

        def _apply() -> None:
            del self._store.listings[listing_id]
            self._store.audit_entries[:] = [
                e for e in self._store.audit_entries if e.listing_id != listing_id
            ]
            for report_id in [
                r.id for r in self._store.reports.values() if r.listing_id == listing_id
            ]:
                del self._store.reports[report_id]

        self._require_status(listing_id, expected_status)
        self._staging.ops.append(_apply)
        return True

    async def list_by_status(
        self,
        status: ListingStatus,
        *,
        brand: str | None = None,
        limit: int = 20,
        offset: int = 0,
    ) -> tuple[list[Listing], int]:
        matches = [l for l in self._store.listings.values() if l.status is status]
        if brand is not None:
            matches = [l for l in matches if brand.lower() in l.brand.lower()]
        matches.sort(key=lambda l: l.created_at, reverse=True)
        return [copy.deepcopy(l) for l in matches[offset : offset + limit]], len(matches)

    async def list_pending_summaries(
        self, *, limit: int = 20, offset: int = 0
    ) -> tuple[list[PendingListingSummary], int]:
        listings, total = await self.list_by_status(
            ListingStatus.PENDING, limit=limit, offset=offset
        )
        summaries = [
            PendingListingSummary(
                listing_id=l.id,
                title=l.title,
                brand=l.brand,
                model=l.model,
                price_eur_cents=l.price_eur_cents,
                photo_count=l.photo_count,
                thumbnail_url=l.thumbnail_url,
                created_at=l.created_at,
                updated_at=l.updated_at,
                seller=self._store.users.get(l.seller_id, SellerSummary(id=l.seller_id)),
            )
            for l in listings
        ]
        return summaries, total


class InMemoryAuditTrail(AuditTrail):
    def __init__(self, store: InMemoryStore, staging: _Staging) -> None:
        self._store = store
        self._staging = staging

    async def append(self, entry: AuditEntry) -> None:
        self._staging.ops.append(lambda: self._store.audit_entries.append(entry))

    async def recent_for(self, listing_id: UUID, limit: int) -> list[AuditEntry]:
        entries = self._store.audit_for(listing_id)
        # Later appends win ties on identical timestamps.
        return sorted(reversed(entries), key=lambda e: e.created_at, reverse=True)[:limit]


class InMemoryReportRepository(ReportRepository):
    def __init__(self, store: InMemoryStore, staging: _Staging) -> None:
        self._store = store
        self._staging = staging

    async def add(self, report: Report) -> None:
        snapshot = copy.deepcopy(report)

        def _check() -> None:
            if self._find_open(snapshot.listing_id, snapshot.reporter_id) is not None:
                raise DuplicateReportError(snapshot.listing_id)

        self._staging.checks.append(_check)
        self._staging.ops.append(lambda: self._store.reports.__setitem__(snapshot.id, snapshot))

    async def get_by_id(self, report_id: UUID) -> Report | None:
        report = self._store.reports.get(report_id)
        return copy.deepcopy(report) if report is not None else None

    def _find_open(self, listing_id: UUID, reporter_id: UUID) -> Report | None:
        for report in self._store.reports.values():
            if (
                report.listing_id == listing_id
                and report.reporter_id == reporter_id
                and report.is_open
            ):
                return report
        return None

    async def find_open(self, listing_id: UUID, reporter_id: UUID) -> Report | None:
        report = self._find_open(listing_id, reporter_id)
        return copy.deepcopy(report) if report is not None else None

    async def close(self, report_id: UUID, closed_at: datetime) -> bool:
        stored = self._store.reports.get(report_id)
        if stored is None or not stored.is_open:
            return False
        self._staging.ops.append(lambda: self._store.reports[report_id].close(closed_at))
        return True

    async def list_by_status(
        self, status: ReportStatus, *, limit: int = 20, offset: int = 0
    ) -> tuple[list[Report], int]:
        matches = [r for r in self._store.reports.values() if r.status is status]
        matches.sort(key=lambda r: r.created_at, reverse=True)
        return [copy.deepcopy(r) for r in matches[offset : offset + limit]], len(matches)


class InMemoryUnitOfWork(UnitOfWork):
    def __init__(self, store: InMemoryStore) -> None:
        self._store = store
        self._staging = _Staging()
        self.listings = InMemoryListingRepository(store, self._staging)
        self.audit_trail = InMemoryAuditTrail(store, self._staging)
        self.reports = InMemoryReportRepository(store, self._staging)

    async def commit(self) -> None:
        try:
            for check in self._staging.checks:
                check()
            for op in self._staging.ops:
                op()
        finally:
            self._staging.clear()
        self._store.commit_count += 1

    async def rollback(self) -> None:
        self._staging.clear()


def in_memory_uow_factory(store: InMemoryStore) -> Callable[[], InMemoryUnitOfWork]:
    return lambda: InMemoryUnitOfWork(store)
