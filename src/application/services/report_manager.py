"""
Report intake and resolution.

Reports run beside the listing lifecycle, not inside it: nothing here reads
or writes a listing's status beyond checking that the listing can be seen.
An admin who decides a reported listing needs action issues a separate
moderation call.
"""
from datetime import datetime, timezone
from uuid import UUID

import structlog

from src.application.interfaces.unit_of_work import UnitOfWorkFactory
from src.application.pagination import Page, PageRequest
from src.domain.authorization.authorization_guard import AuthorizationGuard
from src.domain.authorization.capability import Actor
from src.domain.entities.report import Report
from src.domain.enums.report_status import ReportStatus
from src.domain.errors import (
    DuplicateReportError,
    ListingNotFoundError,
    PersistenceError,
    ReportNotFoundError,
)

logger = structlog.get_logger(__name__)


class ReportManager:
    def __init__(
        self,
        uow_factory: UnitOfWorkFactory,
        guard: AuthorizationGuard | None = None,
        min_reason_length: int = 5,
    ) -> None:
        self._uow_factory = uow_factory
        self._guard = guard or AuthorizationGuard()
        self._min_reason_length = min_reason_length

    async def create(self, actor: Actor | None, listing_id: UUID, reason: str) -> Report:
        """File an OPEN report. One open report per reporter and listing."""
        reporter = self._guard.require_actor(actor)

        try:
            async with self._uow_factory() as uow:
                listing = await uow.listings.get_by_id(listing_id)
                if listing is None:
                    raise ListingNotFoundError(listing_id)

                capability = self._guard.resolve(reporter, listing)
                self._guard.ensure_can_read(capability, listing)
                self._guard.ensure_can_report(capability)

                report = Report.open(
                    listing_id=listing.id,
                    reporter_id=reporter.id,
                    reason=reason,
                    min_reason_length=self._min_reason_length,
                )

                if await uow.reports.find_open(listing.id, reporter.id) is not None:
                    raise DuplicateReportError(listing.id)

                await uow.reports.add(report)
                await uow.commit()
        except PersistenceError:
            logger.exception(
                "report_create_persistence_failed",
                listing_id=str(listing_id),
                actor_id=str(reporter.id),
            )
            raise

        logger.info(
            "report_created",
            report_id=str(report.id),
            listing_id=str(listing_id),
            reporter_id=str(reporter.id),
        )
        return report

    async def list(
        self, actor: Actor | None, status: ReportStatus, page: PageRequest
    ) -> Page[Report]:
        self._guard.require_admin(actor)
        async with self._uow_factory() as uow:
            reports, total = await uow.reports.list_by_status(
                status, limit=page.limit, offset=page.offset
            )
        return Page(items=reports, total=total, page=page.page, page_size=page.page_size)

    async def close(self, actor: Actor | None, report_id: UUID) -> Report:
        """Close a report. Closing an already-closed report succeeds and changes nothing."""
        capability = self._guard.require_admin(actor)

        try:
            async with self._uow_factory() as uow:
                report = await uow.reports.get_by_id(report_id)
                if report is None:
                    raise ReportNotFoundError(report_id)
                if not report.is_open:
                    return report

                closed_at = datetime.now(timezone.utc)
                if await uow.reports.close(report.id, closed_at):
                    await uow.commit()
                    report.close(closed_at)
                else:
                    # Closed concurrently by another admin; same outcome.
                    report = await uow.reports.get_by_id(report_id) or report
        except PersistenceError:
            logger.exception(
                "report_close_persistence_failed",
                report_id=str(report_id),
                actor_id=str(capability.actor_id),
            )
            raise

        logger.info(
            "report_closed",
            report_id=str(report.id),
            listing_id=str(report.listing_id),
            actor_id=str(capability.actor_id),
        )
        return report
