from datetime import datetime
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.application.interfaces.report_repository import ReportRepository
from src.domain.entities.report import Report
from src.domain.enums.report_status import ReportStatus
from src.domain.errors import DuplicateReportError
from src.infrastructure.database.models import ReportModel

OPEN_REPORT_CONSTRAINT = "uq_reports_open_per_reporter"


def _to_domain(model: ReportModel) -> Report:
    return Report(
        id=model.id,
        listing_id=model.listing_id,
        reporter_id=model.reporter_id,
        reason=model.reason,
        status=ReportStatus(model.status),
        created_at=model.created_at,
        closed_at=model.closed_at,
    )


class SqlAlchemyReportRepository(ReportRepository):
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def add(self, report: Report) -> None:
        self._session.add(
            ReportModel(
                id=report.id,
                listing_id=report.listing_id,
                reporter_id=report.reporter_id,
                reason=report.reason,
                status=report.status.value,
                created_at=report.created_at,
                closed_at=report.closed_at,
            )
        )
        try:
            await self._session.flush()
        except IntegrityError as exc:
            # A concurrent request opened the same report after our find_open check.
            if OPEN_REPORT_CONSTRAINT in str(exc.orig):
                raise DuplicateReportError(report.listing_id) from exc
            raise

    async def get_by_id(self, report_id: UUID) -> Report | None:
        result = await self._session.execute(
            select(ReportModel)
            .where(ReportModel.id == report_id)
            .execution_options(populate_existing=True)
        )
        model = result.scalar_one_or_none()
        return _to_domain(model) if model is not None else None

    async def find_open(self, listing_id: UUID, reporter_id: UUID) -> Report | None:
        result = await self._session.execute(
            select(ReportModel)
            .where(
                ReportModel.listing_id == listing_id,
                ReportModel.reporter_id == reporter_id,
                ReportModel.status == ReportStatus.OPEN.value,
            )
            .limit(1)
        )
        model = result.scalar_one_or_none()
        return _to_domain(model) if model is not None else None

    async def close(self, report_id: UUID, closed_at: datetime) -> bool:
        result = await self._session.execute(
            update(ReportModel)
            .where(ReportModel.id == report_id, ReportModel.status == ReportStatus.OPEN.value)
            .values(status=ReportStatus.CLOSED.value, closed_at=closed_at)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    async def list_by_status(
        self, status: ReportStatus, *, limit: int = 20, offset: int = 0
    ) -> tuple[list[Report], int]:
        result = await self._session.execute(
            select(ReportModel)
            .where(ReportModel.status == status.value)
            .order_by(ReportModel.created_at.desc(), ReportModel.id.desc())
            .limit(limit)
            .offset(offset)
        )
        models = result.scalars().all()

        count_result = await self._session.execute(
            select(func.count()).select_from(ReportModel).where(ReportModel.status == status.value)
        )
        total = count_result.scalar_one()

        return [_to_domain(m) for m in models], total
