from types import TracebackType

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from src.application.interfaces.unit_of_work import UnitOfWork
from src.domain.errors import PersistenceError
from src.infrastructure.database.connection import AsyncSessionLocal
from src.infrastructure.database.repositories.audit_trail_repository import SqlAlchemyAuditTrail
from src.infrastructure.database.repositories.listing_repository import (
    SqlAlchemyListingRepository,
)
from src.infrastructure.database.repositories.report_repository import (
    SqlAlchemyReportRepository,
)

logger = structlog.get_logger(__name__)


class SqlAlchemyUnitOfWork(UnitOfWork):
    """
    One session, one transaction.

    Driver and database failures leave the block as PersistenceError so the
    layers above never see SQLAlchemy types.
    """

    def __init__(
        self, session_factory: async_sessionmaker[AsyncSession] = AsyncSessionLocal
    ) -> None:
        self._session_factory = session_factory
        self._session: AsyncSession | None = None

    async def __aenter__(self) -> "SqlAlchemyUnitOfWork":
        self._session = self._session_factory()
        self.listings = SqlAlchemyListingRepository(self._session)
        self.audit_trail = SqlAlchemyAuditTrail(self._session)
        self.reports = SqlAlchemyReportRepository(self._session)
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        try:
            await self.rollback()
        except SQLAlchemyError:
            logger.warning("unit_of_work_rollback_failed", exc_info=True)
        finally:
            if self._session is not None:
                await self._session.close()
                self._session = None

        if isinstance(exc, SQLAlchemyError):
            raise PersistenceError() from exc

    async def commit(self) -> None:
        if self._session is None:
            raise RuntimeError("Unit of work used outside 'async with'.")
        try:
            await self._session.commit()
        except SQLAlchemyError as exc:
            raise PersistenceError() from exc

    async def rollback(self) -> None:
        if self._session is not None:
            await self._session.rollback()
