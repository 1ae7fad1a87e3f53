from abc import ABC, abstractmethod
from collections.abc import Callable
from types import TracebackType

from src.application.interfaces.audit_trail import AuditTrail
from src.application.interfaces.listing_repository import ListingRepository
from src.application.interfaces.report_repository import ReportRepository


class UnitOfWork(ABC):
    """
    One atomic unit of persistence work.

    Everything staged through the repositories commits together on
    commit(); leaving the ``async with`` block without committing rolls
    back.
    """

    listings: ListingRepository
    audit_trail: AuditTrail
    reports: ReportRepository

    async def __aenter__(self) -> "UnitOfWork":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.rollback()

    @abstractmethod
    async def commit(self) -> None:
        ...

    @abstractmethod
    async def rollback(self) -> None:
        ...


UnitOfWorkFactory = Callable[[], UnitOfWork]
