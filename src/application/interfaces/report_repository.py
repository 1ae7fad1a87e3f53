from abc import ABC, abstractmethod
from datetime import datetime
from uuid import UUID

from src.domain.entities.report import Report
from src.domain.enums.report_status import ReportStatus


class ReportRepository(ABC):
    """Port for persisting and querying listing reports."""

    @abstractmethod
    async def add(self, report: Report) -> None:
        ...

    @abstractmethod
    async def get_by_id(self, report_id: UUID) -> Report | None:
        ...

    @abstractmethod
    async def find_open(self, listing_id: UUID, reporter_id: UUID) -> Report | None:
        ...

    @abstractmethod
    async def close(self, report_id: UUID, closed_at: datetime) -> bool:
        """Move an OPEN report to CLOSED. Returns False if it was not OPEN."""
        ...

    @abstractmethod
    async def list_by_status(
        self, status: ReportStatus, *, limit: int = 20, offset: int = 0
    ) -> tuple[list[Report], int]:
        """Return (reports newest-first, total_count)."""
        ...
