from datetime import datetime
from uuid import UUID

from pydantic import BaseModel

from src.domain.enums.report_status import ReportStatus


class ReportCreateRequest(BaseModel):
    reason: str


class ReportResponse(BaseModel):
    id: UUID
    listing_id: UUID
    reporter_id: UUID
    reason: str
    status: ReportStatus
    created_at: datetime
    closed_at: datetime | None = None

    model_config = {"from_attributes": True}


class PaginatedReportsResponse(BaseModel):
    reports: list[ReportResponse]
    total: int
    page: int
    page_size: int
    pages: int
