from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from src.api.dependencies import get_current_actor, get_page_request, get_report_manager
from src.api.schemas.report_schemas import (
    PaginatedReportsResponse,
    ReportCreateRequest,
    ReportResponse,
)
from src.application.pagination import PageRequest
from src.application.services.report_manager import ReportManager
from src.domain.authorization.capability import Actor
from src.domain.enums.report_status import ReportStatus

router = APIRouter(tags=["reports"])


@router.post(
    "/listings/{listing_id}/reports",
    response_model=ReportResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_report(
    listing_id: UUID,
    body: ReportCreateRequest,
    actor: Actor | None = Depends(get_current_actor),
    manager: ReportManager = Depends(get_report_manager),
) -> ReportResponse:
    """Flag a listing for administrative review."""
    report = await manager.create(actor, listing_id, body.reason)
    return ReportResponse.model_validate(report)


@router.get("/admin/reports", response_model=PaginatedReportsResponse)
async def list_reports(
    report_status: ReportStatus = Query(default=ReportStatus.OPEN, alias="status"),
    page: PageRequest = Depends(get_page_request),
    actor: Actor | None = Depends(get_current_actor),
    manager: ReportManager = Depends(get_report_manager),
) -> PaginatedReportsResponse:
    result = await manager.list(actor, report_status, page)
    return PaginatedReportsResponse(
        reports=[ReportResponse.model_validate(r) for r in result.items],
        total=result.total,
        page=result.page,
        page_size=result.page_size,
        pages=result.pages,
    )


@router.post("/admin/reports/{report_id}/close", response_model=ReportResponse)
async def close_report(
    report_id: UUID,
    actor: Actor | None = Depends(get_current_actor),
    manager: ReportManager = Depends(get_report_manager),
) -> ReportResponse:
    """Close a report. Closing twice is not an error."""
    report = await manager.close(actor, report_id)
    return ReportResponse.model_validate(report)
