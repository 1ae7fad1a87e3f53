from uuid import UUID

from fastapi import APIRouter, Depends

from src.api.dependencies import get_current_actor, get_moderation_queue, get_page_request
from src.api.routes.listings import transition_response
from src.api.schemas.listing_schemas import (
    PaginatedPendingListingsResponse,
    PendingListingResponse,
    ReasonRequest,
    TransitionResponse,
)
from src.application.pagination import PageRequest
from src.application.services.moderation_queue import ModerationQueue
from src.domain.authorization.capability import Actor

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/listings/pending", response_model=PaginatedPendingListingsResponse)
async def list_pending_listings(
    page: PageRequest = Depends(get_page_request),
    actor: Actor | None = Depends(get_current_actor),
    queue: ModerationQueue = Depends(get_moderation_queue),
) -> PaginatedPendingListingsResponse:
    """Listings awaiting a decision, newest first, with seller summaries."""
    result = await queue.pending(actor, page)
    return PaginatedPendingListingsResponse(
        listings=[PendingListingResponse.model_validate(s) for s in result.items],
        total=result.total,
        page=result.page,
        page_size=result.page_size,
        pages=result.pages,
    )


@router.post("/listings/{listing_id}/approve", response_model=TransitionResponse)
async def approve_listing(
    listing_id: UUID,
    actor: Actor | None = Depends(get_current_actor),
    queue: ModerationQueue = Depends(get_moderation_queue),
) -> TransitionResponse:
    return transition_response(await queue.approve(actor, listing_id))


@router.post("/listings/{listing_id}/reject", response_model=TransitionResponse)
async def reject_listing(
    listing_id: UUID,
    body: ReasonRequest | None = None,
    actor: Actor | None = Depends(get_current_actor),
    queue: ModerationQueue = Depends(get_moderation_queue),
) -> TransitionResponse:
    reason = body.reason if body else None
    return transition_response(await queue.reject(actor, listing_id, reason))


@router.post("/listings/{listing_id}/archive", response_model=TransitionResponse)
async def archive_listing(
    listing_id: UUID,
    body: ReasonRequest | None = None,
    actor: Actor | None = Depends(get_current_actor),
    queue: ModerationQueue = Depends(get_moderation_queue),
) -> TransitionResponse:
    reason = body.reason if body else None
    return transition_response(await queue.archive(actor, listing_id, reason))
