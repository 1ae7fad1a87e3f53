from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status

from src.api.dependencies import (
    get_create_listing_use_case,
    get_current_actor,
    get_delete_listing_use_case,
    get_listing_history_use_case,
    get_listing_use_case,
    get_page_request,
    get_public_listings_use_case,
    get_transition_listing_use_case,
    get_update_listing_use_case,
)
from src.api.schemas.listing_schemas import (
    AuditEntryResponse,
    ListingCreateRequest,
    ListingDetailResponse,
    ListingHistoryResponse,
    ListingResponse,
    ListingUpdateRequest,
    PaginatedListingsResponse,
    TransitionResponse,
)
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
    TransitionListingOutput,
)
from src.application.use_cases.update_listing import UpdateListing, UpdateListingInput
from src.config import settings
from src.domain.authorization.capability import Actor
from src.domain.enums.listing_status import ListingTransition

router = APIRouter(prefix="/listings", tags=["listings"])


def transition_response(result: TransitionListingOutput) -> TransitionResponse:
    return TransitionResponse(
        listing=ListingResponse.model_validate(result.listing),
        audit_entry=AuditEntryResponse.model_validate(result.audit_entry),
    )


@router.post("", response_model=ListingResponse, status_code=status.HTTP_201_CREATED)
async def create_listing(
    body: ListingCreateRequest,
    actor: Actor | None = Depends(get_current_actor),
    use_case: CreateListing = Depends(get_create_listing_use_case),
) -> ListingResponse:
    """Start a new listing in DRAFT."""
    listing = await use_case.execute(
        CreateListingInput(actor=actor, details=body.model_dump(exclude_unset=True))
    )
    return ListingResponse.model_validate(listing)


@router.get("", response_model=PaginatedListingsResponse)
async def list_public_listings(
    brand: str | None = Query(default=None),
    page: PageRequest = Depends(get_page_request),
    use_case: ListPublicListings = Depends(get_public_listings_use_case),
) -> PaginatedListingsResponse:
    """The public catalogue: APPROVED listings only."""
    result = await use_case.execute(ListPublicListingsInput(page=page, brand=brand))
    return PaginatedListingsResponse(
        listings=[ListingResponse.model_validate(l) for l in result.items],
        total=result.total,
        page=result.page,
        page_size=result.page_size,
        pages=result.pages,
    )


@router.get("/{listing_id}", response_model=ListingDetailResponse)
async def get_listing(
    listing_id: UUID,
    actor: Actor | None = Depends(get_current_actor),
    use_case: GetListing = Depends(get_listing_use_case),
) -> ListingDetailResponse:
    result = await use_case.execute(GetListingInput(listing_id=listing_id, actor=actor))
    return ListingDetailResponse(
        **ListingResponse.model_validate(result.listing).model_dump(),
        allowed_transitions=sorted(result.allowed_transitions, key=lambda t: t.value),
    )


@router.patch("/{listing_id}", response_model=ListingResponse)
async def update_listing(
    listing_id: UUID,
    body: ListingUpdateRequest,
    actor: Actor | None = Depends(get_current_actor),
    use_case: UpdateListing = Depends(get_update_listing_use_case),
) -> ListingResponse:
    listing = await use_case.execute(
        UpdateListingInput(
            listing_id=listing_id,
            actor=actor,
            changes=body.model_dump(exclude_unset=True),
        )
    )
    return ListingResponse.model_validate(listing)


@router.delete("/{listing_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_listing(
    listing_id: UUID,
    actor: Actor | None = Depends(get_current_actor),
    use_case: DeleteListing = Depends(get_delete_listing_use_case),
) -> Response:
    await use_case.execute(DeleteListingInput(listing_id=listing_id, actor=actor))
    return Response(status_code=status.HTTP_204_NO_CONTENT)


async def _owner_transition(
    use_case: TransitionListing,
    listing_id: UUID,
    transition: ListingTransition,
    actor: Actor | None,
) -> TransitionResponse:
    result = await use_case.execute(
        TransitionListingInput(listing_id=listing_id, transition=transition, actor=actor)
    )
    return transition_response(result)


@router.post("/{listing_id}/submit", response_model=TransitionResponse)
async def submit_listing(
    listing_id: UUID,
    actor: Actor | None = Depends(get_current_actor),
    use_case: TransitionListing = Depends(get_transition_listing_use_case),
) -> TransitionResponse:
    """Send a DRAFT or REJECTED listing to moderation."""
    return await _owner_transition(use_case, listing_id, ListingTransition.SUBMIT, actor)


@router.post("/{listing_id}/mark-sold", response_model=TransitionResponse)
async def mark_listing_sold(
    listing_id: UUID,
    actor: Actor | None = Depends(get_current_actor),
    use_case: TransitionListing = Depends(get_transition_listing_use_case),
) -> TransitionResponse:
    return await _owner_transition(use_case, listing_id, ListingTransition.MARK_SOLD, actor)


@router.post("/{listing_id}/reactivate", response_model=TransitionResponse)
async def reactivate_listing(
    listing_id: UUID,
    actor: Actor | None = Depends(get_current_actor),
    use_case: TransitionListing = Depends(get_transition_listing_use_case),
) -> TransitionResponse:
    return await _owner_transition(use_case, listing_id, ListingTransition.REACTIVATE, actor)


@router.get("/{listing_id}/history", response_model=ListingHistoryResponse)
async def get_listing_history(
    listing_id: UUID,
    limit: int = Query(default=settings.audit_history_default_limit),
    actor: Actor | None = Depends(get_current_actor),
    use_case: GetListingHistory = Depends(get_listing_history_use_case),
) -> ListingHistoryResponse:
    """Most recent status changes, newest first."""
    result = await use_case.execute(
        GetListingHistoryInput(listing_id=listing_id, actor=actor, limit=limit)
    )
    return ListingHistoryResponse(
        listing_id=result.listing_id,
        history=[AuditEntryResponse.model_validate(entry) for entry in result.history],
    )
