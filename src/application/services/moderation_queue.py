"""Administrative triage surface over PENDING listings."""
from uuid import UUID

from src.application.interfaces.listing_repository import PendingListingSummary
from src.application.interfaces.unit_of_work import UnitOfWorkFactory
from src.application.pagination import Page, PageRequest
from src.application.use_cases.transition_listing import (
    TransitionListing,
    TransitionListingInput,
    TransitionListingOutput,
)
from src.domain.authorization.authorization_guard import AuthorizationGuard
from src.domain.authorization.capability import Actor
from src.domain.enums.listing_status import ListingTransition


class ModerationQueue:
    """
    Composes guard, state machine and audit trail for day-to-day moderation.

    Decisions are never retried here: if another admin got there first the
    caller sees the ConflictError.
    """

    def __init__(
        self,
        uow_factory: UnitOfWorkFactory,
        transition_listing: TransitionListing,
        guard: AuthorizationGuard | None = None,
    ) -> None:
        self._uow_factory = uow_factory
        self._transition_listing = transition_listing
        self._guard = guard or AuthorizationGuard()

    async def pending(
        self, actor: Actor | None, page: PageRequest
    ) -> Page[PendingListingSummary]:
        self._guard.require_admin(actor)
        async with self._uow_factory() as uow:
            summaries, total = await uow.listings.list_pending_summaries(
                limit=page.limit, offset=page.offset
            )
        return Page(items=summaries, total=total, page=page.page, page_size=page.page_size)

    async def approve(self, actor: Actor | None, listing_id: UUID) -> TransitionListingOutput:
        return await self._decide(actor, listing_id, ListingTransition.APPROVE)

    async def reject(
        self, actor: Actor | None, listing_id: UUID, reason: str | None = None
    ) -> TransitionListingOutput:
        return await self._decide(actor, listing_id, ListingTransition.REJECT, reason)

    async def archive(
        self, actor: Actor | None, listing_id: UUID, reason: str | None = None
    ) -> TransitionListingOutput:
        return await self._decide(actor, listing_id, ListingTransition.ARCHIVE, reason)

    async def _decide(
        self,
        actor: Actor | None,
        listing_id: UUID,
        transition: ListingTransition,
        reason: str | None = None,
    ) -> TransitionListingOutput:
        self._guard.require_admin(actor)
        return await self._transition_listing.execute(
            TransitionListingInput(
                listing_id=listing_id,
                transition=transition,
                actor=actor,
                reason=reason,
            )
        )
