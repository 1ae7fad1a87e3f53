from dataclasses import dataclass
from uuid import UUID

import structlog

from src.application.interfaces.unit_of_work import UnitOfWorkFactory
from src.domain.authorization.authorization_guard import AuthorizationGuard
from src.domain.authorization.capability import Actor
from src.domain.enums.listing_status import ListingTransition
from src.domain.errors import ListingNotFoundError, PersistenceError, StaleListingStatusError
from src.domain.state_machine.moderation_state_machine import ModerationStateMachine

logger = structlog.get_logger(__name__)


@dataclass
class DeleteListingInput:
    listing_id: UUID
    actor: Actor | None


class DeleteListing:
    """Use case: owner or admin removes a listing together with its audit trail and reports."""

    def __init__(
        self,
        uow_factory: UnitOfWorkFactory,
        guard: AuthorizationGuard | None = None,
        state_machine: ModerationStateMachine | None = None,
    ) -> None:
        self._uow_factory = uow_factory
        self._guard = guard or AuthorizationGuard()
        self._state_machine = state_machine or ModerationStateMachine()

    async def execute(self, input_data: DeleteListingInput) -> None:
        actor = self._guard.require_actor(input_data.actor)

        try:
            async with self._uow_factory() as uow:
                listing = await uow.listings.get_by_id(input_data.listing_id)
                if listing is None:
                    raise ListingNotFoundError(input_data.listing_id)

                capability = self._guard.resolve(actor, listing)
                self._guard.ensure_can_transition(capability, ListingTransition.DELETE)
                decision = self._state_machine.validate(
                    listing.status, ListingTransition.DELETE, capability
                )

                if not await uow.listings.delete(
                    listing.id, expected_status=decision.from_status
                ):
                    raise StaleListingStatusError(listing.id, decision.from_status)
                await uow.commit()
        except PersistenceError:
            logger.exception(
                "listing_delete_persistence_failed",
                listing_id=str(input_data.listing_id),
                actor_id=str(actor.id),
            )
            raise

        logger.info(
            "listing_deleted",
            listing_id=str(listing.id),
            status=listing.status.value,
            actor_id=str(actor.id),
            by_admin=capability.is_admin and not capability.is_owner,
        )
