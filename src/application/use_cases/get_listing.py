from dataclasses import dataclass
from uuid import UUID

from src.application.interfaces.unit_of_work import UnitOfWorkFactory
from src.domain.authorization.authorization_guard import AuthorizationGuard
from src.domain.authorization.capability import Actor, Capability
from src.domain.entities.listing import Listing
from src.domain.enums.listing_status import ListingTransition
from src.domain.errors import ListingNotFoundError
from src.domain.state_machine.moderation_state_machine import ModerationStateMachine


@dataclass
class GetListingInput:
    listing_id: UUID
    actor: Actor | None = None


@dataclass
class GetListingOutput:
    listing: Listing
    capability: Capability
    allowed_transitions: frozenset[ListingTransition]


class GetListing:
    """Use case: read one listing, honouring who may see which status."""

    def __init__(
        self,
        uow_factory: UnitOfWorkFactory,
        guard: AuthorizationGuard | None = None,
        state_machine: ModerationStateMachine | None = None,
    ) -> None:
        self._uow_factory = uow_factory
        self._guard = guard or AuthorizationGuard()
        self._state_machine = state_machine or ModerationStateMachine()

    async def execute(self, input_data: GetListingInput) -> GetListingOutput:
        async with self._uow_factory() as uow:
            listing = await uow.listings.get_by_id(input_data.listing_id)
        if listing is None:
            raise ListingNotFoundError(input_data.listing_id)

        capability = self._guard.resolve(input_data.actor, listing)
        self._guard.ensure_can_read(capability, listing)

        return GetListingOutput(
            listing=listing,
            capability=capability,
            allowed_transitions=self._state_machine.allowed_transitions(
                listing.status, capability
            ),
        )
