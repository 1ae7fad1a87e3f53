from dataclasses import dataclass, field
from typing import Any
from uuid import UUID

import structlog

from src.application.interfaces.unit_of_work import UnitOfWorkFactory
from src.domain.authorization.authorization_guard import AuthorizationGuard
from src.domain.authorization.capability import Actor
from src.domain.entities.listing import Listing
from src.domain.errors import ListingNotFoundError, PersistenceError, StaleListingStatusError

logger = structlog.get_logger(__name__)


@dataclass
class UpdateListingInput:
    listing_id: UUID
    actor: Actor | None
    changes: dict[str, Any] = field(default_factory=dict)


class UpdateListing:
    """
    Use case: the owner edits descriptive fields of a DRAFT or REJECTED listing.

    The write is conditional on the status observed at read time, so an
    edit cannot land on a listing that was submitted in the meantime.
    """

    def __init__(
        self, uow_factory: UnitOfWorkFactory, guard: AuthorizationGuard | None = None
    ) -> None:
        self._uow_factory = uow_factory
        self._guard = guard or AuthorizationGuard()

    async def execute(self, input_data: UpdateListingInput) -> Listing:
        actor = self._guard.require_actor(input_data.actor)

        try:
            async with self._uow_factory() as uow:
                listing = await uow.listings.get_by_id(input_data.listing_id)
                if listing is None:
                    raise ListingNotFoundError(input_data.listing_id)

                capability = self._guard.resolve(actor, listing)
                self._guard.ensure_can_edit(capability)

                if not input_data.changes:
                    return listing

                observed_status = listing.status
                listing.update_details(input_data.changes)

                if not await uow.listings.save_details(listing, observed_status):
                    raise StaleListingStatusError(listing.id, observed_status)
                await uow.commit()
        except PersistenceError:
            logger.exception(
                "listing_update_persistence_failed",
                listing_id=str(input_data.listing_id),
                actor_id=str(actor.id),
            )
            raise

        logger.info(
            "listing_updated",
            listing_id=str(listing.id),
            actor_id=str(actor.id),
            fields=sorted(input_data.changes),
        )
        return listing
