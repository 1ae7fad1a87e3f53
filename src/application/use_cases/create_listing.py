from dataclasses import dataclass, field
from typing import Any

import structlog

from src.application.interfaces.unit_of_work import UnitOfWorkFactory
from src.domain.authorization.authorization_guard import AuthorizationGuard
from src.domain.authorization.capability import Actor
from src.domain.entities.listing import Listing
from src.domain.errors import PersistenceError

logger = structlog.get_logger(__name__)


@dataclass
class CreateListingInput:
    actor: Actor | None
    details: dict[str, Any] = field(default_factory=dict)


class CreateListing:
    """Use case: a seller starts a new listing in DRAFT."""

    def __init__(
        self, uow_factory: UnitOfWorkFactory, guard: AuthorizationGuard | None = None
    ) -> None:
        self._uow_factory = uow_factory
        self._guard = guard or AuthorizationGuard()

    async def execute(self, input_data: CreateListingInput) -> Listing:
        seller = self._guard.require_seller(input_data.actor)
        listing = Listing.create_draft(seller_id=seller.id, details=input_data.details)

        try:
            async with self._uow_factory() as uow:
                await uow.listings.add(listing)
                await uow.commit()
        except PersistenceError:
            logger.exception(
                "listing_create_persistence_failed",
                listing_id=str(listing.id),
                actor_id=str(seller.id),
            )
            raise

        logger.info(
            "listing_created",
            listing_id=str(listing.id),
            seller_id=str(seller.id),
            brand=listing.brand,
            model=listing.model,
        )
        return listing
