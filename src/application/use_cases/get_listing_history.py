from dataclasses import dataclass
from uuid import UUID

from src.application.interfaces.unit_of_work import UnitOfWorkFactory
from src.domain.authorization.authorization_guard import AuthorizationGuard
from src.domain.authorization.capability import Actor
from src.domain.entities.audit_entry import AuditEntry
from src.domain.errors import ListingNotFoundError, ValidationError

DEFAULT_HISTORY_LIMIT = 5


@dataclass
class GetListingHistoryInput:
    listing_id: UUID
    actor: Actor | None
    limit: int = DEFAULT_HISTORY_LIMIT


@dataclass
class GetListingHistoryOutput:
    listing_id: UUID
    history: list[AuditEntry]


class GetListingHistory:
    """Use case: the most recent audit entries for a listing, newest first."""

    def __init__(
        self,
        uow_factory: UnitOfWorkFactory,
        guard: AuthorizationGuard | None = None,
        max_limit: int = 50,
    ) -> None:
        self._uow_factory = uow_factory
        self._guard = guard or AuthorizationGuard()
        self._max_limit = max_limit

    async def execute(self, input_data: GetListingHistoryInput) -> GetListingHistoryOutput:
        if not 1 <= input_data.limit <= self._max_limit:
            raise ValidationError(
                f"Limit must be between 1 and {self._max_limit}.", field="limit"
            )

        async with self._uow_factory() as uow:
            listing = await uow.listings.get_by_id(input_data.listing_id)
            if listing is None:
                raise ListingNotFoundError(input_data.listing_id)

            capability = self._guard.resolve(input_data.actor, listing)
            self._guard.ensure_can_read_history(capability)

            history = await uow.audit_trail.recent_for(listing.id, input_data.limit)

        return GetListingHistoryOutput(listing_id=listing.id, history=history)
