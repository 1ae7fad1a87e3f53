from dataclasses import dataclass
from uuid import UUID

import structlog

from src.application.interfaces.notification_dispatcher import NotificationDispatcher
from src.application.interfaces.unit_of_work import UnitOfWorkFactory
from src.domain.authorization.authorization_guard import AuthorizationGuard
from src.domain.authorization.capability import Actor
from src.domain.entities.audit_entry import AuditEntry
from src.domain.entities.listing import Listing
from src.domain.enums.listing_status import ListingTransition
from src.domain.errors import (
    ListingNotFoundError,
    PersistenceError,
    StaleListingStatusError,
    ValidationError,
)
from src.domain.events.domain_events import ListingStatusChangedEvent
from src.domain.state_machine.moderation_state_machine import ModerationStateMachine

logger = structlog.get_logger(__name__)

MAX_TRANSITION_REASON_LENGTH = 2000


@dataclass
class TransitionListingInput:
    listing_id: UUID
    transition: ListingTransition
    actor: Actor | None
    reason: str | None = None


@dataclass
class TransitionListingOutput:
    listing: Listing
    audit_entry: AuditEntry


class TransitionListing:
    """
    Use case: move a listing to its next status.

    guard -> state machine -> compare-and-set status + audit entry in one
    unit of work -> hand seller notifications to the dispatcher. Nothing is
    retried; a lost race surfaces as a ConflictError.
    """

    def __init__(
        self,
        uow_factory: UnitOfWorkFactory,
        notifications: NotificationDispatcher,
        guard: AuthorizationGuard | None = None,
        state_machine: ModerationStateMachine | None = None,
    ) -> None:
        self._uow_factory = uow_factory
        self._notifications = notifications
        self._guard = guard or AuthorizationGuard()
        self._state_machine = state_machine or ModerationStateMachine()

    async def execute(self, input_data: TransitionListingInput) -> TransitionListingOutput:
        if input_data.transition is ListingTransition.DELETE:
            raise ValueError("Deletion goes through DeleteListing.")
        if input_data.reason and len(input_data.reason) > MAX_TRANSITION_REASON_LENGTH:
            raise ValidationError(
                f"Reason must be at most {MAX_TRANSITION_REASON_LENGTH} characters.",
                field="reason",
            )

        actor = self._guard.require_actor(input_data.actor)

        try:
            async with self._uow_factory() as uow:
                listing = await uow.listings.get_by_id(input_data.listing_id)
                if listing is None:
                    raise ListingNotFoundError(input_data.listing_id)

                capability = self._guard.resolve(actor, listing)
                self._guard.ensure_can_transition(capability, input_data.transition)

                decision = self._state_machine.validate(
                    listing.status,
                    input_data.transition,
                    capability,
                    photo_count=listing.photo_count,
                )
                entry = listing.apply_transition(decision, actor.id, input_data.reason)

                updated = await uow.listings.update_status(
                    listing.id,
                    expected_status=entry.from_status,
                    new_status=entry.to_status,
                    changed_at=entry.created_at,
                )
                if not updated:
                    raise StaleListingStatusError(listing.id, entry.from_status)

                await uow.audit_trail.append(entry)
                await uow.commit()
        except PersistenceError:
            logger.exception(
                "listing_transition_persistence_failed",
                listing_id=str(input_data.listing_id),
                actor_id=str(actor.id),
                transition=input_data.transition.value,
            )
            raise

        logger.info(
            "listing_status_transitioned",
            listing_id=str(listing.id),
            from_status=entry.from_status.value,
            to_status=entry.to_status.value,
            actor_id=str(actor.id),
        )

        for event in listing.collect_events():
            if isinstance(event, ListingStatusChangedEvent) and event.notifies_seller:
                self._dispatch(event)

        return TransitionListingOutput(listing=listing, audit_entry=entry)

    def _dispatch(self, event: ListingStatusChangedEvent) -> None:
        try:
            self._notifications.dispatch(event)
        except Exception:
            # The transition is already committed; the caller still gets its result.
            logger.exception(
                "notification_dispatch_failed",
                listing_id=str(event.listing_id),
                status=event.to_status.value,
            )
