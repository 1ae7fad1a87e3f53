"""
Authorization guard.

Evaluated before the state machine: a capability failure short-circuits the
operation, so no state change and no audit entry can follow it.
"""
from src.domain.authorization.capability import Actor, Capability
from src.domain.entities.listing import Listing
from src.domain.enums.listing_status import ListingTransition
from src.domain.enums.user_role import UserRole
from src.domain.errors import AuthenticationError, AuthorizationError, ListingNotFoundError
from src.domain.state_machine.moderation_state_machine import TRANSITION_ACTORS


class AuthorizationGuard:
    """Resolves capabilities and rejects operations the actor may not perform."""

    def resolve(self, actor: Actor | None, listing: Listing) -> Capability:
        return Capability.for_actor(actor, owner_id=listing.seller_id)

    def require_actor(self, actor: Actor | None) -> Actor:
        if actor is None:
            raise AuthenticationError()
        return actor

    def require_admin(self, actor: Actor | None) -> Capability:
        actor = self.require_actor(actor)
        if not actor.is_admin:
            raise AuthorizationError("Administrator role required.")
        return Capability.for_actor(actor)

    def require_seller(self, actor: Actor | None) -> Actor:
        actor = self.require_actor(actor)
        if actor.role not in (UserRole.SELLER, UserRole.ADMIN):
            raise AuthorizationError("Only sellers can create listings.")
        return actor

    def ensure_can_read(self, capability: Capability, listing: Listing) -> None:
        # Hidden listings look absent to anyone who cannot see them.
        if listing.status.is_publicly_visible or capability.is_owner or capability.is_admin:
            return
        raise ListingNotFoundError(listing.id)

    def ensure_can_edit(self, capability: Capability) -> None:
        self._ensure_authenticated(capability)
        if not capability.is_owner:
            raise AuthorizationError("Only the owner can edit this listing.")

    def ensure_can_transition(
        self, capability: Capability, transition: ListingTransition
    ) -> None:
        self._ensure_authenticated(capability)
        if not TRANSITION_ACTORS[transition] & capability.kinds:
            raise AuthorizationError(
                f"You are not allowed to {transition.value.lower().replace('_', ' ')} "
                "this listing."
            )

    def ensure_can_read_history(self, capability: Capability) -> None:
        self._ensure_authenticated(capability)
        if not (capability.is_owner or capability.is_admin):
            raise AuthorizationError("Only the owner or an administrator can view history.")

    def ensure_can_report(self, capability: Capability) -> None:
        self._ensure_authenticated(capability)
        if capability.is_owner:
            raise AuthorizationError("You cannot report your own listing.")

    @staticmethod
    def _ensure_authenticated(capability: Capability) -> None:
        if not capability.is_authenticated:
            raise AuthenticationError()
