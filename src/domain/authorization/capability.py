from dataclasses import dataclass
from enum import Enum
from uuid import UUID

from src.domain.enums.user_role import UserRole


@dataclass(frozen=True)
class Actor:
    """The authenticated caller as supplied by the identity provider."""

    id: UUID
    role: UserRole

    @property
    def is_admin(self) -> bool:
        return self.role is UserRole.ADMIN


class CapabilityKind(str, Enum):
    OWNER = "OWNER"
    ADMIN = "ADMIN"
    OTHER = "OTHER"
    ANONYMOUS = "ANONYMOUS"


@dataclass(frozen=True)
class Capability:
    """
    What a specific actor is relative to a specific listing.

    Resolved once by the AuthorizationGuard and passed explicitly to the
    state machine and report manager.
    """

    actor: Actor | None
    kinds: frozenset[CapabilityKind]

    @property
    def actor_id(self) -> UUID | None:
        return self.actor.id if self.actor is not None else None

    @property
    def is_owner(self) -> bool:
        return CapabilityKind.OWNER in self.kinds

    @property
    def is_admin(self) -> bool:
        return CapabilityKind.ADMIN in self.kinds

    @property
    def is_authenticated(self) -> bool:
        return self.actor is not None

    @classmethod
    def for_actor(cls, actor: Actor | None, owner_id: UUID | None = None) -> "Capability":
        if actor is None:
            return cls(actor=None, kinds=frozenset({CapabilityKind.ANONYMOUS}))

        kinds: set[CapabilityKind] = set()
        if owner_id is not None and actor.id == owner_id:
            kinds.add(CapabilityKind.OWNER)
        if actor.is_admin:
            kinds.add(CapabilityKind.ADMIN)
        if not kinds:
            kinds.add(CapabilityKind.OTHER)
        return cls(actor=actor, kinds=frozenset(kinds))
