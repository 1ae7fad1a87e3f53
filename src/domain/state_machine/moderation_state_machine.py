from dataclasses import dataclass
from enum import Enum

from src.domain.authorization.capability import Capability, CapabilityKind
from src.domain.enums.listing_status import ListingStatus, ListingTransition
from src.domain.errors import AuthorizationError, InvalidTransitionError, ValidationError

_OWNER = frozenset({CapabilityKind.OWNER})
_ADMIN = frozenset({CapabilityKind.ADMIN})
_OWNER_OR_ADMIN = frozenset({CapabilityKind.OWNER, CapabilityKind.ADMIN})


@dataclass(frozen=True)
class TransitionRule:
    to_status: ListingStatus | None  # None means the listing is removed
    actors: frozenset[CapabilityKind]
    requires_photo: bool = False


def _delete_rules() -> dict[tuple[ListingStatus, ListingTransition], TransitionRule]:
    return {
        (status, ListingTransition.DELETE): TransitionRule(None, _OWNER_OR_ADMIN)
        for status in ListingStatus
        if not status.is_terminal
    }


# (current status, transition) -> rule. Anything absent is illegal.
TRANSITION_TABLE: dict[tuple[ListingStatus, ListingTransition], TransitionRule] = {
    (ListingStatus.DRAFT, ListingTransition.SUBMIT): TransitionRule(
        ListingStatus.PENDING, _OWNER, requires_photo=True
    ),
    (ListingStatus.REJECTED, ListingTransition.SUBMIT): TransitionRule(
        ListingStatus.PENDING, _OWNER, requires_photo=True
    ),
    (ListingStatus.PENDING, ListingTransition.APPROVE): TransitionRule(
        ListingStatus.APPROVED, _ADMIN
    ),
    (ListingStatus.PENDING, ListingTransition.REJECT): TransitionRule(
        ListingStatus.REJECTED, _ADMIN
    ),
    (ListingStatus.APPROVED, ListingTransition.MARK_SOLD): TransitionRule(
        ListingStatus.SOLD, _OWNER
    ),
    (ListingStatus.SOLD, ListingTransition.REACTIVATE): TransitionRule(
        ListingStatus.APPROVED, _OWNER
    ),
    # Administrative retirement path; ARCHIVED is terminal.
    (ListingStatus.APPROVED, ListingTransition.ARCHIVE): TransitionRule(
        ListingStatus.ARCHIVED, _ADMIN
    ),
    (ListingStatus.SOLD, ListingTransition.ARCHIVE): TransitionRule(
        ListingStatus.ARCHIVED, _ADMIN
    ),
    (ListingStatus.REJECTED, ListingTransition.ARCHIVE): TransitionRule(
        ListingStatus.ARCHIVED, _ADMIN
    ),
    **_delete_rules(),
}

# Which capability kinds may ever perform a transition, regardless of status.
TRANSITION_ACTORS: dict[ListingTransition, frozenset[CapabilityKind]] = {
    transition: frozenset().union(
        *(rule.actors for (_, t), rule in TRANSITION_TABLE.items() if t is transition)
    )
    for transition in ListingTransition
}


class DenialReason(str, Enum):
    NOT_IN_TABLE = "NOT_IN_TABLE"
    ACTOR_NOT_PERMITTED = "ACTOR_NOT_PERMITTED"
    PRECONDITION_FAILED = "PRECONDITION_FAILED"


@dataclass(frozen=True)
class TransitionDecision:
    transition: ListingTransition
    from_status: ListingStatus
    to_status: ListingStatus | None = None
    denial: DenialReason | None = None

    @property
    def allowed(self) -> bool:
        return self.denial is None

    @property
    def removes_listing(self) -> bool:
        return self.allowed and self.to_status is None


class ModerationStateMachine:
    """
    Decides whether a listing transition is legal.

    Pure: no I/O and no mutation. Persisting the result together with its
    audit entry is the caller's job.
    """

    def decide(
        self,
        current: ListingStatus,
        transition: ListingTransition,
        capability: Capability,
        photo_count: int = 0,
    ) -> TransitionDecision:
        rule = TRANSITION_TABLE.get((current, transition))
        if rule is None:
            return TransitionDecision(transition, current, denial=DenialReason.NOT_IN_TABLE)
        if not rule.actors & capability.kinds:
            return TransitionDecision(
                transition, current, denial=DenialReason.ACTOR_NOT_PERMITTED
            )
        if rule.requires_photo and photo_count < 1:
            return TransitionDecision(
                transition, current, denial=DenialReason.PRECONDITION_FAILED
            )
        return TransitionDecision(transition, current, to_status=rule.to_status)

    def validate(
        self,
        current: ListingStatus,
        transition: ListingTransition,
        capability: Capability,
        photo_count: int = 0,
    ) -> TransitionDecision:
        """Like decide(), but raise the matching error when the transition is denied."""
        decision = self.decide(current, transition, capability, photo_count)
        if decision.denial is DenialReason.NOT_IN_TABLE:
            raise InvalidTransitionError(current, transition)
        if decision.denial is DenialReason.ACTOR_NOT_PERMITTED:
            raise AuthorizationError(
                f"Your role does not allow {transition.value.lower().replace('_', ' ')} "
                "on this listing."
            )
        if decision.denial is DenialReason.PRECONDITION_FAILED:
            raise ValidationError("A listing needs at least one photo.", field="photos")
        return decision

    def allowed_transitions(
        self, current: ListingStatus, capability: Capability
    ) -> frozenset[ListingTransition]:
        """Transitions the given capability could legally request right now (photo checks aside)."""
        return frozenset(
            transition
            for (status, transition), rule in TRANSITION_TABLE.items()
            if status is current and rule.actors & capability.kinds
        )
