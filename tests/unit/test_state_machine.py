"""Unit tests for the moderation state machine."""
from uuid import uuid4

import pytest

from src.domain.authorization.capability import Actor, Capability
from src.domain.enums.listing_status import ListingStatus, ListingTransition
from src.domain.enums.user_role import UserRole
from src.domain.errors import AuthorizationError, InvalidTransitionError, ValidationError
from src.domain.state_machine.moderation_state_machine import (
    TRANSITION_TABLE,
    DenialReason,
    ModerationStateMachine,
)

OWNER_ID = uuid4()

S = ListingStatus
T = ListingTransition

# (status, transition) -> (resulting status, who may do it)
EXPECTED = {
    (S.DRAFT, T.SUBMIT): (S.PENDING, {"owner"}),
    (S.REJECTED, T.SUBMIT): (S.PENDING, {"owner"}),
    (S.PENDING, T.APPROVE): (S.APPROVED, {"admin"}),
    (S.PENDING, T.REJECT): (S.REJECTED, {"admin"}),
    (S.APPROVED, T.MARK_SOLD): (S.SOLD, {"owner"}),
    (S.SOLD, T.REACTIVATE): (S.APPROVED, {"owner"}),
    (S.APPROVED, T.ARCHIVE): (S.ARCHIVED, {"admin"}),
    (S.SOLD, T.ARCHIVE): (S.ARCHIVED, {"admin"}),
    (S.REJECTED, T.ARCHIVE): (S.ARCHIVED, {"admin"}),
    (S.DRAFT, T.DELETE): (None, {"owner", "admin"}),
    (S.PENDING, T.DELETE): (None, {"owner", "admin"}),
    (S.APPROVED, T.DELETE): (None, {"owner", "admin"}),
    (S.REJECTED, T.DELETE): (None, {"owner", "admin"}),
    (S.SOLD, T.DELETE): (None, {"owner", "admin"}),
}

CAPABILITY_NAMES = ("owner", "admin", "other", "anonymous")


def _capability(name: str) -> Capability:
    if name == "owner":
        return Capability.for_actor(Actor(OWNER_ID, UserRole.SELLER), owner_id=OWNER_ID)
    if name == "admin":
        return Capability.for_actor(Actor(uuid4(), UserRole.ADMIN), owner_id=OWNER_ID)
    if name == "other":
        return Capability.for_actor(Actor(uuid4(), UserRole.BUYER), owner_id=OWNER_ID)
    return Capability.for_actor(None, owner_id=OWNER_ID)


@pytest.fixture()
def sm() -> ModerationStateMachine:
    return ModerationStateMachine()


class TestTransitionTable:
    def test_table_matches_expected_transitions(self) -> None:
        assert set(TRANSITION_TABLE) == set(EXPECTED)

    @pytest.mark.parametrize(("key", "expected"), list(EXPECTED.items()))
    def test_permitted_actors_get_the_target_status(
        self, sm: ModerationStateMachine, key, expected  # type: ignore[no-untyped-def]
    ) -> None:
        status, transition = key
        to_status, actors = expected
        for name in actors:
            decision = sm.decide(status, transition, _capability(name), photo_count=1)
            assert decision.allowed
            assert decision.to_status is to_status

    @pytest.mark.parametrize(("key", "expected"), list(EXPECTED.items()))
    def test_other_actors_are_refused(
        self, sm: ModerationStateMachine, key, expected  # type: ignore[no-untyped-def]
    ) -> None:
        status, transition = key
        _, actors = expected
        for name in set(CAPABILITY_NAMES) - actors:
            decision = sm.decide(status, transition, _capability(name), photo_count=1)
            assert decision.denial is DenialReason.ACTOR_NOT_PERMITTED

    def test_every_pair_outside_the_table_is_illegal(self, sm: ModerationStateMachine) -> None:
        for status in ListingStatus:
            for transition in ListingTransition:
                if (status, transition) in EXPECTED:
                    continue
                for name in CAPABILITY_NAMES:
                    decision = sm.decide(status, transition, _capability(name), photo_count=1)
                    assert decision.denial is DenialReason.NOT_IN_TABLE

    def test_archived_is_terminal(self, sm: ModerationStateMachine) -> None:
        for name in CAPABILITY_NAMES:
            assert sm.allowed_transitions(S.ARCHIVED, _capability(name)) == frozenset()

    def test_delete_removes_listing(self, sm: ModerationStateMachine) -> None:
        decision = sm.decide(S.APPROVED, T.DELETE, _capability("admin"))
        assert decision.removes_listing is True


class TestPreconditions:
    def test_submit_without_photo_fails_precondition(self, sm: ModerationStateMachine) -> None:
        decision = sm.decide(S.DRAFT, T.SUBMIT, _capability("owner"), photo_count=0)
        assert decision.denial is DenialReason.PRECONDITION_FAILED

    def test_resubmit_without_photo_fails_precondition(self, sm: ModerationStateMachine) -> None:
        decision = sm.decide(S.REJECTED, T.SUBMIT, _capability("owner"), photo_count=0)
        assert decision.denial is DenialReason.PRECONDITION_FAILED

    def test_actor_is_checked_before_photos(self, sm: ModerationStateMachine) -> None:
        decision = sm.decide(S.DRAFT, T.SUBMIT, _capability("other"), photo_count=0)
        assert decision.denial is DenialReason.ACTOR_NOT_PERMITTED


class TestValidate:
    def test_raises_invalid_transition(self, sm: ModerationStateMachine) -> None:
        with pytest.raises(InvalidTransitionError):
            sm.validate(S.APPROVED, T.APPROVE, _capability("admin"))

    def test_raises_authorization_error(self, sm: ModerationStateMachine) -> None:
        with pytest.raises(AuthorizationError):
            sm.validate(S.PENDING, T.APPROVE, _capability("owner"))

    def test_raises_validation_error_for_missing_photo(self, sm: ModerationStateMachine) -> None:
        with pytest.raises(ValidationError) as exc_info:
            sm.validate(S.DRAFT, T.SUBMIT, _capability("owner"), photo_count=0)
        assert exc_info.value.field == "photos"

    def test_returns_decision_when_allowed(self, sm: ModerationStateMachine) -> None:
        decision = sm.validate(S.PENDING, T.REJECT, _capability("admin"))
        assert decision.to_status is S.REJECTED


class TestAllowedTransitions:
    def test_owner_on_draft(self, sm: ModerationStateMachine) -> None:
        assert sm.allowed_transitions(S.DRAFT, _capability("owner")) == {T.SUBMIT, T.DELETE}

    def test_admin_on_pending(self, sm: ModerationStateMachine) -> None:
        assert sm.allowed_transitions(S.PENDING, _capability("admin")) == {
            T.APPROVE,
            T.REJECT,
            T.DELETE,
        }

    def test_other_user_gets_nothing(self, sm: ModerationStateMachine) -> None:
        for status in ListingStatus:
            assert sm.allowed_transitions(status, _capability("other")) == frozenset()

    def test_admin_owner_combines_both(self, sm: ModerationStateMachine) -> None:
        capability = Capability.for_actor(Actor(OWNER_ID, UserRole.ADMIN), owner_id=OWNER_ID)
        assert sm.allowed_transitions(S.APPROVED, capability) == {
            T.MARK_SOLD,
            T.ARCHIVE,
            T.DELETE,
        }
