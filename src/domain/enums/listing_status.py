from enum import Enum


class ListingStatus(str, Enum):
    """All possible states in the listing moderation lifecycle."""

    DRAFT = "DRAFT"
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    SOLD = "SOLD"
    ARCHIVED = "ARCHIVED"

    @property
    def is_terminal(self) -> bool:
        """Terminal states cannot be transitioned out of."""
        return self is ListingStatus.ARCHIVED

    @property
    def is_editable(self) -> bool:
        """The owner may change descriptive fields only in these states."""
        return self in (ListingStatus.DRAFT, ListingStatus.REJECTED)

    @property
    def is_publicly_visible(self) -> bool:
        return self is ListingStatus.APPROVED


class ListingTransition(str, Enum):
    """Actions that move a listing between states."""

    SUBMIT = "SUBMIT"
    APPROVE = "APPROVE"
    REJECT = "REJECT"
    MARK_SOLD = "MARK_SOLD"
    REACTIVATE = "REACTIVATE"
    ARCHIVE = "ARCHIVE"
    DELETE = "DELETE"
