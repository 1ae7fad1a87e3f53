"""
Error taxonomy shared by every layer.

Each error carries a stable ``code`` that the API layer maps to an HTTP
status. Messages are safe to show to the caller, except for InternalError
whose details stay in the logs.
"""
from uuid import UUID

from src.domain.enums.listing_status import ListingStatus, ListingTransition


class MarketplaceError(Exception):
    """Base class for all business errors raised by the core."""

    code = "marketplace_error"

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class ValidationError(MarketplaceError):
    """Malformed input or a structurally-required precondition failed."""

    code = "validation_error"

    def __init__(self, message: str, field: str | None = None) -> None:
        self.field = field
        super().__init__(message)


class AuthenticationError(MarketplaceError):
    code = "authentication_required"

    def __init__(self, message: str = "Authentication required.") -> None:
        super().__init__(message)


class AuthorizationError(MarketplaceError):
    code = "forbidden"

    def __init__(self, message: str = "You are not allowed to perform this action.") -> None:
        super().__init__(message)


class NotFoundError(MarketplaceError):
    code = "not_found"


class ListingNotFoundError(NotFoundError):
    def __init__(self, listing_id: UUID) -> None:
        self.listing_id = listing_id
        super().__init__(f"Listing {listing_id} not found.")


class ReportNotFoundError(NotFoundError):
    def __init__(self, report_id: UUID) -> None:
        self.report_id = report_id
        super().__init__(f"Report {report_id} not found.")


class ConflictError(MarketplaceError):
    code = "conflict"


class InvalidTransitionError(ConflictError):
    """The requested transition is not in the table for the current status."""

    def __init__(self, from_status: ListingStatus, transition: ListingTransition) -> None:
        self.from_status = from_status
        self.transition = transition
        super().__init__(
            f"Cannot {transition.value.lower().replace('_', ' ')} a listing "
            f"in status {from_status.value}."
        )


class StaleListingStatusError(ConflictError):
    """The listing changed between the read and the commit."""

    def __init__(self, listing_id: UUID, expected_status: ListingStatus) -> None:
        self.listing_id = listing_id
        self.expected_status = expected_status
        super().__init__(
            f"Listing {listing_id} is no longer {expected_status.value}; "
            "it was modified concurrently."
        )


class ListingNotEditableError(ConflictError):
    def __init__(self, listing_id: UUID, status: ListingStatus) -> None:
        self.listing_id = listing_id
        self.status = status
        super().__init__(f"Listing {listing_id} cannot be edited while {status.value}.")


class DuplicateReportError(ConflictError):
    def __init__(self, listing_id: UUID) -> None:
        self.listing_id = listing_id
        super().__init__(f"You already have an open report for listing {listing_id}.")


class InternalError(MarketplaceError):
    code = "internal_error"

    def __init__(self, message: str = "An internal error occurred. Please try again.") -> None:
        super().__init__(message)


class PersistenceError(InternalError):
    """Raised by persistence adapters when the store itself fails."""
