from dataclasses import dataclass, field
from datetime import datetime, timezone
from uuid import UUID, uuid4

from src.domain.enums.report_status import ReportStatus
from src.domain.errors import ValidationError

MAX_REASON_LENGTH = 2000


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class Report:
    """
    A user complaint about a listing.

    Reports never touch the listing they reference: closing one is an
    administrative acknowledgment only.
    """

    listing_id: UUID
    reporter_id: UUID
    reason: str
    status: ReportStatus = ReportStatus.OPEN
    id: UUID = field(default_factory=uuid4)
    created_at: datetime = field(default_factory=_utcnow)
    closed_at: datetime | None = None

    @classmethod
    def open(
        cls, *, listing_id: UUID, reporter_id: UUID, reason: str, min_reason_length: int
    ) -> "Report":
        reason = (reason or "").strip()
        if len(reason) < min_reason_length:
            raise ValidationError(
                f"Reason must be at least {min_reason_length} characters.", field="reason"
            )
        if len(reason) > MAX_REASON_LENGTH:
            raise ValidationError(
                f"Reason must be at most {MAX_REASON_LENGTH} characters.", field="reason"
            )
        return cls(listing_id=listing_id, reporter_id=reporter_id, reason=reason)

    @property
    def is_open(self) -> bool:
        return self.status is ReportStatus.OPEN

    def close(self, at: datetime | None = None) -> bool:
        """Close the report. Returns False if it was already closed."""
        if not self.is_open:
            return False
        self.status = ReportStatus.CLOSED
        self.closed_at = at or _utcnow()
        return True
