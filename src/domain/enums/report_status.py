from enum import Enum


class ReportStatus(str, Enum):
    """Reports only ever move OPEN -> CLOSED."""

    OPEN = "OPEN"
    CLOSED = "CLOSED"
