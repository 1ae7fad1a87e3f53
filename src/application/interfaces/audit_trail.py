from abc import ABC, abstractmethod
from uuid import UUID

from src.domain.entities.audit_entry import AuditEntry


class AuditTrail(ABC):
    """
    Port for the append-only transition log.

    No update or delete: entries disappear only when
    their listing is deleted.
    """

    @abstractmethod
    async def append(self, entry: AuditEntry) -> None:
        """Stage an entry in the current unit of work. Only the transition-commit path calls this."""
        ...

    @abstractmethod
    async def recent_for(self, listing_id: UUID, limit: int) -> list[AuditEntry]:
        """Return at most ``limit`` entries, newest first."""
        ...
