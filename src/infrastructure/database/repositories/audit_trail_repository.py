from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.application.interfaces.audit_trail import AuditTrail
from src.domain.entities.audit_entry import AuditEntry
from src.domain.enums.listing_status import ListingStatus
from src.infrastructure.database.models import ListingAuditEntryModel


class SqlAlchemyAuditTrail(AuditTrail):
    """SQLAlchemy-backed implementation of AuditTrail."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def append(self, entry: AuditEntry) -> None:
        self._session.add(
            ListingAuditEntryModel(
                id=entry.id,
                listing_id=entry.listing_id,
                from_status=entry.from_status.value,
                to_status=entry.to_status.value,
                actor_id=entry.actor_id,
                reason=entry.reason,
                created_at=entry.created_at,
            )
        )
        await self._session.flush()

    async def recent_for(self, listing_id: UUID, limit: int) -> list[AuditEntry]:
        result = await self._session.execute(
            select(ListingAuditEntryModel)
            .where(ListingAuditEntryModel.listing_id == listing_id)
            .order_by(
                ListingAuditEntryModel.created_at.desc(), ListingAuditEntryModel.seq.desc()
            )
            .limit(limit)
        )
        models = result.scalars().all()

        return [
            AuditEntry(
                id=m.id,
                listing_id=m.listing_id,
                from_status=ListingStatus(m.from_status),
                to_status=ListingStatus(m.to_status),
                actor_id=m.actor_id,
                reason=m.reason,
                created_at=m.created_at,
            )
            for m in models
        ]
