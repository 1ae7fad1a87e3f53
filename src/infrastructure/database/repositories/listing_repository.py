from datetime import datetime
from uuid import UUID

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from src.application.interfaces.listing_repository import (
    ListingRepository,
    PendingListingSummary,
    SellerSummary,
)
from src.domain.entities.listing import Listing
from src.domain.enums.listing_status import ListingStatus
from src.domain.enums.watch_condition import WatchCondition
from src.infrastructure.database.models import ListingModel, UserModel


def _to_domain(model: ListingModel) -> Listing:
    return Listing(
        id=model.id,
        seller_id=model.seller_id,
        status=ListingStatus(model.status),
        title=model.title,
        brand=model.brand,
        model=model.model,
        reference=model.reference,
        year=model.year,
        condition=WatchCondition(model.condition) if model.condition else None,
        price_eur_cents=model.price_eur_cents,
        description=model.description,
        location=model.location,
        photo_urls=list(model.photo_urls or []),
        created_at=model.created_at,
        updated_at=model.updated_at,
        status_changed_at=model.status_changed_at,
    )


def _to_model(listing: Listing) -> ListingModel:
    return ListingModel(
        id=listing.id,
        seller_id=listing.seller_id,
        status=listing.status.value,
        status_changed_at=listing.status_changed_at,
        created_at=listing.created_at,
        updated_at=listing.updated_at,
        **_detail_values(listing),
    )


def _detail_values(listing: Listing) -> dict:  # type: ignore[type-arg]
    return {
        "title": listing.title,
        "brand": listing.brand,
        "model": listing.model,
        "reference": listing.reference,
        "year": listing.year,
        "condition": listing.condition.value if listing.condition else None,
        "price_eur_cents": listing.price_eur_cents,
        "description": listing.description,
        "location": listing.location,
        "photo_urls": list(listing.photo_urls),
    }


class SqlAlchemyListingRepository(ListingRepository):
    """SQLAlchemy implementation for listing persistence."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def add(self, listing: Listing) -> None:
        self._session.add(_to_model(listing))
        await self._session.flush()

    async def get_by_id(self, listing_id: UUID) -> Listing | None:
        # populate_existing: moderation must see the row as stored, not the identity map.
        result = await self._session.execute(
            select(ListingModel)
            .where(ListingModel.id == listing_id)
            .execution_options(populate_existing=True)
        )
        model = result.scalar_one_or_none()
        return _to_domain(model) if model is not None else None

    async def save_details(self, listing: Listing, expected_status: ListingStatus) -> bool:
        result = await self._session.execute(
            update(ListingModel)
            .where(ListingModel.id == listing.id, ListingModel.status == expected_status.value)
            .values(updated_at=listing.updated_at, **_detail_values(listing))
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    async def update_status(
        self,
        listing_id: UUID,
        *,
        expected_status: ListingStatus,
        new_status: ListingStatus,
        changed_at: datetime,
    ) -> bool:
        result = await self._session.execute(
            update(ListingModel)
            .where(ListingModel.id == listing_id, ListingModel.status == expected_status.value)
            .values(status=new_status.value, status_changed_at=changed_at, updated_at=changed_at)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    async def delete(self, listing_id: UUID, *, expected_status: ListingStatus) -> bool:
        # Audit entries and reports go with it through ON DELETE CASCADE.
        result = await self._session.execute(
            delete(ListingModel)
            .where(ListingModel.id == listing_id, ListingModel.status == expected_status.value)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    async def list_by_status(
        self,
        status: ListingStatus,
        *,
        brand: str | None = None,
        limit: int = 20,
        offset: int = 0,
    ) -> tuple[list[Listing], int]:
        query = select(ListingModel).where(ListingModel.status == status.value)
        count_query = (
            select(func.count())
            .select_from(ListingModel)
            .where(ListingModel.status == status.value)
        )

        if brand is not None:
            query = query.where(ListingModel.brand.ilike(f"%{brand}%"))
            count_query = count_query.where(ListingModel.brand.ilike(f"%{brand}%"))

        query = (
            query.order_by(ListingModel.created_at.desc(), ListingModel.id.desc())
            .limit(limit)
            .offset(offset)
        )

        result = await self._session.execute(query)
        models = result.scalars().all()

        count_result = await self._session.execute(count_query)
        total = count_result.scalar_one()

        return [_to_domain(m) for m in models], total

    async def list_pending_summaries(
        self, *, limit: int = 20, offset: int = 0
    ) -> tuple[list[PendingListingSummary], int]:
        pending = ListingStatus.PENDING.value
        result = await self._session.execute(
            select(ListingModel, UserModel)
            .outerjoin(UserModel, UserModel.id == ListingModel.seller_id)
            .where(ListingModel.status == pending)
            .order_by(ListingModel.created_at.desc(), ListingModel.id.desc())
            .limit(limit)
            .offset(offset)
            .execution_options(populate_existing=True)
        )
        rows = result.all()

        count_result = await self._session.execute(
            select(func.count()).select_from(ListingModel).where(ListingModel.status == pending)
        )
        total = count_result.scalar_one()

        summaries = [
            PendingListingSummary(
                listing_id=listing.id,
                title=listing.title,
                brand=listing.brand,
                model=listing.model,
                price_eur_cents=listing.price_eur_cents,
                photo_count=len(listing.photo_urls or []),
                thumbnail_url=(listing.photo_urls or [None])[0],
                created_at=listing.created_at,
                updated_at=listing.updated_at,
                seller=SellerSummary(
                    id=listing.seller_id,
                    name=user.name if user is not None else None,
                    email=user.email if user is not None else None,
                    is_verified=bool(user.is_verified) if user is not None else False,
                ),
            )
            for listing, user in rows
        ]
        return summaries, total
