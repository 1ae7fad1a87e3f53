from dataclasses import dataclass, field

from src.application.interfaces.unit_of_work import UnitOfWorkFactory
from src.application.pagination import Page, PageRequest
from src.domain.entities.listing import Listing
from src.domain.enums.listing_status import ListingStatus


@dataclass
class ListPublicListingsInput:
    page: PageRequest = field(default_factory=PageRequest)
    brand: str | None = None


class ListPublicListings:
    """Use case: the public catalogue. Only APPROVED listings, newest first."""

    def __init__(self, uow_factory: UnitOfWorkFactory) -> None:
        self._uow_factory = uow_factory

    async def execute(self, input_data: ListPublicListingsInput) -> Page[Listing]:
        brand = input_data.brand.strip() if input_data.brand else None
        async with self._uow_factory() as uow:
            listings, total = await uow.listings.list_by_status(
                ListingStatus.APPROVED,
                brand=brand or None,
                limit=input_data.page.limit,
                offset=input_data.page.offset,
            )
        return Page(
            items=listings,
            total=total,
            page=input_data.page.page,
            page_size=input_data.page.page_size,
        )
