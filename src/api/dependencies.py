"""
FastAPI dependency injection wiring.

Each dependency function returns a fully-constructed object with its
collaborators injected, keeping the route handlers thin. Tests override
get_unit_of_work_factory and get_notification_dispatcher.
"""
import structlog
from fastapi import Depends, Query, Request

from src.application.interfaces.identity_provider import IdentityProvider
from src.application.interfaces.notification_dispatcher import NotificationDispatcher
from src.application.interfaces.unit_of_work import UnitOfWorkFactory
from src.application.pagination import PageRequest
from src.application.services.moderation_queue import ModerationQueue
from src.application.services.report_manager import ReportManager
from src.application.use_cases.create_listing import CreateListing
from src.application.use_cases.delete_listing import DeleteListing
from src.application.use_cases.get_listing import GetListing
from src.application.use_cases.get_listing_history import GetListingHistory
from src.application.use_cases.list_public_listings import ListPublicListings
from src.application.use_cases.transition_listing import TransitionListing
from src.application.use_cases.update_listing import UpdateListing
from src.config import settings
from src.domain.authorization.capability import Actor
from src.infrastructure.database.unit_of_work import SqlAlchemyUnitOfWork
from src.infrastructure.identity.header_identity_provider import HeaderIdentityProvider


# ---- Low-level dependencies ------------------------------------------------

def get_unit_of_work_factory() -> UnitOfWorkFactory:
    return SqlAlchemyUnitOfWork


def get_notification_dispatcher(request: Request) -> NotificationDispatcher:
    return request.app.state.notification_dispatcher


def get_identity_provider() -> IdentityProvider:
    return HeaderIdentityProvider()


def get_current_actor(
    request: Request,
    identity: IdentityProvider = Depends(get_identity_provider),
) -> Actor | None:
    actor = identity.resolve(request.headers)
    if actor is not None:
        structlog.contextvars.bind_contextvars(actor_id=str(actor.id))
    return actor


def get_page_request(
    page: int = Query(default=1, ge=1),
    page_size: int = Query(default=settings.default_page_size, ge=1, le=settings.max_page_size),
) -> PageRequest:
    return PageRequest(page=page, page_size=page_size)


# ---- Use-case dependencies -------------------------------------------------

def get_create_listing_use_case(
    uow_factory: UnitOfWorkFactory = Depends(get_unit_of_work_factory),
) -> CreateListing:
    return CreateListing(uow_factory)


def get_update_listing_use_case(
    uow_factory: UnitOfWorkFactory = Depends(get_unit_of_work_factory),
) -> UpdateListing:
    return UpdateListing(uow_factory)


def get_delete_listing_use_case(
    uow_factory: UnitOfWorkFactory = Depends(get_unit_of_work_factory),
) -> DeleteListing:
    return DeleteListing(uow_factory)


def get_listing_use_case(
    uow_factory: UnitOfWorkFactory = Depends(get_unit_of_work_factory),
) -> GetListing:
    return GetListing(uow_factory)


def get_public_listings_use_case(
    uow_factory: UnitOfWorkFactory = Depends(get_unit_of_work_factory),
) -> ListPublicListings:
    return ListPublicListings(uow_factory)


def get_listing_history_use_case(
    uow_factory: UnitOfWorkFactory = Depends(get_unit_of_work_factory),
) -> GetListingHistory:
    return GetListingHistory(uow_factory, max_limit=settings.audit_history_max_limit)


def get_transition_listing_use_case(
    uow_factory: UnitOfWorkFactory = Depends(get_unit_of_work_factory),
    notifications: NotificationDispatcher = Depends(get_notification_dispatcher),
) -> TransitionListing:
    return TransitionListing(uow_factory, notifications)


# ---- Services ----------------------------------------------------------------

def get_moderation_queue(
    uow_factory: UnitOfWorkFactory = Depends(get_unit_of_work_factory),
    transition_listing: TransitionListing = Depends(get_transition_listing_use_case),
) -> ModerationQueue:
    return ModerationQueue(uow_factory, transition_listing)


def get_report_manager(
    uow_factory: UnitOfWorkFactory = Depends(get_unit_of_work_factory),
) -> ReportManager:
    return ReportManager(uow_factory, min_reason_length=settings.report_reason_min_length)
