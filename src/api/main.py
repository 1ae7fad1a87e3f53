"""FastAPI application entry point."""
from collections.abc import AsyncGenerator, Awaitable, Callable
from contextlib import asynccontextmanager
from uuid import uuid4

import structlog
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware

from src.api.errors import register_exception_handlers
from src.api.routes import admin, health, listings, reports
from src.application.interfaces.notification_dispatcher import NotificationSender
from src.config import settings
from src.infrastructure.database.connection import engine
from src.infrastructure.messaging.noop_publisher import NoOpNotificationSender
from src.infrastructure.messaging.rabbitmq_publisher import RabbitMQNotificationSender
from src.infrastructure.notifications.background_dispatcher import (
    BackgroundNotificationDispatcher,
)
from src.infrastructure.observability.logging import configure_logging

logger = structlog.get_logger(__name__)


def _notification_sender() -> NotificationSender:
    if settings.notifications_enabled:
        return RabbitMQNotificationSender()
    return NoOpNotificationSender()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    configure_logging(settings.log_level, settings.log_format)
    logger.info("moderation_service_starting")

    dispatcher = BackgroundNotificationDispatcher(
        _notification_sender(), max_queue_size=settings.notification_queue_size
    )
    await dispatcher.start()
    app.state.notification_dispatcher = dispatcher

    yield

    logger.info("moderation_service_stopping")
    await dispatcher.stop(drain_timeout=settings.notification_drain_timeout_seconds)
    await engine.dispose()


async def bind_request_context(
    request: Request, call_next: Callable[[Request], Awaitable[Response]]
) -> Response:
    structlog.contextvars.clear_contextvars()
    request_id = request.headers.get("X-Request-Id") or str(uuid4())
    structlog.contextvars.bind_contextvars(
        request_id=request_id, method=request.method, path=request.url.path
    )
    response = await call_next(request)
    response.headers["X-Request-Id"] = request_id
    return response


def create_app() -> FastAPI:
    app = FastAPI(
        title="Watch Marketplace Moderation",
        description="Listing lifecycle, moderation queue and reports for a used-watch marketplace.",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.middleware("http")(bind_request_context)
    register_exception_handlers(app)

    app.include_router(health.router)
    app.include_router(listings.router)
    app.include_router(reports.router)
    app.include_router(admin.router)

    return app


app = create_app()
