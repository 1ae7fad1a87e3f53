import asyncio

import pika
from fastapi import APIRouter, Request
from sqlalchemy import text

from src.config import settings
from src.infrastructure.database.connection import AsyncSessionLocal

router = APIRouter(tags=["health"])


def _check_rabbitmq() -> None:
    connection = pika.BlockingConnection(pika.URLParameters(settings.rabbitmq_url))
    connection.close()


@router.get("/health")
async def health_check(request: Request) -> dict:  # type: ignore[type-arg]
    """Liveness + dependency health check."""
    db_status = "connected"
    try:
        async with AsyncSessionLocal() as session:
            await session.execute(text("SELECT 1"))
    except Exception as exc:
        db_status = f"error: {exc}"

    rabbitmq_status = "disabled"
    if settings.notifications_enabled:
        rabbitmq_status = "connected"
        try:
            await asyncio.get_running_loop().run_in_executor(None, _check_rabbitmq)
        except Exception as exc:
            rabbitmq_status = f"error: {exc}"

    dispatcher = getattr(request.app.state, "notification_dispatcher", None)
    overall = (
        "healthy"
        if db_status == "connected" and rabbitmq_status in ("connected", "disabled")
        else "degraded"
    )

    return {
        "status": overall,
        "database": db_status,
        "rabbitmq": rabbitmq_status,
        "pending_notifications": dispatcher.pending if dispatcher is not None else 0,
    }
