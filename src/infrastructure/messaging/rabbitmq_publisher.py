"""
RabbitMQ notification sender.

Uses pika in a thread-pool executor so blocking I/O doesn't stall the
asyncio event loop. A new connection is opened per message; the
background dispatcher already keeps this off the request path.
"""
import asyncio
import json
from functools import partial

import pika
import structlog

from src.application.interfaces.notification_dispatcher import NotificationSender
from src.config import settings
from src.domain.events.domain_events import ListingStatusChangedEvent

logger = structlog.get_logger(__name__)


def _routing_key(event: ListingStatusChangedEvent) -> str:
    return f"listing.status.{event.to_status.value.lower()}"


def _serialise_event(event: ListingStatusChangedEvent) -> str:
    payload: dict = {  # type: ignore[type-arg]
        "event_type": _routing_key(event),
        "event_id": str(event.event_id),
        "occurred_at": event.occurred_at.isoformat(),
        "seller_id": str(event.seller_id),
        "listing_id": str(event.listing_id),
        "status": event.to_status.value,
        "reason": event.reason,
    }
    return json.dumps(payload, default=str)


def _blocking_publish(rabbitmq_url: str, exchange: str, routing_key: str, body: str) -> None:
    connection = pika.BlockingConnection(pika.URLParameters(rabbitmq_url))
    try:
        channel = connection.channel()
        channel.exchange_declare(exchange=exchange, exchange_type="topic", durable=True)
        channel.basic_publish(
            exchange=exchange,
            routing_key=routing_key,
            body=body.encode(),
            properties=pika.BasicProperties(
                delivery_mode=pika.DeliveryMode.Persistent,
                content_type="application/json",
            ),
        )
    finally:
        connection.close()


class RabbitMQNotificationSender(NotificationSender):
    """Publishes seller notifications to a RabbitMQ topic exchange."""

    def __init__(
        self,
        rabbitmq_url: str = settings.rabbitmq_url,
        exchange: str = settings.notification_exchange,
    ) -> None:
        self._url = rabbitmq_url
        self._exchange = exchange

    async def send(self, event: ListingStatusChangedEvent) -> None:
        routing_key = _routing_key(event)
        body = _serialise_event(event)
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(
            None,
            partial(_blocking_publish, self._url, self._exchange, routing_key, body),
        )
        logger.debug(
            "notification_published",
            routing_key=routing_key,
            event_id=str(event.event_id),
            listing_id=str(event.listing_id),
        )
