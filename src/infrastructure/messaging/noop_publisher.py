"""
No-op notification sender, used in tests and when RabbitMQ is disabled.
"""
import structlog

from src.application.interfaces.notification_dispatcher import NotificationSender
from src.domain.events.domain_events import ListingStatusChangedEvent

logger = structlog.get_logger(__name__)


class NoOpNotificationSender(NotificationSender):
    """Discards all notifications. Useful for testing and local development."""

    async def send(self, event: ListingStatusChangedEvent) -> None:
        logger.debug(
            "noop_notification_discarded",
            listing_id=str(event.listing_id),
            status=event.to_status.value,
        )
