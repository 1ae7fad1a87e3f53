"""
Background notification dispatcher.

Seller notifications leave the request path through a bounded asyncio
queue drained by a single worker task. The transition has already committed
when dispatch() is called, so nothing here may raise back into the caller.
"""
import asyncio
import contextlib

import structlog

from src.application.interfaces.notification_dispatcher import (
    NotificationDispatcher,
    NotificationSender,
)
from src.domain.events.domain_events import ListingStatusChangedEvent

logger = structlog.get_logger(__name__)


class BackgroundNotificationDispatcher(NotificationDispatcher):
    def __init__(self, sender: NotificationSender, max_queue_size: int = 1000) -> None:
        self._sender = sender
        self._queue: asyncio.Queue[ListingStatusChangedEvent] = asyncio.Queue(
            maxsize=max_queue_size
        )
        self._worker: asyncio.Task[None] | None = None

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    @property
    def is_running(self) -> bool:
        return self._worker is not None and not self._worker.done()

    def dispatch(self, event: ListingStatusChangedEvent) -> None:
        try:
            self._queue.put_nowait(event)
        except asyncio.QueueFull:
            logger.warning(
                "notification_dropped",
                reason="queue_full",
                listing_id=str(event.listing_id),
                status=event.to_status.value,
            )

    async def start(self) -> None:
        if self.is_running:
            return
        self._worker = asyncio.create_task(self._run(), name="notification-dispatcher")
        logger.info("notification_dispatcher_started")

    async def stop(self, drain_timeout: float = 5.0) -> None:
        """Deliver what is queued within drain_timeout, then stop the worker."""
        if self._worker is None:
            return
        try:
            await asyncio.wait_for(self._queue.join(), timeout=drain_timeout)
        except asyncio.TimeoutError:
            logger.warning("notification_drain_timed_out", undelivered=self._queue.qsize())

        self._worker.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._worker
        self._worker = None
        logger.info("notification_dispatcher_stopped")

    async def _run(self) -> None:
        while True:
            event = await self._queue.get()
            try:
                await self._deliver(event)
            finally:
                self._queue.task_done()

    async def _deliver(self, event: ListingStatusChangedEvent) -> None:
        try:
            await self._sender.send(event)
        except Exception:
            # Delivery is best-effort; the transition it reports is already committed.
            logger.exception(
                "notification_delivery_failed",
                seller_id=str(event.seller_id),
                listing_id=str(event.listing_id),
                status=event.to_status.value,
            )
