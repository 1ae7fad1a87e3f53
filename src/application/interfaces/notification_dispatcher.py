from abc import ABC, abstractmethod

from src.domain.events.domain_events import ListingStatusChangedEvent


class NotificationDispatcher(ABC):
    """
    Port for telling a seller about a moderation outcome.

    dispatch() is a non-blocking hand-off: it never raises and the caller
    never waits for delivery.
    """

    @abstractmethod
    def dispatch(self, event: ListingStatusChangedEvent) -> None:
        ...


class NotificationSender(ABC):
    """Port that actually delivers a notification to the outside world."""

    @abstractmethod
    async def send(self, event: ListingStatusChangedEvent) -> None:
        ...
