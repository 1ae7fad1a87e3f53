from abc import ABC, abstractmethod
from collections.abc import Mapping

from src.domain.authorization.capability import Actor


class IdentityProvider(ABC):
    """Port that turns request credentials into the current actor."""

    @abstractmethod
    def resolve(self, headers: Mapping[str, str]) -> Actor | None:
        """Return the actor, None for anonymous callers, or raise AuthenticationError."""
        ...
