"""
Identity from trusted gateway headers.

The authentication gateway in front of this service verifies the session
and forwards the user's id and role. No id header means an anonymous
caller; a malformed one is rejected rather than treated as anonymous.
"""
from collections.abc import Mapping
from uuid import UUID

from src.application.interfaces.identity_provider import IdentityProvider
from src.config import settings
from src.domain.authorization.capability import Actor
from src.domain.enums.user_role import UserRole
from src.domain.errors import AuthenticationError


class HeaderIdentityProvider(IdentityProvider):
    def __init__(
        self,
        user_id_header: str = settings.user_id_header,
        user_role_header: str = settings.user_role_header,
    ) -> None:
        self._user_id_header = user_id_header
        self._user_role_header = user_role_header

    def resolve(self, headers: Mapping[str, str]) -> Actor | None:
        raw_id = headers.get(self._user_id_header)
        if not raw_id:
            return None

        try:
            user_id = UUID(raw_id.strip())
        except ValueError:
            raise AuthenticationError("Invalid user identity.") from None

        raw_role = (headers.get(self._user_role_header) or "").strip().upper()
        try:
            role = UserRole(raw_role)
        except ValueError:
            raise AuthenticationError("Invalid or missing user role.") from None

        return Actor(id=user_id, role=role)
