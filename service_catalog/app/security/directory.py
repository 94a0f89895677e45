"""
Read-only user directory for HTTP Basic authentication.
"""

import secrets
from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, Iterable, Mapping, Optional, Tuple

from shared.logging import get_logger


ROLE_ADMIN = "admin"
ROLE_STREAM = "stream"

DEFAULT_USERS: Mapping[str, Tuple[str, ...]] = MappingProxyType({
    "sdeleuze": (ROLE_ADMIN, ROLE_STREAM),
    "apoutsma": (ROLE_ADMIN, ROLE_STREAM),
    "rwinch": (ROLE_STREAM,),
    "mkheck": (ROLE_ADMIN, ROLE_STREAM),
    "jlong": (ROLE_STREAM,),
})


@dataclass(frozen=True)
class Principal:
    """An authenticated identity and its granted roles, in grant order."""
    username: str
    roles: Tuple[str, ...] = ()

    def has_role(self, role: str) -> bool:
        """Case-insensitive role membership."""
        wanted = role.casefold()
        return any(granted.casefold() == wanted for granted in self.roles)


class UserDirectory:
    """Username to roles table, fixed at construction."""

    def __init__(self, users: Mapping[str, Iterable[str]] = DEFAULT_USERS, password: str = "password"):
        self.logger = get_logger("catalog.security.directory")
        table: Dict[str, Tuple[str, ...]] = {
            username: tuple(roles) for username, roles in users.items()
        }
        self._users: Mapping[str, Tuple[str, ...]] = MappingProxyType(table)
        self._password = password

    def lookup(self, username: str) -> Optional[Principal]:
        """Resolve a username to its principal, or None when unknown."""
        roles = self._users.get(username)
        if roles is None:
            return None
        return Principal(username=username, roles=roles)

    def authenticate(self, username: str, password: str) -> Optional[Principal]:
        """Resolve credentials to a principal; unknown user or bad password gives None."""
        principal = self.lookup(username)
        password_ok = secrets.compare_digest(
            password.encode("utf-8"), self._password.encode("utf-8")
        )
        if principal is None or not password_ok:
            self.logger.debug("Credentials not resolved", username=username)
            return None
        return principal
