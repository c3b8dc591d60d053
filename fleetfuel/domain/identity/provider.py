from typing import Protocol

from fleetfuel.core.errors import AuthError

from .entities import Credentials, Identity
from .passwords import verify_password
from .repository import IdentityRepositoryProtocol


class IdentityProvider(Protocol):
    def authenticate(self, credentials: Credentials) -> Identity:
        ...

    def current_identity(self) -> Identity | None:
        ...


class DatabaseIdentityProvider:
    """
    IdentityProvider backed by the identities table.

    One instance per caller session: `current_identity` only ever reports the
    identity this instance authenticated, so nothing leaks between callers.
    """

    def __init__(self, repository: IdentityRepositoryProtocol) -> None:
        self._repo = repository
        self._current: Identity | None = None

    def authenticate(self, credentials: Credentials) -> Identity:
        found = self._repo.get_with_password(credentials.email)
        # Same message for every failure so callers cannot probe for emails.
        if found is None:
            raise AuthError("Invalid email or password")
        identity, password_hash = found
        if not verify_password(credentials.password, password_hash):
            raise AuthError("Invalid email or password")
        if not identity.active:
            raise AuthError("Account is disabled")

        self._current = identity
        return identity

    def current_identity(self) -> Identity | None:
        return self._current
