"""
AuthSession — bearer token and derived vault key for one logged-in user.

The session lives only in process memory. It is never serialized: the
derived key must be recomputed from the master secret after every logout or
authentication failure.
"""
import logging
from typing import Optional
from datetime import datetime, timezone

from .exceptions import AuthenticationError

logger = logging.getLogger("navigator.vault")


class AuthSession:
    """In-memory authentication state owned by a single client."""

    __slots__ = ('_username', '_token', '_key', '_logon_time')

    def __init__(self) -> None:
        self._username: Optional[str] = None
        self._token: Optional[str] = None
        self._key: Optional[bytes] = None
        self._logon_time: Optional[datetime] = None

    def __repr__(self) -> str:
        # token and key never appear here
        return (
            f'<Vault-Session [authenticated:{self.authenticated}] '
            f'user={self._username!r}>'
        )

    def __reduce__(self):
        raise TypeError("AuthSession cannot be serialized")

    def start(self, username: str, token: str, key: bytes) -> None:
        """Populate the session after a successful login."""
        if not token or not key:
            raise ValueError("A session requires both a token and a key")
        self._username = username
        self._token = token
        self._key = key
        self._logon_time = datetime.now(timezone.utc)
        logger.debug("Session started for user=%s", username)

    def clear(self) -> None:
        """Drop the token, the key and the identity."""
        if self._username is not None:
            logger.debug("Session cleared for user=%s", self._username)
        self._username = None
        self._token = None
        self._key = None
        self._logon_time = None

    # --- Properties ---

    @property
    def authenticated(self) -> bool:
        return self._token is not None and self._key is not None

    @property
    def username(self) -> Optional[str]:
        return self._username

    @property
    def logon_time(self) -> Optional[datetime]:
        return self._logon_time

    @property
    def token(self) -> str:
        if self._token is None:
            raise AuthenticationError("Not authenticated")
        return self._token

    @property
    def key(self) -> bytes:
        if self._key is None:
            raise AuthenticationError("Not authenticated")
        return self._key
