"""Login-credential hashing and bearer token management."""
import asyncio
import logging
from datetime import datetime, timedelta, timezone

import jwt
import bcrypt

from ..conf import ServerConfig
from ..exceptions import AuthenticationError, ValidationError

logger = logging.getLogger("navigator.vault.server")

# bcrypt only looks at the first 72 bytes of a password
BCRYPT_MAX_BYTES = 72


class PasswordHasher:
    """Salted bcrypt hashes; work runs in a thread to keep the loop free."""

    def __init__(self, rounds: int = 12):
        self.rounds = rounds

    async def hash(self, password: str) -> str:
        """Hash a password for storage.

        Raises:
            ValidationError: If the password exceeds bcrypt's input limit.
        """
        raw = password.encode("utf-8")
        if len(raw) > BCRYPT_MAX_BYTES:
            raise ValidationError(
                f"password must be at most {BCRYPT_MAX_BYTES} bytes"
            )
        hashed = await asyncio.to_thread(
            bcrypt.hashpw, raw, bcrypt.gensalt(rounds=self.rounds)
        )
        return hashed.decode("ascii")

    async def verify(self, password: str, password_hash: str) -> bool:
        raw = password.encode("utf-8")
        if len(raw) > BCRYPT_MAX_BYTES:
            return False
        return await asyncio.to_thread(
            bcrypt.checkpw, raw, password_hash.encode("ascii")
        )


class TokenService:
    """Signed bearer tokens with a fixed lifetime. No refresh."""

    def __init__(self, config: ServerConfig):
        self._secret = config.jwt_secret
        self._algorithm = config.jwt_algorithm
        self._ttl = config.token_ttl

    def issue(self, user_id: str) -> str:
        """Create a token for ``user_id``.

        Args:
            user_id: Identifier to encode in the ``sub`` claim.

        Returns:
            Encoded token string.
        """
        now = datetime.now(timezone.utc)
        payload = {
            "sub": user_id,
            "iat": now,
            "exp": now + timedelta(seconds=self._ttl),
        }
        return jwt.encode(payload, self._secret, algorithm=self._algorithm)

    def verify(self, token: str) -> str:
        """Verify a token and return its user id.

        Raises:
            AuthenticationError: On invalid/expired token.
        """
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                options={"require": ["exp", "sub"]},
            )
        except jwt.ExpiredSignatureError:
            logger.info("Rejected expired token")
            raise AuthenticationError("Token expired")
        except jwt.InvalidTokenError:
            raise AuthenticationError("Authentication failed")
        return payload["sub"]
