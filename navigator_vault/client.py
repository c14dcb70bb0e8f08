"""
VaultSyncClient — login, fetch, decrypt, mutate, encrypt and save.

The client is the only place plaintext exists. It derives the vault key from
the master secret at login, keeps it in its :class:`AuthSession`, and talks
to the server exclusively in encrypted envelopes.

Consistency model:
    Saves are whole-vault overwrites with no concurrency check; when two
    sessions save, the later request wins and the other vault is lost.
    Mutations are applied to ``client.vault`` before the save is sent and
    are not rolled back if the save fails. ``client.synced`` holds the last
    snapshot confirmed by the server and ``client.revert()`` restores it.
"""
import asyncio
import logging
from typing import Any, Optional, Union

import orjson
import aiohttp

from .conf import ClientConfig
from .crypto import decrypt_vault, derive_key, encrypt_vault
from .exceptions import (
    AuthenticationError,
    DecryptionError,
    PersistenceError,
    error_for_status,
)
from .models import CredentialRecord, Operation, Vault, mutate
from .session import AuthSession

logger = logging.getLogger("navigator.vault.client")


class VaultSyncClient:
    """Async client for the vault server.

    Args:
        config: Client configuration, or the server base URL.
        http: Optional shared ``aiohttp.ClientSession``; one is created on
            first use (and closed by :meth:`close`) when omitted.
    """

    def __init__(
        self,
        config: Union[ClientConfig, str],
        http: Optional[aiohttp.ClientSession] = None,
    ):
        if isinstance(config, str):
            config = ClientConfig(base_url=config)
        self.config = config
        self.session = AuthSession()
        self.vault = Vault()
        self.synced: Optional[Vault] = None
        self._http = http
        self._owns_http = http is None

    def __repr__(self) -> str:
        return f'<VaultSyncClient {self.config.base_url} {self.session!r}>'

    async def __aenter__(self) -> "VaultSyncClient":
        return self

    async def __aexit__(self, *exc) -> None:
        await self.close()

    async def close(self) -> None:
        self.logout()
        if self._owns_http and self._http is not None:
            await self._http.close()
            self._http = None

    # ------------------------------------------------------------------
    # HTTP helpers
    # ------------------------------------------------------------------

    def _get_http(self) -> aiohttp.ClientSession:
        if self._http is None:
            self._http = aiohttp.ClientSession()
        return self._http

    async def _request(
        self,
        method: str,
        path: str,
        payload: Optional[dict] = None,
        auth: bool = False,
    ) -> dict[str, Any]:
        """Send a JSON request and map error statuses to vault errors.

        An authentication failure on an authenticated request clears the
        session.
        """
        headers = {}
        if auth:
            headers["Authorization"] = f"Bearer {self.session.token}"
        data = None
        if payload is not None:
            data = orjson.dumps(payload)
            headers["Content-Type"] = "application/json"
        url = f"{self.config.base_url}{path}"
        try:
            async with self._get_http().request(
                method, url, data=data, headers=headers
            ) as resp:
                status = resp.status
                reason = resp.reason or ""
                raw = await resp.read()
        except aiohttp.ClientError as err:
            raise PersistenceError(f"Vault server unreachable: {err}") from err
        try:
            body = orjson.loads(raw) if raw else {}
        except orjson.JSONDecodeError:
            body = {}
        if not isinstance(body, dict):
            body = {}
        if status >= 400:
            error = error_for_status(status, body.get("message") or reason)
            if auth and isinstance(error, AuthenticationError):
                logger.info(
                    "Session for user=%s rejected by server; clearing",
                    self.session.username,
                )
                self.logout()
            raise error
        return body

    # ------------------------------------------------------------------
    # Authentication
    # ------------------------------------------------------------------

    async def register(self, username: str, password: str) -> None:
        """Create an account. Does not log in."""
        await self._request(
            "POST", "/api/register",
            payload={"username": username, "password": password},
        )
        logger.info("Registered user=%s", username)

    async def login(self, username: str, master_secret: str) -> AuthSession:
        """Authenticate and derive the vault key.

        The master secret is only checked against the server's login hash;
        a vault encrypted under a different secret surfaces later as a
        DecryptionError from :meth:`fetch_vault`.

        Raises:
            AuthenticationError: Invalid credentials. No session state is
                kept.
        """
        self.logout()
        body = await self._request(
            "POST", "/api/login",
            payload={"username": username, "password": master_secret},
        )
        token = body.get("token")
        if not isinstance(token, str) or not token:
            raise AuthenticationError("Login response carried no token")
        key = await asyncio.to_thread(
            derive_key,
            master_secret,
            self.config.kdf_salt,
            self.config.kdf_iterations,
        )
        self.session.start(username, token, key)
        logger.info("Logged in as user=%s", username)
        return self.session

    def logout(self) -> None:
        """Forget the token, the key and every plaintext view."""
        self.session.clear()
        self.vault = Vault()
        self.synced = None

    # ------------------------------------------------------------------
    # Vault sync
    # ------------------------------------------------------------------

    async def fetch_vault(self) -> Vault:
        """Download and decrypt the vault.

        Returns:
            The decrypted vault, or an empty vault when the stored value is
            null or empty (no decryption is attempted in that case).

        Raises:
            AuthenticationError: Token missing, invalid or expired.
            DecryptionError: The envelope does not open under the session
                key; the session is cleared since it cannot be used.
        """
        body = await self._request("GET", "/api/accounts", auth=True)
        envelope = body.get("encrypted_vault")
        if envelope is not None and not isinstance(envelope, str):
            raise PersistenceError("Malformed vault response from server")
        if not envelope:
            vault = Vault()
        else:
            try:
                vault = decrypt_vault(envelope, self.session.key)
            except DecryptionError:
                logger.warning(
                    "Vault for user=%s could not be decrypted; clearing session",
                    self.session.username,
                )
                self.logout()
                raise
        self.vault = vault
        self.synced = vault
        return vault

    async def save_vault(self, vault: Optional[Vault] = None) -> None:
        """Encrypt the whole vault under a fresh nonce and replace the
        server copy.

        ``vault`` defaults to the local view. It becomes the local view
        before the request is sent and stays there if the save fails.
        """
        if vault is None:
            vault = self.vault
        envelope = encrypt_vault(vault, self.session.key)
        self.vault = vault
        await self._request(
            "POST", "/api/accounts",
            payload={"encrypted_vault": envelope},
            auth=True,
        )
        self.synced = vault
        logger.debug(
            "Vault saved for user=%s: %d record(s)",
            self.session.username, len(vault),
        )

    # ------------------------------------------------------------------
    # Mutations (optimistic: local view first, then save)
    # ------------------------------------------------------------------

    async def apply(
        self,
        operation: Operation,
        target: Union[CredentialRecord, str],
    ) -> Vault:
        """Apply one mutation to the local view and save the result."""
        if not self.session.authenticated:
            raise AuthenticationError("Not authenticated")
        self.vault = mutate(self.vault, operation, target)
        await self.save_vault(self.vault)
        return self.vault

    async def add_record(self, record: CredentialRecord) -> CredentialRecord:
        await self.apply(Operation.ADD, record)
        return record

    async def replace_record(self, record: CredentialRecord) -> CredentialRecord:
        await self.apply(Operation.REPLACE, record)
        return record

    async def remove_record(self, record_id: str) -> None:
        await self.apply(Operation.REMOVE, record_id)

    @property
    def dirty(self) -> bool:
        """True when the local view differs from the last confirmed save."""
        confirmed = self.synced if self.synced is not None else Vault()
        return self.vault != confirmed

    def revert(self) -> Vault:
        """Drop unconfirmed local changes."""
        self.vault = self.synced if self.synced is not None else Vault()
        return self.vault
