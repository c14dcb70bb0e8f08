"""
VaultStore — persistence of users and their opaque encrypted vaults.

The store keeps one row per user: id, unique username, password hash and a
nullable ``encrypted_vault`` string. The vault value is never parsed or
validated; every write replaces it whole, and the last write wins.

Implementations:
- :class:`MemoryVaultStore` — process memory, for tests and single-run use.
- :class:`FileVaultStore` — a JSON document on disk, rewritten atomically
  (temp file + ``os.replace``) on every change.
"""
import os
import uuid
import asyncio
import logging
import tempfile
from abc import ABC, abstractmethod
from typing import Optional

import orjson
from pydantic import BaseModel, TypeAdapter, ValidationError

from ..exceptions import ConflictError, PersistenceError

logger = logging.getLogger("navigator.vault.server")


class UserRecord(BaseModel):
    """Server-side user row."""

    id: str
    username: str
    password_hash: str
    encrypted_vault: Optional[str] = None


_ROWS = TypeAdapter(list[UserRecord])


class VaultStore(ABC):
    """Async key→blob store keyed by user id."""

    @abstractmethod
    async def create_user(self, username: str, password_hash: str) -> UserRecord:
        """Insert a user with a null vault.

        Raises:
            ConflictError: If the username is taken.
        """

    @abstractmethod
    async def get_user(self, username: str) -> Optional[UserRecord]:
        """Look up a user by username."""

    @abstractmethod
    async def get_encrypted_vault(self, user_id: str) -> Optional[str]:
        """Return the stored envelope, or None if the user has never saved."""

    @abstractmethod
    async def set_encrypted_vault(self, user_id: str, value: str) -> bool:
        """Replace the stored envelope; False if the user does not exist."""

    async def close(self) -> None:
        """Release resources held by the store."""


class MemoryVaultStore(VaultStore):
    """Users kept in a dict, guarded by an asyncio lock."""

    def __init__(self) -> None:
        self._users: dict[str, UserRecord] = {}
        self._by_name: dict[str, str] = {}
        self._lock = asyncio.Lock()

    async def create_user(self, username: str, password_hash: str) -> UserRecord:
        async with self._lock:
            if username in self._by_name:
                raise ConflictError("Username already exists")
            user = UserRecord(
                id=uuid.uuid4().hex,
                username=username,
                password_hash=password_hash,
            )
            self._users[user.id] = user
            self._by_name[username] = user.id
        logger.info("User created: %s", username)
        return user

    async def get_user(self, username: str) -> Optional[UserRecord]:
        user_id = self._by_name.get(username)
        return self._users.get(user_id) if user_id else None

    async def get_encrypted_vault(self, user_id: str) -> Optional[str]:
        user = self._users.get(user_id)
        return user.encrypted_vault if user else None

    async def set_encrypted_vault(self, user_id: str, value: str) -> bool:
        async with self._lock:
            user = self._users.get(user_id)
            if user is None:
                return False
            user.encrypted_vault = value
        logger.debug("Vault replaced: user=%s", user_id)
        return True


class FileVaultStore(MemoryVaultStore):
    """Memory store mirrored to a JSON file after every write."""

    def __init__(self, path: str) -> None:
        super().__init__()
        self._path = path
        for user in self._load():
            self._users[user.id] = user
            self._by_name[user.username] = user.id
        logger.info(
            "Vault store loaded from %s: %d user(s)", path, len(self._users),
        )

    @property
    def path(self) -> str:
        return self._path

    def _load(self) -> list[UserRecord]:
        if not os.path.exists(self._path):
            return []
        try:
            with open(self._path, "rb") as f:
                return _ROWS.validate_json(f.read())
        except (OSError, ValidationError) as err:
            raise PersistenceError(
                f"Unable to read vault store {self._path}: {err}"
            ) from err

    def _write(self, payload: bytes) -> None:
        directory = os.path.dirname(os.path.abspath(self._path))
        fd, tmp = tempfile.mkstemp(dir=directory, prefix=".vault-", suffix=".tmp")
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(payload)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp, self._path)
        except OSError:
            if os.path.exists(tmp):
                os.unlink(tmp)
            raise

    async def _flush(self) -> None:
        payload = orjson.dumps(
            [u.model_dump() for u in self._users.values()],
            option=orjson.OPT_INDENT_2,
        )
        try:
            await asyncio.to_thread(self._write, payload)
        except OSError as err:
            raise PersistenceError(
                f"Unable to write vault store {self._path}: {err}"
            ) from err

    async def create_user(self, username: str, password_hash: str) -> UserRecord:
        user = await super().create_user(username, password_hash)
        async with self._lock:
            try:
                await self._flush()
            except PersistenceError:
                self._users.pop(user.id, None)
                self._by_name.pop(username, None)
                raise
        return user

    async def set_encrypted_vault(self, user_id: str, value: str) -> bool:
        async with self._lock:
            user = self._users.get(user_id)
            if user is None:
                return False
            previous = user.encrypted_vault
            user.encrypted_vault = value
            try:
                await self._flush()
            except PersistenceError:
                user.encrypted_vault = previous
                raise
        logger.debug("Vault replaced: user=%s", user_id)
        return True
