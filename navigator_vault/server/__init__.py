"""Vault server — a blind store for client-encrypted vaults.

The server authenticates users and keeps one opaque ciphertext string per
user. It has no key material and never parses the stored value.
"""

from .app import create_app, error_middleware
from .auth import PasswordHasher, TokenService
from .store import FileVaultStore, MemoryVaultStore, UserRecord, VaultStore

__all__ = [
    "create_app",
    "error_middleware",
    "PasswordHasher",
    "TokenService",
    "VaultStore",
    "MemoryVaultStore",
    "FileVaultStore",
    "UserRecord",
]
