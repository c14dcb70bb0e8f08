"""Navigator Vault — client-side encrypted credential vault with blind sync.

Security Note (Threat Model):
    The vault key is derived from the master secret and kept only in client
    memory for the session's lifetime. The server stores an opaque envelope
    and never holds key material. The same master secret is also sent to
    the server as the login password, so a compromised server can observe
    it at login; this is an accepted limitation kept for compatibility with
    existing accounts.
"""

from .version import __version__
from .conf import ClientConfig, ServerConfig
from .crypto import decrypt, decrypt_vault, derive_key, encrypt, encrypt_vault
from .exceptions import (
    AuthenticationError,
    ConflictError,
    DecryptionError,
    PersistenceError,
    ValidationError,
    VaultError,
)
from .models import CredentialRecord, Operation, RecordType, Vault, mutate
from .session import AuthSession
from .client import VaultSyncClient

__all__ = [
    "__version__",
    "ClientConfig",
    "ServerConfig",
    "derive_key",
    "encrypt",
    "decrypt",
    "encrypt_vault",
    "decrypt_vault",
    "VaultError",
    "ValidationError",
    "AuthenticationError",
    "ConflictError",
    "DecryptionError",
    "PersistenceError",
    "CredentialRecord",
    "RecordType",
    "Operation",
    "Vault",
    "mutate",
    "AuthSession",
    "VaultSyncClient",
]
