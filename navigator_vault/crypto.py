"""
Vault Crypto Core — Key derivation and envelope encryption/decryption.

Implements the client-side encryption of the whole vault:
- Key derivation: PBKDF2-HMAC-SHA256(master_secret, salt, 100k) → 32-byte key
- Envelope: base64( nonce 12B | AES-GCM ciphertext | tag 16B )

The envelope carries no metadata (no key id, no version), so decrypting with
the wrong key is indistinguishable from decrypting corrupted data; both raise
DecryptionError.

Security Note:
    Never log plaintext, keys or envelope values.
    Nonces are random 96-bit values drawn on every call; a nonce must never
    be reused under the same key.
"""
import os
import base64
import binascii
import logging

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from .conf import DEFAULT_KDF_ITERATIONS, DEFAULT_KDF_SALT
from .exceptions import DecryptionError
from .models import Vault

logger = logging.getLogger("navigator.vault")

NONCE_SIZE = 12  # 96-bit nonce
TAG_SIZE = 16  # 128-bit GCM tag
KEY_LENGTH = 32  # AES-256


# ---------------------------------------------------------------------------
# Key derivation
# ---------------------------------------------------------------------------

def derive_key(
    master_secret: str,
    salt: str = DEFAULT_KDF_SALT,
    iterations: int = DEFAULT_KDF_ITERATIONS,
) -> bytes:
    """Derive a 32-byte vault key using PBKDF2-HMAC-SHA256.

    Deterministic: identical inputs always yield identical key bytes.
    Deliberately slow; run it off the event loop (``asyncio.to_thread``).

    Args:
        master_secret: The user's master secret.
        salt: KDF salt (UTF-8 encoded before use).
        iterations: PBKDF2 iteration count.

    Returns:
        32-byte derived key.
    """
    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=KEY_LENGTH,
        salt=salt.encode("utf-8"),
        iterations=iterations,
    )
    return kdf.derive(master_secret.encode("utf-8"))


# ---------------------------------------------------------------------------
# Envelope encryption
# ---------------------------------------------------------------------------

def encrypt(plaintext: bytes, key: bytes) -> str:
    """Encrypt plaintext into a base64 envelope.

    Format: base64([nonce 12B][encrypted_payload + GCM_tag 16B])

    Args:
        plaintext: Data to encrypt.
        key: 32-byte vault key.

    Returns:
        Envelope string.
    """
    cipher = AESGCM(key)
    nonce = os.urandom(NONCE_SIZE)
    ct = cipher.encrypt(nonce, plaintext, None)
    return base64.b64encode(nonce + ct).decode("ascii")


def decrypt(envelope: str, key: bytes) -> bytes:
    """Decrypt a base64 envelope.

    Args:
        envelope: Envelope string produced by :func:`encrypt`.
        key: 32-byte vault key.

    Returns:
        Decrypted plaintext bytes.

    Raises:
        DecryptionError: If the envelope is malformed or truncated, or the
            authentication tag does not verify (wrong key or tampering).
    """
    try:
        raw = base64.b64decode(envelope, validate=True)
    except (binascii.Error, ValueError) as err:
        raise DecryptionError("Envelope is not valid base64") from err
    _min = NONCE_SIZE + TAG_SIZE
    if len(raw) < _min:
        raise DecryptionError(
            f"Envelope too short: {len(raw)} bytes (minimum {_min})"
        )
    cipher = AESGCM(key)
    nonce = raw[:NONCE_SIZE]
    ct = raw[NONCE_SIZE:]
    try:
        return cipher.decrypt(nonce, ct, None)
    except InvalidTag as err:
        raise DecryptionError(
            "Unable to decrypt vault: wrong master secret or corrupted data"
        ) from err


# ---------------------------------------------------------------------------
# Vault helpers
# ---------------------------------------------------------------------------

def encrypt_vault(vault: Vault, key: bytes) -> str:
    """Serialize and encrypt a whole vault."""
    return encrypt(vault.to_json(), key)


def decrypt_vault(envelope: str, key: bytes) -> Vault:
    """Decrypt and deserialize a whole vault.

    Raises:
        DecryptionError: If decryption fails or the plaintext is not a valid
            record list.
    """
    plaintext = decrypt(envelope, key)
    try:
        return Vault.from_json(plaintext)
    except ValueError as err:
        logger.error("Decrypted vault payload is not a valid record list")
        raise DecryptionError("Vault payload is malformed") from err
