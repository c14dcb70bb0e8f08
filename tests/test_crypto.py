"""
Tests for key derivation and envelope encryption.

Tests cover:
- PBKDF2 determinism and secret separation
- Envelope layout (nonce | ciphertext | tag, base64)
- Round trip, tamper detection, wrong-key rejection
- Nonce freshness across calls
- Vault-level helpers
"""
import base64
import hashlib

import pytest

from navigator_vault.crypto import (
    KEY_LENGTH,
    NONCE_SIZE,
    TAG_SIZE,
    decrypt,
    decrypt_vault,
    derive_key,
    encrypt,
    encrypt_vault,
)
from navigator_vault.conf import DEFAULT_KDF_SALT
from navigator_vault.exceptions import DecryptionError
from navigator_vault.models import CredentialRecord, RecordType, Vault


@pytest.fixture(scope="module")
def key():
    return derive_key("Passw0rd!", DEFAULT_KDF_SALT)


@pytest.fixture(scope="module")
def other_key():
    return derive_key("Passw0rd?", DEFAULT_KDF_SALT)


def _flip(envelope: str, index: int, mask: int = 0x01) -> str:
    raw = bytearray(base64.b64decode(envelope))
    raw[index] ^= mask
    return base64.b64encode(bytes(raw)).decode("ascii")


class TestKeyDerivation:
    """Tests for derive_key."""

    def test_key_length(self, key):
        assert isinstance(key, bytes)
        assert len(key) == KEY_LENGTH

    def test_deterministic(self, key):
        assert derive_key("Passw0rd!", DEFAULT_KDF_SALT) == key

    def test_different_secrets_differ(self, key, other_key):
        assert key != other_key

    def test_salt_changes_key(self, key):
        assert derive_key("Passw0rd!", "another-salt") != key

    def test_matches_pbkdf2_hmac_sha256(self, key):
        """Same bytes as any PBKDF2-HMAC-SHA256 with 100k iterations."""
        expected = hashlib.pbkdf2_hmac(
            "sha256", b"Passw0rd!", DEFAULT_KDF_SALT.encode(), 100_000, 32,
        )
        assert key == expected

    def test_custom_iterations(self):
        assert derive_key("x", "salt", iterations=1) != derive_key("x", "salt", iterations=2)


class TestEnvelope:
    """Tests for encrypt/decrypt."""

    @pytest.mark.parametrize("message", [b"", b"a", b"hello vault", bytes(range(256)) * 8])
    def test_round_trip(self, key, message):
        assert decrypt(encrypt(message, key), key) == message

    def test_envelope_layout(self, key):
        envelope = encrypt(b"12345", key)
        raw = base64.b64decode(envelope, validate=True)
        assert len(raw) == NONCE_SIZE + 5 + TAG_SIZE

    def test_fresh_nonce_every_call(self, key):
        nonces = {
            base64.b64decode(encrypt(b"same", key))[:NONCE_SIZE]
            for _ in range(2000)
        }
        assert len(nonces) == 2000

    def test_same_plaintext_different_envelopes(self, key):
        assert encrypt(b"same", key) != encrypt(b"same", key)

    def test_every_bit_flip_is_detected(self, key):
        envelope = encrypt(b"vault", key)
        size = len(base64.b64decode(envelope))
        for index in range(size):
            for bit in range(8):
                with pytest.raises(DecryptionError):
                    decrypt(_flip(envelope, index, 1 << bit), key)

    def test_wrong_key_rejected(self, key, other_key):
        with pytest.raises(DecryptionError):
            decrypt(encrypt(b"secret", key), other_key)

    def test_truncated_envelope(self, key):
        raw = base64.b64decode(encrypt(b"secret", key))
        with pytest.raises(DecryptionError):
            decrypt(base64.b64encode(raw[:-1]).decode(), key)

    def test_shorter_than_nonce(self, key):
        with pytest.raises(DecryptionError, match="too short"):
            decrypt(base64.b64encode(b"abc").decode(), key)

    def test_empty_envelope(self, key):
        with pytest.raises(DecryptionError):
            decrypt("", key)

    def test_not_base64(self, key):
        with pytest.raises(DecryptionError):
            decrypt("not*base64!", key)

    def test_wrong_key_and_corruption_look_alike(self, key, other_key):
        envelope = encrypt(b"secret", key)
        with pytest.raises(DecryptionError) as wrong_key:
            decrypt(envelope, other_key)
        with pytest.raises(DecryptionError) as corrupted:
            decrypt(_flip(envelope, NONCE_SIZE), key)
        assert type(wrong_key.value) is type(corrupted.value)
        assert str(wrong_key.value) == str(corrupted.value)


class TestVaultEncryption:
    """Tests for encrypt_vault/decrypt_vault."""

    def test_vault_round_trip(self, key):
        vault = Vault([
            CredentialRecord(type=RecordType.WEBSITE, name="Mail", password="hunter2"),
            CredentialRecord(type=RecordType.HOSTING_VPS, name="VPS"),
        ])
        assert decrypt_vault(encrypt_vault(vault, key), key) == vault

    def test_plaintext_not_in_envelope(self, key):
        vault = Vault([CredentialRecord(name="Mail", password="hunter2")])
        envelope = encrypt_vault(vault, key)
        assert b"hunter2" not in base64.b64decode(envelope)

    def test_malformed_payload(self, key):
        with pytest.raises(DecryptionError, match="malformed"):
            decrypt_vault(encrypt(b'{"not": "a list"}', key), key)

    def test_empty_vault(self, key):
        assert len(decrypt_vault(encrypt_vault(Vault(), key), key)) == 0
