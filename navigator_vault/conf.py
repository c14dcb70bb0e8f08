"""
Vault Configuration — Environment settings and validated config models.

Reads settings from environment variables:
    VAULT_KDF_SALT = <static salt shared by all vaults>
    VAULT_KDF_ITERATIONS = <PBKDF2 iteration count, at least 100000>
    VAULT_JWT_SECRET = <token signing secret>
    VAULT_JWT_ALGORITHM = <HS256>
    VAULT_TOKEN_TTL = <seconds>
    VAULT_BCRYPT_ROUNDS = <bcrypt cost>
    VAULT_STORAGE_PATH = <JSON file for the file-backed store>
    VAULT_HOST / VAULT_PORT = <server bind address>
    VAULT_MAX_BODY_SIZE = <bytes>

Security Note:
    Never log the JWT secret or any key material.
"""
import os
import secrets
import logging
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

logger = logging.getLogger("navigator.vault")

# Existing vaults were encrypted under this salt; changing it makes them
# undecryptable.
DEFAULT_KDF_SALT = "a-secure-static-salt-for-demo"
DEFAULT_KDF_ITERATIONS = 100_000
DEFAULT_TOKEN_TTL = 24 * 60 * 60
DEFAULT_BCRYPT_ROUNDS = 12
DEFAULT_MAX_BODY_SIZE = 1024 ** 2

VAULT_KDF_SALT = os.environ.get("VAULT_KDF_SALT", DEFAULT_KDF_SALT)
VAULT_KDF_ITERATIONS = int(
    os.environ.get("VAULT_KDF_ITERATIONS", DEFAULT_KDF_ITERATIONS)
)
VAULT_JWT_ALGORITHM = os.environ.get("VAULT_JWT_ALGORITHM", "HS256")
VAULT_TOKEN_TTL = int(os.environ.get("VAULT_TOKEN_TTL", DEFAULT_TOKEN_TTL))
VAULT_BCRYPT_ROUNDS = int(
    os.environ.get("VAULT_BCRYPT_ROUNDS", DEFAULT_BCRYPT_ROUNDS)
)
VAULT_STORAGE_PATH = os.environ.get("VAULT_STORAGE_PATH")
VAULT_HOST = os.environ.get("VAULT_HOST", "0.0.0.0")
VAULT_PORT = int(os.environ.get("VAULT_PORT", 4000))
VAULT_MAX_BODY_SIZE = int(
    os.environ.get("VAULT_MAX_BODY_SIZE", DEFAULT_MAX_BODY_SIZE)
)
VAULT_LOG_LEVEL = os.environ.get("VAULT_LOG_LEVEL", "INFO")


def get_jwt_secret() -> str:
    """Read the token signing secret from VAULT_JWT_SECRET.

    Returns:
        The secret string.

    Raises:
        RuntimeError: If VAULT_JWT_SECRET is not set.
    """
    secret = os.environ.get("VAULT_JWT_SECRET")
    if not secret:
        raise RuntimeError(
            "VAULT_JWT_SECRET environment variable is not set. "
            "Generate one with navigator_vault.conf.generate_jwt_secret()"
        )
    return secret


def generate_jwt_secret() -> str:
    """Generate a random token signing secret.

    This is a utility for operators to generate new secrets.

    Returns:
        URL-safe random string with 48 bytes of entropy.
    """
    return secrets.token_urlsafe(48)


class ServerConfig(BaseModel):
    """Validated server configuration."""

    jwt_secret: str = Field(min_length=16, repr=False)
    jwt_algorithm: str = Field(default="HS256")
    token_ttl: int = Field(default=DEFAULT_TOKEN_TTL, ge=60)
    bcrypt_rounds: int = Field(default=DEFAULT_BCRYPT_ROUNDS, ge=4, le=31)
    storage_path: Optional[str] = None
    host: str = "0.0.0.0"
    port: int = Field(default=4000, ge=1, le=65535)
    max_body_size: int = Field(default=DEFAULT_MAX_BODY_SIZE, ge=1024)

    @field_validator("jwt_algorithm")
    @classmethod
    def validate_algorithm(cls, v: str) -> str:
        """Only HMAC algorithms make sense with a shared secret."""
        if v not in ("HS256", "HS384", "HS512"):
            raise ValueError(f"Unsupported token algorithm: {v}")
        return v

    @classmethod
    def from_env(cls) -> "ServerConfig":
        """Create ServerConfig by loading values from environment.

        Returns:
            Populated ServerConfig instance.
        """
        return cls(
            jwt_secret=get_jwt_secret(),
            jwt_algorithm=VAULT_JWT_ALGORITHM,
            token_ttl=VAULT_TOKEN_TTL,
            bcrypt_rounds=VAULT_BCRYPT_ROUNDS,
            storage_path=VAULT_STORAGE_PATH,
            host=VAULT_HOST,
            port=VAULT_PORT,
            max_body_size=VAULT_MAX_BODY_SIZE,
        )


class ClientConfig(BaseModel):
    """Validated client configuration."""

    base_url: str
    kdf_salt: str = Field(default=DEFAULT_KDF_SALT, min_length=1)
    kdf_iterations: int = Field(
        default=DEFAULT_KDF_ITERATIONS, ge=DEFAULT_KDF_ITERATIONS
    )

    @field_validator("base_url")
    @classmethod
    def strip_slash(cls, v: str) -> str:
        """Normalize the server URL so paths can be appended."""
        return v.rstrip("/")

    @model_validator(mode="after")
    def warn_nondefault_kdf(self) -> "ClientConfig":
        """Flag iteration counts other than the wire-compatible default."""
        if self.kdf_iterations != DEFAULT_KDF_ITERATIONS:
            logger.warning(
                "KDF iterations set to %d; vaults will not open with "
                "the default client", self.kdf_iterations,
            )
        return self

    @classmethod
    def from_env(cls, base_url: str) -> "ClientConfig":
        """Create ClientConfig for ``base_url`` using environment KDF settings."""
        return cls(
            base_url=base_url,
            kdf_salt=VAULT_KDF_SALT,
            kdf_iterations=VAULT_KDF_ITERATIONS,
        )
