"""Tests for configuration loading and validation."""
import pytest

from navigator_vault.conf import (
    DEFAULT_KDF_ITERATIONS,
    DEFAULT_KDF_SALT,
    DEFAULT_TOKEN_TTL,
    ClientConfig,
    ServerConfig,
    generate_jwt_secret,
    get_jwt_secret,
)


class TestServerConfig:

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("VAULT_JWT_SECRET", "s" * 32)
        config = ServerConfig.from_env()
        assert config.jwt_secret == "s" * 32
        assert config.token_ttl == DEFAULT_TOKEN_TTL
        assert config.jwt_algorithm == "HS256"

    def test_missing_secret(self, monkeypatch):
        monkeypatch.delenv("VAULT_JWT_SECRET", raising=False)
        with pytest.raises(RuntimeError):
            get_jwt_secret()
        with pytest.raises(RuntimeError):
            ServerConfig.from_env()

    def test_short_secret_rejected(self):
        with pytest.raises(ValueError):
            ServerConfig(jwt_secret="short")

    def test_asymmetric_algorithm_rejected(self):
        with pytest.raises(ValueError):
            ServerConfig(jwt_secret="s" * 32, jwt_algorithm="RS256")

    def test_secret_not_in_repr(self):
        assert "s" * 32 not in repr(ServerConfig(jwt_secret="s" * 32))

    def test_token_lifetime_is_a_day(self):
        assert ServerConfig(jwt_secret="s" * 32).token_ttl == 24 * 60 * 60


class TestClientConfig:

    def test_defaults(self):
        config = ClientConfig(base_url="http://localhost:4000/")
        assert config.base_url == "http://localhost:4000"
        assert config.kdf_salt == DEFAULT_KDF_SALT
        assert config.kdf_iterations == DEFAULT_KDF_ITERATIONS == 100_000

    def test_from_env(self):
        assert ClientConfig.from_env("http://vault/").base_url == "http://vault"

    def test_empty_salt_rejected(self):
        with pytest.raises(ValueError):
            ClientConfig(base_url="http://x", kdf_salt="")

    def test_iterations_cannot_be_lowered(self):
        with pytest.raises(ValueError):
            ClientConfig(base_url="http://x", kdf_iterations=1_000)

    def test_raised_iterations_warn(self, caplog):
        with caplog.at_level("WARNING", logger="navigator.vault"):
            config = ClientConfig(base_url="http://x", kdf_iterations=200_000)
        assert config.kdf_iterations == 200_000
        assert "200000" in caplog.text


def test_generate_jwt_secret():
    first, second = generate_jwt_secret(), generate_jwt_secret()
    assert first != second
    ServerConfig(jwt_secret=first)
