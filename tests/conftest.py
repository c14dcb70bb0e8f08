"""Shared fixtures: an in-process vault server and clients talking to it."""
import pytest
import pytest_asyncio
from aiohttp import test_utils

from navigator_vault.conf import ClientConfig, ServerConfig
from navigator_vault.client import VaultSyncClient
from navigator_vault.server import MemoryVaultStore, create_app


JWT_SECRET = "test-secret-for-vault-tokens-0123456789"


@pytest.fixture
def server_config():
    """Server config with the cheapest bcrypt cost."""
    return ServerConfig(jwt_secret=JWT_SECRET, bcrypt_rounds=4)


@pytest.fixture
def store():
    return MemoryVaultStore()


@pytest.fixture
def app(server_config, store):
    return create_app(server_config, store=store)


@pytest_asyncio.fixture
async def http(app):
    """Raw HTTP test client for the server contract."""
    client = test_utils.TestClient(test_utils.TestServer(app))
    await client.start_server()
    yield client
    await client.close()


@pytest_asyncio.fixture
async def vault_server(app):
    server = test_utils.TestServer(app)
    await server.start_server()
    yield server
    await server.close()


@pytest_asyncio.fixture
async def make_client(vault_server):
    """Factory for independent VaultSyncClient sessions."""
    clients = []

    def _make() -> VaultSyncClient:
        config = ClientConfig(base_url=str(vault_server.make_url("/")))
        client = VaultSyncClient(config)
        clients.append(client)
        return client

    yield _make
    for client in clients:
        await client.close()
