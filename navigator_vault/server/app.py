"""aiohttp application factory for the vault server."""
import logging
from typing import Optional

from aiohttp import web

from ..conf import ServerConfig
from ..exceptions import VaultError
from .auth import PasswordHasher, TokenService
from .handlers import (
    HASHER,
    STORE,
    TOKENS,
    get_accounts,
    health,
    json_response,
    login,
    register,
    save_accounts,
)
from .store import FileVaultStore, MemoryVaultStore, VaultStore

logger = logging.getLogger("navigator.vault.server")


@web.middleware
async def error_middleware(request: web.Request, handler) -> web.StreamResponse:
    """Turn vault errors into ``{"message": ...}`` JSON responses."""
    try:
        return await handler(request)
    except VaultError as err:
        return json_response({"message": err.message}, status=err.status)
    except web.HTTPException as err:
        if err.status < 400:
            raise
        return json_response({"message": err.reason}, status=err.status)
    except Exception:
        logger.exception("Unhandled error on %s %s", request.method, request.path)
        return json_response({"message": "Internal server error"}, status=500)


def build_store(config: ServerConfig) -> VaultStore:
    if config.storage_path:
        return FileVaultStore(config.storage_path)
    logger.warning("No VAULT_STORAGE_PATH set; vaults are kept in memory only")
    return MemoryVaultStore()


async def _close_store(app: web.Application) -> None:
    await app[STORE].close()


def create_app(
    config: ServerConfig,
    store: Optional[VaultStore] = None,
) -> web.Application:
    """Build the vault server application.

    Args:
        config: Validated server configuration.
        store: Vault store to use; built from ``config`` when omitted.

    Returns:
        Configured aiohttp application.
    """
    app = web.Application(
        middlewares=[error_middleware],
        client_max_size=config.max_body_size,
    )
    app[STORE] = store if store is not None else build_store(config)
    app[HASHER] = PasswordHasher(rounds=config.bcrypt_rounds)
    app[TOKENS] = TokenService(config)
    app.on_cleanup.append(_close_store)

    app.router.add_get("/health", health)
    app.router.add_post("/api/register", register)
    app.router.add_post("/api/login", login)
    app.router.add_get("/api/accounts", get_accounts)
    app.router.add_post("/api/accounts", save_accounts)
    return app
