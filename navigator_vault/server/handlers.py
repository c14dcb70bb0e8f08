"""
HTTP handlers for registration, login and the opaque vault endpoints.

The server never decrypts: ``encrypted_vault`` is accepted as any string and
returned exactly as stored.
"""
import logging
from functools import wraps
from typing import Any

import orjson
from aiohttp import web

from ..exceptions import AuthenticationError, PersistenceError, ValidationError
from .auth import PasswordHasher, TokenService
from .store import VaultStore

logger = logging.getLogger("navigator.vault.server")

STORE = web.AppKey("vault_store", VaultStore)
HASHER = web.AppKey("password_hasher", PasswordHasher)
TOKENS = web.AppKey("token_service", TokenService)

USER_ID = web.RequestKey("vault_user_id", str)


def json_response(data: Any, status: int = 200) -> web.Response:
    return web.json_response(
        data, status=status, dumps=lambda obj: orjson.dumps(obj).decode("utf-8")
    )


async def read_json(request: web.Request) -> dict:
    """Parse a JSON object body.

    Raises:
        ValidationError: If the body is not a JSON object.
    """
    try:
        body = orjson.loads(await request.read())
    except orjson.JSONDecodeError as err:
        raise ValidationError("Request body must be valid JSON") from err
    if not isinstance(body, dict):
        raise ValidationError("Request body must be a JSON object")
    return body


def _credentials(body: dict) -> tuple[str, str]:
    username = body.get("username")
    password = body.get("password")
    if not username or not password:
        raise ValidationError("username and password are required")
    if not isinstance(username, str) or not isinstance(password, str):
        raise ValidationError("username and password must be strings")
    return username, password


def login_required(handler):
    """Resolve the bearer token into ``request[USER_ID]``."""
    @wraps(handler)
    async def _wrap(request: web.Request) -> web.StreamResponse:
        header = request.headers.get("Authorization", "")
        token = header[7:] if header.startswith("Bearer ") else None
        if not token:
            raise AuthenticationError("Authentication failed")
        request[USER_ID] = request.app[TOKENS].verify(token)
        return await handler(request)
    return _wrap


async def health(request: web.Request) -> web.Response:
    return json_response({"status": "ok"})


async def register(request: web.Request) -> web.Response:
    username, password = _credentials(await read_json(request))
    password_hash = await request.app[HASHER].hash(password)
    await request.app[STORE].create_user(username, password_hash)
    return json_response({"message": "User registered successfully"}, status=201)


async def login(request: web.Request) -> web.Response:
    username, password = _credentials(await read_json(request))
    user = await request.app[STORE].get_user(username)
    if user is None or not await request.app[HASHER].verify(
        password, user.password_hash
    ):
        logger.info("Failed login for user=%s", username)
        raise AuthenticationError("Invalid username or password")
    token = request.app[TOKENS].issue(user.id)
    logger.info("User logged in: %s", username)
    return json_response({"token": token})


@login_required
async def get_accounts(request: web.Request) -> web.Response:
    encrypted_vault = await request.app[STORE].get_encrypted_vault(
        request[USER_ID]
    )
    return json_response({"encrypted_vault": encrypted_vault})


@login_required
async def save_accounts(request: web.Request) -> web.Response:
    body = await read_json(request)
    encrypted_vault = body.get("encrypted_vault")
    if not isinstance(encrypted_vault, str):
        raise ValidationError("encrypted_vault must be a string")
    user_id = request[USER_ID]
    if not await request.app[STORE].set_encrypted_vault(user_id, encrypted_vault):
        # token outlived its user row
        raise PersistenceError("Unable to store vault")
    logger.info("Vault saved: user=%s size=%d", user_id, len(encrypted_vault))
    return json_response({"message": "Vault updated successfully"})
