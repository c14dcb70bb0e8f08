"""Run the vault server: ``python -m navigator_vault.server``."""
import logging

from aiohttp import web

from ..conf import VAULT_LOG_LEVEL, ServerConfig
from .app import create_app


def main() -> None:
    logging.basicConfig(
        level=VAULT_LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    config = ServerConfig.from_env()
    web.run_app(create_app(config), host=config.host, port=config.port)


if __name__ == "__main__":
    main()
