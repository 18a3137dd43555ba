"""MCP Server entrypoint for the MySQL schema search server.

This module builds the FastMCP server, wires its lifespan to the shared
application context and registers the tools via the central registry.
"""

import logging
import sys
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastmcp import FastMCP

from common.config.settings import Settings
from common.errors import ConfigError
from common.observability import setup_telemetry
from mcp_server.context import open_app_context
from mcp_server.tools.registry import register_all

logger = logging.getLogger(__name__)

SERVER_NAME = "mcp-mysql"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Send logs to stderr; stdout carries the MCP stdio protocol."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        stream=sys.stderr,
    )


def create_server(settings: Settings) -> FastMCP:
    """Build the FastMCP server bound to ``settings``."""

    @asynccontextmanager
    async def lifespan(app):
        """Own all process resources for the lifetime of the server.

        Startup failures propagate so the server never runs half-initialized.
        """
        async with open_app_context(settings) as context:
            yield context

    mcp = FastMCP(SERVER_NAME, lifespan=lifespan)
    register_all(mcp)
    return mcp


def main() -> None:
    load_dotenv()
    try:
        settings = Settings.from_env()
    except ConfigError as e:
        configure_logging()
        logger.error(f"Startup aborted: {e}")
        sys.exit(1)

    configure_logging(settings.telemetry.log_level)
    setup_telemetry(settings.telemetry.service_name, settings.telemetry.otlp_endpoint)

    mcp = create_server(settings)
    logger.info("event=server_starting name=%s transport=stdio", SERVER_NAME)
    mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
