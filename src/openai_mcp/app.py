import os
from contextlib import asynccontextmanager
from typing import Optional

from mcp.server.fastmcp import FastMCP

from openai_mcp.core.logger import setup_logger
from openai_mcp.core.settings import settings
from openai_mcp.core.tooling_config import ToolingConfig, load_tooling_config, tooling_snapshot
from openai_mcp.services.dispatcher import Dispatcher
from openai_mcp.tools.handlers import ToolHandlers
from openai_mcp.tools.registry import build_registry, register_tools

logger = setup_logger(__name__)

SERVER_NAME = "openai-mcp-server"
SANDBOX_API_KEY = "sandbox-api-key"


def create_server(
    api_key: Optional[str] = None,
    *,
    dispatcher: Optional[Dispatcher] = None,
    tooling: Optional[ToolingConfig] = None,
) -> FastMCP:
    """Build the MCP server with one tool per provider capability.

    Raises ConfigurationError when no API key is available; the server must
    not come up without one.
    """
    if tooling is None:
        tooling = (
            load_tooling_config(settings.TOOLING_CONFIG_FILE)
            if settings.TOOLING_CONFIG_FILE
            else ToolingConfig()
        )
    if dispatcher is None:
        dispatcher = Dispatcher(api_key)

    @asynccontextmanager
    async def lifespan(server: FastMCP):
        logger.info(f"Starting {SERVER_NAME} against {dispatcher.base_url}")
        try:
            yield {}
        finally:
            await dispatcher.aclose()
            logger.info(f"{SERVER_NAME} stopped.")

    server = FastMCP(SERVER_NAME, lifespan=lifespan)
    registry = build_registry(ToolHandlers(dispatcher, tooling.tool_name_prefix))
    names = register_tools(server, registry, tooling)
    logger.info(f"Registered {len(names)} tools; tooling={tooling_snapshot(tooling)}")
    return server


def create_sandbox_server() -> FastMCP:
    """Server for inspection/sandbox environments that have no real key."""
    if not os.environ.get("OPENAI_API_KEY"):
        os.environ["OPENAI_API_KEY"] = SANDBOX_API_KEY
    return create_server()
