import sys

from openai_mcp.app import create_server
from openai_mcp.core.exceptions import ConfigurationError
from openai_mcp.core.logger import setup_logger
from openai_mcp.core.tooling_config import ToolingConfigError

logger = setup_logger(__name__)

def main():
    try:
        server = create_server()
        server.run(transport="stdio")
    except (ConfigurationError, ToolingConfigError) as e:
        logger.error(f"Server startup error: {e}")
        sys.exit(1)
    except Exception:
        logger.exception("Server error")
        sys.exit(1)
