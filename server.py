# =============================================================================
# server.py  —  Entry Point for the ixfi crypto MCP server
# =============================================================================
#
# HOW TO RUN:
#   uv run python server.py
#
# WHAT HAPPENS:
#   1. Loads .env and reads Settings (core/config.py)
#   2. Sends log output to STDERR
#   3. Builds the Starlette app (transport/app.py)
#   4. Serves it with uvicorn on HOST:PORT
#
# ENDPOINTS:
#   POST/GET/DELETE /mcp   MCP streamable HTTP (needs the API key)
#   GET /health            liveness probe
# =============================================================================

import logging
import sys

from dotenv import load_dotenv

# Load .env BEFORE anything reads the environment (tools/ reads settings
# at import time).
load_dotenv()

import uvicorn

from core.config import load_settings
from transport.app import create_app


def configure_logging(level: str) -> None:
    """Send all log records to STDERR in the server's one-line format."""
    logging.basicConfig(
        level=level,
        format="%(asctime)s [MCP] %(message)s",
        datefmt="%H:%M:%S",
        stream=sys.stderr,
    )


def main() -> None:
    settings = load_settings()
    configure_logging(settings.log_level)

    app = create_app(settings)

    logging.info(f"MCP Server running at http://{settings.host}:{settings.port}")
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())


# =============================================================================
# Script entry point
# =============================================================================
if __name__ == "__main__":
    main()
