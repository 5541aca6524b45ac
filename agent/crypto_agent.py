# =============================================================================
# agent/crypto_agent.py  —  Google ADK Agent Configuration
# =============================================================================
#
# WHAT THIS FILE DOES:
#   Configures the ADK agent that chats with the user and calls the crypto
#   tools on the MCP server over streamable HTTP.
#
# HOW IT WORKS (simplified):
#
#   ┌─────────────────────────────┐        ┌──────────────────────────┐
#   │  Google ADK Agent            │  HTTP  │  server.py               │
#   │  system prompt + LiteLlm     │──────▶│  POST /mcp               │
#   │  MCPToolset (streamable HTTP)│◀──────│  mcp-session-id header   │
#   └─────────────────────────────┘        └──────────────────────────┘
#
#   The toolset performs the MCP handshake once, keeps the session id the
#   server hands back, and sends it with every later tool call.
#
# CONFIGURATION (environment):
#   MCP_BASE             URL of the /mcp endpoint (default localhost:10000)
#   MCP_SERVER_API_KEY   key the server expects in x-api-key
#   AGENT_MODEL          LiteLlm model string (default GPT-4o via OpenRouter)
# =============================================================================

import os

from google.adk.agents import Agent
from google.adk.models.lite_llm import LiteLlm
from google.adk.tools.mcp_tool import MCPToolset, StreamableHTTPConnectionParams

from agent.prompt import get_crypto_analyst_prompt

DEFAULT_MCP_BASE = "http://localhost:10000/mcp"
DEFAULT_MODEL = "openrouter/openai/gpt-4o"


def create_mcp_toolset() -> MCPToolset:
    """Connect to the MCP server's /mcp endpoint."""
    headers = {}
    api_key = os.environ.get("MCP_SERVER_API_KEY")
    if api_key:
        headers["x-api-key"] = api_key

    return MCPToolset(
        connection_params=StreamableHTTPConnectionParams(
            url=os.environ.get("MCP_BASE", DEFAULT_MCP_BASE),
            headers=headers,
        ),
    )


def create_agent(toolset: MCPToolset | None = None) -> Agent:
    """Create the crypto analyst agent.

    The agent has no data access of its own: it has a prompt, a model
    (any LiteLlm model string, read from AGENT_MODEL), and the MCP tools.

    Args:
        toolset: MCP toolset to use.  Defaults to a fresh create_mcp_toolset().

    Returns:
        A configured Google ADK Agent instance.
    """
    return Agent(
        name="crypto_analyst",
        model=LiteLlm(model=os.environ.get("AGENT_MODEL", DEFAULT_MODEL)),
        instruction=get_crypto_analyst_prompt(),
        tools=[toolset if toolset is not None else create_mcp_toolset()],
    )
