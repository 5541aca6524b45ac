# =============================================================================
# tools/mcp_server.py  —  FastMCP Tool Server (ALL tools in one place)
# =============================================================================
#
# WHAT THIS FILE DOES:
#   Defines ALL MCP tools that an agent can call.  Each tool is a thin
#   wrapper around a core/ function: it takes validated arguments, calls
#   core/, and returns ONE text block.
#
# HOW IT WORKS (the flow):
#   1. An agent sends "tools/call" over the streamable HTTP transport
#   2. The session router (transport/) hands it to this session's engine
#   3. FastMCP validates the arguments against the signature below
#   4. The function calls core/ logic and returns text
#
# INPUT SCHEMAS:
#   Each parameter's type IS its schema.  The kinds used here are:
#     - str                                → string
#     - Literal[...]                       → enumerated string
#     - Annotated[int, Field(ge=.., le=..)] → number with inclusive range
#     - list[str]                          → array of string
#   Defaults fill in omitted fields.  FastMCP publishes these as JSON Schema
#   and rejects bad arguments before the handler ever runs.
#
# FAILURE CONTRACT:
#   Tools never raise on upstream trouble.  "Could not get data" is returned
#   as ordinary text ("❌ Failed to fetch market data", "No news found"),
#   so the caller always receives a successful tool result.
#
# RUNNING THIS SERVER:
#   The FastMCP instance below is served over HTTP by server.py.  It can
#   also be run on its own over stdio:  python -m tools.mcp_server
# =============================================================================

import json
import logging
from typing import Annotated, Literal, Optional

from fastmcp import FastMCP
from pydantic import Field

from core.api_client import ApiClient
from core.config import load_settings
from core.inspiration import random_quote
from core.market import market_view_text
from core.news import news_text
from core.quotes import quotes_text

# =============================================================================
# Logging helpers
# =============================================================================
# ANSI colours make tool traffic easy to scan in the server console:
#   CYAN for incoming calls, YELLOW for progress, GREEN for responses.
# Output goes through `logging`, which server.py points at STDERR.
# =============================================================================

_CYAN = "\033[36m"     # Requests (tool calls with params)
_GREEN = "\033[32m"    # Responses
_YELLOW = "\033[33m"   # Status/progress messages
_RESET = "\033[0m"     # Reset to default terminal color

logger = logging.getLogger(__name__)


def _log_request(tool_name: str, **params) -> None:
    """Log an incoming tool call with its parameters in CYAN."""
    param_str = ", ".join(f"{k}={v!r}" for k, v in params.items())
    logger.info(f"{_CYAN}{tool_name} called with: {param_str}{_RESET}")


def _log_status(message: str) -> None:
    """Log an intermediate status message in YELLOW."""
    logger.info(f"{_YELLOW}  → {message}{_RESET}")


def _log_response(tool_name: str, text: str) -> str:
    """Log the tool's text response in GREEN, then return it."""
    logger.info(f"{_GREEN}  ← {tool_name} response: {json.dumps(text, ensure_ascii=False)}{_RESET}")
    return text


# =============================================================================
# Shared collaborators
# =============================================================================
# One settings snapshot and one API client for the whole process.  Tests
# swap `api_client` for one backed by httpx.MockTransport.
settings = load_settings()
api_client = ApiClient.from_settings(settings)

# The name becomes the server identity reported in the MCP handshake.
mcp = FastMCP("ixfi-crypto-tools")


# =============================================================================
# TOOL 1: get_global_market
# =============================================================================
MarketView = Literal["summary", "btc_dominance", "fear_and_greed", "market_cap", "volume"]


@mcp.tool()
async def get_global_market(view: MarketView) -> str:
    """Get global crypto market data.

    Args:
        view: Which figure to report.  "summary" returns BTC dominance,
              the Fear & Greed index, total market cap, 24h volume and the
              snapshot time; the other views return a single figure.
    """
    _log_request("get_global_market", view=view)
    text = await market_view_text(api_client, view)
    return _log_response("get_global_market", text)


# =============================================================================
# TOOL 2: get_crypto_news
# =============================================================================
NewsFilter = Literal["all", "positive", "negative", "neutral"]


@mcp.tool()
async def get_crypto_news(
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
    per_page_limit: Annotated[int, Field(ge=1, le=100)] = 10,
    filter_val: NewsFilter = "all",
    coins: Optional[list[str]] = None,
) -> str:
    """Get cryptocurrency news.

    Args:
        start_date: Earliest publish date to include (ISO format).
        end_date: Latest publish date to include (ISO format).
        per_page_limit: Number of headlines to return (1-100).
        filter_val: Sentiment filter.
        coins: Restrict to these tickers (e.g. ["BTC", "ETH"]).

    Returns:
        A numbered list of headlines, or "No news found".
    """
    filters = {
        "start_date": start_date,
        "end_date": end_date,
        "per_page_limit": per_page_limit,
        "filter_val": filter_val,
        "coins": coins,
    }
    _log_request("get_crypto_news", **filters)
    text = await news_text(api_client, filters)
    return _log_response("get_crypto_news", text)


# =============================================================================
# TOOL 3: get_crypto_quotes
# =============================================================================
# This one goes straight to the exchange gateway, not the data API.
@mcp.tool()
async def get_crypto_quotes(
    vendors: list[str],
    crypto_currency: str,
    fiat_currency: str,
    from_amount: str,
    is_buy_sell: Literal["BUY", "SELL"],
    selected_country_code: Annotated[str, Field(min_length=2, max_length=2)],
) -> str:
    """Get crypto buy/sell quotes.

    Args:
        vendors: On-ramp vendors to ask (e.g. ["moonpay", "transak"]).
        crypto_currency: Crypto asset symbol (e.g. "BTC").
        fiat_currency: Fiat currency code (e.g. "USD").
        from_amount: Amount to convert, as a string (e.g. "100").
        is_buy_sell: "BUY" or "SELL".
        selected_country_code: Two-letter country code (e.g. "US").
    """
    request = {
        "vendors": vendors,
        "crypto_currency": crypto_currency,
        "fiat_currency": fiat_currency,
        "from_amount": from_amount,
        "is_buy_sell": is_buy_sell,
        "selected_country_code": selected_country_code,
    }
    _log_request("get_crypto_quotes", **request)
    _log_status(f"Asking quotes gateway at {settings.quotes_url}")
    text = await quotes_text(api_client, settings.quotes_url, request)
    return _log_response("get_crypto_quotes", text)


# =============================================================================
# TOOL 4: get_random_quote
# =============================================================================
@mcp.tool()
def get_random_quote() -> str:
    """Get a random inspirational quote."""
    _log_request("get_random_quote")
    return _log_response("get_random_quote", random_quote())


# =============================================================================
# Server entry point (stdio)
# =============================================================================
# The HTTP server lives in server.py.  Running this module directly serves
# the same tools over stdio for local MCP clients.
# =============================================================================
if __name__ == "__main__":
    mcp.run()
