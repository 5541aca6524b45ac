# =============================================================================
# core/market.py  —  Global Market Data & Formatting
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   Fetches the global crypto market snapshot from the upstream API and
#   renders it as one of five text "views" an agent can ask for.
#
# THE SEPARATION OF "FETCH" AND "FORMAT":
#   - fetch_global_market() talks to the API client
#   - format_market_view() is a pure function over MarketData
#   The formatter can be tested without any network at all.
# =============================================================================

from datetime import datetime, timezone
from email.utils import format_datetime
from typing import Optional

from core.api_client import ApiClient
from core.models import MarketData, Number

MARKET_DATA_PATH = "api/public-api/get-global-market-data"

MARKET_VIEWS = ("summary", "btc_dominance", "fear_and_greed", "market_cap", "volume")

FETCH_FAILED_TEXT = "❌ Failed to fetch market data"


async def fetch_global_market(client: ApiClient) -> Optional[MarketData]:
    """Fetch the current global market snapshot, or None if unavailable."""
    response = await client.request(MARKET_DATA_PATH)
    if not isinstance(response, dict):
        return None
    return MarketData.from_dict(response.get("data"))


def format_grouped(value: Number) -> str:
    """Render a number with thousands separators (e.g. 2,450,000,000,000)."""
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    if isinstance(value, int):
        return f"{value:,}"
    # At most three fractional digits, trailing zeros trimmed.
    return f"{value:,.3f}".rstrip("0").rstrip(".")


def format_updated_at(raw: str) -> str:
    """Render an ISO timestamp as an RFC 1123 UTC string.

    Unparseable timestamps are returned unchanged.
    """
    try:
        parsed = datetime.fromisoformat(raw.replace("Z", "+00:00"))
    except ValueError:
        return raw
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return format_datetime(parsed.astimezone(timezone.utc), usegmt=True)


def format_market_view(data: MarketData, view: str = "summary") -> str:
    """Render one view of the market snapshot.

    Unknown views fall back to the full summary.
    """
    if view == "btc_dominance":
        return f"🟠 BTC Dominance: {data.btc_dominance:.2f}%"

    if view == "fear_and_greed":
        return f"😨 Fear & Greed Index: {data.fear_and_greed_index}"

    if view == "market_cap":
        return f"🌍 Market Cap: ${format_grouped(data.global_market)}"

    if view == "volume":
        return f"📊 24h Volume: ${format_grouped(data.global_volume)}"

    return "\n".join([
        "🌍 Global Crypto Market Summary",
        "",
        f"BTC Dominance: {data.btc_dominance:.2f}%",
        f"Fear & Greed Index: {data.fear_and_greed_index}",
        f"Market Cap: ${format_grouped(data.global_market)}",
        f"24h Volume: ${format_grouped(data.global_volume)}",
        f"Updated: {format_updated_at(data.updated_at)}",
    ])


async def market_view_text(client: ApiClient, view: str = "summary") -> str:
    """Fetch and render a market view; a failed fetch becomes explanatory text."""
    data = await fetch_global_market(client)
    if data is None:
        return FETCH_FAILED_TEXT
    return format_market_view(data, view)
