# =============================================================================
# core/quotes.py  —  Crypto Buy/Sell Quotes
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   Asks the exchange gateway for buy or sell rates across a set of vendors
#   and renders one block per vendor.
#
# TWO DIFFERENT "NO" ANSWERS:
#   - The gateway call failed        → "❌ Failed to fetch quotes"
#   - The gateway answered, but empty → "No quotes available"
#   fetch_quotes() keeps them apart by returning None vs. an empty list.
# =============================================================================

from typing import Any, Optional

from core.api_client import ApiClient
from core.models import ExchangeQuote

FETCH_FAILED_TEXT = "❌ Failed to fetch quotes"
NO_QUOTES_TEXT = "No quotes available"


async def fetch_quotes(
    client: ApiClient, url: str, request: dict[str, Any]
) -> Optional[list[ExchangeQuote]]:
    """Request rates from the quotes gateway.

    Returns:
        The parsed quotes, an empty list if the gateway had none, or None
        if the call itself failed.
    """
    response = await client.fetch_json(url, method="POST", json=request)
    if response is None:
        return None

    data = response.get("data") if isinstance(response, dict) else None
    if not isinstance(data, list):
        return []

    quotes = (ExchangeQuote.from_dict(item) for item in data)
    return [quote for quote in quotes if quote is not None]


def format_quote(quote: ExchangeQuote) -> str:
    available = "✅ Yes" if quote.can_process else "❌ No"
    return "\n".join([
        f"• {quote.provider.upper()}",
        f"  Amount: {quote.amount}",
        f"  Rate: {quote.rate}",
        f"  Available: {available}",
    ])


def format_quotes(quotes: list[ExchangeQuote], crypto_currency: str, fiat_currency: str) -> str:
    body = "\n\n".join(format_quote(quote) for quote in quotes)
    return f"💱 Crypto Quotes ({crypto_currency}/{fiat_currency})\n\n{body}"


async def quotes_text(client: ApiClient, url: str, request: dict[str, Any]) -> str:
    quotes = await fetch_quotes(client, url, request)
    if quotes is None:
        return FETCH_FAILED_TEXT
    if not quotes:
        return NO_QUOTES_TEXT
    return format_quotes(quotes, request["crypto_currency"], request["fiat_currency"])
