# =============================================================================
# core/models.py  —  Data Models (the shapes the upstream APIs send back)
# =============================================================================
#
# These dataclasses describe the parts of each upstream payload that the
# tools actually read.  Anything else the APIs send is ignored.
#
# PARSING RULE:
#   Every model has a from_dict() that returns None instead of raising when
#   the payload is not the expected shape.  A malformed payload is treated
#   exactly like a failed request: "data unavailable".
# =============================================================================

from dataclasses import dataclass, field
from typing import Any, Optional, Union

Number = Union[int, float]


def _number(value: Any) -> Number:
    """Accept ints and floats only; bools and strings are malformed."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise TypeError(f"expected a number, got {value!r}")
    return value


# -----------------------------------------------------------------------------
# MarketData — global crypto market snapshot
# -----------------------------------------------------------------------------
@dataclass
class MarketData:
    """Global market figures from the public market-data endpoint."""

    btc_dominance: float               # Percent of total market cap held by BTC
    fear_and_greed_index: Number       # 0 (extreme fear) .. 100 (extreme greed)
    global_market: Number              # Total market cap (USD)
    global_volume: Number              # 24h traded volume (USD)
    updated_at: str                    # ISO timestamp of the snapshot

    @classmethod
    def from_dict(cls, payload: Any) -> Optional["MarketData"]:
        if not isinstance(payload, dict):
            return None
        try:
            return cls(
                btc_dominance=float(_number(payload["btc_dominance"])),
                fear_and_greed_index=_number(payload["fear_and_greed_index"]),
                global_market=_number(payload["global_market"]),
                global_volume=_number(payload["global_volume"]),
                updated_at=str(payload.get("updated_at", "")),
            )
        except (KeyError, TypeError, ValueError):
            return None


# -----------------------------------------------------------------------------
# NewsArticle — one item from the news list
# -----------------------------------------------------------------------------
@dataclass
class NewsArticle:
    id: str
    title: str
    description: str = ""
    owner: str = ""
    link: str = ""
    tickers: list[str] = field(default_factory=list)
    sentiment: str = "Neutral"         # "Positive" | "Negative" | "Neutral"
    posted_at: str = ""

    @classmethod
    def from_dict(cls, payload: Any) -> Optional["NewsArticle"]:
        if not isinstance(payload, dict) or not payload.get("title"):
            return None
        return cls(
            id=str(payload.get("_id", "")),
            title=str(payload["title"]),
            description=str(payload.get("description") or ""),
            owner=str(payload.get("owner") or ""),
            link=str(payload.get("link") or ""),
            tickers=list(payload.get("tickers") or []),
            sentiment=str(payload.get("sentiment") or "Neutral"),
            posted_at=str(payload.get("posted_at") or ""),
        )


# -----------------------------------------------------------------------------
# ExchangeQuote — one vendor's buy/sell rate from the quotes gateway
# -----------------------------------------------------------------------------
@dataclass
class ExchangeQuote:
    provider: str                      # Vendor name, e.g. "moonpay"
    amount: Any                        # Amount received, as the gateway reports it
    rate: Any                          # Exchange rate, as the gateway reports it
    can_process: bool = False          # Whether the vendor can fill the order

    @classmethod
    def from_dict(cls, payload: Any) -> Optional["ExchangeQuote"]:
        if not isinstance(payload, dict) or not payload.get("provider"):
            return None
        return cls(
            provider=str(payload["provider"]),
            amount=payload.get("amount"),
            rate=payload.get("rate"),
            can_process=bool(payload.get("can_process")),
        )
