# =============================================================================
# core/__init__.py
# =============================================================================
# This package contains the crypto data logic: configuration, the upstream
# HTTP client, the data models, and one module per data source (market,
# news, quotes, inspiration) that fetches and formats text for the tools.
#
# ARCHITECTURAL RULE:
#   Nothing in this package imports FastMCP, Starlette or Google ADK.
#   Every fetch takes an ApiClient argument, so tests hand in one backed by
#   httpx.MockTransport and never touch the network.
# =============================================================================
