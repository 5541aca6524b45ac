# =============================================================================
# transport/__init__.py
# =============================================================================
# This package puts the MCP tools on the network.
#
# ARCHITECTURAL ROLE:
#   transport/ owns everything between an HTTP request and a session's
#   protocol engine:
#     - app.py             → Starlette routes (/mcp, /health), CORS, lifespan
#     - auth.py            → API-key interceptor in front of /mcp
#     - session_router.py  → the session table: resolve, create, reject, expire
#     - engine.py          → one MCP server loop per session
#
# WHAT TRANSPORT DOES NOT DO:
#   - It does NOT know what any tool does (that's tools/ and core/)
#   - It does NOT speak MCP itself (the mcp/fastmcp libraries do)
# =============================================================================
