# =============================================================================
# tools/__init__.py
# =============================================================================
# This package exposes the crypto data functions as MCP tools.
#
# ARCHITECTURAL ROLE:
#   tools/ sits between the MCP protocol and core/.  mcp_server.py:
#     1. Declares each tool's input schema through typed parameters
#     2. Calls the matching async function in core/
#     3. Returns exactly one text block per call
#
# WHAT TOOLS DO NOT DO:
#   - They do NOT parse or format upstream data (that's in core/)
#   - They do NOT know about sessions or HTTP (that's transport/)
#   - They do NOT raise on upstream failure; failure is reported as text
#
# TOOL CONTRACTS:
#   The docstring and parameter types are all a model sees before calling
#   a tool, so each one states what it returns and what every argument
#   means.
# =============================================================================
