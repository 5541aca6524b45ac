# =============================================================================
# agent/__init__.py
# =============================================================================
# This package contains the example Google ADK agent that drives the MCP
# tools from a chat loop (see main.py).
#
# ARCHITECTURAL ROLE:
#   The agent/ layer is a CLIENT of the MCP server.  It:
#     1. Receives the user's question
#     2. Decides which tools to call (via the LLM)
#     3. Calls them over HTTP through the server's /mcp endpoint
#     4. Explains the results
#
# It imports nothing from core/, tools/ or transport/.  Everything it knows
# about the tools it learns from the server at runtime.
# =============================================================================
