# =============================================================================
# main.py  —  Example chat client for the ixfi crypto MCP server
# =============================================================================
#
# HOW TO RUN:
#   uv run python server.py          # in one terminal
#   uv run python main.py            # in another
#
# WHAT HAPPENS:
#   1. Creates the Google ADK agent (agent/crypto_agent.py)
#   2. Opens a conversation session
#   3. Reads your question, lets the agent call MCP tools, prints the answer
#
# COMMANDS:
#   reset        start a new conversation (forget the chat history)
#   exit / quit  leave
#
# THE AGENT LOOP:
#   Each turn may take several LLM calls (ask for a tool, read its result,
#   ask for another...).  RunConfig caps that at MAX_LLM_CALLS per turn so a
#   confused model cannot loop forever.
# =============================================================================

import asyncio

from dotenv import load_dotenv

# Load environment variables from .env (OPENROUTER_API_KEY, MCP_BASE,
# MCP_SERVER_API_KEY, ...) BEFORE the agent reads them.
load_dotenv()

from google.adk.agents.run_config import RunConfig
from google.adk.runners import Runner
from google.adk.sessions import InMemorySessionService
from google.genai import types

from agent.crypto_agent import create_agent, create_mcp_toolset

APP_NAME = "crypto_analyst"
USER_ID = "demo_user"
MAX_LLM_CALLS = 10


async def run_agent():
    """Run the crypto analyst agent interactively."""
    print("=" * 70)
    print("  CRYPTO ANALYST AGENT")
    print("  Powered by Google ADK + LiteLlm + MCP (streamable HTTP)")
    print("=" * 70)
    print("\n🔧 Initializing agent...")

    toolset = create_mcp_toolset()
    agent = create_agent(toolset)

    session_service = InMemorySessionService()
    runner = Runner(agent=agent, app_name=APP_NAME, session_service=session_service)
    session = await session_service.create_session(app_name=APP_NAME, user_id=USER_ID)
    run_config = RunConfig(max_llm_calls=MAX_LLM_CALLS)

    print("✅ Agent initialized and ready!\n")
    print("💬 Ask about the crypto market, news or buy/sell quotes.")
    print("   (Type 'reset' for a new conversation, 'quit' to exit)\n")
    print("-" * 70)

    try:
        while True:
            try:
                user_input = input("\n🧑 You: ").strip()
            except (EOFError, KeyboardInterrupt):
                print("\n\n👋 Goodbye!")
                break

            if user_input.lower() in ("quit", "exit", "q"):
                print("\n👋 Goodbye!")
                break

            if not user_input:
                continue

            if user_input.lower() == "reset":
                session = await session_service.create_session(
                    app_name=APP_NAME, user_id=USER_ID
                )
                print("\n🔄 Session reset. Starting a new conversation.")
                continue

            user_message = types.Content(role="user", parts=[types.Part(text=user_input)])

            print("\n🤖 Agent is thinking...\n")
            print("-" * 70)

            final_response = ""
            async for event in runner.run_async(
                user_id=USER_ID,
                session_id=session.id,
                new_message=user_message,
                run_config=run_config,
            ):
                if event.content and event.content.parts:
                    for part in event.content.parts:
                        if getattr(part, "text", None):
                            final_response = part.text
                        if getattr(part, "function_call", None):
                            print(f"  🔧 Calling tool: {part.function_call.name}")

            print("-" * 70)
            if final_response:
                print(f"\n🤖 Agent:\n\n{final_response}")
            else:
                print("\n⚠️  No response generated. The agent may have encountered an error.")

            print("\n" + "=" * 70)
    finally:
        # Ends the MCP session on the server (DELETE /mcp).
        await toolset.close()


if __name__ == "__main__":
    asyncio.run(run_agent())
