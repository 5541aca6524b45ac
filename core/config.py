# =============================================================================
# core/config.py  —  Environment-derived configuration
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   Reads every runtime option the server and the example client need from
#   the process environment and freezes them into a single Settings object.
#
# WHERE VALUES COME FROM:
#   The entry points (server.py, main.py) call load_dotenv() first, so a
#   local .env file and real environment variables both work.  This module
#   never touches .env itself; it only reads os.environ.
#
# DEFAULTS:
#   Every option has a default that lets the server start locally with no
#   upstream token at all.  Tools then degrade to "No data found" answers.
# =============================================================================

import logging
import math
import os
from dataclasses import dataclass
from typing import Mapping, Optional

logger = logging.getLogger(__name__)

DEFAULT_QUOTES_URL = "https://api.zen-ex.com/api/front/gateway/get-rates"


@dataclass(frozen=True)
class Settings:
    """Runtime options for the MCP server and its upstream collaborators."""

    # --- Listening socket ---
    port: int = 10000
    host: str = "0.0.0.0"

    # --- Upstream data API ---
    api_base: str = ""                 # e.g. "https://api.ixfi.com/"
    api_token: str = ""                # Bearer token; empty = anonymous
    user_agent: str = "ixfi-app/1.0"
    quotes_url: str = DEFAULT_QUOTES_URL
    upstream_timeout: float = 10.0     # seconds per upstream call

    # --- MCP transport ---
    server_api_key: str = ""           # empty = generate one at startup
    session_idle_timeout: float = 1800.0   # 0 disables idle expiry
    session_sweep_interval: float = 60.0
    json_response: bool = False        # plain JSON bodies instead of SSE

    log_level: str = "INFO"


def _get_int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw, 10)
    except ValueError:
        logger.warning("Ignoring invalid %s=%r, using %s", name, raw, default)
        return default


def _get_float(
    env: Mapping[str, str], name: str, default: float, allow_zero: bool = False
) -> float:
    """Read a finite, positive number of seconds (or 0 when ``allow_zero``)."""
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = float(raw)
    except ValueError:
        value = math.nan
    if not math.isfinite(value) or value < 0 or (value == 0 and not allow_zero):
        logger.warning("Ignoring invalid %s=%r, using %s", name, raw, default)
        return default
    return value


def _get_bool(env: Mapping[str, str], name: str, default: bool) -> bool:
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """Build Settings from the environment.

    Args:
        environ: Mapping to read from.  Defaults to os.environ.

    Returns:
        A frozen Settings instance.
    """
    env = os.environ if environ is None else environ

    return Settings(
        port=_get_int(env, "PORT", 10000),
        host=env.get("HOST") or "0.0.0.0",
        api_base=env.get("BASE_API", ""),
        api_token=env.get("IXFI_API_TOKEN", ""),
        user_agent=env.get("USER_AGENT") or "ixfi-app/1.0",
        quotes_url=env.get("QUOTES_API_URL") or DEFAULT_QUOTES_URL,
        upstream_timeout=_get_float(env, "UPSTREAM_TIMEOUT", 10.0),
        server_api_key=env.get("MCP_SERVER_API_KEY", ""),
        session_idle_timeout=_get_float(env, "MCP_SESSION_IDLE_TIMEOUT", 1800.0, allow_zero=True),
        session_sweep_interval=_get_float(env, "MCP_SESSION_SWEEP_INTERVAL", 60.0),
        json_response=_get_bool(env, "MCP_JSON_RESPONSE", False),
        log_level=(env.get("LOG_LEVEL") or "INFO").upper(),
    )
