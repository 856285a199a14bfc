"""
DevOps MCP Configuration
------------------------
Centralized configuration for the MCP server, session store and dispatcher.
Loads from environment variables; invalid values are logged and replaced by
their defaults.
"""

import logging
import os
from typing import Optional

from pydantic import BaseModel, Field

logger = logging.getLogger("DevOpsMCP.Config")

DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 3002
DEFAULT_SESSION_TTL_SECONDS = 3600.0
DEFAULT_SESSION_MAX_RETAINED = 10000
DEFAULT_SWEEP_INTERVAL_SECONDS = 60.0
DEFAULT_TOOL_TIMEOUT_SECONDS = 30.0
SUPPORTED_LOG_LEVELS = ("critical", "error", "warning", "info", "debug")


def _env_float(name: str, default: float, *, min_value: float) -> float:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = float(raw)
    except ValueError:
        logger.warning("Ignoring invalid %s=%r (expected float)", name, raw)
        return default
    if value < min_value:
        logger.warning(
            "Ignoring %s=%r because it is below minimum %.3f",
            name,
            raw,
            min_value,
        )
        return default
    return value


def _env_int(name: str, default: int, *, min_value: int) -> int:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning("Ignoring invalid %s=%r (expected integer)", name, raw)
        return default
    if value < min_value:
        logger.warning("Ignoring %s=%r because it is below minimum %d", name, raw, min_value)
        return default
    return value


def _normalize_log_level(raw: Optional[str]) -> str:
    candidate = (raw or "").strip().lower()
    if candidate in SUPPORTED_LOG_LEVELS:
        return candidate
    if candidate:
        logger.warning(
            "Unsupported log level '%s'; expected one of %s. Falling back to 'info'.",
            candidate,
            SUPPORTED_LOG_LEVELS,
        )
    return "info"


class ServerConfig(BaseModel):
    """FastAPI server configuration."""
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    log_level: str = "info"
    log_file: Optional[str] = None


class SessionConfig(BaseModel):
    """Session store expiry policy."""
    ttl_seconds: float = DEFAULT_SESSION_TTL_SECONDS
    max_retained: int = DEFAULT_SESSION_MAX_RETAINED
    sweep_interval_seconds: float = DEFAULT_SWEEP_INTERVAL_SECONDS


class DispatchConfig(BaseModel):
    """Protocol dispatcher configuration."""
    # None disables the per-call bound.
    tool_timeout_seconds: Optional[float] = DEFAULT_TOOL_TIMEOUT_SECONDS


class DevOpsMCPConfig(BaseModel):
    """Root configuration for the DevOps MCP server."""
    server: ServerConfig = Field(default_factory=ServerConfig)
    sessions: SessionConfig = Field(default_factory=SessionConfig)
    dispatch: DispatchConfig = Field(default_factory=DispatchConfig)

    @classmethod
    def from_env(cls) -> "DevOpsMCPConfig":
        """
        Load configuration from environment variables.

        Environment variables override defaults:
        - DEVOPS_MCP_HOST / DEVOPS_MCP_PORT: Server binding
        - DEVOPS_MCP_LOG_LEVEL / DEVOPS_MCP_LOG_FILE: Logging
        - DEVOPS_MCP_SESSION_TTL_SEC: Idle seconds before a session is evicted
        - DEVOPS_MCP_SESSION_MAX_RETAINED: Upper bound on stored sessions
        - DEVOPS_MCP_SESSION_SWEEP_INTERVAL_SEC: Background purge cadence
        - DEVOPS_MCP_TOOL_TIMEOUT_SEC: Per tools/call budget (0 disables)
        """
        log_file = os.environ.get("DEVOPS_MCP_LOG_FILE", "").strip() or None
        tool_timeout = _env_float(
            "DEVOPS_MCP_TOOL_TIMEOUT_SEC",
            DEFAULT_TOOL_TIMEOUT_SECONDS,
            min_value=0.0,
        )

        return cls(
            server=ServerConfig(
                host=os.environ.get("DEVOPS_MCP_HOST", DEFAULT_HOST),
                port=_env_int("DEVOPS_MCP_PORT", DEFAULT_PORT, min_value=1),
                log_level=_normalize_log_level(os.environ.get("DEVOPS_MCP_LOG_LEVEL")),
                log_file=log_file,
            ),
            sessions=SessionConfig(
                ttl_seconds=_env_float(
                    "DEVOPS_MCP_SESSION_TTL_SEC",
                    DEFAULT_SESSION_TTL_SECONDS,
                    min_value=1.0,
                ),
                max_retained=_env_int(
                    "DEVOPS_MCP_SESSION_MAX_RETAINED",
                    DEFAULT_SESSION_MAX_RETAINED,
                    min_value=1,
                ),
                sweep_interval_seconds=_env_float(
                    "DEVOPS_MCP_SESSION_SWEEP_INTERVAL_SEC",
                    DEFAULT_SWEEP_INTERVAL_SECONDS,
                    min_value=1.0,
                ),
            ),
            dispatch=DispatchConfig(
                tool_timeout_seconds=tool_timeout if tool_timeout > 0 else None,
            ),
        )
