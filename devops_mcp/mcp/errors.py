"""
DevOps MCP protocol exceptions.

Every exception carries the JSON-RPC error code it is reported with. Protocol
errors share the generic internal-error code so existing clients keep seeing
the same envelope they always did; argument validation and timeouts get their
own codes.
"""

from __future__ import annotations

from typing import Optional

from .protocol import INTERNAL_ERROR, INVALID_PARAMS, TIMEOUT


class McpError(RuntimeError):
    """Base class for errors surfaced as JSON-RPC error envelopes."""

    code: int = INTERNAL_ERROR

    def __init__(self, message: str, *, code: Optional[int] = None) -> None:
        super().__init__(message)
        if code is not None:
            self.code = code

    @property
    def message(self) -> str:
        return str(self)


class MethodNotFoundError(McpError):
    """Raised for any method outside initialize, tools/list and tools/call."""

    def __init__(self, method: object) -> None:
        super().__init__(f"Unknown method: {method}")
        self.method = method


class InvalidParamsError(McpError):
    """Raised when a request's params are missing something the method needs."""


class ToolNotFoundError(McpError):
    """Raised when tools/call names a tool that is not registered."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Tool {name} not found")
        self.name = name


class ToolArgumentError(McpError):
    """Raised by tool handlers when their arguments fail validation."""

    code = INVALID_PARAMS


class ToolTimeoutError(McpError):
    """Raised when a tool handler exceeds the configured execution budget."""

    code = TIMEOUT

    def __init__(self, name: str, timeout_seconds: float) -> None:
        super().__init__(f"Tool {name} timed out after {timeout_seconds:g}s")
        self.name = name
        self.timeout_seconds = timeout_seconds
