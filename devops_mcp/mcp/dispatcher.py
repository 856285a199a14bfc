"""
JSON-RPC method dispatcher for the DevOps MCP server.

Sessions move one way, from uninitialized to initialized. ``initialize``
promotes explicitly; ``tools/list`` and ``tools/call`` promote as a side
effect. Every failure is converted to a JSON-RPC error envelope here, so
nothing raised by a tool handler reaches the transport.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from typing import Any, Dict, Optional, Tuple

from devops_mcp.core.types import JsonRpcRequest, JsonRpcResponse
from devops_mcp.version import __version__

from .errors import InvalidParamsError, McpError, MethodNotFoundError, ToolNotFoundError, ToolTimeoutError
from .protocol import (
    INTERNAL_ERROR,
    METHOD_INITIALIZE,
    METHOD_TOOLS_CALL,
    METHOD_TOOLS_LIST,
    PROTOCOL_VERSION,
    SERVER_NAME,
)
from .registry import ToolDescriptor, ToolRegistry
from .sessions import Session, SessionStore

logger = logging.getLogger("DevOpsMCP.mcp.dispatcher")


class Dispatcher:
    """Executes the MCP method state machine against an owned registry and session store."""

    def __init__(
        self,
        registry: ToolRegistry,
        sessions: SessionStore,
        *,
        tool_timeout_seconds: Optional[float] = None,
        server_name: str = SERVER_NAME,
        server_version: str = __version__,
    ) -> None:
        self.registry = registry
        self.sessions = sessions
        self.tool_timeout_seconds = tool_timeout_seconds
        self.server_name = server_name
        self.server_version = server_version

    async def dispatch(self, request: JsonRpcRequest, session: Session) -> JsonRpcResponse:
        """Run one request for ``session`` and return its correlated response."""
        method = request.method
        logger.debug("Dispatching %s (id=%r, session=%s)", method, request.id, session.id)
        try:
            if method == METHOD_INITIALIZE:
                result = self.handle_initialize(session)
            elif method == METHOD_TOOLS_LIST:
                result = self.handle_list_tools(session)
            elif method == METHOD_TOOLS_CALL:
                name, arguments = self._tool_call_params(request.params)
                result = await self.call_tool(session, name, arguments)
            else:
                raise MethodNotFoundError(method)
        except McpError as exc:
            logger.info("Request %r (%s) failed: %s", request.id, method, exc)
            return JsonRpcResponse.failure(request.id, exc.code, exc.message)
        except Exception as exc:
            logger.exception("Unexpected error while handling %s (id=%r)", method, request.id)
            return JsonRpcResponse.failure(request.id, INTERNAL_ERROR, str(exc) or "Internal error")
        return JsonRpcResponse.success(request.id, result)

    def handle_initialize(self, session: Session) -> Dict[str, Any]:
        if self.sessions.mark_initialized(session):
            logger.info("Session %s initialized", session.id)
        return {
            "protocolVersion": PROTOCOL_VERSION,
            "capabilities": {
                "tools": {},
            },
            "serverInfo": {"name": self.server_name, "version": self.server_version},
        }

    def handle_list_tools(self, session: Session) -> Dict[str, Any]:
        self._auto_initialize(session)
        return {"tools": self.registry.list()}

    async def call_tool(self, session: Session, name: str, arguments: Optional[Dict[str, Any]] = None) -> Any:
        """Resolve and run a tool for ``session``. Raises :class:`McpError` subclasses."""
        self._auto_initialize(session)
        descriptor = self.registry.get(name)
        if descriptor is None:
            raise ToolNotFoundError(name)
        return await self._invoke(descriptor, arguments if arguments is not None else {})

    # --- Internals ---

    def _auto_initialize(self, session: Session) -> None:
        if self.sessions.mark_initialized(session):
            logger.info("Session %s auto-initialized", session.id)

    @staticmethod
    def _tool_call_params(params: Optional[Dict[str, Any]]) -> Tuple[str, Optional[Dict[str, Any]]]:
        params = params or {}
        name = params.get("name")
        if name is None or name == "":
            raise InvalidParamsError("Invalid params: 'name' is required for tools/call")
        if not isinstance(name, str):
            raise InvalidParamsError("Invalid params: 'name' must be a string")
        arguments = params.get("arguments")
        if arguments is not None and not isinstance(arguments, dict):
            raise InvalidParamsError("Invalid params: 'arguments' must be an object")
        return name, arguments

    async def _invoke(self, descriptor: ToolDescriptor, arguments: Dict[str, Any]) -> Any:
        handler = descriptor.handler

        async def _run() -> Any:
            if inspect.iscoroutinefunction(handler):
                result = await handler(arguments)
            else:
                result = await asyncio.to_thread(handler, arguments)
            if inspect.isawaitable(result):
                result = await result
            return result

        if self.tool_timeout_seconds is None:
            return await _run()

        # Only the budget expiring counts as a timeout; a TimeoutError raised
        # by the handler itself surfaces as an ordinary handler failure.
        task = asyncio.ensure_future(_run())
        try:
            done, _ = await asyncio.wait({task}, timeout=self.tool_timeout_seconds)
        except asyncio.CancelledError:
            task.cancel()
            raise
        if task not in done:
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
            raise ToolTimeoutError(descriptor.name, self.tool_timeout_seconds)
        return task.result()
