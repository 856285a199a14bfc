"""
MCP HTTP Transport — FastAPI Router
===================================
HTTP surface over the MCP dispatcher:

  POST /mcp               — JSON-RPC 2.0 request (initialize, tools/list, tools/call)
                            or the {"action": "call-tool"} convenience body
  GET  /mcp?action=status      — server status
  GET  /mcp?action=list-tools  — registered tools (session must be initialized)
  GET  /mcp?action=new-session — mint a fresh session

The session is correlated through the ``mcp-session-id`` header on every
request/response pair. A caller-supplied id is always adopted, even when the
server has never seen it; a new id is generated only when the header is absent.

JSON-RPC responses are framed as a single Server-Sent Event unless the client
asks for ``application/json`` without also accepting ``text/event-stream``.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import JSONResponse, Response
from pydantic import ValidationError

from devops_mcp.core.types import JsonRpcRequest

from .dispatcher import Dispatcher
from .errors import McpError, ToolArgumentError, ToolNotFoundError, ToolTimeoutError
from .protocol import SESSION_HEADER
from .sessions import generate_session_id

logger = logging.getLogger("DevOpsMCP.mcp.api")

EVENT_STREAM = "text/event-stream"


# ---------------------------------------------------------------------------
# Guards
# ---------------------------------------------------------------------------


def _get_dispatcher(request: Request) -> Dispatcher:
    """Return the app's dispatcher or raise HTTP 503."""
    dispatcher = getattr(request.app.state, "dispatcher", None)
    if dispatcher is None:
        raise HTTPException(
            status_code=503,
            detail="MCP dispatcher is not initialised. Check application factory configuration.",
        )
    return dispatcher


def _session_id_from(request: Request) -> Optional[str]:
    return request.headers.get(SESSION_HEADER) or None


# ---------------------------------------------------------------------------
# Response helpers
# ---------------------------------------------------------------------------


def _error(message: str, status_code: int, session_id: Optional[str] = None) -> JSONResponse:
    headers = {SESSION_HEADER: session_id} if session_id else None
    return JSONResponse({"error": message}, status_code=status_code, headers=headers)


def _wants_event_stream(request: Request) -> bool:
    accept = request.headers.get("accept", "").lower()
    if EVENT_STREAM in accept:
        return True
    return "application/json" not in accept


def encode_event(payload: Dict[str, Any]) -> str:
    """Frame one JSON-RPC message as a Server-Sent Event."""
    return f"event: message\ndata: {json.dumps(payload)}\n\n"


def _rpc_response(request: Request, payload: Dict[str, Any], session_id: str) -> Response:
    if not _wants_event_stream(request):
        return JSONResponse(payload, headers={SESSION_HEADER: session_id})
    return Response(
        content=encode_event(payload),
        media_type=EVENT_STREAM,
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            SESSION_HEADER: session_id,
        },
    )


async def _read_json_body(request: Request) -> Any:
    try:
        return await request.json()
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=f"Parse error: {exc}") from exc


def _parse_rpc_request(body: Dict[str, Any]) -> JsonRpcRequest:
    try:
        rpc_request = JsonRpcRequest.model_validate(body)
    except ValidationError as exc:
        raise HTTPException(
            status_code=400,
            detail=f"Invalid JSON-RPC request: {exc.error_count()} validation error(s)",
        ) from exc
    if rpc_request.id is None and not rpc_request.is_notification:
        raise HTTPException(status_code=400, detail="Invalid JSON-RPC request: 'id' is required")
    return rpc_request


# ---------------------------------------------------------------------------
# Router definition
# ---------------------------------------------------------------------------

mcp_router = APIRouter(tags=["mcp"])


@mcp_router.post("/mcp")
async def post_mcp(request: Request, dispatcher: Dispatcher = Depends(_get_dispatcher)):
    body = await _read_json_body(request)
    if not isinstance(body, dict):
        raise HTTPException(status_code=400, detail="Request body must be a JSON object")

    session_id = _session_id_from(request)

    if "jsonrpc" in body:
        rpc_request = _parse_rpc_request(body)
        if rpc_request.is_notification:
            logger.debug("Acknowledged notification %s", rpc_request.method)
            headers = {SESSION_HEADER: session_id} if session_id else None
            return Response(status_code=202, headers=headers)

        session = dispatcher.sessions.get_or_create(session_id)
        response = await dispatcher.dispatch(rpc_request, session)
        return _rpc_response(request, response.to_wire(), session.id)

    if body.get("action") == "call-tool":
        return await _call_tool_action(dispatcher, body, session_id)

    return _error("Invalid request", 400)


async def _call_tool_action(dispatcher: Dispatcher, body: Dict[str, Any], session_id: Optional[str]) -> JSONResponse:
    tool_name = body.get("toolName")
    arguments = body.get("arguments")
    if not isinstance(tool_name, str) or not tool_name:
        return _error("Missing tool name", 400, session_id)
    if arguments is not None and not isinstance(arguments, dict):
        return _error("Tool arguments must be an object", 400, session_id)

    session = dispatcher.sessions.get_or_create(session_id)
    try:
        result = await dispatcher.call_tool(session, tool_name, arguments or {})
    except ToolNotFoundError as exc:
        return _error(exc.message, 404, session.id)
    except ToolArgumentError as exc:
        return _error(exc.message, 400, session.id)
    except ToolTimeoutError as exc:
        return _error(exc.message, 504, session.id)
    except McpError as exc:
        return _error(exc.message, 400, session.id)
    except Exception:
        logger.exception("Tool %s failed via call-tool action", tool_name)
        return _error("Internal server error", 500, session.id)

    return JSONResponse({"result": result}, headers={SESSION_HEADER: session.id})


@mcp_router.get("/mcp")
async def get_mcp(
    request: Request,
    action: Optional[str] = Query(default=None),
    dispatcher: Dispatcher = Depends(_get_dispatcher),
):
    session_id = _session_id_from(request)

    # Read-only views: they echo an id but never store a session.
    if action == "list-tools":
        session = dispatcher.sessions.get(session_id) if session_id else None
        if session is None or not session.initialized:
            return _error("Session not initialized", 400, session_id or generate_session_id())
        return JSONResponse(
            {"tools": dispatcher.registry.list()},
            headers={SESSION_HEADER: session.id},
        )

    if action == "status":
        return JSONResponse(
            {
                "status": "running",
                "server": dispatcher.server_name,
                "version": dispatcher.server_version,
                "sessions": len(dispatcher.sessions),
                "tools": len(dispatcher.registry),
            },
            headers={SESSION_HEADER: session_id or generate_session_id()},
        )

    if action == "new-session":
        session = dispatcher.sessions.get_or_create()
        return JSONResponse(
            {"sessionId": session.id, "message": "New session created"},
            headers={SESSION_HEADER: session.id},
        )

    return _error("Invalid action", 400)
