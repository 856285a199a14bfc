#!/usr/bin/env python3
"""
DevOps MCP Server
=================

Minimal Model Context Protocol server over HTTP:
- Transport: FastAPI router at /mcp (JSON-RPC 2.0, SSE-framed responses)
- Sessions: in-memory store keyed by the mcp-session-id header, TTL expiry
- Tools: registry populated once at startup (devops_capabilities)

Usage:
    devops-mcp-server              # Start server on 0.0.0.0:3002
    devops-mcp-server --port 8000  # Custom port
"""

import argparse
import logging
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI

from devops_mcp.core.config import DevOpsMCPConfig
from devops_mcp.mcp.api import mcp_router
from devops_mcp.mcp.dispatcher import Dispatcher
from devops_mcp.mcp.registry import ToolRegistry
from devops_mcp.mcp.sessions import SessionStore
from devops_mcp.mcp.sweeper import SessionSweeper
from devops_mcp.tools import build_default_registry
from devops_mcp.version import __version__

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

logger = logging.getLogger("DevOpsMCP")


def configure_logging(config: DevOpsMCPConfig) -> None:
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if config.server.log_file:
        handlers.append(logging.FileHandler(config.server.log_file, mode="a"))
    logging.basicConfig(
        level=config.server.log_level.upper(),
        format=LOG_FORMAT,
        handlers=handlers,
    )


def create_app(
    config: Optional[DevOpsMCPConfig] = None,
    registry: Optional[ToolRegistry] = None,
) -> FastAPI:
    """Build the FastAPI app with an explicitly owned registry, session store and dispatcher."""
    config = config or DevOpsMCPConfig.from_env()
    registry = registry if registry is not None else build_default_registry()
    sessions = SessionStore(
        ttl_seconds=config.sessions.ttl_seconds,
        max_retained=config.sessions.max_retained,
    )
    dispatcher = Dispatcher(
        registry,
        sessions,
        tool_timeout_seconds=config.dispatch.tool_timeout_seconds,
    )
    sweeper = SessionSweeper(sessions, interval_seconds=config.sessions.sweep_interval_seconds)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(
            "DevOps MCP Server starting (%d tool(s): %s)",
            len(registry),
            ", ".join(registry.names()),
        )
        await sweeper.start()
        try:
            yield
        finally:
            logger.info("Shutting down DevOps MCP Server...")
            await sweeper.stop()
            logger.info("DevOps MCP Server stopped.")

    app = FastAPI(
        title="DevOps MCP Server",
        description="Model Context Protocol server exposing DevOps tools",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.config = config
    app.state.dispatcher = dispatcher
    app.state.sweeper = sweeper
    app.include_router(mcp_router)

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {"status": "ok"}

    return app


# --- Main ---

def main():
    config = DevOpsMCPConfig.from_env()
    configure_logging(config)

    parser = argparse.ArgumentParser(description="DevOps MCP Server")
    parser.add_argument("--host", default=config.server.host, help="Host to bind to")
    parser.add_argument("--port", type=int, default=config.server.port, help="Port to bind to")
    args = parser.parse_args()

    logger.info("Starting DevOps MCP Server on %s:%d", args.host, args.port)

    uvicorn.run(
        create_app(config),
        host=args.host,
        port=args.port,
        log_level=config.server.log_level,
    )


if __name__ == "__main__":
    main()
