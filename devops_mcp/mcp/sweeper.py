"""
Background expiry of idle MCP sessions.

The session store already purges lazily whenever a session is resolved; this
loop covers quiet periods so idle sessions do not linger until the next request.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from .sessions import SessionStore

logger = logging.getLogger("DevOpsMCP.mcp.sweeper")


class SessionSweeper:
    """Periodically calls :meth:`SessionStore.purge_expired`."""

    def __init__(self, sessions: SessionStore, interval_seconds: float = 60.0) -> None:
        self._sessions = sessions
        self._interval = interval_seconds
        self._running = False
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._running

    async def start(self) -> bool:
        """Start the sweep loop."""
        if self._running:
            return False
        self._running = True
        self._task = asyncio.create_task(self._run_loop(), name="devops-mcp-session-sweeper")
        logger.info("Session sweeper started (interval=%.1fs)", self._interval)
        return True

    async def stop(self) -> bool:
        """Stop the sweep loop."""
        if not self._running:
            return False
        self._running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        logger.info("Session sweeper stopped")
        return True

    def sweep_once(self) -> int:
        return self._sessions.purge_expired()

    async def _run_loop(self) -> None:
        while self._running:
            try:
                await asyncio.sleep(self._interval)
                if not self._running:
                    break
                self.sweep_once()
            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.error("Session sweep loop error: %s", e)
