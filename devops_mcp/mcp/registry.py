from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from devops_mcp.core.types import SchemaNode

logger = logging.getLogger("DevOpsMCP.mcp.registry")

# Handlers take the call's arguments dict and may be sync or async.
ToolHandler = Callable[[Dict[str, Any]], Any]


@dataclass(frozen=True)
class ToolDescriptor:
    """Immutable registration record for a tool."""

    name: str
    description: str
    input_schema: SchemaNode
    handler: ToolHandler = field(compare=False, repr=False)

    def advertise(self) -> Dict[str, Any]:
        """Public ``{name, description, inputSchema}`` shape returned by tools/list."""
        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": self.input_schema,
        }


class ToolRegistry:
    """Tool registry mapping names to descriptors.

    Populated once at startup and read-only afterwards, so lookups need no lock.
    Listing follows registration order.
    """

    def __init__(self) -> None:
        self._tools: Dict[str, ToolDescriptor] = {}

    def register(self, descriptor: ToolDescriptor) -> None:
        if descriptor.name in self._tools:
            logger.warning("Overwriting registered tool '%s'", descriptor.name)
        self._tools[descriptor.name] = descriptor

    def tool(self, name: str, description: str, input_schema: SchemaNode) -> Callable[[ToolHandler], ToolHandler]:
        """Decorator form of :meth:`register`."""

        def decorator(handler: ToolHandler) -> ToolHandler:
            self.register(ToolDescriptor(name, description, input_schema, handler))
            return handler

        return decorator

    def get(self, name: str) -> Optional[ToolDescriptor]:
        return self._tools.get(name)

    def list(self) -> List[Dict[str, Any]]:
        return [descriptor.advertise() for descriptor in self._tools.values()]

    def names(self) -> List[str]:
        return list(self._tools)

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)
