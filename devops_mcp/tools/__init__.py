"""
Built-in tools and the default registry factory.
"""

from devops_mcp.mcp.registry import ToolDescriptor, ToolRegistry
from devops_mcp.tools.devops import DEVOPS_CAPABILITIES_SCHEMA, devops_capabilities


def build_default_registry() -> ToolRegistry:
    registry = ToolRegistry()
    registry.register(
        ToolDescriptor(
            name="devops_capabilities",
            description="Get DevOps Capabilities",
            input_schema=DEVOPS_CAPABILITIES_SCHEMA,
            handler=devops_capabilities,
        )
    )
    return registry


__all__ = ["build_default_registry"]
