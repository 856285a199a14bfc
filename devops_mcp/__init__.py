"""
DevOps MCP: Model Context Protocol server for DevOps tools
"""

from devops_mcp.version import __version__

__all__ = ["__version__", "create_app"]


def __getattr__(name):
    if name == "create_app":
        from devops_mcp.server import create_app
        return create_app
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
