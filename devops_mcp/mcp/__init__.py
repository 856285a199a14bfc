"""
MCP protocol core: tool registry, session store, dispatcher and HTTP transport.
"""
