"""
DevOps MCP Protocol Constants
"""

PROTOCOL_VERSION = "2024-11-05"
JSONRPC_VERSION = "2.0"

SERVER_NAME = "devops-mcp-server"

# Out-of-band session correlation header
SESSION_HEADER = "mcp-session-id"

# Methods served by the dispatcher
METHOD_INITIALIZE = "initialize"
METHOD_TOOLS_LIST = "tools/list"
METHOD_TOOLS_CALL = "tools/call"
NOTIFICATION_PREFIX = "notifications/"

# Standard JSON-RPC Error Codes
PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603

# Server Specific Error Codes
TIMEOUT = -32002
