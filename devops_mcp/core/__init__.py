from devops_mcp.core.types import JsonRpcError, JsonRpcRequest, JsonRpcResponse, SchemaNode

__all__ = ["JsonRpcRequest", "JsonRpcResponse", "JsonRpcError", "SchemaNode"]
