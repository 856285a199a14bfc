"""
DevOps MCP Core Types
---------------------
Pydantic models for the JSON-RPC 2.0 envelopes exchanged with MCP clients.
"""

from typing import Any, Dict, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, StrictFloat, StrictInt, StrictStr

from devops_mcp.mcp.protocol import JSONRPC_VERSION, NOTIFICATION_PREFIX

RequestId = Union[StrictInt, StrictFloat, StrictStr]

# JSON-Schema-like description advertised for each tool; never enforced here.
SchemaNode = Dict[str, Any]


class JsonRpcRequest(BaseModel):
    model_config = ConfigDict(extra="allow")

    jsonrpc: Literal["2.0"]
    method: StrictStr
    id: Optional[RequestId] = None
    params: Optional[Dict[str, Any]] = None

    @property
    def is_notification(self) -> bool:
        return self.id is None and self.method.startswith(NOTIFICATION_PREFIX)


class JsonRpcError(BaseModel):
    code: int
    message: str


class JsonRpcResponse(BaseModel):
    jsonrpc: Literal["2.0"] = JSONRPC_VERSION
    id: Optional[RequestId] = None
    result: Any = None
    error: Optional[JsonRpcError] = None

    @classmethod
    def success(cls, request_id: Optional[RequestId], result: Any) -> "JsonRpcResponse":
        return cls(id=request_id, result=result)

    @classmethod
    def failure(cls, request_id: Optional[RequestId], code: int, message: str) -> "JsonRpcResponse":
        return cls(id=request_id, error=JsonRpcError(code=code, message=message))

    @property
    def is_error(self) -> bool:
        return self.error is not None

    def to_wire(self) -> Dict[str, Any]:
        """Serialize with exactly one of ``result`` / ``error`` present."""
        payload: Dict[str, Any] = {"jsonrpc": self.jsonrpc, "id": self.id}
        if self.error is not None:
            payload["error"] = self.error.model_dump()
        else:
            payload["result"] = self.result
        return payload
