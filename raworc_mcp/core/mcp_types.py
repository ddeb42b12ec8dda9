from typing import Any, Dict, List, Optional, Union
from pydantic import BaseModel, ConfigDict, Field, StrictInt, StrictStr

JSONRPC_VERSION = "2.0"
MCP_PROTOCOL_VERSION = "2024-11-05"
SERVER_NAME = "raworc-mcp"
SERVER_VERSION = "0.4.0"

RequestId = Optional[Union[StrictInt, StrictStr]]


class JsonRpcRequest(BaseModel):
    jsonrpc: str = Field(..., pattern=r"^2\.0$")
    method: str = Field(..., min_length=1)
    params: Optional[Union[Dict[str, Any], List[Any]]] = None
    id: RequestId = None

    @property
    def is_notification(self) -> bool:
        return self.id is None


class McpError(BaseModel):
    code: int
    message: str
    data: Optional[Dict[str, Any]] = None


class JsonRpcSuccess(BaseModel):
    jsonrpc: str = JSONRPC_VERSION
    id: RequestId = None
    result: Any

    def to_wire(self) -> Dict[str, Any]:
        return {"jsonrpc": self.jsonrpc, "id": self.id, "result": self.result}


class JsonRpcErrorResponse(BaseModel):
    jsonrpc: str = JSONRPC_VERSION
    id: RequestId = None
    error: McpError

    def to_wire(self) -> Dict[str, Any]:
        return {
            "jsonrpc": self.jsonrpc,
            "id": self.id,
            "error": self.error.model_dump(exclude_none=True),
        }


JsonRpcResponse = Union[JsonRpcSuccess, JsonRpcErrorResponse]


class ToolInputSchema(BaseModel):
    type: str = "object"
    properties: Dict[str, Any]
    required: Optional[List[str]] = None


class ToolDefinition(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    description: Optional[str] = None
    inputSchema: ToolInputSchema


class ToolListResult(BaseModel):
    tools: List[ToolDefinition]


class TextContent(BaseModel):
    type: str = "text"
    text: str


class ToolCallResult(BaseModel):
    content: List[TextContent] = Field(..., min_length=1)
    isError: Optional[bool] = None

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True)


class ServerInfo(BaseModel):
    name: str = SERVER_NAME
    version: str = SERVER_VERSION


class InitializeResult(BaseModel):
    protocolVersion: str = MCP_PROTOCOL_VERSION
    capabilities: Dict[str, Any] = Field(default_factory=lambda: {"tools": {"listChanged": False}})
    serverInfo: ServerInfo = Field(default_factory=ServerInfo)
