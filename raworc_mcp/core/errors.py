"""
Error taxonomy for the MCP server and the mapping of every failure onto the
wire.

Protocol failures (parse, invalid request, unknown method or tool, invalid
params, internal) are ``JsonRpcError`` subclasses and become JSON-RPC error
envelopes. Backend failures are ``BackendError`` subclasses and become a
normal ``tools/call`` result flagged with ``isError``.
"""
import json
import re
from enum import IntEnum
from typing import Any, Dict, Optional

from raworc_mcp.core.mcp_types import (
    JsonRpcErrorResponse,
    McpError,
    RequestId,
    TextContent,
    ToolCallResult,
)

MAX_BACKEND_MESSAGE = 500

_ID_PATTERN = re.compile(r'"id"\s*:\s*(-?\d+|"(?:[^"\\]|\\.)*")')


class ErrorCode(IntEnum):
    PARSE_ERROR = -32700
    INVALID_REQUEST = -32600
    METHOD_NOT_FOUND = -32601
    INVALID_PARAMS = -32602
    INTERNAL_ERROR = -32603
    # -32000..-32099 is reserved for backend-originated failures
    BACKEND_ERROR = -32000
    BACKEND_UNAUTHORIZED = -32001
    BACKEND_NOT_FOUND = -32002
    BACKEND_TIMEOUT = -32003
    BACKEND_UNAVAILABLE = -32004


class ConfigError(Exception):
    """Invalid startup configuration."""


class JsonRpcError(Exception):
    code = ErrorCode.INTERNAL_ERROR

    def __init__(self, message, data=None, code=None):
        super().__init__(message)
        if code is not None:
            self.code = code
        self.message = message
        self.data = data

    def to_dict(self):
        error = {"code": int(self.code), "message": self.message}
        if self.data:
            error["data"] = self.data
        return error

    def to_mcp_error(self) -> McpError:
        return McpError(**self.to_dict())


class ParseError(JsonRpcError):
    code = ErrorCode.PARSE_ERROR


class InvalidRequestError(JsonRpcError):
    code = ErrorCode.INVALID_REQUEST


class MethodNotFoundError(JsonRpcError):
    code = ErrorCode.METHOD_NOT_FOUND


class UnknownToolError(MethodNotFoundError):
    def __init__(self, name):
        super().__init__(f"unknown tool: {name}", data={"tool": name})
        self.name = name


class InvalidParamsError(JsonRpcError):
    code = ErrorCode.INVALID_PARAMS


class ValidationFailure(InvalidParamsError):
    """An argument failed the tool's declared schema."""

    def __init__(self, parameter: str, expected: str, message: str):
        super().__init__(message, data={"parameter": parameter, "expected": expected})
        self.parameter = parameter
        self.expected = expected

    @classmethod
    def missing(cls, parameter: str, expected: str) -> "ValidationFailure":
        return cls(parameter, expected, f"missing required parameter: {parameter}")

    @classmethod
    def wrong_type(cls, parameter: str, expected: str) -> "ValidationFailure":
        return cls(parameter, expected, f"invalid type for parameter: {parameter} (expected {expected})")

    @classmethod
    def wrong_value(cls, parameter: str, expected: str) -> "ValidationFailure":
        return cls(parameter, expected, f"invalid value for parameter: {parameter} (expected {expected})")


class InternalError(JsonRpcError):
    code = ErrorCode.INTERNAL_ERROR


class BackendError(Exception):
    """The Raworc API answered with a non-success status or could not be reached."""

    code = ErrorCode.BACKEND_ERROR

    def __init__(self, status: Optional[int], message: str):
        message = _truncate(message.strip()) or "Unknown error"
        super().__init__(message)
        self.status = status
        self.message = message

    def to_dict(self) -> Dict[str, Any]:
        error: Dict[str, Any] = {"code": int(self.code), "message": self.message}
        if self.status is not None:
            error["status"] = self.status
        return error


class BackendUnauthorizedError(BackendError):
    code = ErrorCode.BACKEND_UNAUTHORIZED


class BackendNotFoundError(BackendError):
    code = ErrorCode.BACKEND_NOT_FOUND


class BackendTimeoutError(BackendError):
    code = ErrorCode.BACKEND_TIMEOUT


class BackendUnavailableError(BackendError):
    code = ErrorCode.BACKEND_UNAVAILABLE


def backend_error_for_status(status: int, message: str) -> BackendError:
    if status in (401, 403):
        return BackendUnauthorizedError(status, message)
    if status == 404:
        return BackendNotFoundError(status, message)
    return BackendError(status, message)


def backend_failure_result(exc: BackendError) -> ToolCallResult:
    """Render a backend failure as a tool-level error, not a protocol error."""
    text = json.dumps({"error": exc.to_dict()}, ensure_ascii=False)
    return ToolCallResult(content=[TextContent(text=text)], isError=True)


def error_response(request_id: RequestId, exc: JsonRpcError) -> Dict[str, Any]:
    return JsonRpcErrorResponse(id=request_id, error=exc.to_mcp_error()).to_wire()


def recover_id(raw: Any) -> RequestId:
    """Best-effort id extraction from a message that could not be used as a request."""
    if isinstance(raw, dict):
        value = raw.get("id")
        if isinstance(value, (int, str)) and not isinstance(value, bool):
            return value
        return None
    if isinstance(raw, bytes):
        raw = raw.decode("utf-8", errors="replace")
    if isinstance(raw, str):
        match = _ID_PATTERN.search(raw)
        if match:
            token = match.group(1)
            try:
                return json.loads(token)
            except ValueError:
                return None
    return None


def _truncate(message: str) -> str:
    if len(message) <= MAX_BACKEND_MESSAGE:
        return message
    return message[:MAX_BACKEND_MESSAGE] + "..."
