import logging
from typing import Any, Dict, Optional

from pydantic import ValidationError

from raworc_mcp.core.errors import (
    BackendError,
    InternalError,
    InvalidParamsError,
    InvalidRequestError,
    JsonRpcError,
    MethodNotFoundError,
    backend_failure_result,
    error_response,
    recover_id,
)
from raworc_mcp.core.mcp_types import (
    InitializeResult,
    JsonRpcRequest,
    JsonRpcSuccess,
    ToolCallResult,
    ToolListResult,
)
from raworc_mcp.tools.registry import ToolRegistry
from raworc_mcp.tools.validator import validate_arguments

logger = logging.getLogger(__name__)


class Dispatcher:
    """
    Routes one decoded JSON-RPC message to its handler and builds the reply.

    ``dispatch`` never raises: protocol failures come back as error envelopes,
    backend failures as ``isError`` tool results, and notifications as None.
    """

    def __init__(self, registry: ToolRegistry, client):
        self._registry = registry
        self._client = client
        self._methods = {
            "initialize": self._initialize,
            "ping": self._ping,
            "tools/list": self._list_tools,
            "tools/call": self._call_tool,
        }

    async def dispatch(self, message: Any) -> Optional[Dict[str, Any]]:
        if not isinstance(message, dict):
            return error_response(None, InvalidRequestError("Request must be a JSON object"))

        try:
            request = JsonRpcRequest.model_validate(message)
        except ValidationError as e:
            fields = sorted({str(err["loc"][0]) for err in e.errors() if err.get("loc")})
            return error_response(
                recover_id(message),
                InvalidRequestError("Invalid request", data={"fields": fields} if fields else None),
            )

        try:
            result = await self._route(request)
        except JsonRpcError as e:
            logger.info(f"Request {request.method} failed: {e.message}")
            response = error_response(request.id, e)
        except Exception:
            logger.exception(f"Internal error while handling {request.method}")
            response = error_response(request.id, InternalError("Internal error"))
        else:
            response = JsonRpcSuccess(id=request.id, result=result).to_wire()

        if request.is_notification:
            return None
        return response

    async def _route(self, request: JsonRpcRequest) -> Any:
        handler = self._methods.get(request.method)
        if handler is None:
            if request.is_notification and request.method.startswith("notifications/"):
                # Client notifications need no action
                return None
            raise MethodNotFoundError(f"Method not found: {request.method}")
        return await handler(request.params)

    async def _initialize(self, params) -> Dict[str, Any]:
        if isinstance(params, dict) and params.get("clientInfo"):
            logger.info(f"Client connected: {params.get('clientInfo')}")
        return InitializeResult().model_dump()

    async def _ping(self, params) -> Dict[str, Any]:
        return {}

    async def _list_tools(self, params) -> Dict[str, Any]:
        return ToolListResult(tools=self._registry.get_definitions()).model_dump(exclude_none=True)

    async def _call_tool(self, params) -> Dict[str, Any]:
        if not isinstance(params, dict):
            raise InvalidParamsError("tools/call params must be an object")
        tool_name = params.get("name")
        if not isinstance(tool_name, str) or not tool_name:
            raise InvalidParamsError("missing required parameter: name")
        arguments = params.get("arguments")
        if arguments is None:
            arguments = {}
        if not isinstance(arguments, dict):
            raise InvalidParamsError("tools/call arguments must be an object")

        tool = self._registry.get_tool(tool_name)
        validated = validate_arguments(tool, arguments)

        logger.info(f"Calling tool {tool_name}")
        try:
            result = await tool.handler(self._client, **validated)
        except BackendError as e:
            logger.warning(f"Tool {tool_name} failed against the backend: status={e.status} {e.message}")
            result = backend_failure_result(e)

        if not isinstance(result, ToolCallResult):
            raise InternalError(f"Tool {tool_name} returned an unexpected result")
        return result.to_wire()
