import json
from typing import Any, Dict, List, Optional, Tuple

import httpx
import pytest

from raworc_mcp.config import RaworcConfig
from raworc_mcp.core.dispatcher import Dispatcher
from raworc_mcp.core.raworc_client import RaworcClient
from raworc_mcp.tools.catalog import registry

BASE_URL = "http://raworc.test/api/v0"
API_PREFIX = "/api/v0/"


class FakeBackend:
    """Routes requests by (method, path below /api/v0/) and records every call."""

    def __init__(self):
        self.routes: Dict[Tuple[str, str], Any] = {}
        self.requests: List[httpx.Request] = []

    def on(self, method: str, path: str, status: int = 200, json: Any = None, text: Optional[str] = None):
        if text is not None:
            response = (status, {"text": text})
        elif json is not None:
            response = (status, {"json": json})
        else:
            response = (status, {})
        self.routes[(method.upper(), path)] = response
        return self

    def on_call(self, method: str, path: str, handler):
        self.routes[(method.upper(), path)] = handler
        return self

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        if path.startswith(API_PREFIX):
            path = path[len(API_PREFIX):]
        route = self.routes.get((request.method, path))
        if route is None:
            return httpx.Response(404, json={"error": {"message": f"No route for {request.method} {path}"}})
        if callable(route):
            return route(request)
        status, kwargs = route
        return httpx.Response(status, **kwargs)

    @property
    def calls(self) -> List[Tuple[str, str]]:
        return [(r.method, r.url.path[len(API_PREFIX):]) for r in self.requests]

    def body(self, index: int = -1) -> Any:
        content = self.requests[index].content
        return json.loads(content) if content else None


def make_client(backend: FakeBackend, **overrides) -> RaworcClient:
    settings = {"api_url": BASE_URL, "auth_token": "test-token"}
    settings.update(overrides)
    http = httpx.AsyncClient(transport=httpx.MockTransport(backend))
    return RaworcClient(RaworcConfig(**settings), http_client=http)


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def client(backend) -> RaworcClient:
    return make_client(backend)


@pytest.fixture
def dispatcher(client) -> Dispatcher:
    return Dispatcher(registry, client)


def tool_call(name: str, arguments: Optional[Dict[str, Any]] = None, request_id: Any = 1) -> Dict[str, Any]:
    params: Dict[str, Any] = {"name": name}
    if arguments is not None:
        params["arguments"] = arguments
    return {"jsonrpc": "2.0", "id": request_id, "method": "tools/call", "params": params}
