import json

import httpx
import pytest

from conftest import BASE_URL, FakeBackend, make_client
from raworc_mcp.config import RaworcConfig
from raworc_mcp.core.errors import (
    BackendError,
    BackendNotFoundError,
    BackendTimeoutError,
    BackendUnauthorizedError,
    BackendUnavailableError,
    ErrorCode,
)
from raworc_mcp.core.raworc_client import RaworcClient


@pytest.mark.asyncio
async def test_bearer_token_and_base_path(backend, client):
    backend.on("GET", "spaces", json=[{"name": "default"}])

    spaces = await client.get("spaces")

    request = backend.requests[0]
    assert spaces == [{"name": "default"}]
    assert str(request.url) == f"{BASE_URL}/spaces"
    assert request.headers["Authorization"] == "Bearer test-token"


@pytest.mark.asyncio
async def test_trailing_slash_in_base_url_is_tolerated(backend):
    client = make_client(backend, api_url=BASE_URL + "/")
    backend.on("GET", "version", json={"version": "1"})

    await client.get("/version")

    assert str(backend.requests[0].url) == f"{BASE_URL}/version"


@pytest.mark.asyncio
async def test_lazy_login_with_credentials(backend):
    client = make_client(backend, auth_token=None, username="alice", password="pw")
    backend.on("POST", "auth/login", json={"token": "fresh", "token_type": "Bearer"})
    backend.on("GET", "spaces", json=[])

    await client.get("spaces")
    await client.get("spaces")

    assert backend.calls == [("POST", "auth/login"), ("GET", "spaces"), ("GET", "spaces")]
    assert backend.body(0) == {"user": "alice", "pass": "pw"}
    assert "Authorization" not in backend.requests[0].headers
    assert backend.requests[1].headers["Authorization"] == "Bearer fresh"


@pytest.mark.asyncio
async def test_reauth_once_on_401(backend):
    client = make_client(backend, auth_token="stale", username="alice", password="pw")
    backend.on("POST", "auth/login", json={"token": "fresh"})

    def spaces(request):
        if request.headers["Authorization"] == "Bearer fresh":
            return httpx.Response(200, json=[])
        return httpx.Response(401, json={"error": {"message": "expired"}})

    backend.on_call("GET", "spaces", spaces)

    assert await client.get("spaces") == []
    assert backend.calls == [("GET", "spaces"), ("POST", "auth/login"), ("GET", "spaces")]


@pytest.mark.asyncio
async def test_401_without_credentials_is_not_retried(backend, client):
    backend.on("GET", "spaces", status=401, text="Unauthorized")

    with pytest.raises(BackendUnauthorizedError) as exc_info:
        await client.get("spaces")

    assert exc_info.value.status == 401
    assert exc_info.value.message == "Unauthorized"
    assert len(backend.requests) == 1


@pytest.mark.asyncio
async def test_failed_login_surfaces_backend_error(backend):
    client = make_client(backend, auth_token=None, username="alice", password="bad")
    backend.on("POST", "auth/login", status=401, json={"error": {"message": "invalid credentials"}})

    with pytest.raises(BackendUnauthorizedError, match="invalid credentials"):
        await client.get("spaces")


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "status,payload,expected_type,expected_message",
    [
        (404, {"error": {"message": "session not found"}}, BackendNotFoundError, "session not found"),
        (403, {"message": "forbidden"}, BackendUnauthorizedError, "forbidden"),
        (500, {"error": "boom"}, BackendError, "boom"),
        (422, {"detail": "x"}, BackendError, '{"detail": "x"}'),
    ],
)
async def test_error_message_extraction(backend, client, status, payload, expected_type, expected_message):
    backend.on_call("GET", "thing", lambda request: httpx.Response(status, content=json.dumps(payload)))

    with pytest.raises(expected_type) as exc_info:
        await client.get("thing")

    assert type(exc_info.value) is expected_type
    assert exc_info.value.status == status
    assert exc_info.value.message == expected_message


@pytest.mark.asyncio
async def test_long_backend_messages_are_truncated(backend, client):
    backend.on("GET", "thing", status=500, text="x" * 2000)

    with pytest.raises(BackendError) as exc_info:
        await client.get("thing")

    assert len(exc_info.value.message) < 600


@pytest.mark.asyncio
async def test_timeout_is_a_backend_failure(backend, client):
    def slow(request):
        raise httpx.ReadTimeout("timed out", request=request)

    backend.on_call("GET", "health", slow)

    with pytest.raises(BackendTimeoutError) as exc_info:
        await client.get("health", text=True)

    assert exc_info.value.code == ErrorCode.BACKEND_TIMEOUT
    assert exc_info.value.status is None


@pytest.mark.asyncio
async def test_connection_error_hides_transport_detail(backend, client):
    def refuse(request):
        raise httpx.ConnectError("[Errno 111] Connection refused to 10.0.0.7", request=request)

    backend.on_call("GET", "health", refuse)

    with pytest.raises(BackendUnavailableError) as exc_info:
        await client.get("health", text=True)

    assert "10.0.0.7" not in exc_info.value.message


@pytest.mark.asyncio
async def test_empty_and_non_json_bodies(backend, client):
    backend.on("DELETE", "spaces/x", status=204)
    backend.on("GET", "health", text="healthy")

    assert await client.delete("spaces/x") is None
    assert await client.get("health") == "healthy"


def test_space_fallback():
    http = httpx.AsyncClient(transport=httpx.MockTransport(FakeBackend()))
    client = RaworcClient(RaworcConfig(default_space="team"), http_client=http)

    assert client.space(None) == "team"
    assert client.space("") == "team"
    assert client.space("lab") == "lab"
