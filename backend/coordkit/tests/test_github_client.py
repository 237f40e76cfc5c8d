"""
Test suite for the aiohttp GitHub client against a local aiohttp server
"""

import asyncio
import contextlib
from typing import Any, Dict, List, Optional

import pytest
from aiohttp import web
from aiohttp import test_utils

from coordkit.domains.common.errors import ExternalServiceError
from coordkit.domains.geojson.services.github_client import DEVICE_GRANT_TYPE, GitHubClient


@contextlib.asynccontextmanager
async def github_stub(
    gist_status: int = 201,
    token_status: int = 200,
    token_body: Optional[Dict[str, Any]] = None,
    device_status: int = 200,
    user_status: int = 200,
    delay: float = 0.0,
):
    """本地 GitHub 替身伺服器，記錄收到的請求"""
    seen: List[Dict[str, Any]] = []

    async def _record(request: web.Request) -> Dict[str, Any]:
        body = await request.json() if request.can_read_body else None
        seen.append(
            {
                "path": request.path,
                "body": body,
                "authorization": request.headers.get("Authorization"),
                "user_agent": request.headers.get("User-Agent"),
            }
        )
        if delay:
            await asyncio.sleep(delay)
        return body

    async def device_code(request):
        await _record(request)
        return web.json_response(
            {
                "device_code": "dev-123",
                "user_code": "ABCD-1234",
                "verification_uri": "https://github.com/login/device",
                "expires_in": 900,
                "interval": 5,
            },
            status=device_status,
        )

    async def access_token(request):
        await _record(request)
        return web.json_response(
            token_body or {"error": "authorization_pending"}, status=token_status
        )

    async def user(request):
        await _record(request)
        return web.json_response({"login": "octocat", "avatar_url": "https://a/o.png"}, status=user_status)

    async def gists(request):
        await _record(request)
        if gist_status >= 400:
            return web.json_response({"message": "nope"}, status=gist_status)
        return web.json_response(
            {"id": "abc123", "owner": {"login": "octocat"}}, status=gist_status
        )

    app = web.Application()
    app.router.add_post("/login/device/code", device_code)
    app.router.add_post("/login/oauth/access_token", access_token)
    app.router.add_get("/api/user", user)
    app.router.add_post("/api/gists", gists)

    server = test_utils.TestServer(app)
    await server.start_server()
    base = f"http://{server.host}:{server.port}"
    try:
        yield base, seen
    finally:
        await server.close()


def _client(base: str, timeout: float = 5.0) -> GitHubClient:
    return GitHubClient(login_url=f"{base}/login", api_url=f"{base}/api", timeout=timeout)


GIST_PAYLOAD = {"description": "d", "public": True, "files": {"a.geojson": {"content": "{}"}}}


@pytest.mark.asyncio
async def test_create_gist_returns_owner_and_id():
    async with github_stub() as (base, seen):
        path = await _client(base).create_gist(GIST_PAYLOAD, "  ghp_token  ")

    assert path == "octocat/abc123"
    assert seen[0]["path"] == "/api/gists"
    assert seen[0]["body"] == GIST_PAYLOAD
    assert seen[0]["authorization"] == "token ghp_token"
    assert seen[0]["user_agent"]


@pytest.mark.asyncio
async def test_create_gist_without_token_sends_no_authorization():
    async with github_stub() as (base, seen):
        await _client(base).create_gist(GIST_PAYLOAD, "   ")

    assert seen[0]["authorization"] is None


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "status,message",
    [
        (401, "Invalid GitHub token"),
        (403, "GitHub API rate limit exceeded. Please login with GitHub or provide a token."),
        (422, "Failed to create Gist"),
        (500, "Failed to create Gist"),
    ],
)
async def test_create_gist_error_mapping(status, message):
    async with github_stub(gist_status=status) as (base, _):
        with pytest.raises(ExternalServiceError) as exc_info:
            await _client(base).create_gist(GIST_PAYLOAD)

    assert exc_info.value.message == message
    assert exc_info.value.status_code == status


@pytest.mark.asyncio
async def test_timeout_becomes_external_service_error():
    async with github_stub(delay=1.0) as (base, _):
        with pytest.raises(ExternalServiceError, match="timed out"):
            await _client(base, timeout=0.1).create_gist(GIST_PAYLOAD)


@pytest.mark.asyncio
async def test_connection_failure_becomes_external_service_error():
    client = GitHubClient(login_url="http://127.0.0.1:1/login", api_url="http://127.0.0.1:1")
    with pytest.raises(ExternalServiceError, match="GitHub request failed"):
        await client.request_device_code({"client_id": "cid"})


@pytest.mark.asyncio
async def test_device_code_proxy_passes_status_and_body():
    async with github_stub(device_status=404) as (base, seen):
        status, data = await _client(base).request_device_code({"client_id": "cid", "scope": "gist"})

    assert status == 404
    assert data["user_code"] == "ABCD-1234"
    assert seen[0]["body"] == {"client_id": "cid", "scope": "gist"}


@pytest.mark.asyncio
async def test_start_device_flow():
    async with github_stub() as (base, seen):
        response = await _client(base).start_device_flow("cid")

    assert response.device_code == "dev-123"
    assert response.interval == 5
    assert seen[0]["body"] == {"client_id": "cid", "scope": "gist"}


@pytest.mark.asyncio
async def test_start_device_flow_failure():
    async with github_stub(device_status=401) as (base, _):
        with pytest.raises(ExternalServiceError) as exc_info:
            await _client(base).start_device_flow("cid")
    assert exc_info.value.status_code == 401


@pytest.mark.asyncio
async def test_poll_access_token_pending_and_success():
    async with github_stub() as (base, seen):
        pending = await _client(base).poll_access_token("cid", "dev-123")

    assert pending.error == "authorization_pending"
    assert pending.access_token is None
    assert seen[0]["body"] == {
        "client_id": "cid",
        "device_code": "dev-123",
        "grant_type": DEVICE_GRANT_TYPE,
    }

    body = {"access_token": "gho_abc", "token_type": "bearer", "scope": "gist"}
    async with github_stub(token_body=body) as (base, _):
        granted = await _client(base).poll_access_token("cid", "dev-123")
    assert granted.access_token == "gho_abc"


@pytest.mark.asyncio
async def test_poll_access_token_http_error_returns_none():
    async with github_stub(token_status=400) as (base, _):
        assert await _client(base).poll_access_token("cid", "dev-123") is None


@pytest.mark.asyncio
async def test_fetch_user():
    async with github_stub() as (base, seen):
        user = await _client(base).fetch_user("gho_abc")

    assert user.login == "octocat"
    assert user.avatar_url == "https://a/o.png"
    assert seen[0]["authorization"] == "token gho_abc"


@pytest.mark.asyncio
async def test_fetch_user_failure_keeps_status():
    async with github_stub(user_status=401) as (base, _):
        with pytest.raises(ExternalServiceError) as exc_info:
            await _client(base).fetch_user("bad")
    assert exc_info.value.status_code == 401
