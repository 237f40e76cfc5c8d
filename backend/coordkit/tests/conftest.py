"""
Pytest configuration and shared fixtures.
"""

from typing import Any, Dict, List, Optional, Tuple

import pytest
from fastapi.testclient import TestClient

from coordkit.main import app
from coordkit.domains.common.errors import ExternalServiceError
from coordkit.domains.geojson.api.geojson_api import get_github_client
from coordkit.domains.geojson.interfaces.github_client_interface import (
    GitHubClientInterface,
)
from coordkit.domains.geojson.models.geojson_model import (
    DeviceCodeResponse,
    GitHubUser,
    TokenPollResponse,
)


class FakeGitHubClient(GitHubClientInterface):
    """GitHub 客戶端替身，依序返回預設的輪詢響應"""

    def __init__(
        self,
        poll_responses: Optional[List[Optional[TokenPollResponse]]] = None,
        gist_path: str = "octocat/abc123",
        gist_error: Optional[ExternalServiceError] = None,
        proxy_status: int = 200,
        user_error: Optional[ExternalServiceError] = None,
    ):
        self.poll_responses = list(poll_responses or [])
        self.poll_calls = 0
        self.gist_path = gist_path
        self.gist_error = gist_error
        self.gist_payloads: List[Dict[str, Any]] = []
        self.gist_tokens: List[Optional[str]] = []
        self.proxy_status = proxy_status
        self.proxied: List[Dict[str, Any]] = []
        self.user_error = user_error
        self.user_tokens: List[str] = []

    async def request_device_code(self, payload: Dict[str, Any]) -> Tuple[int, Any]:
        self.proxied.append(payload)
        return self.proxy_status, {
            "device_code": "dev-123",
            "user_code": "ABCD-1234",
            "verification_uri": "https://github.com/login/device",
            "expires_in": 900,
            "interval": 5,
        }

    async def request_access_token(self, payload: Dict[str, Any]) -> Tuple[int, Any]:
        self.proxied.append(payload)
        return self.proxy_status, {"error": "authorization_pending"}

    async def start_device_flow(
        self, client_id: str, scope: str = "gist"
    ) -> DeviceCodeResponse:
        return DeviceCodeResponse(
            device_code="dev-123",
            user_code="ABCD-1234",
            verification_uri="https://github.com/login/device",
            expires_in=900,
            interval=5,
        )

    async def poll_access_token(
        self, client_id: str, device_code: str
    ) -> Optional[TokenPollResponse]:
        self.poll_calls += 1
        if self.poll_responses:
            return self.poll_responses.pop(0)
        return TokenPollResponse(error="authorization_pending")

    async def fetch_user(self, token: str) -> GitHubUser:
        self.user_tokens.append(token)
        if self.user_error is not None:
            raise self.user_error
        return GitHubUser(login="octocat", avatar_url="https://avatars.example/octocat.png")

    async def create_gist(
        self, payload: Dict[str, Any], token: Optional[str] = None
    ) -> str:
        self.gist_payloads.append(payload)
        self.gist_tokens.append(token)
        if self.gist_error is not None:
            raise self.gist_error
        return self.gist_path


@pytest.fixture
def github_factory():
    """返回替身類別，讓測試自行指定輪詢響應與 Gist 行為"""
    return FakeGitHubClient


@pytest.fixture
def fake_github():
    return FakeGitHubClient()


@pytest.fixture
def client(fake_github):
    """FastAPI 測試客戶端，GitHub 依賴替換為替身"""
    app.dependency_overrides[get_github_client] = lambda: fake_github
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def beijing_wgs84():
    """天安門附近的 WGS84 座標 (lng, lat)"""
    return 116.4074, 39.9042
