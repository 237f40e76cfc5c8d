import asyncio
import json
import logging
from typing import Any, Dict, Optional, Tuple

import aiohttp

from coordkit.core import config
from coordkit.domains.common.errors import ExternalServiceError
from coordkit.domains.geojson.interfaces.github_client_interface import (
    GitHubClientInterface,
)
from coordkit.domains.geojson.models.geojson_model import (
    DeviceCodeResponse,
    GitHubUser,
    TokenPollResponse,
)

logger = logging.getLogger(__name__)

DEVICE_GRANT_TYPE = "urn:ietf:params:oauth:grant-type:device_code"


class GitHubClient(GitHubClientInterface):
    """GitHub OAuth 裝置授權與 Gist API 客戶端"""

    def __init__(
        self,
        login_url: Optional[str] = None,
        api_url: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        self._login_url = login_url or config.GITHUB_LOGIN_URL
        self._api_url = api_url or config.GITHUB_API_URL
        self._timeout = aiohttp.ClientTimeout(
            total=timeout or config.HTTP_TIMEOUT_SECONDS
        )
        self._headers = {
            "Accept": "application/json",
            "Content-Type": "application/json",
            "User-Agent": config.GITHUB_USER_AGENT,
        }

    async def _request(
        self,
        method: str,
        url: str,
        payload: Optional[Dict[str, Any]] = None,
        token: Optional[str] = None,
    ) -> Tuple[int, Any]:
        headers = dict(self._headers)
        if token:
            headers["Authorization"] = f"token {token}"
        try:
            async with aiohttp.ClientSession(timeout=self._timeout) as session:
                async with session.request(
                    method, url, json=payload, headers=headers
                ) as response:
                    text = await response.text()
                    try:
                        data = json.loads(text) if text else {}
                    except ValueError:
                        data = {"raw": text}
                    return response.status, data
        except asyncio.TimeoutError:
            logger.error(f"GitHub request {method} {url} timed out")
            raise ExternalServiceError("GitHub request timed out")
        except aiohttp.ClientError as e:
            logger.error(f"GitHub request {method} {url} failed: {e}")
            raise ExternalServiceError(f"GitHub request failed: {e}")

    async def request_device_code(self, payload: Dict[str, Any]) -> Tuple[int, Any]:
        """轉發裝置授權碼請求，返回 (狀態碼, 響應 JSON)"""
        return await self._request("POST", f"{self._login_url}/device/code", payload)

    async def request_access_token(self, payload: Dict[str, Any]) -> Tuple[int, Any]:
        """轉發 access token 請求，返回 (狀態碼, 響應 JSON)"""
        return await self._request(
            "POST", f"{self._login_url}/oauth/access_token", payload
        )

    async def start_device_flow(
        self, client_id: str, scope: str = "gist"
    ) -> DeviceCodeResponse:
        status, data = await self.request_device_code(
            {"client_id": client_id, "scope": scope}
        )
        if status >= 400:
            raise ExternalServiceError(
                "Failed to initiate device flow", status_code=status
            )
        return DeviceCodeResponse(**data)

    async def poll_access_token(
        self, client_id: str, device_code: str
    ) -> Optional[TokenPollResponse]:
        """輪詢一次 access token；HTTP 失敗返回 None 讓呼叫端繼續輪詢"""
        status, data = await self.request_access_token(
            {
                "client_id": client_id,
                "device_code": device_code,
                "grant_type": DEVICE_GRANT_TYPE,
            }
        )
        if status >= 400:
            logger.info(f"Token poll returned HTTP {status}, will retry")
            return None
        return TokenPollResponse(**data)

    async def fetch_user(self, token: str) -> GitHubUser:
        status, data = await self._request("GET", f"{self._api_url}/user", token=token)
        if status >= 400:
            raise ExternalServiceError("Failed to fetch GitHub user", status_code=status)
        return GitHubUser(login=data["login"], avatar_url=data.get("avatar_url"))

    async def create_gist(
        self, payload: Dict[str, Any], token: Optional[str] = None
    ) -> str:
        """建立 Gist，返回 owner/id 路徑"""
        status, data = await self._request(
            "POST", f"{self._api_url}/gists", payload, token=(token or "").strip() or None
        )
        if status == 401:
            raise ExternalServiceError("Invalid GitHub token", status_code=status)
        if status == 403:
            raise ExternalServiceError(
                "GitHub API rate limit exceeded. Please login with GitHub or provide a token.",
                status_code=status,
            )
        if status >= 400:
            raise ExternalServiceError("Failed to create Gist", status_code=status)

        gist_path = f"{data['owner']['login']}/{data['id']}"
        logger.info(f"Created Gist {gist_path}")
        return gist_path
