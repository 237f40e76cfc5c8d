from abc import ABC, abstractmethod
from typing import Any, Dict, Optional, Tuple

from coordkit.domains.geojson.models.geojson_model import (
    DeviceCodeResponse,
    GitHubUser,
    TokenPollResponse,
)


class GitHubClientInterface(ABC):
    """GitHub 外部服務介面，只描述本系統依賴的部分"""

    @abstractmethod
    async def request_device_code(self, payload: Dict[str, Any]) -> Tuple[int, Any]:
        """原樣轉發裝置授權碼請求"""
        pass

    @abstractmethod
    async def request_access_token(self, payload: Dict[str, Any]) -> Tuple[int, Any]:
        """原樣轉發 access token 請求"""
        pass

    @abstractmethod
    async def start_device_flow(
        self, client_id: str, scope: str = "gist"
    ) -> DeviceCodeResponse:
        """取得裝置授權碼"""
        pass

    @abstractmethod
    async def poll_access_token(
        self, client_id: str, device_code: str
    ) -> Optional[TokenPollResponse]:
        """輪詢一次 access token"""
        pass

    @abstractmethod
    async def fetch_user(self, token: str) -> GitHubUser:
        pass

    @abstractmethod
    async def create_gist(
        self, payload: Dict[str, Any], token: Optional[str] = None
    ) -> str:
        """建立 Gist 並返回 owner/id"""
        pass
