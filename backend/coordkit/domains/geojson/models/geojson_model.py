from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class StorageMethod(str, Enum):
    """預覽連結的儲存方式"""

    URL = "url"
    GIST = "gist"


class PreviewRequest(BaseModel):
    geojson: str = Field(..., description="GeoJSON 原始文字")
    storage: StorageMethod = Field(StorageMethod.URL, description="url 或 gist")
    github_token: Optional[str] = Field(None, description="可選的 GitHub token")


class PreviewLink(BaseModel):
    """geojson.io 預覽連結"""

    url: str
    storage: StorageMethod
    gist_path: Optional[str] = Field(None, description="owner/id，僅 gist 模式")
    name: str = "GeoJSON Preview"
    size: int = Field(..., description="輸入的 UTF-8 位元組數")


class DeviceCodeResponse(BaseModel):
    """GitHub 裝置授權碼響應"""

    device_code: str
    user_code: str
    verification_uri: str
    expires_in: int
    interval: int = 5


class TokenPollResponse(BaseModel):
    """輪詢 access token 的響應，成功或帶 error"""

    access_token: Optional[str] = None
    token_type: Optional[str] = None
    scope: Optional[str] = None
    error: Optional[str] = None
    error_description: Optional[str] = None
    interval: Optional[int] = None


class GitHubUser(BaseModel):
    login: str
    avatar_url: Optional[str] = None


class DeviceFlowSession(BaseModel):
    """一次裝置授權輪詢的狀態，interval 會隨 slow_down 調整"""

    device_code: str
    user_code: str
    verification_uri: str
    expires_in: float = Field(..., description="伺服器宣告的有效秒數")
    interval: float = Field(5, description="目前的輪詢間隔 (秒)")
    attempts: int = 0

    @classmethod
    def from_response(cls, response: DeviceCodeResponse) -> "DeviceFlowSession":
        return cls(
            device_code=response.device_code,
            user_code=response.user_code,
            verification_uri=response.verification_uri,
            expires_in=response.expires_in,
            interval=response.interval,
        )
