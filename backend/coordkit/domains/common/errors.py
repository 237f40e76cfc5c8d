"""
領域錯誤類型

所有領域錯誤都帶有 `code`，API 層據此映射 HTTP 狀態碼，
批次轉換則將其寫入逐行結果。
"""

from typing import Any, Dict, Optional


class DomainError(Exception):
    """領域錯誤基類"""

    code = "domain_error"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details


class FormatError(DomainError):
    """輸入文字不符合任何可識別的座標格式"""

    code = "format_error"


class ParseError(FormatError):
    """邊界框輸入無法被任何支援的格式解析"""

    code = "parse_error"


class RangeError(DomainError):
    """數值超出有效範圍，例如 |lat| > 90"""

    code = "range_error"


class NumericDomainError(DomainError):
    """數學上無定義的輸入，例如墨卡托投影的極點"""

    code = "numeric_domain_error"


class ExternalServiceError(DomainError):
    """外部服務 (GitHub OAuth / Gist) 呼叫失敗"""

    code = "external_service_error"

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, details)
        self.status_code = status_code


class DeviceFlowExpired(ExternalServiceError):
    """裝置授權碼已過期，輪詢結束"""

    code = "device_flow_expired"


class DeviceFlowCancelled(ExternalServiceError):
    """使用者登出或主動取消裝置授權輪詢"""

    code = "device_flow_cancelled"
