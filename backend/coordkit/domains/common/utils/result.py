from enum import Enum
from typing import TypeVar, Generic, Optional, List, Dict, Any
from pydantic import BaseModel, Field

from coordkit.domains.common.errors import DomainError

T = TypeVar("T")


class ResultStatus(str, Enum):
    """操作結果狀態枚舉"""

    SUCCESS = "success"
    FAILURE = "failure"


class Error(BaseModel):
    """錯誤信息模型"""

    code: str = Field(..., description="錯誤代碼")
    message: str = Field(..., description="錯誤消息")
    details: Optional[Dict[str, Any]] = Field(None, description="錯誤詳情")


class Result(BaseModel, Generic[T]):
    """操作結果包裝類

    用於逐項累積成功或失敗，例如批次解析中的每一行
    """

    status: ResultStatus = Field(..., description="操作狀態")
    data: Optional[T] = Field(None, description="結果數據")
    errors: List[Error] = Field(default_factory=list, description="錯誤列表")

    @classmethod
    def success(cls, data: Optional[T] = None) -> "Result[T]":
        """創建成功結果

        Args:
            data: 結果數據

        Returns:
            成功結果對象
        """
        return cls(status=ResultStatus.SUCCESS, data=data)

    @classmethod
    def failure(
        cls, error_code: str, message: str, details: Optional[Dict[str, Any]] = None
    ) -> "Result[T]":
        """創建失敗結果

        Args:
            error_code: 錯誤代碼
            message: 錯誤消息
            details: 錯誤詳情

        Returns:
            失敗結果對象
        """
        error = Error(code=error_code, message=message, details=details)
        return cls(status=ResultStatus.FAILURE, errors=[error])

    @classmethod
    def from_error(cls, exc: DomainError) -> "Result[T]":
        """從領域錯誤創建失敗結果"""
        return cls.failure(exc.code, exc.message, exc.details)

    def is_success(self) -> bool:
        return self.status == ResultStatus.SUCCESS

    def is_failure(self) -> bool:
        return self.status == ResultStatus.FAILURE

    @property
    def error_message(self) -> Optional[str]:
        """第一個錯誤的消息，成功時為 None"""
        return self.errors[0].message if self.errors else None
