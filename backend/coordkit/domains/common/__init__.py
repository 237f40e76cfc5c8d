"""
共享領域模組

包含所有領域共用的模型、錯誤類型和工具。
"""

# 從基本模型導出
from coordkit.domains.common.models.base_model import (
    DomainBaseModel,
    ValueObject,
)

# 從錯誤模組導出
from coordkit.domains.common.errors import (
    DomainError,
    FormatError,
    ParseError,
    RangeError,
    NumericDomainError,
    ExternalServiceError,
    DeviceFlowExpired,
    DeviceFlowCancelled,
)

# 從結果工具導出
from coordkit.domains.common.utils.result import (
    Result,
    ResultStatus,
    Error,
)

# 從值對象導出
from coordkit.domains.common.value_objects.coordinate import (
    Coordinate,
)
