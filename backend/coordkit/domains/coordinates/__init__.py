"""
座標領域模組

包含 WGS84、GCJ-02、BD-09、UTM (近似)、Web 墨卡托與度分秒之間的
解析、轉換與格式化，以及批次轉換和邊界框工具。
"""

from coordkit.domains.coordinates.models.coordinate_model import (
    BatchRecord,
    BatchState,
    ConversionResult,
    CoordinateSystem,
    FormatKind,
    SkippedLine,
)
from coordkit.domains.coordinates.interfaces.coordinate_service_interface import (
    CoordinateServiceInterface,
)
from coordkit.domains.coordinates.services.coordinate_service import (
    BatchDriver,
    CoordinateService,
)
