from enum import Enum
from typing import Optional, List, Dict, Any

from pydantic import BaseModel, Field

from coordkit.domains.common.models.base_model import ValueObject
from coordkit.domains.common.value_objects.coordinate import Coordinate


class FormatKind(str, Enum):
    """座標文字格式種類，決定解析與格式化規則"""

    DECIMAL_DEGREES = "decimal-degrees"
    DEGREES_MINUTES_SECONDS = "degrees-minutes-seconds"
    UTM_ZONE_EASTING_NORTHING = "utm-zone-easting-northing"
    MERCATOR_METERS = "mercator-meters"


class CoordinateSystem(str, Enum):
    """支援的座標系統，封閉集合，不支援動態註冊"""

    WGS84 = "wgs84"
    WGS84_DMS = "wgs84_dms"
    GCJ02 = "gcj02"
    BD09 = "bd09"
    UTM = "utm"
    WEB_MERCATOR = "web_mercator"

    @property
    def format_kind(self) -> FormatKind:
        return _FORMAT_KINDS[self]

    @property
    def is_geographic(self) -> bool:
        """經緯度座標系才做 ±90 / ±180 範圍檢查"""
        return self not in (CoordinateSystem.UTM, CoordinateSystem.WEB_MERCATOR)

    @property
    def display_name(self) -> str:
        return _CATALOGUE[self]["name"]

    @property
    def description(self) -> str:
        return _CATALOGUE[self]["description"]

    @property
    def example(self) -> str:
        return _CATALOGUE[self]["example"]


_FORMAT_KINDS = {
    CoordinateSystem.WGS84: FormatKind.DECIMAL_DEGREES,
    CoordinateSystem.WGS84_DMS: FormatKind.DEGREES_MINUTES_SECONDS,
    CoordinateSystem.GCJ02: FormatKind.DECIMAL_DEGREES,
    CoordinateSystem.BD09: FormatKind.DECIMAL_DEGREES,
    CoordinateSystem.UTM: FormatKind.UTM_ZONE_EASTING_NORTHING,
    CoordinateSystem.WEB_MERCATOR: FormatKind.MERCATOR_METERS,
}

_CATALOGUE = {
    CoordinateSystem.WGS84: {
        "name": "WGS84 (Decimal Degrees)",
        "description": "World Geodetic System 1984, GPS standard",
        "example": "39.9042, 116.4074",
    },
    CoordinateSystem.WGS84_DMS: {
        "name": "WGS84 (Degrees Minutes Seconds)",
        "description": "WGS84 in degrees, minutes, seconds format",
        "example": "39°54'15.12\"N, 116°24'26.64\"E",
    },
    CoordinateSystem.GCJ02: {
        "name": "GCJ-02 (Mars Coordinates)",
        "description": "Chinese encrypted coordinate system",
        "example": "39.9056, 116.4139",
    },
    CoordinateSystem.BD09: {
        "name": "BD-09 (Baidu Coordinates)",
        "description": "Baidu Maps coordinate system",
        "example": "39.9119, 116.4204",
    },
    CoordinateSystem.UTM: {
        "name": "UTM (Universal Transverse Mercator)",
        "description": "UTM coordinate system with zone (approximate)",
        "example": "50T 447192.3 4417528.5",
    },
    CoordinateSystem.WEB_MERCATOR: {
        "name": "Web Mercator (EPSG:3857)",
        "description": "Web mapping standard projection",
        "example": "12958528.0, 4849865.0",
    },
}


class ConversionResult(ValueObject):
    """單一目標座標系的轉換結果，建立後不可變"""

    system: CoordinateSystem
    coordinate: Optional[Coordinate] = None
    formatted_text: str = ""
    valid: bool
    error_message: Optional[str] = None


class BatchRecord(ValueObject):
    """批次轉換中一行非空輸入的結果"""

    line_number: int = Field(..., description="非空行序號，從 1 開始")
    original_text: str
    results: List[ConversionResult] = Field(default_factory=list)
    has_error: bool = False


class SkippedLine(ValueObject):
    """批次解析時被略過的行"""

    line_number: int
    original_text: str
    reason: str


class BatchState(str, Enum):
    """批次轉換狀態機"""

    IDLE = "idle"
    PARSING = "parsing"
    CONVERTING = "converting"
    DONE = "done"
    FAILED = "failed"


# --- API DTOs ---


class CoordinateSystemInfo(BaseModel):
    """座標系統目錄項"""

    id: CoordinateSystem
    name: str
    description: str
    example: str
    format: FormatKind


class ParseRequest(BaseModel):
    text: str = Field(..., description="單行座標文字")
    system: CoordinateSystem = Field(CoordinateSystem.WGS84)


class ConvertRequest(BaseModel):
    input: str = Field(..., description="座標文字，可多行")
    system: CoordinateSystem = Field(CoordinateSystem.WGS84, description="來源座標系")
    targets: Optional[List[CoordinateSystem]] = Field(
        None, min_length=1, description="目標座標系，省略時為全部"
    )


class ConvertResponse(BaseModel):
    """單筆或批次轉換響應"""

    type: str = Field(..., description="single 或 batch")
    source_system: CoordinateSystem
    results: List[ConversionResult] = Field(default_factory=list)
    batch: List[BatchRecord] = Field(default_factory=list)
    skipped: List[SkippedLine] = Field(default_factory=list)


class ExportFormat(str, Enum):
    """匯出檔案格式"""

    JSON = "json"
    CSV = "csv"


class ExportRequest(ConvertRequest):
    format: ExportFormat = Field(ExportFormat.JSON, description="json 或 csv")


class ExportDocument(BaseModel):
    """JSON 匯出文件，欄位名稱與前端下載檔案一致"""

    document: Dict[str, Any]
    filename: str
