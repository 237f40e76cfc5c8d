"""
座標文字解析器

將單行文字依來源座標系的格式規則解析為 (lng, lat)。
結果仍在來源座標系的慣例下，轉到 WGS84 由轉換核心負責。
"""

import logging
import math
import re
from typing import List

from pydantic import BaseModel, Field

from coordkit.domains.common.errors import FormatError, RangeError
from coordkit.domains.common.utils.result import Result
from coordkit.domains.common.value_objects.coordinate import Coordinate
from coordkit.domains.coordinates.models.coordinate_model import (
    CoordinateSystem,
    FormatKind,
    SkippedLine,
)

logger = logging.getLogger(__name__)

DMS_PATTERN = re.compile(r"(\d+)°(\d+)'([\d.]+)\"([NSEW])")
UTM_PATTERN = re.compile(r"(\d+)([A-Z])\s+([\d.]+)\s+([\d.]+)")

# UTM 近似反算所用的每度米數，與格式化器一致
METERS_PER_DEGREE = 111320.0
UTM_FALSE_EASTING = 500000.0


def _parse_float(token: str) -> float:
    try:
        value = float(token.strip())
    except ValueError:
        raise FormatError(f"Invalid number: '{token.strip()}'")
    if not math.isfinite(value):
        raise FormatError(f"Invalid number: '{token.strip()}'")
    return value


def _split_pair(text: str, label: str) -> List[str]:
    parts = [p.strip() for p in text.split(",")]
    if len(parts) != 2:
        raise FormatError(f"Invalid {label} format: expected two comma-separated values")
    return parts


def dms_to_dd(dms: str) -> float:
    """度分秒字串轉十進制度，S / W 為負

    Raises:
        FormatError: 不符合 D°M'S"H 格式
    """
    match = DMS_PATTERN.search(dms)
    if not match:
        raise FormatError(f"Invalid DMS format: '{dms.strip()}'")

    degrees = int(match.group(1))
    minutes = int(match.group(2))
    seconds = _parse_float(match.group(3))
    hemisphere = match.group(4)

    value = degrees + minutes / 60.0 + seconds / 3600.0
    if hemisphere in ("S", "W"):
        value = -value
    return value


def dd_to_dms(value: float, is_lat: bool) -> str:
    """十進制度轉度分秒字串，秒保留兩位小數

    秒先四捨五入再進位，不會輸出 60.00 秒或 60 分；捨入後為零時視為 N / E。
    """
    absolute = abs(value)
    degrees = math.floor(absolute)
    minutes = math.floor((absolute - degrees) * 60)
    seconds = max(0.0, round((absolute - degrees - minutes / 60.0) * 3600, 2))
    if seconds >= 60:
        seconds -= 60
        minutes += 1
    if minutes >= 60:
        minutes -= 60
        degrees += 1

    negative = value < 0 and (degrees, minutes, seconds) != (0, 0, 0)
    if is_lat:
        hemisphere = "S" if negative else "N"
    else:
        hemisphere = "W" if negative else "E"
    return f"{degrees}°{minutes}'{seconds:.2f}\"{hemisphere}"


def _parse_decimal_degrees(text: str) -> Coordinate:
    # 輸入順序為 "緯度, 經度"
    lat_token, lng_token = _split_pair(text, "coordinate")
    lat = _parse_float(lat_token)
    lng = _parse_float(lng_token)
    return Coordinate(longitude=lng, latitude=lat)


def _parse_dms(text: str) -> Coordinate:
    lat_token, lng_token = _split_pair(text, "DMS")
    lat = dms_to_dd(lat_token)
    lng = dms_to_dd(lng_token)
    return Coordinate(longitude=lng, latitude=lat)


def _parse_utm(text: str) -> Coordinate:
    # 近似反算，並非橢球 UTM 逆投影
    match = UTM_PATTERN.search(text)
    if not match:
        raise FormatError(f"Invalid UTM format: '{text}'")
    zone = int(match.group(1))
    easting = _parse_float(match.group(3))
    northing = _parse_float(match.group(4))
    lng = (easting - UTM_FALSE_EASTING) / METERS_PER_DEGREE + zone * 6 - 183
    lat = northing / METERS_PER_DEGREE
    return Coordinate(longitude=lng, latitude=lat)


def _parse_mercator(text: str) -> Coordinate:
    x_token, y_token = _split_pair(text, "Web Mercator")
    return Coordinate(longitude=_parse_float(x_token), latitude=_parse_float(y_token))


_PARSERS = {
    FormatKind.DECIMAL_DEGREES: _parse_decimal_degrees,
    FormatKind.DEGREES_MINUTES_SECONDS: _parse_dms,
    FormatKind.UTM_ZONE_EASTING_NORTHING: _parse_utm,
    FormatKind.MERCATOR_METERS: _parse_mercator,
}


def parse_coordinate_line(text: str, system: CoordinateSystem) -> Coordinate:
    """依來源座標系解析單行座標

    Args:
        text: 單行座標文字
        system: 來源座標系

    Returns:
        來源座標系慣例下的座標 (UTM 為近似經緯度)

    Raises:
        FormatError: 文字不符合該座標系的格式
    """
    trimmed = text.strip()
    if not trimmed:
        raise FormatError("Empty coordinate input")
    return _PARSERS[system.format_kind](trimmed)


def validate_range(coordinate: Coordinate, system: CoordinateSystem) -> Coordinate:
    """檢查經緯度範圍，投影座標系不檢查

    Raises:
        RangeError: |lat| > 90 或 |lng| > 180
    """
    if not system.is_geographic:
        return coordinate
    if abs(coordinate.latitude) > 90:
        raise RangeError("Latitude must be between -90 and 90")
    if abs(coordinate.longitude) > 180:
        raise RangeError("Longitude must be between -180 and 180")
    return coordinate


class ParsedLine(BaseModel):
    """批次解析中的一行，結果以 Result 明確表示"""

    line_number: int
    original_text: str
    result: Result[Coordinate]


class LineParseOutcome(BaseModel):
    """批次解析結果：所有行的逐行 Result，以及被略過的行"""

    lines: List[ParsedLine] = Field(default_factory=list)

    @property
    def parsed(self) -> List[ParsedLine]:
        return [line for line in self.lines if line.result.is_success()]

    @property
    def skipped(self) -> List[SkippedLine]:
        return [
            SkippedLine(
                line_number=line.line_number,
                original_text=line.original_text,
                reason=line.result.error_message or "",
            )
            for line in self.lines
            if line.result.is_failure()
        ]

    @property
    def skipped_count(self) -> int:
        return sum(1 for line in self.lines if line.result.is_failure())


def split_lines(raw_text: str) -> List[str]:
    """切分多行輸入並去除空白行"""
    return [line.strip() for line in raw_text.split("\n") if line.strip()]


def parse_lines(raw_text: str, system: CoordinateSystem) -> LineParseOutcome:
    """逐行解析多行輸入

    空白行直接丟棄；無法解析的行記錄為失敗並略過，不中斷整批。
    行號以非空行計數，從 1 開始。
    """
    outcome = LineParseOutcome()
    for index, line in enumerate(split_lines(raw_text), start=1):
        try:
            coordinate = parse_coordinate_line(line, system)
            result = Result[Coordinate].success(coordinate)
        except FormatError as e:
            logger.warning(f"Line {index} skipped: {e.message}")
            result = Result[Coordinate].from_error(e)
        outcome.lines.append(
            ParsedLine(line_number=index, original_text=line, result=result)
        )
    return outcome
