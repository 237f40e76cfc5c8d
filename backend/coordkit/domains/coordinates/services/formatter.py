"""
座標格式化器

將 WGS84 樞紐座標轉到目標座標系並輸出該座標系的顯示文字。
"""

import logging
import math

from coordkit.domains.common.errors import DomainError
from coordkit.domains.common.value_objects.coordinate import Coordinate
from coordkit.domains.coordinates.models.coordinate_model import (
    ConversionResult,
    CoordinateSystem,
    FormatKind,
)
from coordkit.domains.coordinates.services.parser import METERS_PER_DEGREE, dd_to_dms
from coordkit.domains.coordinates.services.transform import from_wgs84

logger = logging.getLogger(__name__)


def _format_decimal_degrees(coordinate: Coordinate) -> str:
    return f"{coordinate.latitude:.6f}, {coordinate.longitude:.6f}"


def _format_dms(coordinate: Coordinate) -> str:
    lat_dms = dd_to_dms(coordinate.latitude, is_lat=True)
    lng_dms = dd_to_dms(coordinate.longitude, is_lat=False)
    return f"{lat_dms}, {lng_dms}"


def _format_utm(coordinate: Coordinate) -> str:
    # 線性近似：區號正確，東距/北距只是 度 * 111320，不是真正的 UTM 投影
    zone = math.floor((coordinate.longitude + 180) / 6) + 1
    letter = "N" if coordinate.latitude >= 0 else "S"
    easting = coordinate.longitude * METERS_PER_DEGREE
    northing = coordinate.latitude * METERS_PER_DEGREE
    return f"{zone}{letter} {easting:.1f} {northing:.1f}"


def _format_mercator(coordinate: Coordinate) -> str:
    return f"{coordinate.longitude:.1f}, {coordinate.latitude:.1f}"


_FORMATTERS = {
    FormatKind.DECIMAL_DEGREES: _format_decimal_degrees,
    FormatKind.DEGREES_MINUTES_SECONDS: _format_dms,
    FormatKind.UTM_ZONE_EASTING_NORTHING: _format_utm,
    FormatKind.MERCATOR_METERS: _format_mercator,
}


def format_coordinate(coordinate: Coordinate, system: CoordinateSystem) -> str:
    """輸出已位於目標座標系的座標文字"""
    return _FORMATTERS[system.format_kind](coordinate)


def render(wgs84: Coordinate, target: CoordinateSystem) -> ConversionResult:
    """將 WGS84 座標轉換並格式化為目標座標系

    轉換失敗 (例如墨卡托極點) 只影響本結果，以 valid=False 表示，不拋出例外。
    """
    try:
        converted = Coordinate.from_tuple(
            from_wgs84(target, wgs84.longitude, wgs84.latitude)
        )
        formatted = format_coordinate(converted, target)
    except DomainError as e:
        logger.info(f"Conversion to {target.value} failed: {e.message}")
        return ConversionResult(system=target, valid=False, error_message=e.message)
    except (ValueError, OverflowError) as e:
        logger.info(f"Conversion to {target.value} failed: {e}")
        return ConversionResult(
            system=target, valid=False, error_message=str(e) or "Conversion error"
        )

    return ConversionResult(
        system=target, coordinate=converted, formatted_text=formatted, valid=True
    )
