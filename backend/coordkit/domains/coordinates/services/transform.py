"""
座標轉換核心

WGS84 / GCJ-02 / BD-09 / Web 墨卡托之間的純函數轉換。
所有跨座標系轉換都以 WGS84 為樞紐，不存在兩個非 WGS84 座標系之間的直接轉換。

GCJ-02 與 BD-09 都是經驗偏移模型，反向轉換只是近似，往返誤差約 1e-4 度。
"""

import logging
import math
from typing import Tuple

from coordkit.domains.common.errors import NumericDomainError
from coordkit.domains.coordinates.models.coordinate_model import CoordinateSystem

logger = logging.getLogger(__name__)

LngLat = Tuple[float, float]

# --- 偏移模型常數 ---
GCJ_SEMI_MAJOR_AXIS = 6378245.0  # 克拉索夫斯基橢球長半軸 (米)
GCJ_ECCENTRICITY_SQ = 0.00669342162296594323  # 偏心率平方
X_PI = math.pi * 3000.0 / 180.0

# 中國範圍 (經驗值)
CHINA_MIN_LNG = 72.004
CHINA_MAX_LNG = 137.8347
CHINA_MIN_LAT = 0.8293
CHINA_MAX_LAT = 55.8271

# EPSG:3857 半周長 (米)
MERCATOR_HALF_EXTENT = 20037508.34


def is_out_of_china(lng: float, lat: float) -> bool:
    """座標是否在中國範圍外；範圍外 GCJ-02 / BD-09 不做偏移"""
    return (
        lng < CHINA_MIN_LNG
        or lng > CHINA_MAX_LNG
        or lat < CHINA_MIN_LAT
        or lat > CHINA_MAX_LAT
    )


def _transform_lat(x: float, y: float) -> float:
    ret = -100.0 + 2.0 * x + 3.0 * y + 0.2 * y * y + 0.1 * x * y + 0.2 * math.sqrt(abs(x))
    ret += (20.0 * math.sin(6.0 * x * math.pi) + 20.0 * math.sin(2.0 * x * math.pi)) * 2.0 / 3.0
    ret += (20.0 * math.sin(y * math.pi) + 40.0 * math.sin(y / 3.0 * math.pi)) * 2.0 / 3.0
    ret += (160.0 * math.sin(y / 12.0 * math.pi) + 320.0 * math.sin(y * math.pi / 30.0)) * 2.0 / 3.0
    return ret


def _transform_lng(x: float, y: float) -> float:
    ret = 300.0 + x + 2.0 * y + 0.1 * x * x + 0.1 * x * y + 0.1 * math.sqrt(abs(x))
    ret += (20.0 * math.sin(6.0 * x * math.pi) + 20.0 * math.sin(2.0 * x * math.pi)) * 2.0 / 3.0
    ret += (20.0 * math.sin(x * math.pi) + 40.0 * math.sin(x / 3.0 * math.pi)) * 2.0 / 3.0
    ret += (150.0 * math.sin(x / 12.0 * math.pi) + 300.0 * math.sin(x / 30.0 * math.pi)) * 2.0 / 3.0
    return ret


def _mars_offset(lng: float, lat: float) -> LngLat:
    """計算 (dlng, dlat) 偏移量，單位為度"""
    dlat = _transform_lat(lng - 105.0, lat - 35.0)
    dlng = _transform_lng(lng - 105.0, lat - 35.0)

    radlat = lat / 180.0 * math.pi
    magic = math.sin(radlat)
    magic = 1 - GCJ_ECCENTRICITY_SQ * magic * magic
    sqrtmagic = math.sqrt(magic)

    dlat = (dlat * 180.0) / (
        (GCJ_SEMI_MAJOR_AXIS * (1 - GCJ_ECCENTRICITY_SQ)) / (magic * sqrtmagic) * math.pi
    )
    dlng = (dlng * 180.0) / (GCJ_SEMI_MAJOR_AXIS / sqrtmagic * math.cos(radlat) * math.pi)
    return dlng, dlat


def wgs84_to_gcj02(lng: float, lat: float) -> LngLat:
    """WGS84 轉 GCJ-02 (火星座標)"""
    if is_out_of_china(lng, lat):
        return lng, lat
    dlng, dlat = _mars_offset(lng, lat)
    return lng + dlng, lat + dlat


def gcj02_to_wgs84(lng: float, lat: float) -> LngLat:
    """GCJ-02 轉 WGS84

    以 GCJ-02 座標計算偏移後直接反向扣除，不做迭代求解。
    """
    if is_out_of_china(lng, lat):
        return lng, lat
    dlng, dlat = _mars_offset(lng, lat)
    return lng - dlng, lat - dlat


def gcj02_to_bd09(lng: float, lat: float) -> LngLat:
    """GCJ-02 轉 BD-09 (百度座標)"""
    z = math.sqrt(lng * lng + lat * lat) + 0.00002 * math.sin(lat * X_PI)
    theta = math.atan2(lat, lng) + 0.000003 * math.cos(lng * X_PI)
    return z * math.cos(theta) + 0.0065, z * math.sin(theta) + 0.006


def bd09_to_gcj02(lng: float, lat: float) -> LngLat:
    """BD-09 轉 GCJ-02"""
    x = lng - 0.0065
    y = lat - 0.006
    z = math.sqrt(x * x + y * y) - 0.00002 * math.sin(y * X_PI)
    theta = math.atan2(y, x) - 0.000003 * math.cos(x * X_PI)
    return z * math.cos(theta), z * math.sin(theta)


def wgs84_to_bd09(lng: float, lat: float) -> LngLat:
    """WGS84 經 GCJ-02 轉 BD-09"""
    return gcj02_to_bd09(*wgs84_to_gcj02(lng, lat))


def bd09_to_wgs84(lng: float, lat: float) -> LngLat:
    """BD-09 經 GCJ-02 轉 WGS84"""
    return gcj02_to_wgs84(*bd09_to_gcj02(lng, lat))


def wgs84_to_web_mercator(lng: float, lat: float) -> LngLat:
    """WGS84 轉 Web 墨卡托 (EPSG:3857)

    Raises:
        NumericDomainError: 緯度位於或超出 ±90 度，log(tan) 發散
    """
    if not abs(lat) < 90.0:
        raise NumericDomainError(
            f"Web Mercator is undefined at latitude {lat}",
            details={"longitude": lng, "latitude": lat},
        )
    x = lng * MERCATOR_HALF_EXTENT / 180.0
    y = math.log(math.tan((90.0 + lat) * math.pi / 360.0)) / (math.pi / 180.0)
    y = y * MERCATOR_HALF_EXTENT / 180.0
    return x, y


def web_mercator_to_wgs84(x: float, y: float) -> LngLat:
    """Web 墨卡托轉 WGS84"""
    lng = x / MERCATOR_HALF_EXTENT * 180.0
    lat = y / MERCATOR_HALF_EXTENT * 180.0
    lat = 180.0 / math.pi * (2.0 * math.atan(math.exp(lat * math.pi / 180.0)) - math.pi / 2.0)
    return lng, lat


def _identity(lng: float, lat: float) -> LngLat:
    return lng, lat


# 每個座標系到樞紐 (WGS84) 的雙向轉換；UTM 由解析器直接給出近似經緯度
_TO_WGS84 = {
    CoordinateSystem.WGS84: _identity,
    CoordinateSystem.WGS84_DMS: _identity,
    CoordinateSystem.GCJ02: gcj02_to_wgs84,
    CoordinateSystem.BD09: bd09_to_wgs84,
    CoordinateSystem.UTM: _identity,
    CoordinateSystem.WEB_MERCATOR: web_mercator_to_wgs84,
}

_FROM_WGS84 = {
    CoordinateSystem.WGS84: _identity,
    CoordinateSystem.WGS84_DMS: _identity,
    CoordinateSystem.GCJ02: wgs84_to_gcj02,
    CoordinateSystem.BD09: wgs84_to_bd09,
    CoordinateSystem.UTM: _identity,
    CoordinateSystem.WEB_MERCATOR: wgs84_to_web_mercator,
}


def to_wgs84(system: CoordinateSystem, lng: float, lat: float) -> LngLat:
    """將指定座標系的座標轉到樞紐 WGS84"""
    return _TO_WGS84[system](lng, lat)


def from_wgs84(system: CoordinateSystem, lng: float, lat: float) -> LngLat:
    """將 WGS84 座標轉到指定座標系"""
    return _FROM_WGS84[system](lng, lat)


def transform(
    lng: float, lat: float, source: CoordinateSystem, target: CoordinateSystem
) -> LngLat:
    """任意兩個座標系之間的轉換，一律經過 WGS84"""
    wgs_lng, wgs_lat = to_wgs84(source, lng, lat)
    result = from_wgs84(target, wgs_lng, wgs_lat)
    logger.debug(
        f"Transformed ({lng}, {lat}) {source.value} -> {target.value}: {result}"
    )
    return result
