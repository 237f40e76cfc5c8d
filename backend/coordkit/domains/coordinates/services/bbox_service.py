"""
邊界框 (bbox) 解析與分享狀態

支援多種貼上格式，並提供中心點、寬高估算與分享連結參數的編碼/還原。
"""

import json
import logging
import math
import re
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple
from urllib.parse import quote, unquote

import numpy as np
from pydantic import BaseModel, Field

from coordkit.domains.common.errors import FormatError, ParseError, RangeError
from coordkit.domains.common.models.base_model import ValueObject

logger = logging.getLogger(__name__)

EARTH_RADIUS_KM = 6371.0  # 地球平均半徑 (公里)

SUPPORTED_BBOX_FORMATS = (
    'GeoJSON with "bbox" property: {"bbox": [minLng, minLat, maxLng, maxLat]}',
    "GeoJSON Feature with Polygon geometry",
    "JSON array: [minLng, minLat, maxLng, maxLat]",
    "Comma-separated: minLng,minLat,maxLng,maxLat",
    "Space-separated: minLng minLat maxLng maxLat",
)


class BoundingBox(ValueObject):
    """WGS84 邊界框 [minLng, minLat, maxLng, maxLat]"""

    min_lng: float
    min_lat: float
    max_lng: float
    max_lat: float

    def as_list(self) -> List[float]:
        return [self.min_lng, self.min_lat, self.max_lng, self.max_lat]


class BBoxMetrics(BaseModel):
    """邊界框中心點與近似尺寸"""

    center_lng: float
    center_lat: float
    width_km: float = Field(..., description="以中心緯度估算的東西寬度")
    height_km: float


class BBoxShareState(BaseModel):
    """分享連結還原出的地圖狀態"""

    bbox: Optional[BoundingBox] = None
    type: str = Field("drawn", description="drawn 或 preview")
    input: Optional[str] = None
    center: Optional[Tuple[float, float]] = None
    zoom: Optional[float] = None


def _to_number(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    return number if math.isfinite(number) else None


def _from_numbers(values: Sequence[Any]) -> Optional[BoundingBox]:
    if len(values) < 4:
        return None
    numbers = [_to_number(v) for v in values[:4]]
    if any(n is None for n in numbers):
        return None
    return BoundingBox(
        min_lng=numbers[0], min_lat=numbers[1], max_lng=numbers[2], max_lat=numbers[3]
    )


def _from_polygon_feature(feature: Dict[str, Any]) -> Optional[BoundingBox]:
    geometry = feature.get("geometry")
    if not isinstance(geometry, dict) or geometry.get("type") != "Polygon":
        return None
    rings = geometry.get("coordinates") or []
    positions = [
        position[:2]
        for ring in rings
        if isinstance(ring, list)
        for position in ring
        if isinstance(position, list) and len(position) >= 2
    ]
    if len(positions) < 4:
        return None
    try:
        points = np.asarray(positions, dtype=float)
    except (TypeError, ValueError):
        return None
    if not np.all(np.isfinite(points)):
        return None
    min_lng, min_lat = points.min(axis=0)
    max_lng, max_lat = points.max(axis=0)
    return BoundingBox(
        min_lng=float(min_lng),
        min_lat=float(min_lat),
        max_lng=float(max_lng),
        max_lat=float(max_lat),
    )


def _from_json(parsed: Any) -> Optional[BoundingBox]:
    if isinstance(parsed, dict):
        bbox = parsed.get("bbox")
        if isinstance(bbox, list):
            found = _from_numbers(bbox)
            if found is not None:
                return found
        if parsed.get("type") == "Feature":
            return _from_polygon_feature(parsed)
        return None
    if isinstance(parsed, list):
        return _from_numbers(parsed)
    return None


def parse_bbox(text: str) -> BoundingBox:
    """解析邊界框輸入，依優先順序嘗試各格式，第一個成功者勝出

    Raises:
        ParseError: 沒有任何格式可解析，錯誤消息列出支援的格式
    """
    cleaned = text.strip()

    try:
        parsed = json.loads(cleaned)
    except ValueError:
        parsed = None
    if parsed is not None:
        found = _from_json(parsed)
        if found is not None:
            return found

    comma_values = [v.strip() for v in cleaned.split(",") if v.strip()]
    found = _from_numbers(comma_values)
    if found is not None:
        return found

    found = _from_numbers(re.split(r"\s+", cleaned) if cleaned else [])
    if found is not None:
        return found

    raise ParseError(
        "Unable to parse bounding box. Supported formats:\n"
        + "\n".join(f"- {fmt}" for fmt in SUPPORTED_BBOX_FORMATS)
    )


def validate_bbox(bbox: BoundingBox) -> BoundingBox:
    """檢查最小值小於最大值且經緯度在有效範圍內

    Raises:
        RangeError: 邊界框無效
    """
    if bbox.min_lng >= bbox.max_lng or bbox.min_lat >= bbox.max_lat:
        raise RangeError("Invalid bbox: min values must be less than max values")
    if (
        abs(bbox.min_lng) > 180
        or abs(bbox.max_lng) > 180
        or abs(bbox.min_lat) > 90
        or abs(bbox.max_lat) > 90
    ):
        raise RangeError("Invalid bbox: coordinates out of valid range")
    return bbox


def bbox_metrics(bbox: BoundingBox) -> BBoxMetrics:
    """計算中心點與近似寬高 (公里)"""
    center_lat = (bbox.min_lat + bbox.max_lat) / 2
    center_lng = (bbox.min_lng + bbox.max_lng) / 2

    d_lng = math.radians(bbox.max_lng - bbox.min_lng)
    width = EARTH_RADIUS_KM * d_lng * math.cos(math.radians(center_lat))
    height = EARTH_RADIUS_KM * math.radians(bbox.max_lat - bbox.min_lat)

    return BBoxMetrics(
        center_lng=center_lng,
        center_lat=center_lat,
        width_km=abs(width),
        height_km=abs(height),
    )


def bbox_to_feature(
    bbox: BoundingBox, properties: Optional[Dict[str, Any]] = None
) -> Dict[str, Any]:
    """邊界框轉為閉合的 GeoJSON Polygon Feature"""
    return {
        "type": "Feature",
        "properties": properties or {},
        "geometry": {
            "type": "Polygon",
            "coordinates": [
                [
                    [bbox.min_lng, bbox.min_lat],
                    [bbox.max_lng, bbox.min_lat],
                    [bbox.max_lng, bbox.max_lat],
                    [bbox.min_lng, bbox.max_lat],
                    [bbox.min_lng, bbox.min_lat],
                ]
            ],
        },
    }


def _number_text(value: float) -> str:
    # 整數值不帶小數點，與前端 `${n}` 的輸出一致
    value = float(value)
    return str(int(value)) if value.is_integer() else repr(value)


def _join(values: Sequence[float]) -> str:
    return ",".join(_number_text(v) for v in values)


def build_bbox_share_query(
    bbox: Optional[BoundingBox] = None,
    share_type: str = "drawn",
    preview_input: Optional[str] = None,
    center: Optional[Tuple[float, float]] = None,
    zoom: Optional[float] = None,
) -> Dict[str, str]:
    """地圖分享參數：bbox、type、input (僅 preview)、center、zoom"""
    params: Dict[str, str] = {}
    if bbox is not None:
        params["bbox"] = _join(bbox.as_list())
        params["type"] = share_type
        if share_type == "preview" and preview_input is not None:
            params["input"] = quote(preview_input, safe="")
    if center is not None and zoom is not None:
        params["center"] = f"{center[0]:.6f},{center[1]:.6f}"
        params["zoom"] = f"{zoom:.2f}"
    return params


def parse_bbox_share_query(params: Mapping[str, str]) -> BBoxShareState:
    """還原分享連結中的地圖狀態，無效參數直接忽略

    Raises:
        FormatError: bbox 參數存在但不是四個數字
    """
    state = BBoxShareState()

    raw_bbox = params.get("bbox")
    if raw_bbox:
        values = raw_bbox.split(",")
        found = _from_numbers(values) if len(values) == 4 else None
        if found is None:
            raise FormatError(f"Invalid bbox parameter: '{raw_bbox}'")
        state.bbox = found
        state.type = "preview" if params.get("type") == "preview" else "drawn"
        if state.type == "preview" and params.get("input"):
            state.input = unquote(params["input"])

    raw_center = params.get("center")
    raw_zoom = params.get("zoom")
    if raw_center and raw_zoom:
        center = [_to_number(v) for v in raw_center.split(",")]
        zoom = _to_number(raw_zoom)
        if len(center) == 2 and None not in center and zoom is not None:
            state.center = (center[0], center[1])
            state.zoom = zoom
        else:
            logger.warning(f"Ignoring invalid center/zoom: {raw_center} / {raw_zoom}")

    return state
