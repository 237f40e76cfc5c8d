import json
import logging
import re
from typing import Any, Dict, Optional
from urllib.parse import quote

from coordkit.core import config
from coordkit.domains.common.errors import FormatError
from coordkit.domains.geojson.interfaces.github_client_interface import (
    GitHubClientInterface,
)
from coordkit.domains.geojson.models.geojson_model import PreviewLink, StorageMethod

logger = logging.getLogger(__name__)

GEOJSON_TYPES = {
    "Feature",
    "FeatureCollection",
    "Point",
    "LineString",
    "Polygon",
    "MultiPoint",
    "MultiLineString",
    "MultiPolygon",
    "GeometryCollection",
}

# encodeURIComponent 不編碼的字元
_URI_COMPONENT_SAFE = "-_.!~*'()"

DEFAULT_GIST_FILE = "geojson_data.geojson"


def validate_geojson(text: str) -> Dict[str, Any]:
    """基本 GeoJSON 檢查：JSON 物件且 type 為合法 GeoJSON 類型

    Raises:
        FormatError: 不是合法 GeoJSON
    """
    try:
        parsed = json.loads(text)
    except ValueError:
        raise FormatError("Invalid JSON format")
    if not isinstance(parsed, dict) or parsed.get("type") not in GEOJSON_TYPES:
        raise FormatError("Invalid JSON format")
    return parsed


def geojson_name(obj: Dict[str, Any]) -> Optional[str]:
    """取 name、properties.name 或第一個 feature 的 properties.name"""
    properties = obj.get("properties") if isinstance(obj.get("properties"), dict) else {}
    features = obj.get("features") if isinstance(obj.get("features"), list) else []
    first = features[0] if features and isinstance(features[0], dict) else {}
    first_props = first.get("properties") if isinstance(first.get("properties"), dict) else {}

    for candidate in (obj.get("name"), properties.get("name"), first_props.get("name")):
        if candidate and isinstance(candidate, str):
            return candidate
    return None


def gist_file_name(obj: Dict[str, Any]) -> str:
    name = geojson_name(obj)
    if not name:
        return DEFAULT_GIST_FILE
    clean = re.sub(r"[^a-zA-Z0-9_-]", "_", name)[:50]
    return f"{clean}.geojson"


def build_gist_payload(obj: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "description": config.GIST_DESCRIPTION,
        "public": True,
        "files": {
            gist_file_name(obj): {"content": json.dumps(obj, indent=2, ensure_ascii=False)}
        },
    }


def build_data_url(obj: Dict[str, Any]) -> str:
    compact = json.dumps(obj, separators=(",", ":"), ensure_ascii=False)
    encoded = quote(compact, safe=_URI_COMPONENT_SAFE)
    return f"{config.GEOJSON_IO_URL}/#data=data:application/json,{encoded}"


def build_gist_url(gist_path: str) -> str:
    return f"{config.GEOJSON_IO_URL}/#id=gist:{gist_path}"


def resolve_result_redirect(result: str) -> str:
    """`result` 參數轉為 geojson.io 目標連結

    `gist:<owner>/<id>` 指向 Gist，其餘視為 JSON 文字，重新編碼為 data URL。
    """
    if result.startswith("gist:"):
        return build_gist_url(result[len("gist:"):])
    encoded = quote(result, safe=_URI_COMPONENT_SAFE)
    return f"{config.GEOJSON_IO_URL}/#data=data:application/json,{encoded}"


class PreviewService:
    """GeoJSON 預覽連結生成"""

    def __init__(
        self,
        github_client: Optional[GitHubClientInterface] = None,
        size_threshold: Optional[int] = None,
    ):
        self._github = github_client
        self._size_threshold = (
            size_threshold if size_threshold is not None else config.GIST_SIZE_THRESHOLD
        )

    async def generate(
        self,
        text: str,
        storage: StorageMethod = StorageMethod.URL,
        token: Optional[str] = None,
    ) -> PreviewLink:
        """生成預覽連結；內容過大或指定 gist 時上傳 Gist

        Raises:
            FormatError: 輸入不是合法 GeoJSON
            ExternalServiceError: Gist 建立失敗
        """
        obj = validate_geojson(text)
        size = len(text.encode("utf-8"))
        name = geojson_name(obj) or "GeoJSON Preview"

        if size > self._size_threshold or storage == StorageMethod.GIST:
            if self._github is None:
                raise RuntimeError("GitHub client is not configured for Gist storage")
            gist_path = await self._github.create_gist(build_gist_payload(obj), token)
            logger.info(f"GeoJSON preview via Gist {gist_path} ({size} bytes)")
            return PreviewLink(
                url=build_gist_url(gist_path),
                storage=StorageMethod.GIST,
                gist_path=gist_path,
                name=name,
                size=size,
            )

        logger.info(f"GeoJSON preview via data URL ({size} bytes)")
        return PreviewLink(
            url=build_data_url(obj), storage=StorageMethod.URL, name=name, size=size
        )
