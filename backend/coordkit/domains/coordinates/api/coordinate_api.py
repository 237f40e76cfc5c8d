import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from pydantic import BaseModel

from coordkit.domains.common.errors import DomainError, FormatError, RangeError
from coordkit.domains.common.value_objects.coordinate import Coordinate
from coordkit.domains.coordinates.models.coordinate_model import (
    ConvertRequest,
    ConvertResponse,
    CoordinateSystem,
    CoordinateSystemInfo,
    ExportDocument,
    ExportFormat,
    ExportRequest,
    ParseRequest,
)
from coordkit.domains.coordinates.services.bbox_service import (
    BBoxMetrics,
    BBoxShareState,
    BoundingBox,
    bbox_metrics,
    bbox_to_feature,
    parse_bbox,
    parse_bbox_share_query,
    validate_bbox,
)
from coordkit.domains.coordinates.services.coordinate_service import (
    CoordinateService,
    build_csv_export,
    build_export_document,
    parse_share_query,
)

logger = logging.getLogger(__name__)
router = APIRouter()


def get_coordinate_service() -> CoordinateService:
    """座標服務無狀態，每次請求建立即可"""
    return CoordinateService()


class BBoxRequest(BaseModel):
    text: str


class BBoxResponse(BaseModel):
    bbox: BoundingBox
    metrics: BBoxMetrics
    feature: Dict[str, Any]


def _client_error(e: DomainError) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        detail={"code": e.code, "message": e.message},
    )


@router.get("/systems", response_model=List[CoordinateSystemInfo])
async def list_coordinate_systems() -> List[CoordinateSystemInfo]:
    """列出支援的座標系統與範例輸入"""
    return [
        CoordinateSystemInfo(
            id=system,
            name=system.display_name,
            description=system.description,
            example=system.example,
            format=system.format_kind,
        )
        for system in CoordinateSystem
    ]


@router.post("/parse", response_model=Coordinate)
async def parse_coordinate(
    request: ParseRequest,
    service: CoordinateService = Depends(get_coordinate_service),
) -> Coordinate:
    """解析單行座標文字"""
    try:
        return service.parse_coordinate_line(request.text, request.system)
    except FormatError as e:
        raise _client_error(e)


@router.post("/convert", response_model=ConvertResponse)
async def convert_coordinates(
    request: ConvertRequest,
    service: CoordinateService = Depends(get_coordinate_service),
) -> ConvertResponse:
    """轉換座標，單行返回 results，多行返回 batch"""
    try:
        result = service.convert_text(request.input, request.system, request.targets)
        logger.info(
            f"Converted {result.type} input from {request.system.value} "
            f"({len(result.results) or len(result.batch)} items)"
        )
        return result
    except (FormatError, RangeError) as e:
        raise _client_error(e)
    except Exception as e:
        logger.error(f"Error converting coordinates: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Coordinate conversion error: {str(e)}",
        )


@router.post("/export", response_model=ExportDocument)
async def export_conversion(
    request: ExportRequest,
    service: CoordinateService = Depends(get_coordinate_service),
) -> Any:
    """生成匯出文件；json 返回文件內容，csv 返回可下載的 CSV"""
    try:
        result = service.convert_text(request.input, request.system, request.targets)
    except (FormatError, RangeError) as e:
        raise _client_error(e)

    if request.format == ExportFormat.CSV:
        content, filename = build_csv_export(result)
        return Response(
            content=content,
            media_type="text/csv; charset=utf-8",
            headers={"Content-Disposition": f'attachment; filename="{filename}"'},
        )

    document, filename = build_export_document(result, request.input)
    return ExportDocument(document=document, filename=filename)


@router.get("/share", response_model=ConvertResponse)
async def convert_shared_link(
    coords: Optional[str] = Query(None, description="百分比編碼的座標文字"),
    system: Optional[str] = Query(None, description="來源座標系 id"),
    service: CoordinateService = Depends(get_coordinate_service),
) -> ConvertResponse:
    """從分享連結參數還原輸入並轉換"""
    params = {k: v for k, v in {"coords": coords, "system": system}.items() if v}
    try:
        raw_text, source = parse_share_query(params)
        return service.convert_text(raw_text, source)
    except (FormatError, RangeError) as e:
        raise _client_error(e)


@router.post("/bbox", response_model=BBoxResponse)
async def parse_bounding_box(request: BBoxRequest) -> BBoxResponse:
    """解析並驗證邊界框，返回中心點、尺寸與 Polygon Feature"""
    try:
        bbox = validate_bbox(parse_bbox(request.text))
    except (FormatError, RangeError) as e:
        raise _client_error(e)
    return BBoxResponse(
        bbox=bbox,
        metrics=bbox_metrics(bbox),
        feature=bbox_to_feature(bbox, {"type": "preview"}),
    )


@router.get("/bbox/share", response_model=BBoxShareState)
async def restore_bbox_share(
    bbox: Optional[str] = Query(None),
    type: Optional[str] = Query(None),
    input: Optional[str] = Query(None),
    center: Optional[str] = Query(None),
    zoom: Optional[str] = Query(None),
) -> BBoxShareState:
    """還原 bbox 分享連結的地圖狀態"""
    params = {
        key: value
        for key, value in {
            "bbox": bbox,
            "type": type,
            "input": input,
            "center": center,
            "zoom": zoom,
        }.items()
        if value is not None
    }
    try:
        return parse_bbox_share_query(params)
    except FormatError as e:
        raise _client_error(e)
