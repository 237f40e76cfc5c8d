import csv
import io
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple
from urllib.parse import quote, unquote

from coordkit.domains.common.errors import DomainError, FormatError, RangeError
from coordkit.domains.common.value_objects.coordinate import Coordinate
from coordkit.domains.coordinates.interfaces.coordinate_service_interface import (
    CoordinateServiceInterface,
)
from coordkit.domains.coordinates.models.coordinate_model import (
    BatchRecord,
    BatchState,
    ConversionResult,
    ConvertResponse,
    CoordinateSystem,
    SkippedLine,
)
from coordkit.domains.coordinates.services.formatter import render
from coordkit.domains.coordinates.services.parser import (
    parse_coordinate_line,
    parse_lines,
    split_lines,
    validate_range,
)
from coordkit.domains.coordinates.services.transform import to_wgs84

logger = logging.getLogger(__name__)

ALL_SYSTEMS: Tuple[CoordinateSystem, ...] = tuple(CoordinateSystem)


def convert_coordinate(
    coordinate: Coordinate,
    source: CoordinateSystem,
    targets: Optional[Sequence[CoordinateSystem]] = None,
) -> List[ConversionResult]:
    """將來源座標轉到 WGS84 後輸出到每個目標座標系

    永不拋出例外：樞紐轉換失敗時所有目標都標記為無效，
    單一目標失敗只影響該目標。
    """
    targets = list(ALL_SYSTEMS) if targets is None else list(targets)
    try:
        wgs84 = Coordinate.from_tuple(
            to_wgs84(source, coordinate.longitude, coordinate.latitude)
        )
    except (DomainError, ValueError, OverflowError) as e:
        message = getattr(e, "message", None) or str(e) or "Conversion error"
        logger.info(f"Pivot from {source.value} failed: {message}")
        return [
            ConversionResult(system=target, valid=False, error_message=message)
            for target in targets
        ]
    return [render(wgs84, target) for target in targets]


class BatchDriver:
    """多行批次轉換

    狀態: Idle -> Parsing -> Converting -> Done，
    或沒有任何一行可解析時 Idle -> Parsing -> Failed。
    每個實例處理一次批次，狀態與略過行供呼叫端檢視。
    """

    def __init__(
        self,
        source: CoordinateSystem,
        targets: Optional[Sequence[CoordinateSystem]] = None,
    ):
        self.source = source
        self.targets = list(ALL_SYSTEMS) if targets is None else list(targets)
        self.state = BatchState.IDLE
        self.skipped: List[SkippedLine] = []
        self.records: List[BatchRecord] = []

    @property
    def skipped_count(self) -> int:
        return len(self.skipped)

    def run(self, raw_text: str) -> List[BatchRecord]:
        """執行批次轉換

        Raises:
            FormatError: 輸入為空或沒有任何一行可解析 (狀態轉為 Failed)
        """
        self.state = BatchState.PARSING
        outcome = parse_lines(raw_text, self.source)
        self.skipped = outcome.skipped

        parsed = outcome.parsed
        if not parsed:
            self.state = BatchState.FAILED
            if not outcome.lines:
                raise FormatError("Please enter coordinates to convert")
            raise FormatError(
                "No valid coordinates found",
                details={"skipped": self.skipped_count},
            )

        self.state = BatchState.CONVERTING
        records = []
        for line in parsed:
            coordinate = line.result.data
            try:
                validate_range(coordinate, self.source)
            except RangeError as e:
                logger.warning(f"Line {line.line_number} out of range: {e.message}")
                records.append(
                    BatchRecord(
                        line_number=line.line_number,
                        original_text=line.original_text,
                        results=[],
                        has_error=True,
                    )
                )
                continue

            # 單一目標失敗只記在該 ConversionResult，本行仍視為成功
            records.append(
                BatchRecord(
                    line_number=line.line_number,
                    original_text=line.original_text,
                    results=convert_coordinate(coordinate, self.source, self.targets),
                    has_error=False,
                )
            )

        self.records = records
        self.state = BatchState.DONE
        logger.info(
            f"Batch converted {len(records)} lines from {self.source.value}, "
            f"skipped {self.skipped_count}"
        )
        return records


class CoordinateService(CoordinateServiceInterface):
    """座標轉換服務實現"""

    def parse_coordinate_line(self, text: str, system: CoordinateSystem) -> Coordinate:
        return parse_coordinate_line(text, system)

    def convert_coordinate(
        self,
        coordinate: Coordinate,
        source: CoordinateSystem,
        targets: Optional[Sequence[CoordinateSystem]] = None,
    ) -> List[ConversionResult]:
        return convert_coordinate(coordinate, source, targets)

    def convert_batch(
        self,
        raw_text: str,
        source: CoordinateSystem,
        targets: Optional[Sequence[CoordinateSystem]] = None,
    ) -> List[BatchRecord]:
        return BatchDriver(source, targets).run(raw_text)

    def convert_text(
        self,
        raw_text: str,
        source: CoordinateSystem,
        targets: Optional[Sequence[CoordinateSystem]] = None,
    ) -> ConvertResponse:
        """轉換按鈕的行為：單行做單筆轉換，多行做批次轉換

        Raises:
            FormatError: 輸入為空或單行無法解析
            RangeError: 單行經緯度超出範圍
        """
        lines = split_lines(raw_text)
        if not lines:
            raise FormatError("Please enter coordinates to convert")

        if len(lines) > 1:
            driver = BatchDriver(source, targets)
            records = driver.run(raw_text)
            return ConvertResponse(
                type="batch",
                source_system=source,
                batch=records,
                skipped=driver.skipped,
            )

        coordinate = validate_range(parse_coordinate_line(lines[0], source), source)
        results = convert_coordinate(coordinate, source, targets)
        logger.info(f"Converted '{lines[0]}' from {source.value}")
        return ConvertResponse(type="single", source_system=source, results=results)


def build_export_document(
    response: ConvertResponse,
    source_text: str,
    now: Optional[datetime] = None,
) -> Tuple[Dict[str, Any], str]:
    """建立 JSON 匯出內容與下載檔名，只包含成功的轉換結果"""
    now = now or datetime.now(timezone.utc)
    timestamp = now.isoformat().replace("+00:00", "Z")

    def _conversions(results: List[ConversionResult]) -> List[Dict[str, str]]:
        return [
            {
                "system": r.system.value,
                "systemName": r.system.display_name,
                "coordinates": r.formatted_text,
            }
            for r in results
            if r.valid
        ]

    if response.type == "batch":
        document = {
            "timestamp": timestamp,
            "sourceSystem": response.source_system.value,
            "type": "batch",
            "totalLines": len(response.batch),
            "results": [
                {
                    "line": record.line_number,
                    "original": record.original_text,
                    "hasError": record.has_error,
                    "conversions": _conversions(record.results),
                }
                for record in response.batch
            ],
        }
    else:
        document = {
            "timestamp": timestamp,
            "sourceSystem": response.source_system.value,
            "type": "single",
            "sourceCoordinates": source_text,
            "results": _conversions(response.results),
        }

    return document, _export_filename(now, "json")


def _export_filename(now: datetime, extension: str) -> str:
    return f"coordinate-conversion-{now.date().isoformat()}.{extension}"


def build_csv_export(
    response: ConvertResponse, now: Optional[datetime] = None
) -> Tuple[str, str]:
    """建立 CSV 匯出內容與下載檔名

    每個欄位都加上雙引號；批次匯出略過 has_error 的行，兩種模式都只輸出有效結果。
    """
    now = now or datetime.now(timezone.utc)
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")

    if response.type == "batch":
        writer.writerow(["Line", "Original", "System", "System Name", "Coordinates"])
        for record in response.batch:
            if record.has_error:
                continue
            for r in record.results:
                if r.valid:
                    writer.writerow(
                        [
                            record.line_number,
                            record.original_text,
                            r.system.value,
                            r.system.display_name,
                            r.formatted_text,
                        ]
                    )
    else:
        writer.writerow(["System", "System Name", "Coordinates"])
        for r in response.results:
            if r.valid:
                writer.writerow([r.system.value, r.system.display_name, r.formatted_text])

    # 去掉最後一行的換行
    return buffer.getvalue().rstrip("\n"), _export_filename(now, "csv")


def build_share_query(raw_text: str, system: CoordinateSystem) -> Dict[str, str]:
    """分享連結的查詢參數；coords 會先做一次百分比編碼"""
    return {"coords": quote(raw_text, safe=""), "system": system.value}


def parse_share_query(params: Mapping[str, str]) -> Tuple[str, CoordinateSystem]:
    """還原分享連結的 coords / system 參數

    Raises:
        FormatError: 缺少參數或座標系不支援
    """
    coords = params.get("coords")
    system = params.get("system")
    if not coords or not system:
        raise FormatError("Invalid URL parameters: 'coords' and 'system' are required")
    try:
        source = CoordinateSystem(system)
    except ValueError:
        raise FormatError(f"Unsupported coordinate system: '{system}'")
    return unquote(coords), source
