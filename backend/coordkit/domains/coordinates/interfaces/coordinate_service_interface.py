from abc import ABC, abstractmethod
from typing import List, Optional, Sequence

from coordkit.domains.common.value_objects.coordinate import Coordinate
from coordkit.domains.coordinates.models.coordinate_model import (
    BatchRecord,
    ConversionResult,
    CoordinateSystem,
)


class CoordinateServiceInterface(ABC):
    """座標轉換服務介面"""

    @abstractmethod
    def parse_coordinate_line(self, text: str, system: CoordinateSystem) -> Coordinate:
        """解析單行座標，失敗時拋出 FormatError"""
        pass

    @abstractmethod
    def convert_coordinate(
        self,
        coordinate: Coordinate,
        source: CoordinateSystem,
        targets: Optional[Sequence[CoordinateSystem]] = None,
    ) -> List[ConversionResult]:
        """將單一座標轉換到各目標座標系，失敗編碼在各結果中，不拋出例外"""
        pass

    @abstractmethod
    def convert_batch(
        self,
        raw_text: str,
        source: CoordinateSystem,
        targets: Optional[Sequence[CoordinateSystem]] = None,
    ) -> List[BatchRecord]:
        """逐行轉換多行輸入，單行失敗不影響其他行"""
        pass
