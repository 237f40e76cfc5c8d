from typing import Tuple

from pydantic import Field

from coordkit.domains.common.models.base_model import ValueObject


class Coordinate(ValueObject):
    """座標值對象，(經度, 緯度) 有序對

    地理座標系單位為度；Web 墨卡托時為平面米，不設範圍限制。
    """

    longitude: float = Field(..., description="經度或墨卡托 X")
    latitude: float = Field(..., description="緯度或墨卡托 Y")

    def as_tuple(self) -> Tuple[float, float]:
        """返回 (lng, lat) 元組"""
        return self.longitude, self.latitude

    @classmethod
    def from_tuple(cls, pair: Tuple[float, float]) -> "Coordinate":
        """從 (lng, lat) 元組創建座標

        Args:
            pair: (經度, 緯度)

        Returns:
            座標對象
        """
        lng, lat = pair
        return cls(longitude=lng, latitude=lat)
