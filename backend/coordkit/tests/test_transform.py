"""
Test suite for the coordinate transform core
"""

import math

import pytest

from coordkit.domains.common.errors import NumericDomainError
from coordkit.domains.coordinates.models.coordinate_model import CoordinateSystem
from coordkit.domains.coordinates.services.transform import (
    bd09_to_gcj02,
    bd09_to_wgs84,
    gcj02_to_bd09,
    gcj02_to_wgs84,
    is_out_of_china,
    transform,
    wgs84_to_bd09,
    wgs84_to_gcj02,
    wgs84_to_web_mercator,
    web_mercator_to_wgs84,
)

CHINA_POINTS = [
    (116.4074, 39.9042),  # 北京
    (121.4737, 31.2304),  # 上海
    (113.2644, 23.1291),  # 廣州
    (104.0665, 30.5723),  # 成都
    (87.6177, 43.7928),  # 烏魯木齊
    (126.6425, 45.7567),  # 哈爾濱
]

OUTSIDE_POINTS = [
    (-122.4194, 37.7749),  # 舊金山
    (2.3522, 48.8566),  # 巴黎
    (151.2093, -33.8688),  # 雪梨
    (139.0, 60.0),
    (0.0, 0.0),
]


def test_is_out_of_china_boundaries():
    assert is_out_of_china(2.3522, 48.8566)
    assert is_out_of_china(116.4, 56.0)
    assert is_out_of_china(71.9, 40.0)
    assert not is_out_of_china(116.4074, 39.9042)
    # 範圍端點本身視為境內
    assert not is_out_of_china(72.004, 0.8293)


@pytest.mark.parametrize("lng,lat", CHINA_POINTS)
def test_gcj02_round_trip_within_tolerance(lng, lat):
    back_lng, back_lat = gcj02_to_wgs84(*wgs84_to_gcj02(lng, lat))
    assert abs(back_lng - lng) < 1e-4
    assert abs(back_lat - lat) < 1e-4


@pytest.mark.parametrize("lng,lat", OUTSIDE_POINTS)
def test_identity_outside_china(lng, lat):
    assert wgs84_to_gcj02(lng, lat) == (lng, lat)
    assert gcj02_to_wgs84(lng, lat) == (lng, lat)


def test_beijing_gcj02_offset(beijing_wgs84):
    lng, lat = beijing_wgs84
    gcj_lng, gcj_lat = wgs84_to_gcj02(lng, lat)
    d_lng = gcj_lng - lng
    d_lat = gcj_lat - lat
    assert 0.0055 < d_lng < 0.01
    assert 0.0005 < d_lat < 0.01


@pytest.mark.parametrize("lng,lat", CHINA_POINTS)
def test_bd09_round_trip_within_tolerance(lng, lat):
    back_lng, back_lat = bd09_to_gcj02(*gcj02_to_bd09(lng, lat))
    assert abs(back_lng - lng) < 1e-4
    assert abs(back_lat - lat) < 1e-4

    wgs_lng, wgs_lat = bd09_to_wgs84(*wgs84_to_bd09(lng, lat))
    assert abs(wgs_lng - lng) < 1e-4
    assert abs(wgs_lat - lat) < 1e-4


def test_bd09_offset_is_applied_on_top_of_gcj02(beijing_wgs84):
    gcj = wgs84_to_gcj02(*beijing_wgs84)
    bd = wgs84_to_bd09(*beijing_wgs84)
    assert bd == gcj02_to_bd09(*gcj)
    assert bd[0] - gcj[0] > 0.005
    assert bd[1] - gcj[1] > 0.005


@pytest.mark.parametrize(
    "lng,lat",
    [(116.4074, 39.9042), (-179.9, -84.9), (179.9, 84.9), (0.0, 0.0), (-73.9857, 40.7484)],
)
def test_web_mercator_round_trip_exact(lng, lat):
    back_lng, back_lat = web_mercator_to_wgs84(*wgs84_to_web_mercator(lng, lat))
    assert abs(back_lng - lng) < 1e-9
    assert abs(back_lat - lat) < 1e-9


def test_web_mercator_known_values():
    x, y = wgs84_to_web_mercator(0.0, 0.0)
    assert x == 0.0
    assert abs(y) < 1e-6
    x, _ = wgs84_to_web_mercator(180.0, 0.0)
    assert x == pytest.approx(20037508.34)


@pytest.mark.parametrize("lat", [90.0, -90.0, 91.0, math.nan])
def test_web_mercator_poles_raise(lat):
    with pytest.raises(NumericDomainError):
        wgs84_to_web_mercator(10.0, lat)


def test_transform_routes_through_wgs84(beijing_wgs84):
    lng, lat = beijing_wgs84
    bd = transform(lng, lat, CoordinateSystem.WGS84, CoordinateSystem.BD09)
    assert bd == wgs84_to_bd09(lng, lat)

    merc = transform(bd[0], bd[1], CoordinateSystem.BD09, CoordinateSystem.WEB_MERCATOR)
    expected = wgs84_to_web_mercator(*bd09_to_wgs84(*bd))
    assert merc == expected

    gcj = transform(lng, lat, CoordinateSystem.WGS84, CoordinateSystem.GCJ02)
    assert transform(gcj[0], gcj[1], CoordinateSystem.GCJ02, CoordinateSystem.GCJ02) == pytest.approx(gcj, abs=1e-4)
