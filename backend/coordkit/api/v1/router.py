# backend/coordkit/api/v1/router.py
from fastapi import APIRouter

from coordkit.domains.coordinates.api.coordinate_api import router as coordinates_router
from coordkit.domains.geojson.api.geojson_api import (
    router as geojson_router,
    github_router,
)

api_router = APIRouter()

# 座標轉換與邊界框工具
api_router.include_router(
    coordinates_router, prefix="/coordinates", tags=["Coordinates"]
)
# GeoJSON 預覽連結
api_router.include_router(geojson_router, prefix="/geojson", tags=["GeoJSON"])
# GitHub OAuth 裝置授權代理
api_router.include_router(github_router, prefix="/github", tags=["GitHub"])
