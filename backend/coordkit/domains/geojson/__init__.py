"""
GeoJSON 領域模組

生成 geojson.io 預覽連結；大型資料經 GitHub Gist 上傳，
並提供 GitHub OAuth 裝置授權輪詢。
"""

from coordkit.domains.geojson.services.preview_service import PreviewService
from coordkit.domains.geojson.services.device_flow import DeviceFlowPoller
from coordkit.domains.geojson.services.github_client import GitHubClient
