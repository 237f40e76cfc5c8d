import os
import logging
from typing import List, Optional

# --- Logging Setup ---
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
logging.basicConfig(
    level=LOG_LEVEL, format="%(asctime)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


# --- Environment helpers ---
def get_float_env(var_name: str) -> Optional[float]:
    value = os.getenv(var_name)
    if value is not None:
        try:
            return float(value)
        except ValueError:
            logger.warning(
                f"Environment variable {var_name} ('{value}') is not a valid float. Ignoring."
            )
    return None


def get_int_env(var_name: str, default: int) -> int:
    value = os.getenv(var_name)
    if value is not None:
        try:
            return int(value)
        except ValueError:
            logger.warning(
                f"Environment variable {var_name} ('{value}') is not a valid integer. Using {default}."
            )
    return default


def get_list_env(var_name: str, default: List[str]) -> List[str]:
    value = os.getenv(var_name)
    if not value:
        return default
    return [item.strip() for item in value.split(",") if item.strip()]


# --- CORS ---
CORS_ORIGINS = get_list_env(
    "CORS_ORIGINS",
    [
        "http://localhost",
        "http://localhost:3000",  # 本地開發環境
        "http://127.0.0.1:3000",
    ],
)

# --- GitHub OAuth device flow / Gist ---
GITHUB_LOGIN_URL = os.getenv("GITHUB_LOGIN_URL", "https://github.com/login").rstrip("/")
GITHUB_API_URL = os.getenv("GITHUB_API_URL", "https://api.github.com").rstrip("/")
GITHUB_CLIENT_ID = os.getenv("GITHUB_CLIENT_ID", "")
GITHUB_USER_AGENT = os.getenv("GITHUB_USER_AGENT", "coordkit")
if not GITHUB_CLIENT_ID:
    logger.info(
        "GITHUB_CLIENT_ID not set. Device-flow requests must include client_id in the body."
    )

HTTP_TIMEOUT_SECONDS = get_float_env("HTTP_TIMEOUT_SECONDS")
if HTTP_TIMEOUT_SECONDS is None:
    HTTP_TIMEOUT_SECONDS = 10.0

# GitHub 未給出新 interval 時，slow_down 每次增加的秒數
DEVICE_FLOW_SLOW_DOWN_STEP = get_int_env("DEVICE_FLOW_SLOW_DOWN_STEP", 5)

# --- GeoJSON preview ---
GEOJSON_IO_URL = os.getenv("GEOJSON_IO_URL", "https://geojson.io").rstrip("/")
# 超過此大小 (bytes) 的 GeoJSON 改用 Gist，URL 長度有限
GIST_SIZE_THRESHOLD = get_int_env("GIST_SIZE_THRESHOLD", 8000)
GIST_DESCRIPTION = os.getenv(
    "GIST_DESCRIPTION", "GeoJSON data for visualization - Created by coordkit"
)

logger.info(f"GitHub login URL: {GITHUB_LOGIN_URL}, API URL: {GITHUB_API_URL}")
logger.info(f"geojson.io URL: {GEOJSON_IO_URL}, Gist threshold: {GIST_SIZE_THRESHOLD} bytes")
