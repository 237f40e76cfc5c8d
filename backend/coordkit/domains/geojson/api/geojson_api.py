import logging
from typing import Any, Dict

from fastapi import APIRouter, Body, Depends, Header, HTTPException, Query, status
from fastapi.responses import JSONResponse, RedirectResponse

from coordkit.domains.common.errors import ExternalServiceError, FormatError
from coordkit.domains.geojson.interfaces.github_client_interface import (
    GitHubClientInterface,
)
from coordkit.domains.geojson.models.geojson_model import (
    GitHubUser,
    PreviewLink,
    PreviewRequest,
)
from coordkit.domains.geojson.services.github_client import GitHubClient
from coordkit.domains.geojson.services.preview_service import (
    PreviewService,
    resolve_result_redirect,
)

logger = logging.getLogger(__name__)
router = APIRouter()
github_router = APIRouter()


def get_github_client() -> GitHubClientInterface:
    """GitHub 客戶端，測試時以 dependency_overrides 替換"""
    return GitHubClient()


def get_preview_service(
    github_client: GitHubClientInterface = Depends(get_github_client),
) -> PreviewService:
    return PreviewService(github_client=github_client)


@router.post("/preview", response_model=PreviewLink)
async def generate_preview_link(
    request: PreviewRequest,
    service: PreviewService = Depends(get_preview_service),
) -> PreviewLink:
    """生成 geojson.io 預覽連結"""
    try:
        return await service.generate(request.geojson, request.storage, request.github_token)
    except FormatError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail={"code": e.code, "message": e.message},
        )
    except ExternalServiceError as e:
        logger.error(f"Gist upload failed: {e.message} (status {e.status_code})")
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail={"code": e.code, "message": e.message, "upstream_status": e.status_code},
        )


@router.get("/redirect")
async def redirect_to_preview(result: str = Query(..., description="gist:<path> 或 JSON")):
    """將分享的 result 參數轉址到 geojson.io"""
    target = resolve_result_redirect(result)
    logger.info(f"Redirecting preview to {target[:80]}")
    return RedirectResponse(url=target, status_code=status.HTTP_307_TEMPORARY_REDIRECT)


@github_router.post("/device-code")
async def proxy_device_code(
    payload: Dict[str, Any] = Body(...),
    client: GitHubClientInterface = Depends(get_github_client),
) -> Any:
    """轉發裝置授權碼請求到 GitHub"""
    try:
        upstream_status, data = await client.request_device_code(payload)
    except ExternalServiceError as e:
        logger.error(f"Device flow error: {e.message}")
        return JSONResponse({"error": "Internal server error"}, status_code=500)
    if upstream_status >= 400:
        return JSONResponse(
            {"error": "Failed to get device code"}, status_code=upstream_status
        )
    return data


@github_router.post("/token")
async def proxy_access_token(
    payload: Dict[str, Any] = Body(...),
    client: GitHubClientInterface = Depends(get_github_client),
) -> Any:
    """轉發 access token 請求到 GitHub"""
    try:
        upstream_status, data = await client.request_access_token(payload)
    except ExternalServiceError as e:
        logger.error(f"Token exchange error: {e.message}")
        return JSONResponse({"error": "Internal server error"}, status_code=500)
    if upstream_status >= 400:
        return JSONResponse(
            {"error": "Failed to get access token"}, status_code=upstream_status
        )
    return data


@github_router.get("/user", response_model=GitHubUser)
async def get_github_user(
    authorization: str = Header(..., description="token <access token> 或 Bearer <access token>"),
    client: GitHubClientInterface = Depends(get_github_client),
) -> GitHubUser:
    """查詢目前登入的 GitHub 使用者"""
    scheme, _, token = authorization.strip().partition(" ")
    if scheme.lower() not in ("token", "bearer") or not token.strip():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing GitHub access token",
        )
    try:
        return await client.fetch_user(token.strip())
    except ExternalServiceError as e:
        logger.warning(f"GitHub user lookup failed: {e.message} (status {e.status_code})")
        if e.status_code == 401:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid GitHub token"
            )
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail={"code": e.code, "message": e.message, "upstream_status": e.status_code},
        )
