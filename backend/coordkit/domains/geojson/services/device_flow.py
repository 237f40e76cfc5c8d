"""
GitHub OAuth 裝置授權輪詢

輪詢狀態全部放在 DeviceFlowSession 中，透過 asyncio.Event 取消 (登出)，
不使用任何模組層級的計時器或全域狀態。
"""

import asyncio
import logging
from typing import Optional

from coordkit.core import config
from coordkit.domains.common.errors import (
    DeviceFlowCancelled,
    DeviceFlowExpired,
    ExternalServiceError,
)
from coordkit.domains.geojson.interfaces.github_client_interface import (
    GitHubClientInterface,
)
from coordkit.domains.geojson.models.geojson_model import DeviceFlowSession

logger = logging.getLogger(__name__)


class DeviceFlowPoller:
    """輪詢 access token 直到授權、過期或取消"""

    def __init__(
        self,
        client: GitHubClientInterface,
        client_id: Optional[str] = None,
        slow_down_step: Optional[float] = None,
    ):
        self._client = client
        self._client_id = client_id or config.GITHUB_CLIENT_ID
        self._slow_down_step = (
            slow_down_step if slow_down_step is not None else config.DEVICE_FLOW_SLOW_DOWN_STEP
        )

    async def start(self, scope: str = "gist") -> DeviceFlowSession:
        """向 GitHub 取得裝置碼並建立輪詢狀態"""
        response = await self._client.start_device_flow(self._client_id, scope)
        logger.info(
            f"Device flow started, user code {response.user_code}, "
            f"interval {response.interval}s, expires in {response.expires_in}s"
        )
        return DeviceFlowSession.from_response(response)

    async def poll(
        self, session: DeviceFlowSession, cancel_event: Optional[asyncio.Event] = None
    ) -> str:
        """輪詢直到拿到 access token

        Args:
            session: 裝置授權狀態，interval 會在 slow_down 時被更新
            cancel_event: 設定後立即停止輪詢

        Returns:
            access token

        Raises:
            DeviceFlowCancelled: cancel_event 被設定
            DeviceFlowExpired: 超過 expires_in 仍未授權
            ExternalServiceError: GitHub 返回 authorization_pending / slow_down 以外的錯誤
        """
        cancel_event = cancel_event or asyncio.Event()
        loop = asyncio.get_running_loop()
        deadline = loop.time() + session.expires_in

        while True:
            remaining = deadline - loop.time()
            if remaining <= 0:
                raise DeviceFlowExpired("Device code expired before authorization")

            wait = min(session.interval, remaining)
            try:
                await asyncio.wait_for(cancel_event.wait(), timeout=wait)
            except asyncio.TimeoutError:
                pass
            else:
                logger.info("Device flow polling cancelled")
                raise DeviceFlowCancelled("Device flow cancelled")

            if loop.time() >= deadline:
                raise DeviceFlowExpired("Device code expired before authorization")

            session.attempts += 1
            response = await self._client.poll_access_token(
                self._client_id, session.device_code
            )
            if response is None:
                continue

            if response.access_token:
                logger.info(f"Device flow authorized after {session.attempts} polls")
                return response.access_token

            if response.error == "authorization_pending":
                continue
            if response.error == "slow_down":
                session.interval = response.interval or (
                    session.interval + self._slow_down_step
                )
                logger.info(f"GitHub asked to slow down, interval now {session.interval}s")
                continue
            if response.error:
                raise ExternalServiceError(response.error_description or response.error)

            logger.warning("Token poll response had neither token nor error")
