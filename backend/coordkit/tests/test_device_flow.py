"""
Test suite for GitHub device flow polling
"""

import asyncio

import pytest

from coordkit.domains.common.errors import (
    DeviceFlowCancelled,
    DeviceFlowExpired,
    ExternalServiceError,
)
from coordkit.domains.geojson.models.geojson_model import (
    DeviceFlowSession,
    TokenPollResponse,
)
from coordkit.domains.geojson.services.device_flow import DeviceFlowPoller


def _session(interval: float = 0.01, expires_in: float = 1.0) -> DeviceFlowSession:
    return DeviceFlowSession(
        device_code="dev-123",
        user_code="ABCD-1234",
        verification_uri="https://github.com/login/device",
        expires_in=expires_in,
        interval=interval,
    )


@pytest.mark.asyncio
async def test_start_builds_session(github_factory):
    poller = DeviceFlowPoller(github_factory(), client_id="cid")
    session = await poller.start()

    assert session.device_code == "dev-123"
    assert session.user_code == "ABCD-1234"
    assert session.interval == 5
    assert session.expires_in == 900
    assert session.attempts == 0


@pytest.mark.asyncio
async def test_pending_then_token(github_factory):
    github = github_factory(
        poll_responses=[
            TokenPollResponse(error="authorization_pending"),
            None,
            TokenPollResponse(access_token="gho_abc", token_type="bearer", scope="gist"),
        ]
    )
    session = _session()

    token = await DeviceFlowPoller(github, client_id="cid").poll(session)

    assert token == "gho_abc"
    assert session.attempts == 3
    assert github.poll_calls == 3


@pytest.mark.asyncio
async def test_slow_down_adds_step_to_interval(github_factory):
    github = github_factory(
        poll_responses=[
            TokenPollResponse(error="slow_down"),
            TokenPollResponse(access_token="gho_abc"),
        ]
    )
    session = _session(interval=0.01)

    await DeviceFlowPoller(github, client_id="cid", slow_down_step=0.02).poll(session)

    assert session.interval == pytest.approx(0.03)


@pytest.mark.asyncio
async def test_slow_down_prefers_server_interval(github_factory):
    github = github_factory(
        poll_responses=[TokenPollResponse(error="slow_down", interval=1)]
    )
    session = _session(interval=0.01, expires_in=0.3)
    poller = DeviceFlowPoller(github, client_id="cid", slow_down_step=0.05)

    with pytest.raises(DeviceFlowExpired):
        await poller.poll(session)
    assert session.interval == 1
    assert github.poll_calls == 1


@pytest.mark.asyncio
async def test_slow_down_without_interval_falls_back_to_step(github_factory):
    github = github_factory(
        poll_responses=[TokenPollResponse(error="slow_down", interval=0)]
    )
    session = _session(interval=0.01, expires_in=0.2)
    poller = DeviceFlowPoller(github, client_id="cid", slow_down_step=0.05)

    with pytest.raises(DeviceFlowExpired):
        await poller.poll(session)
    assert session.interval == pytest.approx(0.06)


@pytest.mark.asyncio
async def test_unexpected_error_stops_polling(github_factory):
    github = github_factory(
        poll_responses=[
            TokenPollResponse(error="access_denied", error_description="The user denied access")
        ]
    )

    with pytest.raises(ExternalServiceError, match="denied"):
        await DeviceFlowPoller(github, client_id="cid").poll(_session())
    assert github.poll_calls == 1


@pytest.mark.asyncio
async def test_expires_while_pending(github_factory):
    github = github_factory()
    session = _session(interval=0.02, expires_in=0.1)

    with pytest.raises(DeviceFlowExpired):
        await DeviceFlowPoller(github, client_id="cid").poll(session)
    assert 1 <= github.poll_calls <= 6


@pytest.mark.asyncio
async def test_cancel_event_stops_polling(github_factory):
    github = github_factory()
    session = _session(interval=0.01, expires_in=5.0)
    cancel = asyncio.Event()
    poller = DeviceFlowPoller(github, client_id="cid")

    task = asyncio.create_task(poller.poll(session, cancel))
    await asyncio.sleep(0.05)
    cancel.set()

    with pytest.raises(DeviceFlowCancelled):
        await task
    assert github.poll_calls >= 1


@pytest.mark.asyncio
async def test_already_cancelled_never_polls(github_factory):
    github = github_factory()
    cancel = asyncio.Event()
    cancel.set()

    with pytest.raises(DeviceFlowCancelled):
        await DeviceFlowPoller(github, client_id="cid").poll(_session(), cancel)
    assert github.poll_calls == 0
