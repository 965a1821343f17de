"""Tests for transports and dispatch policies."""

import asyncio
from unittest.mock import MagicMock, patch

import pytest

from action_plan.transport import (
    DirectDispatch,
    OutboundRequest,
    RequestsTransport,
    TimeoutDispatch,
    Transport,
    TransportResponse,
)

_REQUEST = OutboundRequest(
    method="POST",
    url="https://crm.example.com/functions/v1/email-command",
    headers={"x-bot-secret": "s"},
    body={"prompt": "hi"},
)


class _SlowTransport(Transport):
    def __init__(self):
        self.timeouts = []

    async def send(self, request, timeout=None):
        self.timeouts.append(timeout)
        await asyncio.sleep(1)
        return TransportResponse(status=200, text="{}")


class _RecordingTransport(Transport):
    def __init__(self):
        self.timeouts = []

    async def send(self, request, timeout=None):
        self.timeouts.append(timeout)
        return TransportResponse(status=201, text='{"ok": true}')


def test_response_ok_and_json():
    resp = TransportResponse(status=201, text='{"a": 1}')
    assert resp.ok
    assert resp.json() == {"a": 1}
    assert not TransportResponse(status=404, text="").ok


@pytest.mark.anyio
async def test_requests_transport_uses_session():
    session = MagicMock()
    session.request.return_value = MagicMock(status_code=200, text='{"id": 1}')

    resp = await RequestsTransport(session).send(_REQUEST, timeout=3)

    session.request.assert_called_once_with(
        "POST",
        _REQUEST.url,
        headers={"x-bot-secret": "s"},
        json={"prompt": "hi"},
        timeout=3,
    )
    assert resp.status == 200
    assert resp.json() == {"id": 1}


@pytest.mark.anyio
async def test_requests_transport_default_module():
    fake = MagicMock(status_code=500, text='{"error": "x"}')
    with patch("requests.request", return_value=fake) as mock_request:
        resp = await RequestsTransport().send(_REQUEST)
    assert mock_request.call_args.kwargs["timeout"] is None
    assert resp.status == 500


@pytest.mark.anyio
async def test_direct_dispatch_sets_no_timeout():
    transport = _RecordingTransport()
    resp = await DirectDispatch().dispatch(transport, _REQUEST)
    assert resp.status == 201
    assert transport.timeouts == [None]


@pytest.mark.anyio
async def test_timeout_dispatch_passes_timeout():
    transport = _RecordingTransport()
    await TimeoutDispatch(2.5).dispatch(transport, _REQUEST)
    assert transport.timeouts == [2.5]


@pytest.mark.anyio
async def test_timeout_dispatch_raises_on_hang():
    with pytest.raises(TimeoutError, match="timed out"):
        await TimeoutDispatch(0.05).dispatch(_SlowTransport(), _REQUEST)


def test_timeout_must_be_positive():
    with pytest.raises(ValueError):
        TimeoutDispatch(0)
