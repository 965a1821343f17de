"""Outbound HTTP to CRM module endpoints, and the policies that wrap each dispatch.

The executor never talks to ``requests`` directly: it builds an
OutboundRequest and hands it to a DispatchPolicy, which decides how the
Transport is invoked (plain, or with a timeout).  Swapping the policy changes
per-call behaviour without touching the executor loop.
"""

from __future__ import annotations

import asyncio
import json
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Optional


@dataclass
class OutboundRequest:
    method: str
    url: str
    headers: dict[str, str] = field(default_factory=dict)
    body: Optional[dict] = None


@dataclass
class TransportResponse:
    """Raw response from a module endpoint."""

    status: int
    text: str

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    def json(self) -> Any:
        return json.loads(self.text)


class Transport(ABC):
    """Sends one OutboundRequest and returns the raw response."""

    @abstractmethod
    async def send(
        self, request: OutboundRequest, timeout: Optional[float] = None
    ) -> TransportResponse:
        ...


class RequestsTransport(Transport):
    """Transport backed by ``requests``, run in a worker thread.

    Args:
        session: Optional ``requests.Session`` to reuse connections.
    """

    def __init__(self, session=None) -> None:
        self._session = session

    async def send(
        self, request: OutboundRequest, timeout: Optional[float] = None
    ) -> TransportResponse:
        return await asyncio.to_thread(self._send_sync, request, timeout)

    def _send_sync(
        self, request: OutboundRequest, timeout: Optional[float]
    ) -> TransportResponse:
        import requests

        http = self._session or requests
        resp = http.request(
            request.method,
            request.url,
            headers=request.headers,
            json=request.body,
            timeout=timeout,
        )
        return TransportResponse(status=resp.status_code, text=resp.text)


class DispatchPolicy(ABC):
    """Strategy wrapping a single dispatch attempt."""

    @abstractmethod
    async def dispatch(
        self, transport: Transport, request: OutboundRequest
    ) -> TransportResponse:
        ...


class DirectDispatch(DispatchPolicy):
    """One attempt, no timeout beyond whatever the transport defaults to."""

    async def dispatch(
        self, transport: Transport, request: OutboundRequest
    ) -> TransportResponse:
        return await transport.send(request)


class TimeoutDispatch(DispatchPolicy):
    """One attempt bounded by *seconds*; a timeout surfaces as an exception."""

    def __init__(self, seconds: float) -> None:
        if seconds <= 0:
            raise ValueError(f"timeout must be positive, got {seconds!r}")
        self.seconds = seconds

    async def dispatch(
        self, transport: Transport, request: OutboundRequest
    ) -> TransportResponse:
        try:
            return await asyncio.wait_for(
                transport.send(request, timeout=self.seconds), self.seconds
            )
        except asyncio.TimeoutError as exc:
            raise TimeoutError(
                f"{request.method} {request.url} timed out after {self.seconds}s"
            ) from exc
