"""Shared fixtures for action-plan unit tests."""

import json

import pytest

from action_plan.config import Settings
from action_plan.transport import OutboundRequest, Transport, TransportResponse
from llm_backends import LLMBackend


class MockLLM(LLMBackend):
    """Deterministic LLM that returns a canned response, no network calls."""

    def __init__(self, response: str = "") -> None:
        self._response = response
        self.calls: list[list[dict]] = []

    def chat(self, messages: list[dict], temperature: float = 0.0) -> str:
        self.calls.append(messages)
        return self._response


class RaisingLLM(LLMBackend):
    """LLM whose every call raises the given exception."""

    def __init__(self, exc: Exception) -> None:
        self._exc = exc

    def chat(self, messages: list[dict], temperature: float = 0.0) -> str:
        raise self._exc


class FakeTransport(Transport):
    """Returns scripted responses in order and records every request.

    Each scripted item is either a (status, body) tuple, where a non-string
    body is JSON-encoded, or an exception instance to raise.
    """

    def __init__(self, responses: list) -> None:
        self._responses = iter(responses)
        self.requests: list[OutboundRequest] = []

    async def send(self, request, timeout=None) -> TransportResponse:
        self.requests.append(request)
        item = next(self._responses, (200, {}))
        if isinstance(item, Exception):
            raise item
        status, body = item
        text = body if isinstance(body, str) else json.dumps(body)
        return TransportResponse(status=status, text=text)


@pytest.fixture
def settings():
    return Settings(
        base_url="https://crm.example.com",
        service_key="service-key",
        bot_secret="bot-secret",
    )


@pytest.fixture
def mock_llm():
    """Factory fixture: MockLLM(response='')."""

    def _factory(response: str = "") -> MockLLM:
        return MockLLM(response)

    return _factory


@pytest.fixture
def raising_llm():
    """Factory fixture: RaisingLLM(exc)."""

    def _factory(exc: Exception) -> RaisingLLM:
        return RaisingLLM(exc)

    return _factory


@pytest.fixture
def fake_transport():
    """Factory fixture: FakeTransport(responses=[...])."""

    def _factory(responses: list) -> FakeTransport:
        return FakeTransport(responses)

    return _factory


@pytest.fixture
def anyio_backend():
    """The code under test is asyncio-based; run anyio tests on asyncio only."""
    return "asyncio"
