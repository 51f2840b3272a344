import asyncio
import json
from typing import Any, Callable, Dict, List

import httpx
import pytest


class FakeClock:
    """Deterministic monotonic clock; `sleep` advances time instead of waiting."""

    def __init__(self, start: float = 0.0) -> None:
        self.now = start
        self.sleeps: List[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, delay: float) -> None:
        self.sleeps.append(delay)
        self.now += delay
        await asyncio.sleep(0)


class RecordingTransport:
    """Wraps httpx.MockTransport and keeps every request it saw."""

    def __init__(self, handler: Callable[[httpx.Request], httpx.Response]) -> None:
        self.requests: List[httpx.Request] = []

        def _handle(request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            return handler(request)

        self.transport = httpx.MockTransport(_handle)

    def json_body(self, index: int = -1) -> Dict[str, Any]:
        return json.loads(self.requests[index].content)


@pytest.fixture(autouse=True)
def _api_key(monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def make_dispatcher(clock):
    from openai_mcp.services.dispatcher import Dispatcher

    def _make(handler: Callable[[httpx.Request], httpx.Response], **kwargs: Any):
        recorder = RecordingTransport(handler)
        kwargs.setdefault("api_key", "sk-test")
        kwargs.setdefault("base_url", "https://api.test/v1")
        kwargs.setdefault("min_interval_s", 0.1)
        kwargs.setdefault("clock", clock)
        kwargs.setdefault("sleep", clock.sleep)
        dispatcher = Dispatcher(transport=recorder.transport, **kwargs)
        return dispatcher, recorder

    return _make
