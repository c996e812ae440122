"""
Shared fixtures for unit tests

FakeTransport stands in for the HTTP layer: it records every request and
replays queued responses (or raises queued exceptions) in order. The last
queued item is repeated once the queue is down to one.
"""

import json
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import pytest

from core.transport import TransportResponse


@dataclass
class SentRequest:
    method: str
    url: str
    headers: Dict[str, str]
    body: Optional[str]
    timeout: float


class FakeTransport:
    def __init__(self, responses: List[Any]):
        self.responses = list(responses)
        self.requests: List[SentRequest] = []

    async def send(self, method, url, headers, body, timeout):
        self.requests.append(SentRequest(method, url, dict(headers), body, timeout))

        item = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(item, BaseException):
            raise item
        if callable(item):
            return item(method, url, headers, body)
        return item


def json_response(payload: Any, status: int = 200, headers: Optional[Dict[str, str]] = None) -> TransportResponse:
    return TransportResponse(status=status, headers=headers or {}, body=json.dumps(payload))


@pytest.fixture
def make_transport():
    """Factory: make_transport(response, ...) -> FakeTransport"""

    def _make(*responses):
        return FakeTransport(list(responses))

    return _make


@pytest.fixture
def respond():
    """Factory for JSON TransportResponse objects"""
    return json_response


@pytest.fixture
def no_sleep():
    """Records requested sleeps instead of sleeping"""
    calls: List[float] = []

    async def _sleep(seconds: float):
        calls.append(seconds)

    _sleep.calls = calls
    return _sleep
