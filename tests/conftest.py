from __future__ import annotations

import json
from typing import Any, Callable

import pytest

from space_cli.config import SessionConfig


class FakeResponse:
    def __init__(self, body: Any = None, status_code: int = 200, text: str | None = None) -> None:
        self._body = body
        self.status_code = status_code
        self.url = "http://127.0.0.1:7225"
        self.text = text if text is not None else json.dumps(body)

    @property
    def ok(self) -> bool:
        return self.status_code < 400

    def json(self) -> Any:
        if self._body is None:
            return json.loads(self.text)
        return self._body


class FakeHTTPSession:
    """Records JSON-RPC posts and answers through a handler.

    The handler receives the decoded payload and returns either a
    ``FakeResponse``, an exception to raise, or a plain value that is wrapped as
    a successful ``result``.
    """

    def __init__(self, handler: Callable[[dict[str, Any]], Any] | None = None) -> None:
        self.handler = handler or (lambda payload: None)
        self.calls: list[dict[str, Any]] = []

    def post(self, url: str, data: str, headers=None, auth=None, timeout=None) -> FakeResponse:
        payload = json.loads(data)
        self.calls.append({"url": url, "payload": payload, "auth": auth, "timeout": timeout})
        outcome = self.handler(payload)
        if isinstance(outcome, BaseException):
            raise outcome
        if isinstance(outcome, FakeResponse):
            return outcome
        return FakeResponse({"jsonrpc": "2.0", "id": payload["id"], "result": outcome})

    @property
    def methods(self) -> list[str]:
        return [call["payload"]["method"] for call in self.calls]


@pytest.fixture
def session_config() -> SessionConfig:
    return SessionConfig()


@pytest.fixture
def fake_http() -> FakeHTTPSession:
    return FakeHTTPSession()
