# pylint: disable=missing-module-docstring,missing-function-docstring

from typing import Any

import pytest

from pairchat.pairing import matchmaker
from pairchat.ws_manager import manager


class FakeWebSocket:
    def __init__(self, fail: bool = False) -> None:
        self.sent: list[dict[str, Any]] = []
        self.fail = fail

    async def send_json(self, payload: dict[str, Any]) -> None:
        if self.fail:
            raise RuntimeError("socket closed")
        self.sent.append(payload)

    def types(self) -> list[str]:
        return [p["type"] for p in self.sent]


@pytest.fixture(autouse=True)
def clean_state():
    matchmaker.reset()
    manager.reset()
    yield
    matchmaker.reset()
    manager.reset()


@pytest.fixture
def connect():
    """Register a fake client in both the matchmaker and the socket manager."""

    def _connect(conn_id: str, fail: bool = False) -> FakeWebSocket:
        ws = FakeWebSocket(fail=fail)
        matchmaker.register(conn_id)
        manager.connect(ws, conn_id)
        return ws

    return _connect
