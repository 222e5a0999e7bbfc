from __future__ import annotations

import json
from typing import Any, Optional

import pytest
from starlette.websockets import WebSocketState

from auction_relay.live import ConnectedEvent, LiveClient, LiveClientFactory, LiveEvent


class FakeWebSocket:
    """BroadcastHub가 보는 만큼만 흉내 낸 WebSocket"""

    def __init__(self, open_: bool = True, fail: bool = False) -> None:
        state = WebSocketState.CONNECTED if open_ else WebSocketState.DISCONNECTED
        self.client_state = state
        self.application_state = state
        self.fail = fail
        self.sent: list[str] = []

    async def send_text(self, text: str) -> None:
        if self.fail:
            raise RuntimeError("socket closed")
        self.sent.append(text)

    @property
    def messages(self) -> list[dict[str, Any]]:
        return [json.loads(t) for t in self.sent]


class FakeLiveClient(LiveClient):
    """스크립트대로 이벤트를 내보내는 업스트림 세션. username이 'offline'이면 연결 실패."""

    scripts: dict[str, list[LiveEvent]] = {}
    instances: list["FakeLiveClient"] = []

    def __init__(self, username: str, on_event=None, **kwargs: Any) -> None:
        super().__init__(username, on_event)
        self.kwargs = kwargs
        self.disconnect_calls = 0
        FakeLiveClient.instances.append(self)

    @property
    def platform_name(self) -> str:
        return "fake"

    async def connect(self) -> None:
        if self.username == "offline":
            raise ConnectionError("user is offline")
        self.is_connected = True
        await self._emit(ConnectedEvent(username=self.username))
        for event in self.scripts.get(self.username, []):
            await self._emit(event)

    async def push(self, event: LiveEvent) -> None:
        await self._emit(event)

    async def disconnect(self) -> None:
        self.disconnect_calls += 1
        self.is_connected = False


def fake_factory(platform: str, username: str, **kwargs: Any) -> FakeLiveClient:
    return FakeLiveClient(username, **kwargs)


@pytest.fixture(autouse=True)
def _reset_fake_clients():
    FakeLiveClient.scripts = {}
    FakeLiveClient.instances = []
    yield


@pytest.fixture
def fake_platform():
    LiveClientFactory.register_platform("fake", FakeLiveClient)
    yield "fake"
    LiveClientFactory.unregister_platform("fake")


def last_instance() -> Optional[FakeLiveClient]:
    return FakeLiveClient.instances[-1] if FakeLiveClient.instances else None
