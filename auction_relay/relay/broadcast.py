"""
다운스트림 팬아웃. 이벤트를 한 번 직렬화해 열려 있는 모든 클라이언트에 동시에 보낸다.
닫힌 클라이언트는 조용히 건너뛰고, 재전송/큐잉은 하지 않는다.
send_timeout 안에 못 보낸 클라이언트는 목록에서 빠진다 (느린 클라이언트가 나머지를 막지 않음).
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any

from starlette.websockets import WebSocket, WebSocketState

logger = logging.getLogger(__name__)

SEND_TIMEOUT_SEC = 5.0


def _is_open(ws: WebSocket) -> bool:
    return (
        ws.client_state == WebSocketState.CONNECTED
        and ws.application_state == WebSocketState.CONNECTED
    )


def encode(event: dict[str, Any]) -> str:
    return json.dumps(event, ensure_ascii=False, allow_nan=False)


class BroadcastHub:
    def __init__(self, send_timeout: float = SEND_TIMEOUT_SEC) -> None:
        self.send_timeout = send_timeout
        self.clients: set[WebSocket] = set()
        # 클라이언트별 잠금: 같은 소켓으로 가는 메시지 순서 유지
        self._locks: dict[WebSocket, asyncio.Lock] = {}
        self._pending: set[asyncio.Task] = set()

    def __len__(self) -> int:
        return len(self.clients)

    def add(self, ws: WebSocket) -> None:
        self.clients.add(ws)

    def discard(self, ws: WebSocket) -> None:
        self.clients.discard(ws)
        self._locks.pop(ws, None)

    async def _send_locked(self, ws: WebSocket, message: str) -> None:
        lock = self._locks.setdefault(ws, asyncio.Lock())
        async with lock:
            await ws.send_text(message)

    async def _send(self, ws: WebSocket, message: str) -> bool:
        # 잠금 대기 시간까지 포함해 send_timeout 으로 제한
        try:
            await asyncio.wait_for(self._send_locked(ws, message), self.send_timeout)
            return True
        except asyncio.TimeoutError:
            logger.warning("클라이언트 전송 시간 초과, 목록에서 제거")
        except Exception as exc:
            logger.warning("클라이언트 전송 실패, 목록에서 제거: %s", exc)
        self.discard(ws)
        return False

    async def broadcast(self, event: dict[str, Any]) -> int:
        """열린 클라이언트 전체에 전송. 실제로 보낸 수를 반환."""
        message = encode(event)
        targets = [ws for ws in self.clients if _is_open(ws)]
        if not targets:
            return 0
        results = await asyncio.gather(*(self._send(ws, message) for ws in targets))
        return sum(results)

    def publish(self, event: dict[str, Any]) -> None:
        """동기 코드(타이머 콜백 등)용: broadcast를 태스크로 걸고 바로 반환."""
        task = asyncio.get_running_loop().create_task(self.broadcast(event))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def drain(self) -> None:
        """걸어 둔 publish 태스크가 모두 끝날 때까지 대기"""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def send_error(self, ws: WebSocket, message: str) -> None:
        """요청한 클라이언트 1곳에만 오류 응답 (broadcast 아님)"""
        if not _is_open(ws):
            return
        await self._send(ws, encode({"type": "error", "message": message}))
