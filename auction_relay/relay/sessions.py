"""
세션 레지스트리: 다운스트림 제어 연결 1개당 업스트림 라이브 세션 최대 1개.

세션마다 선물 정합 엔진과 채팅 중복 제거 집합을 따로 가진다 (방송인 간 간섭 방지).
연결(connect)은 시간이 얼마나 걸릴지 모르므로 백그라운드 태스크로 돌린다.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Callable, Optional

from starlette.websockets import WebSocket

from auction_relay.auction import AuctionStateMachine
from auction_relay.gifts import GiftReconciler, MessageDedup
from auction_relay.live import (
    ChatEvent,
    ConnectedEvent,
    DisconnectedEvent,
    ErrorEvent,
    FollowEvent,
    GiftEvent,
    LiveClient,
    LiveClientFactory,
    LiveEvent,
    ShareEvent,
)
from auction_relay.relay.broadcast import BroadcastHub
from auction_relay.relay.config import RelayConfig

logger = logging.getLogger(__name__)

ClientFactory = Callable[..., LiveClient]
Clock = Callable[[], float]


def _now_ms() -> int:
    return int(time.time() * 1000)


class LiveSession:
    """업스트림 세션 1개와 그 세션 전용 정합 상태"""

    def __init__(
        self,
        username: str,
        hub: BroadcastHub,
        auction: AuctionStateMachine,
        config: RelayConfig,
        client_factory: ClientFactory = LiveClientFactory.create,
        clock: Clock = time.monotonic,
    ):
        self.username = username
        self.hub = hub
        self.auction = auction
        self.clock = clock
        self.reconciler = GiftReconciler(config.streak_ttl, config.dedup_ttl)
        self.chat_dedup = MessageDedup(config.dedup_ttl)
        self.client = client_factory(
            config.platform,
            username,
            on_event=self.handle_event,
            **config.client_options(),
        )
        self.connect_task: Optional[asyncio.Task] = None

    async def start(self):
        await self.client.connect()

    async def close(self):
        if self.connect_task is not None and not self.connect_task.done():
            self.connect_task.cancel()
        await self.client.disconnect()
        self.reconciler.clear()
        self.chat_dedup.clear()

    def sweep(self, now: float) -> None:
        streaks, messages = self.reconciler.sweep(now)
        chats = self.chat_dedup.sweep(now)
        if streaks or messages or chats:
            logger.debug(
                "@%s 정리: 스트릭 %d, 선물 ID %d, 채팅 ID %d",
                self.username, streaks, messages, chats,
            )

    async def handle_event(self, event: LiveEvent):
        """업스트림 이벤트 1건 처리. 상태 변경은 await 전에 끝낸다."""
        if isinstance(event, GiftEvent):
            delta = self.reconciler.reconcile(event, self.clock())
            if delta is None:
                return
            logger.info(
                "🎁 %s sent %s x%d (누적 %d, %d 💎)",
                delta.nickname, delta.gift_name, delta.repeat_count,
                delta.total_count, delta.diamond_count,
            )
            await self.hub.broadcast(delta.to_message(self.auction.active, _now_ms()))
        elif isinstance(event, ChatEvent):
            if event.msg_id and not self.chat_dedup.check_and_record(event.msg_id, self.clock()):
                return
            await self.hub.broadcast({
                "type": "chat",
                "username": event.sender,
                "nickname": event.nickname,
                "message": event.comment,
                "msgId": event.msg_id,
            })
        elif isinstance(event, ConnectedEvent):
            logger.info("✅ Connected to TikTok Live @%s", event.username)
            await self.hub.broadcast({
                "type": "connected",
                "username": event.username,
                "message": "Connected to TikTok Live",
            })
        elif isinstance(event, DisconnectedEvent):
            await self.hub.broadcast({"type": "disconnected"})
        elif isinstance(event, ErrorEvent):
            logger.warning("업스트림 오류 (@%s): %s", self.username, event.message)
            await self.hub.broadcast({"type": "error", "message": event.message})
        elif isinstance(event, FollowEvent):
            logger.info("👤 @%s followed", event.nickname)
        elif isinstance(event, ShareEvent):
            logger.info("🔗 @%s shared the live", event.nickname)


class SessionRegistry:
    def __init__(
        self,
        hub: BroadcastHub,
        auction: AuctionStateMachine,
        config: RelayConfig,
        client_factory: ClientFactory = LiveClientFactory.create,
        clock: Clock = time.monotonic,
    ):
        self.hub = hub
        self.auction = auction
        self.config = config
        self.client_factory = client_factory
        self.clock = clock
        self._sessions: dict[Any, LiveSession] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def get(self, ws: WebSocket) -> Optional[LiveSession]:
        return self._sessions.get(ws)

    async def attach(self, ws: WebSocket, username: str) -> LiveSession:
        """기존 세션을 정리하고 새 세션 등록 후 연결을 백그라운드로 시작"""
        await self.detach(ws)
        session = LiveSession(
            username,
            self.hub,
            self.auction,
            self.config,
            client_factory=self.client_factory,
            clock=self.clock,
        )
        self._sessions[ws] = session
        logger.info("🔌 Connecting to @%s...", username)
        session.connect_task = asyncio.create_task(self._connect(ws, session))
        return session

    async def _connect(self, ws: WebSocket, session: LiveSession):
        try:
            await session.start()
        except Exception as e:
            logger.error("@%s 연결 실패: %s", session.username, e)
            if self._sessions.get(ws) is session:
                del self._sessions[ws]
            session.connect_task = None
            await session.close()
            await self.hub.send_error(ws, f"Failed to connect: {e}")

    async def detach(self, ws: WebSocket) -> bool:
        session = self._sessions.pop(ws, None)
        if session is None:
            return False
        await session.close()
        logger.info("🔌 Disconnected from @%s", session.username)
        return True

    async def close_all(self):
        for ws in list(self._sessions):
            await self.detach(ws)

    def sweep(self, now: Optional[float] = None) -> None:
        now = self.clock() if now is None else now
        for session in list(self._sessions.values()):
            session.sweep(now)

    async def run_sweeper(self):
        """TTL 정리 루프 (이벤트 유입과 무관하게 고정 주기)"""
        while True:
            await asyncio.sleep(self.config.sweep_interval)
            self.sweep()
