"""
틱톡 라이브 클라이언트 (TikTokLive 라이브러리 래핑)
방송인 1명에게 붙어 선물/채팅/팔로우/공유 이벤트를 공통 이벤트 타입으로 변환합니다.

참고: https://github.com/isaackogan/TikTokLive
"""

import asyncio
import logging
from typing import Any, Optional

from TikTokLive import TikTokLiveClient
from TikTokLive.client.web.web_settings import WebDefaults
from TikTokLive.events import (
    CommentEvent,
    ConnectEvent,
    DisconnectEvent,
    FollowEvent,
    GiftEvent,
    ShareEvent,
)

from .base_client import EventCallback, LiveClient
from .events import (
    ChatEvent,
    ConnectedEvent,
    DisconnectedEvent,
    ErrorEvent,
    FollowEvent as LiveFollowEvent,
    GiftEvent as LiveGiftEvent,
    GiftType,
    ShareEvent as LiveShareEvent,
)

logger = logging.getLogger(__name__)


def _message_id(event: Any) -> Optional[str]:
    """이벤트 공통 헤더에서 메시지 ID 추출 (라이브러리 버전마다 필드명이 다름)"""
    for holder_name, field in (("base_message", "message_id"), ("common", "msg_id")):
        holder = getattr(event, holder_name, None)
        value = getattr(holder, field, None) if holder is not None else None
        if value:
            return str(value)
    value = getattr(event, "msg_id", None)
    return str(value) if value else None


def _user_fields(user: Any) -> tuple[str, str]:
    if user is None:
        return "", ""
    unique_id = getattr(user, "unique_id", None) or getattr(user, "display_id", None) or ""
    nickname = getattr(user, "nickname", None) or getattr(user, "nick_name", None) or unique_id
    return str(unique_id), str(nickname)


def convert_gift(event: Any) -> LiveGiftEvent:
    """TikTokLive GiftEvent → 공통 GiftEvent"""
    sender, nickname = _user_fields(getattr(event, "user", None))
    gift = getattr(event, "gift", None)
    streakable = bool(getattr(gift, "streakable", False))
    return LiveGiftEvent(
        sender=sender,
        nickname=nickname,
        gift_id=str(getattr(gift, "id", "")),
        gift_name=str(getattr(gift, "name", "")),
        diamond_count=int(getattr(gift, "diamond_count", 0) or 0),
        repeat_count=int(getattr(event, "repeat_count", 0) or 1),
        streak_ended=bool(getattr(event, "repeat_end", 0)),
        msg_id=_message_id(event),
        gift_type=GiftType.STREAKABLE if streakable else GiftType.SINGLE,
    )


class TikTokLiveSession(LiveClient):
    """틱톡 라이브 업스트림 세션

    TikTokLive는 이벤트 기반이므로 start()가 돌려주는 수신 태스크만 들고 있다.
    수신 태스크가 예외로 끝나면 ErrorEvent를 발생시킨다 (세션은 그대로 둠).
    """

    @property
    def platform_name(self) -> str:
        """플랫폼 이름"""
        return "tiktok"

    def __init__(
        self,
        username: str,
        on_event: Optional[EventCallback] = None,
        sign_api_key: Optional[str] = None,
    ):
        """
        Args:
            username: 틱톡 방송인 핸들
            on_event: 이벤트 수신 시 호출할 콜백 함수
            sign_api_key: 서명 서버 API 키 (없으면 기본 설정)
        """
        super().__init__(username, on_event)
        if sign_api_key:
            WebDefaults.tiktok_sign_api_key = sign_api_key

        self.client: Optional[TikTokLiveClient] = None
        self._task: Optional[asyncio.Task] = None
        self._closing = False
        self._pending: set[asyncio.Task] = set()

    def _wire_events(self):
        client = self.client
        client.add_listener(ConnectEvent, self._on_connect)
        client.add_listener(GiftEvent, self._on_gift)
        client.add_listener(CommentEvent, self._on_comment)
        client.add_listener(FollowEvent, self._on_follow)
        client.add_listener(ShareEvent, self._on_share)
        client.add_listener(DisconnectEvent, self._on_disconnect)

    async def connect(self):
        """틱톡 라이브 연결. 방송 중이 아니거나 차단되면 예외 발생."""
        self._closing = False
        self.client = TikTokLiveClient(unique_id=f"@{self.username}")
        self._wire_events()
        logger.info(f"[{self.platform_name}] @{self.username} 연결 시도")
        try:
            self._task = await self.client.start(fetch_room_info=False)
        except Exception as e:
            logger.error(f"[{self.platform_name}] 연결 실패: {e}")
            self.is_connected = False
            raise
        self._task.add_done_callback(self._on_task_done)
        self.is_connected = True

    def _on_task_done(self, task: asyncio.Task):
        """수신 태스크 종료 감시: 예외로 끝났으면 런타임 오류로 보고"""
        self.is_connected = False
        if task.cancelled() or self._closing:
            return
        exc = task.exception()
        if exc is not None:
            logger.error(f"[{self.platform_name}] 수신 오류: {exc}")
            emit = asyncio.ensure_future(self._emit(ErrorEvent(message=str(exc) or type(exc).__name__)))
            self._pending.add(emit)
            emit.add_done_callback(self._pending.discard)

    async def _on_connect(self, event: ConnectEvent):
        logger.info(f"[{self.platform_name}] @{self.username} 연결 완료")
        room_id = getattr(event, "room_id", None)
        await self._emit(ConnectedEvent(
            username=self.username,
            room_id=str(room_id) if room_id else None,
        ))

    async def _on_gift(self, event: GiftEvent):
        await self._emit(convert_gift(event))

    async def _on_comment(self, event: CommentEvent):
        sender, nickname = _user_fields(getattr(event, "user", None))
        await self._emit(ChatEvent(
            sender=sender,
            nickname=nickname,
            comment=str(getattr(event, "comment", "") or ""),
            msg_id=_message_id(event),
        ))

    async def _on_follow(self, event: FollowEvent):
        sender, nickname = _user_fields(getattr(event, "user", None))
        await self._emit(LiveFollowEvent(sender=sender, nickname=nickname))

    async def _on_share(self, event: ShareEvent):
        sender, nickname = _user_fields(getattr(event, "user", None))
        await self._emit(LiveShareEvent(sender=sender, nickname=nickname))

    async def _on_disconnect(self, event: DisconnectEvent):
        logger.warning(f"[{self.platform_name}] @{self.username} 연결 종료")
        self.is_connected = False
        await self._emit(DisconnectedEvent())

    async def disconnect(self):
        """연결 종료 (이미 끊겼으면 아무것도 안 함)"""
        self._closing = True
        if self.client is not None:
            try:
                await self.client.disconnect()
            except Exception as e:
                logger.warning(f"[{self.platform_name}] 연결 종료 중 오류: {e}")
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self.is_connected = False
        logger.info(f"[{self.platform_name}] @{self.username} 세션 정리 완료")
