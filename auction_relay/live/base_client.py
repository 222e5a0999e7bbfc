"""
라이브 클라이언트 추상 기본 클래스
모든 플랫폼(틱톡 등)의 업스트림 세션이 구현해야 하는 인터페이스
"""

from abc import ABC, abstractmethod
from typing import Awaitable, Callable, Optional, Union
import asyncio
import logging

from .events import LiveEvent

logger = logging.getLogger(__name__)

EventCallback = Callable[[LiveEvent], Union[None, Awaitable[None]]]


class LiveClient(ABC):
    """업스트림 라이브 세션 추상 기본 클래스

    방송인 1명에 대한 연결 하나. 수신 이벤트는 on_event 콜백으로 전달된다.
    자동 재연결은 하지 않는다 (실패는 호출자에게 보고).
    """

    def __init__(
        self,
        username: str,
        on_event: Optional[EventCallback] = None,
    ):
        """
        Args:
            username: 방송인 핸들 (앞의 @는 제거)
            on_event: 이벤트 수신 시 호출할 콜백 함수 (동기/비동기 모두 가능)
        """
        self.username = username.lstrip("@")
        self.on_event = on_event

        # 연결 상태
        self.is_connected = False

    @property
    @abstractmethod
    def platform_name(self) -> str:
        """플랫폼 이름 반환 (예: 'tiktok')"""
        pass

    @abstractmethod
    async def connect(self):
        """플랫폼별 연결 로직 구현. 실패 시 예외를 그대로 올린다."""
        pass

    @abstractmethod
    async def disconnect(self):
        """플랫폼별 연결 종료 로직 구현. 여러 번 호출해도 안전해야 함."""
        pass

    async def _emit(self, event: LiveEvent):
        """콜백 호출 헬퍼 - 공통 로직"""
        if not self.on_event:
            return
        try:
            cb = self.on_event(event)
            if asyncio.iscoroutine(cb):
                await cb
        except Exception as e:
            logger.error(
                f"[{self.platform_name}] 이벤트 처리 오류: {e}, 이벤트: {event}",
                exc_info=True,
            )
