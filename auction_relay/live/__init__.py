"""
업스트림 라이브 세션 모듈
라이브 플랫폼(틱톡 등)의 선물/채팅 이벤트를 수집하는 모듈
"""

from .base_client import LiveClient
from .client_factory import LiveClientFactory
from .events import (
    ChatEvent,
    ConnectedEvent,
    DisconnectedEvent,
    ErrorEvent,
    FollowEvent,
    GiftEvent,
    GiftType,
    LiveEvent,
    ShareEvent,
)
from .tiktok_client import TikTokLiveSession

__all__ = [
    "LiveClient",
    "LiveClientFactory",
    "TikTokLiveSession",
    "LiveEvent",
    "ConnectedEvent",
    "GiftEvent",
    "GiftType",
    "ChatEvent",
    "FollowEvent",
    "ShareEvent",
    "DisconnectedEvent",
    "ErrorEvent",
]
