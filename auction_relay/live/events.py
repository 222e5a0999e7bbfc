"""
라이브 플랫폼 이벤트 데이터 클래스 (플랫폼 공통)
업스트림 클라이언트는 플랫폼별 원시 이벤트를 아래 타입으로 변환해 콜백으로 넘긴다.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union


class GiftType(str, Enum):
    """선물 종류: 단발(single) / 연속 전송 가능(streakable)"""
    SINGLE = "single"
    STREAKABLE = "streakable"


@dataclass
class ConnectedEvent:
    username: str
    room_id: Optional[str] = None


@dataclass
class GiftEvent:
    """업스트림 원시 선물 이벤트. repeat_count는 현재 스트릭의 누적 개수."""
    sender: str
    nickname: str
    gift_id: str
    gift_name: str
    diamond_count: int  # 선물 1개당 가치
    repeat_count: int
    streak_ended: bool = False
    msg_id: Optional[str] = None
    gift_type: GiftType = GiftType.STREAKABLE

    @property
    def ends_streak(self) -> bool:
        # 단발 선물은 스트릭을 열지 않음
        return self.streak_ended or self.gift_type is GiftType.SINGLE


@dataclass
class ChatEvent:
    sender: str
    nickname: str
    comment: str
    msg_id: Optional[str] = None


@dataclass
class FollowEvent:
    sender: str
    nickname: str


@dataclass
class ShareEvent:
    sender: str
    nickname: str


@dataclass
class DisconnectedEvent:
    pass


@dataclass
class ErrorEvent:
    message: str


LiveEvent = Union[
    ConnectedEvent,
    GiftEvent,
    ChatEvent,
    FollowEvent,
    ShareEvent,
    DisconnectedEvent,
    ErrorEvent,
]
