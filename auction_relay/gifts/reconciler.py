"""
선물 이벤트 정합(reconcile) 엔진

업스트림은 같은 스트릭을 누적 개수가 늘어나는 형태로 여러 번 재전송하고,
스트릭이 끝나면 마지막 누적 개수를 한 번 더 보낸다. 그대로 중계하면 선물 가치가
두세 배로 집계되므로, (보낸 사람, 선물 ID)별 스트릭 상태를 들고 증가분(delta)만 내보낸다.

보장: 한 스트릭이 끝났을 때 내보낸 delta 합 == 업스트림이 보고한 최종 누적 개수.
delta는 항상 1 이상.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from auction_relay.gifts.dedup import DEDUP_TTL_SEC, MessageDedup
from auction_relay.live.events import GiftEvent

logger = logging.getLogger(__name__)

STREAK_TTL_SEC = 5.0

StreakKey = tuple[str, str]


@dataclass
class StreakState:
    total_count: int
    last_update: float
    already_broadcasted: bool = False


@dataclass
class GiftDelta:
    """중계할 선물 1건. repeat_count는 누적이 아닌 증가분."""
    sender: str
    nickname: str
    gift_id: str
    gift_name: str
    diamond_count: int
    repeat_count: int
    total_count: int
    msg_id: Optional[str] = None

    def to_message(self, auction_active: bool, timestamp_ms: int) -> dict:
        return {
            "type": "gift",
            "username": self.sender,
            "nickname": self.nickname,
            "giftName": self.gift_name,
            "giftId": self.gift_id,
            "diamondCount": self.diamond_count,
            "repeatCount": self.repeat_count,
            "msgId": self.msg_id,
            "timestamp": timestamp_ms,
            "auctionActive": auction_active,
        }


class GiftReconciler:
    """업스트림 세션 1개당 하나. 중복 제거 집합과 스트릭 테이블을 소유한다."""

    def __init__(
        self,
        streak_ttl: float = STREAK_TTL_SEC,
        dedup_ttl: float = DEDUP_TTL_SEC,
    ):
        self.streak_ttl = streak_ttl
        self.dedup = MessageDedup(dedup_ttl)
        self._streaks: dict[StreakKey, StreakState] = {}

    @property
    def streaks(self) -> dict[StreakKey, StreakState]:
        return self._streaks

    def _live_streak(self, key: StreakKey, now: float) -> Optional[StreakState]:
        state = self._streaks.get(key)
        if state is None or now - state.last_update >= self.streak_ttl:
            return None
        return state

    def reconcile(self, raw: GiftEvent, now: float) -> Optional[GiftDelta]:
        """원시 선물 이벤트 1건을 처리하고 중계할 delta를 반환 (없으면 None)."""
        if raw.msg_id:
            if not self.dedup.check_and_record(raw.msg_id, now, raw.repeat_count):
                logger.debug("중복 메시지 무시: %s", raw.msg_id)
                return None

        key = (raw.sender, raw.gift_id)
        existing = self._live_streak(key, now)
        delta_count = 0

        if existing is None:
            delta_count = raw.repeat_count
            self._streaks[key] = StreakState(
                total_count=raw.repeat_count,
                last_update=now,
                already_broadcasted=True,
            )
        elif raw.repeat_count > existing.total_count:
            delta_count = raw.repeat_count - existing.total_count
            existing.total_count = raw.repeat_count
            existing.last_update = now
            existing.already_broadcasted = True
        elif raw.repeat_count == existing.total_count:
            # 이미 중계한 스트릭의 종료 재공지. already_broadcasted가 False인 경우도 버린다.
            if existing.already_broadcasted:
                self._streaks.pop(key, None)
        else:
            logger.debug(
                "역순/중복 재전송 무시: %s %s x%d (현재 %d)",
                raw.sender, raw.gift_id, raw.repeat_count, existing.total_count,
            )

        if raw.ends_streak:
            self._streaks.pop(key, None)

        if delta_count <= 0:
            return None
        return GiftDelta(
            sender=raw.sender,
            nickname=raw.nickname,
            gift_id=raw.gift_id,
            gift_name=raw.gift_name,
            diamond_count=raw.diamond_count,
            repeat_count=delta_count,
            total_count=raw.repeat_count,
            msg_id=raw.msg_id,
        )

    def sweep(self, now: float) -> tuple[int, int]:
        """만료된 스트릭/메시지 ID 정리. (스트릭 삭제 수, 메시지 삭제 수) 반환."""
        stale = [k for k, s in self._streaks.items() if now - s.last_update >= self.streak_ttl]
        for k in stale:
            del self._streaks[k]
        return len(stale), self.dedup.sweep(now)

    def clear(self) -> None:
        self._streaks.clear()
        self.dedup.clear()
