"""
경매 타이머 상태 머신

상태: Idle(active=False) / Running(active=True, 마감 시각 선택).
start/stop/reset 명령과 마감 타이머로만 전이하고, 전이할 때마다 알림을 notify로 내보낸다.
타이머는 항상 최대 1개. 모든 전이는 기존 타이머를 먼저 취소한다.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)

Notify = Callable[[dict], None]


class AuctionStateMachine:
    def __init__(self, notify: Notify, loop: Optional[asyncio.AbstractEventLoop] = None):
        """
        Args:
            notify: 전이 알림을 받을 콜백 (보통 BroadcastHub.publish)
            loop: 타이머를 걸 이벤트 루프. None이면 start 시점의 실행 중 루프.
        """
        self._notify = notify
        self._loop = loop
        self.active = False
        self.deadline: Optional[float] = None  # loop.time() 기준
        self._timer: Optional[asyncio.TimerHandle] = None

    @property
    def has_pending_timer(self) -> bool:
        return self._timer is not None

    def cancel_timer(self) -> None:
        # TimerHandle.cancel()은 이미 실행/취소된 핸들에도 안전
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        self.deadline = None

    def start(
        self,
        item_name: Any,
        duration: Optional[float] = None,
        current_item: Any = None,
        total_items: Any = None,
        starting_bid: Any = None,
    ) -> dict:
        self.cancel_timer()
        self.active = True
        if duration:
            loop = self._loop or asyncio.get_running_loop()
            self.deadline = loop.time() + duration
            self._timer = loop.call_later(duration, self._on_timeout)
        logger.info("경매 시작: %s (제한 %s초)", item_name, duration)
        event = {
            "type": "auction_start",
            "itemName": item_name,
            "currentItem": current_item,
            "totalItems": total_items,
            "startingBid": starting_bid,
            "duration": duration,
        }
        self._notify(event)
        return event

    def _on_timeout(self) -> None:
        self._timer = None
        self.deadline = None
        self.active = False
        logger.info("경매 종료 (시간 만료)")
        self._notify({"type": "auction_end", "autoEnd": True})

    def stop(self, winner: Any = None, winning_bid: Any = None) -> dict:
        self.cancel_timer()
        self.active = False
        logger.info("경매 중지: 낙찰자=%s 낙찰가=%s", winner, winning_bid)
        event: dict = {"type": "auction_end"}
        if winner is not None:
            event["winner"] = winner
        if winning_bid is not None:
            event["winningBid"] = winning_bid
        self._notify(event)
        return event

    def reset(self) -> dict:
        self.cancel_timer()
        self.active = False
        logger.info("경매 초기화")
        event = {"type": "auction_reset"}
        self._notify(event)
        return event
