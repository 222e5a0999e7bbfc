"""선물 정합 모듈: 중복/부분 재전송된 선물 이벤트를 증가분 스트림으로 변환."""

from .dedup import MessageDedup
from .reconciler import GiftDelta, GiftReconciler, StreakState

__all__ = ["GiftDelta", "GiftReconciler", "MessageDedup", "StreakState"]
