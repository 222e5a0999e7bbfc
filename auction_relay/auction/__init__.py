"""경매 모듈: 시작/중지/초기화 명령과 자동 마감 타이머."""

from .state_machine import AuctionStateMachine

__all__ = ["AuctionStateMachine"]
