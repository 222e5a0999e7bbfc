"""
다운스트림 중계: 위젯/컨트롤 페이지가 WebSocket으로 붙어 선물·경매 이벤트를 받는다.

- create_app(): FastAPI 앱 (WebSocket /, /ws + 정적 파일 + /api/state)
- BroadcastHub: 열린 모든 연결로 팬아웃
- SessionRegistry: 연결별 업스트림 세션 관리
"""

from .broadcast import BroadcastHub
from .commands import CommandError, parse_command
from .config import RelayConfig
from .server import create_app
from .sessions import LiveSession, SessionRegistry
from .state import RelayState

__all__ = [
    "BroadcastHub",
    "CommandError",
    "LiveSession",
    "RelayConfig",
    "RelayState",
    "SessionRegistry",
    "create_app",
    "parse_command",
]
