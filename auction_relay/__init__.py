"""
라이브 경매 중계 서버

틱톡 라이브의 선물/채팅 이벤트를 중복 없이 증가분으로 정리해 위젯·컨트롤 페이지에
WebSocket으로 뿌리고, 그 위에 시간제 경매 상태 머신을 얹는다.
"""

__version__ = "0.1.0"
