"""
틱톡 라이브 경매 중계 서버 실행

.env에 RELAY_PORT(기본 8081), TIKTOK_SIGN_API_KEY(선택) 등 설정 후 실행.
실행: python examples/auction_server.py  (프로젝트 루트에서)

- OBS 위젯:     http://localhost:8081/widget.html  (public/ 폴더의 파일을 그대로 제공)
- 컨트롤 패널:  http://localhost:8081/control.html
- WebSocket:   ws://localhost:8081/  (또는 /ws)
"""

import sys
from pathlib import Path

# 프로젝트 루트를 path에 넣어서 'import auction_relay' 가능하게 함
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

import uvicorn
from dotenv import load_dotenv

from auction_relay.relay import RelayConfig, create_app
from auction_relay.utils import setup_logging

load_dotenv(Path(__file__).resolve().parent.parent / ".env")
LOG_DIR = setup_logging()


def main():
    try:
        config = RelayConfig.from_env()
    except ValueError as e:
        print(f"❌ .env 설정 오류: {e}")
        return
    app = create_app(config)

    print(f"🚀 TIKTOK LIVE AUCTION SERVER")
    print(f"   📺 OBS Widget:      http://localhost:{config.port}/widget.html")
    print(f"   🎛️  Control Panel:   http://localhost:{config.port}/control.html")
    print(f"   🔌 WebSocket:       ws://localhost:{config.port}/")
    print(f"로그 저장 경로: {LOG_DIR}\n")
    uvicorn.run(app, host=config.host, port=config.port, log_level="warning")


if __name__ == "__main__":
    main()
