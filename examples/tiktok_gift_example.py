"""
틱톡 라이브 선물 수신 예제 (서버 없이 콘솔 출력)

원시 선물 이벤트와 정합 후 증가분을 나란히 찍어 스트릭 재전송이 어떻게 걸러지는지 확인.
실행: python examples/tiktok_gift_example.py <방송인 핸들>  (프로젝트 루트에서)
"""

import sys
from pathlib import Path

# 프로젝트 루트를 path에 넣어서 'import auction_relay' 가능하게 함
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

import asyncio
import os
import time

from dotenv import load_dotenv

from auction_relay.gifts import GiftReconciler
from auction_relay.live import ChatEvent, GiftEvent, LiveClientFactory, LiveEvent
from auction_relay.utils import setup_logging

load_dotenv(Path(__file__).resolve().parent.parent / ".env")
LOG_DIR = setup_logging()


async def main():
    if len(sys.argv) < 2:
        print("사용법: python examples/tiktok_gift_example.py <username>")
        return
    reconciler = GiftReconciler()

    def on_event(event: LiveEvent):
        if isinstance(event, GiftEvent):
            delta = reconciler.reconcile(event, time.monotonic())
            shown = f"+{delta.repeat_count}" if delta else "무시"
            end = " (끝)" if event.streak_ended else ""
            print(f"🎁 {event.nickname}: {event.gift_name} 누적 x{event.repeat_count}{end} → {shown}")
        elif isinstance(event, ChatEvent):
            print(f"💬 {event.nickname}: {event.comment}")
        else:
            print(f"· {event}")

    sign_key = os.getenv("TIKTOK_SIGN_API_KEY") or None
    client = LiveClientFactory.create(
        platform="tiktok",
        username=sys.argv[1],
        on_event=on_event,
        sign_api_key=sign_key,
    )
    print(f"플랫폼: {client.platform_name}, 방송인: @{client.username}")
    print(f"로그 저장 경로: {LOG_DIR}")
    print("선물 수신 중... (종료: Ctrl+C)\n")
    await client.connect()
    try:
        while True:
            await asyncio.sleep(reconciler.streak_ttl)
            reconciler.sweep(time.monotonic())
    except (KeyboardInterrupt, asyncio.CancelledError):
        pass
    finally:
        await client.disconnect()


if __name__ == "__main__":
    asyncio.run(main())
