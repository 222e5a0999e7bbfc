"""
제어 클라이언트 → 서버 명령 파싱 및 처리

명령은 type 필드를 가진 JSON 객체. 형식 오류는 CommandError로 올려
보낸 클라이언트에게만 오류로 응답하고, 모르는 type은 무시한다.
"""

from __future__ import annotations

import json
import logging
import math
from typing import Any, Optional

from starlette.websockets import WebSocket

logger = logging.getLogger(__name__)

AUCTION_END_TYPES = ("auction_stop", "auction_end")


class CommandError(ValueError):
    """잘못된 명령 (JSON 형식 오류, 필드 누락/형식 불일치)"""


def _reject_constant(name: str):
    # NaN, Infinity 는 JSON이 아님
    raise CommandError(f"Invalid JSON constant: {name}")


def frame_text(message: dict[str, Any]) -> str:
    """websocket.receive 메시지에서 명령 텍스트 추출 (텍스트/바이너리 프레임 모두)"""
    text = message.get("text")
    if text is not None:
        return text
    try:
        return (message.get("bytes") or b"").decode("utf-8")
    except UnicodeDecodeError:
        raise CommandError("Invalid UTF-8") from None


def parse_command(text: str) -> dict[str, Any]:
    try:
        data = json.loads(text, parse_constant=_reject_constant)
    except (TypeError, ValueError):
        raise CommandError("Invalid JSON") from None
    if not isinstance(data, dict):
        raise CommandError("Command must be a JSON object")
    if not isinstance(data.get("type"), str) or not data["type"]:
        raise CommandError("Command is missing 'type'")
    return data


def _duration(data: dict[str, Any]) -> Optional[float]:
    value = data.get("duration")
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise CommandError("duration must be a number of seconds")
    try:
        seconds = float(value)
    except (TypeError, ValueError, OverflowError):
        raise CommandError("duration must be a number of seconds") from None
    if not math.isfinite(seconds):
        raise CommandError("duration must be a finite number of seconds")
    if seconds < 0:
        raise CommandError("duration must not be negative")
    if isinstance(value, int):
        return value
    return int(seconds) if seconds.is_integer() else seconds


def _username(data: dict[str, Any]) -> str:
    username = data.get("username")
    if not isinstance(username, str) or not username.strip().lstrip("@"):
        raise CommandError("connect requires a username")
    return username.strip().lstrip("@")


async def dispatch(relay, ws: WebSocket, data: dict[str, Any]) -> None:
    """파싱된 명령 1건 실행. relay는 RelayState."""
    kind = data["type"]

    if kind == "connect":
        await relay.registry.attach(ws, _username(data))
    elif kind == "disconnect":
        await relay.registry.detach(ws)
    elif kind == "auction_start":
        relay.auction.start(
            data.get("itemName"),
            duration=_duration(data),
            current_item=data.get("currentItem"),
            total_items=data.get("totalItems"),
            starting_bid=data.get("startingBid"),
        )
    elif kind in AUCTION_END_TYPES:
        relay.auction.stop(winner=data.get("winner"), winning_bid=data.get("winningBid"))
    elif kind == "auction_reset":
        relay.auction.reset()
    else:
        logger.debug("알 수 없는 명령 무시: %s", kind)


async def handle_message(relay, ws: WebSocket, text: str) -> None:
    """수신 텍스트 1건 처리. 어떤 실패도 연결/프로세스를 죽이지 않는다."""
    try:
        await dispatch(relay, ws, parse_command(text))
    except CommandError as e:
        logger.info("잘못된 명령: %s", e)
        await relay.hub.send_error(ws, str(e))
    except Exception as e:
        logger.error("Error processing message: %s", e, exc_info=True)
        await relay.hub.send_error(ws, "Error processing data")
