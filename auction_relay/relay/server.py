"""
경매 중계 서버: 같은 포트에서 WebSocket(/, /ws)과 정적 파일(위젯/컨트롤 페이지)을 제공.
실행은 examples/auction_server.py 에서 (uvicorn).
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from auction_relay.live import LiveClientFactory
from auction_relay.relay.commands import CommandError, frame_text, handle_message
from auction_relay.relay.config import RelayConfig
from auction_relay.relay.sessions import ClientFactory
from auction_relay.relay.state import RelayState

logger = logging.getLogger(__name__)


async def relay_socket(websocket: WebSocket):
    """제어/위젯 클라이언트 연결 1개. 끊기면 붙어 있던 업스트림 세션도 정리."""
    relay: RelayState = websocket.app.state.relay
    # accept 전에 등록 (열리기 전 broadcast는 _is_open에서 걸러짐)
    relay.hub.add(websocket)
    try:
        await websocket.accept()
        logger.info("✅ New client connected (%d)", len(relay.hub))
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                raise WebSocketDisconnect(message.get("code", 1000))
            try:
                text = frame_text(message)
            except CommandError as e:
                await relay.hub.send_error(websocket, str(e))
                continue
            await handle_message(relay, websocket, text)
    except WebSocketDisconnect:
        pass
    finally:
        relay.hub.discard(websocket)
        await relay.registry.detach(websocket)
        logger.info("❌ Client disconnected (%d)", len(relay.hub))


def create_app(
    config: Optional[RelayConfig] = None,
    client_factory: ClientFactory = LiveClientFactory.create,
) -> FastAPI:
    config = config or RelayConfig.from_env()
    relay = RelayState.build(config, client_factory=client_factory)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        relay.sweeper = asyncio.create_task(relay.registry.run_sweeper())
        try:
            yield
        finally:
            relay.sweeper.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await relay.sweeper
            relay.auction.cancel_timer()
            await relay.registry.close_all()
            await relay.hub.drain()

    app = FastAPI(title="Live Auction Relay", docs_url=None, redoc_url=None, lifespan=lifespan)
    app.state.relay = relay
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["GET"],
    )

    @app.get("/api/state")
    def get_state():
        """경매 진행 여부, 접속 클라이언트 수, 업스트림 세션 수 반환."""
        return JSONResponse(relay.snapshot())

    app.add_api_websocket_route("/ws", relay_socket)
    app.add_api_websocket_route("/", relay_socket)

    if config.static_dir.is_dir():
        app.mount("/", StaticFiles(directory=str(config.static_dir), html=True), name="static")
    else:
        logger.warning("정적 파일 폴더 없음, 위젯/컨트롤 페이지 미제공: %s", config.static_dir)

    return app
