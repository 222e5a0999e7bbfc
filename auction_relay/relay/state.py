"""중계 서버 공유 상태. 한 프로세스에 하나, FastAPI app.state.relay 에 붙는다."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Optional

from auction_relay.auction import AuctionStateMachine
from auction_relay.live import LiveClientFactory
from auction_relay.relay.broadcast import BroadcastHub
from auction_relay.relay.config import RelayConfig
from auction_relay.relay.sessions import ClientFactory, SessionRegistry


@dataclass
class RelayState:
    config: RelayConfig
    hub: BroadcastHub
    auction: AuctionStateMachine
    registry: SessionRegistry
    sweeper: Optional[asyncio.Task] = field(default=None, repr=False)

    @classmethod
    def build(
        cls,
        config: RelayConfig,
        client_factory: ClientFactory = LiveClientFactory.create,
    ) -> "RelayState":
        hub = BroadcastHub(send_timeout=config.send_timeout)
        auction = AuctionStateMachine(hub.publish)
        registry = SessionRegistry(hub, auction, config, client_factory=client_factory)
        return cls(config=config, hub=hub, auction=auction, registry=registry)

    def snapshot(self) -> dict:
        return {
            "auctionActive": self.auction.active,
            "auctionTimerArmed": self.auction.has_pending_timer,
            "clients": len(self.hub),
            "sessions": len(self.registry),
        }
