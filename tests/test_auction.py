from __future__ import annotations

import asyncio

import pytest

from auction_relay.auction import AuctionStateMachine


def _machine() -> tuple[AuctionStateMachine, list[dict]]:
    events: list[dict] = []
    return AuctionStateMachine(events.append), events


@pytest.mark.asyncio
async def test_start_without_duration_runs_without_timer() -> None:
    auction, events = _machine()

    auction.start("Signed jersey", current_item=1, total_items=3, starting_bid=50)

    assert auction.active is True
    assert auction.has_pending_timer is False
    assert auction.deadline is None
    assert events == [{
        "type": "auction_start",
        "itemName": "Signed jersey",
        "currentItem": 1,
        "totalItems": 3,
        "startingBid": 50,
        "duration": None,
    }]


@pytest.mark.asyncio
async def test_timer_expiry_ends_auction_once() -> None:
    auction, events = _machine()

    auction.start("Mug", duration=0.05)
    assert auction.has_pending_timer is True
    assert auction.deadline is not None
    await asyncio.sleep(0.15)

    assert auction.active is False
    assert auction.has_pending_timer is False
    assert auction.deadline is None
    assert [e for e in events if e["type"] == "auction_end"] == [{"type": "auction_end", "autoEnd": True}]


@pytest.mark.asyncio
async def test_second_start_replaces_pending_timer() -> None:
    auction, events = _machine()

    auction.start("First", duration=0.05)
    first_timer = auction._timer
    auction.start("Second", duration=0.2)

    assert first_timer.cancelled()
    assert auction.has_pending_timer is True
    await asyncio.sleep(0.1)
    # 첫 타이머는 취소됐으므로 아직 진행 중
    assert auction.active is True
    await asyncio.sleep(0.2)
    assert auction.active is False
    assert sum(1 for e in events if e.get("autoEnd")) == 1


@pytest.mark.asyncio
async def test_stop_cancels_timer_and_reports_winner() -> None:
    auction, events = _machine()
    auction.start("Lamp", duration=0.05)

    auction.stop(winner="bob", winning_bid=120)
    await asyncio.sleep(0.1)

    assert auction.active is False
    assert auction.has_pending_timer is False
    assert events[1:] == [{"type": "auction_end", "winner": "bob", "winningBid": 120}]


@pytest.mark.asyncio
async def test_stop_without_winner_omits_fields() -> None:
    auction, events = _machine()

    auction.stop()

    assert auction.active is False
    assert events == [{"type": "auction_end"}]


@pytest.mark.asyncio
async def test_reset_cancels_timer() -> None:
    auction, events = _machine()
    auction.start("Poster", duration=0.05)

    auction.reset()
    await asyncio.sleep(0.1)

    assert auction.active is False
    assert auction.has_pending_timer is False
    assert events[1:] == [{"type": "auction_reset"}]


@pytest.mark.asyncio
async def test_cancel_timer_is_idempotent() -> None:
    auction, _ = _machine()
    auction.start("Cap", duration=0.01)
    await asyncio.sleep(0.05)

    auction.cancel_timer()
    auction.cancel_timer()

    assert auction.has_pending_timer is False


def test_start_with_explicit_loop_does_not_need_running_loop() -> None:
    loop = asyncio.new_event_loop()
    try:
        events: list[dict] = []
        auction = AuctionStateMachine(events.append, loop=loop)
        auction.start("Hat", duration=30)

        assert auction.active is True
        assert auction.deadline == pytest.approx(loop.time() + 30, abs=1.0)
        auction.reset()
        assert auction.has_pending_timer is False
    finally:
        loop.close()
