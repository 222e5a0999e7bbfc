from __future__ import annotations

from typing import Optional

from auction_relay.gifts import GiftReconciler, StreakState
from auction_relay.live import GiftEvent, GiftType


def _gift(
    count: int,
    *,
    sender: str = "alice",
    gift_id: str = "5655",
    ended: bool = False,
    msg_id: Optional[str] = None,
    gift_type: GiftType = GiftType.STREAKABLE,
) -> GiftEvent:
    return GiftEvent(
        sender=sender,
        nickname=sender.title(),
        gift_id=gift_id,
        gift_name="Rose",
        diamond_count=1,
        repeat_count=count,
        streak_ended=ended,
        msg_id=msg_id,
        gift_type=gift_type,
    )


def _deltas(reconciler: GiftReconciler, events, start: float = 100.0, step: float = 0.5) -> list[int]:
    out = []
    for i, event in enumerate(events):
        delta = reconciler.reconcile(event, start + i * step)
        out.append(delta.repeat_count if delta else 0)
    return out


def test_streak_emits_increments_and_clears_on_end() -> None:
    r = GiftReconciler()
    deltas = _deltas(r, [_gift(1), _gift(3), _gift(5, ended=True)])

    assert deltas == [1, 2, 2]
    assert sum(deltas) == 5
    assert ("alice", "5655") not in r.streaks


def test_repeated_final_count_is_dropped_and_clears_streak() -> None:
    r = GiftReconciler()
    first = r.reconcile(_gift(5), 0.0)
    second = r.reconcile(_gift(5), 1.0)

    assert first is not None and first.repeat_count == 5
    assert second is None
    assert ("alice", "5655") not in r.streaks


def test_sum_of_deltas_matches_final_count() -> None:
    sequences = [
        [1, 2, 3, 4, 5],
        [2, 9, 10],
        [7],
        [1, 5, 20, 99],
    ]
    for counts in sequences:
        r = GiftReconciler()
        events = [_gift(c) for c in counts] + [_gift(counts[-1], ended=True)]
        deltas = _deltas(r, events)
        assert sum(deltas) == counts[-1], counts
        assert all(d >= 0 for d in deltas)
        assert r.streaks == {}


def test_same_message_id_never_produces_two_deltas() -> None:
    r = GiftReconciler()
    first = r.reconcile(_gift(1, msg_id="m-1"), 0.0)
    again = r.reconcile(_gift(1, msg_id="m-1"), 0.1)
    bumped = r.reconcile(_gift(4, msg_id="m-1"), 0.2)

    assert first is not None
    assert again is None
    assert bumped is None
    assert "m-1" in r.dedup


def test_message_id_recorded_before_streak_logic() -> None:
    r = GiftReconciler()
    r.reconcile(_gift(3), 0.0)
    # 역순이라 delta는 없지만 ID는 이미 기록됨
    assert r.reconcile(_gift(2, msg_id="late"), 0.1) is None
    assert "late" in r.dedup


def test_lower_count_is_ignored_without_mutation() -> None:
    r = GiftReconciler()
    r.reconcile(_gift(6), 0.0)
    before = StreakState(**vars(r.streaks[("alice", "5655")]))

    assert r.reconcile(_gift(4), 1.0) is None
    assert r.streaks[("alice", "5655")] == before


def test_expired_streak_starts_over_with_full_count() -> None:
    r = GiftReconciler()
    r.reconcile(_gift(10), 0.0)

    delta = r.reconcile(_gift(3), 6.0)

    assert delta is not None
    assert delta.repeat_count == 3
    assert r.streaks[("alice", "5655")].total_count == 3


def test_streak_ttl_boundary_counts_as_expired() -> None:
    r = GiftReconciler(streak_ttl=5.0)
    r.reconcile(_gift(2), 0.0)

    delta = r.reconcile(_gift(2), 5.0)

    assert delta is not None and delta.repeat_count == 2


def test_streaks_are_tracked_per_sender_and_gift() -> None:
    r = GiftReconciler()
    a = r.reconcile(_gift(2, sender="alice"), 0.0)
    b = r.reconcile(_gift(2, sender="bob"), 0.1)
    c = r.reconcile(_gift(2, sender="alice", gift_id="9999"), 0.2)

    assert [a.repeat_count, b.repeat_count, c.repeat_count] == [2, 2, 2]
    assert len(r.streaks) == 3


def test_single_gifts_do_not_open_a_streak() -> None:
    r = GiftReconciler()
    first = r.reconcile(_gift(1, msg_id="a", gift_type=GiftType.SINGLE), 0.0)
    second = r.reconcile(_gift(1, msg_id="b", gift_type=GiftType.SINGLE), 0.5)

    assert first is not None and first.repeat_count == 1
    assert second is not None and second.repeat_count == 1
    assert r.streaks == {}


def test_equal_count_without_prior_broadcast_is_dropped() -> None:
    r = GiftReconciler()
    r.streaks[("alice", "5655")] = StreakState(total_count=4, last_update=0.0, already_broadcasted=False)

    assert r.reconcile(_gift(4), 1.0) is None


def test_sweep_expires_streaks_and_message_ids() -> None:
    r = GiftReconciler(streak_ttl=5.0, dedup_ttl=10.0)
    r.reconcile(_gift(1, msg_id="x"), 0.0)

    assert r.sweep(6.0) == (1, 0)
    assert r.reconcile(_gift(1, msg_id="x"), 9.0) is None
    assert r.sweep(10.5) == (0, 1)
    assert r.reconcile(_gift(1, msg_id="x"), 11.0) is not None


def test_clear_drops_all_state() -> None:
    r = GiftReconciler()
    r.reconcile(_gift(1, msg_id="x"), 0.0)
    r.clear()

    assert r.streaks == {}
    assert len(r.dedup) == 0


def test_delta_message_shape() -> None:
    r = GiftReconciler()
    r.reconcile(_gift(2, msg_id="m1"), 0.0)
    delta = r.reconcile(_gift(5, msg_id="m2"), 1.0)

    message = delta.to_message(auction_active=True, timestamp_ms=1234)

    assert message == {
        "type": "gift",
        "username": "alice",
        "nickname": "Alice",
        "giftName": "Rose",
        "giftId": "5655",
        "diamondCount": 1,
        "repeatCount": 3,
        "msgId": "m2",
        "timestamp": 1234,
        "auctionActive": True,
    }
    assert delta.total_count == 5
