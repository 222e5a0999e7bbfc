"""메시지 ID 중복 제거 집합. 한 번 본 ID는 TTL이 지날 때까지 다시 처리하지 않는다."""

from __future__ import annotations

from dataclasses import dataclass

DEDUP_TTL_SEC = 10.0


@dataclass
class MessageDedupEntry:
    first_seen: float
    repeat_count: int = 0


class MessageDedup:
    def __init__(self, ttl: float = DEDUP_TTL_SEC):
        self.ttl = ttl
        self._entries: dict[str, MessageDedupEntry] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, msg_id: str) -> bool:
        return msg_id in self._entries

    def check_and_record(self, msg_id: str, now: float, repeat_count: int = 0) -> bool:
        """처음 보는 ID면 기록하고 True, 이미 본 ID면 False."""
        if msg_id in self._entries:
            return False
        self._entries[msg_id] = MessageDedupEntry(first_seen=now, repeat_count=repeat_count)
        return True

    def sweep(self, now: float) -> int:
        expired = [k for k, e in self._entries.items() if now - e.first_seen > self.ttl]
        for k in expired:
            del self._entries[k]
        return len(expired)

    def clear(self) -> None:
        self._entries.clear()
