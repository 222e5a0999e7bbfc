"""중계 서버 설정. .env(python-dotenv)로 읽은 환경 변수에서 만든다."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping, Optional

from auction_relay.gifts.dedup import DEDUP_TTL_SEC
from auction_relay.gifts.reconciler import STREAK_TTL_SEC
from auction_relay.relay.broadcast import SEND_TIMEOUT_SEC

_PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
DEFAULT_STATIC_DIR = _PROJECT_ROOT / "public"


def _env_float(env: Mapping[str, str], name: str, default: float) -> float:
    raw = (env.get(name) or "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} 값이 숫자가 아닙니다: {raw!r}") from None


@dataclass(frozen=True)
class RelayConfig:
    host: str = "0.0.0.0"
    port: int = 8081
    static_dir: Path = DEFAULT_STATIC_DIR
    platform: str = "tiktok"
    streak_ttl: float = STREAK_TTL_SEC
    dedup_ttl: float = DEDUP_TTL_SEC
    sweep_interval: float = STREAK_TTL_SEC
    send_timeout: float = SEND_TIMEOUT_SEC
    sign_api_key: Optional[str] = field(default=None, repr=False)

    def __post_init__(self):
        for name in ("streak_ttl", "dedup_ttl", "sweep_interval", "send_timeout"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name}는 0보다 커야 합니다")
        # 정리 주기는 짧은 TTL보다 길면 안 됨
        limit = min(self.streak_ttl, self.dedup_ttl)
        if self.sweep_interval > limit:
            object.__setattr__(self, "sweep_interval", limit)

    def client_options(self) -> dict[str, Any]:
        """플랫폼 클라이언트 생성 시 넘길 추가 인자"""
        if self.sign_api_key:
            return {"sign_api_key": self.sign_api_key}
        return {}

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "RelayConfig":
        env = os.environ if env is None else env
        port_raw = (env.get("RELAY_PORT") or "8081").strip()
        try:
            port = int(port_raw)
        except ValueError:
            raise ValueError(f"RELAY_PORT 값이 정수가 아닙니다: {port_raw!r}") from None
        static_dir = (env.get("RELAY_STATIC_DIR") or "").strip()
        return cls(
            host=(env.get("RELAY_HOST") or "0.0.0.0").strip(),
            port=port,
            static_dir=Path(static_dir) if static_dir else DEFAULT_STATIC_DIR,
            platform=(env.get("LIVE_PLATFORM") or "tiktok").strip().lower(),
            streak_ttl=_env_float(env, "GIFT_STREAK_TTL_SEC", STREAK_TTL_SEC),
            dedup_ttl=_env_float(env, "GIFT_DEDUP_TTL_SEC", DEDUP_TTL_SEC),
            sweep_interval=_env_float(env, "GIFT_SWEEP_INTERVAL_SEC", STREAK_TTL_SEC),
            send_timeout=_env_float(env, "RELAY_SEND_TIMEOUT_SEC", SEND_TIMEOUT_SEC),
            sign_api_key=(env.get("TIKTOK_SIGN_API_KEY") or "").strip() or None,
        )
