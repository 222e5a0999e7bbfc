from __future__ import annotations

from pathlib import Path

import pytest

from auction_relay.relay import RelayConfig
from auction_relay.relay.config import DEFAULT_STATIC_DIR


def test_defaults_from_empty_env() -> None:
    config = RelayConfig.from_env({})

    assert config.host == "0.0.0.0"
    assert config.port == 8081
    assert config.platform == "tiktok"
    assert config.static_dir == DEFAULT_STATIC_DIR
    assert (config.streak_ttl, config.dedup_ttl, config.sweep_interval) == (5.0, 10.0, 5.0)
    assert config.client_options() == {}


def test_values_from_env() -> None:
    config = RelayConfig.from_env({
        "RELAY_HOST": "127.0.0.1",
        "RELAY_PORT": "9000",
        "RELAY_STATIC_DIR": "/srv/widgets",
        "LIVE_PLATFORM": "TikTok",
        "GIFT_STREAK_TTL_SEC": "3",
        "GIFT_DEDUP_TTL_SEC": "8",
        "GIFT_SWEEP_INTERVAL_SEC": "2",
        "RELAY_SEND_TIMEOUT_SEC": "1.5",
        "TIKTOK_SIGN_API_KEY": "secret",
    })

    assert config.host == "127.0.0.1"
    assert config.port == 9000
    assert config.static_dir == Path("/srv/widgets")
    assert config.platform == "tiktok"
    assert (config.streak_ttl, config.dedup_ttl, config.sweep_interval) == (3.0, 8.0, 2.0)
    assert config.send_timeout == 1.5
    assert config.client_options() == {"sign_api_key": "secret"}
    assert "secret" not in repr(config)


def test_sweep_interval_is_clamped_to_smallest_ttl() -> None:
    config = RelayConfig(streak_ttl=4.0, dedup_ttl=10.0, sweep_interval=30.0)

    assert config.sweep_interval == 4.0


@pytest.mark.parametrize("env", [
    {"RELAY_PORT": "eighty"},
    {"GIFT_STREAK_TTL_SEC": "fast"},
    {"GIFT_DEDUP_TTL_SEC": "0"},
    {"RELAY_SEND_TIMEOUT_SEC": "0"},
])
def test_invalid_values_raise(env: dict) -> None:
    with pytest.raises(ValueError):
        RelayConfig.from_env(env)
