from __future__ import annotations

import asyncio

from adapters.synthetic_bridge import SyntheticBridge
from console.store import Store
from core.config import DEFAULT_CONFIG
from core.locale import LocaleRegistry


class FakePreferences:
    def __init__(self) -> None:
        self.values: dict[str, str] = {}

    def get(self, key: str):
        return self.values.get(key)

    def set(self, key: str, value: str) -> None:
        self.values[key] = value


def test_synthetic_bridge_returns_defaults() -> None:
    bridge = SyntheticBridge("v1.0.0", delay_scale=0)

    assert asyncio.run(bridge.load_config()) == DEFAULT_CONFIG
    assert asyncio.run(bridge.get_version()) == "v1.0.0"


def test_store_over_synthetic_bridge_reports_mode_stats() -> None:
    store = Store(
        SyntheticBridge("v1.0.0", delay_scale=0),
        LocaleRegistry({}),
        FakePreferences(),
        toast_scheduler=lambda delay, callback: None,
    )

    asyncio.run(store.init())

    assert store.mode_stats == {"overlay": 0, "magic": 1, "ignore": 0, "auto": 1}
    # Synthetic system info reports enforcement without coexistence.
    assert store.config.disable_umount is True
    assert "tmpfs" not in store.available_overlay_modes
