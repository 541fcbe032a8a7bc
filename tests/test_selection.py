from __future__ import annotations

from adapters.live_bridge import DaemonPaths, LiveBridge
from adapters.selection import MODE_LIVE, MODE_SYNTHETIC, select_bridge
from adapters.synthetic_bridge import SyntheticBridge

PATHS = DaemonPaths("/bin/hm", "/state.json", "/hm.log")


class FakeExecutor:
    def __init__(self, available: bool) -> None:
        self._available = available
        self.su_binary = "su"

    def is_available(self) -> bool:
        return self._available

    async def execute(self, command: str):
        raise AssertionError("selection must not run commands")


def test_dev_mode_forces_synthetic_bridge() -> None:
    selection = select_bridge(FakeExecutor(available=True), PATHS, "v1", dev_mode=True)

    assert selection.mode == MODE_SYNTHETIC
    assert isinstance(selection.bridge, SyntheticBridge)


def test_missing_su_falls_back_to_synthetic_bridge() -> None:
    selection = select_bridge(FakeExecutor(available=False), PATHS, "v1")

    assert selection.mode == MODE_SYNTHETIC
    assert "su" in selection.reason


def test_available_su_selects_live_bridge() -> None:
    selection = select_bridge(FakeExecutor(available=True), PATHS, "v1")

    assert selection.mode == MODE_LIVE
    assert isinstance(selection.bridge, LiveBridge)
