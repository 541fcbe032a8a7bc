"""One-time backend selection.

The live bridge is preferred; the synthetic bridge is substituted when the
console runs in development mode or the root shell cannot be found. The choice
is made once by the composition root and never revisited.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from adapters.live_bridge import DaemonPaths, LiveBridge
from adapters.shell_executor import ShellExecutor
from adapters.synthetic_bridge import SyntheticBridge
from core.ports import BridgePort

LOGGER = logging.getLogger(__name__)

MODE_LIVE = "live"
MODE_SYNTHETIC = "synthetic"


@dataclass(frozen=True)
class BridgeSelection:
    bridge: BridgePort
    mode: str
    reason: str


def select_bridge(
    executor: ShellExecutor,
    paths: DaemonPaths,
    app_version: str,
    dev_mode: bool = False,
    synthetic_delay_scale: float = 1.0,
) -> BridgeSelection:
    """Pick the live or synthetic bridge for this process."""

    if dev_mode:
        selection = BridgeSelection(
            bridge=SyntheticBridge(app_version, delay_scale=synthetic_delay_scale),
            mode=MODE_SYNTHETIC,
            reason="development mode",
        )
    elif not executor.is_available():
        selection = BridgeSelection(
            bridge=SyntheticBridge(app_version, delay_scale=synthetic_delay_scale),
            mode=MODE_SYNTHETIC,
            reason=f"{executor.su_binary} not found",
        )
    else:
        selection = BridgeSelection(
            bridge=LiveBridge(executor, paths, app_version),
            mode=MODE_LIVE,
            reason=f"using {executor.su_binary}",
        )
    LOGGER.info("Selected %s bridge (%s)", selection.mode, selection.reason)
    return selection
