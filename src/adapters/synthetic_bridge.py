"""Synthetic command bridge.

Answers every operation from fixed in-memory data after an artificial delay so
loading states can be exercised without a rooted device. It never fails and
never touches the system.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from core.config import DEFAULT_CONFIG, AppConfig
from core.models import (
    ConflictEntry,
    DeviceInfo,
    DiagnosticIssue,
    HymoFsStatus,
    Module,
    ModuleRules,
    MountMode,
    StorageStatus,
    SystemInfo,
)

LOGGER = logging.getLogger(__name__)

_MODULES = (
    Module(
        id="magisk_module_1",
        name="Example Module",
        version="1.0.0",
        author="Developer",
        description="This is a synthetic module for testing.",
        mode=MountMode.MAGIC,
        is_mounted=True,
        rules=ModuleRules(default_mode=MountMode.MAGIC, paths={"system/fonts": MountMode.OVERLAY}),
    ),
    Module(
        id="overlay_module_2",
        name="System UI Overlay",
        version="2.5",
        author="Google",
        description="Changes system colors.",
        mode=MountMode.AUTO,
        is_mounted=True,
        rules=ModuleRules(default_mode=MountMode.OVERLAY),
    ),
    Module(
        id="disabled_module",
        name="Unmounted Module",
        version="0.1",
        author="Tester",
        description="This module is not mounted.",
        mode=MountMode.IGNORE,
        is_mounted=False,
        rules=ModuleRules(default_mode=MountMode.IGNORE),
    ),
)

_LOG_TEXT = "\n".join(
    [
        "[I] meta-hybrid daemon starting",
        "[I] storage backend: erofs",
        "[W] partition my_bigball not present, skipping",
        "[I] mounted 2 modules (1 overlay, 1 magic)",
    ]
)


class SyntheticBridge:
    """BridgePort answering from canned data.

    ``delay_scale`` multiplies every simulated latency; tests pass ``0``.
    """

    def __init__(self, app_version: str, delay_scale: float = 1.0) -> None:
        self._app_version = app_version
        self._delay_scale = delay_scale

    async def _delay(self, ms: int) -> None:
        await asyncio.sleep(ms / 1000 * self._delay_scale)

    async def load_config(self) -> AppConfig:
        await self._delay(300)
        return DEFAULT_CONFIG

    async def save_config(self, config: AppConfig) -> None:
        await self._delay(500)
        LOGGER.info("[synthetic] config saved: %s", config.to_dict())

    async def reset_config(self) -> None:
        await self._delay(500)
        LOGGER.info("[synthetic] config reset to defaults")

    async def scan_modules(self) -> list[Module]:
        await self._delay(600)
        return list(_MODULES)

    async def save_module_rules(self, module_id: str, rules: ModuleRules) -> None:
        await self._delay(400)
        LOGGER.info("[synthetic] rules saved for %s: %s", module_id, rules.to_dict())

    async def get_conflicts(self) -> list[ConflictEntry]:
        await self._delay(300)
        return [
            ConflictEntry(
                partition="system",
                relative_path="fonts/Roboto-Regular.ttf",
                contending_modules=("magisk_module_1", "overlay_module_2"),
            )
        ]

    async def get_diagnostics(self) -> list[DiagnosticIssue]:
        await self._delay(300)
        return [DiagnosticIssue(level="Warning", context="my_bigball", message="Partition not present")]

    async def read_logs(self) -> str:
        await self._delay(200)
        return _LOG_TEXT

    async def get_storage_usage(self) -> StorageStatus:
        await self._delay(300)
        return StorageStatus(type="erofs", hymofs_available=True, hymofs_version="1.0")

    async def get_system_info(self) -> SystemInfo:
        await self._delay(300)
        return SystemInfo(
            kernel="Linux localhost 5.15.0 #1 SMP PREEMPT",
            selinux="Enforcing",
            mount_base="/data/adb/meta-hybrid/mnt",
            active_mounts=("system", "product"),
            zygisksu_enforce="1",
            tmpfs_xattr_supported=False,
        )

    async def get_device_status(self) -> DeviceInfo:
        await self._delay(300)
        return DeviceInfo(
            model="Pixel 8 Pro (Synthetic)",
            android="14 (API 34)",
            kernel="5.15.110-android14-11",
            selinux="Enforcing",
        )

    async def get_version(self) -> str:
        await self._delay(100)
        return self._app_version

    async def get_hymofs_status(self) -> HymoFsStatus:
        await self._delay(200)
        return HymoFsStatus(available=True, enabled=True, version="1.0")

    async def system_action(self, action: str, value: Optional[str] = None) -> None:
        await self._delay(300)
        LOGGER.info("[synthetic] system action %s=%s", action, value)

    async def open_link(self, url: str) -> None:
        LOGGER.info("[synthetic] open link %s", url)

    async def reboot(self) -> None:
        await self._delay(100)
        LOGGER.info("[synthetic] reboot requested")
