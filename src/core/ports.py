"""Ports (interfaces) used by the store.

Ports define the minimal contracts for the privileged executor, the command
bridge and durable preferences so the store can run against the live daemon,
the synthetic backend, or test fakes without changes.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Protocol

from core.config import AppConfig
from core.models import (
    ConflictEntry,
    DeviceInfo,
    DiagnosticIssue,
    HymoFsStatus,
    Module,
    ModuleRules,
    StorageStatus,
    SystemInfo,
)


@dataclass(frozen=True)
class ExecResult:
    """Outcome of one command run by the privileged executor."""

    status: int
    stdout: str
    stderr: str

    @property
    def ok(self) -> bool:
        return self.status == 0


class ExecutorPort(Protocol):
    """Runs one shell-style command line with elevated permissions."""

    async def execute(self, command: str) -> ExecResult:
        ...


class BridgePort(Protocol):
    """Catalogue of named operations offered by both backends."""

    async def load_config(self) -> AppConfig:
        ...

    async def save_config(self, config: AppConfig) -> None:
        ...

    async def reset_config(self) -> None:
        ...

    async def scan_modules(self) -> list[Module]:
        ...

    async def save_module_rules(self, module_id: str, rules: ModuleRules) -> None:
        ...

    async def read_logs(self) -> str:
        ...

    async def get_storage_usage(self) -> StorageStatus:
        ...

    async def get_system_info(self) -> SystemInfo:
        ...

    async def get_device_status(self) -> DeviceInfo:
        ...

    async def get_version(self) -> str:
        ...

    async def get_conflicts(self) -> list[ConflictEntry]:
        ...

    async def get_diagnostics(self) -> list[DiagnosticIssue]:
        ...

    async def get_hymofs_status(self) -> HymoFsStatus:
        ...

    async def system_action(self, action: str, value: Optional[str] = None) -> None:
        ...

    async def open_link(self, url: str) -> None:
        ...

    async def reboot(self) -> None:
        ...


class PreferencesPort(Protocol):
    """Durable string key/value storage for UI preferences."""

    def get(self, key: str) -> Optional[str]:
        ...

    def set(self, key: str, value: str) -> None:
        ...
