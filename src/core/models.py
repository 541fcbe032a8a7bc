"""Core domain models.

These dataclasses are shared across the core, the adapters and the store so
none of them depends on the daemon's raw JSON shapes. Every model is frozen:
state slices are replaced wholesale, never patched.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping, Optional

from core.errors import CodecError


class MountMode(str, Enum):
    """Strategy used to integrate a module's files into the system view."""

    OVERLAY = "overlay"
    MAGIC = "magic"
    IGNORE = "ignore"
    AUTO = "auto"

    @classmethod
    def parse(cls, raw: Any, default: Optional["MountMode"] = None) -> "MountMode":
        try:
            return cls(str(raw).lower())
        except ValueError:
            return default if default is not None else cls.AUTO


SEVERITY_INFO = "info"
SEVERITY_SUCCESS = "success"
SEVERITY_ERROR = "error"


@dataclass(frozen=True)
class ModuleRules:
    """Default mount mode plus per-path overrides."""

    default_mode: MountMode = MountMode.OVERLAY
    paths: Mapping[str, MountMode] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> "ModuleRules":
        data = data or {}
        if not isinstance(data, Mapping):
            raise CodecError("module rules must be a JSON object")
        paths = data.get("paths") or {}
        if not isinstance(paths, Mapping):
            raise CodecError("module rule paths must be a JSON object")
        return cls(
            default_mode=MountMode.parse(data.get("default_mode"), MountMode.OVERLAY),
            paths={str(path): MountMode.parse(mode, MountMode.OVERLAY) for path, mode in paths.items()},
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "default_mode": self.default_mode.value,
            "paths": {path: mode.value for path, mode in self.paths.items()},
        }


@dataclass(frozen=True)
class Module:
    """One installed module as reported by the daemon's ``modules`` command."""

    id: str
    name: str
    version: str
    author: str
    description: str = ""
    mode: MountMode = MountMode.AUTO
    is_mounted: bool = False
    rules: ModuleRules = field(default_factory=ModuleRules)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Module":
        module_id = str(data.get("id", ""))
        return cls(
            id=module_id,
            name=str(data.get("name") or module_id),
            version=str(data.get("version", "")),
            author=str(data.get("author", "")),
            description=str(data.get("description", "")),
            mode=MountMode.parse(data.get("mode")),
            is_mounted=bool(data.get("is_mounted", False)),
            rules=ModuleRules.from_dict(data.get("rules")),
        )


@dataclass(frozen=True)
class DeviceInfo:
    model: str = "-"
    android: str = "-"
    kernel: str = "-"
    selinux: str = "-"


@dataclass(frozen=True)
class SystemInfo:
    """Kernel facts plus the daemon's view of active mounts."""

    kernel: str = "-"
    selinux: str = "-"
    mount_base: str = "-"
    active_mounts: tuple[str, ...] = ()
    zygisksu_enforce: Optional[str] = None
    supported_overlay_modes: Optional[tuple[str, ...]] = None
    tmpfs_xattr_supported: Optional[bool] = None

    @property
    def enforcement_active(self) -> bool:
        """True when the Zygisk denylist enforcement signal is on."""

        return bool(self.zygisksu_enforce) and self.zygisksu_enforce != "0"


@dataclass(frozen=True)
class StorageStatus:
    """Backing-store type and auxiliary filesystem capabilities."""

    type: Optional[str] = None
    size: str = "-"
    used: str = "-"
    percent: str = "0%"
    hymofs_available: bool = False
    hymofs_version: Optional[str] = None
    supported_modes: Optional[tuple[str, ...]] = None


@dataclass(frozen=True)
class HymoFsStatus:
    available: bool = False
    enabled: bool = False
    version: Optional[str] = None


@dataclass(frozen=True)
class Toast:
    id: int
    text: str
    severity: str = SEVERITY_INFO
    visible: bool = False


@dataclass(frozen=True)
class LogEntry:
    text: str
    level: str


@dataclass(frozen=True)
class ConflictEntry:
    partition: str
    relative_path: str
    contending_modules: tuple[str, ...]


@dataclass(frozen=True)
class DiagnosticIssue:
    level: str
    context: str
    message: str
