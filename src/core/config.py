"""Mount configuration record.

The daemon owns the authoritative config file; the console only holds a copy
of what ``show-config`` printed and sends the whole record back on save.
Keys the console does not model are kept in ``extra`` so a save never drops
daemon-side settings such as per-module rules or backup retention.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import Any, Mapping, Optional

OVERLAY_MODES = ("tmpfs", "ext4", "erofs")

# Boolean settings that are surfaced as one-tap toggles.
TOGGLE_FLAGS = ("disable_umount", "allow_umount_coexistence")

DEFAULT_MODULE_DIR = "/data/adb/modules"
DEFAULT_MOUNT_SOURCE = "KSU"
DEFAULT_HYBRID_MNT_DIR = "/debug_ramdisk"


def _normalize_partitions(raw: Any) -> tuple[str, ...]:
    # The daemon accepts either a list or one comma-separated string.
    if raw is None:
        return ()
    if isinstance(raw, str):
        items = raw.split(",")
    else:
        items = [str(item) for item in raw]
    return tuple(item.strip() for item in items if item.strip())


@dataclass(frozen=True)
class AppConfig:
    """Flat configuration record mirrored from the daemon."""

    moduledir: str = DEFAULT_MODULE_DIR
    mountsource: str = DEFAULT_MOUNT_SOURCE
    hybrid_mnt_dir: str = DEFAULT_HYBRID_MNT_DIR
    partitions: tuple[str, ...] = ()
    overlay_mode: str = "tmpfs"
    disable_umount: bool = False
    allow_umount_coexistence: bool = False
    logfile: Optional[str] = None
    extra: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "AppConfig":
        """Build a record from daemon JSON, filling gaps with defaults."""

        known = {f.name for f in fields(cls)} - {"extra"}
        defaults = cls()
        overlay_mode = str(data.get("overlay_mode", defaults.overlay_mode)).lower()
        if overlay_mode not in OVERLAY_MODES:
            overlay_mode = defaults.overlay_mode
        logfile = data.get("logfile")
        return cls(
            moduledir=str(data.get("moduledir", defaults.moduledir)),
            mountsource=str(data.get("mountsource", defaults.mountsource)),
            hybrid_mnt_dir=str(data.get("hybrid_mnt_dir", defaults.hybrid_mnt_dir)),
            partitions=_normalize_partitions(data.get("partitions")),
            overlay_mode=overlay_mode,
            disable_umount=bool(data.get("disable_umount", False)),
            allow_umount_coexistence=bool(data.get("allow_umount_coexistence", False)),
            logfile=str(logfile) if logfile else None,
            extra={key: value for key, value in data.items() if key not in known},
        )

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON shape expected by ``save-config``."""

        payload: dict[str, Any] = dict(self.extra)
        payload.update(
            {
                "moduledir": self.moduledir,
                "mountsource": self.mountsource,
                "hybrid_mnt_dir": self.hybrid_mnt_dir,
                "partitions": list(self.partitions),
                "overlay_mode": self.overlay_mode,
                "disable_umount": self.disable_umount,
                "allow_umount_coexistence": self.allow_umount_coexistence,
            }
        )
        if self.logfile:
            payload["logfile"] = self.logfile
        return payload


DEFAULT_CONFIG = AppConfig()
