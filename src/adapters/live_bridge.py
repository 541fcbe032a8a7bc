"""Live command bridge.

Implements the BridgePort by issuing one command line per operation against
the privileged executor. Payload-carrying operations exchange JSON (hex
encoded on the way in); system probes read ad hoc text line by line.

Multi-probe reads (system info, device status) tolerate each failing probe on
its own: the matching field keeps its default and the rest still load.
"""

from __future__ import annotations

import logging
import posixpath
import re
import shlex
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Optional, TypeVar

from core import codec
from core.config import AppConfig
from core.errors import BridgeError, CodecError, ProbeError
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
from core.ports import ExecResult, ExecutorPort

LOGGER = logging.getLogger(__name__)

_VERSION_RE = re.compile(r"^version=(.+)$", re.MULTILINE)

T = TypeVar("T")


@dataclass(frozen=True)
class DaemonPaths:
    """Filesystem locations of the daemon binary and its state."""

    binary: str
    state_file: str
    log_file: str
    module_prop: Optional[str] = None

    @property
    def resolved_module_prop(self) -> str:
        if self.module_prop:
            return self.module_prop
        return posixpath.join(posixpath.dirname(self.binary), "module.prop")


def _optional_tuple(raw: Any) -> Optional[tuple[str, ...]]:
    if isinstance(raw, list):
        return tuple(str(item) for item in raw)
    return None


def _build(operation: str, build: Callable[[], T]) -> T:
    """Run a model builder; a payload of the wrong shape becomes a CodecError."""

    try:
        return build()
    except (AttributeError, TypeError, ValueError) as exc:
        raise CodecError(f"{operation}: unexpected payload shape: {exc}") from exc


def _build_items(operation: str, stdout: str, build: Callable[[Mapping[str, Any]], T]) -> list[T]:
    items = codec.parse_object_list(stdout)
    return _build(operation, lambda: [build(item) for item in items])


def _conflict(item: Mapping[str, Any]) -> ConflictEntry:
    contending = item.get("contending_modules", [])
    if not isinstance(contending, list):
        raise CodecError("contending_modules must be a JSON array")
    return ConflictEntry(
        partition=str(item.get("partition", "")),
        relative_path=str(item.get("relative_path", "")),
        contending_modules=tuple(str(m) for m in contending),
    )


def _diagnostic(item: Mapping[str, Any]) -> DiagnosticIssue:
    return DiagnosticIssue(
        level=str(item.get("level", "Info")),
        context=str(item.get("context", "")),
        message=str(item.get("message", "")),
    )


class LiveBridge:
    """BridgePort backed by the real daemon."""

    def __init__(self, executor: ExecutorPort, paths: DaemonPaths, app_version: str) -> None:
        self._executor = executor
        self._paths = paths
        self._app_version = app_version

    def _daemon(self, *args: str) -> str:
        return " ".join([shlex.quote(self._paths.binary), *args])

    async def _run(self, operation: str, command: str) -> ExecResult:
        """Run one command and raise BridgeError on a non-zero status."""

        result = await self._executor.execute(command)
        if not result.ok:
            detail = result.stderr.strip() or f"exit status {result.status}"
            LOGGER.debug("%s failed (%s): %s", operation, result.status, detail)
            raise BridgeError(operation, detail)
        return result

    async def _probe(self, command: str) -> str:
        """Run a diagnostic probe; a failure is a ProbeError for the caller to absorb."""

        result = await self._executor.execute(command)
        if not result.ok:
            raise ProbeError(result.stderr.strip() or f"exit status {result.status}")
        return result.stdout

    async def _read_state(self) -> Mapping[str, Any]:
        stdout = await self._probe(f"cat {shlex.quote(self._paths.state_file)}")
        try:
            return codec.parse_reply(stdout, dict)
        except CodecError as exc:
            raise ProbeError(f"daemon state unreadable: {exc}") from exc

    # -- config -----------------------------------------------------------

    async def load_config(self) -> AppConfig:
        result = await self._run("load config", self._daemon("show-config"))
        data = codec.parse_reply(result.stdout, dict)
        return _build("load config", lambda: AppConfig.from_dict(data))

    async def save_config(self, config: AppConfig) -> None:
        token = codec.encode(config.to_dict())
        await self._run("save config", self._daemon("save-config", "--payload", token))
        LOGGER.info("Config saved")

    async def reset_config(self) -> None:
        await self._run("reset config", self._daemon("gen-config"))
        LOGGER.info("Config regenerated with defaults")

    # -- modules ----------------------------------------------------------

    async def scan_modules(self) -> list[Module]:
        result = await self._run("scan modules", self._daemon("modules"))
        return _build_items("scan modules", result.stdout, Module.from_dict)

    async def save_module_rules(self, module_id: str, rules: ModuleRules) -> None:
        token = codec.encode(rules.to_dict())
        command = self._daemon("save-module-rules", "--module", shlex.quote(module_id), "--payload", token)
        await self._run("save module rules", command)
        LOGGER.info("Rules saved for %s", module_id)

    async def get_conflicts(self) -> list[ConflictEntry]:
        result = await self._run("get conflicts", self._daemon("conflicts"))
        return _build_items("get conflicts", result.stdout, _conflict)

    async def get_diagnostics(self) -> list[DiagnosticIssue]:
        result = await self._run("get diagnostics", self._daemon("diagnostics"))
        return _build_items("get diagnostics", result.stdout, _diagnostic)

    # -- logs -------------------------------------------------------------

    async def read_logs(self) -> str:
        result = await self._run("read logs", f"cat {shlex.quote(self._paths.log_file)}")
        return result.stdout

    # -- status probes ----------------------------------------------------

    async def get_storage_usage(self) -> StorageStatus:
        try:
            state = await self._read_state()
        except ProbeError as exc:
            LOGGER.debug("Storage probe failed: %s", exc)
            return StorageStatus()
        return StorageStatus(
            type=str(state.get("storage_mode") or "unknown"),
            size=str(state.get("storage_size", "-")),
            used=str(state.get("storage_used", "-")),
            percent=str(state.get("storage_percent", "0%")),
            hymofs_available=bool(state.get("hymofs_available", False)),
            hymofs_version=state.get("hymofs_version"),
            supported_modes=_optional_tuple(state.get("supported_modes")),
        )

    async def get_system_info(self) -> SystemInfo:
        kernel = "-"
        selinux = "-"
        try:
            stdout = await self._probe('echo "KERNEL:$(uname -r)"; echo "SELINUX:$(getenforce)"')
        except ProbeError as exc:
            LOGGER.debug("Kernel/SELinux probe failed: %s", exc)
        else:
            for line in stdout.splitlines():
                if line.startswith("KERNEL:"):
                    kernel = line[len("KERNEL:"):].strip() or kernel
                elif line.startswith("SELINUX:"):
                    selinux = line[len("SELINUX:"):].strip() or selinux

        info = SystemInfo(kernel=kernel, selinux=selinux)
        try:
            state = await self._read_state()
        except ProbeError as exc:
            LOGGER.debug("Daemon state probe failed: %s", exc)
            return info

        enforce = state.get("zygisksu_enforce")
        xattr = state.get("tmpfs_xattr_supported")
        return SystemInfo(
            kernel=kernel,
            selinux=selinux,
            mount_base=str(state.get("mount_point") or "Unknown"),
            active_mounts=tuple(str(m) for m in state.get("active_mounts") or []),
            zygisksu_enforce=None if enforce is None else ("1" if enforce else "0"),
            supported_overlay_modes=_optional_tuple(state.get("supported_overlay_modes")),
            tmpfs_xattr_supported=None if xattr is None else bool(xattr),
        )

    async def get_device_status(self) -> DeviceInfo:
        defaults = DeviceInfo()
        fields: dict[str, str] = {}

        async def probe(field_name: str, command: str) -> Optional[str]:
            try:
                value = (await self._probe(command)).strip()
            except ProbeError as exc:
                LOGGER.debug("Device probe %s failed: %s", field_name, exc)
                return None
            return value or None

        model = await probe("model", "getprop ro.product.model")
        if model:
            fields["model"] = model
        release = await probe("android", "getprop ro.build.version.release")
        if release:
            sdk = await probe("sdk", "getprop ro.build.version.sdk")
            fields["android"] = f"{release} (API {sdk})" if sdk else release
        kernel = await probe("kernel", "uname -r")
        if kernel:
            fields["kernel"] = kernel
        selinux = await probe("selinux", "getenforce")
        if selinux:
            fields["selinux"] = selinux

        return DeviceInfo(
            model=fields.get("model", defaults.model),
            android=fields.get("android", defaults.android),
            kernel=fields.get("kernel", defaults.kernel),
            selinux=fields.get("selinux", defaults.selinux),
        )

    async def get_version(self) -> str:
        prop = shlex.quote(self._paths.resolved_module_prop)
        try:
            stdout = await self._probe(f'grep "^version=" {prop}')
        except ProbeError as exc:
            LOGGER.debug("Version probe failed: %s", exc)
            return self._app_version
        match = _VERSION_RE.search(stdout)
        return match.group(1).strip() if match else self._app_version

    # -- auxiliary filesystem ---------------------------------------------

    async def get_hymofs_status(self) -> HymoFsStatus:
        result = await self._run(
            "get hymofs status", self._daemon("system-action", "--action", "hymofs-status")
        )
        data = codec.parse_reply(result.stdout, dict)
        version = data.get("version")
        return HymoFsStatus(
            available=bool(data.get("available", False)),
            enabled=bool(data.get("enabled", False)),
            version=None if version is None else str(version),
        )

    async def system_action(self, action: str, value: Optional[str] = None) -> None:
        args = ["system-action", "--action", shlex.quote(action)]
        if value is not None:
            args += ["--value", shlex.quote(value)]
        await self._run("system action", self._daemon(*args))
        LOGGER.info("System action %s applied", action)

    # -- device actions ---------------------------------------------------

    async def open_link(self, url: str) -> None:
        await self._run(
            "open link",
            f"am start -a android.intent.action.VIEW -d {shlex.quote(url)}",
        )

    async def reboot(self) -> None:
        LOGGER.warning("Reboot requested")
        await self._run("reboot", "reboot")
