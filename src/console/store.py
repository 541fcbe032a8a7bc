"""Reactive console store.

The store is the single owner of UI-visible state. Every async action
follows the same shape: raise the busy flag, await the bridge, replace the
state slice wholesale on success, toast a localized message on failure, and
clear the flag no matter what. Listeners registered with ``subscribe`` are
told the name of each slice after it is replaced.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from dataclasses import replace
from typing import Any, Awaitable, Callable, Iterator, Optional

from console.constants import APP_VERSION, COEXISTENCE_FLAG, GUARDED_FLAG, PREF_FIX_BOTTOM_NAV, PREF_LANG
from console.state import ConfigState, LoadingFlags, SavingFlags
from console.validators import is_valid_module_id, is_valid_path
from core.config import OVERLAY_MODES, TOGGLE_FLAGS, AppConfig
from core.errors import BridgeError, CodecError, ProbeError
from core.locale import LanguageOption, LocaleBundle, LocaleRegistry
from core.logs import parse_log_text
from core.models import (
    SEVERITY_ERROR,
    SEVERITY_INFO,
    SEVERITY_SUCCESS,
    ConflictEntry,
    DeviceInfo,
    DiagnosticIssue,
    HymoFsStatus,
    LogEntry,
    Module,
    ModuleRules,
    MountMode,
    StorageStatus,
    SystemInfo,
    Toast,
)
from core.ports import BridgePort, PreferencesPort
from core.toast import DEFAULT_DURATION, ToastQueue

LOGGER = logging.getLogger(__name__)

Listener = Callable[[str], None]

# Errors a bridge call may raise that the store turns into toasts.
_BRIDGE_ERRORS = (BridgeError, CodecError)
_STATUS_ERRORS = (BridgeError, CodecError, ProbeError)


class Store:
    """Process-wide state container with injected bridge, locales and preferences."""

    def __init__(
        self,
        bridge: BridgePort,
        locales: LocaleRegistry,
        preferences: PreferencesPort,
        app_version: str = APP_VERSION,
        toast_duration: float = DEFAULT_DURATION,
        toast_scheduler: Optional[Callable[..., object]] = None,
    ) -> None:
        self._bridge = bridge
        self._locales = locales
        self._preferences = preferences
        self._listeners: list[Listener] = []

        self._lang = locales.base_code
        self._locale = locales.resolve(locales.base_code)
        self._fix_bottom_nav = False

        self.config_state = ConfigState()
        self._modules: tuple[Module, ...] = ()
        self._device = DeviceInfo()
        self._version = app_version
        self._storage = StorageStatus()
        self._system_info = SystemInfo()
        self._active_partitions: tuple[str, ...] = ()
        self._hymofs = HymoFsStatus()
        self._logs: tuple[LogEntry, ...] = ()
        self._conflicts: tuple[ConflictEntry, ...] = ()
        self._diagnostics: tuple[DiagnosticIssue, ...] = ()

        self.loading = LoadingFlags()
        self.saving = SavingFlags()

        toast_kwargs: dict[str, Any] = {"duration": toast_duration, "on_change": self._on_toast}
        if toast_scheduler is not None:
            toast_kwargs["scheduler"] = toast_scheduler
        self._toasts = ToastQueue(**toast_kwargs)
        # Strong references to fire-and-forget persistence tasks.
        self._pending: set[asyncio.Task] = set()

    # -- observers --------------------------------------------------------

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener; returns a callable that removes it."""

        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _publish(self, slice_name: str) -> None:
        for listener in list(self._listeners):
            listener(slice_name)

    @contextlib.contextmanager
    def _busy(self, flags: Any, name: str, slice_name: str) -> Iterator[None]:
        setattr(flags, name, True)
        self._publish(slice_name)
        try:
            yield
        finally:
            setattr(flags, name, False)
            self._publish(slice_name)

    # -- locale and UI preferences ----------------------------------------

    @property
    def lang(self) -> str:
        return self._lang

    @property
    def languages(self) -> list[LanguageOption]:
        return self._locales.languages

    @property
    def L(self) -> LocaleBundle:
        return self._locale

    def text(self, path: str, fallback: str) -> str:
        return self._locale.text(path, fallback)

    def _apply_lang(self, code: str) -> None:
        bundle = self._locales.resolve(code)
        if not self._locales.has(code):
            LOGGER.info("Locale %s not available, using %s", code, bundle.code)
        self._locale = bundle
        self._lang = bundle.code
        self._publish("locale")

    def set_lang(self, code: str) -> None:
        self._apply_lang(code)
        self._preferences.set(PREF_LANG, self._lang)

    @property
    def fix_bottom_nav(self) -> bool:
        return self._fix_bottom_nav

    def toggle_bottom_nav_fix(self) -> None:
        self._fix_bottom_nav = not self._fix_bottom_nav
        self._preferences.set(PREF_FIX_BOTTOM_NAV, "true" if self._fix_bottom_nav else "false")
        self._publish("preferences")
        if self._fix_bottom_nav:
            message = self.text("config.fixBottomNavOn", "Bottom Nav Fix Enabled")
        else:
            message = self.text("config.fixBottomNavOff", "Bottom Nav Fix Disabled")
        self.show_toast(message, SEVERITY_INFO)

    async def init(self) -> None:
        """Restore preferences, then load config and status concurrently."""

        self._apply_lang(self._preferences.get(PREF_LANG) or self._locales.base_code)
        self._fix_bottom_nav = self._preferences.get(PREF_FIX_BOTTOM_NAV) == "true"
        self._publish("preferences")
        await asyncio.gather(self.load_config(), self.load_status())

    # -- toasts -----------------------------------------------------------

    @property
    def toast(self) -> Toast:
        return self._toasts.current

    @property
    def toasts(self) -> list[Toast]:
        return self._toasts.visible

    def show_toast(self, text: str, severity: str = SEVERITY_INFO) -> Toast:
        return self._toasts.show(text, severity)

    def _on_toast(self, toast: Toast) -> None:
        self._publish("toast")

    # -- config -----------------------------------------------------------

    @property
    def config(self) -> AppConfig:
        return self.config_state.data

    @property
    def is_dirty(self) -> bool:
        return self.config_state.dirty

    def update_config(self, **changes: Any) -> None:
        """Apply local edits to the configuration; nothing is persisted."""

        self._set_config(replace(self.config, **changes))

    def _set_config(self, config: AppConfig) -> None:
        self.config_state.data = config
        self._enforce_umount_guard()
        self._publish("config")

    def _umount_guard_active(self) -> bool:
        return self._system_info.enforcement_active and not getattr(self.config, COEXISTENCE_FLAG)

    def _enforce_umount_guard(self) -> None:
        # Zygisk enforcement without coexistence requires umount to stay disabled.
        if self._umount_guard_active() and not getattr(self.config, GUARDED_FLAG):
            LOGGER.info("Enforcement signal active; forcing %s on", GUARDED_FLAG)
            self.config_state.data = replace(self.config, **{GUARDED_FLAG: True})

    async def load_config(self) -> bool:
        with self._busy(self.loading, "config", "loading"):
            try:
                config = await self._bridge.load_config()
            except _BRIDGE_ERRORS as exc:
                LOGGER.warning("Config load failed: %s", exc)
                self.show_toast(self.text("config.loadError", "Failed to load config"), SEVERITY_ERROR)
                return False
            self.config_state.baseline = config
            self._set_config(config)
            return True

    async def save_config(self) -> bool:
        config = self.config
        if not is_valid_path(config.moduledir):
            self.show_toast(self.text("config.invalidPath", "Invalid module directory"), SEVERITY_ERROR)
            return False
        with self._busy(self.saving, "config", "saving"):
            try:
                await self._bridge.save_config(config)
            except _BRIDGE_ERRORS as exc:
                LOGGER.warning("Config save failed: %s", exc)
                self.show_toast(self.text("config.saveFailed", "Failed to save config"), SEVERITY_ERROR)
                return False
            self.config_state.baseline = config
            self._publish("config")
            self.show_toast(self.text("common.saved", "Saved"), SEVERITY_SUCCESS)
            return True

    async def reset_config(self) -> bool:
        with self._busy(self.saving, "config", "saving"):
            try:
                await self._bridge.reset_config()
            except _BRIDGE_ERRORS as exc:
                LOGGER.warning("Config reset failed: %s", exc)
                self.show_toast(self.text("config.resetFailed", "Failed to reset config"), SEVERITY_ERROR)
                return False
            if not await self.load_config():
                return False
            self.show_toast(self.text("config.resetSuccess", "Config reset to defaults"), SEVERITY_SUCCESS)
            return True

    def toggle_config_flag(self, key: str) -> Optional["asyncio.Task[None]"]:
        """Optimistically flip a boolean setting and persist it in the background.

        The local change is visible as soon as this returns. The returned task
        saves the full config and reverts the flag if the save fails. Returns
        None when the toggle is refused. Must be called from a running event
        loop; without one it raises RuntimeError before touching state.
        """

        if key not in TOGGLE_FLAGS:
            raise ValueError(f"{key} is not a toggle flag")
        previous = bool(getattr(self.config, key))
        if key == GUARDED_FLAG and previous and self._umount_guard_active():
            LOGGER.warning("Refusing to turn off %s while enforcement is active", key)
            self.show_toast(self.text("config.coexistenceRequired", "Coexistence required"), SEVERITY_ERROR)
            return None

        loop = asyncio.get_running_loop()
        self._set_config(replace(self.config, **{key: not previous}))
        task = loop.create_task(self._persist_toggle(key, previous, self.config))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def _persist_toggle(self, key: str, previous: bool, snapshot: AppConfig) -> None:
        try:
            await self._bridge.save_config(snapshot)
        except _BRIDGE_ERRORS as exc:
            LOGGER.warning("Persisting %s failed, reverting: %s", key, exc)
            self._set_config(replace(self.config, **{key: previous}))
            self.show_toast(self.text("config.saveFailed", "Failed to update setting"), SEVERITY_ERROR)
            return
        self.config_state.baseline = snapshot
        self._publish("config")

    @property
    def available_overlay_modes(self) -> tuple[str, ...]:
        modes = self._storage.supported_modes or self._system_info.supported_overlay_modes or OVERLAY_MODES
        if self._system_info.tmpfs_xattr_supported is False:
            modes = tuple(mode for mode in modes if mode != "tmpfs")
        return tuple(modes)

    # -- modules ----------------------------------------------------------

    @property
    def modules(self) -> tuple[Module, ...]:
        return self._modules

    @property
    def mode_stats(self) -> dict[str, int]:
        """Mounted-module count per mount mode, recomputed on every read."""

        stats = {mode.value: 0 for mode in MountMode}
        for module in self._modules:
            if module.is_mounted:
                stats[module.mode.value] += 1
        return stats

    async def load_modules(self) -> bool:
        with self._busy(self.loading, "modules", "loading"):
            try:
                modules = await self._bridge.scan_modules()
            except _BRIDGE_ERRORS as exc:
                LOGGER.warning("Module scan failed: %s", exc)
                self.show_toast(self.text("modules.scanError", "Failed to load modules"), SEVERITY_ERROR)
                return False
            self._modules = tuple(modules)
            self._publish("modules")
            return True

    async def save_module_rules(self, module_id: str, rules: ModuleRules) -> bool:
        if not is_valid_module_id(module_id):
            self.show_toast(self.text("modules.invalidId", "Invalid module id"), SEVERITY_ERROR)
            return False
        with self._busy(self.saving, "modules", "saving"):
            try:
                await self._bridge.save_module_rules(module_id, rules)
            except _BRIDGE_ERRORS as exc:
                LOGGER.warning("Saving rules for %s failed: %s", module_id, exc)
                self.show_toast(self.text("modules.saveFailed", "Failed to save module rules"), SEVERITY_ERROR)
                return False
        self.show_toast(self.text("modules.saveSuccess", "Saved"), SEVERITY_SUCCESS)
        # Module descriptors are only ever replaced by a fresh scan.
        await self.load_modules()
        return True

    @property
    def conflicts(self) -> tuple[ConflictEntry, ...]:
        return self._conflicts

    async def load_conflicts(self) -> bool:
        with self._busy(self.loading, "conflicts", "loading"):
            try:
                conflicts = await self._bridge.get_conflicts()
            except _BRIDGE_ERRORS as exc:
                LOGGER.warning("Conflict report failed: %s", exc)
                self.show_toast(self.text("modules.conflictsFailed", "Failed to load conflicts"), SEVERITY_ERROR)
                return False
            self._conflicts = tuple(conflicts)
            self._publish("conflicts")
            return True

    @property
    def diagnostics(self) -> tuple[DiagnosticIssue, ...]:
        return self._diagnostics

    async def load_diagnostics(self) -> bool:
        with self._busy(self.loading, "diagnostics", "loading"):
            try:
                issues = await self._bridge.get_diagnostics()
            except _BRIDGE_ERRORS as exc:
                LOGGER.warning("Diagnostics report failed: %s", exc)
                self.show_toast(
                    self.text("modules.diagnosticsFailed", "Failed to load diagnostics"), SEVERITY_ERROR
                )
                return False
            self._diagnostics = tuple(issues)
            self._publish("diagnostics")
            return True

    # -- logs -------------------------------------------------------------

    @property
    def logs(self) -> tuple[LogEntry, ...]:
        return self._logs

    async def load_logs(self, silent: bool = False) -> bool:
        busy = contextlib.nullcontext() if silent else self._busy(self.loading, "logs", "loading")
        with busy:
            try:
                raw = await self._bridge.read_logs()
            except _BRIDGE_ERRORS as exc:
                LOGGER.warning("Reading logs failed: %s", exc)
                self._logs = (LogEntry(text=f"Error loading logs: {exc}", level="error"),)
                self._publish("logs")
                if not silent:
                    self.show_toast(self.text("logs.readFailed", "Failed to read logs"), SEVERITY_ERROR)
                return False
            self._logs = tuple(parse_log_text(raw))
            self._publish("logs")
            return True

    # -- status -----------------------------------------------------------

    @property
    def device(self) -> DeviceInfo:
        return self._device

    @property
    def version(self) -> str:
        return self._version

    @property
    def storage(self) -> StorageStatus:
        return self._storage

    @property
    def system_info(self) -> SystemInfo:
        return self._system_info

    @property
    def active_partitions(self) -> tuple[str, ...]:
        return self._active_partitions

    @property
    def hymofs(self) -> HymoFsStatus:
        return self._hymofs

    async def _status_step(self, name: str, fetch: Callable[[], Awaitable[Any]]) -> Any:
        try:
            return await fetch()
        except _STATUS_ERRORS as exc:
            LOGGER.warning("Status step %s failed: %s", name, exc)
            return None

    async def load_status(self) -> None:
        """Refresh device, version, storage and system info in sequence.

        Each step tolerates its own failure. An unexpected error aborts the
        remaining steps but never escapes to the caller.
        """

        with self._busy(self.loading, "status", "loading"):
            try:
                device = await self._status_step("device", self._bridge.get_device_status)
                if device is not None:
                    self._device = device
                    self._publish("device")

                version = await self._status_step("version", self._bridge.get_version)
                if version is not None:
                    self._version = version
                    self._publish("version")

                storage = await self._status_step("storage", self._bridge.get_storage_usage)
                if storage is not None:
                    self._storage = storage
                    self._publish("storage")

                info = await self._status_step("system", self._bridge.get_system_info)
                if info is not None:
                    self._set_system_info(info)

                if self._storage.hymofs_available:
                    await self.refresh_hymofs()

                if not self._modules:
                    await self.load_modules()
            except Exception:
                LOGGER.exception("Status refresh aborted")

    def _set_system_info(self, info: SystemInfo) -> None:
        self._system_info = info
        self._active_partitions = tuple(info.active_mounts)
        self._publish("system")
        before = self.config
        self._enforce_umount_guard()
        if self.config is not before:
            self._publish("config")

    # -- auxiliary filesystem and device actions ---------------------------

    async def refresh_hymofs(self) -> None:
        status = await self._status_step("hymofs", self._bridge.get_hymofs_status)
        if status is not None:
            self._hymofs = status
            self._publish("hymofs")

    async def run_system_action(self, action: str, value: Optional[str] = None) -> bool:
        """Run an auxiliary filesystem action; refused unless the subsystem exists."""

        if not self._storage.hymofs_available:
            LOGGER.warning("System action %s refused: HymoFS unavailable", action)
            self.show_toast(self.text("system.hymofsUnavailable", "HymoFS is not available"), SEVERITY_ERROR)
            return False
        with self._busy(self.saving, "action", "saving"):
            try:
                await self._bridge.system_action(action, value)
            except _BRIDGE_ERRORS as exc:
                LOGGER.warning("System action %s failed: %s", action, exc)
                self.show_toast(self.text("system.actionFailed", "Action failed"), SEVERITY_ERROR)
                return False
        self.show_toast(self.text("system.actionSuccess", "Action applied"), SEVERITY_SUCCESS)
        await self.refresh_hymofs()
        return True

    async def open_link(self, url: str) -> bool:
        try:
            await self._bridge.open_link(url)
        except _BRIDGE_ERRORS as exc:
            LOGGER.warning("Opening %s failed: %s", url, exc)
            self.show_toast(self.text("info.linkFailed", "Failed to open link"), SEVERITY_ERROR)
            return False
        return True

    async def reboot(self) -> bool:
        try:
            await self._bridge.reboot()
        except _BRIDGE_ERRORS as exc:
            LOGGER.warning("Reboot failed: %s", exc)
            self.show_toast(self.text("system.rebootFailed", "Reboot failed"), SEVERITY_ERROR)
            return False
        return True
