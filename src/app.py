"""Application entry point for the hybrid mount console."""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import re
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

from art import tprint
from rich.console import Console
from rich.table import Table
from rich.text import Text

import settings
from adapters.live_bridge import DaemonPaths
from adapters.selection import select_bridge
from adapters.shell_executor import build_executor
from adapters.sqlite_preferences import SQLitePreferences
from console.constants import APP_VERSION, LOCALES_DIR
from console.store import Store
from core.config import TOGGLE_FLAGS
from core.locale import LocaleRegistry
from core.models import SEVERITY_ERROR, SEVERITY_SUCCESS

NAME = "HYBRID"
FONT = "tarty-1"

_PAYLOAD_RE = re.compile(r"(--payload\s+)[0-9a-fA-F]+")
_LEVEL_STYLES = {"error": "red", "warn": "yellow", "info": "green", "debug": "dim"}


def _print_banner() -> None:
    tprint(NAME, FONT, space=1)


class _RedactingFormatter(logging.Formatter):
    """Masks hex payloads so saved configs do not end up in log files."""

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        return _PAYLOAD_RE.sub(r"\1***", message)


def _configure_logging() -> None:
    config = settings.LOGGING or {}
    if not config.get("enabled", False):
        return

    level_name = str(config.get("level", "INFO")).upper()
    level = getattr(logging, level_name, logging.INFO)

    fmt = "%(asctime)s %(levelname)s %(name)s: %(message)s"
    datefmt = "%Y-%m-%d %H:%M:%S"
    formatter = _RedactingFormatter(fmt=fmt, datefmt=datefmt)

    handlers: list[logging.Handler] = []

    if config.get("console", True):
        console_handler = logging.StreamHandler()
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        handlers.append(console_handler)

    file_cfg = config.get("file", {})
    if file_cfg.get("enabled", False):
        path = file_cfg.get("path", "logs/console.log")
        if not os.path.isabs(path):
            path = os.path.join(settings.PROJECT_ROOT, path)
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)

        max_bytes = int(file_cfg.get("max_bytes", 1024 * 1024))
        backup_count = int(file_cfg.get("backup_count", 3))
        file_handler = RotatingFileHandler(
            path,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    if not handlers:
        return

    logging.basicConfig(level=level, handlers=handlers)


def build_store() -> Store:
    """Composition root: pick the bridge once and wire the store around it."""

    executor = build_executor(timeout=settings.COMMAND_TIMEOUT)
    paths = DaemonPaths(
        binary=settings.BINARY_PATH,
        state_file=settings.STATE_FILE,
        log_file=settings.LOG_FILE,
        module_prop=settings.MODULE_PROP,
    )
    selection = select_bridge(
        executor,
        paths,
        APP_VERSION,
        dev_mode=settings.DEV_MODE,
        synthetic_delay_scale=settings.SYNTHETIC_DELAY_SCALE,
    )

    preferences = SQLitePreferences(settings.PREFS_DB_PATH)
    preferences.init_db()

    return Store(
        bridge=selection.bridge,
        locales=LocaleRegistry.from_directory(Path(LOCALES_DIR)),
        preferences=preferences,
        app_version=APP_VERSION,
        toast_duration=settings.TOAST_SECONDS,
    )


def _print_toast(console: Console, store: Store) -> None:
    toast = store.toast
    if not toast.visible:
        return
    style = {SEVERITY_ERROR: "bold red", SEVERITY_SUCCESS: "bold green"}.get(toast.severity, "cyan")
    console.print(Text(f"» {toast.text}", style=style))


def _key_value_table(title: str, rows: list[tuple[str, str]]) -> Table:
    table = Table(title=title, show_header=False)
    table.add_column("key", style="bold")
    table.add_column("value")
    for key, value in rows:
        table.add_row(key, value)
    return table


async def _status(console: Console, store: Store) -> None:
    await store.load_status()
    device = store.device
    info = store.system_info
    storage = store.storage
    console.print(
        _key_value_table(
            "Device",
            [
                ("model", device.model),
                ("android", device.android),
                ("kernel", device.kernel),
                ("selinux", device.selinux),
                ("version", store.version),
            ],
        )
    )
    console.print(
        _key_value_table(
            "System",
            [
                ("kernel", info.kernel),
                ("selinux", info.selinux),
                ("mount base", info.mount_base),
                ("active partitions", ", ".join(store.active_partitions) or "-"),
                ("storage", storage.type or "unknown"),
                ("hymofs", storage.hymofs_version or ("yes" if storage.hymofs_available else "no")),
            ],
        )
    )
    stats = store.mode_stats
    console.print(_key_value_table("Mounted modules", [(mode, str(count)) for mode, count in stats.items()]))


async def _config(console: Console, store: Store) -> None:
    await store.load_config()
    rows = [(key, str(value)) for key, value in store.config.to_dict().items()]
    console.print(_key_value_table("Config", rows))


async def _modules(console: Console, store: Store) -> None:
    await store.load_modules()
    table = Table(title="Modules")
    for column in ("id", "name", "version", "mode", "mounted"):
        table.add_column(column)
    for module in store.modules:
        table.add_row(module.id, module.name, module.version, module.mode.value, "yes" if module.is_mounted else "no")
    console.print(table)


async def _logs(console: Console, store: Store) -> None:
    await store.load_logs()
    for entry in store.logs:
        console.print(Text(entry.text, style=_LEVEL_STYLES.get(entry.level, "")))


async def _toggle(console: Console, store: Store, flag: str) -> None:
    await store.init()
    task = store.toggle_config_flag(flag)
    if task is not None:
        await task
    console.print(f"{flag} = {getattr(store.config, flag)}")


async def _reset(console: Console, store: Store) -> None:
    await store.reset_config()


def main(argv: Optional[list[str]] = None) -> None:
    parser = argparse.ArgumentParser(prog="hybrid-console")
    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("status", help="Show device, storage and mount status")
    subparsers.add_parser("config", help="Show the daemon configuration")
    subparsers.add_parser("modules", help="List installed modules")
    subparsers.add_parser("logs", help="Print the daemon log")
    subparsers.add_parser("reset-config", help="Regenerate the default configuration")
    toggle = subparsers.add_parser("toggle", help="Flip a boolean setting")
    toggle.add_argument("flag", choices=TOGGLE_FLAGS)
    lang = subparsers.add_parser("lang", help="Set the console language")
    lang.add_argument("code")

    args = parser.parse_args(argv)

    _print_banner()
    _configure_logging()
    console = Console()
    store = build_store()

    if args.command == "lang":
        store.set_lang(args.code)
        console.print(f"language: {store.L.display_name} ({store.lang})")
        return

    if args.command == "config":
        asyncio.run(_config(console, store))
    elif args.command == "modules":
        asyncio.run(_modules(console, store))
    elif args.command == "logs":
        asyncio.run(_logs(console, store))
    elif args.command == "reset-config":
        asyncio.run(_reset(console, store))
    elif args.command == "toggle":
        asyncio.run(_toggle(console, store, args.flag))
    else:
        asyncio.run(_status(console, store))
    _print_toast(console, store)


if __name__ == "__main__":
    main()
