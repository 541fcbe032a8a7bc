"""Static configuration for the hybrid mount console.

Device paths and console behavior live in an optional ``console.json`` at the
project root; environment variables (read through python-dotenv) override the
few values that differ between a rooted device and a development machine.
"""

import json
import os

from dotenv import load_dotenv

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))

CONFIG_PATH = os.getenv("HYBRID_CONSOLE_CONFIG", os.path.join(PROJECT_ROOT, "console.json"))


def _load_json_config() -> dict:
    """Load console.json; a missing file means all defaults."""

    if not os.path.exists(CONFIG_PATH):
        return {}

    with open(CONFIG_PATH, "r", encoding="utf-8") as handle:
        loaded = json.load(handle)
    if not isinstance(loaded, dict):
        raise ValueError(f"{CONFIG_PATH}: root must be an object")
    return loaded


def _env_flag(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


load_dotenv()

_CONFIG = _load_json_config()

# Daemon locations on the device.
_daemon = _CONFIG.get("daemon", {})
BINARY_PATH = _daemon.get("binary", "/data/adb/modules/meta-hybrid/meta-hybrid")
STATE_FILE = _daemon.get("state_file", "/data/adb/meta-hybrid/run/daemon_state.json")
LOG_FILE = _daemon.get("log_file", "/data/adb/meta-hybrid/daemon.log")
# Defaults to module.prop next to the binary when unset.
MODULE_PROP = _daemon.get("module_prop")

# Backend selection and command behavior.
# - DEV_MODE forces the synthetic backend even on a rooted device
# - SYNTHETIC_DELAY_SCALE stretches or removes the simulated latency
# - COMMAND_TIMEOUT bounds every privileged command
_backend = _CONFIG.get("backend", {})
DEV_MODE = _env_flag("HYBRID_CONSOLE_DEV", bool(_backend.get("dev_mode", False)))
SYNTHETIC_DELAY_SCALE = float(_backend.get("synthetic_delay_scale", 1.0))
COMMAND_TIMEOUT = float(os.getenv("HYBRID_COMMAND_TIMEOUT", _backend.get("command_timeout", 30)))

# UI-facing behavior.
_ui = _CONFIG.get("ui", {})
TOAST_SECONDS = float(_ui.get("toast_seconds", 3.0))
PREFS_DB_PATH = _ui.get("prefs_db", os.path.join(PROJECT_ROOT, "console_prefs.db"))

# Logging configuration (optional).
LOGGING = _CONFIG.get("logging", {})
