"""Shared constants for the console store."""

from __future__ import annotations

from pathlib import Path

APP_VERSION = "v1.0.0"
LOCALES_DIR = Path(__file__).resolve().parent / "locales"

# Durable preference keys.
PREF_LANG = "lang"
PREF_FIX_BOTTOM_NAV = "hm_fix_bottom_nav"

GUARDED_FLAG = "disable_umount"
COEXISTENCE_FLAG = "allow_umount_coexistence"
