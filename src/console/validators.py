"""Validation helpers for config and module edits."""

from __future__ import annotations

import re

_MODULE_ID_RE = re.compile(r"^[a-zA-Z][a-zA-Z0-9._-]+$")


def is_valid_path(value: str) -> bool:
    """Empty means "use the daemon default"; otherwise an absolute path below /."""

    return not value or (value.startswith("/") and len(value) > 1)


def is_valid_module_id(module_id: str) -> bool:
    return bool(_MODULE_ID_RE.match(module_id))
