"""Daemon log classification."""

from __future__ import annotations

from core.models import LogEntry

_MARKERS = (
    ("error", ("ERROR", "[E]")),
    ("warn", ("WARN", "[W]")),
    ("info", ("INFO", "[I]")),
)


def classify_line(line: str) -> str:
    for level, markers in _MARKERS:
        if any(marker in line for marker in markers):
            return level
    return "debug"


def parse_log_text(raw: str) -> list[LogEntry]:
    """Split raw log output into classified entries; empty text yields none."""

    if not raw:
        return []
    return [LogEntry(text=line, level=classify_line(line)) for line in raw.split("\n")]
