"""State containers for config dirty tracking and busy flags."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from core.config import DEFAULT_CONFIG, AppConfig


@dataclass
class ConfigState:
    data: AppConfig = DEFAULT_CONFIG
    # Last snapshot known to match the daemon; None until the first load.
    baseline: Optional[AppConfig] = None

    @property
    def dirty(self) -> bool:
        return self.baseline is not None and self.data != self.baseline


@dataclass
class LoadingFlags:
    config: bool = False
    modules: bool = False
    status: bool = False
    logs: bool = False
    conflicts: bool = False
    diagnostics: bool = False


@dataclass
class SavingFlags:
    config: bool = False
    modules: bool = False
    action: bool = False
