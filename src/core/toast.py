"""Single-slot toast queue.

Only one toast is visible at a time. Each ``show`` stamps a fresh id and
schedules an auto-hide; the hide only applies while the slot still holds the
toast it was scheduled for, so a late timer never hides a newer toast.
"""

from __future__ import annotations

import asyncio
import itertools
import logging
from dataclasses import replace
from typing import Callable, Optional

from core.models import SEVERITY_INFO, Toast

LOGGER = logging.getLogger(__name__)

DEFAULT_DURATION = 3.0

Scheduler = Callable[[float, Callable[[], None]], object]


def _loop_scheduler(delay: float, callback: Callable[[], None]) -> object:
    return asyncio.get_running_loop().call_later(delay, callback)


class ToastQueue:
    def __init__(
        self,
        duration: float = DEFAULT_DURATION,
        on_change: Optional[Callable[[Toast], None]] = None,
        scheduler: Scheduler = _loop_scheduler,
    ) -> None:
        self._duration = duration
        self._on_change = on_change
        self._scheduler = scheduler
        self._ids = itertools.count(1)
        self._current = Toast(id=0, text="", visible=False)

    @property
    def current(self) -> Toast:
        return self._current

    @property
    def visible(self) -> list[Toast]:
        return [self._current] if self._current.visible else []

    def show(self, text: str, severity: str = SEVERITY_INFO) -> Toast:
        toast = Toast(id=next(self._ids), text=text, severity=severity, visible=True)
        self._replace(toast)
        try:
            self._scheduler(self._duration, lambda: self._expire(toast.id))
        except RuntimeError:
            # No running loop: the toast stays until the next one replaces it.
            LOGGER.debug("No event loop to expire toast %s", toast.id)
        return toast

    def _expire(self, toast_id: int) -> None:
        if self._current.id != toast_id or not self._current.visible:
            return
        self._replace(replace(self._current, visible=False))

    def _replace(self, toast: Toast) -> None:
        self._current = toast
        if self._on_change is not None:
            self._on_change(toast)
