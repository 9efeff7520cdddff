from __future__ import annotations

import asyncio
import logging
import re
import time
from typing import Any, Callable, Protocol

logger = logging.getLogger(__name__)

FlushCallback = Callable[[str, bool], None]

_SPACES = re.compile(r"\s+")


class TimerHandle(Protocol):
    def cancel(self) -> Any: ...


class Scheduler(Protocol):
    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle: ...


class LoopScheduler:
    """Schedules callbacks on the running asyncio loop."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        return asyncio.get_running_loop().call_later(delay, callback)


class TranscriptBuffer:
    """Debounces interim transcripts and drops repeats of the last flush.

    Interim text waits ``debounce_ms`` for the recognizer to settle; each new
    fragment replaces the previous one and re-arms the timer. Final text is
    flushed at once.
    """

    def __init__(
        self,
        on_flush: FlushCallback,
        debounce_ms: int = 400,
        duplicate_window_ms: int = 800,
        scheduler: Scheduler | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._on_flush = on_flush
        self.debounce = debounce_ms / 1000
        self.duplicate_window = duplicate_window_ms / 1000
        self._scheduler = scheduler or LoopScheduler()
        self._clock = clock
        self._timer: TimerHandle | None = None
        self._pending_text = ""
        self._last_text: str | None = None
        self._last_at = 0.0

    @property
    def pending_text(self) -> str:
        return self._pending_text

    @property
    def has_timer(self) -> bool:
        return self._timer is not None

    def push(self, text: str, is_final: bool) -> None:
        self._pending_text = text
        if is_final:
            self._flush(True)
            return

        self._cancel_timer()
        self._timer = self._scheduler.call_later(self.debounce, self._on_timer)

    def cancel(self) -> None:
        self._cancel_timer()
        self._pending_text = ""
        self._last_text = None
        self._last_at = 0.0

    def reset_cooldown(self) -> None:
        self._last_text = None
        self._last_at = 0.0

    def _on_timer(self) -> None:
        self._timer = None
        self._flush(False)

    def _flush(self, is_final: bool) -> None:
        self._cancel_timer()
        text = self._pending_text.strip()
        self._pending_text = ""
        if not text:
            return

        normalized = _SPACES.sub(" ", text.lower())
        now = self._clock()
        if normalized == self._last_text and now - self._last_at < self.duplicate_window:
            logger.debug("dropping repeated transcript %r", normalized)
            return

        self._last_text = normalized
        self._last_at = now
        self._on_flush(text, is_final)

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
