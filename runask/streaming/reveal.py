"""Timed character-by-character reveal of streamed text.

The reveal rate is decoupled from network arrival: text is appended as
chunks land, and a single periodic timer moves one character per tick
from pending into the displayed text.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from enum import StrEnum
from typing import Any, Protocol

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL = 0.03


class TimerHandle(Protocol):
    def cancel(self) -> Any: ...


# (delay_seconds, callback) -> handle; asyncio's loop.call_later matches this.
CallLater = Callable[[float, Callable[[], None]], TimerHandle]
UpdateCallback = Callable[[str], Any]


class RevealState(StrEnum):
    """Reveal timer state."""

    IDLE = "idle"
    REVEALING = "revealing"
    CANCELLED = "cancelled"


class RevealScheduler:
    """Owns the confirmed text and the reveal cursor into it.

    ``displayed_text`` is always ``confirmed_text[:cursor]`` and
    ``pending_text`` is ``confirmed_text[cursor:]``, so the displayed text
    is a prefix of the confirmed text at every instant. At most one timer
    is armed at a time: only the IDLE -> REVEALING transition arms one.
    """

    def __init__(
        self,
        interval: float = DEFAULT_INTERVAL,
        *,
        call_later: CallLater | None = None,
        on_update: UpdateCallback | None = None,
    ) -> None:
        if interval < 0:
            raise ValueError(f"Reveal interval must be >= 0, got {interval}")
        self._interval = interval
        self._call_later = call_later
        self._on_update = on_update

        self._confirmed: str = ""
        self._cursor: int = 0
        self._state = RevealState.IDLE
        self._handle: TimerHandle | None = None
        self._tick_count: int = 0
        self._idle = asyncio.Event()
        self._idle.set()

    # ── Read-only views ──────────────────────────────────────────

    @property
    def state(self) -> RevealState:
        return self._state

    @property
    def interval(self) -> float:
        return self._interval

    @property
    def confirmed_text(self) -> str:
        return self._confirmed

    @property
    def pending_text(self) -> str:
        return self._confirmed[self._cursor:]

    @property
    def displayed_text(self) -> str:
        return self._confirmed[:self._cursor]

    @property
    def tick_count(self) -> int:
        """Number of ticks that revealed a character."""
        return self._tick_count

    @property
    def timer_armed(self) -> bool:
        return self._handle is not None

    # ── Mutation ─────────────────────────────────────────────────

    def append(self, text: str) -> None:
        """Add newly received text; arm the timer if currently idle."""
        if not text:
            return
        self._confirmed += text

        if self._state == RevealState.IDLE:
            self._state = RevealState.REVEALING
            self._idle.clear()
            self._arm()

    def tick(self) -> bool:
        """Reveal one character. Returns True while more text is pending."""
        if self._state != RevealState.REVEALING:
            return False

        if self._cursor < len(self._confirmed):
            self._cursor += 1
            self._tick_count += 1
            remaining = len(self._confirmed) - self._cursor
            if remaining and remaining % 50 == 0:
                logger.debug("Reveal progress: %d characters remaining", remaining)

        if self._cursor >= len(self._confirmed):
            self._cursor = len(self._confirmed)
            self._go_idle()
            logger.debug("Reveal complete, all text displayed")

        self._notify()
        return self._state == RevealState.REVEALING

    def flush(self) -> None:
        """Reveal everything pending immediately."""
        if self._state == RevealState.CANCELLED:
            return
        self._cursor = len(self._confirmed)
        self._go_idle()
        self._notify()

    def cancel(self) -> None:
        """Stop the timer for good. Safe to call more than once."""
        self._disarm()
        self._state = RevealState.CANCELLED
        self._idle.set()

    async def wait_idle(self) -> None:
        """Wait until all pending text is revealed or the reveal is cancelled."""
        await self._idle.wait()

    # ── Timer plumbing ───────────────────────────────────────────

    def _arm(self) -> None:
        call_later = self._call_later or asyncio.get_running_loop().call_later
        self._handle = call_later(self._interval, self._on_timer)

    def _disarm(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _on_timer(self) -> None:
        self._handle = None
        if self._state != RevealState.REVEALING:
            return
        if self.tick():
            self._arm()

    def _go_idle(self) -> None:
        self._disarm()
        self._state = RevealState.IDLE
        self._idle.set()

    def _notify(self) -> None:
        if self._on_update is None:
            return
        try:
            self._on_update(self.displayed_text)
        except Exception:
            logger.exception("Reveal update callback failed")
