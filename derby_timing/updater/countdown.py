"""
countdown.py

BettingCountdown counts an integer down to zero, one step per tick, and calls
on_expired once when it reaches zero. Every start/reset/cancel bumps a
generation counter; a tick that fires with an older generation does nothing.
"""

import logging
log = logging.getLogger(__name__)

from typing import Callable, Optional

DEFAULT_START = 10
DEFAULT_TICK_MS = 1000


class BettingCountdown:
    def __init__(
        self,
        timer_factory,
        *,
        start_value: int = DEFAULT_START,
        tick_ms: int = DEFAULT_TICK_MS,
        on_tick: Optional[Callable[[int], None]] = None,
        on_expired: Optional[Callable[[], None]] = None,
    ):
        if start_value < 1:
            raise ValueError(f"start_value must be >= 1, got {start_value}")
        self._timers = timer_factory
        self._start_value = int(start_value)
        self._tick_ms = int(tick_ms)
        self._on_tick = on_tick
        self._on_expired = on_expired

        self._generation = 0
        self._handle = None
        self._remaining = self._start_value
        self._counting = False

    @property
    def remaining(self) -> int:
        return self._remaining

    @property
    def is_counting(self) -> bool:
        return self._counting

    @property
    def start_value(self) -> int:
        return self._start_value

    @property
    def generation(self) -> int:
        return self._generation

    def set_start_value(self, value: int) -> None:
        """Takes effect on the next start()/reset()."""
        if value < 1:
            raise ValueError(f"start_value must be >= 1, got {value}")
        self._start_value = int(value)

    def set_tick_ms(self, ms: int) -> None:
        """Takes effect from the next armed tick."""
        if ms < 1:
            raise ValueError(f"tick_ms must be >= 1, got {ms}")
        self._tick_ms = int(ms)

    def start(self) -> None:
        """(Re)start from the configured value. A pending tick is invalidated first."""
        self._invalidate()
        self._remaining = self._start_value
        self._counting = True
        log.debug("Countdown started at %d (generation %d)", self._remaining, self._generation)
        self._arm()

    reset = start

    def cancel(self) -> None:
        if self._counting:
            log.debug("Countdown cancelled at %d", self._remaining)
        self._invalidate()
        self._counting = False

    # ------------------------------------------------------------------
    def _invalidate(self) -> None:
        self._generation += 1
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _arm(self) -> None:
        generation = self._generation
        self._handle = self._timers.call_later(self._tick_ms, lambda: self._on_timer(generation))

    def _on_timer(self, generation: int) -> None:
        if generation != self._generation or not self._counting:
            return  # stale
        self._handle = None
        self._remaining -= 1
        if self._on_tick is not None:
            self._on_tick(self._remaining)

        if self._remaining > 0:
            self._arm()
            return

        self._counting = False
        self._generation += 1
        log.info("Betting countdown expired")
        if self._on_expired is not None:
            self._on_expired()
