"""
auto_draw.py

AutoDrawLoop calls race.advance() once per interval while the race is
racing. The next tick is only armed after the previous advance returned, so
draws never overlap. arm()/cancel() invalidate any tick already scheduled.
"""

import logging
log = logging.getLogger(__name__)

from typing import Callable, Optional

from derby_core.model import DrawEntry, RacePhase
from derby_core.race import RaceStateMachine

DEFAULT_INTERVAL_MS = 1200


class AutoDrawLoop:
    def __init__(
        self,
        race: RaceStateMachine,
        timer_factory,
        *,
        interval_ms: int = DEFAULT_INTERVAL_MS,
        on_advanced: Optional[Callable[[DrawEntry], None]] = None,
    ):
        self._race = race
        self._timers = timer_factory
        self._interval_ms = int(interval_ms)
        self._on_advanced = on_advanced
        self._generation = 0
        self._handle = None

    @property
    def interval_ms(self) -> int:
        return self._interval_ms

    def set_interval(self, ms: int) -> None:
        self._interval_ms = int(ms)

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def arm(self) -> None:
        """Schedule the next draw, replacing any draw already scheduled."""
        self.cancel()
        if self._race.phase is not RacePhase.RACING:
            return
        self._schedule(self._generation)

    def cancel(self) -> None:
        self._generation += 1
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _schedule(self, generation: int) -> None:
        self._handle = self._timers.call_later(self._interval_ms, lambda: self._on_timer(generation))

    def _on_timer(self, generation: int) -> None:
        if generation != self._generation:
            return  # stale
        self._handle = None
        if self._race.phase is not RacePhase.RACING:
            return

        entry = self._race.advance()
        if self._on_advanced is not None:
            self._on_advanced(entry)

        # on_advanced may have re-armed or cancelled the loop
        if generation == self._generation and self._handle is None and self._race.phase is RacePhase.RACING:
            self._schedule(generation)
        elif self._race.phase is not RacePhase.RACING:
            log.debug("Auto-draw stopped: race %d is %s", self._race.race_no, self._race.phase.value)
