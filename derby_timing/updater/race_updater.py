"""
race_updater.py

RaceUpdater wires the race state machine, the wager ledger, the betting
countdown and the auto-draw loop together on the Qt event loop.
It emits `state_updated` (EngineSnapshot), `countdown_changed` (int),
`log_appended` (DrawEntry | RaceEvent), `race_finished` (RaceState) and
`error` (str).

Presentation only talks to it through the intents below and reads snapshots.
"""

import logging
log = logging.getLogger(__name__)

from dataclasses import dataclass, field
from typing import Optional, Tuple

from PyQt5 import QtCore

from derby_core.errors import InvalidStateTransition, InvalidWager
from derby_core.model import DrawEntry, RacePhase, RaceState, WagerSnapshot
from derby_core.race import LogEntry, RaceStateMachine
from derby_core.wagers import WagerLedger
from derby_timing.core.config_store import ConfigModel
from derby_timing.updater.auto_draw import AutoDrawLoop
from derby_timing.updater.countdown import BettingCountdown
from derby_timing.updater.timers import QtTimerFactory


@dataclass(frozen=True)
class EngineSnapshot:
    """Everything presentation needs to draw one frame."""
    race: RaceState
    countdown_remaining: int
    is_counting_down: bool
    wager: WagerSnapshot
    log: Tuple[LogEntry, ...] = field(default_factory=tuple)


class RaceUpdater(QtCore.QObject):
    """
    Usage:
      - create RaceUpdater(cfg) inside a running Q(Core)Application
      - connect signals: state_updated, countdown_changed, log_appended,
        race_finished, error
      - call request_start_betting(); the race starts when the countdown
        expires and then draws every cfg.draw_interval_ms
      - call stop() before quitting
    """
    state_updated = QtCore.pyqtSignal(object)      # EngineSnapshot
    countdown_changed = QtCore.pyqtSignal(int)
    log_appended = QtCore.pyqtSignal(object)       # DrawEntry | RaceEvent
    race_finished = QtCore.pyqtSignal(object)      # RaceState
    error = QtCore.pyqtSignal(str)

    def __init__(
        self,
        cfg: ConfigModel,
        *,
        race: Optional[RaceStateMachine] = None,
        timer_factory=None,
    ):
        super().__init__()
        self._cfg = cfg
        self._race = race or RaceStateMachine(seed=cfg.seed, finish_line=cfg.finish_line)
        self._ledger = WagerLedger(is_open=lambda: self._race.phase is not RacePhase.RACING)
        self._timers = timer_factory or QtTimerFactory(self)
        self._emitted = len(self._race.log)

        self._countdown = BettingCountdown(
            self._timers,
            start_value=cfg.countdown_start,
            tick_ms=cfg.countdown_tick_ms,
            on_tick=self._on_countdown_tick,
            on_expired=self._on_countdown_expired,
        )
        self._auto_draw = AutoDrawLoop(
            self._race,
            self._timers,
            interval_ms=cfg.draw_interval_ms,
            on_advanced=self._on_advanced,
        )

    # ------------------------------------------------------------------
    # Read-only access
    # ------------------------------------------------------------------
    @property
    def race(self) -> RaceStateMachine:
        return self._race

    @property
    def ledger(self) -> WagerLedger:
        return self._ledger

    @property
    def countdown(self) -> BettingCountdown:
        return self._countdown

    @property
    def auto_draw(self) -> AutoDrawLoop:
        return self._auto_draw

    def snapshot(self) -> EngineSnapshot:
        state = self._race.snapshot()
        return EngineSnapshot(
            race=state,
            countdown_remaining=self._countdown.remaining,
            is_counting_down=self._countdown.is_counting,
            wager=self._ledger.snapshot(),
            log=self._race.log.entries_for(state.race_no),
        )

    # ------------------------------------------------------------------
    # Intents
    # ------------------------------------------------------------------
    @QtCore.pyqtSlot()
    def request_start_betting(self) -> bool:
        """Open (or reopen) the betting window. Ignored while a race is running."""
        if self._race.phase is RacePhase.RACING:
            log.warning("Start betting ignored: race %d is running", self._race.race_no)
            return False
        self._countdown.start()
        self.countdown_changed.emit(self._countdown.remaining)
        self._publish()
        return True

    @QtCore.pyqtSlot()
    def reset_countdown(self) -> bool:
        return self.request_start_betting()

    def set_wager(self, category, amount) -> bool:
        """Returns False if the stake was ignored because the race is running."""
        try:
            accepted = self._ledger.set_wager(category, amount)
        except InvalidWager as exc:
            self.error.emit(str(exc))
            raise
        if accepted:
            self._publish()
        return accepted

    @QtCore.pyqtSlot()
    def manual_start_race(self) -> RaceState:
        """Skip the remaining countdown and start immediately."""
        if self._race.phase is RacePhase.RACING:
            exc = InvalidStateTransition(f"race {self._race.race_no} is already running")
            self.error.emit(str(exc))
            raise exc
        self._countdown.cancel()
        return self._start_race()

    @QtCore.pyqtSlot()
    def manual_advance(self) -> DrawEntry:
        """Draw one card now. The auto-draw interval restarts from this draw."""
        self._auto_draw.cancel()
        try:
            entry = self._race.advance()
        except InvalidStateTransition as exc:
            self.error.emit(str(exc))
            raise
        self._on_advanced(entry)
        if self._cfg.auto_draw:
            self._auto_draw.arm()
        return entry

    @QtCore.pyqtSlot()
    def stop(self):
        """Cancel every pending timer."""
        self._countdown.cancel()
        self._auto_draw.cancel()

    @QtCore.pyqtSlot(object)
    def apply_config(self, cfg: ConfigModel) -> None:
        """Pick up new timings. Finish line and seed only apply to a new RaceUpdater."""
        self._cfg = cfg
        self._countdown.set_start_value(cfg.countdown_start)
        self._countdown.set_tick_ms(cfg.countdown_tick_ms)
        self._auto_draw.set_interval(cfg.draw_interval_ms)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    def _start_race(self) -> RaceState:
        self._auto_draw.cancel()
        wager = self._ledger.snapshot()
        state = self._race.start(wager)
        if self._cfg.reset_wagers_on_start:
            self._ledger.clear()
        self._flush_log()
        self._publish()
        if self._cfg.auto_draw:
            self._auto_draw.arm()
        return state

    def _on_countdown_tick(self, remaining: int) -> None:
        self.countdown_changed.emit(remaining)
        if remaining > 0:
            self._publish()

    def _on_countdown_expired(self) -> None:
        if self._race.phase is RacePhase.RACING:
            log.warning("Countdown expired during race %d; not restarting", self._race.race_no)
            return
        self._start_race()

    def _on_advanced(self, entry: DrawEntry) -> None:
        self._flush_log()
        if self._race.phase is RacePhase.FINISHED:
            self._auto_draw.cancel()
            self.race_finished.emit(self._race.snapshot())
        self._publish()

    def _flush_log(self) -> None:
        entries = self._race.log.entries
        for entry in entries[self._emitted:]:
            self.log_appended.emit(entry)
        self._emitted = len(entries)

    def _publish(self) -> None:
        self.state_updated.emit(self.snapshot())
