from __future__ import annotations

import pytest

QtCore = pytest.importorskip("PyQt5.QtCore")

from derby_core.errors import InvalidStateTransition, InvalidWager
from derby_core.model import (
    EVENT_STARTED,
    EVENT_WON,
    Card,
    DrawEntry,
    Lane,
    RaceEvent,
    RacePhase,
    Suit,
    WagerSnapshot,
)
from derby_core.race import RaceStateMachine
from derby_timing.core.config_store import ConfigModel
from derby_timing.updater.race_updater import EngineSnapshot, RaceUpdater


@pytest.fixture(scope="module", autouse=True)
def qt_app():
    app = QtCore.QCoreApplication.instance() or QtCore.QCoreApplication([])
    yield app


RED_RUN = [Card(Suit.HEART, r) for r in (2, 3, 4, 5, 6)] + [Card(Suit.SPADE, 9)]


def make_updater(clock, **cfg_overrides):
    cfg = ConfigModel(countdown_start=3, countdown_tick_ms=1000, draw_interval_ms=1200)
    for key, value in cfg_overrides.items():
        setattr(cfg, key, value)
    race = RaceStateMachine(deck_factory=lambda _rng: list(RED_RUN))
    updater = RaceUpdater(cfg, race=race, timer_factory=clock)

    events = {"countdown": [], "log": [], "finished": [], "errors": [], "states": []}
    updater.countdown_changed.connect(events["countdown"].append)
    updater.log_appended.connect(events["log"].append)
    updater.race_finished.connect(events["finished"].append)
    updater.error.connect(events["errors"].append)
    updater.state_updated.connect(events["states"].append)
    return updater, events


def test_full_cycle_betting_to_winner(clock):
    updater, events = make_updater(clock)
    updater.set_wager("red", 10)
    assert updater.request_start_betting()
    assert events["countdown"] == [3]

    clock.advance(3000)
    assert events["countdown"] == [3, 2, 1, 0]
    assert updater.race.phase is RacePhase.RACING
    started = events["log"][0]
    assert started == RaceEvent(race_no=1, event=EVENT_STARTED, wager=WagerSnapshot(red=10))

    clock.advance(1200 * 5)
    assert updater.race.phase is RacePhase.FINISHED
    assert [type(e) for e in events["log"]] == [RaceEvent] + [DrawEntry] * 5 + [RaceEvent]
    assert events["log"][-1].event == EVENT_WON
    (final,) = events["finished"]
    assert final.winner is Lane.RED
    assert clock.pending == []


def test_snapshot_contents(clock):
    updater, events = make_updater(clock)
    updater.set_wager("black", "2")
    updater.request_start_betting()
    clock.advance(1000)

    snap = updater.snapshot()
    assert isinstance(snap, EngineSnapshot)
    assert snap.is_counting_down and snap.countdown_remaining == 2
    assert snap.wager == WagerSnapshot(black=2.0)
    assert snap.race.phase is RacePhase.IDLE
    assert snap.log == ()
    assert isinstance(events["states"][-1], EngineSnapshot)


def test_wagers_locked_and_reset_while_racing(clock):
    updater, _ = make_updater(clock)
    updater.set_wager("red", 5)
    updater.manual_start_race()

    assert updater.ledger.snapshot() == WagerSnapshot()
    assert updater.set_wager("red", 50) is False
    assert updater.snapshot().log[0].wager == WagerSnapshot(red=5)


def test_wagers_carry_forward_when_reset_disabled(clock):
    updater, _ = make_updater(clock, reset_wagers_on_start=False)
    updater.set_wager("suit_finish", 4)
    updater.manual_start_race()
    assert updater.ledger.snapshot() == WagerSnapshot(suit_finish=4)


def test_invalid_wager_reported_and_raised(clock):
    updater, events = make_updater(clock)
    with pytest.raises(InvalidWager):
        updater.set_wager("red", -1)
    assert len(events["errors"]) == 1


def test_start_betting_ignored_while_racing(clock):
    updater, events = make_updater(clock)
    updater.manual_start_race()
    assert updater.request_start_betting() is False
    assert not updater.countdown.is_counting
    assert events["countdown"] == []


def test_double_start_does_not_double_log_or_leak_timers(clock):
    updater, events = make_updater(clock)
    updater.manual_start_race()
    with pytest.raises(InvalidStateTransition):
        updater.manual_start_race()

    started = [e for e in events["log"] if isinstance(e, RaceEvent)]
    assert len(started) == 1
    assert len(clock.pending) == 1


def test_restarting_countdown_expires_once(clock):
    updater, _ = make_updater(clock)
    updater.request_start_betting()
    clock.advance(2500)
    updater.reset_countdown()
    clock.advance(3000)
    assert updater.race.race_no == 1
    assert updater.race.phase is RacePhase.RACING


def test_manual_start_cancels_countdown(clock):
    updater, _ = make_updater(clock)
    updater.request_start_betting()
    updater.manual_start_race()
    clock.advance(3000 + 1200 * 5)
    assert updater.race.race_no == 1
    assert updater.race.phase is RacePhase.FINISHED


def test_manual_advance_restarts_interval(clock):
    updater, events = make_updater(clock)
    updater.manual_start_race()
    clock.advance(1000)
    updater.manual_advance()
    assert updater.race.snapshot().cards_drawn == 1

    clock.advance(1199)
    assert updater.race.snapshot().cards_drawn == 1
    clock.advance(1)
    assert updater.race.snapshot().cards_drawn == 2
    assert len(clock.pending) == 1


def test_manual_mode_never_schedules_draws(clock):
    updater, _ = make_updater(clock, auto_draw=False)
    updater.manual_start_race()
    assert clock.pending == []
    while updater.race.phase is RacePhase.RACING:
        updater.manual_advance()
    assert updater.race.snapshot().winner is Lane.RED
    assert clock.pending == []


def test_manual_advance_when_finished_reports_error(clock):
    updater, events = make_updater(clock, auto_draw=False)
    with pytest.raises(InvalidStateTransition):
        updater.manual_advance()
    assert len(events["errors"]) == 1


def test_new_race_after_finish_via_countdown(clock):
    updater, events = make_updater(clock)
    updater.manual_start_race()
    clock.advance(1200 * 5)
    assert updater.race.phase is RacePhase.FINISHED

    assert updater.request_start_betting()
    clock.advance(3000)
    assert updater.race.race_no == 2
    assert updater.snapshot().race.winner is None
    assert [e.race_no for e in updater.snapshot().log] == [2]


def test_stop_cancels_all_timers(clock):
    updater, _ = make_updater(clock)
    updater.request_start_betting()
    updater.stop()
    clock.advance(60_000)
    assert updater.race.phase is RacePhase.IDLE


def test_apply_config_updates_timings(clock):
    updater, events = make_updater(clock)
    cfg = ConfigModel(countdown_start=2, countdown_tick_ms=100, draw_interval_ms=500)
    updater.apply_config(cfg)
    updater.request_start_betting()
    clock.advance(199)
    assert updater.race.phase is RacePhase.IDLE
    clock.advance(1)
    assert updater.race.phase is RacePhase.RACING
    clock.advance(500)
    assert updater.race.snapshot().cards_drawn == 1
