"""
console_view.py

Text presentation of the race: card labels, track rows and log lines.
ConsoleView subscribes to a RaceUpdater and writes one line per event.
"""

from __future__ import annotations

import sys
from typing import Optional, TextIO, Union

from derby_core.model import (
    EVENT_NO_CONTEST,
    EVENT_STARTED,
    EVENT_WON,
    Card,
    DrawEntry,
    Lane,
    RaceEvent,
    RaceState,
)

FACE_LABELS = {11: "J", 12: "Q", 13: "K", 14: "A"}
RUNNER_ICONS = {Lane.RED: "🐎", Lane.BLACK: "🏇"}


def rank_label(rank: int) -> str:
    return FACE_LABELS.get(rank, str(rank))


def card_label(card: Optional[Card]) -> str:
    if card is None:
        return "--"
    return f"{card.suit.symbol}{rank_label(card.rank)}"


def _amount(value: float) -> str:
    return f"{value:g}"


def format_entry(entry: Union[DrawEntry, RaceEvent]) -> str:
    """One log line, e.g. '♥A → RED +1' or 'BLACK WINS!'."""
    if isinstance(entry, DrawEntry):
        outcome = f"{entry.lane.value.upper()} +1" if entry.advanced else "No move"
        return f"{card_label(entry.card)} → {outcome}"

    if entry.event == EVENT_STARTED:
        w = entry.wager
        if w is None:
            return "🏁 Race Started!"
        return (
            f"🏁 Race Started! Bet: RED {_amount(w.red)} / BLACK {_amount(w.black)} / "
            f"SUIT {_amount(w.suit_finish)} / STRAIGHT {_amount(w.straight_strike)}"
        )
    if entry.event == EVENT_WON and entry.winner is not None:
        return f"{entry.winner.value.upper()} WINS!"
    if entry.event == EVENT_NO_CONTEST:
        return "Deck exhausted. No contest."
    return entry.event


def format_track(position: int, lane: Lane, finish_line: int = 5) -> str:
    """Track row with the runner on its cell; position == finish_line sits past the last cell."""
    cells = ["[  ]"] * finish_line
    icon = RUNNER_ICONS[lane]
    if position < finish_line:
        cells[position] = f"[{icon}]"
        return f"{lane.value.upper():<5} " + "".join(cells)
    return f"{lane.value.upper():<5} " + "".join(cells) + f" {icon}"


def format_state(state: RaceState, finish_line: int = 5) -> str:
    lines = [
        format_track(state.red_position, Lane.RED, finish_line),
        format_track(state.black_position, Lane.BLACK, finish_line),
    ]
    return "\n".join(lines)


class ConsoleView:
    """Writes countdown, log and result lines for a RaceUpdater to *stream*."""

    def __init__(self, updater, stream: Optional[TextIO] = None, show_tracks: bool = True):
        self._updater = updater
        self._stream = stream or sys.stdout
        self._show_tracks = show_tracks
        updater.countdown_changed.connect(self.on_countdown)
        updater.log_appended.connect(self.on_log_entry)
        updater.race_finished.connect(self.on_race_finished)
        updater.error.connect(self.on_error)

    def _write(self, text: str) -> None:
        self._stream.write(text + "\n")
        self._stream.flush()

    def on_countdown(self, remaining: int) -> None:
        self._write(f"Countdown: {remaining}s")

    def on_log_entry(self, entry) -> None:
        self._write(format_entry(entry))
        if self._show_tracks and isinstance(entry, DrawEntry) and entry.advanced:
            finish_line = self._updater.race.finish_line
            self._write(format_track(entry.red_position, Lane.RED, finish_line))
            self._write(format_track(entry.black_position, Lane.BLACK, finish_line))

    def on_race_finished(self, state: RaceState) -> None:
        if not self._show_tracks:
            self._write(format_state(state, self._updater.race.finish_line))
        if state.winner is None:
            self._write(f"Race {state.race_no} ended without a winner after {state.cards_drawn} cards.")
        else:
            self._write(f"{state.winner.value.upper()} Wins! ({state.cards_drawn} cards drawn)")

    def on_error(self, message: str) -> None:
        self._write(f"Error: {message}")
