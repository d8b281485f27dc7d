"""
race.py

RaceStateMachine: owns the deck, lane positions, last card and winner of the
current race. State changes only through start() and advance().

    idle --start--> racing --advance (winner or empty deck)--> finished
    finished --start--> racing
"""

import logging
log = logging.getLogger(__name__)

from collections import deque
from typing import Callable, Deque, List, Optional, Sequence, Tuple, Union

import numpy as np

from derby_core import rules
from derby_core.deck import SeedLike, generate_deck
from derby_core.errors import InvalidStateTransition
from derby_core.model import (
    EVENT_NO_CONTEST,
    EVENT_STARTED,
    EVENT_WON,
    Card,
    DrawEntry,
    Lane,
    RaceEvent,
    RacePhase,
    RaceState,
    WagerSnapshot,
)

FINISH_LINE = 5

LogEntry = Union[DrawEntry, RaceEvent]


class RaceLog:
    """Append-only list of race entries for the whole session."""

    def __init__(self) -> None:
        self._entries: List[LogEntry] = []

    def append(self, entry: LogEntry) -> None:
        self._entries.append(entry)

    @property
    def entries(self) -> Tuple[LogEntry, ...]:
        return tuple(self._entries)

    def entries_for(self, race_no: int) -> Tuple[LogEntry, ...]:
        return tuple(e for e in self._entries if e.race_no == race_no)

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self):
        return iter(tuple(self._entries))


class RaceStateMachine:
    """
    Race engine for a single session.

    deck_factory is called with the machine's numpy Generator at every start,
    so a seeded machine replays the same sequence of races.
    """

    def __init__(
        self,
        *,
        deck_factory: Callable[[np.random.Generator], Sequence[Card]] = generate_deck,
        seed: SeedLike = None,
        finish_line: int = FINISH_LINE,
    ):
        if finish_line < 1:
            raise ValueError(f"finish_line must be >= 1, got {finish_line}")
        self._deck_factory = deck_factory
        self._rng = np.random.default_rng(seed)
        self._finish_line = finish_line

        self._deck: Deque[Card] = deque()
        self._phase = RacePhase.IDLE
        self._positions = {Lane.RED: 0, Lane.BLACK: 0}
        self._last_card: Optional[Card] = None
        self._winner: Optional[Lane] = None
        self._race_no = 0
        self._cards_drawn = 0
        self._log = RaceLog()

    # ------------------------------------------------------------------
    # Read-only accessors
    # ------------------------------------------------------------------
    @property
    def phase(self) -> RacePhase:
        return self._phase

    @property
    def finish_line(self) -> int:
        return self._finish_line

    @property
    def race_no(self) -> int:
        return self._race_no

    @property
    def log(self) -> RaceLog:
        return self._log

    @property
    def deck_remaining(self) -> int:
        return len(self._deck)

    def snapshot(self) -> RaceState:
        return RaceState(
            red_position=self._positions[Lane.RED],
            black_position=self._positions[Lane.BLACK],
            last_card=self._last_card,
            winner=self._winner,
            phase=self._phase,
            race_no=self._race_no,
            cards_drawn=self._cards_drawn,
            cards_remaining=len(self._deck),
        )

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------
    def start(self, wager: Optional[WagerSnapshot] = None) -> RaceState:
        """Deal a fresh deck and begin a new race."""
        if self._phase is RacePhase.RACING:
            raise InvalidStateTransition(f"cannot start race {self._race_no + 1}: race {self._race_no} is still running")

        wager = wager or WagerSnapshot()
        deck = list(self._deck_factory(self._rng))
        if not deck:
            raise ValueError("deck factory returned an empty deck")

        self._deck = deque(deck)
        self._positions = {Lane.RED: 0, Lane.BLACK: 0}
        self._last_card = None
        self._winner = None
        self._cards_drawn = 0
        self._race_no += 1
        self._phase = RacePhase.RACING
        self._log.append(RaceEvent(race_no=self._race_no, event=EVENT_STARTED, wager=wager))
        log.info("Race %d started (%d cards, stakes %.2f)", self._race_no, len(deck), wager.total)
        return self.snapshot()

    def advance(self) -> DrawEntry:
        """Draw the front card and apply it. Ends the race on a winner or an empty deck."""
        if self._phase is not RacePhase.RACING:
            raise InvalidStateTransition(f"cannot advance while {self._phase.value}")

        card = self._deck.popleft()
        outcome = rules.step(self._last_card, card)
        self._last_card = card
        self._cards_drawn += 1
        if outcome.advances:
            # one lane per draw, so both lanes can never finish on the same card
            self._positions[outcome.lane] = min(self._finish_line, self._positions[outcome.lane] + 1)

        entry = DrawEntry(
            race_no=self._race_no,
            card=card,
            lane=outcome.lane,
            advanced=outcome.advances,
            red_position=self._positions[Lane.RED],
            black_position=self._positions[Lane.BLACK],
        )
        self._log.append(entry)
        log.debug("Race %d draw %d: %s", self._race_no, self._cards_drawn, entry.to_dict())

        if outcome.advances and self._positions[outcome.lane] >= self._finish_line:
            self._finish(outcome.lane)
        elif not self._deck:
            self._finish(None)
        return entry

    def _finish(self, winner: Optional[Lane]) -> None:
        self._winner = winner
        self._phase = RacePhase.FINISHED
        if winner is None:
            self._log.append(RaceEvent(race_no=self._race_no, event=EVENT_NO_CONTEST))
            log.info("Race %d: deck exhausted after %d cards, no contest", self._race_no, self._cards_drawn)
        else:
            self._log.append(RaceEvent(race_no=self._race_no, event=EVENT_WON, winner=winner))
            log.info("Race %d won by %s after %d cards", self._race_no, winner.value, self._cards_drawn)
