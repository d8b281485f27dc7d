"""Monte Carlo estimate of lane win frequencies."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from derby_core.deck import SeedLike
from derby_core.model import Lane, RacePhase
from derby_core.race import FINISH_LINE, RaceStateMachine

_RED, _BLACK, _NO_CONTEST = 0, 1, 2


@dataclass(frozen=True)
class OddsSummary:
    races: int
    red_wins: int
    black_wins: int
    no_contests: int
    mean_draws: float
    max_draws: int

    @property
    def red_rate(self) -> float:
        return self.red_wins / self.races

    @property
    def black_rate(self) -> float:
        return self.black_wins / self.races

    @property
    def no_contest_rate(self) -> float:
        return self.no_contests / self.races

    def to_dict(self) -> dict:
        return {
            "races": self.races,
            "red_rate": round(self.red_rate, 4),
            "black_rate": round(self.black_rate, 4),
            "no_contest_rate": round(self.no_contest_rate, 4),
            "mean_draws": round(self.mean_draws, 2),
            "max_draws": self.max_draws,
        }


def simulate_races(races: int, seed: SeedLike = None, finish_line: int = FINISH_LINE) -> OddsSummary:
    """Run *races* complete races and count the outcomes."""
    if races < 1:
        raise ValueError(f"races must be >= 1, got {races}")

    machine = RaceStateMachine(seed=seed, finish_line=finish_line)
    outcomes = np.empty(races, dtype=np.int8)
    draws = np.empty(races, dtype=np.int32)

    for i in range(races):
        machine.start()
        while machine.phase is RacePhase.RACING:
            machine.advance()
        state = machine.snapshot()
        if state.winner is Lane.RED:
            outcomes[i] = _RED
        elif state.winner is Lane.BLACK:
            outcomes[i] = _BLACK
        else:
            outcomes[i] = _NO_CONTEST
        draws[i] = state.cards_drawn

    counts = np.bincount(outcomes, minlength=3)
    return OddsSummary(
        races=races,
        red_wins=int(counts[_RED]),
        black_wins=int(counts[_BLACK]),
        no_contests=int(counts[_NO_CONTEST]),
        mean_draws=float(draws.mean()),
        max_draws=int(draws.max()),
    )
