"""
model.py

Immutable data models for cards, lanes, race state snapshots, wager snapshots
and the race log entries.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional


MIN_RANK = 2
MAX_RANK = 14  # Ace high


class Suit(Enum):
    SPADE = "spade"
    HEART = "heart"
    DIAMOND = "diamond"
    CLUB = "club"

    @property
    def symbol(self) -> str:
        return _SUIT_SYMBOLS[self]


_SUIT_SYMBOLS = {
    Suit.SPADE: "♠",
    Suit.HEART: "♥",
    Suit.DIAMOND: "♦",
    Suit.CLUB: "♣",
}


class Lane(Enum):
    RED = "red"
    BLACK = "black"


class RacePhase(Enum):
    IDLE = "idle"
    RACING = "racing"
    FINISHED = "finished"


@dataclass(frozen=True)
class Card:
    """
    A single playing card.
    - suit: one of the four suits
    - rank: 2..14 where 11=Jack, 12=Queen, 13=King, 14=Ace
    """
    suit: Suit
    rank: int

    def __post_init__(self):
        if not MIN_RANK <= self.rank <= MAX_RANK:
            raise ValueError(f"rank must be in {MIN_RANK}..{MAX_RANK}, got {self.rank}")

    @property
    def lane(self) -> Lane:
        if self.suit in (Suit.HEART, Suit.DIAMOND):
            return Lane.RED
        return Lane.BLACK


@dataclass(frozen=True)
class RaceState:
    """
    Snapshot of the race used by presentation.
    - red_position / black_position: lane positions, 0..finish_line
    - last_card: most recently drawn card (None before the first draw)
    - winner: winning lane, None while racing or after a no-contest finish
    - race_no: 0 before the first race, incremented on every start
    """
    red_position: int = 0
    black_position: int = 0
    last_card: Optional[Card] = None
    winner: Optional[Lane] = None
    phase: RacePhase = RacePhase.IDLE
    race_no: int = 0
    cards_drawn: int = 0
    cards_remaining: int = 0

    def position_of(self, lane: Lane) -> int:
        return self.red_position if lane is Lane.RED else self.black_position


@dataclass(frozen=True)
class WagerSnapshot:
    """Stake amounts captured at race start. Suit finish and straight strike are not settled."""
    red: float = 0
    black: float = 0
    suit_finish: float = 0
    straight_strike: float = 0

    @property
    def total(self) -> float:
        return self.red + self.black + self.suit_finish + self.straight_strike

    def to_dict(self) -> Dict[str, float]:
        return {
            "red": self.red,
            "black": self.black,
            "suit_finish": self.suit_finish,
            "straight_strike": self.straight_strike,
        }


@dataclass(frozen=True)
class DrawEntry:
    """One draw of a race: the card, its lane, and the positions after the draw."""
    race_no: int
    card: Card
    lane: Lane
    advanced: bool
    red_position: int
    black_position: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "race_no": self.race_no,
            "card_suit": self.card.suit.value,
            "card_rank": self.card.rank,
            "lane": self.lane.value,
            "advanced": self.advanced,
            "red_position": self.red_position,
            "black_position": self.black_position,
        }


EVENT_STARTED = "started"
EVENT_WON = "won"
EVENT_NO_CONTEST = "no-contest"


@dataclass(frozen=True)
class RaceEvent:
    """
    Race lifecycle entry.
    - event: "started", "won" or "no-contest"
    - wager: stake snapshot, only set on "started"
    - winner: winning lane, only set on "won"
    """
    race_no: int
    event: str
    wager: Optional[WagerSnapshot] = None
    winner: Optional[Lane] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"race_no": self.race_no, "event": self.event}
        if self.wager is not None:
            data["wager"] = self.wager.to_dict()
        if self.winner is not None:
            data["winner"] = self.winner.value
        return data
