"""
rules.py

Draw rule: which lane a drawn card belongs to and whether that lane may move.

A card always extends its own lane's streak. A card of the other lane only
moves if its rank is at least the previous card's rank (Ace=14 high, no
wraparound). The first card of a race always moves.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from derby_core.model import Card, Lane


@dataclass(frozen=True)
class DrawOutcome:
    lane: Lane
    advances: bool


def lane_of(card: Card) -> Lane:
    return card.lane


def step(last_card: Optional[Card], drawn_card: Card) -> DrawOutcome:
    lane = lane_of(drawn_card)
    advances = (
        last_card is None
        or drawn_card.rank >= last_card.rank
        or lane_of(last_card) is lane
    )
    return DrawOutcome(lane=lane, advances=advances)
