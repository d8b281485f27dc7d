"""Deck construction and shuffling."""

from __future__ import annotations

from typing import List, Optional, Union

import numpy as np

from derby_core.model import Card, MAX_RANK, MIN_RANK, Suit

SeedLike = Optional[Union[int, np.random.Generator]]

DECK_SIZE = 52


def canonical_deck() -> List[Card]:
    """All 52 suit x rank combinations in suit-major order."""
    return [Card(suit, rank) for suit in Suit for rank in range(MIN_RANK, MAX_RANK + 1)]


def generate_deck(seed: SeedLike = None) -> List[Card]:
    """
    Return a freshly shuffled 52-card deck.

    *seed* may be an int, an existing ``numpy.random.Generator`` (shared draws
    across calls) or None for OS entropy. The permutation covers the whole deck.
    """
    rng = np.random.default_rng(seed)
    cards = canonical_deck()
    order = rng.permutation(len(cards))
    return [cards[int(i)] for i in order]
