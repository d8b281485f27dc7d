"""Wager ledger: stake amounts per category, editable only while betting is open."""

from __future__ import annotations

import logging
import math
from enum import Enum
from numbers import Real
from typing import Callable, Dict, Union

from derby_core.errors import InvalidWager
from derby_core.model import WagerSnapshot

log = logging.getLogger(__name__)


class WagerCategory(Enum):
    RED = "red"
    BLACK = "black"
    SUIT_FINISH = "suit_finish"
    STRAIGHT_STRIKE = "straight_strike"


def parse_amount(amount) -> float:
    """Normalise a stake. Empty input counts as 0, like an untouched betting field."""
    if amount is None:
        return 0
    if isinstance(amount, bool):
        raise InvalidWager(f"stake must be numeric, got {amount!r}")
    if isinstance(amount, str):
        text = amount.strip()
        if not text:
            return 0
        try:
            value = float(text)
        except ValueError as exc:
            raise InvalidWager(f"stake must be numeric, got {amount!r}") from exc
    elif isinstance(amount, Real):
        value = amount
    else:
        raise InvalidWager(f"stake must be numeric, got {type(amount).__name__}")

    if not math.isfinite(value):
        raise InvalidWager(f"stake must be finite, got {amount!r}")
    if value < 0:
        raise InvalidWager(f"stake must not be negative, got {amount!r}")
    return value


def _coerce_category(category: Union[WagerCategory, str]) -> WagerCategory:
    if isinstance(category, WagerCategory):
        return category
    try:
        return WagerCategory(str(category).lower())
    except ValueError as exc:
        known = ", ".join(c.value for c in WagerCategory)
        raise InvalidWager(f"unknown wager category {category!r}. Known categories: {known}") from exc


class WagerLedger:
    """
    Holds the current stake of each category.

    is_open is consulted on every update; updates made while it returns False
    are dropped (the race has already started).
    """

    def __init__(self, is_open: Callable[[], bool] = lambda: True) -> None:
        self._is_open = is_open
        self._amounts: Dict[WagerCategory, float] = {c: 0 for c in WagerCategory}

    @property
    def is_open(self) -> bool:
        return bool(self._is_open())

    def set_wager(self, category: Union[WagerCategory, str], amount) -> bool:
        """Store *amount* for *category*. Returns False if betting is closed."""
        cat = _coerce_category(category)
        value = parse_amount(amount)
        if not self.is_open:
            log.warning("Ignoring %s wager of %s: betting is closed", cat.value, value)
            return False
        self._amounts[cat] = value
        return True

    def get(self, category: Union[WagerCategory, str]) -> float:
        return self._amounts[_coerce_category(category)]

    def clear(self) -> None:
        self._amounts = {c: 0 for c in WagerCategory}

    def snapshot(self) -> WagerSnapshot:
        return WagerSnapshot(
            red=self._amounts[WagerCategory.RED],
            black=self._amounts[WagerCategory.BLACK],
            suit_finish=self._amounts[WagerCategory.SUIT_FINISH],
            straight_strike=self._amounts[WagerCategory.STRAIGHT_STRIKE],
        )
