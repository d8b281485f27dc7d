import pytest

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
    Suit,
    WagerSnapshot,
)
from derby_core.race import RaceStateMachine


def fixed_deck(*cards):
    return lambda _rng: list(cards)


H2, S5, H3 = Card(Suit.HEART, 2), Card(Suit.SPADE, 5), Card(Suit.HEART, 3)
RED_RUN = [Card(Suit.HEART, r) for r in (2, 3, 4, 5, 6)] + [Card(Suit.SPADE, 9)]


def test_initial_state_is_idle():
    race = RaceStateMachine(seed=1)
    state = race.snapshot()
    assert state.phase is RacePhase.IDLE
    assert (state.red_position, state.black_position) == (0, 0)
    assert state.last_card is None and state.winner is None
    assert race.deck_remaining == 0
    assert len(race.log) == 0


def test_advance_before_start_is_rejected():
    race = RaceStateMachine(seed=1)
    with pytest.raises(InvalidStateTransition):
        race.advance()


def test_start_deals_full_deck_and_logs_wager():
    race = RaceStateMachine(seed=1)
    wager = WagerSnapshot(red=10, black=0, suit_finish=2.5, straight_strike=1)
    state = race.start(wager)

    assert state.phase is RacePhase.RACING
    assert state.race_no == 1
    assert state.cards_remaining == 52
    (entry,) = race.log.entries
    assert entry == RaceEvent(race_no=1, event=EVENT_STARTED, wager=wager)
    assert entry.to_dict()["wager"]["suit_finish"] == 2.5


def test_scenario_draws():
    race = RaceStateMachine(deck_factory=fixed_deck(H2, S5, H3))
    race.start()

    first = race.advance()
    assert (first.lane, first.advanced, first.red_position) == (Lane.RED, True, 1)
    second = race.advance()
    assert (second.lane, second.advanced, second.black_position) == (Lane.BLACK, True, 1)
    third = race.advance()
    assert (third.lane, third.advanced) == (Lane.RED, False)

    state = race.snapshot()
    assert (state.red_position, state.black_position) == (1, 1)
    assert state.last_card == H3
    assert third.to_dict() == {
        "race_no": 1,
        "card_suit": "heart",
        "card_rank": 3,
        "lane": "red",
        "advanced": False,
        "red_position": 1,
        "black_position": 1,
    }


def test_deck_exhaustion_is_a_no_contest_finish():
    race = RaceStateMachine(deck_factory=fixed_deck(H2, S5, H3))
    race.start()
    for _ in range(3):
        race.advance()

    state = race.snapshot()
    assert state.phase is RacePhase.FINISHED
    assert state.winner is None
    assert race.log.entries[-1] == RaceEvent(race_no=1, event=EVENT_NO_CONTEST)
    with pytest.raises(InvalidStateTransition):
        race.advance()


def test_lane_wins_when_it_reaches_finish_line():
    race = RaceStateMachine(deck_factory=fixed_deck(*RED_RUN))
    race.start()
    for _ in range(5):
        race.advance()

    state = race.snapshot()
    assert state.phase is RacePhase.FINISHED
    assert state.winner is Lane.RED
    assert state.red_position == 5
    assert state.cards_remaining == 1
    assert race.log.entries[-1] == RaceEvent(race_no=1, event=EVENT_WON, winner=Lane.RED)


def test_win_on_last_card_is_not_a_no_contest():
    race = RaceStateMachine(deck_factory=fixed_deck(*RED_RUN[:5]))
    race.start()
    for _ in range(5):
        race.advance()

    events = [e.event for e in race.log if isinstance(e, RaceEvent)]
    assert events == [EVENT_STARTED, EVENT_WON]
    assert race.snapshot().winner is Lane.RED


def test_second_start_while_racing_is_rejected_without_logging():
    race = RaceStateMachine(seed=5)
    race.start()
    with pytest.raises(InvalidStateTransition):
        race.start()
    assert len(race.log) == 1
    assert race.race_no == 1


def test_restart_after_finish_resets_state():
    race = RaceStateMachine(deck_factory=fixed_deck(*RED_RUN))
    race.start()
    while race.phase is RacePhase.RACING:
        race.advance()

    state = race.start(WagerSnapshot(black=3))
    assert state.race_no == 2
    assert (state.red_position, state.black_position) == (0, 0)
    assert state.winner is None and state.last_card is None
    assert len(race.log.entries_for(2)) == 1
    assert len(race.log.entries_for(1)) == 7  # start, 5 draws, won


def test_custom_finish_line():
    race = RaceStateMachine(deck_factory=fixed_deck(*RED_RUN), finish_line=2)
    race.start()
    race.advance()
    race.advance()
    assert race.snapshot().winner is Lane.RED


def test_finish_line_must_be_positive():
    with pytest.raises(ValueError):
        RaceStateMachine(finish_line=0)


@pytest.mark.parametrize("seed", range(25))
def test_positions_monotonic_and_single_lane_per_draw(seed):
    race = RaceStateMachine(seed=seed)
    race.start()
    prev = (0, 0)
    while race.phase is RacePhase.RACING:
        entry = race.advance()
        current = (entry.red_position, entry.black_position)
        assert current[0] >= prev[0] and current[1] >= prev[1]
        assert sum(current) - sum(prev) == (1 if entry.advanced else 0)
        assert max(current) <= 5
        prev = current

    state = race.snapshot()
    if state.winner is None:
        assert state.cards_remaining == 0
        assert max(prev) < 5
    else:
        assert state.position_of(state.winner) == 5
        draws = [e for e in race.log.entries_for(1) if isinstance(e, DrawEntry)]
        # the winning lane reached the line on the final draw, not before
        assert all(max(d.red_position, d.black_position) < 5 for d in draws[:-1])
