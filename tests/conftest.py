import heapq
import itertools

import pytest


class FakeHandle:
    def __init__(self, clock, due, seq, callback):
        self._clock = clock
        self.due = due
        self.seq = seq
        self.callback = callback
        self.cancelled = False
        self.fired = False

    def cancel(self):
        self.cancelled = True

    def __lt__(self, other):
        return (self.due, self.seq) < (other.due, other.seq)


class FakeClock:
    """Manual timer factory: callbacks only run inside advance()."""

    def __init__(self):
        self.now = 0
        self._queue = []
        self._seq = itertools.count()

    def call_later(self, delay_ms, callback):
        handle = FakeHandle(self, self.now + int(delay_ms), next(self._seq), callback)
        heapq.heappush(self._queue, handle)
        return handle

    @property
    def pending(self):
        return [h for h in self._queue if not h.cancelled and not h.fired]

    def advance(self, ms):
        target = self.now + ms
        while self._queue and self._queue[0].due <= target:
            handle = heapq.heappop(self._queue)
            if handle.cancelled:
                continue
            self.now = handle.due
            handle.fired = True
            handle.callback()
        self.now = target

    def run_until_idle(self, limit_ms=10_000_000):
        while self.pending and self.now < limit_ms:
            next_due = min(h.due for h in self.pending)
            self.advance(next_due - self.now)


@pytest.fixture
def clock():
    return FakeClock()
