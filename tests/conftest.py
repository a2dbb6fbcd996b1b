import pytest

from data_generator import generate_cities
from tsp_core import City


class ManualScheduler:
    """Timer source driven by the test instead of an event loop."""

    def __init__(self):
        self.now = 0.0
        self.pending = []

    def call_later(self, delay_s, callback):
        handle = _Handle(self.now + delay_s, callback)
        self.pending.append(handle)
        return handle

    def advance(self, seconds):
        """Move the clock forward, firing due callbacks in order."""
        target = self.now + seconds
        while True:
            due = [h for h in self.pending if not h.cancelled and h.when <= target]
            if not due:
                break
            handle = min(due, key=lambda h: h.when)
            self.pending.remove(handle)
            self.now = handle.when
            handle.callback()
        self.now = target
        self.pending = [h for h in self.pending if not h.cancelled]

    @property
    def active(self):
        return [h for h in self.pending if not h.cancelled]


class _Handle:
    def __init__(self, when, callback):
        self.when = when
        self.callback = callback
        self.cancelled = False

    def cancel(self):
        self.cancelled = True


def make_cities(points):
    return [City(i, x, y) for i, (x, y) in enumerate(points)]


@pytest.fixture
def scheduler():
    return ManualScheduler()


@pytest.fixture
def square_cities():
    return make_cities([(0, 0), (0, 10), (10, 10), (10, 0)])


@pytest.fixture
def random_cities():
    return generate_cities(7, seed=123)
