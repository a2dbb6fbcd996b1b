"""
Live brute force search.

Runs the exhaustive search one permutation per tick, suspending between
permutations so a caller can render intermediate state and stop the run
early through a shared ``CancellationToken``.
"""

import asyncio
import inspect
import logging
from typing import Callable, List, NamedTuple, Optional, Sequence

from tsp_core import EPSILON, City, factorial, route_length
from route_algorithms import check_brute_force_size, iter_permutations


logger = logging.getLogger(__name__)


class CancellationToken:
    """Shared stop flag: the runner reads it, a controller sets it once."""

    def __init__(self):
        self.cancelled = False

    def cancel(self):
        self.cancelled = True

    def reset(self):
        self.cancelled = False

    def __repr__(self):
        return f"CancellationToken(cancelled={self.cancelled})"


class SearchProgress(NamedTuple):
    checked: int
    total: int
    current_distance: float
    best_distance: float
    best_route: List[int]
    current_route: List[int]

    @property
    def percent(self) -> float:
        return self.checked / self.total * 100 if self.total else 0.0


class LiveSearchResult(NamedTuple):
    route: List[int]
    distance: float
    checked: int
    total: int
    cancelled: bool = False


async def _suspend(delay_ms: float):
    # 0 means "yield to the loop and resume on its next iteration"
    await asyncio.sleep(delay_ms / 1000 if delay_ms > 0 else 0)


async def run_live_search(
    cities: Sequence[City],
    delay_ms: float = 50,
    token: Optional[CancellationToken] = None,
    on_progress: Optional[Callable[[SearchProgress], object]] = None
) -> LiveSearchResult:
    """
    Evaluate every permutation, yielding to the event loop after each one.

    Args:
        cities: At most MAX_BRUTE_FORCE_CITIES cities
        delay_ms: Pause between permutations; 0 only yields control
        token: Checked before each permutation and after each pause
        on_progress: Called after every permutation with a
            ``SearchProgress``; may be a plain function or a coroutine
            function

    Returns:
        Best route found, its length and the permutation counts. A
        cancelled run returns the best route seen so far with
        ``cancelled=True``.

    Raises:
        SizeLimitExceeded: too many cities
        ValueError: negative delay
    """
    n = len(cities)
    check_brute_force_size(n)
    if delay_ms < 0:
        raise ValueError(f"delay_ms must be >= 0, got {delay_ms}")

    total = factorial(n)
    if n < 2:
        return LiveSearchResult([], 0.0, 0, total)

    token = token or CancellationToken()
    best_d = float("inf")
    best_route: List[int] = []
    checked = 0
    cancelled = False

    logger.debug("Live search started: %d cities, %d permutations", n, total)

    for perm in iter_permutations(n):
        if token.cancelled:
            cancelled = True
            break

        checked += 1
        path = list(perm) + [perm[0]]
        d = route_length(path, cities)
        if d < best_d - EPSILON:
            best_d = d
            best_route = path

        if on_progress is not None:
            outcome = on_progress(SearchProgress(
                checked, total, d, best_d, list(best_route), path
            ))
            if inspect.isawaitable(outcome):
                await outcome

        await _suspend(delay_ms)

        if token.cancelled:
            cancelled = checked < total
            break

    if cancelled:
        logger.info("Live search cancelled after %d/%d permutations", checked, total)
    else:
        logger.debug("Live search finished: best distance %.2f", best_d)

    if not best_route:
        best_d = 0.0
    return LiveSearchResult(best_route, best_d, checked, total, cancelled)
