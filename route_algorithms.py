"""
Route construction and improvement algorithms.

Three solvers over a city list whose ids equal their list positions:

    - ``compute_greedy``: nearest neighbor construction from city 0.
    - ``compute_two_opt``: first-improvement 2-opt local search.
    - ``compute_brute_force``: exhaustive search over all n! orderings.

All of them return a ``RouteResult`` with a closed route and measure
routes with ``tsp_core.route_length`` only.
"""

import itertools
from typing import Iterator, List, Optional, Sequence, Tuple

from tsp_core import (
    EPSILON,
    MAX_BRUTE_FORCE_CITIES,
    City,
    RouteResult,
    SizeLimitExceeded,
    distance,
    open_route,
    route_length,
)


def empty_result() -> RouteResult:
    return RouteResult([], 0.0)


# --------------------------------------------------------
# NEAREST NEIGHBOR
# --------------------------------------------------------
def compute_greedy(cities: Sequence[City]) -> RouteResult:
    """
    Build a route by always moving to the nearest unvisited city.

    The walk starts at city 0. Unvisited cities are scanned in ascending id
    order and only a strictly shorter edge replaces the current choice, so
    ties go to the lowest id.
    """
    n = len(cities)
    if n < 2:
        return empty_result()

    visited = [False] * n
    current = 0
    visited[current] = True
    route = [current]

    for _ in range(1, n):
        nearest = -1
        nearest_d = float("inf")
        for j in range(n):
            if visited[j]:
                continue
            d = distance(cities[current], cities[j])
            if d < nearest_d:
                nearest_d = d
                nearest = j

        visited[nearest] = True
        route.append(nearest)
        current = nearest

    route.append(route[0])
    return RouteResult(route, route_length(route, cities))


# --------------------------------------------------------
# 2-OPT
# --------------------------------------------------------
def two_opt_swap(route: Sequence[int], i: int, k: int) -> List[int]:
    """Reverse the segment ``route[i..k]`` (inclusive)."""
    route = list(route)
    return route[:i] + route[i:k + 1][::-1] + route[k + 1:]


def check_route(route: Sequence[int], n: int):
    """Raise ValueError unless the open ``route`` visits each of ``n`` cities once."""
    if sorted(route) != list(range(n)):
        raise ValueError(f"Route {list(route)} is not a tour of all {n} cities")


def iter_two_opt_pairs(n: int) -> Iterator[Tuple[int, int]]:
    """Index pairs ``1 <= i < k <= n - 1`` in scan order."""
    for i in range(1, n - 1):
        for k in range(i + 1, n):
            yield i, k


def compute_two_opt(
    cities: Sequence[City],
    initial_route: Optional[Sequence[int]] = None
) -> RouteResult:
    """
    Improve a route with first-improvement 2-opt.

    Args:
        cities: Canonical city list
        initial_route: Open or closed starting route. Defaults to the
            nearest neighbor route.

    Returns:
        Closed locally optimal route, its length, the number of accepted
        swaps and the length history.

    Raises:
        ValueError: If a starting route of two or more ids does not visit
            every city exactly once
    """
    if len(cities) < 2:
        return empty_result()

    if initial_route is None:
        initial_route = compute_greedy(cities).route

    if len(initial_route) < 2:
        return empty_result()

    route = open_route(initial_route)
    check_route(route, len(cities))
    n = len(route)
    if n < 3:
        closed = route + [route[0]]
        d = route_length(closed, cities)
        return RouteResult(closed, d, 0, (d,))

    best_d = route_length(route, cities)
    history = [best_d]
    iterations = 0
    improved = True

    while improved:
        improved = False
        for i, k in iter_two_opt_pairs(n):
            candidate = two_opt_swap(route, i, k)
            d = route_length(candidate, cities)
            if d < best_d - EPSILON:
                route = candidate
                best_d = d
                iterations += 1
                history.append(d)
                improved = True
                break

    return RouteResult(route + [route[0]], best_d, iterations, tuple(history))


# --------------------------------------------------------
# BRUTE FORCE
# --------------------------------------------------------
def check_brute_force_size(n: int):
    if n > MAX_BRUTE_FORCE_CITIES:
        raise SizeLimitExceeded(n)


def iter_permutations(n: int) -> Iterator[Tuple[int, ...]]:
    """
    Every ordering of ``range(n)``, lazily.

    Each element in turn is taken as the head and followed by the
    orderings of the remaining elements, which is exactly the order
    ``itertools.permutations`` produces. Calling again restarts the
    sequence.
    """
    return itertools.permutations(range(n))


def compute_brute_force(cities: Sequence[City]) -> RouteResult:
    """
    Find the optimal route by checking all n! permutations.

    No rotation or reflection is skipped. The incumbent is only replaced
    by a route shorter by more than EPSILON, so the first optimal ordering
    found is kept.

    Raises:
        SizeLimitExceeded: more than MAX_BRUTE_FORCE_CITIES cities
    """
    n = len(cities)
    check_brute_force_size(n)
    if n < 2:
        return empty_result()

    best_d = float("inf")
    best_route: List[int] = []

    for perm in iter_permutations(n):
        path = list(perm) + [perm[0]]
        d = route_length(path, cities)
        if d < best_d - EPSILON:
            best_d = d
            best_route = path

    return RouteResult(best_route, best_d)
