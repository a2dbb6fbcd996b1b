"""
TSP Arena - Core Module
Contains the fundamental data structures and the shared distance routine.

Every algorithm and every step generator measures routes through
``route_length`` so that comparisons between them agree bit for bit.
"""

import numpy as np
from typing import List, NamedTuple, Sequence, Tuple


# Tolerance for comparing route lengths
EPSILON = 1e-9

# Hard limit for the exhaustive search
MAX_BRUTE_FORCE_CITIES = 9


class TSPError(Exception):
    """Base class for errors raised by the TSP core."""


class SizeLimitExceeded(TSPError, ValueError):
    """Raised when the exhaustive search is asked to handle too many cities."""

    def __init__(self, count: int, limit: int = MAX_BRUTE_FORCE_CITIES):
        self.count = count
        self.limit = limit
        super().__init__(
            f"Brute force is limited to {limit} cities (got {count})"
        )


class InvariantViolation(UserWarning):
    """A heuristic route came out shorter than the known optimum."""


class City:
    """Represents a city with an id and x, y coordinates.

    The id is the city's position in the canonical city list; routes are
    lists of these ids.
    """

    __slots__ = ("_id", "_x", "_y")

    def __init__(self, id: int, x: float, y: float):
        if id < 0:
            raise ValueError(f"City id must be non-negative, got {id}")
        self._id = int(id)
        self._x = float(x)
        self._y = float(y)

    @property
    def id(self) -> int:
        return self._id

    @property
    def x(self) -> float:
        return self._x

    @property
    def y(self) -> float:
        return self._y

    def distance_to(self, city: 'City') -> float:
        """Calculate Euclidean distance to another city."""
        return distance(self, city)

    def __repr__(self):
        return f"City({self._id}, {self._x:.2f}, {self._y:.2f})"

    def __eq__(self, other):
        if not isinstance(other, City):
            return False
        return (self._id, self._x, self._y) == (other._id, other._x, other._y)

    def __hash__(self):
        return hash((self._id, self._x, self._y))


class RouteResult(NamedTuple):
    """Result of a route algorithm.

    ``route`` is closed (first id repeated at the end) or empty.
    ``history`` holds the route length before and after each accepted
    2-opt swap.
    """

    route: List[int]
    distance: float
    iterations: int = 0
    history: Tuple[float, ...] = ()


def distance(a: City, b: City) -> float:
    """Euclidean distance between two cities."""
    dx = b.x - a.x
    dy = b.y - a.y
    return float(np.sqrt(dx * dx + dy * dy))


def is_closed(route: Sequence[int]) -> bool:
    return len(route) > 1 and route[0] == route[-1]


def close_route(route: Sequence[int]) -> List[int]:
    """Return a closed copy of ``route`` (first id appended when missing)."""
    route = list(route)
    if route and not is_closed(route):
        route.append(route[0])
    return route


def open_route(route: Sequence[int]) -> List[int]:
    """Return an open copy of ``route`` (trailing repeat of the first id dropped)."""
    route = list(route)
    if is_closed(route):
        route.pop()
    return route


def route_length(route: Sequence[int], cities: Sequence[City]) -> float:
    """
    Total length of a route, treating an open route as a cycle.

    Args:
        route: City ids, either open or closed
        cities: Canonical city list indexed by id

    Returns:
        Sum of consecutive edges plus the closing edge when the route is
        open. Routes shorter than two ids have length 0.
    """
    if len(route) < 2:
        return 0.0

    total = 0.0
    for i in range(len(route) - 1):
        total += distance(cities[route[i]], cities[route[i + 1]])

    if route[0] != route[-1]:
        total += distance(cities[route[-1]], cities[route[0]])

    return total


def factorial(n: int) -> int:
    result = 1
    for i in range(2, n + 1):
        result *= i
    return result
