"""
Step-trace generators.

Each generator walks through the same decisions as its algorithm in
``route_algorithms`` and records every decision point as an immutable
``Step``. The resulting list can be replayed frame by frame with
``playback.PlaybackController``; its last element is always a terminal
step (``final_result`` or ``final``) carrying the finished route.
"""

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, List, Mapping, Optional, Sequence, Tuple

from tsp_core import (
    EPSILON,
    City,
    distance,
    factorial,
    open_route,
    route_length,
)
from route_algorithms import (
    check_brute_force_size,
    check_route,
    compute_greedy,
    iter_permutations,
    iter_two_opt_pairs,
    two_opt_swap,
)


class StepType(str, Enum):
    METADATA_UPDATE = "metadata_update"
    CANDIDATE_EDGE = "candidate_edge"
    DECISION = "decision"
    EDGE_ADDED = "edge_added"
    ROUTE_CLOSED = "route_closed"
    FINAL_RESULT = "final_result"
    COMPARE = "compare"
    SWAP = "swap"
    FINAL = "final"
    PERMUTATION_CHECK = "permutation_check"
    BEST_FOUND = "best_found"


TERMINAL_TYPES = frozenset({StepType.FINAL_RESULT, StepType.FINAL})


@dataclass(frozen=True)
class Step:
    """One recorded decision of an algorithm run."""

    type: StepType
    explanation: str = ""
    from_city: Optional[int] = None
    to_city: Optional[int] = None
    # read-only mapping, so it is compared but left out of the hash
    metadata: Mapping[str, Any] = field(default_factory=dict, hash=False)
    path: Optional[Tuple[int, ...]] = None
    distance: Optional[float] = None

    def __post_init__(self):
        object.__setattr__(self, "type", StepType(self.type))
        object.__setattr__(self, "metadata", MappingProxyType(dict(self.metadata)))
        if self.path is not None:
            object.__setattr__(self, "path", tuple(self.path))

    @property
    def is_terminal(self) -> bool:
        return self.type in TERMINAL_TYPES


def is_terminal_step(step: Optional[Step]) -> bool:
    return step is not None and step.is_terminal


def _closed(route: Sequence[int]) -> Tuple[int, ...]:
    return tuple(route) + (route[0],) if route else ()


def _format_route(route: Sequence[int]) -> str:
    return " → ".join(str(c) for c in route)


# --------------------------------------------------------
# GREEDY
# --------------------------------------------------------
def generate_steps_greedy(cities: Sequence[City]) -> List[Step]:
    """
    Trace the nearest neighbor construction.

    Per iteration: one ``candidate_edge`` per unvisited city, then the
    ``decision`` for the nearest one and the ``edge_added`` commit. The walk
    ends with ``route_closed``, a summary ``metadata_update`` and the
    ``final_result``.
    """
    n = len(cities)
    if n < 2:
        return [Step(
            StepType.FINAL_RESULT,
            "Greedy finished: not enough cities",
            metadata={"algorithm_type": "greedy"},
            path=(),
            distance=0.0,
        )]

    steps: List[Step] = [Step(
        StepType.METADATA_UPDATE,
        "Greedy algorithm begins at city 0",
        metadata={"global_message": f"Starting Greedy TSP with {n} cities"},
    )]

    visited = {0}
    current = 0
    route = [0]

    while len(visited) < n:
        candidates = [j for j in range(n) if j not in visited]

        for city_id in candidates:
            steps.append(Step(
                StepType.CANDIDATE_EDGE,
                f"Considering {len(candidates)} unvisited cities from city {current}",
                from_city=current,
                to_city=city_id,
                metadata={
                    "candidate_count": len(candidates),
                    "distance": distance(cities[current], cities[city_id]),
                    "label": f"Candidate edge to city {city_id}",
                },
            ))

        nearest = -1
        nearest_d = float("inf")
        for city_id in candidates:
            d = distance(cities[current], cities[city_id])
            if d < nearest_d:
                nearest_d = d
                nearest = city_id

        steps.append(Step(
            StepType.DECISION,
            f"City {nearest} is nearest unvisited city from city {current}",
            from_city=current,
            to_city=nearest,
            metadata={
                "distance": nearest_d,
                "label": f"Nearest unvisited city: {nearest} (distance: {nearest_d:.1f})",
            },
        ))

        visited.add(nearest)
        route.append(nearest)
        steps.append(Step(
            StepType.EDGE_ADDED,
            f"Move to city {nearest}. Visited {len(visited)}/{n} cities",
            from_city=current,
            to_city=nearest,
            metadata={
                "distance": nearest_d,
                "visited_count": len(visited),
                "total_count": n,
            },
        ))
        current = nearest

    closing_d = distance(cities[current], cities[0])
    steps.append(Step(
        StepType.ROUTE_CLOSED,
        "Greedy route complete. Return to starting city.",
        from_city=current,
        to_city=0,
        metadata={
            "distance": closing_d,
            "label": f"Return to city 0 (distance: {closing_d:.1f})",
        },
    ))

    path = _closed(route)
    total = route_length(path, cities)
    steps.append(Step(
        StepType.METADATA_UPDATE,
        "Greedy TSP finished. Compare this heuristic solution with optimal.",
        metadata={
            "global_message": "Greedy algorithm complete!",
            "total_distance": total,
        },
    ))
    steps.append(Step(
        StepType.FINAL_RESULT,
        "Greedy Algorithm Final Selected Route",
        metadata={"algorithm_type": "greedy"},
        path=path,
        distance=total,
    ))
    return steps


# --------------------------------------------------------
# 2-OPT
# --------------------------------------------------------
def generate_steps_two_opt(
    cities: Sequence[City],
    initial_route: Optional[Sequence[int]] = None
) -> List[Step]:
    """
    Trace first-improvement 2-opt.

    Every tested pair produces a ``compare`` step, every accepted reversal a
    ``swap`` step, and the trace ends with a ``final`` step holding the
    locally optimal route. Starts from the greedy route when no initial
    route is given.
    """
    if initial_route is None and len(cities) >= 2:
        initial_route = compute_greedy(cities).route

    if len(cities) < 2 or len(initial_route) < 2:
        return [Step(
            StepType.FINAL,
            "2-opt finished: not enough cities",
            metadata={"algorithm_type": "two_opt", "iterations": 0},
            path=(),
            distance=0.0,
        )]

    route = open_route(initial_route)
    check_route(route, len(cities))
    n = len(route)
    current_d = route_length(route, cities)
    steps: List[Step] = []
    iterations = 0
    improved = n >= 3

    while improved:
        improved = False
        for i, k in iter_two_opt_pairs(n):
            steps.append(Step(
                StepType.COMPARE,
                f"Compare swap between indices {i} and {k}",
                metadata={"swap_indices": (i, k)},
                path=_closed(route),
                distance=current_d,
            ))

            candidate = two_opt_swap(route, i, k)
            candidate_d = route_length(candidate, cities)
            if candidate_d < current_d - EPSILON:
                previous_d = current_d
                route = candidate
                current_d = candidate_d
                iterations += 1
                improved = True
                steps.append(Step(
                    StepType.SWAP,
                    f"Swap improves distance to {current_d:.2f}",
                    metadata={
                        "swap_indices": (i, k),
                        "previous_distance": previous_d,
                        "iteration": iterations,
                    },
                    path=_closed(route),
                    distance=current_d,
                ))
                break

    steps.append(Step(
        StepType.FINAL,
        "2-opt complete: locally optimal route",
        metadata={"algorithm_type": "two_opt", "iterations": iterations},
        path=_closed(route),
        distance=current_d,
    ))
    return steps


# --------------------------------------------------------
# BRUTE FORCE
# --------------------------------------------------------
def generate_steps_brute_force(
    cities: Sequence[City],
    sampling_rate: int = 1
) -> List[Step]:
    """
    Trace the exhaustive search.

    Args:
        cities: At most MAX_BRUTE_FORCE_CITIES cities
        sampling_rate: Emit a ``permutation_check`` for every Nth
            permutation only. The best route is still tracked over all
            permutations, and a permutation that becomes the new best is
            always emitted (``best_found`` followed by its check).

    Raises:
        SizeLimitExceeded: too many cities
        ValueError: sampling_rate below 1
    """
    if sampling_rate < 1:
        raise ValueError(f"sampling_rate must be >= 1, got {sampling_rate}")

    n = len(cities)
    check_brute_force_size(n)
    if n < 2:
        return [Step(
            StepType.FINAL_RESULT,
            "Brute Force finished: not enough cities",
            metadata={"algorithm_type": "bruteforce", "total_permutations_checked": 0},
            path=(),
            distance=0.0,
        )]

    total = factorial(n)
    steps: List[Step] = [Step(
        StepType.METADATA_UPDATE,
        f"Brute Force will evaluate all {total:,} possible permutations to find "
        f"the optimal route. No symmetry reduction - full factorial space.",
        metadata={
            "global_message": f"Brute Force TSP - Checking {total} permutations",
            "complexity": f"O(n!) = O({n}!) = {total:,}",
            "total": total,
        },
    )]

    best_d = float("inf")
    best_path: Tuple[int, ...] = ()
    count = 0

    for perm in iter_permutations(n):
        count += 1
        d = route_length(perm, cities)
        new_best = d < best_d - EPSILON
        if new_best:
            best_d = d
            best_path = _closed(perm)

        if not new_best and count % sampling_rate != 0:
            continue

        label = _format_route(perm)
        if new_best:
            steps.append(Step(
                StepType.BEST_FOUND,
                f"Found better solution with permutation {count}/{total}: "
                f"distance {d:.2f}",
                metadata={
                    "permutation": label,
                    "distance": d,
                    "current": count,
                    "total": total,
                    "label": f"New best found: {d:.2f}",
                },
                path=best_path,
                distance=d,
            ))

        steps.append(Step(
            StepType.PERMUTATION_CHECK,
            f"Checked permutation {count}/{total}: distance {d:.2f}",
            metadata={
                "permutation": label,
                "distance": d,
                "current": count,
                "total": total,
                "is_best": abs(d - best_d) < EPSILON,
            },
            path=_closed(perm),
            distance=d,
        ))

    steps.append(Step(
        StepType.METADATA_UPDATE,
        f"Brute Force complete. Checked all {total:,} permutations in the full "
        f"factorial space. Optimal distance: {best_d:.2f}",
        metadata={
            "global_message": "Optimal solution found!",
            "optimal_route": _format_route(best_path[:-1]),
            "optimal_distance": best_d,
            "total_permutations_checked": count,
        },
    ))
    steps.append(Step(
        StepType.FINAL_RESULT,
        "Brute Force Optimal Final Route",
        metadata={
            "algorithm_type": "bruteforce",
            "total_permutations_checked": count,
        },
        path=best_path,
        distance=best_d,
    ))
    return steps
