"""
TSP Arena - Session
The orchestration context for one round: the city set, the player's route,
the algorithm results, the playback controller and the active live run.

Only one run may drive the render target at a time. ``is_busy`` is set for
the duration of a run so a UI can disable its other triggers.
"""

import asyncio
import logging
import time
from typing import Callable, Dict, List, NamedTuple, Optional, Sequence

import config
import metrics
from data_generator import generate_cities
from live_search import CancellationToken, LiveSearchResult, SearchProgress, run_live_search
from playback import PlaybackController
from route_algorithms import (
    check_brute_force_size,
    compute_brute_force,
    compute_greedy,
    compute_two_opt,
)
from step_trace import (
    generate_steps_brute_force,
    generate_steps_greedy,
    generate_steps_two_opt,
)
from tsp_core import City, route_length


logger = logging.getLogger(__name__)


class AlgorithmRun(NamedTuple):
    name: str
    route: List[int]
    distance: float
    time_ms: Optional[float]
    complexity: str
    optimal: bool = False


class TSPSession:
    """Explicit state for one round, passed to whoever drives the UI."""

    def __init__(self, cities: Optional[Sequence[City]] = None, controller: Optional[PlaybackController] = None):
        self.cities: List[City] = []
        self.user_route: List[int] = []
        self.results: Dict[str, Optional[AlgorithmRun]] = {}
        self.controller = controller or PlaybackController()
        self.token: Optional[CancellationToken] = None
        self.is_busy = False
        self._live_task: Optional[asyncio.Task] = None
        self.set_cities(cities or [])

    # ---------------------------------------
    # Cities and user route
    # ---------------------------------------

    def generate(self, count: int = config.DEFAULT_CITY_COUNT, seed: Optional[int] = None) -> List[City]:
        if not config.MIN_CITIES <= count <= config.MAX_CITIES:
            raise ValueError(
                f"City count must be between {config.MIN_CITIES} and {config.MAX_CITIES}, got {count}"
            )
        self.set_cities(generate_cities(count, seed=seed))
        if len(self.cities) < count:
            logger.warning("Placed only %d of %d cities", len(self.cities), count)
        return self.cities

    def set_cities(self, cities: Sequence[City]):
        for i, city in enumerate(cities):
            if city.id != i:
                raise ValueError(f"City at position {i} has id {city.id}")
        self.cities = list(cities)
        self.user_route = []
        self.results = {key: None for key in config.ALGORITHM_INFO}
        self.controller.initialize()

    @property
    def brute_force_available(self) -> bool:
        return len(self.cities) <= config.OPTIMAL_CITY_LIMIT

    def add_to_user_route(self, city_id: int) -> bool:
        """Append a clicked city; ignored when busy, unknown or already used."""
        if self.is_busy or not 0 <= city_id < len(self.cities):
            return False
        if city_id in self.user_route or len(self.user_route) == len(self.cities):
            return False

        self.user_route.append(city_id)
        if len(self.user_route) == len(self.cities):
            d = route_length(self.user_route, self.cities)
            self.results['user'] = AlgorithmRun(
                config.ALGORITHM_INFO['user']['name'],
                list(self.user_route), d, None,
                config.ALGORITHM_INFO['user']['complexity'],
            )
        return True

    @property
    def user_route_complete(self) -> bool:
        return bool(self.cities) and len(self.user_route) == len(self.cities)

    # ---------------------------------------
    # Algorithm runs
    # ---------------------------------------

    def _record(self, key: str, route, distance: float, started: float) -> AlgorithmRun:
        info = config.ALGORITHM_INFO[key]
        run = AlgorithmRun(
            info['name'], list(route), distance,
            (time.perf_counter() - started) * 1000,
            info['complexity'], key == 'optimal',
        )
        self.results[key] = run
        return run

    def _load_trace(self, steps, name: str):
        self.controller.initialize(steps, name, len(self.cities), self.user_route)

    def run_greedy(self) -> AlgorithmRun:
        self._ensure_idle()
        started = time.perf_counter()
        steps = generate_steps_greedy(self.cities)
        result = compute_greedy(self.cities)
        run = self._record('greedy', result.route, result.distance, started)
        self._load_trace(steps, run.name)
        logger.info("Greedy route: %.2f", run.distance)
        return run

    def run_two_opt(self, initial_route: Optional[Sequence[int]] = None) -> AlgorithmRun:
        self._ensure_idle()
        started = time.perf_counter()
        steps = generate_steps_two_opt(self.cities, initial_route)
        result = compute_two_opt(self.cities, initial_route)
        run = self._record('two_opt', result.route, result.distance, started)
        self._load_trace(steps, run.name)
        logger.info("2-opt route: %.2f after %d swaps", run.distance, result.iterations)
        return run

    def run_brute_force(self, sampling_rate: int = 1) -> AlgorithmRun:
        self._ensure_idle()
        check_brute_force_size(len(self.cities))
        started = time.perf_counter()
        steps = generate_steps_brute_force(self.cities, sampling_rate)
        result = compute_brute_force(self.cities)
        run = self._record('optimal', result.route, result.distance, started)
        self._load_trace(steps, run.name)
        logger.info("Optimal route: %.2f", run.distance)
        return run

    async def run_brute_force_live(
        self,
        delay_ms: float = config.LIVE_SPEEDS[config.DEFAULT_LIVE_SPEED],
        on_progress: Optional[Callable[[SearchProgress], object]] = None,
        sampling_rate: int = 1
    ) -> LiveSearchResult:
        """
        Run the exhaustive search live, then load its trace at the final step.

        A previous live run is cancelled and awaited first. A cancelled run
        records nothing and leaves the playback controller untouched.
        """
        check_brute_force_size(len(self.cities))
        await self.cancel_live()

        self.token = CancellationToken()
        self.is_busy = True
        self.controller.pause()
        started = time.perf_counter()
        task = asyncio.ensure_future(
            run_live_search(self.cities, delay_ms, self.token, on_progress)
        )
        self._live_task = task
        try:
            result = await task
        finally:
            # a newer run may already own the session
            if self._live_task is task:
                self.is_busy = False
                self._live_task = None

        if result.cancelled:
            return result

        self._record('optimal', result.route, result.distance, started)
        self._load_trace(
            generate_steps_brute_force(self.cities, sampling_rate),
            config.ALGORITHM_INFO['optimal']['name'],
        )
        self.controller.jump_to_end()
        return result

    async def cancel_live(self):
        """Request a stop of the live run and wait until it has unwound."""
        if self.token is not None:
            self.token.cancel()
        task = self._live_task
        if task is not None and not task.done():
            await asyncio.wait([task])

    def _ensure_idle(self):
        if self.is_busy:
            raise RuntimeError("Another run is active; cancel it first")
        self.controller.pause()

    # ---------------------------------------
    # Comparison
    # ---------------------------------------

    def compare(self) -> Dict[str, object]:
        """Metrics for the current results, with optimality checks."""
        optimal = self.results.get('optimal')
        greedy = self.results.get('greedy')
        user = self.results.get('user')

        violations = {}
        if optimal is not None:
            for key in ('user', 'greedy', 'two_opt'):
                run = self.results.get(key)
                if run is not None:
                    violations[key] = metrics.check_optimality(
                        run.distance, optimal.distance, run.name
                    )

        report: Dict[str, object] = {'invariant_violations': violations}
        if user is not None and greedy is not None:
            m = metrics.calculate_metrics(
                user.distance, greedy.distance,
                optimal.distance if optimal else None,
            )
            report['metrics'] = m
            report['winner'] = metrics.determine_winner(m)
            report['score'] = metrics.calculate_score(
                user.distance, optimal.distance if optimal else None
            )
        return report

    def comparison_table(self):
        return metrics.comparison_table(self.results)
