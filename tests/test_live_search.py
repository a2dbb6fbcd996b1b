import asyncio

import pytest

from conftest import make_cities
from live_search import CancellationToken, run_live_search
from route_algorithms import compute_brute_force
from tsp_core import SizeLimitExceeded, route_length


def test_live_search_finds_optimum(random_cities):
    result = asyncio.run(run_live_search(random_cities, delay_ms=0))
    expected = compute_brute_force(random_cities)

    assert not result.cancelled
    assert result.checked == result.total == 5040
    assert result.route == expected.route
    assert result.distance == expected.distance


def test_live_search_reports_progress_in_order(square_cities):
    seen = []
    result = asyncio.run(run_live_search(square_cities, 0, on_progress=seen.append))

    assert [p.checked for p in seen] == list(range(1, 25))
    assert all(p.total == 24 for p in seen)
    best = [p.best_distance for p in seen]
    assert best == sorted(best, reverse=True)
    assert seen[-1].best_distance == pytest.approx(40.0)
    assert seen[-1].percent == pytest.approx(100.0)
    assert result.distance == pytest.approx(40.0)


def test_live_search_accepts_async_callback(square_cities):
    seen = []

    async def on_progress(progress):
        seen.append(progress.checked)

    asyncio.run(run_live_search(square_cities, 0, on_progress=on_progress))
    assert len(seen) == 24


def test_cancellation_returns_best_so_far(random_cities):
    token = CancellationToken()
    seen = []

    def on_progress(progress):
        seen.append(progress)
        if progress.checked == 100:
            token.cancel()

    result = asyncio.run(run_live_search(random_cities, 0, token, on_progress))

    assert result.cancelled
    assert result.checked == 100
    assert result.checked < result.total
    assert result.distance == pytest.approx(min(p.current_distance for p in seen), abs=1e-9)
    assert route_length(result.route, random_cities) == result.distance


def test_cancellation_from_another_task(random_cities):
    async def scenario():
        token = CancellationToken()
        task = asyncio.ensure_future(run_live_search(random_cities, 0, token))
        for _ in range(10):
            await asyncio.sleep(0)
        token.cancel()
        return await task

    result = asyncio.run(scenario())
    assert result.cancelled
    assert 0 < result.checked < result.total


def test_cancelled_before_start(square_cities):
    token = CancellationToken()
    token.cancel()
    result = asyncio.run(run_live_search(square_cities, 0, token))
    assert result.cancelled
    assert result.checked == 0
    assert result.route == []
    assert result.distance == 0.0


def test_token_reset():
    token = CancellationToken()
    token.cancel()
    assert token.cancelled
    token.reset()
    assert not token.cancelled


def test_live_search_rejects_bad_input(square_cities):
    with pytest.raises(SizeLimitExceeded):
        asyncio.run(run_live_search(make_cities([(i, 2 * i) for i in range(10)]), 0))
    with pytest.raises(ValueError):
        asyncio.run(run_live_search(square_cities, -1))


def test_live_search_trivial_input():
    seen = []
    result = asyncio.run(run_live_search(make_cities([(1, 1)]), 0, on_progress=seen.append))
    assert result.route == []
    assert result.distance == 0.0
    assert result.checked == 0
    assert seen == []


def test_live_search_waits_between_permutations():
    cities = make_cities([(0, 0), (0, 1), (1, 1)])

    async def scenario():
        loop = asyncio.get_running_loop()
        started = loop.time()
        await run_live_search(cities, delay_ms=5)
        return loop.time() - started

    # six permutations, 5 ms each
    assert asyncio.run(scenario()) >= 0.025
