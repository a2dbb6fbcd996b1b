import math

import pytest

from data_generator import generate_circle_cities, generate_cities


def test_generate_cities_respects_spacing_and_bounds():
    cities = generate_cities(10, width=800, height=600, padding=40, min_distance=60, seed=1)
    assert [c.id for c in cities] == list(range(len(cities)))
    for a in cities:
        assert 40 <= a.x <= 760
        assert 40 <= a.y <= 560
        assert a.x == int(a.x) and a.y == int(a.y)
        for b in cities:
            if a.id != b.id:
                assert math.hypot(a.x - b.x, a.y - b.y) >= 60


def test_generate_cities_is_reproducible():
    first = generate_cities(8, seed=99)
    second = generate_cities(8, seed=99)
    assert first == second


def test_generate_cities_gives_up_when_crowded():
    cities = generate_cities(20, width=200, height=200, padding=10, min_distance=150, seed=3)
    assert 1 <= len(cities) < 20


def test_generate_cities_rejects_bad_arguments():
    with pytest.raises(ValueError):
        generate_cities(-1)
    with pytest.raises(ValueError):
        generate_cities(5, width=50, height=50, padding=40)


def test_circle_cities():
    cities = generate_circle_cities(4, radius=10, center_x=0, center_y=0)
    assert cities[0].x == pytest.approx(10)
    assert cities[1].y == pytest.approx(10)
    assert [c.id for c in cities] == [0, 1, 2, 3]
