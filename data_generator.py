"""
City generation for new rounds.
"""

import numpy as np
from typing import List, Optional

import config
from tsp_core import City


def generate_cities(
    count: int,
    width: float = config.CANVAS_WIDTH,
    height: float = config.CANVAS_HEIGHT,
    padding: float = config.PADDING,
    min_distance: float = config.MIN_CITY_DISTANCE,
    seed: Optional[int] = None
) -> List[City]:
    """
    Place cities at random, keeping them at least ``min_distance`` apart.

    Candidates are drawn inside the padded area and rejected when they land
    too close to an accepted city. After ``count * 50`` attempts the cities
    placed so far are returned, so a crowded area can yield fewer cities.

    Args:
        count: Number of cities wanted
        width: Width of the area
        height: Height of the area
        padding: Margin kept free along every border
        min_distance: Minimum spacing between two cities
        seed: Seed for reproducible layouts

    Returns:
        Cities with ids 0..k-1 in placement order and integer coordinates
    """
    if count < 0:
        raise ValueError(f"count must be >= 0, got {count}")

    min_x, max_x = padding, width - padding
    min_y, max_y = padding, height - padding
    if max_x <= min_x or max_y <= min_y:
        raise ValueError("Area too small for the requested padding")

    rng = np.random.default_rng(seed)
    cities: List[City] = []
    attempts = 0

    while len(cities) < count and attempts < count * config.PLACEMENT_ATTEMPTS_PER_CITY:
        attempts += 1
        x = round(rng.uniform(min_x, max_x))
        y = round(rng.uniform(min_y, max_y))

        if any(np.hypot(c.x - x, c.y - y) < min_distance for c in cities):
            continue
        cities.append(City(len(cities), x, y))

    return cities


def generate_circle_cities(n: int, radius: float = 200, center_x: float = 400, center_y: float = 300) -> List[City]:
    """
    Generate cities arranged in a circle (for testing).

    The optimal route for this layout visits them in order, so its length
    is the perimeter of the regular polygon.
    """
    cities = []
    for i in range(n):
        angle = 2 * np.pi * i / n
        x = center_x + radius * np.cos(angle)
        y = center_y + radius * np.sin(angle)
        cities.append(City(i, x, y))
    return cities
