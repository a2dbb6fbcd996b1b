"""
TSP Arena - Configuration
Module-level settings shared by the session, the renderer and the CLI.
"""

from tsp_core import MAX_BRUTE_FORCE_CITIES


# ================================
# CITY GENERATION
# ================================
OPTIMAL_CITY_LIMIT = MAX_BRUTE_FORCE_CITIES
MIN_CITIES = 3
MAX_CITIES = 30
DEFAULT_CITY_COUNT = 6
MIN_CITY_DISTANCE = 60
PADDING = 40
CANVAS_WIDTH = 800
CANVAS_HEIGHT = 600
PLACEMENT_ATTEMPTS_PER_CITY = 50

# ================================
# PLAYBACK
# ================================
DEFAULT_PLAYBACK_MS = 500
MIN_PLAYBACK_MS = 100

# Delay between permutations of the live brute force search (ms)
LIVE_SPEEDS = {
    'slow': 150,
    'medium': 50,
    'fast': 10,
}
DEFAULT_LIVE_SPEED = 'medium'

# ================================
# RENDERING
# ================================
COLORS = {
    'background': '#0a0e27',
    'city': '#00ffff',
    'city_selected': '#00ff88',
    'text': '#ffffff',
    'user': '#00ff88',
    'greedy': '#ffaa00',
    'two_opt': '#ff00ff',
    'optimal': '#00c8ff',
    'candidate': '#7f8c8d',
    'decision': '#f1c40f',
    'committed': '#ffaa00',
    'current': '#00c8ff',
    'best': '#00ff88',
}

# ================================
# ALGORITHMS
# ================================
ALGORITHM_INFO = {
    'user': {
        'name': 'User',
        'complexity': '-',
        'description': 'Route clicked by the player',
    },
    'greedy': {
        'name': 'Greedy',
        'complexity': 'O(n²)',
        'description': 'Always moves to the nearest unvisited city',
    },
    'two_opt': {
        'name': '2-opt',
        'complexity': 'O(n²) per pass',
        'description': 'Reverses route segments while that shortens the route',
    },
    'optimal': {
        'name': 'Optimal',
        'complexity': 'O(n!)',
        'description': 'Checks every permutation of the cities',
    },
}
