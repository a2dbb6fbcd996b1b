"""
Metrics for comparing the user's route with the algorithms.
"""

import logging
import warnings
from typing import Dict, Mapping, Optional

import pandas as pd

import config
from tsp_core import EPSILON, InvariantViolation, factorial


logger = logging.getLogger(__name__)


def _percent_gap(value: float, reference: Optional[float]) -> Optional[float]:
    if not reference or reference <= 0:
        return None
    return round((value - reference) / reference * 100, 2)


def calculate_metrics(
    user_distance: float,
    greedy_distance: float,
    optimal_distance: Optional[float] = None
) -> Dict[str, Optional[float]]:
    """Rounded distances and percent gaps between user, greedy and optimal."""
    return {
        'user_distance': round(user_distance, 2),
        'greedy_distance': round(greedy_distance, 2),
        'optimal_distance': round(optimal_distance, 2) if optimal_distance else None,
        'user_vs_greedy': _percent_gap(user_distance, greedy_distance),
        'user_vs_optimal': _percent_gap(user_distance, optimal_distance),
        'greedy_vs_optimal': _percent_gap(greedy_distance, optimal_distance),
    }


def determine_winner(metrics: Mapping[str, Optional[float]]) -> Dict[str, str]:
    user = metrics['user_distance']
    greedy = metrics['greedy_distance']
    optimal = metrics.get('optimal_distance')

    if optimal and abs(user - optimal) < EPSILON:
        return {'winner': 'user', 'message': "Perfect! You found optimal!"}
    if user < greedy:
        return {'winner': 'user', 'message': "You beat Greedy!"}
    return {'winner': 'greedy', 'message': "Greedy wins this round."}


def time_complexity(algorithm: str, n: int) -> Optional[Dict[str, str]]:
    """Big-O notation, a one-line explanation and an operation estimate."""
    complexities = {
        'greedy': (
            "O(n²)",
            "Greedy algorithm checks all unvisited cities at each step.",
            n * n,
        ),
        'two_opt': (
            "O(n²) per pass",
            "2-opt tries every segment reversal in each pass.",
            n * n,
        ),
        'optimal': (
            "O(n!)",
            "Brute Force evaluates all possible permutations.",
            factorial(n),
        ),
    }
    if algorithm not in complexities:
        return None
    notation, explanation, operations = complexities[algorithm]
    return {
        'notation': notation,
        'explanation': explanation,
        'expanded': f"Approximate operations: {operations:,}",
    }


def calculate_score(user_distance: float, optimal_distance: Optional[float]) -> int:
    """Score the user's route by its percent gap to the optimum."""
    if not optimal_distance:
        return 0

    gap = (user_distance - optimal_distance) / optimal_distance * 100
    if abs(gap) < EPSILON:
        return 100
    for limit, score in ((5, 80), (10, 60), (20, 40), (50, 20)):
        if gap <= limit:
            return score
    return 0


def format_time(ms: float) -> str:
    if ms < 1000:
        return f"{ms:.2f}ms"
    return f"{ms / 1000:.2f}s"


def check_optimality(heuristic_distance: float, optimal_distance: float, label: str = "heuristic") -> bool:
    """
    Flag a heuristic result that beats the known optimum.

    That can only come from a defect in distance computation or comparison,
    so it is reported loudly (warning and error log) but the result is kept.

    Returns:
        True when the invariant is violated.
    """
    if heuristic_distance < optimal_distance - EPSILON:
        message = (
            f"{label} distance {heuristic_distance:.6f} is shorter than the "
            f"optimal distance {optimal_distance:.6f}"
        )
        logger.error("Invariant violation: %s", message)
        warnings.warn(message, InvariantViolation, stacklevel=2)
        return True
    return False


def comparison_table(results: Mapping[str, object]) -> pd.DataFrame:
    """
    Build the comparison table shown next to the map.

    Args:
        results: Mapping of method key ('user', 'greedy', 'two_opt',
            'optimal') to objects with ``distance`` and ``time_ms``
            attributes. Missing methods are skipped.

    Returns:
        DataFrame sorted by distance with the gap to the best row.
    """
    rows = []
    for key, run in results.items():
        if run is None:
            continue
        info = config.ALGORITHM_INFO.get(key, {'name': key, 'complexity': '-'})
        rows.append({
            'method': info['name'],
            'distance': round(run.distance, 2),
            'time_ms': run.time_ms,
            'complexity': info['complexity'],
            'optimal': key == 'optimal',
        })

    columns = ['method', 'distance', 'time_ms', 'complexity', 'optimal', 'gap_percent']
    if not rows:
        return pd.DataFrame(columns=columns)

    df = pd.DataFrame(rows)
    best = df['distance'].min()
    if best > 0:
        df['gap_percent'] = ((df['distance'] - best) / best * 100).round(2)
    else:
        df['gap_percent'] = 0.0
    return df.sort_values(by='distance', kind='stable').reset_index(drop=True)[columns]
