"""
TSP Arena - Visualization Module
Draw routes, single trace steps and convergence plots with matplotlib.
"""

import logging
import matplotlib.pyplot as plt
from typing import Dict, List, Optional, Sequence

import config
from step_trace import Step, StepType
from tsp_core import City, close_route


logger = logging.getLogger(__name__)


class TSPVisualizer:
    """Render target for routes and step traces."""

    def __init__(self, figsize=(12, 8), colors: Optional[Dict[str, str]] = None):
        self.figsize = figsize
        self.colors = dict(config.COLORS)
        if colors:
            self.colors.update(colors)

    # ---------------------------------------
    # Primitives
    # ---------------------------------------

    def draw_cities(self, ax, cities: Sequence[City], highlight: Sequence[int] = ()):
        """Scatter the cities and label them with their ids."""
        if not cities:
            return
        highlight = set(highlight)
        colors = [
            self.colors['city_selected'] if c.id in highlight else self.colors['city']
            for c in cities
        ]
        ax.scatter([c.x for c in cities], [c.y for c in cities],
                   c=colors, s=150, zorder=3, edgecolors='black', linewidth=1)
        for city in cities:
            ax.annotate(str(city.id), (city.x, city.y),
                        textcoords='offset points', xytext=(0, 10),
                        ha='center', fontsize=9, weight='bold')

    def draw_route(
        self,
        ax,
        cities: Sequence[City],
        route: Sequence[int],
        color: str,
        linewidth: float = 2,
        alpha: float = 0.8,
        linestyle: str = '-',
        label: Optional[str] = None
    ):
        """Draw a route as a closed polyline."""
        if len(route) < 2:
            return None
        route = close_route(route)
        xs = [cities[i].x for i in route]
        ys = [cities[i].y for i in route]
        lines = ax.plot(xs, ys, linestyle=linestyle, color=color,
                        linewidth=linewidth, alpha=alpha, zorder=1, label=label)
        return lines[0]

    def draw_edge(self, ax, cities: Sequence[City], a: int, b: int, color: str,
                  linewidth: float = 2, linestyle: str = '-'):
        lines = ax.plot([cities[a].x, cities[b].x], [cities[a].y, cities[b].y],
                        linestyle=linestyle, color=color, linewidth=linewidth, zorder=2)
        return lines[0]

    def _setup_axes(self, ax, title: str):
        ax.set_title(title, fontsize=12, weight='bold')
        ax.grid(True, alpha=0.3)
        ax.set_aspect('equal')
        # screen coordinates: y grows downwards
        if not ax.yaxis_inverted():
            ax.invert_yaxis()

    # ---------------------------------------
    # Routes
    # ---------------------------------------

    def plot_route(
        self,
        cities: Sequence[City],
        route: Sequence[int],
        title: str = "TSP Route",
        color: Optional[str] = None,
        ax=None
    ):
        """
        Plot a single route.

        Args:
            cities: Canonical city list
            route: Open or closed route
            title: Plot title
            color: Line colour (defaults to the optimal route colour)
            ax: Axes to draw on; a new figure is created when omitted

        Returns:
            The axes drawn on
        """
        if ax is None:
            _, ax = plt.subplots(figsize=self.figsize)

        self.draw_route(ax, cities, route, color or self.colors['optimal'])
        self.draw_cities(ax, cities, highlight=route)
        self._setup_axes(ax, title)
        return ax

    def plot_comparison(self, cities: Sequence[City], results: Dict[str, object],
                        save_path: Optional[str] = None, show: bool = False):
        """
        Plot every available result side by side.

        Args:
            cities: Canonical city list
            results: Method key -> object with ``route``, ``distance`` and
                ``name`` attributes; None entries are skipped
            save_path: Optional path to save the figure
            show: Open a window after drawing
        """
        runs = [(key, run) for key, run in results.items() if run is not None]
        n_plots = max(1, len(runs))
        fig, axes = plt.subplots(1, n_plots, figsize=(6 * n_plots, 6), squeeze=False)
        axes = axes[0]

        if not runs:
            axes[0].text(0.5, 0.5, 'No results', ha='center', va='center')

        for ax, (key, run) in zip(axes, runs):
            self.plot_route(
                cities, run.route,
                title=f"{run.name}\nDistance: {run.distance:.2f}",
                color=self.colors.get(key, self.colors['optimal']),
                ax=ax,
            )

        fig.tight_layout()

        if save_path:
            fig.savefig(save_path, dpi=150, bbox_inches='tight')
            logger.info("Comparison saved to %s", save_path)
        if show:
            plt.show()
        return fig

    def plot_convergence(self, history: List[float], title: str = "2-opt Convergence",
                         save_path: Optional[str] = None, ax=None):
        """Plot the route length after each accepted 2-opt swap."""
        if ax is None:
            _, ax = plt.subplots(figsize=(10, 6))

        swaps = range(len(history))
        ax.plot(swaps, history, 'b-o', linewidth=2, label='Route length')

        if history:
            initial = history[0]
            final = history[-1]
            improvement = (initial - final) / initial * 100 if initial else 0.0
            ax.axhline(y=final, color='g', linestyle='--', linewidth=1.5, label=f'Final: {final:.2f}')
            ax.axhline(y=initial, color='r', linestyle='--', linewidth=1.5, label=f'Initial: {initial:.2f}')
            title = f"{title}\nImprovement: {improvement:.2f}%"

        ax.set_xlabel('Accepted swap', fontsize=12)
        ax.set_ylabel('Distance', fontsize=12)
        ax.set_title(title, fontsize=14, weight='bold')
        ax.grid(True, alpha=0.3)
        ax.legend(loc='upper right', fontsize=10)

        if save_path:
            ax.figure.savefig(save_path, dpi=150, bbox_inches='tight')
            logger.info("Convergence plot saved to %s", save_path)
        return ax

    # ---------------------------------------
    # Trace steps
    # ---------------------------------------

    def draw_step(self, ax, cities: Sequence[City], step: Optional[Step],
                  history: Sequence[Step] = (), user_route: Sequence[int] = ()):
        """
        Draw the state of a trace at ``step``.

        ``history`` is the trace prefix up to and including ``step``
        (``PlaybackController.get_steps_up_to_current()``); greedy edges
        committed earlier are taken from it.
        """
        ax.clear()
        title = step.explanation if step else "Ready"

        if user_route:
            self.draw_route(ax, cities, user_route, self.colors['user'], linewidth=1.5, alpha=0.4)

        # greedy commits so far
        for past in history:
            if past.type in (StepType.EDGE_ADDED, StepType.ROUTE_CLOSED):
                self.draw_edge(ax, cities, past.from_city, past.to_city, self.colors['committed'])

        highlight: Sequence[int] = ()
        if step is not None:
            if step.type == StepType.CANDIDATE_EDGE:
                self.draw_edge(ax, cities, step.from_city, step.to_city,
                               self.colors['candidate'], linewidth=1, linestyle='--')
            elif step.type == StepType.DECISION:
                self.draw_edge(ax, cities, step.from_city, step.to_city,
                               self.colors['decision'], linewidth=3)
            elif step.type in (StepType.COMPARE, StepType.PERMUTATION_CHECK):
                self.draw_route(ax, cities, step.path, self.colors['current'], alpha=0.5)
            elif step.type in (StepType.SWAP, StepType.BEST_FOUND):
                self.draw_route(ax, cities, step.path, self.colors['best'], linewidth=3)
            elif step.is_terminal and step.path:
                self.draw_route(ax, cities, step.path, self.colors['best'], linewidth=3)
                highlight = step.path

        self.draw_cities(ax, cities, highlight=highlight)
        self._setup_axes(ax, title)
        return ax
