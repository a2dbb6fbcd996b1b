"""
TSP Arena - Main Application
Command line demonstration of the greedy, 2-opt and brute force solvers.
"""

import argparse
import asyncio
import logging
import sys

from tqdm import tqdm

import config
from data_generator import generate_circle_cities
from session import TSPSession
from tsp_core import SizeLimitExceeded


def print_trace(session: TSPSession, limit: int):
    """Step through the loaded trace and print each explanation."""
    controller = session.controller
    shown = 0
    while controller.next():
        step = controller.get_current_step()
        if shown < limit or step.is_terminal:
            print(f"  [{controller.current_index + 1:>5}/{len(controller.steps)}] "
                  f"{step.type.value:<18} {step.explanation}")
        elif shown == limit:
            print("  ...")
        shown += 1


async def run_live(session: TSPSession, delay_ms: float):
    with tqdm(total=None, desc="Brute force (live)", unit="perm") as bar:
        def on_progress(progress):
            if bar.total is None:
                bar.total = progress.total
            bar.update(1)
            bar.set_postfix(current=f"{progress.current_distance:.2f}",
                            best=f"{progress.best_distance:.2f}")

        return await session.run_brute_force_live(delay_ms, on_progress)


def run_algorithms(session: TSPSession, args):
    algorithms = ['greedy', 'two-opt', 'brute-force'] if args.algorithm == 'all' else [args.algorithm]

    for algorithm in algorithms:
        print(f"\n{'='*70}")
        print(f"{algorithm.upper()}")
        print(f"{'='*70}")

        if algorithm == 'greedy':
            run = session.run_greedy()
        elif algorithm == 'two-opt':
            greedy = session.results.get('greedy')
            run = session.run_two_opt(greedy.route if greedy else None)
        else:
            if not session.brute_force_available:
                print(f"Skipping: brute force is limited to {config.OPTIMAL_CITY_LIMIT} cities")
                continue
            if args.live:
                result = asyncio.run(run_live(session, args.delay))
                print(f"Checked {result.checked:,} / {result.total:,} permutations")
                run = session.results['optimal']
            else:
                run = session.run_brute_force(args.sampling_rate)

        print(f"Route:    {' → '.join(str(c) for c in run.route)}")
        print(f"Distance: {run.distance:.2f}")
        print(f"Time:     {run.time_ms:.2f}ms")

        if args.trace:
            session.controller.reset()
            print_trace(session, args.trace)


def main():
    """Main entry point for the TSP Arena demo."""
    parser = argparse.ArgumentParser(
        description="TSP Arena - Compare heuristic and exact TSP solutions",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Compare all algorithms on 7 random cities
  python main.py --cities 7 --seed 42

  # Watch the brute force search live
  python main.py --algorithm brute-force --live --delay 10

  # Print the first 30 greedy trace steps
  python main.py --algorithm greedy --trace 30
        """
    )

    parser.add_argument('--cities', type=int, default=config.DEFAULT_CITY_COUNT,
                        help=f'Number of cities ({config.MIN_CITIES}-{config.MAX_CITIES}, '
                             f'default: {config.DEFAULT_CITY_COUNT})')
    parser.add_argument('--seed', type=int, default=None,
                        help='Random seed for the city layout')
    parser.add_argument('--pattern', type=str, choices=['random', 'circle'], default='random',
                        help='City placement pattern (default: random)')
    parser.add_argument('--algorithm', type=str, choices=['greedy', 'two-opt', 'brute-force', 'all'],
                        default='all', help='Algorithm to run (default: all)')
    parser.add_argument('--live', action='store_true',
                        help='Run brute force live with a progress bar')
    parser.add_argument('--delay', type=float,
                        default=config.LIVE_SPEEDS[config.DEFAULT_LIVE_SPEED],
                        help='Delay between live permutations in ms')
    parser.add_argument('--sampling-rate', type=int, default=1,
                        help='Record every Nth brute force permutation in the trace')
    parser.add_argument('--trace', type=int, default=0, metavar='N',
                        help='Print the first N trace steps of each run')
    parser.add_argument('--plot', type=str, default=None, metavar='PATH',
                        help='Save a side-by-side plot of the routes')
    parser.add_argument('--verbose', action='store_true',
                        help='Enable debug logging')

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    session = TSPSession()
    if args.pattern == 'circle':
        session.set_cities(generate_circle_cities(args.cities))
    else:
        try:
            session.generate(args.cities, seed=args.seed)
        except ValueError as e:
            print(f"Error: {e}")
            sys.exit(1)

    print(f"\nGenerated {len(session.cities)} cities ({args.pattern})")

    try:
        run_algorithms(session, args)
    except SizeLimitExceeded as e:
        print(f"Error: {e}")
        sys.exit(1)

    print(f"\n{'='*70}")
    print("RESULTS SUMMARY")
    print(f"{'='*70}")
    print(session.comparison_table().to_string(index=False))

    report = session.compare()
    if any(report['invariant_violations'].values()):
        print("\nWARNING: a heuristic beat the optimal route; distances are inconsistent")

    if args.plot:
        from visualization import TSPVisualizer
        TSPVisualizer().plot_comparison(session.cities, session.results, save_path=args.plot)
        print(f"\nPlot saved to {args.plot}")


if __name__ == "__main__":
    main()
