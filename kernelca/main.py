#!/usr/bin/env python3
"""CLI for the kernel cellular automaton engine and kernel search."""

import argparse
import sys

import numpy as np

from .automaton import label_grid, random_grid, run
from .config import SearchConfig
from .kernels import PRESETS, exact_composition_kernel, get_preset
from .metrics import activity_lifespan, population_variation, summarize_trial
from .rules import RuleKind
from .search import run_search
from .storage import KernelDatabase

GLYPHS = {"Alive": "#", "Dead": "."}


def format_kernel(kernel: np.ndarray, indent: str = "  ") -> str:
    width = max(len(str(v)) for v in kernel.flat)
    return "\n".join(indent + " ".join(f"{v:>{width}}" for v in row) for row in kernel)


def format_grid(grid: np.ndarray) -> str:
    labels = label_grid(grid)
    return "\n".join("".join(GLYPHS[label] for label in row) for row in labels)


def cmd_search(args):
    """Run a batch of random kernels and keep those ending inside the band."""
    config = SearchConfig.from_args(args)
    db = KernelDatabase(args.database)

    print("Starting kernel search...")
    print(f"  Trials: {config.trials}")
    print(f"  Steps: {config.steps}")
    print(f"  Grid size: {config.grid_side} (density {config.density})")
    print(f"  Kernel: {config.kernel_side}x{config.kernel_side} with {config.num_ones} ones")
    print(f"  Target band: {config.lower_bound} < population < {config.upper_bound}")
    print(f"  Rule: {config.rule}")
    print()

    result = run_search(config, verbose=args.verbose)

    print(f"\nOutcomes over {result.num_trials} trials:")
    for outcome, count in result.outcome_counts().items():
        print(f"  {outcome.value:<10s} {count}")

    if not result.indices:
        print("\nNo kernels ended inside the target band.")
        return

    print(f"\nKernels of interest ({len(result.indices)}):")
    for trial in result.selected:
        summary = summarize_trial(trial, config.lower_bound, config.upper_bound)
        db.add(trial.kernel, summary, config)
        print(f"\n  Trial {trial.index}: final population {trial.final_population}, "
              f"variation {summary.population_variation:.4f}")
        print(format_kernel(trial.kernel, indent="    "))

    print(f"\nSaved {len(result.indices)} kernels to {args.database}")


def cmd_run(args):
    """Run one kernel on a random grid and report its population trajectory."""
    rng = np.random.default_rng(args.seed)

    if args.random:
        kernel = exact_composition_kernel(args.kernel_side, args.num_ones, rng=rng)
        name = f"random {args.kernel_side}x{args.kernel_side} ({args.num_ones} ones)"
    else:
        kernel = get_preset(args.kernel)
        name = args.kernel

    grid = random_grid(args.grid_size, args.density, rng=rng)
    trajectory = run(grid, kernel, args.steps, rule=args.rule)
    pops = trajectory.populations

    print(f"Kernel: {name}")
    print(format_kernel(kernel))
    print(f"  Grid size: {args.grid_size}")
    print(f"  Steps: {args.steps}")
    print(f"  Rule: {args.rule}")
    print()
    print("Population:")
    print(f"  Initial:     {int(grid.sum())}")
    if len(pops):
        print(f"  Final:       {trajectory.final_population}")
        print(f"  Min / Max:   {int(pops.min())} / {int(pops.max())}")
        print(f"  Variation:   {population_variation(pops):.4f}")
        print(f"  Activity:    {activity_lifespan(pops):.4f}")

    if args.show:
        print()
        print(format_grid(trajectory.final))


def cmd_kernels(args):
    """List the preset kernels."""
    for name in sorted(PRESETS):
        kernel = PRESETS[name]
        print(f"{name} ({kernel.shape[0]}x{kernel.shape[0]}):")
        print(format_kernel(kernel))
        print()


def cmd_leaderboard(args):
    """Show the leaderboard of discovered kernels."""
    db = KernelDatabase(args.database)

    if len(db) == 0:
        print("No kernels discovered yet. Run a search first!")
        return

    leaderboard = db.get_leaderboard(args.top)

    print(f"Top {len(leaderboard)} discovered kernels:\n")
    print(f"{'Rank':<6}{'Score':<10}{'Final':<10}{'Variation':<12}{'Kernel'}")
    print("-" * 70)

    for i, k in enumerate(leaderboard, 1):
        m = k.metrics
        print(f"{i:<6}{k.score:<10.4f}"
              f"{m.get('final_population', 0):<10}"
              f"{m.get('population_variation', 0):<12.4f}"
              f"{k.kernel_string}")


def cmd_export(args):
    """Export discovered kernels to CSV."""
    db = KernelDatabase(args.database)

    if len(db) == 0:
        print("No kernels to export.")
        return

    db.export_csv(args.output)
    print(f"Exported {len(db)} kernels to {args.output}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Kernel cellular automata - run convolution-kernel automata and search for stable kernels"
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")
    rules = [kind.value for kind in RuleKind]

    # Search command
    search_parser = subparsers.add_parser("search", help="Search random kernels for bounded populations")
    search_parser.add_argument("-n", "--trials", type=int, default=100, help="Number of trials")
    search_parser.add_argument("--steps", type=int, default=1000, help="Simulation steps per trial")
    search_parser.add_argument("--grid-side", type=int, default=100, help="Grid size")
    search_parser.add_argument("--density", type=float, default=0.5, help="Initial alive probability")
    search_parser.add_argument("--kernel-side", type=int, default=5, help="Kernel size (odd)")
    search_parser.add_argument("--num-ones", type=int, default=6, help="Ones per random kernel")
    search_parser.add_argument("--lower-bound", type=float, default=300, help="Exclusive lower population bound")
    search_parser.add_argument("--upper-bound", type=float, default=1000, help="Exclusive upper population bound")
    search_parser.add_argument("--rule", choices=rules, default="fixed", help="Rule family")
    search_parser.add_argument("--seed", type=int, default=None, help="Random seed")
    search_parser.add_argument("-w", "--workers", type=int, default=1, help="Worker processes")
    search_parser.add_argument("--database", type=str, default="discovered_kernels.json", help="Database file")
    search_parser.add_argument("-v", "--verbose", action="store_true", help="Print per-trial progress")
    search_parser.set_defaults(func=cmd_search)

    # Run command
    run_parser = subparsers.add_parser("run", help="Run a single kernel")
    run_parser.add_argument("kernel", nargs="?", default="gol", help="Preset kernel name")
    run_parser.add_argument("--random", action="store_true", help="Use a random exact-composition kernel")
    run_parser.add_argument("--kernel-side", type=int, default=5, help="Random kernel size")
    run_parser.add_argument("--num-ones", type=int, default=6, help="Ones in the random kernel")
    run_parser.add_argument("--grid-size", type=int, default=100, help="Grid size")
    run_parser.add_argument("--density", type=float, default=0.5, help="Initial alive probability")
    run_parser.add_argument("--steps", type=int, default=100, help="Simulation steps")
    run_parser.add_argument("--rule", choices=rules, default="fixed", help="Rule family")
    run_parser.add_argument("--seed", type=int, default=None, help="Random seed")
    run_parser.add_argument("--show", action="store_true", help="Print the final grid")
    run_parser.set_defaults(func=cmd_run)

    # Kernels command
    kernels_parser = subparsers.add_parser("kernels", help="List preset kernels")
    kernels_parser.set_defaults(func=cmd_kernels)

    # Leaderboard command
    lb_parser = subparsers.add_parser("leaderboard", help="Show top discovered kernels")
    lb_parser.add_argument("-n", "--top", type=int, default=20, help="Number of kernels to show")
    lb_parser.add_argument("--database", type=str, default="discovered_kernels.json", help="Database file")
    lb_parser.set_defaults(func=cmd_leaderboard)

    # Export command
    export_parser = subparsers.add_parser("export", help="Export kernels to CSV")
    export_parser.add_argument("-o", "--output", type=str, default="kernels.csv", help="Output CSV file")
    export_parser.add_argument("--database", type=str, default="discovered_kernels.json", help="Database file")
    export_parser.set_defaults(func=cmd_export)

    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    try:
        args.func(args)
    except (KeyError, ValueError) as e:
        message = e.args[0] if isinstance(e, KeyError) and e.args else e
        print(f"Error: {message}")
        sys.exit(1)


if __name__ == "__main__":
    main()
