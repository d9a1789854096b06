"""Command-line interface for 3D Life simulations."""

import argparse
import sys
import time
import json
from typing import Optional, Tuple

from ..core.config import (
    DEFAULT_ALIVE_PROBABILITY,
    DEFAULT_MAX_HEALTH,
    DEFAULT_SIZE,
    SimulationConfig,
)
from ..core.errors import ConfigurationError
from ..core.grid import Grid
from ..core.instances import Instance
from ..core.metrics import MetricsCollector, MetricsExporter, SimulationMetrics
from ..core.patterns import PatternLibrary
from ..core.rules import DEFAULT_RULES, RuleTable
from ..core.simulation import Simulation


class CLISimulation:
    """Command-line interface for running headless simulations."""

    def __init__(self):
        """Initialize CLI interface."""
        self.pattern_library = PatternLibrary()
        self.last_simulation: Optional[Simulation] = None
        self.last_metrics: Optional[SimulationMetrics] = None

    def run_simulation(
        self,
        size: int,
        max_health: int,
        rules: RuleTable,
        population_rate: float,
        max_generations: int,
        seed: Optional[int] = None,
        pattern: Optional[str] = None,
        verbose: bool = False,
    ) -> Tuple[int, str, dict]:
        """Run a simulation until it dies out, cycles or hits the limit.

        Args:
            size: Grid size along each axis
            max_health: Health of a fully alive cell
            rules: Survival and spawn rules
            population_rate: Alive probability inside the seeding region
            max_generations: Maximum generations to run
            seed: Random seed for reproducible runs
            pattern: Optional pattern name to place at the grid center
            verbose: Print progress updates

        Returns:
            Tuple of (final_generation, finish_reason, statistics)
        """
        config = SimulationConfig(
            size=size,
            max_health=max_health,
            rules=rules,
            alive_probability=population_rate,
            seed=seed,
        )
        if verbose:
            print(f"Initializing {size}x{size}x{size} grid (max health {max_health}, rule {rules})")

        loaded_pattern = self.pattern_library.get_pattern(pattern) if pattern else None
        if loaded_pattern:
            if verbose:
                print(f"Loading pattern '{pattern}' at grid center")
            grid = Grid(size, max_health)
            loaded_pattern.apply_centered(grid)
            simulation = Simulation(config, grid=grid)
        else:
            if pattern:
                print(f"Warning: Pattern '{pattern}' not found, using random population")
            elif verbose:
                print(f"Generating random population (rate: {population_rate:.2%})")
            simulation = Simulation(config)

        initial_population = simulation.population
        if verbose:
            print(f"Initial population: {initial_population} cells")
            print(f"\nRunning simulation (max {max_generations} generations)...")

        collector = MetricsCollector()
        collector.start_run(0, simulation, initial_pattern=pattern)

        def report(sim: Simulation) -> None:
            collector.update(sim)
            if verbose and sim.generation % 10 == 0:
                print(
                    f"Generation {sim.generation}: {sim.population} alive, "
                    f"{sim.grid.dying_count} dying"
                )

        start_time = time.time()
        final_generation, reason = simulation.run_until_stable(max_generations, on_tick=report)
        duration = time.time() - start_time

        self.last_simulation = simulation
        self.last_metrics = collector.end_run(simulation, reason)

        stats = simulation.get_statistics()
        stats["duration_seconds"] = duration
        stats["generations_per_second"] = final_generation / duration if duration > 0 else 0
        stats["initial_population"] = initial_population

        return final_generation, reason, stats

    def list_patterns(self) -> None:
        """List available patterns."""
        print("Available patterns:")
        for pattern_name in self.pattern_library.list_patterns():
            pattern = self.pattern_library.get_pattern(pattern_name)
            size = pattern.get_size()
            print(f"  {pattern_name}: {size[0]}x{size[1]}x{size[2]}, {pattern.population} cells")
            if pattern.description:
                print(f"    {pattern.description}")

    def save_instances(self, filepath: str) -> int:
        """Write the last run's visible instances to a JSON file.

        Returns:
            Number of instances written
        """
        if self.last_simulation is None:
            raise RuntimeError("No simulation has been run")

        instances = self.last_simulation.extract_instances()
        with open(filepath, "w") as f:
            json.dump([_instance_to_dict(instance) for instance in instances], f)
        return len(instances)


def _instance_to_dict(instance: Instance) -> dict:
    return {"position": list(instance.position), "color": list(instance.color)}


def create_parser() -> argparse.ArgumentParser:
    """Create command-line argument parser.

    Returns:
        Configured ArgumentParser
    """
    parser = argparse.ArgumentParser(
        description="Run 3D Life simulations with decaying cells from the command line",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Run the default 50x50x50 simulation
  voxlife-cli

  # Small reproducible run with a custom rule
  voxlife-cli -N 20 --rule B5-7/S6-8 --seed 42 --verbose

  # Start from a single 3x3x3 cube
  voxlife-cli -N 15 --pattern Cube --max-health 4

  # Export metrics and the final instances
  voxlife-cli --metrics-json run.json --instances-json instances.json
        """,
    )

    parser.add_argument(
        "-N", "--size", type=int, default=DEFAULT_SIZE, help=f"Grid size per axis (default: {DEFAULT_SIZE})"
    )

    parser.add_argument(
        "--max-health",
        type=int,
        default=DEFAULT_MAX_HEALTH,
        help=f"Health of a fully alive cell (default: {DEFAULT_MAX_HEALTH})",
    )

    parser.add_argument(
        "-r",
        "--rule",
        type=str,
        default=str(DEFAULT_RULES),
        help=f"Rule in B/S notation (default: {DEFAULT_RULES})",
    )

    parser.add_argument(
        "-p",
        "--population",
        type=float,
        default=DEFAULT_ALIVE_PROBABILITY,
        help=f"Alive probability inside the seeding region 0.0-1.0 (default: {DEFAULT_ALIVE_PROBABILITY})",
    )

    parser.add_argument("--seed", type=int, help="Random seed for reproducible runs")

    parser.add_argument(
        "--pattern",
        type=str,
        help="Place a named pattern at the grid center instead of random seeding",
    )

    parser.add_argument(
        "-m",
        "--max-generations",
        type=int,
        default=1000,
        help="Maximum generations to simulate (default: 1000)",
    )

    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Print detailed progress information",
    )

    parser.add_argument(
        "--list-patterns",
        action="store_true",
        help="List all available patterns and exit",
    )

    parser.add_argument("--metrics-json", type=str, help="Write run metrics to a JSON file")

    parser.add_argument("--metrics-csv", type=str, help="Write run metrics to a CSV file")

    parser.add_argument(
        "--instances-json",
        type=str,
        help="Write the final visible instances (position, color) to a JSON file",
    )

    return parser


def format_finish_reason(reason: str, stats: dict) -> str:
    """Format the simulation finish reason for display.

    Args:
        reason: Finish reason from Simulation.run_until_stable
        stats: Statistics dictionary

    Returns:
        Formatted reason string
    """
    if reason == "extinction":
        return "Extinction - no visible cells left"
    elif reason == "cycle":
        cycle_len = stats.get("cycle_length", 0)
        cycle_start = stats.get("cycle_start_generation", 0)
        return f"Cycle detected - length {cycle_len}, started at generation {cycle_start}"
    elif reason == "max_generations":
        return f"Maximum generations reached ({stats.get('generation', 0)})"
    else:
        return f"Unknown reason: {reason}"


def print_results(final_generation: int, reason: str, stats: dict, verbose: bool) -> None:
    """Print simulation results.

    Args:
        final_generation: Final generation number
        reason: Finish reason
        stats: Statistics dictionary
        verbose: Whether to show detailed statistics
    """
    print(f"\nSimulation completed after {final_generation} generations")
    print(f"Finish reason: {format_finish_reason(reason, stats)}")

    if verbose:
        size = stats["grid_size"]
        print("\nDetailed Statistics:")
        print(f"  Grid size: {size[0]}x{size[1]}x{size[2]}")
        print(f"  Rule: {stats['rules']} (max health {stats['max_health']})")
        print(f"  Initial population: {stats['initial_population']}")
        print(f"  Final population: {stats['population']}")
        print(f"  Dying cells: {stats['dying']}")
        print(f"  Visible cells: {stats['visible']}")
        print(f"  Population density: {stats['population_density']:.2%}")
        print(f"  Population change rate: {stats['population_change_rate']:.2f}")
        if "duration_seconds" in stats:
            print(f"  Duration: {stats['duration_seconds']:.3f} seconds")
            print(f"  Speed: {stats['generations_per_second']:.0f} generations/second")

        if stats["bounding_box"]:
            bbox = stats["bounding_box"]
            bbox_size = stats["bounding_box_size"]
            print(
                f"  Bounding box: ({bbox[0]}, {bbox[1]}, {bbox[2]}) to ({bbox[3]}, {bbox[4]}, {bbox[5]}) "
                f"[{bbox_size[0]}x{bbox_size[1]}x{bbox_size[2]}]"
            )
    else:
        initial_pop = stats["initial_population"]
        final_pop = stats["population"]
        duration = stats.get("duration_seconds", 0)
        speed = stats.get("generations_per_second", 0)

        print(
            "Population: {} → {}, "
            "Duration: {:.3f}s, "
            "Speed: {:.0f} gen/s".format(initial_pop, final_pop, duration, speed)
        )


def validate_args(args: argparse.Namespace) -> bool:
    """Validate command-line arguments.

    Args:
        args: Parsed arguments

    Returns:
        True if arguments are valid
    """
    errors = []

    if args.size <= 0:
        errors.append("Size must be positive")

    if args.max_health < 0:
        errors.append("Max health must be non-negative")

    if not 0.0 <= args.population <= 1.0:
        errors.append("Population rate must be between 0.0 and 1.0")

    if args.max_generations <= 0:
        errors.append("Max generations must be positive")

    try:
        RuleTable.from_string(args.rule)
    except ConfigurationError as e:
        errors.append(str(e))

    if errors:
        print("Error: Invalid arguments:")
        for error in errors:
            print(f"  - {error}")
        return False

    return True


def main() -> int:
    """Main entry point for CLI interface.

    Returns:
        Exit code (0 for success, 1 for error)
    """
    parser = create_parser()
    args = parser.parse_args()

    cli = CLISimulation()

    if args.list_patterns:
        cli.list_patterns()
        return 0

    if not validate_args(args):
        return 1

    if args.pattern and cli.pattern_library.get_pattern(args.pattern) is None:
        available = cli.pattern_library.list_patterns()
        print(f"Error: Pattern '{args.pattern}' not found")
        print(f"Available patterns: {', '.join(available)}")
        return 1

    try:
        final_generation, reason, stats = cli.run_simulation(
            size=args.size,
            max_health=args.max_health,
            rules=RuleTable.from_string(args.rule),
            population_rate=args.population,
            max_generations=args.max_generations,
            seed=args.seed,
            pattern=args.pattern,
            verbose=args.verbose,
        )

        print_results(final_generation, reason, stats, args.verbose)

        if args.metrics_json and cli.last_metrics:
            MetricsExporter.to_json([cli.last_metrics], args.metrics_json)
            print(f"Metrics written to {args.metrics_json}")

        if args.metrics_csv and cli.last_metrics:
            MetricsExporter.to_csv([cli.last_metrics], args.metrics_csv)
            print(f"Metrics written to {args.metrics_csv}")

        if args.instances_json:
            count = cli.save_instances(args.instances_json)
            print(f"{count} instances written to {args.instances_json}")

        return 0

    except KeyboardInterrupt:
        print("\nSimulation interrupted by user")
        return 1
    except Exception as e:
        print(f"Error: {e}")
        if args.verbose:
            import traceback

            traceback.print_exc()
        return 1


if __name__ == "__main__":
    sys.exit(main())
