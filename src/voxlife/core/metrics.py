"""Metrics collection for simulation runs."""

import time
import json
import csv
import numpy as np
from typing import Dict, List, Any, Optional, Callable, Tuple
from dataclasses import dataclass, field, asdict
from datetime import datetime
from collections import defaultdict


@dataclass
class SimulationMetrics:
    """Metrics for a single simulation run."""

    # Run identification
    run_id: int
    start_time: float
    end_time: float = 0.0
    duration: float = 0.0

    # Initial conditions
    initial_population: int = 0
    initial_pattern: Optional[str] = None
    grid_size: int = 0
    max_health: int = 0
    rules: str = ""

    # Simulation outcome
    final_generation: int = 0
    termination_reason: str = ""  # 'cycle', 'extinction', 'max_generations'
    final_population: int = 0
    final_visible: int = 0

    # Cycle information
    cycle_detected: bool = False
    cycle_length: int = 0

    # Population dynamics
    population_history: List[int] = field(default_factory=list)
    dying_history: List[int] = field(default_factory=list)
    visible_history: List[int] = field(default_factory=list)
    min_population: int = 0
    max_population: int = 0
    avg_population: float = 0.0
    population_std_dev: float = 0.0
    max_visible: int = 0

    # Spatial metrics
    bounding_box: Optional[Tuple[int, int, int, int, int, int]] = None

    # Performance metrics
    generations_per_second: float = 0.0
    total_cell_updates: int = 0

    def to_dict(self) -> Dict[str, Any]:
        """Convert metrics to dictionary."""
        return asdict(self)

    def calculate_derived_metrics(self):
        """Calculate derived metrics from collected data."""
        if self.population_history:
            self.min_population = min(self.population_history)
            self.max_population = max(self.population_history)
            self.avg_population = float(np.mean(self.population_history))
            self.population_std_dev = float(np.std(self.population_history))
        if self.visible_history:
            self.max_visible = max(self.visible_history)


class MetricsCollector:
    """Collects metrics while a simulation runs."""

    def __init__(self):
        self.current_metrics: Optional[SimulationMetrics] = None
        self.hooks: Dict[str, List[Callable]] = defaultdict(list)

    def start_run(self, run_id: int, simulation, initial_pattern: Optional[str] = None):
        """Start collecting metrics for a new run."""
        self.current_metrics = SimulationMetrics(
            run_id=run_id,
            start_time=time.time(),
            initial_population=simulation.population,
            initial_pattern=initial_pattern,
            grid_size=simulation.grid.size,
            max_health=simulation.grid.max_health,
            rules=str(simulation.rules),
        )
        self._record(simulation)

        for hook in self.hooks['start']:
            hook(self.current_metrics, simulation)

    def update(self, simulation):
        """Record the state after a tick."""
        if not self.current_metrics:
            return

        self._record(simulation)

        for hook in self.hooks['update']:
            hook(self.current_metrics, simulation)

    def end_run(self, simulation, termination_reason: str):
        """Finalize metrics for the current run."""
        if not self.current_metrics:
            return None

        metrics = self.current_metrics
        metrics.end_time = time.time()
        metrics.duration = metrics.end_time - metrics.start_time
        metrics.final_generation = simulation.generation
        metrics.termination_reason = termination_reason
        metrics.final_population = simulation.population
        metrics.final_visible = simulation.visible_count
        metrics.cycle_detected = simulation.cycle_detected
        metrics.cycle_length = simulation.cycle_length
        metrics.bounding_box = simulation.grid.get_bounding_box()

        if metrics.duration > 0:
            metrics.generations_per_second = metrics.final_generation / metrics.duration

        metrics.total_cell_updates = metrics.final_generation * simulation.grid.cell_count

        metrics.calculate_derived_metrics()

        for hook in self.hooks['end']:
            hook(metrics, simulation)

        return metrics

    def register_hook(self, event: str, hook: Callable):
        """Register a custom hook for metrics collection.

        Args:
            event: 'start', 'update', or 'end'
            hook: Callable that takes (metrics, simulation) as arguments
        """
        if event in ['start', 'update', 'end']:
            self.hooks[event].append(hook)

    def _record(self, simulation):
        self.current_metrics.population_history.append(simulation.population)
        self.current_metrics.dying_history.append(simulation.grid.dying_count)
        self.current_metrics.visible_history.append(simulation.visible_count)


class NumpyEncoder(json.JSONEncoder):
    """JSON encoder that handles numpy types."""

    def default(self, obj):
        if isinstance(obj, np.integer):
            return int(obj)
        elif isinstance(obj, np.floating):
            return float(obj)
        elif isinstance(obj, np.ndarray):
            return obj.tolist()
        elif isinstance(obj, np.bool_):
            return bool(obj)
        return super().default(obj)


class MetricsExporter:
    """Export metrics to various formats."""

    @staticmethod
    def to_json(metrics: List[SimulationMetrics], filepath: str):
        """Export metrics to JSON format."""
        data = {
            "runs": [m.to_dict() for m in metrics],
            "metadata": {
                "export_time": datetime.now().isoformat(),
                "total_runs": len(metrics),
            },
        }

        with open(filepath, 'w') as f:
            json.dump(data, f, indent=2, cls=NumpyEncoder)

    @staticmethod
    def to_csv(metrics: List[SimulationMetrics], filepath: str):
        """Export one row per run to CSV format."""
        if not metrics:
            return

        rows = []
        for m in metrics:
            rows.append({
                'run_id': m.run_id,
                'duration': m.duration,
                'grid_size': m.grid_size,
                'max_health': m.max_health,
                'rules': m.rules,
                'initial_population': m.initial_population,
                'final_population': m.final_population,
                'final_visible': m.final_visible,
                'final_generation': m.final_generation,
                'termination_reason': m.termination_reason,
                'cycle_detected': m.cycle_detected,
                'cycle_length': m.cycle_length,
                'min_population': m.min_population,
                'max_population': m.max_population,
                'avg_population': m.avg_population,
                'population_std_dev': m.population_std_dev,
                'max_visible': m.max_visible,
                'generations_per_second': m.generations_per_second,
                'initial_pattern': m.initial_pattern or 'random',
            })

        with open(filepath, 'w', newline='') as f:
            writer = csv.DictWriter(f, fieldnames=rows[0].keys())
            writer.writeheader()
            writer.writerows(rows)
