#!/usr/bin/env python3
"""
Example usage of the voxlife package.
"""

from voxlife import Simulation, SimulationConfig
from voxlife.core.instances import instances_to_array


def main():
    """Drive a simulation the way a renderer would, one tick per frame."""
    simulation = Simulation(SimulationConfig(size=30, seed=42))

    print(f"Initial population: {simulation.population}")
    print()

    for _ in range(20):
        simulation.tick()
        instances = simulation.extract_instances()
        buffer = instances_to_array(instances)

        print(
            f"Generation {simulation.generation}: "
            f"{simulation.population} alive, "
            f"{simulation.grid.dying_count} dying, "
            f"instance buffer {buffer.shape}"
        )

    stats = simulation.get_statistics()
    print("\nFinal statistics:")
    for key, value in stats.items():
        if key != "population_history":
            print(f"  {key}: {value}")


if __name__ == "__main__":
    main()
