"""Frontend interfaces for voxlife."""

from .cli import CLISimulation

__all__ = ["CLISimulation"]
