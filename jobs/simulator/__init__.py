"""Sensor simulator job.

Modules:
- random_walk: reading step function and demo fleet
- client: HTTP client for the monitor API
- runner: one pass over the fleet (run_once)
- cli: CLI entry point (main)
"""

from .cli import main
from .runner import SimulatorConfig, run_once, seed_demo_fleet

__all__ = ["SimulatorConfig", "run_once", "seed_demo_fleet", "main"]
