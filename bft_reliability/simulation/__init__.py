# bft_reliability/simulation/__init__.py
"""
Simulation Module - Monte Carlo reliability evaluation

Runs seeded trials through a consensus strategy and compares the
aggregated results across configurations.
"""

from .harness import (
    MonteCarloHarness,
    SimulationConfig,
    SimulationResult,
    TrialTally,
    derive_seed,
    run,
    UNDEFINED,
)
from .report import ComparativeReport, ReliabilityReport, compare

__all__ = [
    # Harness
    "MonteCarloHarness",
    "SimulationConfig",
    "SimulationResult",
    "TrialTally",
    "derive_seed",
    "run",
    "UNDEFINED",
    # Report
    "ComparativeReport",
    "ReliabilityReport",
    "compare",
]
