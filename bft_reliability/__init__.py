# bft_reliability/__init__.py
"""
BFT Reliability - Byzantine fault tolerant consensus and reliability evaluation

Models unreliable agents, combines their outputs under quorum-based
consensus strategies, and measures the reliability gained from redundancy
with reproducible Monte Carlo trials.

Entry points:
- run(strategy, config) -> SimulationResult
- compare(baseline, candidate) -> ComparativeReport
"""

from .exceptions import ConfigurationError
from .agents import Agent, AgentOutput, ByzantineAgent, FailureMode
from .bft_consensus import (
    QuorumCalculator,
    Agreed,
    NoConsensus,
    SingleAgent,
    DualValidation,
    MajorityVote,
    EscalationPolicy,
    StrategyKind,
    build_strategy,
)
from .simulation import (
    MonteCarloHarness,
    SimulationConfig,
    SimulationResult,
    ComparativeReport,
    ReliabilityReport,
    run,
    compare,
)

__version__ = "1.0.0"

__all__ = [
    "ConfigurationError",
    "Agent",
    "AgentOutput",
    "ByzantineAgent",
    "FailureMode",
    "QuorumCalculator",
    "Agreed",
    "NoConsensus",
    "SingleAgent",
    "DualValidation",
    "MajorityVote",
    "EscalationPolicy",
    "StrategyKind",
    "build_strategy",
    "MonteCarloHarness",
    "SimulationConfig",
    "SimulationResult",
    "ComparativeReport",
    "ReliabilityReport",
    "run",
    "compare",
]
