# bft_reliability/agents/__init__.py
"""
Agent Module - Simulated unreliable agents and their failure taxonomy

Agents fail with a fixed probability; failures split into
hallucination / corruption / crash following a named distribution.
Harder tasks can raise the failure rate through a per-level complexity
penalty.
"""

from .failure_model import (
    FailureMode,
    HALLUCINATION_SHARE,
    CORRUPTION_SHARE,
    CRASH_SHARE,
    DEFAULT_FAILURE_DISTRIBUTION,
    COMPLEXITY_PENALTY,
    MAX_COMPLEXITY,
    splitmix64,
    task_complexity,
)
from .agent import Agent, AgentOutput, ByzantineAgent, correct_value

__all__ = [
    # Failure taxonomy
    "FailureMode",
    "HALLUCINATION_SHARE",
    "CORRUPTION_SHARE",
    "CRASH_SHARE",
    "DEFAULT_FAILURE_DISTRIBUTION",
    "COMPLEXITY_PENALTY",
    "MAX_COMPLEXITY",
    "splitmix64",
    "task_complexity",
    # Agents
    "Agent",
    "AgentOutput",
    "ByzantineAgent",
    "correct_value",
]
