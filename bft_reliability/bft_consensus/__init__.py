# bft_reliability/bft_consensus/__init__.py
"""
BFT Consensus Module - Byzantine Fault Tolerant decision strategies

- SingleAgent: baseline, no redundancy
- DualValidation: two agents must agree, with an escalation policy
- MajorityVote: n = 3f + 1 agents, quorum = 2f + 1
"""

from .quorum import QuorumCalculator, agent_count, threshold
from .strategies import (
    ConsensusStrategy,
    ConsensusOutcome,
    Agreed,
    NoConsensus,
    SingleAgent,
    DualValidation,
    MajorityVote,
    StrategyKind,
    EscalationPolicy,
    build_strategy,
)

__all__ = [
    # Quorum
    "QuorumCalculator",
    "agent_count",
    "threshold",
    # Outcomes
    "ConsensusOutcome",
    "Agreed",
    "NoConsensus",
    # Strategies
    "ConsensusStrategy",
    "SingleAgent",
    "DualValidation",
    "MajorityVote",
    "StrategyKind",
    "EscalationPolicy",
    "build_strategy",
]
