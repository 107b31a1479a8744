# bft_reliability/bft_consensus/quorum.py
"""
Quorum Calculator - BFT quorum sizing
Derives agent count and acceptance threshold from a fault tolerance f.

BFT Formula:
- f = max Byzantine faults tolerated
- n = 3f + 1 (agents needed)
- threshold = 2f + 1 (matching votes needed to accept a value)

For f=2:
- n = 3*2 + 1 = 7
- threshold = 2*2 + 1 = 5

Since 2f + 1 > (3f + 1) / 2, at most one value can reach threshold.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from ..exceptions import ConfigurationError

logger = logging.getLogger("bft.consensus.quorum")


def agent_count(f: int) -> int:
    """n = 3f + 1"""
    _check_fault_tolerance(f)
    return 3 * f + 1


def threshold(f: int) -> int:
    """2f + 1"""
    _check_fault_tolerance(f)
    return 2 * f + 1


def _check_fault_tolerance(f: Any):
    if isinstance(f, bool) or not isinstance(f, int):
        raise ConfigurationError(
            f"Fault tolerance must be an integer, got {f!r}", "fault_tolerance", f
        )
    if f < 0:
        raise ConfigurationError(
            f"Fault tolerance must be >= 0, got {f}", "fault_tolerance", f
        )


@dataclass(frozen=True)
class QuorumCalculator:
    """
    Quorum requirements for a fault tolerance f.

    Without pool_size the pool is the canonical n = 3f + 1 and the threshold
    is exactly 2f + 1. A larger explicit pool keeps threshold above half the
    pool: max(2f + 1, pool_size // 2 + 1).
    """

    fault_tolerance: int = 1
    pool_size: Optional[int] = None

    def __post_init__(self):
        _check_fault_tolerance(self.fault_tolerance)

        if self.pool_size is not None:
            min_agents = 3 * self.fault_tolerance + 1
            if isinstance(self.pool_size, bool) or not isinstance(self.pool_size, int):
                raise ConfigurationError(
                    f"Pool size must be an integer, got {self.pool_size!r}",
                    "pool_size",
                    self.pool_size,
                )
            if self.pool_size < min_agents:
                raise ConfigurationError(
                    f"BFT requires n >= 3f + 1. "
                    f"For f={self.fault_tolerance}, need at least {min_agents} agents, got {self.pool_size}",
                    "pool_size",
                    self.pool_size,
                )

        logger.debug(
            f"QuorumCalculator: n={self.n}, f={self.fault_tolerance}, threshold={self.threshold}"
        )

    @classmethod
    def for_pool(cls, pool_size: int) -> "QuorumCalculator":
        """Largest f a pool of pool_size agents supports: f = floor((n-1)/3)"""
        if isinstance(pool_size, bool) or not isinstance(pool_size, int) or pool_size < 1:
            raise ConfigurationError(
                f"Pool must contain at least one agent, got {pool_size!r}",
                "pool_size",
                pool_size,
            )
        return cls(fault_tolerance=(pool_size - 1) // 3, pool_size=pool_size)

    @property
    def f(self) -> int:
        """Maximum Byzantine faults tolerated"""
        return self.fault_tolerance

    @property
    def n(self) -> int:
        """Total number of agents"""
        if self.pool_size is not None:
            return self.pool_size
        return 3 * self.fault_tolerance + 1

    @property
    def threshold(self) -> int:
        """Minimum matching votes needed to accept a value"""
        bft_threshold = 2 * self.fault_tolerance + 1
        if self.pool_size is None:
            return bft_threshold
        return max(bft_threshold, self.pool_size // 2 + 1)

    def has_quorum(self, votes: int) -> bool:
        """Check if a value has enough votes"""
        return votes >= self.threshold

    def to_dict(self) -> Dict[str, Any]:
        """Return quorum configuration as dict"""
        return {
            "fault_tolerance": self.fault_tolerance,
            "agents": self.n,
            "threshold": self.threshold,
            "formula": f"n = 3f + 1 = {3 * self.fault_tolerance + 1}, threshold = 2f + 1 = {2 * self.fault_tolerance + 1}",
        }
