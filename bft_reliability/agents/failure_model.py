# bft_reliability/agents/failure_model.py
"""
Failure Taxonomy - Failure categories and deterministic failure injection

Every "random" draw in the engine comes from a splitmix64 hash keyed by
(agent key, task id, seed, stream). Separate streams give independent draws
from the same inputs:
- OUTCOME_STREAM: success vs failure
- MODE_STREAM: which failure mode
- PAYLOAD_STREAM: content of a wrong answer
"""

import hashlib
import math
from enum import Enum
from typing import Hashable, Sequence, Tuple

from ..exceptions import ConfigurationError

MASK_64 = 0xFFFFFFFFFFFFFFFF

OUTCOME_STREAM = 0
MODE_STREAM = 1
PAYLOAD_STREAM = 2


class FailureMode(str, Enum):
    """Result category of one agent execution"""
    SUCCESS = "success"              # Correct output
    HALLUCINATION = "hallucination"  # Plausible but semantically wrong output
    CRASH = "crash"                  # No output at all
    CORRUPTION = "corruption"        # Malformed output


# Share of failures falling into each mode
HALLUCINATION_SHARE = 0.60
CORRUPTION_SHARE = 0.25
CRASH_SHARE = 0.15

FailureDistribution = Tuple[Tuple[FailureMode, float], ...]

DEFAULT_FAILURE_DISTRIBUTION: FailureDistribution = (
    (FailureMode.HALLUCINATION, HALLUCINATION_SHARE),
    (FailureMode.CORRUPTION, CORRUPTION_SHARE),
    (FailureMode.CRASH, CRASH_SHARE),
)

_DISTRIBUTION_TOLERANCE = 1e-9

# Task complexity: levels 1..MAX_COMPLEXITY cycle over task ids. Each level
# above 1 adds the agent's per-level penalty to its failure rate, capped at
# MAX_ADJUSTED_FAILURE_RATE. COMPLEXITY_PENALTY is the benchmark penalty;
# agents default to 0 (complexity-blind).
MAX_COMPLEXITY = 5
COMPLEXITY_PENALTY = 0.05
MAX_ADJUSTED_FAILURE_RATE = 0.95


def splitmix64(x: int) -> int:
    """One splitmix64 finalisation step over a 64-bit integer"""
    x = (x + 0x9E3779B97F4A7C15) & MASK_64
    z = x
    z = ((z ^ (z >> 30)) * 0xBF58476D1CE4E5B9) & MASK_64
    z = ((z ^ (z >> 27)) * 0x94D049BB133111EB) & MASK_64
    return z ^ (z >> 31)


def agent_key(agent_id: Hashable) -> int:
    """
    Stable 64-bit key for an agent id.

    Integers map to themselves (two's complement for negatives). Anything
    else is keyed through SHA-256 of its string form, since the builtin
    hash() of a str changes between interpreter runs.
    """
    if isinstance(agent_id, int) and not isinstance(agent_id, bool):
        return agent_id & MASK_64
    digest = hashlib.sha256(str(agent_id).encode("utf-8")).digest()
    return int.from_bytes(digest[:8], "big")


def mix(*parts: int) -> int:
    """Chain splitmix64 over the given integers"""
    h = 0
    for part in parts:
        h = splitmix64(h ^ (part & MASK_64))
    return h


def unit_interval(h: int) -> float:
    """Map a 64-bit hash onto [0, 1) using its top 53 bits"""
    return (h >> 11) / float(1 << 53)


def draw(key: int, task_id: int, seed: int, stream: int) -> float:
    """Uniform draw in [0, 1) for one (agent, task, seed, stream)"""
    return unit_interval(mix(key, task_id, seed, stream))


def validate_distribution(distribution: Sequence[Tuple[FailureMode, float]]) -> FailureDistribution:
    """
    Check a failure-mode split and return it as a tuple.

    Raises:
        ConfigurationError: empty table, SUCCESS listed, negative or
            non-finite share, or shares not summing to 1
    """
    table = tuple((FailureMode(mode), share) for mode, share in distribution)
    if not table:
        raise ConfigurationError("Failure distribution must not be empty", "distribution", table)

    total = 0.0
    for mode, share in table:
        if mode == FailureMode.SUCCESS:
            raise ConfigurationError(
                "Failure distribution may only contain failure modes, got SUCCESS",
                "distribution",
                table,
            )
        if not isinstance(share, (int, float)) or math.isnan(share) or share < 0 or math.isinf(share):
            raise ConfigurationError(
                f"Failure share for {mode.value} must be a finite number >= 0, got {share!r}",
                "distribution",
                table,
            )
        total += share

    if abs(total - 1.0) > _DISTRIBUTION_TOLERANCE:
        raise ConfigurationError(
            f"Failure shares must sum to 1.0, got {total}",
            "distribution",
            table,
        )
    return table


def select_failure_mode(u: float, distribution: FailureDistribution) -> FailureMode:
    """Pick the failure mode whose cumulative bucket contains u"""
    cumulative = 0.0
    for mode, share in distribution:
        cumulative += share
        if u < cumulative:
            return mode
    # Rounding can leave u just above the final cumulative edge
    for mode, share in reversed(distribution):
        if share > 0:
            return mode
    return distribution[-1][0]


def task_complexity(task_id: int) -> int:
    """Complexity level of a task, 1..MAX_COMPLEXITY"""
    return 1 + task_id % MAX_COMPLEXITY


def adjusted_failure_rate(failure_rate: float, complexity: int, penalty: float) -> float:
    """
    Failure rate after the complexity penalty.

    The cap only limits the penalty; a base rate above the cap is kept, so
    a rate of 1.0 still always fails.
    """
    adjusted = failure_rate + (complexity - 1) * penalty
    return max(failure_rate, min(adjusted, MAX_ADJUSTED_FAILURE_RATE))
