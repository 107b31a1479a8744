# bft_reliability/agents/agent.py
"""
Agent Model - Simulated unreliable agents

An Agent stands in for a generative model that sometimes hallucinates,
crashes or corrupts its output. Its behaviour is a pure function of
(agent_id, failure_rate, task_id, seed): nothing advances between calls,
so any execution can be replayed in isolation.
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Dict, Hashable, Optional, Tuple

from ..exceptions import ConfigurationError
from .failure_model import (
    DEFAULT_FAILURE_DISTRIBUTION,
    MODE_STREAM,
    OUTCOME_STREAM,
    PAYLOAD_STREAM,
    FailureDistribution,
    FailureMode,
    adjusted_failure_rate,
    agent_key,
    draw,
    mix,
    select_failure_mode,
    task_complexity,
    validate_distribution,
)

logger = logging.getLogger("bft.agents")


def correct_value(task_id: int) -> str:
    """The answer every succeeding agent returns for a task"""
    return f"result-{task_id}"


@dataclass(frozen=True)
class AgentOutput:
    """What one agent produced for one task"""
    agent_id: Hashable
    task_id: int
    mode: FailureMode
    value: Optional[str]

    @property
    def succeeded(self) -> bool:
        return self.mode == FailureMode.SUCCESS

    def to_dict(self) -> Dict[str, Any]:
        return {
            "agent_id": self.agent_id,
            "task_id": self.task_id,
            "mode": self.mode.value,
            "value": self.value,
        }


def _check_failure_rate(failure_rate: Any) -> float:
    if isinstance(failure_rate, bool) or not isinstance(failure_rate, (int, float)):
        raise ConfigurationError(
            f"failure_rate must be a number in [0, 1], got {failure_rate!r}",
            "failure_rate",
            failure_rate,
        )
    if math.isnan(failure_rate) or failure_rate < 0.0 or failure_rate > 1.0:
        raise ConfigurationError(
            f"failure_rate must be in [0, 1], got {failure_rate}",
            "failure_rate",
            failure_rate,
        )
    return float(failure_rate)


def _check_complexity_penalty(penalty: Any) -> float:
    if isinstance(penalty, bool) or not isinstance(penalty, (int, float)) or not 0.0 <= penalty <= 1.0:
        raise ConfigurationError(
            f"complexity_penalty must be a number in [0, 1], got {penalty!r}",
            "complexity_penalty",
            penalty,
        )
    return float(penalty)


@dataclass(frozen=True)
class Agent:
    """
    Deterministic failure/success generator for one simulated agent.

    Args:
        agent_id: Opaque identity; ints and strings are both accepted
        failure_rate: Probability in [0, 1] that an execution fails
        distribution: Split of failures across failure modes
        complexity_penalty: Failure rate added per complexity level above 1
    """

    agent_id: Hashable
    failure_rate: float
    distribution: FailureDistribution = DEFAULT_FAILURE_DISTRIBUTION
    complexity_penalty: float = 0.0
    _key: int = field(init=False, repr=False, compare=False, default=0)

    def __post_init__(self):
        # Frozen: normalised values go through object.__setattr__
        object.__setattr__(self, "failure_rate", _check_failure_rate(self.failure_rate))
        object.__setattr__(self, "distribution", validate_distribution(self.distribution))
        object.__setattr__(self, "complexity_penalty", _check_complexity_penalty(self.complexity_penalty))
        object.__setattr__(self, "_key", agent_key(self.agent_id))
        logger.debug(f"Agent {self.agent_id!r} created: failure_rate={self.failure_rate}")

    def effective_failure_rate(self, task_id: int) -> float:
        """Failure rate for this task after its complexity penalty"""
        if not self.complexity_penalty:
            return self.failure_rate
        return adjusted_failure_rate(self.failure_rate, task_complexity(task_id), self.complexity_penalty)

    def execute(self, task_id: int, seed: int) -> Tuple[bool, FailureMode]:
        """Return (succeeded, mode) for one task under one seed"""
        if draw(self._key, task_id, seed, OUTCOME_STREAM) >= self.effective_failure_rate(task_id):
            return True, FailureMode.SUCCESS
        mode = select_failure_mode(draw(self._key, task_id, seed, MODE_STREAM), self.distribution)
        return False, mode

    def respond(self, task_id: int, seed: int) -> AgentOutput:
        """Execute and materialise the output value consensus will compare"""
        _, mode = self.execute(task_id, seed)
        return AgentOutput(
            agent_id=self.agent_id,
            task_id=task_id,
            mode=mode,
            value=self._value_for(mode, task_id, seed),
        )

    def _value_for(self, mode: FailureMode, task_id: int, seed: int) -> Optional[str]:
        if mode == FailureMode.SUCCESS:
            return correct_value(task_id)
        if mode == FailureMode.CRASH:
            return None

        # Wrong answers embed the agent key so two failures never coincide
        payload = mix(self._key, task_id, seed, PAYLOAD_STREAM)
        if mode == FailureMode.HALLUCINATION:
            return f"{correct_value(task_id)}-hallucinated-{self._key:016x}-{payload:016x}"
        return f"<corrupted:{self._key:016x}:{payload:016x}>"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "agent_id": self.agent_id,
            "failure_rate": self.failure_rate,
            "distribution": {mode.value: share for mode, share in self.distribution},
            "complexity_penalty": self.complexity_penalty,
        }


@dataclass(frozen=True)
class ByzantineAgent:
    """
    Agent that always returns the same wrong answer.

    Models a node that lies consistently; several of them sharing one
    wrong_value act as a colluding faction.
    """

    agent_id: Hashable
    wrong_value: str = "byzantine"

    @property
    def failure_rate(self) -> float:
        return 1.0

    def execute(self, task_id: int, seed: int) -> Tuple[bool, FailureMode]:
        return False, FailureMode.HALLUCINATION

    def respond(self, task_id: int, seed: int) -> AgentOutput:
        return AgentOutput(
            agent_id=self.agent_id,
            task_id=task_id,
            mode=FailureMode.HALLUCINATION,
            value=self.wrong_value,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "agent_id": self.agent_id,
            "failure_rate": self.failure_rate,
            "wrong_value": self.wrong_value,
        }
