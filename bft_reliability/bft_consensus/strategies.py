# bft_reliability/bft_consensus/strategies.py
"""
Consensus Strategies - Combine agent outputs into one decision

Strategies:
- SingleAgent: the lone agent's raw output (baseline, no error correction)
- DualValidation: two agents must return the same value; disagreement
  escalates per EscalationPolicy
- MajorityVote: 3f + 1 agents, a value needs 2f + 1 matching votes

Every strategy returns Agreed(value) or NoConsensus. NoConsensus is a
terminal outcome that callers handle explicitly, never an exception.
Ground truth is never consulted here; scoring belongs to the harness.
"""

import logging
from abc import ABC, abstractmethod
from collections import Counter
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Sequence, Tuple

from ..agents import Agent, AgentOutput
from ..agents.failure_model import DEFAULT_FAILURE_DISTRIBUTION, FailureDistribution
from ..exceptions import ConfigurationError
from .quorum import QuorumCalculator

logger = logging.getLogger("bft.consensus.strategies")


class StrategyKind(str, Enum):
    """Available consensus strategies"""
    SINGLE = "single"
    DUAL = "dual"
    MAJORITY = "majority"


class EscalationPolicy(str, Enum):
    """What DualValidation does when its two agents disagree"""
    NO_CONSENSUS = "no_consensus"  # Report the disagreement
    ARBITER = "arbiter"            # Ask a third agent to break the tie


# =============================================================================
# Outcomes
# =============================================================================

class ConsensusOutcome:
    """Base of Agreed / NoConsensus"""
    agreed: bool = False


@dataclass(frozen=True)
class Agreed(ConsensusOutcome):
    """A value was accepted"""
    value: str
    votes: int = 0
    outputs: Tuple[AgentOutput, ...] = ()

    agreed = True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "outcome": "agreed",
            "value": self.value,
            "votes": self.votes,
            "outputs": [o.to_dict() for o in self.outputs],
        }


@dataclass(frozen=True)
class NoConsensus(ConsensusOutcome):
    """No value was accepted"""
    reason: str = ""
    votes: int = 0
    outputs: Tuple[AgentOutput, ...] = ()

    agreed = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "outcome": "no_consensus",
            "reason": self.reason,
            "votes": self.votes,
            "outputs": [o.to_dict() for o in self.outputs],
        }


# =============================================================================
# Strategies
# =============================================================================

class ConsensusStrategy(ABC):
    """Combines one or more agent executions into a single decision"""

    kind: StrategyKind

    @property
    def name(self) -> str:
        return self.kind.value

    @property
    @abstractmethod
    def agents(self) -> Tuple[Any, ...]:
        """Every agent this strategy may consult"""

    @property
    def agent_count(self) -> int:
        return len(self.agents)

    @abstractmethod
    def decide(self, task_id: int, seed: int) -> ConsensusOutcome:
        """Run the strategy for one task under one seed"""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "strategy": self.name,
            "agents": [agent.to_dict() for agent in self.agents],
        }

    def __repr__(self) -> str:
        return f"{type(self).__name__}(agents={self.agent_count})"


class SingleAgent(ConsensusStrategy):
    """Baseline: trust one agent's raw output"""

    kind = StrategyKind.SINGLE

    def __init__(self, agent: Optional[Any] = None, failure_rate: float = 0.0, complexity_penalty: float = 0.0):
        self.agent = agent if agent is not None else Agent(0, failure_rate, complexity_penalty=complexity_penalty)
        logger.info(f"SingleAgent created: failure_rate={self.agent.failure_rate}")

    @property
    def agents(self) -> Tuple[Any, ...]:
        return (self.agent,)

    def decide(self, task_id: int, seed: int) -> ConsensusOutcome:
        output = self.agent.respond(task_id, seed)
        if output.value is None:
            return NoConsensus(reason="crash", votes=0, outputs=(output,))
        return Agreed(value=output.value, votes=1, outputs=(output,))


class DualValidation(ConsensusStrategy):
    """
    Two independent agents must produce the same value.

    Wrong answers differ between agents, so a match means both succeeded.
    On disagreement the escalation policy decides: report NoConsensus, or
    consult an arbiter and accept whichever primary value it matches.
    """

    kind = StrategyKind.DUAL

    def __init__(
        self,
        primary: Optional[Any] = None,
        validator: Optional[Any] = None,
        failure_rate: float = 0.0,
        escalation: EscalationPolicy = EscalationPolicy.NO_CONSENSUS,
        arbiter: Optional[Any] = None,
        complexity_penalty: float = 0.0,
    ):
        try:
            self.escalation = EscalationPolicy(escalation)
        except ValueError as e:
            raise ConfigurationError(
                f"Unknown escalation policy {escalation!r}", "escalation", escalation
            ) from e

        self.primary = primary if primary is not None else Agent(0, failure_rate, complexity_penalty=complexity_penalty)
        self.validator = validator if validator is not None else Agent(1, failure_rate, complexity_penalty=complexity_penalty)
        self.arbiter = None
        if self.escalation == EscalationPolicy.ARBITER:
            self.arbiter = arbiter if arbiter is not None else Agent(2, failure_rate, complexity_penalty=complexity_penalty)

        logger.info(
            f"DualValidation created: escalation={self.escalation.value}, "
            f"agents={self.agent_count}"
        )

    @property
    def agents(self) -> Tuple[Any, ...]:
        if self.arbiter is None:
            return (self.primary, self.validator)
        return (self.primary, self.validator, self.arbiter)

    def decide(self, task_id: int, seed: int) -> ConsensusOutcome:
        first = self.primary.respond(task_id, seed)
        second = self.validator.respond(task_id, seed)

        if first.value is not None and first.value == second.value:
            return Agreed(value=first.value, votes=2, outputs=(first, second))

        answered = int(first.value is not None) + int(second.value is not None)
        if self.arbiter is None:
            return NoConsensus(reason="disagreement", votes=min(answered, 1), outputs=(first, second))

        third = self.arbiter.respond(task_id, seed)
        outputs = (first, second, third)
        if third.value is not None:
            for candidate in (first, second):
                if candidate.value == third.value:
                    return Agreed(value=candidate.value, votes=2, outputs=outputs)

        return NoConsensus(reason="arbiter disagreed", votes=min(answered, 1), outputs=outputs)


class MajorityVote(ConsensusStrategy):
    """
    Byzantine majority vote over n = 3f + 1 agents.

    Tallies identical output values; a value with >= 2f + 1 votes is agreed.
    Tolerates up to f agents returning arbitrary wrong values.
    """

    kind = StrategyKind.MAJORITY

    def __init__(
        self,
        fault_tolerance: int = 1,
        failure_rate: float = 0.0,
        agents: Optional[Sequence[Any]] = None,
        distribution: FailureDistribution = DEFAULT_FAILURE_DISTRIBUTION,
        quorum: Optional[QuorumCalculator] = None,
        complexity_penalty: float = 0.0,
    ):
        """
        Args:
            fault_tolerance: f; ignored when quorum is given
            failure_rate: Shared failure rate of generated agents
            agents: Explicit pool; must contain exactly quorum.n agents
            distribution: Failure split of generated agents
            quorum: Explicit quorum, e.g. QuorumCalculator.for_pool(m)
            complexity_penalty: Per-level complexity penalty of generated agents
        """
        self.quorum = quorum if quorum is not None else QuorumCalculator(fault_tolerance)

        if agents is None:
            self._agents = tuple(
                Agent(agent_id, failure_rate, distribution, complexity_penalty) for agent_id in range(self.quorum.n)
            )
        else:
            self._agents = tuple(agents)
            if len(self._agents) != self.quorum.n:
                raise ConfigurationError(
                    f"MajorityVote with f={self.quorum.f} needs {self.quorum.n} agents, "
                    f"got {len(self._agents)}",
                    "agents",
                    len(self._agents),
                )

        logger.info(
            f"MajorityVote created: n={self.quorum.n}, f={self.quorum.f}, "
            f"threshold={self.quorum.threshold}"
        )

    @classmethod
    def from_agents(cls, agents: Sequence[Any]) -> "MajorityVote":
        """Majority vote over an arbitrary pool, quorum sized to the pool"""
        pool = tuple(agents)
        return cls(agents=pool, quorum=QuorumCalculator.for_pool(len(pool)))

    @property
    def fault_tolerance(self) -> int:
        return self.quorum.f

    @property
    def agents(self) -> Tuple[Any, ...]:
        return self._agents

    def decide(self, task_id: int, seed: int) -> ConsensusOutcome:
        outputs = tuple(agent.respond(task_id, seed) for agent in self._agents)
        tally = Counter(o.value for o in outputs if o.value is not None)

        if not tally:
            return NoConsensus(reason="no votes", votes=0, outputs=outputs)

        # Only one value can reach threshold; ties below it are irrelevant
        value, votes = tally.most_common(1)[0]
        if self.quorum.has_quorum(votes):
            return Agreed(value=value, votes=votes, outputs=outputs)
        return NoConsensus(reason="below threshold", votes=votes, outputs=outputs)

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["quorum"] = self.quorum.to_dict()
        return data


# =============================================================================
# Factory
# =============================================================================

def build_strategy(kind: Any, config: Any) -> ConsensusStrategy:
    """
    Construct a strategy from a SimulationConfig-like object.

    Uses config.failure_rates (one shared rate or one per agent),
    config.fault_tolerance, config.escalation and config.complexity_penalty.
    """
    try:
        kind = StrategyKind(kind)
    except ValueError as e:
        raise ConfigurationError(f"Unknown strategy kind {kind!r}", "kind", kind) from e

    rates = list(config.failure_rates)
    if not rates:
        raise ConfigurationError("At least one failure rate is required", "failure_rates", rates)

    penalty = getattr(config, "complexity_penalty", 0.0)

    def agent(index: int) -> Agent:
        rate = rates[index] if index < len(rates) else rates[0]
        return Agent(index, rate, complexity_penalty=penalty)

    if kind == StrategyKind.SINGLE:
        return SingleAgent(agent(0))

    if kind == StrategyKind.DUAL:
        return DualValidation(
            primary=agent(0),
            validator=agent(1),
            escalation=getattr(config, "escalation", EscalationPolicy.NO_CONSENSUS),
            arbiter=agent(2),
        )

    fault_tolerance = getattr(config, "fault_tolerance", None)
    if len(rates) == 1:
        if fault_tolerance is None:
            raise ConfigurationError(
                "Majority vote needs a fault tolerance or one failure rate per agent",
                "fault_tolerance",
                None,
            )
        return MajorityVote(fault_tolerance, rates[0], complexity_penalty=penalty)

    pool = [agent(index) for index in range(len(rates))]
    if fault_tolerance is None:
        return MajorityVote.from_agents(pool)
    return MajorityVote(fault_tolerance, agents=pool)
