# bft_reliability/simulation/harness.py
"""
Monte Carlo Harness - Seeded trials over a consensus strategy

For each trial t in [0, T) and task k in [0, K):
- seed = derive_seed(base_seed, t, k)
- outcome = strategy.decide(k, seed)
- success iff the outcome is Agreed on correct_value(k)
- the outcome is also tallied under task_complexity(k)

Each trial yields an integer TrialTally. Tallies are reduced in trial-index
order, so sequential and parallel execution give identical results.
"""

import asyncio
import contextvars
import logging
from concurrent.futures import Executor, ThreadPoolExecutor
from dataclasses import dataclass, field
from functools import reduce
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..agents import FailureMode, correct_value
from ..agents.failure_model import MAX_COMPLEXITY, mix, task_complexity
from ..bft_consensus.strategies import (
    ConsensusOutcome,
    ConsensusStrategy,
    EscalationPolicy,
    MajorityVote,
    StrategyKind,
    build_strategy,
)
from ..run_context import derive_run_id, run_context

logger = logging.getLogger("bft.simulation.harness")

UNDEFINED = "undefined"

FAILURE_MODES = tuple(mode for mode in FailureMode if mode != FailureMode.SUCCESS)

COMPLEXITY_LEVELS = tuple(range(1, MAX_COMPLEXITY + 1))

# Config fields that shape a run of an already built strategy
TRIAL_FIELDS = {"trials", "tasks_per_trial", "base_seed"}


def derive_seed(base_seed: int, trial: int, task_id: int) -> int:
    """Per-task seed; depends only on its indices, never on execution order"""
    return mix(base_seed, trial, task_id)


def render(value: Optional[float]) -> Union[float, str]:
    """None -> "undefined" for reports"""
    return UNDEFINED if value is None else value


# =============================================================================
# Configuration
# =============================================================================

class SimulationConfig(BaseModel):
    """Validated run configuration"""

    model_config = ConfigDict(frozen=True)

    trials: int = Field(default=100, ge=0, description="Number of trials T")
    tasks_per_trial: int = Field(default=100, ge=0, description="Tasks per trial K")
    base_seed: int = Field(default=0, ge=0, description="Root of all per-task seeds")
    workers: int = Field(default=1, ge=1, description="Thread pool size for run_async")
    fault_tolerance: Optional[int] = Field(default=None, ge=0, description="f for majority vote")
    failure_rates: List[float] = Field(default_factory=lambda: [0.23], min_length=1)
    escalation: EscalationPolicy = EscalationPolicy.NO_CONSENSUS
    complexity_penalty: float = Field(default=0.0, ge=0.0, le=1.0, description="Failure rate added per complexity level")

    @field_validator("failure_rates")
    @classmethod
    def validate_failure_rates(cls, v: List[float]) -> List[float]:
        for rate in v:
            # NaN fails both comparisons
            if not (0.0 <= rate <= 1.0):
                raise ValueError(f"failure rate must be in [0, 1], got {rate}")
        return v

    @property
    def total_tasks(self) -> int:
        return self.trials * self.tasks_per_trial

    @classmethod
    def from_settings(cls, settings: Any) -> "SimulationConfig":
        """Build from a config.Settings instance"""
        return cls(
            trials=settings.trials,
            tasks_per_trial=settings.tasks_per_trial,
            base_seed=settings.base_seed,
            workers=settings.workers,
            fault_tolerance=settings.fault_tolerance,
            failure_rates=[settings.failure_rate],
            complexity_penalty=settings.complexity_penalty,
        )


# =============================================================================
# Results
# =============================================================================

def _empty_mode_counts() -> Dict[FailureMode, int]:
    return {mode: 0 for mode in FAILURE_MODES}


def _empty_complexity_counts() -> Dict[int, Tuple[int, int]]:
    return {level: (0, 0) for level in COMPLEXITY_LEVELS}


@dataclass
class TrialTally:
    """Integer outcome counts for one trial (or a merge of several)"""
    total_tasks: int = 0
    successes: int = 0
    wrong_agreements: int = 0
    no_consensus: int = 0
    agent_invocations: int = 0
    failure_mode_counts: Dict[FailureMode, int] = field(default_factory=_empty_mode_counts)
    # complexity level -> (successes, total)
    complexity_counts: Dict[int, Tuple[int, int]] = field(default_factory=_empty_complexity_counts)

    def record(self, outcome: ConsensusOutcome, task_id: int):
        """Score one outcome against the known answer"""
        self.total_tasks += 1
        self.agent_invocations += len(outcome.outputs)

        succeeded = outcome.agreed and outcome.value == correct_value(task_id)
        level = task_complexity(task_id)
        passed, total = self.complexity_counts.get(level, (0, 0))
        self.complexity_counts[level] = (passed + int(succeeded), total + 1)

        if succeeded:
            self.successes += 1
            return
        if outcome.agreed:
            self.wrong_agreements += 1
        else:
            self.no_consensus += 1

        for output in outcome.outputs:
            if not output.succeeded:
                self.failure_mode_counts[output.mode] += 1

    def merge(self, other: "TrialTally") -> "TrialTally":
        """Return a new tally holding both counts"""
        complexity_counts = {}
        for level in sorted(set(self.complexity_counts) | set(other.complexity_counts)):
            left = self.complexity_counts.get(level, (0, 0))
            right = other.complexity_counts.get(level, (0, 0))
            complexity_counts[level] = (left[0] + right[0], left[1] + right[1])

        return TrialTally(
            total_tasks=self.total_tasks + other.total_tasks,
            successes=self.successes + other.successes,
            wrong_agreements=self.wrong_agreements + other.wrong_agreements,
            no_consensus=self.no_consensus + other.no_consensus,
            agent_invocations=self.agent_invocations + other.agent_invocations,
            failure_mode_counts={
                mode: self.failure_mode_counts.get(mode, 0) + other.failure_mode_counts.get(mode, 0)
                for mode in FAILURE_MODES
            },
            complexity_counts=complexity_counts,
        )


@dataclass(frozen=True)
class SimulationResult:
    """
    Aggregated outcome of a run.

    failure_mode_counts tallies the failure modes of every agent consulted
    on a failed task. complexity_breakdown maps each complexity level to
    (successes, total). Both are read-only views over private copies, so a
    result cannot change after the run. Rates are computed on demand and
    are None when total_tasks is 0.
    """

    total_tasks: int
    successes: int
    failure_mode_counts: Mapping[FailureMode, int] = field(default_factory=_empty_mode_counts, hash=False)
    no_consensus: int = 0
    wrong_agreements: int = 0
    agent_invocations: int = 0
    strategy: str = ""
    complexity_breakdown: Mapping[int, Tuple[int, int]] = field(
        default_factory=_empty_complexity_counts, hash=False
    )

    def __post_init__(self):
        # Read-only copies; hash() skips them, equality compares them
        mode_counts = {mode: self.failure_mode_counts.get(mode, 0) for mode in FAILURE_MODES}
        object.__setattr__(self, "failure_mode_counts", MappingProxyType(mode_counts))
        breakdown = {level: tuple(counts) for level, counts in sorted(self.complexity_breakdown.items())}
        object.__setattr__(self, "complexity_breakdown", MappingProxyType(breakdown))

    @classmethod
    def from_tally(cls, tally: TrialTally, strategy: str = "") -> "SimulationResult":
        return cls(
            total_tasks=tally.total_tasks,
            successes=tally.successes,
            failure_mode_counts=tally.failure_mode_counts,
            no_consensus=tally.no_consensus,
            wrong_agreements=tally.wrong_agreements,
            agent_invocations=tally.agent_invocations,
            strategy=strategy,
            complexity_breakdown=tally.complexity_counts,
        )

    @property
    def failures(self) -> int:
        """Tasks that did not end in agreement on the correct value"""
        return self.total_tasks - self.successes

    def success_rate(self) -> Optional[float]:
        if self.total_tasks == 0:
            return None
        return self.successes / self.total_tasks

    def failure_rate(self) -> Optional[float]:
        # 1 - s keeps success_rate() + failure_rate() exactly 1.0
        success_rate = self.success_rate()
        if success_rate is None:
            return None
        return 1.0 - success_rate

    def complexity_success_rate(self, level: int) -> Optional[float]:
        passed, total = self.complexity_breakdown.get(level, (0, 0))
        if total == 0:
            return None
        return passed / total

    def invocations_per_task(self) -> Optional[float]:
        if self.total_tasks == 0:
            return None
        return self.agent_invocations / self.total_tasks

    def total_mode_failures(self) -> int:
        return sum(self.failure_mode_counts.values())

    def failure_mode_share(self, mode: FailureMode) -> Optional[float]:
        """Fraction of recorded agent failures that were this mode"""
        total = self.total_mode_failures()
        if total == 0:
            return None
        return self.failure_mode_counts.get(mode, 0) / total

    def to_dict(self) -> Dict[str, Any]:
        return {
            "strategy": self.strategy,
            "total_tasks": self.total_tasks,
            "successes": self.successes,
            "failures": self.failures,
            "success_rate": render(self.success_rate()),
            "failure_rate": render(self.failure_rate()),
            "no_consensus": self.no_consensus,
            "wrong_agreements": self.wrong_agreements,
            "agent_invocations": self.agent_invocations,
            "failure_modes": {
                mode.value: count for mode, count in self.failure_mode_counts.items()
            },
            "complexity_breakdown": {
                level: {
                    "successes": passed,
                    "total": total,
                    "success_rate": render(self.complexity_success_rate(level)),
                }
                for level, (passed, total) in self.complexity_breakdown.items()
            },
        }


# =============================================================================

# =============================================================================
# Harness
# =============================================================================

ConfigLike = Union[SimulationConfig, Mapping[str, Any]]


def _coerce_config(config: ConfigLike) -> SimulationConfig:
    if isinstance(config, SimulationConfig):
        return config
    return SimulationConfig(**config)


class MonteCarloHarness:
    """
    Drives trials x tasks through a consensus strategy.

    Stateless between runs: every result is a function of (strategy, config).

    run(), run_async() and sweep() read only the trial fields of the config
    (trials, tasks_per_trial, base_seed; workers for run_async). The
    strategy fields (fault_tolerance, failure_rates, escalation,
    complexity_penalty) are used by simulate(), which builds the strategy.
    """

    def run(self, strategy: ConsensusStrategy, config: ConfigLike) -> SimulationResult:
        """Run all trials sequentially"""
        config = _coerce_config(config)
        run_id = self._run_id(strategy, config)

        with run_context(run_id):
            logger.info(
                f"Run started: strategy={strategy.name}, agents={strategy.agent_count}, "
                f"trials={config.trials}, tasks_per_trial={config.tasks_per_trial}"
            )
            tallies = [self._run_trial(strategy, config, trial) for trial in range(config.trials)]
            return self._finish(strategy, tallies)

    async def run_async(
        self,
        strategy: ConsensusStrategy,
        config: ConfigLike,
        executor: Optional[Executor] = None,
    ) -> SimulationResult:
        """
        Run trials on an executor without blocking the event loop.

        gather() returns tallies in submission (trial-index) order, and the
        reduction is the same as run(), so the result is identical.
        """
        config = _coerce_config(config)
        run_id = self._run_id(strategy, config)
        loop = asyncio.get_running_loop()

        owns_executor = executor is None
        pool = executor if executor is not None else ThreadPoolExecutor(max_workers=config.workers)

        try:
            with run_context(run_id):
                logger.info(
                    f"Async run started: strategy={strategy.name}, agents={strategy.agent_count}, "
                    f"trials={config.trials}, tasks_per_trial={config.tasks_per_trial}, "
                    f"workers={config.workers}"
                )
                futures = [
                    # A Context can only be entered by one thread at a time
                    loop.run_in_executor(
                        pool, contextvars.copy_context().run, self._run_trial, strategy, config, trial
                    )
                    for trial in range(config.trials)
                ]
                tallies = await asyncio.gather(*futures)
                return self._finish(strategy, tallies)
        finally:
            if owns_executor:
                pool.shutdown(wait=True)

    def simulate(self, kind: Union[StrategyKind, str], config: ConfigLike) -> SimulationResult:
        """Build a strategy from the config and run it"""
        config = _coerce_config(config)
        return self.run(build_strategy(kind, config), config)

    def sweep(
        self,
        fault_tolerances: Iterable[int],
        failure_rate: float,
        config: ConfigLike,
    ) -> List[SimulationResult]:
        """One MajorityVote run per fault tolerance, in the given order"""
        config = _coerce_config(config)
        return [
            self.run(MajorityVote(f, failure_rate), config)
            for f in fault_tolerances
        ]

    def _run_trial(self, strategy: ConsensusStrategy, config: SimulationConfig, trial: int) -> TrialTally:
        tally = TrialTally()
        for task_id in range(config.tasks_per_trial):
            seed = derive_seed(config.base_seed, trial, task_id)
            tally.record(strategy.decide(task_id, seed), task_id)

        logger.debug(
            f"Trial {trial} done: {tally.successes}/{tally.total_tasks} successes"
        )
        return tally

    def _finish(self, strategy: ConsensusStrategy, tallies: List[TrialTally]) -> SimulationResult:
        # Index-ordered reduction
        total = reduce(TrialTally.merge, tallies, TrialTally())
        result = SimulationResult.from_tally(total, strategy=strategy.name)

        logger.info(
            f"Run complete: strategy={strategy.name}, tasks={result.total_tasks}, "
            f"successes={result.successes}, success_rate={render(result.success_rate())}, "
            f"no_consensus={result.no_consensus}, wrong_agreements={result.wrong_agreements}"
        )
        return result

    @staticmethod
    def _run_id(strategy: ConsensusStrategy, config: SimulationConfig) -> str:
        agents = ",".join(repr(agent.to_dict()) for agent in strategy.agents)
        return derive_run_id(strategy.name, agents, config.model_dump_json(include=TRIAL_FIELDS))


def run(strategy: ConsensusStrategy, config: ConfigLike) -> SimulationResult:
    """Run a strategy under a config with a fresh harness"""
    return MonteCarloHarness().run(strategy, config)
