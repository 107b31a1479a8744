"""
Agent Model Tests

Validates:
1. execute() is a pure function of (id, failure_rate, task_id, seed)
2. Measured failure rate tracks the configured rate
3. Failures split 60/25/15 across hallucination/corruption/crash
4. Invalid failure rates and distributions fail construction
"""

import dataclasses
import math

import pytest

from bft_reliability.agents import (
    Agent,
    AgentOutput,
    ByzantineAgent,
    FailureMode,
    CORRUPTION_SHARE,
    CRASH_SHARE,
    HALLUCINATION_SHARE,
    DEFAULT_FAILURE_DISTRIBUTION,
    correct_value,
    splitmix64,
)
from bft_reliability.agents.failure_model import (
    COMPLEXITY_PENALTY,
    MAX_ADJUSTED_FAILURE_RATE,
    MAX_COMPLEXITY,
    adjusted_failure_rate,
    agent_key,
    task_complexity,
    select_failure_mode,
    unit_interval,
    validate_distribution,
)
from bft_reliability.exceptions import ConfigurationError


# =============================================================================
# Hashing
# =============================================================================

class TestHashing:
    """Tests for the splitmix64 primitives"""

    def test_splitmix64_reference_value(self):
        """First splitmix64 output for state 0 matches the reference generator"""
        assert splitmix64(0) == 0xE220A8397B1DCDAF

    def test_splitmix64_stays_64_bit(self):
        for x in (0, 1, 2**63, 2**64 - 1):
            assert 0 <= splitmix64(x) < 2**64

    def test_unit_interval_bounds(self):
        assert unit_interval(0) == 0.0
        assert unit_interval(2**64 - 1) < 1.0

    def test_string_keys_are_stable(self):
        """String ids are keyed via SHA-256, not the per-process hash()"""
        assert agent_key("claude") == agent_key("claude")
        assert agent_key("claude") != agent_key("opus")

    def test_integer_keys(self):
        assert agent_key(5) == 5
        assert agent_key(-1) == 2**64 - 1


# =============================================================================
# Determinism
# =============================================================================

class TestDeterminism:
    """Tests that execution is reproducible"""

    def test_execute_is_deterministic(self):
        agent = Agent(0, 0.3)
        assert agent.execute(42, 100) == agent.execute(42, 100)

    def test_equal_agents_agree(self):
        """Two separately built agents with the same parameters behave identically"""
        a = Agent("model-a", 0.4)
        b = Agent("model-a", 0.4)
        for task_id in range(200):
            assert a.execute(task_id, 9) == b.execute(task_id, 9)

    def test_no_hidden_state(self):
        """Calling in a different order does not change results"""
        agent = Agent(3, 0.5)
        forward = [agent.respond(t, 11) for t in range(100)]
        backward = [agent.respond(t, 11) for t in reversed(range(100))]
        assert forward == list(reversed(backward))

    def test_agent_ids_are_independent(self):
        """Different ids give different outcome sequences"""
        a = Agent("claude", 0.5)
        b = Agent("opus", 0.5)
        outcomes_a = [a.execute(t, 1)[0] for t in range(200)]
        outcomes_b = [b.execute(t, 1)[0] for t in range(200)]
        assert outcomes_a != outcomes_b

    def test_agent_is_immutable(self):
        agent = Agent(0, 0.2)
        with pytest.raises(dataclasses.FrozenInstanceError):
            agent.failure_rate = 0.5


# =============================================================================
# Failure Rate
# =============================================================================

class TestFailureRate:
    """Tests that failures occur at the configured rate"""

    def test_zero_failure_rate_always_succeeds(self, reliable_agent):
        for task_id in range(1000):
            assert reliable_agent.execute(task_id, 42) == (True, FailureMode.SUCCESS)

    def test_full_failure_rate_always_fails(self, failing_agent):
        for task_id in range(1000):
            succeeded, mode = failing_agent.execute(task_id, 42)
            assert succeeded is False
            assert mode != FailureMode.SUCCESS

    @pytest.mark.statistical
    def test_agent_respects_failure_rate(self):
        """~75% success for a 25% failure rate"""
        agent = Agent(0, 0.25)
        successes = sum(
            agent.execute(task_id, seed)[0]
            for task_id in range(100)
            for seed in range(100)
        )
        success_rate = successes / 10000
        assert 0.72 < success_rate < 0.78

    @pytest.mark.statistical
    def test_adjacent_tasks_are_uncorrelated(self):
        """Consecutive task ids do not fail together more than chance"""
        agent = Agent(0, 0.5)
        outcomes = [agent.execute(task_id, 0)[0] for task_id in range(10000)]
        same = sum(1 for a, b in zip(outcomes, outcomes[1:]) if a == b)
        assert 0.46 < same / 9999 < 0.54


# =============================================================================
# Failure Modes
# =============================================================================

class TestFailureModes:
    """Tests for the failure mode split"""

    def test_named_split(self):
        assert HALLUCINATION_SHARE == 0.60
        assert CORRUPTION_SHARE == 0.25
        assert CRASH_SHARE == 0.15
        assert math.isclose(sum(share for _, share in DEFAULT_FAILURE_DISTRIBUTION), 1.0)

    @pytest.mark.statistical
    def test_failure_mode_distribution(self, failing_agent):
        counts = {mode: 0 for mode in FailureMode}
        for task_id in range(10000):
            _, mode = failing_agent.execute(task_id, 42)
            counts[mode] += 1

        assert counts[FailureMode.SUCCESS] == 0
        assert 0.57 < counts[FailureMode.HALLUCINATION] / 10000 < 0.63
        assert 0.22 < counts[FailureMode.CORRUPTION] / 10000 < 0.28
        assert 0.12 < counts[FailureMode.CRASH] / 10000 < 0.18

    def test_custom_distribution(self):
        """A crash-only split makes every failure a crash"""
        agent = Agent(0, 1.0, distribution=((FailureMode.CRASH, 1.0),))
        for task_id in range(100):
            output = agent.respond(task_id, 0)
            assert output.mode == FailureMode.CRASH
            assert output.value is None

    def test_select_failure_mode_buckets(self):
        assert select_failure_mode(0.0, DEFAULT_FAILURE_DISTRIBUTION) == FailureMode.HALLUCINATION
        assert select_failure_mode(0.59, DEFAULT_FAILURE_DISTRIBUTION) == FailureMode.HALLUCINATION
        assert select_failure_mode(0.61, DEFAULT_FAILURE_DISTRIBUTION) == FailureMode.CORRUPTION
        assert select_failure_mode(0.86, DEFAULT_FAILURE_DISTRIBUTION) == FailureMode.CRASH
        assert select_failure_mode(0.9999999, DEFAULT_FAILURE_DISTRIBUTION) == FailureMode.CRASH

    def test_distribution_rejects_success(self):
        with pytest.raises(ConfigurationError, match="only contain failure modes"):
            validate_distribution(((FailureMode.SUCCESS, 1.0),))

    def test_distribution_must_sum_to_one(self):
        with pytest.raises(ConfigurationError, match="sum to 1.0"):
            validate_distribution(((FailureMode.CRASH, 0.5), (FailureMode.CORRUPTION, 0.4)))

    def test_distribution_rejects_negative_share(self):
        with pytest.raises(ConfigurationError):
            Agent(0, 0.5, distribution=((FailureMode.CRASH, 1.5), (FailureMode.CORRUPTION, -0.5)))

    def test_distribution_rejects_empty(self):
        with pytest.raises(ConfigurationError):
            validate_distribution(())


# =============================================================================
# Task Complexity
# =============================================================================

class TestTaskComplexity:
    """Tests for the per-level complexity penalty"""

    def test_levels_cycle_over_task_ids(self):
        assert [task_complexity(t) for t in range(7)] == [1, 2, 3, 4, 5, 1, 2]
        assert MAX_COMPLEXITY == 5

    def test_penalty_per_level(self):
        """0.13 base rate: +0.05 per level above 1"""
        agent = Agent(0, 0.13, complexity_penalty=COMPLEXITY_PENALTY)

        assert agent.effective_failure_rate(0) == 0.13
        assert agent.effective_failure_rate(2) == pytest.approx(0.23)
        assert agent.effective_failure_rate(4) == pytest.approx(0.33)

    def test_penalty_is_capped(self):
        agent = Agent(0, 0.9, complexity_penalty=COMPLEXITY_PENALTY)
        assert agent.effective_failure_rate(4) == MAX_ADJUSTED_FAILURE_RATE

    def test_cap_never_lowers_base_rate(self):
        assert adjusted_failure_rate(1.0, 5, COMPLEXITY_PENALTY) == 1.0
        agent = Agent(0, 1.0, complexity_penalty=COMPLEXITY_PENALTY)
        for task_id in range(500):
            assert agent.execute(task_id, 3)[0] is False

    def test_default_agent_is_complexity_blind(self):
        agent = Agent(0, 0.3)
        assert agent.complexity_penalty == 0.0
        assert {agent.effective_failure_rate(t) for t in range(10)} == {0.3}

    def test_penalty_keeps_execution_deterministic(self):
        agent = Agent("model", 0.2, complexity_penalty=0.1)
        assert [agent.execute(t, 5) for t in range(100)] == [agent.execute(t, 5) for t in range(100)]

    @pytest.mark.statistical
    def test_harder_tasks_fail_more_often(self):
        agent = Agent(0, 0.13, complexity_penalty=COMPLEXITY_PENALTY)
        passed = {level: 0 for level in range(1, MAX_COMPLEXITY + 1)}
        for task_id in range(5000):
            for seed in range(4):
                if agent.execute(task_id, seed)[0]:
                    passed[task_complexity(task_id)] += 1

        assert passed[1] > passed[3] > passed[5]

    @pytest.mark.parametrize("penalty", [-0.1, 1.5, float("nan"), True, "0.05"])
    def test_invalid_penalty_rejected(self, penalty):
        with pytest.raises(ConfigurationError) as exc_info:
            Agent(0, 0.2, complexity_penalty=penalty)
        assert exc_info.value.parameter == "complexity_penalty"


# =============================================================================
# Outputs
# =============================================================================

class TestOutputs:
    """Tests for the values agents return"""

    def test_success_returns_correct_value(self, reliable_agent):
        output = reliable_agent.respond(12, 3)
        assert isinstance(output, AgentOutput)
        assert output.succeeded is True
        assert output.value == correct_value(12)
        assert output.agent_id == "reliable"

    def test_wrong_values_differ_between_agents(self):
        """Two hallucinating agents never produce the same wrong answer"""
        hallucination_only = ((FailureMode.HALLUCINATION, 1.0),)
        a = Agent(0, 1.0, distribution=hallucination_only)
        b = Agent(1, 1.0, distribution=hallucination_only)
        for task_id in range(200):
            value_a = a.respond(task_id, 5).value
            value_b = b.respond(task_id, 5).value
            assert value_a != value_b
            assert value_a != correct_value(task_id)

    def test_corruption_is_malformed(self):
        agent = Agent(0, 1.0, distribution=((FailureMode.CORRUPTION, 1.0),))
        output = agent.respond(1, 1)
        assert output.mode == FailureMode.CORRUPTION
        assert output.value.startswith("<corrupted:")

    def test_execute_matches_respond(self):
        agent = Agent(9, 0.5)
        for task_id in range(100):
            succeeded, mode = agent.execute(task_id, 8)
            output = agent.respond(task_id, 8)
            assert output.succeeded == succeeded
            assert output.mode == mode

    def test_byzantine_agent_is_constant(self, byzantine_agent):
        for task_id in range(50):
            output = byzantine_agent.respond(task_id, task_id * 3)
            assert output.value == "wrong"
            assert output.mode == FailureMode.HALLUCINATION
        assert byzantine_agent.execute(0, 0) == (False, FailureMode.HALLUCINATION)
        assert byzantine_agent.failure_rate == 1.0

    def test_to_dict(self):
        data = Agent("a", 0.1).to_dict()
        assert data["agent_id"] == "a"
        assert data["failure_rate"] == 0.1
        assert data["distribution"]["hallucination"] == 0.60
        assert data["complexity_penalty"] == 0.0


# =============================================================================
# Configuration Errors
# =============================================================================

class TestConfigurationErrors:
    """Invalid failure rates fail fast and are never clamped"""

    @pytest.mark.parametrize("rate", [-0.1, 1.1, float("nan"), float("inf"), "0.5", None, True])
    def test_invalid_failure_rate(self, rate):
        with pytest.raises(ConfigurationError) as exc_info:
            Agent(0, rate)
        assert exc_info.value.parameter == "failure_rate"

    def test_configuration_error_is_value_error(self):
        with pytest.raises(ValueError):
            Agent(0, 2.0)

    @pytest.mark.parametrize("rate", [0, 0.0, 0.5, 1, 1.0])
    def test_boundary_rates_accepted(self, rate):
        assert Agent(0, rate).failure_rate == float(rate)
