"""
Quorum Calculator Tests

BFT sizing: n = 3f + 1 agents, threshold = 2f + 1 matching votes.
"""

import pytest

from bft_reliability.bft_consensus import QuorumCalculator, agent_count, threshold
from bft_reliability.exceptions import ConfigurationError


class TestQuorumFormula:
    """Tests for the n = 3f + 1 / threshold = 2f + 1 formula"""

    def test_quorum_configuration(self):
        """f=2 gives n=7, threshold=5"""
        quorum = QuorumCalculator(fault_tolerance=2)

        assert quorum.f == 2
        assert quorum.n == 7
        assert quorum.threshold == 5  # 2*2 + 1 = 5

    @pytest.mark.parametrize("f", range(0, 50))
    def test_quorum_formula(self, f):
        quorum = QuorumCalculator(f)

        assert quorum.n == 3 * f + 1
        assert quorum.threshold == 2 * f + 1
        assert agent_count(f) == 3 * f + 1
        assert threshold(f) == 2 * f + 1

    def test_zero_fault_tolerance(self):
        """f=0 degenerates to a single agent"""
        quorum = QuorumCalculator(0)
        assert quorum.n == 1
        assert quorum.threshold == 1

    @pytest.mark.parametrize("f", range(0, 30))
    def test_threshold_exceeds_half(self, f):
        """At most one value can reach threshold"""
        quorum = QuorumCalculator(f)
        assert 2 * quorum.threshold > quorum.n

    @pytest.mark.parametrize("f", [-1, -5])
    def test_negative_fault_tolerance_rejected(self, f):
        with pytest.raises(ConfigurationError, match="must be >= 0"):
            QuorumCalculator(f)
        with pytest.raises(ConfigurationError):
            agent_count(f)
        with pytest.raises(ConfigurationError):
            threshold(f)

    @pytest.mark.parametrize("f", [1.5, "2", True, None])
    def test_non_integer_fault_tolerance_rejected(self, f):
        with pytest.raises(ConfigurationError):
            QuorumCalculator(f)


class TestPools:
    """Tests for explicit pool sizes"""

    def test_larger_pool_keeps_bft_threshold(self):
        """n=9, f=2: threshold stays 2f + 1 = 5"""
        quorum = QuorumCalculator(fault_tolerance=2, pool_size=9)
        assert quorum.n == 9
        assert quorum.threshold == 5

    def test_larger_pool_keeps_majority(self):
        """n=10, f=2: threshold rises to a strict majority"""
        quorum = QuorumCalculator(fault_tolerance=2, pool_size=10)
        assert quorum.threshold == 6

    def test_bft_requirement_validation(self):
        """n >= 3f + 1 must be satisfied"""
        with pytest.raises(ConfigurationError, match="BFT requires n >= 3f \\+ 1"):
            QuorumCalculator(fault_tolerance=2, pool_size=5)

    def test_for_pool_three_agents(self):
        """Three agents support f=0 and need a 2-of-3 majority"""
        quorum = QuorumCalculator.for_pool(3)
        assert quorum.f == 0
        assert quorum.n == 3
        assert quorum.threshold == 2

    def test_for_pool_canonical_sizes(self):
        for f in range(0, 10):
            quorum = QuorumCalculator.for_pool(3 * f + 1)
            assert quorum.f == f
            assert quorum.threshold == 2 * f + 1

    @pytest.mark.parametrize("size", range(1, 40))
    def test_for_pool_threshold_exceeds_half(self, size):
        quorum = QuorumCalculator.for_pool(size)
        assert 2 * quorum.threshold > size
        assert quorum.threshold >= 2 * quorum.f + 1

    @pytest.mark.parametrize("size", [0, -3])
    def test_empty_pool_rejected(self, size):
        with pytest.raises(ConfigurationError):
            QuorumCalculator.for_pool(size)


class TestQuorumChecks:
    """Tests for vote counting helpers"""

    def test_has_quorum(self):
        quorum = QuorumCalculator(2)

        assert quorum.has_quorum(4) is False
        assert quorum.has_quorum(5) is True
        assert quorum.has_quorum(7) is True

    def test_to_dict(self):
        data = QuorumCalculator(1).to_dict()

        assert data["fault_tolerance"] == 1
        assert data["agents"] == 4
        assert data["threshold"] == 3
        assert "3f + 1" in data["formula"]
