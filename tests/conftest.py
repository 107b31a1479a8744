"""
pytest configuration for the BFT reliability test suite
"""

import pytest

from bft_reliability.agents import Agent, ByzantineAgent
from bft_reliability.simulation import SimulationConfig


@pytest.fixture
def small_config():
    """10 trials x 50 tasks, enough to exercise aggregation quickly"""
    return SimulationConfig(trials=10, tasks_per_trial=50, base_seed=7)


@pytest.fixture
def reliable_agent():
    """Agent that never fails"""
    return Agent("reliable", 0.0)


@pytest.fixture
def failing_agent():
    """Agent that always fails"""
    return Agent("failing", 1.0)


@pytest.fixture
def byzantine_agent():
    """Agent that always returns the same wrong answer"""
    return ByzantineAgent("byzantine", wrong_value="wrong")


def pytest_configure(config):
    """Configure pytest with custom markers"""
    config.addinivalue_line("markers", "asyncio: mark test as async")
    config.addinivalue_line("markers", "statistical: outcome depends on large-sample rates")
