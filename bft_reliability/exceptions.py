# bft_reliability/exceptions.py
"""
Error types shared across the engine.

NoConsensus is deliberately absent: a failed vote is an outcome
(see bft_consensus.strategies), not an exception.
"""


class ConfigurationError(ValueError):
    """Raised when an agent, quorum or strategy is built from invalid parameters"""

    def __init__(self, message: str, parameter: str = "", value=None):
        self.parameter = parameter
        self.value = value
        super().__init__(message)
