# bft_reliability/simulation/report.py
"""
Reliability Report - Compare a candidate configuration against a baseline

Statistics:
- absolute improvement: candidate success rate - baseline success rate,
  in percentage points
- relative failure reduction: (baseline failure rate - candidate failure
  rate) / baseline failure rate, so runs of different sizes compare fairly
- reliability multiplier: candidate success rate / baseline success rate
- cost multiplier: candidate agent calls per task / baseline's

A zero or undefined denominator yields None ("undefined" in to_dict),
never NaN or infinity.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional

from .harness import SimulationResult, render

logger = logging.getLogger("bft.simulation.report")


def _ratio(numerator: Optional[float], denominator: Optional[float]) -> Optional[float]:
    if numerator is None or denominator is None or denominator == 0:
        return None
    return numerator / denominator


@dataclass(frozen=True)
class ComparativeReport:
    """Comparison of two SimulationResults"""
    baseline: SimulationResult
    candidate: SimulationResult
    label: str = ""

    @property
    def absolute_improvement(self) -> Optional[float]:
        """Percentage points gained in success rate"""
        baseline_rate = self.baseline.success_rate()
        candidate_rate = self.candidate.success_rate()
        if baseline_rate is None or candidate_rate is None:
            return None
        return (candidate_rate - baseline_rate) * 100.0

    @property
    def relative_failure_reduction(self) -> Optional[float]:
        """Fraction of the baseline failure rate removed (negative if it grew)"""
        baseline_rate = self.baseline.failure_rate()
        candidate_rate = self.candidate.failure_rate()
        if baseline_rate is None or candidate_rate is None:
            return None
        return _ratio(baseline_rate - candidate_rate, baseline_rate)

    @property
    def reliability_multiplier(self) -> Optional[float]:
        return _ratio(self.candidate.success_rate(), self.baseline.success_rate())

    @property
    def cost_multiplier(self) -> Optional[float]:
        """Agent invocations per task relative to the baseline"""
        return _ratio(self.candidate.invocations_per_task(), self.baseline.invocations_per_task())

    @property
    def is_improvement(self) -> bool:
        improvement = self.absolute_improvement
        return improvement is not None and improvement > 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "label": self.label or self.candidate.strategy,
            "baseline_strategy": self.baseline.strategy,
            "candidate_strategy": self.candidate.strategy,
            "baseline_success_rate": render(self.baseline.success_rate()),
            "candidate_success_rate": render(self.candidate.success_rate()),
            "absolute_improvement_pp": render(self.absolute_improvement),
            "relative_failure_reduction": render(self.relative_failure_reduction),
            "reliability_multiplier": render(self.reliability_multiplier),
            "cost_multiplier": render(self.cost_multiplier),
        }


class ReliabilityReport:
    """Derives comparative statistics from one or more simulation results"""

    def __init__(self, baseline: SimulationResult):
        self.baseline = baseline

    def compare(self, candidate: SimulationResult, label: str = "") -> ComparativeReport:
        report = ComparativeReport(baseline=self.baseline, candidate=candidate, label=label)
        logger.info(
            f"Compared {label or candidate.strategy} against {self.baseline.strategy}: "
            f"improvement={render(report.absolute_improvement)} pp, "
            f"failure_reduction={render(report.relative_failure_reduction)}"
        )
        return report

    def compare_all(self, candidates: Mapping[str, SimulationResult]) -> List[ComparativeReport]:
        """Compare labelled candidates in the mapping's order"""
        return [self.compare(result, label=label) for label, result in candidates.items()]


def compare(baseline: SimulationResult, candidate: SimulationResult) -> ComparativeReport:
    """Compare a candidate result against a baseline result"""
    return ReliabilityReport(baseline).compare(candidate)
