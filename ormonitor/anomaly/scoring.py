"""
Deviation metrics and level assignment policies.

Two threshold rules exist for duration classification and they disagree near
the boundaries, so each is a named policy behind one interface:

- PercentageDeviationPolicy (canonical): relative deviation from the median.
- PercentileThresholdPolicy: absolute comparison against P80/P90.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Optional

from ormonitor.core.config import DeviationThresholds

from .schema import AnomalyLevel, Baseline

LEVEL_ORDER = [
    AnomalyLevel.NOT_STARTED,
    AnomalyLevel.NO_BASELINE,
    AnomalyLevel.NORMAL,
    AnomalyLevel.WARNING,
    AnomalyLevel.CRITICAL,
]


def deviation_ratio(actual: float, median: float) -> Optional[float]:
    """(actual - median) / median, or None when the median is zero."""
    if median == 0:
        return None
    return (actual - median) / median


def deviation_rate(actual: float, median: float) -> Optional[float]:
    """Signed percentage deviation from the median, or None when not applicable."""
    ratio = deviation_ratio(actual, median)
    if ratio is None:
        return None
    return ratio * 100.0


class ClassificationPolicy(ABC):
    """
    Maps a started surgery's duration and its baseline to a level.

    Implementations only ever see actual > 0 and a resolved baseline; the
    NotStarted and NoBaseline cases are decided before a policy is consulted.
    """

    name: str = ""

    @abstractmethod
    def level(self, actual: float, baseline: Baseline) -> AnomalyLevel:
        ...


@dataclass
class PercentageDeviationPolicy(ClassificationPolicy):
    """
    Relative deviation from the median.

    >= thresholds.critical -> CRITICAL, >= thresholds.warning -> WARNING,
    otherwise NORMAL. A zero median cannot be scored and maps to NORMAL.
    """

    thresholds: DeviationThresholds = field(default_factory=DeviationThresholds)
    name: str = "percentage_deviation"

    def level(self, actual: float, baseline: Baseline) -> AnomalyLevel:
        return self.level_for_median(actual, baseline.median_duration)

    def level_for_median(self, actual: float, median: float) -> AnomalyLevel:
        ratio = deviation_ratio(actual, median)
        if ratio is None:
            return AnomalyLevel.NORMAL
        if ratio >= self.thresholds.critical:
            return AnomalyLevel.CRITICAL
        if ratio >= self.thresholds.warning:
            return AnomalyLevel.WARNING
        return AnomalyLevel.NORMAL


@dataclass
class PercentileThresholdPolicy(ClassificationPolicy):
    """
    Absolute comparison against historical percentiles.

    actual >= P90 -> CRITICAL, actual >= P80 -> WARNING, otherwise NORMAL.
    """

    name: str = "percentile_threshold"

    def level(self, actual: float, baseline: Baseline) -> AnomalyLevel:
        if actual >= baseline.p90_threshold:
            return AnomalyLevel.CRITICAL
        if actual >= baseline.p80_threshold:
            return AnomalyLevel.WARNING
        return AnomalyLevel.NORMAL


def overall_level(*levels: AnomalyLevel) -> AnomalyLevel:
    """
    Return the most severe level among inputs.
    """

    if not levels:
        return AnomalyLevel.NOT_STARTED
    highest_index = max(LEVEL_ORDER.index(level) for level in levels)
    return LEVEL_ORDER[highest_index]
