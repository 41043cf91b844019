"""
Anomaly module: surgery duration classification and worklist ordering.

Implements baseline lookup, the duration classifier with its named policies,
and severity-first ranking of live surgeries.
"""

from .baselines import BaselineStore
from .engine import (
    AnomalyClassifier,
    build_classifier,
    build_policy,
    classify_phase,
    classify_phases,
)
from .schema import AnomalyLevel, AnomalyResult, Baseline, LiveSurgeryState, PhaseObservation
from .scoring import (
    ClassificationPolicy,
    PercentageDeviationPolicy,
    PercentileThresholdPolicy,
    deviation_rate,
    overall_level,
)
from .worklist import LEVEL_WEIGHTS, WorklistEntry, level_weight, rank

__all__ = [
    "AnomalyClassifier",
    "AnomalyLevel",
    "AnomalyResult",
    "Baseline",
    "BaselineStore",
    "LiveSurgeryState",
    "PhaseObservation",
    "ClassificationPolicy",
    "PercentageDeviationPolicy",
    "PercentileThresholdPolicy",
    "build_classifier",
    "build_policy",
    "classify_phase",
    "classify_phases",
    "deviation_rate",
    "overall_level",
    "LEVEL_WEIGHTS",
    "WorklistEntry",
    "level_weight",
    "rank",
]
