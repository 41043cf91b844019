"""
Surgery duration anomaly classifier.

Compares a live surgery's elapsed duration against its resolved baseline and
emits a level plus the signed deviation rate. The classifier is a total
function over in-domain inputs: absence of a baseline, a surgery that has not
started, and a zero median are all represented as results, not raised.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from numbers import Real
from typing import Iterable, List, Optional

from ormonitor.core.config import AnomalyConfig
from ormonitor.core.exceptions import ConfigurationError

from .baselines import BaselineStore
from .schema import AnomalyLevel, AnomalyResult, Baseline, LiveSurgeryState, PhaseObservation
from .scoring import (
    ClassificationPolicy,
    PercentageDeviationPolicy,
    PercentileThresholdPolicy,
    deviation_rate,
)


def _check_duration(actual_duration_minutes: object) -> float:
    if isinstance(actual_duration_minutes, bool) or not isinstance(actual_duration_minutes, Real):
        raise TypeError(
            f"actual_duration_minutes must be a real number, got {type(actual_duration_minutes).__name__}"
        )
    value = float(actual_duration_minutes)
    if not math.isfinite(value):
        raise ValueError(f"actual_duration_minutes must be finite, got {value}")
    return value


@dataclass
class AnomalyClassifier:
    """
    Deterministic duration classifier.

    Notes:
    - Holds only its policy; no global configuration is read.
    - Negative durations are clamped to zero and reported as NOT_STARTED.
    """

    policy: ClassificationPolicy = field(default_factory=PercentageDeviationPolicy)

    def classify(
        self, actual_duration_minutes: float, baseline: Optional[Baseline]
    ) -> AnomalyResult:
        actual = max(_check_duration(actual_duration_minutes), 0.0)
        if baseline is not None and not isinstance(baseline, Baseline):
            raise TypeError(f"baseline must be a Baseline or None, got {type(baseline).__name__}")

        if actual == 0.0:
            return AnomalyResult(level=AnomalyLevel.NOT_STARTED, deviation_rate=0.0)

        if baseline is None:
            return AnomalyResult(level=AnomalyLevel.NO_BASELINE, deviation_rate=None)

        return AnomalyResult(
            level=self.policy.level(actual, baseline),
            deviation_rate=deviation_rate(actual, baseline.median_duration),
        )

    def classify_state(self, state: LiveSurgeryState, store: BaselineStore) -> AnomalyResult:
        """Resolve the state's baseline from the store and classify it."""
        baseline = store.lookup(state.procedure_key, state.surgeon_key)
        return self.classify(state.actual_duration_minutes, baseline)


def classify_phase(
    phase: PhaseObservation, policy: Optional[PercentageDeviationPolicy] = None
) -> AnomalyResult:
    """
    Classify one intraoperative phase against its baseline duration.

    Phases carry no percentiles, so the percentage-deviation rule is the only
    one that applies.
    """

    policy = policy or PercentageDeviationPolicy()
    if phase.actual_duration == 0:
        return AnomalyResult(level=AnomalyLevel.NOT_STARTED, deviation_rate=0.0)
    return AnomalyResult(
        level=policy.level_for_median(phase.actual_duration, phase.baseline_duration),
        deviation_rate=deviation_rate(phase.actual_duration, phase.baseline_duration),
    )


def classify_phases(
    phases: Iterable[PhaseObservation], policy: Optional[PercentageDeviationPolicy] = None
) -> List[AnomalyResult]:
    return [classify_phase(phase, policy) for phase in phases]


def build_policy(anomaly_config: AnomalyConfig) -> ClassificationPolicy:
    if anomaly_config.policy == "percentage_deviation":
        return PercentageDeviationPolicy(thresholds=anomaly_config.thresholds)
    if anomaly_config.policy == "percentile_threshold":
        return PercentileThresholdPolicy()
    raise ConfigurationError(f"Unknown classification policy: {anomaly_config.policy}")


def build_classifier(anomaly_config: AnomalyConfig) -> AnomalyClassifier:
    """Build a classifier from startup configuration."""
    return AnomalyClassifier(policy=build_policy(anomaly_config))
