"""
Unit tests for the duration anomaly classifier.
"""

from math import isclose

import pytest

from ormonitor.anomaly.baselines import BaselineStore
from ormonitor.anomaly.engine import (
    AnomalyClassifier,
    build_classifier,
    classify_phase,
    classify_phases,
)
from ormonitor.anomaly.schema import AnomalyLevel, Baseline, PhaseObservation
from ormonitor.anomaly.scoring import (
    LEVEL_ORDER,
    PercentageDeviationPolicy,
    PercentileThresholdPolicy,
)
from ormonitor.core.config import AnomalyConfig, DeviationThresholds
from ormonitor.core.exceptions import ConfigurationError

BASELINE_SHAPES = [
    Baseline(procedure_key="p", median_duration=0, std_dev=0, p80_threshold=0, p90_threshold=0),
    Baseline(procedure_key="p", median_duration=55, std_dev=12, p80_threshold=75, p90_threshold=90),
    Baseline(procedure_key="p", median_duration=78, std_dev=15, p80_threshold=95, p90_threshold=110),
    Baseline(procedure_key="p", median_duration=30, std_dev=0, p80_threshold=30, p90_threshold=30),
]
DURATIONS = [-15.0, -0.1, 0, 0.5, 1, 29.9, 30, 33, 54, 55, 60.5, 75, 90, 125, 600, 10_000]
POLICIES = [PercentageDeviationPolicy(), PercentileThresholdPolicy()]


class TestClassifyScenarios:
    """Reference scenarios for the canonical policy."""

    def test_far_over_baseline_is_critical(self, cholecystectomy_baseline):
        result = AnomalyClassifier().classify(125, cholecystectomy_baseline)

        assert result.level == AnomalyLevel.CRITICAL
        assert isclose(result.deviation_rate, 127.27, abs_tol=0.01)

    def test_within_baseline_is_normal(self, hip_baseline):
        result = AnomalyClassifier().classify(85, hip_baseline)

        assert result.level == AnomalyLevel.NORMAL
        assert isclose(result.deviation_rate, 8.97, abs_tol=0.01)

    def test_warning_band(self, hip_baseline):
        # 78 * 1.15 = 89.7
        result = AnomalyClassifier().classify(89.7, hip_baseline)
        assert result.level == AnomalyLevel.WARNING

    def test_not_started(self, hip_baseline):
        result = AnomalyClassifier().classify(0, hip_baseline)

        assert result.level == AnomalyLevel.NOT_STARTED
        assert result.deviation_rate == 0.0

    def test_not_started_without_baseline(self):
        result = AnomalyClassifier().classify(0, None)
        assert result.level == AnomalyLevel.NOT_STARTED

    def test_no_baseline(self):
        result = AnomalyClassifier().classify(30, None)

        assert result.level == AnomalyLevel.NO_BASELINE
        assert result.deviation_rate is None

    def test_negative_duration_clamped_to_not_started(self, cholecystectomy_baseline):
        result = AnomalyClassifier().classify(-20, cholecystectomy_baseline)

        assert result.level == AnomalyLevel.NOT_STARTED
        assert result.deviation_rate == 0.0

    def test_zero_median_has_no_rate(self):
        baseline = Baseline(
            procedure_key="p", median_duration=0, std_dev=0, p80_threshold=10, p90_threshold=20
        )
        result = AnomalyClassifier().classify(15, baseline)

        assert result.level == AnomalyLevel.NORMAL
        assert result.deviation_rate is None

    def test_classifier_leaves_reason_empty(self, hip_baseline):
        assert AnomalyClassifier().classify(85, hip_baseline).reason_text is None


class TestClassifyProperties:
    """Properties that hold for every in-domain input."""

    @pytest.mark.parametrize("policy", POLICIES, ids=lambda p: p.name)
    def test_total_over_domain(self, policy):
        classifier = AnomalyClassifier(policy=policy)
        for baseline in BASELINE_SHAPES + [None]:
            for actual in DURATIONS:
                result = classifier.classify(actual, baseline)
                assert result.level in set(AnomalyLevel)
                if result.deviation_rate is not None:
                    assert result.deviation_rate == result.deviation_rate  # not NaN

    @pytest.mark.parametrize("policy", POLICIES, ids=lambda p: p.name)
    def test_zero_is_always_not_started(self, policy):
        classifier = AnomalyClassifier(policy=policy)
        for baseline in BASELINE_SHAPES + [None]:
            assert classifier.classify(0, baseline).level == AnomalyLevel.NOT_STARTED

    def test_missing_baseline_never_numeric(self):
        classifier = AnomalyClassifier()
        for actual in DURATIONS:
            if actual <= 0:
                continue
            result = classifier.classify(actual, None)
            assert result.level == AnomalyLevel.NO_BASELINE
            assert result.deviation_rate is None

    def test_monotonic_in_duration(self):
        classifier = AnomalyClassifier()
        for baseline in BASELINE_SHAPES:
            if baseline.median_duration == 0:
                continue
            previous = None
            for tenth in range(1, 5000):
                level = classifier.classify(tenth / 10, baseline).level
                if previous is not None:
                    assert LEVEL_ORDER.index(level) >= LEVEL_ORDER.index(previous)
                previous = level

    def test_idempotent(self, cholecystectomy_baseline):
        classifier = AnomalyClassifier()
        assert classifier.classify(80, cholecystectomy_baseline) == classifier.classify(
            80, cholecystectomy_baseline
        )


class TestClassifyBoundary:
    """Out-of-contract inputs are rejected at the boundary."""

    @pytest.mark.parametrize("value", ["85", None, True, [85]])
    def test_non_numeric_duration(self, value, hip_baseline):
        with pytest.raises(TypeError):
            AnomalyClassifier().classify(value, hip_baseline)

    @pytest.mark.parametrize("value", [float("nan"), float("inf")])
    def test_non_finite_duration(self, value, hip_baseline):
        with pytest.raises(ValueError):
            AnomalyClassifier().classify(value, hip_baseline)

    def test_wrong_baseline_type(self):
        with pytest.raises(TypeError):
            AnomalyClassifier().classify(10, {"median_duration": 5})


def test_percentile_policy_classifier(cholecystectomy_baseline):
    classifier = AnomalyClassifier(policy=PercentileThresholdPolicy())

    assert classifier.classify(74, cholecystectomy_baseline).level == AnomalyLevel.NORMAL
    assert classifier.classify(75, cholecystectomy_baseline).level == AnomalyLevel.WARNING
    assert classifier.classify(90, cholecystectomy_baseline).level == AnomalyLevel.CRITICAL
    # the deviation rate is reported regardless of the policy
    assert isclose(classifier.classify(74, cholecystectomy_baseline).deviation_rate, 34.545, rel_tol=1e-3)


def test_classify_state_resolves_baseline(make_state, cholecystectomy_baseline, hip_baseline):
    store = BaselineStore.from_baselines([cholecystectomy_baseline, hip_baseline])
    classifier = AnomalyClassifier()

    chole = make_state(
        "op-1", actual=125, procedure="Laparoscopic cholecystectomy", surgeon="Zhao Weifeng"
    )
    assert classifier.classify_state(chole, store).level == AnomalyLevel.CRITICAL

    other_surgeon = make_state(
        "op-2", actual=125, procedure="Laparoscopic cholecystectomy", surgeon="Someone Else"
    )
    assert classifier.classify_state(other_surgeon, store).level == AnomalyLevel.NO_BASELINE

    hip = make_state("op-3", actual=85, surgeon="Lin Zehong")
    assert classifier.classify_state(hip, store).level == AnomalyLevel.NORMAL


class TestBuildClassifier:
    """Test classifier construction from configuration."""

    def test_default_is_percentage_deviation(self):
        classifier = build_classifier(AnomalyConfig())
        assert isinstance(classifier.policy, PercentageDeviationPolicy)

    def test_thresholds_passed_through(self):
        cfg = AnomalyConfig(thresholds={"warning": 0.2, "critical": 0.4})
        classifier = build_classifier(cfg)
        assert classifier.policy.thresholds.critical == 0.4

    def test_percentile_threshold(self):
        classifier = build_classifier(AnomalyConfig(policy="percentile_threshold"))
        assert isinstance(classifier.policy, PercentileThresholdPolicy)

    def test_unknown_policy(self):
        with pytest.raises(ConfigurationError):
            build_classifier(AnomalyConfig(policy="zscore"))


class TestPhaseClassification:
    """Test per-phase classification."""

    def test_phase_levels(self):
        phases = [
            PhaseObservation(name="Anesthesia induction", actual_duration=20, baseline_duration=20),
            PhaseObservation(name="Dissection", actual_duration=46, baseline_duration=40),
            PhaseObservation(name="Closure", actual_duration=0, baseline_duration=15),
        ]
        results = classify_phases(phases)

        assert [r.level for r in results] == [
            AnomalyLevel.NORMAL,
            AnomalyLevel.WARNING,
            AnomalyLevel.NOT_STARTED,
        ]
        assert isclose(results[1].deviation_rate, 15.0)

    def test_zero_baseline_phase(self):
        result = classify_phase(PhaseObservation(name="Prep", actual_duration=5, baseline_duration=0))

        assert result.level == AnomalyLevel.NORMAL
        assert result.deviation_rate is None

    def test_phase_uses_given_policy(self):
        policy = PercentageDeviationPolicy(thresholds=DeviationThresholds(warning=0.5, critical=1.0))
        result = classify_phase(
            PhaseObservation(name="Dissection", actual_duration=46, baseline_duration=40), policy
        )
        assert result.level == AnomalyLevel.NORMAL
