"""
Schema definitions for surgery duration anomaly classification.

All classification outputs are deterministic and explainable. Each result
carries the level and the signed deviation from the historical median; the
optional reason text is supplied by an external collaborator and never feeds
back into the level.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class AnomalyLevel(str, Enum):
    """Severity levels for a live surgery."""

    NOT_STARTED = "not_started"
    NO_BASELINE = "no_baseline"
    NORMAL = "normal"
    WARNING = "warning"
    CRITICAL = "critical"


class Baseline(BaseModel):
    """
    Historical duration statistics for a procedure, optionally narrowed by surgeon.

    Fields (minutes):
    - median_duration: central historical value
    - std_dev: dispersion of historical durations
    - p80_threshold / p90_threshold: 80th and 90th percentile durations

    Invariant: p90 >= p80 >= median >= 0 and std_dev >= 0.
    """

    model_config = ConfigDict(frozen=True)

    procedure_key: str = Field(..., min_length=1)
    surgeon_key: Optional[str] = None
    median_duration: float = Field(..., ge=0.0)
    std_dev: float = Field(..., ge=0.0)
    p80_threshold: float = Field(..., ge=0.0)
    p90_threshold: float = Field(..., ge=0.0)

    @model_validator(mode="after")
    def _check_percentile_order(self) -> "Baseline":
        if not self.p90_threshold >= self.p80_threshold >= self.median_duration:
            raise ValueError(
                "baseline thresholds must satisfy p90 >= p80 >= median "
                f"(got median={self.median_duration}, p80={self.p80_threshold}, "
                f"p90={self.p90_threshold})"
            )
        return self


class LiveSurgeryState(BaseModel):
    """
    Current observation of a surgery being classified.

    Fields:
    - operation_id: unique identifier
    - actual_duration_minutes: elapsed minutes since start; 0 means not started
    - start_timestamp: used only to break ordering ties
    - procedure_key / surgeon_key: baseline resolution keys
    """

    model_config = ConfigDict(frozen=True)

    operation_id: str = Field(..., min_length=1)
    actual_duration_minutes: float = 0.0
    start_timestamp: datetime
    procedure_key: str = Field(..., min_length=1)
    surgeon_key: Optional[str] = None

    @field_validator("start_timestamp")
    @classmethod
    def _to_utc(cls, value: datetime) -> datetime:
        # Naive timestamps are UTC so that mixed inputs stay comparable
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)


class AnomalyResult(BaseModel):
    """
    Classification output for one surgery. Never mutated after creation.

    Fields:
    - level: categorical severity
    - deviation_rate: signed percentage vs. the median; None when not applicable
      (no baseline, or a zero median)
    - reason_text: optional external justification
    """

    model_config = ConfigDict(frozen=True)

    level: AnomalyLevel
    deviation_rate: Optional[float] = None
    reason_text: Optional[str] = None

    @property
    def is_scored(self) -> bool:
        """True when the level reflects a comparison against a baseline."""
        return self.level in (AnomalyLevel.NORMAL, AnomalyLevel.WARNING, AnomalyLevel.CRITICAL)

    def with_reason(self, reason_text: Optional[str]) -> "AnomalyResult":
        return self.model_copy(update={"reason_text": reason_text})


class PhaseObservation(BaseModel):
    """
    Elapsed duration of a single intraoperative phase against its baseline.
    """

    name: str = Field(..., min_length=1)
    actual_duration: float = Field(..., ge=0.0)
    baseline_duration: float = Field(..., ge=0.0)
