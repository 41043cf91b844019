"""
Upstream record schema for the duration monitor.

These models mirror the rows served by the operating-room data store
(operation records, per-procedure baselines, and annotated anomaly reasons).
Every record is validated on construction; the data layer rejects malformed
rows instead of passing partial records to the classifier.

Design rationale:
- All timestamps are normalized to timezone-aware UTC
- Empty strings from CSV sources are treated as missing values
- Column names follow the store's naming, including its legacy aliases
"""

from datetime import date, datetime
from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from ormonitor.data.timestamps import normalize_timestamp


def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str) and not value.strip():
        return None
    return value


class OperationRecord(BaseModel):
    """
    A scheduled or running surgery.

    Attributes:
        operation_no: Unique operation number
        operation_date: Calendar day of the surgery (optional)
        operation_room: Operating room label
        operation_name: Procedure name, used as the baseline procedure key
        dept_name: Department
        diagnosis_name: Primary diagnosis
        surgeon_name: Performing surgeon, used as the baseline surgeon key
        patient_in_time: Time the patient entered the room (optional)
        operation_start_time: Intraoperative start (optional until started)
        operation_end_time: End of surgery; None while in progress
        status: Free-text status from the store
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    operation_no: str = Field(..., min_length=1, max_length=64)
    operation_date: Optional[date] = None
    operation_room: str = Field(..., min_length=1)
    operation_name: str = Field(..., min_length=1)
    dept_name: Optional[str] = None
    diagnosis_name: Optional[str] = None
    surgeon_name: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("surgeon_name", "surgen_name"),
    )
    patient_in_time: Optional[datetime] = None
    operation_start_time: Optional[datetime] = None
    operation_end_time: Optional[datetime] = None
    status: Optional[str] = None

    @field_validator(
        "operation_date",
        "dept_name",
        "diagnosis_name",
        "surgeon_name",
        "status",
        mode="before",
    )
    @classmethod
    def _blank_optional(cls, value: Any) -> Any:
        return _blank_to_none(value)

    @field_validator(
        "patient_in_time",
        "operation_start_time",
        "operation_end_time",
        mode="before",
    )
    @classmethod
    def _normalize_timestamps(cls, value: Any) -> Any:
        value = _blank_to_none(value)
        if value is None:
            return None
        return normalize_timestamp(value)

    @property
    def in_progress(self) -> bool:
        return self.operation_end_time is None


class BaselineRecord(BaseModel):
    """
    Historical duration statistics for a procedure (and optionally a surgeon).

    A blank surgeon_name marks the procedure-wide baseline.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    operation_name: str = Field(..., min_length=1)
    surgeon_name: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("surgeon_name", "surgen_name"),
    )
    median_duration: float = Field(..., ge=0.0)
    std_dev: float = Field(..., ge=0.0)
    warning_threshold_p80: float = Field(..., ge=0.0)
    alert_threshold_p90: float = Field(..., ge=0.0)

    @field_validator("surgeon_name", mode="before")
    @classmethod
    def _blank_surgeon(cls, value: Any) -> Any:
        return _blank_to_none(value)


class AnomalyReasonRecord(BaseModel):
    """
    Externally supplied justification for a surgery's anomaly.

    Only the reason text is consumed; any stored level or rate in the same row
    is ignored because levels are always recomputed.
    """

    model_config = ConfigDict(extra="ignore", frozen=True)

    operation_no: str = Field(..., min_length=1)
    anomaly_reason: Optional[str] = None

    @field_validator("anomaly_reason", mode="before")
    @classmethod
    def _blank_reason(cls, value: Any) -> Any:
        return _blank_to_none(value)
