"""
Record normalization: validate raw rows and convert them to classifier inputs.

Converts raw dicts from ingestion into validated records, then into the
Baseline and LiveSurgeryState objects the classifier consumes.

Design:
- Validation failures raise DataValidationError (fail fast, no partial rows)
- Elapsed minutes are measured against an explicit "now" for determinism
- Ingestion bookkeeping keys (prefixed with "_") are dropped before validation
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError

from ormonitor.anomaly.schema import Baseline, LiveSurgeryState
from ormonitor.core.exceptions import DataValidationError
from ormonitor.data.schema import AnomalyReasonRecord, BaselineRecord, OperationRecord
from ormonitor.data.timestamps import normalize_timestamp

logger = logging.getLogger(__name__)

RecordT = TypeVar("RecordT", bound=BaseModel)


def _strip_metadata(raw: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in raw.items() if not str(k).startswith("_")}


def _describe(raw: Dict[str, Any]) -> str:
    meta = raw.get("_metadata") or {}
    source = meta.get("source")
    position = meta.get("line_number", meta.get("index"))
    if source is None:
        return "record"
    return f"{source}:{position}"


def parse_record(raw: Dict[str, Any], model: Type[RecordT]) -> RecordT:
    """
    Validate a raw dict against a record model.

    Raises:
        DataValidationError: If any field is missing or malformed
    """
    try:
        return model.model_validate(_strip_metadata(raw))
    except ValidationError as e:
        raise DataValidationError(
            f"Invalid {model.__name__} at {_describe(raw)}: {e.errors(include_url=False)}"
        ) from e


def parse_records(raws: Iterable[Dict[str, Any]], model: Type[RecordT]) -> List[RecordT]:
    records = [parse_record(raw, model) for raw in raws]
    logger.debug("Validated %d %s rows", len(records), model.__name__)
    return records


def to_baseline(record: BaselineRecord) -> Baseline:
    """
    Convert a stored baseline row to a classifier Baseline.

    Raises:
        DataValidationError: If the percentile ordering is violated
    """
    try:
        return Baseline(
            procedure_key=record.operation_name,
            surgeon_key=record.surgeon_name,
            median_duration=record.median_duration,
            std_dev=record.std_dev,
            p80_threshold=record.warning_threshold_p80,
            p90_threshold=record.alert_threshold_p90,
        )
    except ValidationError as e:
        raise DataValidationError(
            f"Inconsistent baseline for {record.operation_name!r}/{record.surgeon_name!r}: "
            f"{e.errors(include_url=False)}"
        ) from e


def elapsed_minutes(record: OperationRecord, now: datetime) -> float:
    """
    Minutes between the operation start and now (or its end, if finished).

    Returns 0.0 when the surgery has no start time or starts in the future.
    """
    if record.operation_start_time is None:
        return 0.0
    end = record.operation_end_time or normalize_timestamp(now)
    seconds = (end - record.operation_start_time).total_seconds()
    return max(seconds / 60.0, 0.0)


def to_live_state(record: OperationRecord, now: Optional[datetime] = None) -> LiveSurgeryState:
    """
    Build the classifier's view of an operation record.

    Surgeries without a start time use patient_in_time (or now) as their
    ordering timestamp.
    """
    now = normalize_timestamp(now) if now is not None else datetime.now(timezone.utc)
    start = record.operation_start_time or record.patient_in_time or now
    return LiveSurgeryState(
        operation_id=record.operation_no,
        actual_duration_minutes=elapsed_minutes(record, now),
        start_timestamp=start,
        procedure_key=record.operation_name,
        surgeon_key=record.surgeon_name,
    )


def reasons_by_operation(records: Iterable[AnomalyReasonRecord]) -> Dict[str, str]:
    return {r.operation_no: r.anomaly_reason for r in records if r.anomaly_reason}
