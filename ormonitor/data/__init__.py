"""
Data module: record ingestion, validation, and the fallback feed.

Responsible for turning exports of the operating-room store into validated
inputs for the classifier. Pipeline:

    Raw rows (JSON/CSV or bundled sample)
        ↓
    Ingestion (ormonitor/data/ingestion.py)
        ↓
    Validation (ormonitor/data/schema.py, normalizers.py) → OperationRecord, Baseline
        ↓
    Feed (ormonitor/data/feed.py) → FeedSnapshot, FeedState
        ↓
    Live state conversion (normalizers.to_live_state) → LiveSurgeryState
"""

from ormonitor.data.feed import (
    FeedSnapshot,
    FeedState,
    FileSurgerySource,
    RecordSetSource,
    SampleSurgerySource,
    SurgeryDataSource,
    SurgeryFeed,
    build_feed,
)
from ormonitor.data.ingestion import (
    CSVRecordSource,
    JSONRecordSource,
    ingest_records,
    load_anomaly_reasons,
    load_baselines,
    load_operations,
)
from ormonitor.data.normalizers import (
    elapsed_minutes,
    parse_record,
    parse_records,
    reasons_by_operation,
    to_baseline,
    to_live_state,
)
from ormonitor.data.schema import (
    AnomalyReasonRecord,
    BaselineRecord,
    OperationRecord,
)
from ormonitor.data.timestamps import TimestampError, normalize_timestamp

__all__ = [
    # Schema
    "OperationRecord",
    "BaselineRecord",
    "AnomalyReasonRecord",

    # Ingestion
    "ingest_records",
    "JSONRecordSource",
    "CSVRecordSource",
    "load_operations",
    "load_baselines",
    "load_anomaly_reasons",

    # Normalization
    "normalize_timestamp",
    "TimestampError",
    "parse_record",
    "parse_records",
    "to_baseline",
    "to_live_state",
    "elapsed_minutes",
    "reasons_by_operation",

    # Feed
    "FeedSnapshot",
    "FeedState",
    "SurgeryDataSource",
    "RecordSetSource",
    "SampleSurgerySource",
    "FileSurgerySource",
    "SurgeryFeed",
    "build_feed",
]
