"""
Data sources and the fallback feed for live surgery records.

A feed wraps a primary source and falls back explicitly:

    LIVE         primary source answered; its snapshot is cached
    DEGRADED     primary failed; the last good (or seed) snapshot is served
    UNAVAILABLE  primary failed and nothing is cached; DataUnavailableError

The classifier never sees this state machine; it only receives the snapshot.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Union

from pydantic import BaseModel, Field, ValidationError, model_validator

from ormonitor.anomaly.schema import Baseline
from ormonitor.core.config import DataConfig
from ormonitor.core.exceptions import DataSourceError, DataUnavailableError, DataValidationError
from ormonitor.data.ingestion import load_anomaly_reasons, load_baselines, load_operations
from ormonitor.data.normalizers import parse_records, reasons_by_operation, to_baseline
from ormonitor.data.sample import SAMPLE_ANOMALY_REASONS, SAMPLE_BASELINES, SAMPLE_OPERATIONS
from ormonitor.data.schema import AnomalyReasonRecord, BaselineRecord, OperationRecord

logger = logging.getLogger(__name__)


class FeedState(str, Enum):
    """Availability of the data behind the worklist."""

    LIVE = "live"
    DEGRADED = "degraded"
    UNAVAILABLE = "unavailable"


class FeedSnapshot(BaseModel):
    """
    One consistent read of the data store.

    Fields:
    - operations: validated operation records
    - baselines: classifier baselines
    - reasons: operation_no -> external anomaly reason text
    - fetched_at: when the source was read
    - source: name of the source that produced it
    """

    operations: List[OperationRecord]
    baselines: List[Baseline] = Field(default_factory=list)
    reasons: Dict[str, str] = Field(default_factory=dict)
    fetched_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    source: str = "unknown"

    @model_validator(mode="after")
    def _check_unique_operations(self) -> "FeedSnapshot":
        seen = set()
        for record in self.operations:
            if record.operation_no in seen:
                raise ValueError(f"Duplicate operation_no in snapshot: {record.operation_no}")
            seen.add(record.operation_no)
        return self

    def operation(self, operation_no: str) -> Optional[OperationRecord]:
        return next((r for r in self.operations if r.operation_no == operation_no), None)


def _build_snapshot(**fields: Any) -> FeedSnapshot:
    try:
        return FeedSnapshot(**fields)
    except ValidationError as e:
        raise DataValidationError(f"Invalid snapshot: {e.errors(include_url=False)}") from e


class SurgeryDataSource(ABC):
    """Supplies validated snapshots of operations and baselines."""

    name: str = "source"

    @abstractmethod
    def fetch(self) -> FeedSnapshot:
        """
        Read a full snapshot.

        Raises:
            DataSourceError: If the source cannot be read
            DataValidationError: If any record is malformed
        """


class RecordSetSource(SurgeryDataSource):
    """Source backed by in-memory raw rows."""

    name = "records"

    def __init__(
        self,
        operations: Iterable[Dict[str, Any]],
        baselines: Iterable[Dict[str, Any]] = (),
        reasons: Iterable[Dict[str, Any]] = (),
    ) -> None:
        self._operations = [dict(r) for r in operations]
        self._baselines = [dict(r) for r in baselines]
        self._reasons = [dict(r) for r in reasons]

    def fetch(self) -> FeedSnapshot:
        return _build_snapshot(
            operations=parse_records(self._operations, OperationRecord),
            baselines=[to_baseline(r) for r in parse_records(self._baselines, BaselineRecord)],
            reasons=reasons_by_operation(parse_records(self._reasons, AnomalyReasonRecord)),
            source=self.name,
        )


class SampleSurgerySource(RecordSetSource):
    """The bundled sample rows."""

    name = "sample"

    def __init__(self) -> None:
        super().__init__(SAMPLE_OPERATIONS, SAMPLE_BASELINES, SAMPLE_ANOMALY_REASONS)


class FileSurgerySource(SurgeryDataSource):
    """
    Source backed by JSON/CSV exports.

    A missing baselines file means every surgery is unscored (NoBaseline);
    a missing reasons file means no reason text.
    """

    name = "file"

    def __init__(
        self,
        operations_path: Union[str, Path],
        baselines_path: Optional[Union[str, Path]] = None,
        reasons_path: Optional[Union[str, Path]] = None,
    ) -> None:
        self.operations_path = Path(operations_path)
        self.baselines_path = Path(baselines_path) if baselines_path else None
        self.reasons_path = Path(reasons_path) if reasons_path else None

    def fetch(self) -> FeedSnapshot:
        operations = load_operations(self.operations_path)
        baselines: List[Baseline] = []
        if self.baselines_path is not None:
            baselines = [to_baseline(r) for r in load_baselines(self.baselines_path)]
        reasons: Dict[str, str] = {}
        if self.reasons_path is not None:
            reasons = reasons_by_operation(load_anomaly_reasons(self.reasons_path))
        logger.debug(
            "Read %d operations and %d baselines from %s",
            len(operations),
            len(baselines),
            self.operations_path,
        )
        return _build_snapshot(
            operations=operations,
            baselines=baselines,
            reasons=reasons,
            source=f"{self.name}:{self.operations_path}",
        )


class SurgeryFeed:
    """
    Primary source with cache and optional seed fallback.

    The seed source is only read once, the first time the primary fails with
    nothing cached.
    """

    def __init__(
        self,
        primary: SurgeryDataSource,
        seed: Optional[SurgeryDataSource] = None,
    ) -> None:
        self.primary = primary
        self.seed = seed
        self.state = FeedState.UNAVAILABLE
        self.last_error: Optional[Exception] = None
        self._cache: Optional[FeedSnapshot] = None

    def fetch(self) -> FeedSnapshot:
        try:
            snapshot = self.primary.fetch()
        except (DataSourceError, DataValidationError) as e:
            self.last_error = e
            return self._fallback(e)

        if self.state != FeedState.LIVE:
            logger.info("Feed is live (source=%s)", snapshot.source)
        self.state = FeedState.LIVE
        self.last_error = None
        self._cache = snapshot
        return snapshot

    def _fallback(self, error: Exception) -> FeedSnapshot:
        logger.warning("Primary source %s failed: %s", self.primary.name, error)

        if self._cache is None and self.seed is not None:
            try:
                self._cache = self.seed.fetch()
            except (DataSourceError, DataValidationError) as seed_error:
                logger.error("Seed source %s failed: %s", self.seed.name, seed_error)

        if self._cache is not None:
            self.state = FeedState.DEGRADED
            logger.warning(
                "Serving cached snapshot from %s fetched at %s",
                self._cache.source,
                self._cache.fetched_at.isoformat(),
            )
            return self._cache

        self.state = FeedState.UNAVAILABLE
        raise DataUnavailableError(f"No data available: {error}") from error


def build_feed(data_config: DataConfig) -> SurgeryFeed:
    """
    Build the feed from configuration.

    With an operations export configured the sample rows act as seed;
    otherwise the sample rows are the primary source.
    """
    if data_config.operations_path is None:
        return SurgeryFeed(SampleSurgerySource())
    primary = FileSurgerySource(
        data_config.operations_path,
        baselines_path=data_config.baselines_path,
        reasons_path=data_config.reasons_path,
    )
    return SurgeryFeed(primary, seed=SampleSurgerySource())
