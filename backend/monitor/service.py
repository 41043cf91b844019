"""
Worklist monitor.

Runs one poll cycle: read a feed snapshot, resolve baselines, classify every
in-progress surgery, attach external reasons, rank, and publish. The new
snapshot replaces the previous one in a single assignment so readers never
observe a partially updated cycle.
"""

from __future__ import annotations

import logging
import threading
from datetime import datetime, timezone
from typing import Dict, List, Optional, Tuple

from ormonitor.anomaly.baselines import BaselineStore
from ormonitor.anomaly.engine import AnomalyClassifier
from ormonitor.anomaly.schema import AnomalyResult, Baseline, LiveSurgeryState
from ormonitor.anomaly.worklist import level_weight, rank
from ormonitor.core.config import WorklistConfig
from ormonitor.data.feed import FeedSnapshot, SurgeryFeed
from ormonitor.data.normalizers import to_live_state
from ormonitor.data.schema import OperationRecord
from ormonitor.data.timestamps import normalize_timestamp

from .schema import WorklistEntry, WorklistSnapshot

logger = logging.getLogger(__name__)


class WorklistMonitor:
    """
    Polls a feed and publishes ranked worklist snapshots.

    Notes:
    - Completed surgeries are skipped unless settings.include_completed.
    - A DataUnavailableError from the feed propagates; the previously
      published snapshot stays in place.
    - Poll cycles and feed reads hold one lock, so feed state and the
      published snapshot always come from the same cycle.
    """

    def __init__(
        self,
        feed: SurgeryFeed,
        classifier: Optional[AnomalyClassifier] = None,
        settings: Optional[WorklistConfig] = None,
    ) -> None:
        self.feed = feed
        self.classifier = classifier or AnomalyClassifier()
        self.settings = settings or WorklistConfig()
        self.latest: Optional[WorklistSnapshot] = None
        self._lock = threading.Lock()

    def poll(self, now: Optional[datetime] = None) -> WorklistSnapshot:
        """Run one poll cycle. Concurrent callers are serialized."""
        with self._lock:
            return self._poll(now)

    def fetch(self) -> FeedSnapshot:
        """Read the feed under the poll lock."""
        with self._lock:
            return self.feed.fetch()

    def _poll(self, now: Optional[datetime]) -> WorklistSnapshot:
        now = normalize_timestamp(now) if now is not None else datetime.now(timezone.utc)
        feed_snapshot = self.feed.fetch()
        store = BaselineStore.from_baselines(feed_snapshot.baselines)

        records: Dict[str, Tuple[OperationRecord, Optional[Baseline]]] = {}
        pairs: List[Tuple[LiveSurgeryState, AnomalyResult]] = []
        for record in feed_snapshot.operations:
            if not record.in_progress and not self.settings.include_completed:
                continue
            state = to_live_state(record, now)
            baseline = store.lookup(state.procedure_key, state.surgeon_key)
            result = self.classifier.classify(state.actual_duration_minutes, baseline)
            result = result.with_reason(feed_snapshot.reasons.get(record.operation_no))
            records[record.operation_no] = (record, baseline)
            pairs.append((state, result))

        ranked = rank(pairs, newest_first=self.settings.newest_first)
        entries = [
            self._entry(records[state.operation_id][0], records[state.operation_id][1], state, result)
            for state, result in ranked
        ]

        snapshot = WorklistSnapshot(
            generated_at=now,
            feed_state=self.feed.state,
            source=feed_snapshot.source,
            policy=self.classifier.policy.name,
            entries=entries,
        )
        self.latest = snapshot
        logger.info(
            "Published worklist: %d surgeries, feed=%s",
            len(entries),
            snapshot.feed_state.value,
        )
        return snapshot

    def lookup(self, operation_no: str) -> Optional[WorklistEntry]:
        if self.latest is None:
            return None
        return self.latest.entry(operation_no)

    def _entry(
        self,
        record: OperationRecord,
        baseline: Optional[Baseline],
        state: LiveSurgeryState,
        result: AnomalyResult,
    ) -> WorklistEntry:
        return WorklistEntry(
            operation_no=record.operation_no,
            operation_room=record.operation_room,
            operation_name=record.operation_name,
            surgeon_name=record.surgeon_name,
            dept_name=record.dept_name,
            start_time=state.start_timestamp,
            actual_duration_minutes=state.actual_duration_minutes,
            level=result.level,
            deviation_rate=result.deviation_rate,
            priority=level_weight(result.level),
            baseline_median=baseline.median_duration if baseline else None,
            baseline_std_dev=baseline.std_dev if baseline else None,
            baseline_p80=baseline.p80_threshold if baseline else None,
            baseline_p90=baseline.p90_threshold if baseline else None,
            reason_text=result.reason_text,
        )
