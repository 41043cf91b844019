"""
Integration test for the full monitoring pipeline.

Tests end-to-end flow from record exports to a ranked worklist.
"""

import json

import pytest

from backend.monitor import WorklistMonitor
from ormonitor.anomaly import AnomalyLevel, build_classifier
from ormonitor.core.config import AnomalyConfig, DataConfig, WorklistConfig
from ormonitor.core.exceptions import DataUnavailableError
from ormonitor.data import FeedState, FileSurgerySource, SurgeryFeed, build_feed

pytestmark = pytest.mark.integration


BASELINES_CSV = (
    "operation_name,surgen_name,median_duration,std_dev,warning_threshold_p80,alert_threshold_p90\n"
    "Laparoscopic cholecystectomy,Zhao Weifeng,55,12,75,90\n"
    "Total hip arthroplasty,,78,15,95,110\n"
    "Appendectomy,,40,8,50,60\n"
)


class TestFilePipeline:
    """Exports on disk through feed and monitor to a ranked worklist."""

    def test_json_exports_to_worklist(self, record_files, poll_time):
        feed = SurgeryFeed(
            FileSurgerySource(
                record_files["operations"],
                baselines_path=record_files["baselines"],
                reasons_path=record_files["reasons"],
            )
        )
        monitor = WorklistMonitor(feed)

        snapshot = monitor.poll(now=poll_time)

        assert snapshot.feed_state == FeedState.LIVE
        assert snapshot.source.startswith("file:")
        assert [e.operation_no for e in snapshot.entries] == ["20241024-001", "20241024-002"]
        assert snapshot.entries[0].level == AnomalyLevel.CRITICAL
        assert snapshot.entries[0].reason_text.startswith("Severe adhesions")
        assert snapshot.entries[1].level == AnomalyLevel.NORMAL
        assert snapshot.entries[1].reason_text == "Progress as expected"

    def test_csv_baselines_with_json_operations(self, tmp_path, poll_time):
        operations = [
            {
                "operation_no": "A-1",
                "operation_room": "OR-2",
                "operation_name": "Appendectomy",
                "surgeon_name": "Qian Yu",
                "operation_start_time": "2024-10-24T09:55:00Z",
                "operation_end_time": None,
            },
            {
                "operation_no": "A-2",
                "operation_room": "OR-4",
                "operation_name": "Appendectomy",
                "surgeon_name": "Sun Li",
                "operation_start_time": "2024-10-24T09:50:00Z",
                "operation_end_time": "",
            },
            {
                "operation_no": "A-3",
                "operation_room": "OR-5",
                "operation_name": "Craniotomy",
                "operation_start_time": "2024-10-24T10:00:00Z",
            },
        ]
        ops_path = tmp_path / "operations.ndjson"
        ops_path.write_text("\n".join(json.dumps(r) for r in operations), encoding="utf-8")
        baselines_path = tmp_path / "baselines.csv"
        baselines_path.write_text(BASELINES_CSV, encoding="utf-8")

        feed = SurgeryFeed(FileSurgerySource(ops_path, baselines_path=baselines_path))
        snapshot = WorklistMonitor(feed).poll(now=poll_time)

        # A-1 ran 45 of 40 minutes (12.5%), A-2 ran 50 (25%)
        levels = {e.operation_no: e.level for e in snapshot.entries}
        assert levels == {
            "A-1": AnomalyLevel.WARNING,
            "A-2": AnomalyLevel.CRITICAL,
            "A-3": AnomalyLevel.NO_BASELINE,
        }
        assert [e.operation_no for e in snapshot.entries] == ["A-2", "A-1", "A-3"]
        assert snapshot.entry("A-3").deviation_rate is None
        assert snapshot.entry("A-3").baseline_median is None

    def test_percentile_policy_from_config(self, record_files, poll_time):
        classifier = build_classifier(AnomalyConfig(policy="percentile_threshold"))
        feed = build_feed(
            DataConfig(
                operations_path=record_files["operations"],
                baselines_path=record_files["baselines"],
            )
        )
        monitor = WorklistMonitor(feed, classifier=classifier, settings=WorklistConfig())

        snapshot = monitor.poll(now=poll_time)

        assert snapshot.policy == "percentile_threshold"
        # 100 min against P90 90 and 85 min against P80 95
        assert snapshot.entry("20241024-001").level == AnomalyLevel.CRITICAL
        assert snapshot.entry("20241024-002").level == AnomalyLevel.NORMAL


class TestFallback:
    """Feed degradation when the primary export disappears."""

    def test_cached_snapshot_served_after_export_removed(self, record_files, poll_time):
        feed = SurgeryFeed(
            FileSurgerySource(
                record_files["operations"],
                baselines_path=record_files["baselines"],
            )
        )
        monitor = WorklistMonitor(feed)
        first = monitor.poll(now=poll_time)

        record_files["operations"].unlink()
        second = monitor.poll(now=poll_time)

        assert first.feed_state == FeedState.LIVE
        assert second.feed_state == FeedState.DEGRADED
        assert [e.operation_no for e in second.entries] == [e.operation_no for e in first.entries]
        assert feed.last_error is not None

    def test_missing_export_falls_back_to_sample_seed(self, tmp_path, poll_time):
        feed = build_feed(DataConfig(operations_path=tmp_path / "missing.json"))

        snapshot = WorklistMonitor(feed).poll(now=poll_time)

        assert snapshot.feed_state == FeedState.DEGRADED
        assert snapshot.source == "sample"
        assert len(snapshot.entries) == 2

    def test_malformed_export_without_seed_is_unavailable(self, tmp_path, poll_time):
        ops_path = tmp_path / "operations.json"
        ops_path.write_text('[{"operation_no": "X-1"}]', encoding="utf-8")
        feed = SurgeryFeed(FileSurgerySource(ops_path))

        with pytest.raises(DataUnavailableError):
            WorklistMonitor(feed).poll(now=poll_time)
        assert feed.state == FeedState.UNAVAILABLE
