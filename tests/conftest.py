"""
Pytest configuration and shared fixtures.

Provides baselines, live surgery states, and on-disk record exports for unit
and integration tests.
"""

import json
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Dict, List

import pytest

from ormonitor.anomaly.schema import Baseline, LiveSurgeryState
from ormonitor.data.sample import SAMPLE_ANOMALY_REASONS, SAMPLE_BASELINES, SAMPLE_OPERATIONS

# Sample surgeries start 09:00 and 09:15; at 10:40 they have run 100 and 85 minutes.
POLL_TIME = datetime(2024, 10, 24, 10, 40, tzinfo=timezone.utc)


@pytest.fixture
def poll_time() -> datetime:
    return POLL_TIME


@pytest.fixture
def cholecystectomy_baseline() -> Baseline:
    """Baseline with median 55, std 12, P80 75, P90 90."""
    return Baseline(
        procedure_key="Laparoscopic cholecystectomy",
        surgeon_key="Zhao Weifeng",
        median_duration=55,
        std_dev=12,
        p80_threshold=75,
        p90_threshold=90,
    )


@pytest.fixture
def hip_baseline() -> Baseline:
    """Procedure-wide baseline with median 78, std 15, P80 95, P90 110."""
    return Baseline(
        procedure_key="Total hip arthroplasty",
        median_duration=78,
        std_dev=15,
        p80_threshold=95,
        p90_threshold=110,
    )


@pytest.fixture
def make_state():
    """
    Factory for LiveSurgeryState objects.

    Start timestamps default to 2024-10-24 09:00 UTC plus offset_minutes.
    """

    def _make(
        operation_id: str,
        actual: float = 30.0,
        offset_minutes: int = 0,
        procedure: str = "Total hip arthroplasty",
        surgeon: str = None,
    ) -> LiveSurgeryState:
        return LiveSurgeryState(
            operation_id=operation_id,
            actual_duration_minutes=actual,
            start_timestamp=datetime(2024, 10, 24, 9, 0, tzinfo=timezone.utc)
            + timedelta(minutes=offset_minutes),
            procedure_key=procedure,
            surgeon_key=surgeon,
        )

    return _make


def _write_json(path: Path, rows: List[Dict[str, Any]]) -> Path:
    path.write_text(json.dumps(rows, ensure_ascii=False), encoding="utf-8")
    return path


@pytest.fixture
def record_files(tmp_path) -> Dict[str, Path]:
    """
    The sample rows written as JSON exports.

    Returns:
        Dict with "operations", "baselines", and "reasons" paths
    """
    return {
        "operations": _write_json(tmp_path / "operations.json", SAMPLE_OPERATIONS),
        "baselines": _write_json(tmp_path / "baselines.json", SAMPLE_BASELINES),
        "reasons": _write_json(tmp_path / "reasons.json", SAMPLE_ANOMALY_REASONS),
    }


def pytest_configure(config):
    """
    Pytest hook for custom configuration.

    Registers custom markers used throughout tests.
    """
    config.addinivalue_line(
        "markers", "unit: mark test as a unit test"
    )
    config.addinivalue_line(
        "markers", "integration: mark test as an integration test"
    )
    config.addinivalue_line(
        "markers", "slow: mark test as slow running (deferred CI)"
    )
