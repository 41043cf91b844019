"""
Minimal backend HTTP server for the operating-room duration monitor.

Serves operation records, per-surgery anomaly classifications, and the ranked
worklist to the dashboard without introducing new dependencies.
"""

from __future__ import annotations

import argparse
import json
import logging
import os
from datetime import datetime, timezone
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from pathlib import Path
from typing import Dict, Optional

from dotenv import load_dotenv

from backend.monitor import WorklistEntry, WorklistMonitor, WorklistSnapshot
from ormonitor.anomaly import build_classifier
from ormonitor.core.config import DataConfig, config
from ormonitor.core.exceptions import ConfigurationError, DataUnavailableError
from ormonitor.core.logging_config import setup_logging
from ormonitor.data import build_feed

load_dotenv()

logger = logging.getLogger("backend")
logging.basicConfig(level=os.getenv("LOG_LEVEL", config.log_level))

MONITOR: Optional[WorklistMonitor] = None


def format_duration(minutes: float) -> str:
    hours = int(minutes // 60)
    mins = int(round(minutes % 60))
    if mins == 60:
        hours, mins = hours + 1, 0
    return f"{hours}h {mins}m" if hours > 0 else f"{mins}m"


def _entry_to_frontend(entry: WorklistEntry) -> Dict[str, object]:
    payload = entry.model_dump(mode="json")
    payload["elapsed_display"] = format_duration(entry.actual_duration_minutes)
    if entry.deviation_rate is not None:
        payload["deviation_rate"] = round(entry.deviation_rate, 2)
    return payload


def _snapshot_to_frontend(snapshot: WorklistSnapshot) -> Dict[str, object]:
    return {
        "generated_at": snapshot.generated_at.isoformat(),
        "feed_state": snapshot.feed_state.value,
        "source": snapshot.source,
        "policy": snapshot.policy,
        "level_counts": {level.value: count for level, count in snapshot.level_counts.items()},
        "entries": [_entry_to_frontend(e) for e in snapshot.entries],
        "total_count": len(snapshot.entries),
    }


def create_monitor(data_config: Optional[DataConfig] = None) -> WorklistMonitor:
    """Build the monitor from startup configuration."""
    return WorklistMonitor(
        feed=build_feed(data_config or config.data),
        classifier=build_classifier(config.anomaly),
        settings=config.worklist,
    )


class BackendHandler(BaseHTTPRequestHandler):
    server_version = "ORMonitorBackend/1.0"

    def _send_json(self, status: int, payload: object) -> None:
        body = json.dumps(payload, ensure_ascii=False).encode("utf-8")
        self.send_response(status)
        self.send_header("Content-Type", "application/json; charset=utf-8")
        self.send_header("Access-Control-Allow-Origin", "*")
        self.send_header("Access-Control-Allow-Headers", "Content-Type")
        self.send_header("Access-Control-Allow-Methods", "GET, OPTIONS")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def log_message(self, format: str, *args: object) -> None:
        logger.debug("%s - %s", self.address_string(), format % args)

    def _monitor(self) -> Optional[WorklistMonitor]:
        if MONITOR is None:
            self._send_json(503, {"detail": "Monitor not configured"})
        return MONITOR

    def _poll(self, monitor: WorklistMonitor) -> Optional[WorklistSnapshot]:
        try:
            return monitor.poll()
        except DataUnavailableError as exc:
            logger.error("Worklist poll failed: %s", exc)
            self._send_json(503, {"detail": "Data unavailable", "feed_state": monitor.feed.state.value})
            return None

    def do_GET(self) -> None:
        path = self.path.split("?", 1)[0].rstrip("/") or "/"

        if path in ("/health", "/api/health"):
            state = MONITOR.feed.state.value if MONITOR is not None else "unconfigured"
            self._send_json(
                200,
                {
                    "status": "ok",
                    "feed_state": state,
                    "timestamp": datetime.now(timezone.utc).isoformat(),
                },
            )
            return

        if path == "/api/operations":
            self._handle_operations()
            return

        if path == "/api/worklist":
            self._handle_worklist()
            return

        if path.startswith("/api/anomalies/"):
            self._handle_anomaly(path[len("/api/anomalies/"):])
            return

        self._send_json(404, {"detail": "Not found"})

    def do_OPTIONS(self) -> None:
        self.send_response(204)
        self.send_header("Access-Control-Allow-Origin", "*")
        self.send_header("Access-Control-Allow-Headers", "Content-Type")
        self.send_header("Access-Control-Allow-Methods", "GET, OPTIONS")
        self.end_headers()

    def _handle_operations(self) -> None:
        monitor = self._monitor()
        if monitor is None:
            return
        try:
            snapshot = monitor.fetch()
        except DataUnavailableError as exc:
            logger.error("Operations query failed: %s", exc)
            self._send_json(503, {"detail": "Data unavailable", "feed_state": monitor.feed.state.value})
            return

        operations = sorted(
            snapshot.operations,
            key=lambda r: (r.operation_date is not None, r.operation_date),
            reverse=True,
        )
        self._send_json(200, [r.model_dump(mode="json") for r in operations])

    def _handle_worklist(self) -> None:
        monitor = self._monitor()
        if monitor is None:
            return
        snapshot = self._poll(monitor)
        if snapshot is None:
            return
        self._send_json(200, _snapshot_to_frontend(snapshot))

    def _handle_anomaly(self, operation_no: str) -> None:
        if not operation_no or "/" in operation_no:
            self._send_json(400, {"detail": "Invalid operation path"})
            return

        monitor = self._monitor()
        if monitor is None:
            return
        snapshot = self._poll(monitor)
        if snapshot is None:
            return

        entry = snapshot.entry(operation_no)
        if entry is None:
            self._send_json(404, {"detail": f"No anomaly data for operation {operation_no}"})
            return
        self._send_json(200, _entry_to_frontend(entry))


def run(host: str, port: int, monitor: WorklistMonitor) -> None:
    global MONITOR
    MONITOR = monitor
    logger.info("Starting backend server on %s:%s", host, port)
    logger.info("Classification policy: %s", monitor.classifier.policy.name)
    server = ThreadingHTTPServer((host, port), BackendHandler)
    server.serve_forever()


def main() -> None:
    parser = argparse.ArgumentParser(description="Operating-room duration monitor backend")
    parser.add_argument("--host", default="0.0.0.0")
    parser.add_argument("--port", type=int, default=3000)
    parser.add_argument("--operations", type=Path, help="Operation records export (JSON/CSV)")
    parser.add_argument("--baselines", type=Path, help="Baseline export (JSON/CSV)")
    parser.add_argument("--reasons", type=Path, help="Anomaly reason export (JSON/CSV)")
    args = parser.parse_args()

    setup_logging("ormonitor")
    setup_logging("backend")

    data_config = config.data.model_copy(
        update={
            k: v
            for k, v in {
                "operations_path": args.operations,
                "baselines_path": args.baselines,
                "reasons_path": args.reasons,
            }.items()
            if v is not None
        }
    )

    try:
        monitor = create_monitor(data_config)
    except ConfigurationError as exc:
        parser.error(str(exc))
        return

    run(args.host, args.port, monitor)


if __name__ == "__main__":
    main()
