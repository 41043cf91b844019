"""
Record ingestion from JSON and CSV exports of the operating-room store.

Rows are returned as raw dictionaries and validated afterwards by the
normalizers. Unlike bulk log ingestion, a malformed row is not skipped: the
monitor must never classify against a partial record set.

Design:
- Format detection from file extension, or explicit format
- Iterator-based sources
- JSON arrays and NDJSON are both accepted
- Every row carries "_metadata" (source and position) for error messages
"""

import csv
import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, Iterator, List, Union

from ormonitor.core.exceptions import DataSourceError
from ormonitor.data.normalizers import parse_records
from ormonitor.data.schema import AnomalyReasonRecord, BaselineRecord, OperationRecord

logger = logging.getLogger(__name__)


class BaseRecordSource(ABC):
    """
    Abstract base class for record sources.

    Each source type (JSON, CSV) implements this interface.
    """

    def __init__(self, filepath: Union[str, Path], encoding: str = "utf-8"):
        """
        Initialize record source.

        Args:
            filepath: Path to export file
            encoding: File encoding (default utf-8)

        Raises:
            DataSourceError: If file doesn't exist
        """
        self.filepath = Path(filepath)
        self.encoding = encoding

        if not self.filepath.exists():
            raise DataSourceError(f"Record file not found: {self.filepath}")

    @abstractmethod
    def ingest(self) -> Iterator[Dict[str, Any]]:
        """
        Ingest rows from source.

        Yields:
            Dict representing a single row
        """
        pass


class JSONRecordSource(BaseRecordSource):
    """
    Ingests JSON rows (array or one object per line).

    Example array:
        [{"operation_no": "20241024-001", "operation_room": "OR-1", ...}]
    """

    def ingest(self) -> Iterator[Dict[str, Any]]:
        try:
            with open(self.filepath, "r", encoding=self.encoding) as f:
                content = f.read().lstrip("\ufeff").strip()
        except OSError as e:
            logger.error(f"Error reading JSON record file {self.filepath}: {e}")
            raise DataSourceError(f"Failed to read JSON records: {e}") from e

        if not content:
            return

        if content.startswith("["):
            try:
                rows = json.loads(content)
            except json.JSONDecodeError as e:
                raise DataSourceError(f"Invalid JSON array in {self.filepath}: {e}") from e

            for idx, row in enumerate(rows):
                if not isinstance(row, dict):
                    raise DataSourceError(
                        f"Non-object entry at index {idx} in {self.filepath}: {type(row).__name__}"
                    )
                row["_metadata"] = {
                    "source": str(self.filepath),
                    "index": idx,
                    "format": "json_array"
                }
                yield row
            return

        for line_num, line in enumerate(content.split("\n"), start=1):
            line = line.strip()
            if not line:
                continue

            try:
                row = json.loads(line)
            except json.JSONDecodeError as e:
                raise DataSourceError(
                    f"Malformed JSON at {self.filepath}:{line_num}: {line[:100]}"
                ) from e
            if not isinstance(row, dict):
                raise DataSourceError(
                    f"NDJSON line {line_num} in {self.filepath} is not an object"
                )
            row["_metadata"] = {
                "source": str(self.filepath),
                "line_number": line_num,
                "format": "ndjson"
            }
            yield row


class CSVRecordSource(BaseRecordSource):
    """
    Ingests CSV rows. First row must contain headers.

    Example:
        operation_name,surgen_name,median_duration,std_dev,warning_threshold_p80,alert_threshold_p90
        Laparoscopic cholecystectomy,,55,12,75,90
    """

    def __init__(
        self,
        filepath: Union[str, Path],
        encoding: str = "utf-8",
        delimiter: str = ","
    ):
        super().__init__(filepath, encoding)
        self.delimiter = delimiter

    def ingest(self) -> Iterator[Dict[str, Any]]:
        try:
            with open(self.filepath, "r", encoding=self.encoding, newline="") as f:
                reader = csv.DictReader(f, delimiter=self.delimiter)

                if reader.fieldnames is None:
                    return

                # Normalize BOM in header if present
                reader.fieldnames = [
                    name.lstrip("\ufeff") if isinstance(name, str) else name
                    for name in reader.fieldnames
                ]

                for line_num, row in enumerate(reader, start=2):  # Row 1 is the header
                    if all(v in (None, "") for v in row.values()):
                        continue

                    row["_metadata"] = {
                        "source": str(self.filepath),
                        "line_number": line_num,
                        "format": "csv"
                    }
                    yield row

        except (OSError, csv.Error) as e:
            logger.error(f"Error reading CSV record file {self.filepath}: {e}")
            raise DataSourceError(f"Failed to read CSV records: {e}") from e


def ingest_records(
    filepath: Union[str, Path],
    format: str = "auto"
) -> Iterator[Dict[str, Any]]:
    """
    Ingest raw rows from a file.

    Args:
        filepath: Path to export file
        format: "json", "csv", or "auto" for detection from the extension

    Raises:
        DataSourceError: If file not found or format unsupported
    """
    filepath = Path(filepath)

    if format == "auto":
        suffix = filepath.suffix.lower()
        if suffix in (".json", ".ndjson", ".jsonl"):
            format = "json"
        elif suffix == ".csv":
            format = "csv"
        else:
            raise DataSourceError(f"Cannot detect record format for {filepath}")

    if format == "json":
        source = JSONRecordSource(filepath)
    elif format == "csv":
        source = CSVRecordSource(filepath)
    else:
        raise DataSourceError(f"Unknown format: {format}")

    yield from source.ingest()


def load_operations(filepath: Union[str, Path], format: str = "auto") -> List[OperationRecord]:
    return parse_records(ingest_records(filepath, format), OperationRecord)


def load_baselines(filepath: Union[str, Path], format: str = "auto") -> List[BaselineRecord]:
    return parse_records(ingest_records(filepath, format), BaselineRecord)


def load_anomaly_reasons(
    filepath: Union[str, Path], format: str = "auto"
) -> List[AnomalyReasonRecord]:
    return parse_records(ingest_records(filepath, format), AnomalyReasonRecord)
