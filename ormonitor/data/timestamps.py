"""
Timestamp normalization to timezone-aware UTC datetimes.
"""

import math
import re
from datetime import datetime, timezone
from typing import Union

# Epoch strings need at least 10 digits; shorter digit runs such as
# "20241024" are left to the ISO parser.
_EPOCH_STRING = re.compile(r"^\d{10,}(\.\d+)?$")

# Timestamps before year 3000 are seconds
_MILLIS_CUTOFF = 32503680000


class TimestampError(ValueError):
    """Raised when a timestamp cannot be parsed."""
    pass


def _from_epoch(value: Union[int, float]) -> datetime:
    if not math.isfinite(value):
        raise TimestampError(f"Non-finite epoch timestamp: {value}")
    seconds = value if value < _MILLIS_CUTOFF else value / 1000
    try:
        return datetime.fromtimestamp(seconds, tz=timezone.utc)
    except (OverflowError, OSError, ValueError) as e:
        raise TimestampError(f"Epoch timestamp out of range: {value}") from e


def normalize_timestamp(value: Union[str, int, float, datetime]) -> datetime:
    """
    Normalize a timestamp to a UTC datetime.
    
    Supports:
    - datetime objects (naive values are taken as UTC)
    - ISO 8601: 2024-10-24T09:00:00Z, 2024-10-24T09:00:00+08:00
    - Date-time: 2024-10-24 09:00:00
    - Epoch seconds or milliseconds (numbers, or strings of 10+ digits)
    
    Raises:
        TimestampError: If the format is not recognized or out of range
    """
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, (int, float)) and not isinstance(value, bool):
        return _from_epoch(value)
    else:
        ts_str = str(value).strip()
        if not ts_str:
            raise TimestampError("Empty timestamp")
        if _EPOCH_STRING.match(ts_str):
            return _from_epoch(float(ts_str))
        if ts_str.endswith("Z"):
            ts_str = ts_str[:-1] + "+00:00"
        try:
            dt = datetime.fromisoformat(ts_str)
        except ValueError:
            raise TimestampError(f"Could not parse timestamp: {value}") from None
    
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)
