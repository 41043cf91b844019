"""
Schema for the worklist published by the monitor.

Entries carry only observed facts (the operation record, the baseline used)
and the classifier's output. Reason text is external and informational.
"""

from __future__ import annotations

from collections import Counter
from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from ormonitor.anomaly.schema import AnomalyLevel
from ormonitor.data.feed import FeedState


class WorklistEntry(BaseModel):
    """
    One ranked surgery.

    Fields:
    - operation_no / operation_room / operation_name / surgeon_name / dept_name
    - start_time: ordering timestamp (intraoperative start)
    - actual_duration_minutes: elapsed minutes at poll time
    - level / deviation_rate: classifier output (rate None when not applicable)
    - priority: worklist weight of the level
    - baseline_*: statistics of the baseline used (None when NoBaseline)
    - reason_text: optional external justification
    """

    model_config = ConfigDict(frozen=True)

    operation_no: str
    operation_room: str
    operation_name: str
    surgeon_name: Optional[str] = None
    dept_name: Optional[str] = None
    start_time: datetime
    actual_duration_minutes: float = Field(ge=0.0)
    level: AnomalyLevel
    deviation_rate: Optional[float] = None
    priority: int = Field(ge=0)
    baseline_median: Optional[float] = None
    baseline_std_dev: Optional[float] = None
    baseline_p80: Optional[float] = None
    baseline_p90: Optional[float] = None
    reason_text: Optional[str] = None


class WorklistSnapshot(BaseModel):
    """
    The result of one poll cycle, published as a whole.

    Fields:
    - generated_at: poll time
    - feed_state: availability of the data behind this snapshot
    - source: data source name
    - policy: classification policy name
    - entries: ranked worklist, most urgent first
    """

    model_config = ConfigDict(frozen=True)

    generated_at: datetime
    feed_state: FeedState
    source: str
    policy: str
    entries: List[WorklistEntry]

    @property
    def level_counts(self) -> Dict[AnomalyLevel, int]:
        counts = Counter(entry.level for entry in self.entries)
        return {level: counts.get(level, 0) for level in AnomalyLevel}

    def entry(self, operation_no: str) -> Optional[WorklistEntry]:
        return next((e for e in self.entries if e.operation_no == operation_no), None)
