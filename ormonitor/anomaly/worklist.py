"""
Worklist ordering for concurrently running surgeries.

Ranks (state, result) pairs so the most urgent operating room comes first.
"""

from __future__ import annotations

from typing import Dict, Iterable, List, Tuple

from .schema import AnomalyLevel, AnomalyResult, LiveSurgeryState

WorklistEntry = Tuple[LiveSurgeryState, AnomalyResult]

# NO_BASELINE carries no risk signal, so it shares NORMAL's priority.
LEVEL_WEIGHTS: Dict[AnomalyLevel, int] = {
    AnomalyLevel.CRITICAL: 3,
    AnomalyLevel.WARNING: 2,
    AnomalyLevel.NORMAL: 1,
    AnomalyLevel.NO_BASELINE: 1,
    AnomalyLevel.NOT_STARTED: 0,
}


def level_weight(level: AnomalyLevel) -> int:
    return LEVEL_WEIGHTS[level]


def rank(entries: Iterable[WorklistEntry], newest_first: bool = False) -> List[WorklistEntry]:
    """
    Order worklist entries by severity, then by start time.

    Args:
        entries: (LiveSurgeryState, AnomalyResult) pairs.
        newest_first: break ties by latest start instead of earliest.

    Returns:
        A new list. Entries with equal weight and equal start time keep their
        input order.
    """

    # Two stable passes: secondary key first, then primary.
    ordered = sorted(entries, key=lambda e: e[0].start_timestamp, reverse=newest_first)
    return sorted(ordered, key=lambda e: LEVEL_WEIGHTS[e[1].level], reverse=True)
