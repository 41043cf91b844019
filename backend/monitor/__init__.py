"""
Worklist monitor exports.
"""

from .schema import WorklistEntry, WorklistSnapshot
from .service import WorklistMonitor

__all__ = [
    "WorklistMonitor",
    "WorklistEntry",
    "WorklistSnapshot",
]
