"""
Operating-room duration monitor.

Classifies in-progress surgeries against historical duration baselines and
ranks them so the most urgent operating room is surfaced first.
"""

__version__ = "0.1.0"
