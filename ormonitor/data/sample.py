"""
Bundled sample rows served when no data store is configured.

Two running surgeries: a cholecystectomy far beyond its baseline and a hip
replacement within it.
"""

from typing import Any, Dict, List

SAMPLE_OPERATIONS: List[Dict[str, Any]] = [
    {
        "operation_no": "20241024-001",
        "operation_date": "2024-10-24",
        "operation_room": "OR-1",
        "operation_name": "Laparoscopic cholecystectomy",
        "dept_name": "General Surgery",
        "diagnosis_name": "Gallstones with acute cholecystitis",
        "surgen_name": "Zhao Weifeng",
        "patient_in_time": "2024-10-24 08:30:00",
        "operation_start_time": "2024-10-24 09:00:00",
        "operation_end_time": None,
        "status": "in_surgery",
    },
    {
        "operation_no": "20241024-002",
        "operation_date": "2024-10-24",
        "operation_room": "OR-3",
        "operation_name": "Total hip arthroplasty",
        "dept_name": "Orthopedics",
        "diagnosis_name": "Bilateral femoral head necrosis",
        "surgen_name": "Lin Zehong",
        "patient_in_time": "2024-10-24 08:45:00",
        "operation_start_time": "2024-10-24 09:15:00",
        "operation_end_time": None,
        "status": "in_surgery",
    },
]

SAMPLE_BASELINES: List[Dict[str, Any]] = [
    {
        "operation_name": "Laparoscopic cholecystectomy",
        "surgen_name": "Zhao Weifeng",
        "median_duration": 55,
        "std_dev": 12,
        "warning_threshold_p80": 75,
        "alert_threshold_p90": 90,
    },
    {
        "operation_name": "Total hip arthroplasty",
        "surgen_name": None,
        "median_duration": 78,
        "std_dev": 15,
        "warning_threshold_p80": 95,
        "alert_threshold_p90": 110,
    },
]

SAMPLE_ANOMALY_REASONS: List[Dict[str, Any]] = [
    {
        "operation_no": "20241024-001",
        "anomaly_reason": "Severe adhesions found intraoperatively; anatomy difficult to identify",
    },
    {
        "operation_no": "20241024-002",
        "anomaly_reason": "Progress as expected",
    },
]
