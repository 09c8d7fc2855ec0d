"""Scan package — URL normalisation, orchestration and reports.

Public API::

    from qascan.scan import ScanOrchestrator
    report = ScanOrchestrator(client, credentials).scan("example.com")
"""

from qascan.scan.orchestrator import FailureKind, ScanOrchestrator, ScanSnapshot, ScanState
from qascan.scan.report import ScanReport, group_by_category
from qascan.scan.urls import normalize_url

__all__ = [
    "FailureKind",
    "ScanOrchestrator",
    "ScanSnapshot",
    "ScanState",
    "ScanReport",
    "group_by_category",
    "normalize_url",
]
