"""Utilities for rendering scan reports in the CLI."""

from __future__ import annotations

from typing import List

from qascan.rules.models import Category, Severity
from qascan.scan.report import ScanReport

_CATEGORY_TITLES = {
    Category.FUNCTIONAL: "Functional Testing Issues",
    Category.SMOKE: "Smoke Testing Issues",
    Category.REGRESSION: "Regression Testing Issues",
    Category.UNIT: "Unit Testing Issues",
    Category.BOUNDARY: "Boundary Value Analysis Issues",
}

_SEVERITY_ICONS = {
    Severity.CRITICAL: "🔴",
    Severity.MAJOR: "🟠",
    Severity.MINOR: "🟡",
    Severity.INFO: "⚪",
}


def render_report(report: ScanReport) -> str:
    """Render *report* as plain text, one section per category.

    Sections follow the order in which categories were first found.
    """
    lines: List[str] = [
        f"Scan Results — {len(report)} Issues Found",
        f"  URL   : {report.url}",
        f"  Pages : {report.pages_scanned}",
    ]

    if not report.issues:
        lines.append("")
        lines.append("No issues detected.")
        return "\n".join(lines)

    for category, issues in report.by_category.items():
        lines.append("")
        lines.append(f"{_CATEGORY_TITLES[category]} ({len(issues)})")
        for issue in issues:
            icon = _SEVERITY_ICONS.get(issue.severity, "")
            lines.append(f"  {icon} {issue.title}  [{issue.severity.value}]")
            lines.append(f"      Location    : {issue.location}")
            lines.append(f"      Description : {issue.description}")
            lines.append(f"      Mitigation  : {issue.mitigation}")

    return "\n".join(lines)
