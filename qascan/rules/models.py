"""Data models for rule-engine findings."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any


class Category(str, Enum):
    FUNCTIONAL = "functional"
    SMOKE = "smoke"
    REGRESSION = "regression"
    UNIT = "unit"
    BOUNDARY = "boundary"


class Severity(str, Enum):
    CRITICAL = "critical"
    MAJOR = "major"
    MINOR = "minor"
    INFO = "info"


@dataclass(frozen=True)
class Issue:
    """One finding for one page."""

    category: Category
    severity: Severity
    title: str
    description: str
    location: str
    mitigation: str

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["category"] = self.category.value
        data["severity"] = self.severity.value
        return data
