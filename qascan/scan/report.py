"""Aggregated scan output."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List

from qascan.rules.models import Category, Issue


def group_by_category(issues: Iterable[Issue]) -> Dict[Category, List[Issue]]:
    """Group *issues* by category.

    Categories appear in the order they are first seen; issues keep their
    relative order within each group.
    """
    groups: Dict[Category, List[Issue]] = {}
    for issue in issues:
        groups.setdefault(issue.category, []).append(issue)
    return groups


@dataclass(frozen=True)
class ScanReport:
    url: str
    issues: tuple[Issue, ...] = ()
    pages_scanned: int = 0
    by_category: Dict[Category, List[Issue]] = field(init=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "by_category", group_by_category(self.issues))

    def __len__(self) -> int:
        return len(self.issues)

    def to_dict(self) -> dict[str, Any]:
        return {
            "url": self.url,
            "pages_scanned": self.pages_scanned,
            "issue_count": len(self.issues),
            "issues": [i.to_dict() for i in self.issues],
            "by_category": {
                category.value: [i.to_dict() for i in group]
                for category, group in self.by_category.items()
            },
        }
