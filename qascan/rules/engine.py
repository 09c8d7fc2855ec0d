"""Pattern-based issue detection over crawled page content.

Every rule is a row in :data:`RULES`: a category, a severity, fixed text and
two optional case-insensitive patterns.  A rule fires when its ``requires``
pattern matches (or is absent) and its ``forbids`` pattern does not match
(or is absent).  Rules are evaluated independently and in table order.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable, List, Optional, Pattern

from qascan.crawler.models import CrawledPage
from qascan.rules.models import Category, Issue, Severity


def _p(pattern: str) -> Pattern[str]:
    return re.compile(pattern, re.IGNORECASE)


@dataclass(frozen=True)
class Rule:
    category: Category
    severity: Severity
    title: str
    description: str
    mitigation: str
    requires: Optional[Pattern[str]] = None
    forbids: Optional[Pattern[str]] = None

    def applies(self, content: str) -> bool:
        """Return ``True`` if this rule fires on *content*."""
        if self.requires is not None and not self.requires.search(content):
            return False
        if self.forbids is not None and self.forbids.search(content):
            return False
        return True

    def issue_at(self, location: str) -> Issue:
        return Issue(
            category=self.category,
            severity=self.severity,
            title=self.title,
            description=self.description,
            location=location,
            mitigation=self.mitigation,
        )


RULES: tuple[Rule, ...] = (
    # Functional
    Rule(
        category=Category.FUNCTIONAL,
        severity=Severity.MAJOR,
        title="Broken Links or Missing Pages",
        description="Found error pages or broken functionality",
        mitigation="Check routing configuration and ensure all links are properly implemented",
        requires=_p(r"404|error|not found"),
    ),
    Rule(
        category=Category.FUNCTIONAL,
        severity=Severity.MINOR,
        title="Incomplete Form Implementation",
        description="Forms found without proper submit buttons",
        mitigation="Ensure all forms have proper submit buttons and validation",
        requires=_p(r"form"),
        forbids=_p(r"submit|button"),
    ),
    # Smoke
    Rule(
        category=Category.SMOKE,
        severity=Severity.CRITICAL,
        title="Missing Navigation",
        description="No navigation elements found on the page",
        mitigation="Add proper navigation menu to ensure users can navigate the site",
        forbids=_p(r"navigation|nav|menu"),
    ),
    Rule(
        category=Category.SMOKE,
        severity=Severity.MAJOR,
        title="Missing Page Title/Header",
        description="Page lacks proper title or header structure",
        mitigation="Add descriptive titles and headers for better user experience",
        forbids=_p(r"title|h1|header"),
    ),
    # Regression
    Rule(
        category=Category.REGRESSION,
        severity=Severity.MINOR,
        title="Debug Code in Production",
        description="Found debug or test code that should be removed",
        mitigation="Remove debug statements and test code from production",
        requires=_p(r"console\.error|debug|test"),
    ),
    # Unit
    Rule(
        category=Category.UNIT,
        severity=Severity.MINOR,
        title="Missing Error Handling",
        description="JavaScript code found without proper error handling",
        mitigation="Implement proper error handling in JavaScript functions",
        requires=_p(r"javascript|script"),
        forbids=_p(r"error handling|try.*catch"),
    ),
    # Boundary value analysis
    Rule(
        category=Category.BOUNDARY,
        severity=Severity.MINOR,
        title="Input Validation Needed",
        description="Numeric inputs found that may need boundary validation",
        mitigation="Implement proper input validation for min/max values and edge cases",
        requires=_p(r"input.*number|input.*range"),
    ),
    Rule(
        category=Category.BOUNDARY,
        severity=Severity.MAJOR,
        title="Missing Input Validation",
        description="Sensitive inputs found without proper validation",
        mitigation="Add client and server-side validation for sensitive input fields",
        requires=_p(r"password|email"),
        forbids=_p(r"validation|required"),
    ),
)


def evaluate(pages: Optional[Iterable[CrawledPage]]) -> List[Issue]:
    """Run every rule against every page and return the findings in order.

    Pages are labelled by their URL, or ``"Page N"`` (1-based) when the
    provider reported none.  ``None`` or an empty sequence yields ``[]``.
    """
    issues: List[Issue] = []
    if not pages:
        return issues

    for index, page in enumerate(pages, start=1):
        content = page.content
        location = page.url or f"Page {index}"
        for rule in RULES:
            if rule.applies(content):
                issues.append(rule.issue_at(location))
    return issues
