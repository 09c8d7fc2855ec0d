"""Rules package — issue models and the pattern rule engine."""

from qascan.rules.engine import RULES, Rule, evaluate
from qascan.rules.models import Category, Issue, Severity

__all__ = ["RULES", "Rule", "evaluate", "Category", "Issue", "Severity"]
