"""Content integrity linter and coverage reporting."""

from .combo_validator import ComboRuleValidationResult, validate_combo_rule
from .coverage import CoverageReport, build_coverage_report, format_coverage_report
from .issues import LintIssue, Severity, count_by_severity, format_lint_results, has_errors
from .rules import lint_all

__all__ = [
    "ComboRuleValidationResult",
    "validate_combo_rule",
    "CoverageReport",
    "build_coverage_report",
    "format_coverage_report",
    "LintIssue",
    "Severity",
    "count_by_severity",
    "format_lint_results",
    "has_errors",
    "lint_all",
]
