"""Lint issue records and the console report format."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable


class Severity(str, Enum):
    """Lint severities.

    ERROR: the content graph is structurally broken and should not publish.
    WARNING: a likely authoring mistake that does not block evaluation.
    INFO: a non-blocking observation.
    """

    ERROR = "error"
    WARNING = "warning"
    INFO = "info"

    @property
    def code(self) -> str:
        return _SEVERITY_CODES[self]


_SEVERITY_CODES = {
    Severity.ERROR: "ERR",
    Severity.WARNING: "WRN",
    Severity.INFO: "INF",
}


@dataclass(frozen=True)
class LintIssue:
    severity: Severity
    table: str
    row_id: str
    field: str
    message: str

    def format(self) -> str:
        return f"[{self.severity.code}] {self.table}/{self.row_id} → {self.field}: {self.message}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "severity": self.severity.value,
            "table": self.table,
            "rowId": self.row_id,
            "field": self.field,
            "message": self.message,
        }


def count_by_severity(issues: Iterable[LintIssue]) -> dict[Severity, int]:
    counts = {severity: 0 for severity in Severity}
    for issue in issues:
        counts[issue.severity] += 1
    return counts


def has_errors(issues: Iterable[LintIssue]) -> bool:
    return any(issue.severity is Severity.ERROR for issue in issues)


def format_lint_results(issues: list[LintIssue]) -> str:
    """Format issues as one line each plus a trailing summary."""
    if not issues:
        return "No issues found."

    counts = count_by_severity(issues)
    lines = [issue.format() for issue in issues]
    lines.append("")
    lines.append(
        f"Summary: {counts[Severity.ERROR]} errors, "
        f"{counts[Severity.WARNING]} warnings, {counts[Severity.INFO]} info"
    )
    return "\n".join(lines)
