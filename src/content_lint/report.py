"""
Lint issues and reports.

``Issue`` is one finding; ``LintReport`` collects the findings of a run
and decides whether the run fails. ``ReportRenderer`` turns a report into
Markdown through a Jinja2 template.

Example:
    >>> report = LintReport([Issue("unclosed-fence", Severity.ERROR, "Fence never closed", "post/a.md", 12)])
    >>> report.counts()
    {'error': 1, 'warning': 0, 'info': 0}
    >>> report.has_failures(Severity.ERROR)
    True
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, select_autoescape


class Severity(str, Enum):
    """Issue severities, most severe first."""

    ERROR = "error"
    WARNING = "warning"
    INFO = "info"

    @property
    def rank(self) -> int:
        return {"error": 3, "warning": 2, "info": 1}[self.value]

    def at_least(self, threshold: Severity) -> bool:
        return self.rank >= threshold.rank


@dataclass
class Issue:
    """A single lint finding.

    Attributes:
        rule_id: Rule that produced the issue
        severity: Effective severity (after overrides)
        message: Human-readable description
        path: Post path relative to the content directory
        line: 1-based line in the post file
        context: Extra details (target url, other paths, ...)
    """

    rule_id: str
    severity: Severity
    message: str
    path: str = ""
    line: int | None = None
    context: dict[str, Any] = field(default_factory=dict)

    @property
    def location(self) -> str:
        if self.line is not None:
            return f"{self.path}:{self.line}"
        return self.path

    def sort_key(self) -> tuple[str, int, str, str]:
        return (self.path, self.line or 0, self.rule_id, self.message)

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "rule_id": self.rule_id,
            "severity": self.severity.value,
            "message": self.message,
            "path": self.path,
            "line": self.line,
        }
        if self.context:
            result["context"] = self.context
        return result


@dataclass
class LintReport:
    """Findings of one lint run."""

    issues: list[Issue] = field(default_factory=list)
    posts_checked: int = 0
    rules_run: list[str] = field(default_factory=list)
    generated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def __post_init__(self):
        self.issues = sorted(self.issues, key=Issue.sort_key)

    def counts(self) -> dict[str, int]:
        """Issue count per severity, always including every severity."""
        counts = {severity.value: 0 for severity in Severity}
        for issue in self.issues:
            counts[issue.severity.value] += 1
        return counts

    def by_path(self) -> dict[str, list[Issue]]:
        grouped: dict[str, list[Issue]] = defaultdict(list)
        for issue in self.issues:
            grouped[issue.path].append(issue)
        return dict(grouped)

    def by_rule(self) -> dict[str, int]:
        counts: dict[str, int] = defaultdict(int)
        for issue in self.issues:
            counts[issue.rule_id] += 1
        return dict(sorted(counts.items()))

    def filter(self, min_severity: Severity) -> LintReport:
        """New report keeping only issues at or above min_severity."""
        return LintReport(
            issues=[i for i in self.issues if i.severity.at_least(min_severity)],
            posts_checked=self.posts_checked,
            rules_run=list(self.rules_run),
            generated_at=self.generated_at,
        )

    def has_failures(self, threshold: Severity = Severity.ERROR) -> bool:
        return any(issue.severity.at_least(threshold) for issue in self.issues)

    def to_dict(self) -> dict[str, Any]:
        return {
            "generated_at": self.generated_at.isoformat(),
            "posts_checked": self.posts_checked,
            "rules_run": self.rules_run,
            "counts": self.counts(),
            "issues": [issue.to_dict() for issue in self.issues],
        }


class ReportRenderer:
    """Render a LintReport as Markdown from the packaged Jinja2 template."""

    template_name = "report.md.j2"

    def __init__(self, template_dir: Path | None = None):
        if template_dir is None:
            template_dir = Path(__file__).parent / "templates"
        self.template_dir = Path(template_dir)

        self.env = Environment(
            loader=FileSystemLoader(str(self.template_dir)),
            autoescape=select_autoescape(["html", "xml"]),
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
        )

    def render_markdown(self, report: LintReport, title: str = "Content lint report") -> str:
        template = self.env.get_template(self.template_name)
        return template.render(
            title=title,
            report=report,
            counts=report.counts(),
            by_path=report.by_path(),
            by_rule=report.by_rule(),
        )


__all__ = [
    "Severity",
    "Issue",
    "LintReport",
    "ReportRenderer",
]
