"""
Test support utilities for content-lint tests.

Helpers that are not fixtures but are shared across test files.
"""

from __future__ import annotations

from pathlib import Path
from textwrap import dedent

from content_lint.report import Issue, LintReport


def write_file(root: Path, relative: str, text: str | bytes) -> Path:
    """Write a file under root, creating parent directories."""
    path = root / relative
    path.parent.mkdir(parents=True, exist_ok=True)
    if isinstance(text, bytes):
        path.write_bytes(text)
    else:
        path.write_text(dedent(text), encoding="utf-8")
    return path


def issues_for(report: LintReport, rule_id: str) -> list[Issue]:
    """Issues in report produced by one rule."""
    return [issue for issue in report.issues if issue.rule_id == rule_id]


def post(front_matter: str = "title: A\ndate: 2024-01-01\n", body: str = "") -> str:
    """Text of a post with YAML front matter followed by body."""
    return f"---\n{front_matter}---\n{body}"
