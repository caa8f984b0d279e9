"""
Content Lint Package

Offline integrity checks for a Hugo blog: front matter, fenced code,
shortcodes, internal links and URL collisions, reported per post and line.

Example:
    >>> from content_lint import LintOrchestrator
    >>> from pathlib import Path
    >>> report = LintOrchestrator(Path(".")).run()
    >>> report.has_failures()
    False
"""

from content_lint.config import LintConfig, SiteConfig
from content_lint.index import SiteIndex
from content_lint.orchestrator import LintOrchestrator
from content_lint.parser import FrontMatterParser, MarkdownScanner, PostLoader
from content_lint.report import Issue, LintReport, Severity

__version__ = "0.1.0"

__all__ = [
    "LintConfig",
    "SiteConfig",
    "SiteIndex",
    "LintOrchestrator",
    "FrontMatterParser",
    "MarkdownScanner",
    "PostLoader",
    "Issue",
    "LintReport",
    "Severity",
    "__version__",
]
