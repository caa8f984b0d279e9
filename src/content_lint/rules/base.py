"""
Base rule for content linting.

A rule looks at one post (``scope = "post"``) or at the whole indexed
site (``scope = "site"``) and returns ``Issue`` records. Rules never
raise for content problems; an exception escaping a rule is a bug and
the orchestrator reports it as ``internal-error``.
"""

from __future__ import annotations

from abc import ABC
from datetime import datetime, timezone

from content_lint.config import LintConfig
from content_lint.index import SiteIndex
from content_lint.parser.front_matter import find_key_line, to_utc
from content_lint.parser.post_loader import Post
from content_lint.report import Issue, Severity


class BaseRule(ABC):
    """Base class for lint rules.

    Manifesto:
        One rule, one kind of defect. Each rule states its id, default
        severity and scope; the orchestrator decides which rules run and
        the config decides how loud they are.

    Architecture:
        ```
        LintOrchestrator
              │
              ├──► post rules:  rule.check(post, index)  (every post)
              │
              └──► site rules:  rule.check_site(index)   (once)
                        │
                        ▼
                  rule.issue(...) ──► Issue (severity overrides applied)
        ```

    Guardrails:
        - Do NOT raise on bad content
          ✅ Return an Issue
        - Do NOT hardcode the severity at call sites
          ✅ issue() applies config.severity_overrides
    """

    rule_id: str = ""
    description: str = ""
    default_severity: Severity = Severity.ERROR
    scope: str = "post"

    def __init__(self, config: LintConfig | None = None):
        self.config = config or LintConfig()

    @property
    def severity(self) -> Severity:
        override = self.config.severity_overrides.get(self.rule_id)
        return Severity(override) if override else self.default_severity

    def check(self, post: Post, index: SiteIndex) -> list[Issue]:
        """Check one post. Post-scoped rules override this."""
        return []

    def check_site(self, index: SiteIndex) -> list[Issue]:
        """Check the whole site. Site-scoped rules override this."""
        return []

    def issue(
        self,
        message: str,
        post: Post | None = None,
        line: int | None = None,
        severity: Severity | None = None,
        **context,
    ) -> Issue:
        """Build an Issue for this rule.

        An explicit ``severity`` is used only when the config does not
        override this rule.
        """
        if self.rule_id in self.config.severity_overrides or severity is None:
            severity = self.severity
        return Issue(
            rule_id=self.rule_id,
            severity=severity,
            message=message,
            path=post.relative_path if post else "",
            line=line,
            context=context,
        )

    def key_line(self, post: Post, key: str) -> int:
        """File line of a front matter key in post."""
        return find_key_line(post.front_matter_text, key, post.front_matter_format)

    def now(self) -> datetime:
        """Current time, or the configured clock override, in UTC."""
        if self.config.now is not None:
            return to_utc(self.config.now)
        return datetime.now(timezone.utc)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.rule_id!r})"
