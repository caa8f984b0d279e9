"""
Lint Orchestrator.

Coordinates a lint run: loading the site config and posts, building the
site index, running the rules and collecting the report.

Example:
    >>> orchestrator = LintOrchestrator(Path("."))
    >>> report = orchestrator.run()
    >>> report.counts()
    {'error': 2, 'warning': 5, 'info': 1}
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from content_lint.config import LintConfig, SiteConfig
from content_lint.errors import RuleError, SourceError
from content_lint.index import SiteIndex
from content_lint.logging import LogContext, get_logger
from content_lint.parser.post_loader import Post, PostLoader
from content_lint.report import Issue, LintReport, Severity
from content_lint.rules import INTERNAL_ERROR_RULE_ID, BaseRule, get_rules

logger = get_logger(__name__)


class LintOrchestrator:
    """Orchestrate a lint run across every post of a Hugo site.

    Manifesto:
        One command checks the whole site. Posts are read and indexed
        once; every rule sees the same index, so a link checked in one
        post resolves exactly like the same link in another.

    Architecture:
        ```
        LintOrchestrator
              │
              ├──► SiteConfig.load(config.toml)
              │
              ├──► PostLoader.walk_directory(content/)
              │         │
              │         ▼
              │    posts = [Post, ...]
              │
              ├──► SiteIndex.build(posts, site)
              │
              ├──► For each post rule, for each post:
              │         rule.check(post, index)
              │
              ├──► For each site rule:
              │         rule.check_site(index)
              │
              └──► LintReport(issues)
        ```

    Guardrails:
        - Do NOT re-read posts per rule
          ✅ Load and index once, share across rules
        - Do NOT abort the run when a rule crashes
          ✅ Record an internal-error issue and keep going
    """

    def __init__(self, project_root: Path, config: LintConfig | None = None):
        self.project_root = Path(project_root)
        self.config = config or LintConfig(project_root=self.project_root)

        self.site: SiteConfig | None = None
        self.posts: list[Post] | None = None
        self.index: SiteIndex | None = None

    def load_site(self) -> SiteConfig:
        """Load the Hugo site config (defaults when there is none)."""
        if self.site is None:
            self.site = SiteConfig.load(self.config.site_config_path)
            logger.debug(
                "site_config_loaded",
                path=str(self.site.path) if self.site.path else None,
                base_url=self.site.base_url,
            )
        return self.site

    def loader(self) -> PostLoader:
        return PostLoader(
            self.config.content_path,
            site=self.load_site(),
            skip_patterns=self.config.skip_patterns,
        )

    def load_posts(self) -> list[Post]:
        """Load every post under the content directory.

        Raises:
            SourceError: If the content directory does not exist
        """
        content_path = self.config.content_path
        if not content_path.is_dir():
            raise SourceError("Content directory not found").with_context(path=str(content_path))

        self.posts = list(self.loader().walk_directory())
        logger.info("posts_loaded", count=len(self.posts), content_dir=str(content_path))
        return self.posts

    def build_index(self) -> SiteIndex:
        """Build the site index, loading posts first if needed."""
        if self.posts is None:
            self.load_posts()

        self.index = SiteIndex.build(
            self.posts,
            self.load_site(),
            static_root=self.config.static_path,
            content_root=self.config.content_path,
            include_drafts=self.config.include_drafts,
            allowed_prefixes=self.config.allowed_link_prefixes,
        )
        logger.debug("index_built", urls=len(self.index.posts_by_url))
        return self.index

    def run(self, rule_ids: list[str] | None = None) -> LintReport:
        """Run the selected rules (all enabled rules by default) over the site.

        Raises:
            ConfigError: If rule_ids names an unknown rule
            SourceError: If the content directory does not exist
        """
        rules = get_rules(self.config, rule_ids)
        if self.index is None:
            self.build_index()

        # Drafts are left out of the index when include_drafts is off
        posts = self.index.posts
        issues = self._run_rules(rules, posts)

        report = LintReport(
            issues=issues,
            posts_checked=len(posts),
            rules_run=[rule.rule_id for rule in rules],
        )
        logger.info("lint_completed", posts=report.posts_checked, **report.counts())
        return report

    def check_file(self, path: Path, rule_ids: list[str] | None = None) -> LintReport:
        """Run post rules on one file, resolving links against the full site.

        Site-scoped rules are skipped; they only make sense for the whole site.

        Raises:
            SourceError: If the file cannot be read
        """
        path = Path(path)
        if not path.is_absolute():
            path = (self.project_root / path).resolve()

        try:
            post = self.loader().load_file(path)
        except (OSError, UnicodeDecodeError, ValueError) as e:
            raise SourceError(f"Cannot lint file: {e}", cause=e).with_context(path=str(path)) from e

        if self.index is None:
            self.build_index()

        rules = [rule for rule in get_rules(self.config, rule_ids) if rule.scope == "post"]
        issues = self._run_rules(rules, [post])
        return LintReport(
            issues=issues,
            posts_checked=1,
            rules_run=[rule.rule_id for rule in rules],
        )

    def get_stats(self) -> dict[str, Any]:
        """Index statistics for the site."""
        if self.index is None:
            self.build_index()
        stats = self.index.get_stats()
        stats["base_url"] = self.site.base_url
        stats["content_dir"] = str(self.config.content_path)
        return stats

    def _run_rules(self, rules: list[BaseRule], posts: list[Post]) -> list[Issue]:
        issues: list[Issue] = []

        for post in posts:
            with LogContext(post=post.relative_path):
                for rule in rules:
                    if rule.scope != "post":
                        continue
                    issues.extend(self._guarded(rule, lambda: rule.check(post, self.index), post))

        for rule in rules:
            if rule.scope == "site":
                issues.extend(self._guarded(rule, lambda: rule.check_site(self.index)))

        return issues

    def _guarded(self, rule: BaseRule, call, post: Post | None = None) -> list[Issue]:
        """Run one rule check, turning a crash into an internal-error issue."""
        try:
            return list(call())
        except Exception as e:
            error = RuleError(f"Rule {rule.rule_id} failed: {e}", cause=e).with_context(
                rule_id=rule.rule_id,
                path=post.relative_path if post else None,
            )
            logger.error("rule_failed", exc_info=True, **error.to_dict())
            return [Issue(
                rule_id=INTERNAL_ERROR_RULE_ID,
                severity=Severity.ERROR,
                message=f"Rule '{rule.rule_id}' crashed: {type(e).__name__}: {e}",
                path=post.relative_path if post else "",
                context={"rule": rule.rule_id},
            )]
