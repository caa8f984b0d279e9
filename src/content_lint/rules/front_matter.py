"""Front matter rules."""

from __future__ import annotations

from content_lint.index import SiteIndex
from content_lint.parser.front_matter import RECOGNIZED_KEYS
from content_lint.parser.post_loader import Post, urlize
from content_lint.report import Issue, Severity
from content_lint.rules.base import BaseRule


class FrontMatterMissingRule(BaseRule):
    """Every post starts with a front matter block."""

    rule_id = "front-matter-missing"
    description = "Post has no front matter block"

    def check(self, post: Post, index: SiteIndex) -> list[Issue]:
        # Section list pages may rely on defaults
        if post.is_section_index:
            return []
        return [
            self.issue(problem.message, post, problem.line)
            for problem in post.front_matter_problems
            if problem.kind == "missing"
        ]


class FrontMatterSyntaxRule(BaseRule):
    """Front matter must be valid YAML/TOML and decode to a mapping."""

    rule_id = "front-matter-syntax"
    description = "Front matter is not valid YAML/TOML"

    def check(self, post: Post, index: SiteIndex) -> list[Issue]:
        return [
            self.issue(problem.message, post, problem.line, format=post.front_matter_format)
            for problem in post.front_matter_problems
            if problem.kind == "syntax"
        ]


class FrontMatterSchemaRule(BaseRule):
    """Known fields must hold values of the right type."""

    rule_id = "front-matter-schema"
    description = "Front matter field has the wrong type"

    def check(self, post: Post, index: SiteIndex) -> list[Issue]:
        return [
            self.issue(problem.message, post, problem.line, key=problem.key)
            for problem in post.front_matter_problems
            if problem.kind == "schema"
        ]


class RequiredFieldRule(BaseRule):
    """Configured fields (title and date by default) must be set."""

    rule_id = "required-field"
    description = "Required front matter field is missing or empty"

    def check(self, post: Post, index: SiteIndex) -> list[Issue]:
        if post.front_matter_format is None or post.is_section_index:
            return []
        if any(p.kind == "syntax" for p in post.front_matter_problems):
            return []

        issues = []
        for key in self.config.required_fields:
            value = post.raw_front_matter.get(key)
            if value is None or value == "" or value == []:
                issues.append(self.issue(
                    f"Missing required front matter field '{key}'",
                    post,
                    1,
                    key=key,
                ))
        return issues


class UnknownKeyRule(BaseRule):
    """Flag keys the site does not use; usually a typo (e.g. ``tag:``)."""

    rule_id = "front-matter-unknown-key"
    description = "Front matter key is not recognized"
    default_severity = Severity.WARNING

    def check(self, post: Post, index: SiteIndex) -> list[Issue]:
        known = (
            RECOGNIZED_KEYS
            | set(self.config.extra_known_keys)
            | set(index.site.taxonomies.values())
        )
        return [
            self.issue(
                f"Unknown front matter key '{key}'",
                post,
                self.key_line(post, key),
                key=key,
            )
            for key in post.raw_front_matter
            if key not in known
        ]


class LastmodBeforeDateRule(BaseRule):
    rule_id = "lastmod-before-date"
    description = "lastmod is earlier than date"
    default_severity = Severity.WARNING

    def check(self, post: Post, index: SiteIndex) -> list[Issue]:
        front = post.front_matter
        if front is None or front.date is None or front.lastmod is None:
            return []
        if front.lastmod >= front.date:
            return []
        return [self.issue(
            f"lastmod {front.lastmod.date()} is before date {front.date.date()}",
            post,
            self.key_line(post, "lastmod"),
        )]


class FutureDateRule(BaseRule):
    """Hugo skips future-dated posts unless built with --buildFuture."""

    rule_id = "future-date"
    description = "Published post is dated in the future"
    default_severity = Severity.WARNING

    def check(self, post: Post, index: SiteIndex) -> list[Issue]:
        front = post.front_matter
        if front is None or front.date is None or post.is_draft:
            return []
        if front.date <= self.now():
            return []
        return [self.issue(
            f"date {front.date.isoformat()} is in the future; Hugo will not publish it",
            post,
            self.key_line(post, "date"),
        )]


class DescriptionLengthRule(BaseRule):
    rule_id = "description-length"
    description = "Description is longer than search engines display"
    default_severity = Severity.INFO

    def check(self, post: Post, index: SiteIndex) -> list[Issue]:
        front = post.front_matter
        limit = self.config.description_max_length
        if front is None or not front.description or len(front.description) <= limit:
            return []
        return [self.issue(
            f"description is {len(front.description)} characters (limit {limit})",
            post,
            self.key_line(post, "description"),
            length=len(front.description),
        )]


class DuplicateTermRule(BaseRule):
    """The same tag or category listed twice; Hugo urlizes both to one term."""

    rule_id = "duplicate-tag"
    description = "Taxonomy term repeated within one post"
    default_severity = Severity.WARNING

    def check(self, post: Post, index: SiteIndex) -> list[Issue]:
        issues = []
        for plural in index.site.taxonomies.values():
            seen: dict[str, str] = {}
            for term in post.taxonomy_terms(plural):
                key = urlize(term)
                if key in seen:
                    issues.append(self.issue(
                        f"{plural} lists '{term}' more than once (as '{seen[key]}')",
                        post,
                        self.key_line(post, plural),
                        taxonomy=plural,
                        term=term,
                    ))
                else:
                    seen[key] = term
        return issues


FRONT_MATTER_RULES = [
    FrontMatterMissingRule,
    FrontMatterSyntaxRule,
    FrontMatterSchemaRule,
    RequiredFieldRule,
    UnknownKeyRule,
    LastmodBeforeDateRule,
    FutureDateRule,
    DescriptionLengthRule,
    DuplicateTermRule,
]
