"""Rules that need the whole site: URL collisions, aliases, staleness, orphans."""

from __future__ import annotations

from collections import defaultdict

from content_lint.index import SiteIndex, normalize_url
from content_lint.parser.post_loader import Post
from content_lint.report import Issue, Severity
from content_lint.rules.base import BaseRule


class DuplicateUrlRule(BaseRule):
    """Hugo silently publishes only one of several posts sharing a permalink."""

    rule_id = "duplicate-url"
    description = "Two or more posts publish to the same URL"
    scope = "site"

    def check_site(self, index: SiteIndex) -> list[Issue]:
        issues = []
        for url, posts in sorted(index.duplicate_urls().items()):
            for post in posts:
                others = ", ".join(p.relative_path for p in posts if p is not post)
                issues.append(self.issue(
                    f"URL {url} is also published by {others}",
                    post,
                    self.key_line(post, "url"),
                    url=url,
                    others=[p.relative_path for p in posts if p is not post],
                ))
        return issues


class AliasConflictRule(BaseRule):
    rule_id = "alias-conflict"
    description = "Alias collides with another page or alias"
    scope = "site"

    def check_site(self, index: SiteIndex) -> list[Issue]:
        issues = []
        claimed: dict[str, list[Post]] = defaultdict(list)

        for post in index.posts:
            for alias in post.aliases:
                url = normalize_url(alias)
                owners = [p for p in index.posts_by_url.get(url, []) if p is not post]
                if owners:
                    issues.append(self.issue(
                        f"Alias {url} is the URL of {owners[0].relative_path}",
                        post,
                        self.key_line(post, "aliases"),
                        alias=url,
                    ))
                if post not in claimed[url]:
                    claimed[url].append(post)

        for url, posts in sorted(claimed.items()):
            if len(posts) < 2:
                continue
            for post in posts:
                others = ", ".join(p.relative_path for p in posts if p is not post)
                issues.append(self.issue(
                    f"Alias {url} is also claimed by {others}",
                    post,
                    self.key_line(post, "aliases"),
                    alias=url,
                ))
        return issues


class StaleContentRule(BaseRule):
    """Mirrors the theme's outdated-content banner.

    Active only when ``params.outdatedInfoWarning.enable`` is set in the
    site config; uses its ``hint`` and ``warn`` day thresholds.
    """

    rule_id = "stale-content"
    description = "Post has not been updated for a long time"
    default_severity = Severity.INFO

    def check(self, post: Post, index: SiteIndex) -> list[Issue]:
        site = index.site
        front = post.front_matter
        if not site.outdated_enabled or front is None:
            return []
        if post.is_draft or post.is_section_index:
            return []

        updated = front.lastmod or front.date
        if updated is None:
            return []

        age = (self.now() - updated).days
        if age > site.outdated_warn_days:
            severity = Severity.WARNING
        elif age > site.outdated_hint_days:
            severity = Severity.INFO
        else:
            return []

        key = "lastmod" if front.lastmod else "date"
        return [self.issue(
            f"Last updated {age} days ago",
            post,
            self.key_line(post, key),
            severity=severity,
            age_days=age,
        )]


class OrphanPostRule(BaseRule):
    """Published posts nothing links to. Off by default."""

    rule_id = "orphan-post"
    description = "No other post or menu links to this post"
    default_severity = Severity.INFO
    scope = "site"

    def check_site(self, index: SiteIndex) -> list[Issue]:
        inbound = index.inbound_counts()
        issues = []
        for post in index.posts:
            if post.is_section_index or post.is_draft:
                continue
            if post.permalink in index.menu_urls or inbound[post.permalink]:
                continue
            issues.append(self.issue(
                f"No internal links point at {post.permalink}",
                post,
                1,
                url=post.permalink,
            ))
        return issues


SITE_RULES = [
    DuplicateUrlRule,
    AliasConflictRule,
    StaleContentRule,
    OrphanPostRule,
]
