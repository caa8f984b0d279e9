"""Markdown body rules: fences, shortcodes and links."""

from __future__ import annotations

from content_lint.index import ResolutionKind, SiteIndex
from content_lint.parser.post_loader import Post
from content_lint.report import Issue, Severity
from content_lint.rules.base import BaseRule


class UnclosedFenceRule(BaseRule):
    """An unclosed fence swallows the rest of the post into one code block."""

    rule_id = "unclosed-fence"
    description = "Fenced code block has no closing delimiter"

    def check(self, post: Post, index: SiteIndex) -> list[Issue]:
        return [
            self.issue(
                f"Code fence {fence.fence_char * fence.fence_length}{fence.info} is never closed",
                post,
                fence.start_line,
                language=fence.info,
            )
            for fence in post.fences
            if not fence.closed
        ]


class MissingFenceLanguageRule(BaseRule):
    """Only active with ``require_fence_language: true``."""

    rule_id = "missing-fence-language"
    description = "Fenced code block has no language hint"
    default_severity = Severity.WARNING

    def check(self, post: Post, index: SiteIndex) -> list[Issue]:
        if not self.config.require_fence_language:
            return []
        return [
            self.issue("Code fence has no language hint", post, fence.start_line)
            for fence in post.fences
            if not fence.info
        ]


class UnbalancedShortcodeRule(BaseRule):
    rule_id = "unbalanced-shortcode"
    description = "Paired shortcode is not opened and closed"

    def check(self, post: Post, index: SiteIndex) -> list[Issue]:
        paired = set(self.config.paired_shortcodes)
        open_tags = []
        issues = []

        for shortcode in post.shortcodes:
            if shortcode.name not in paired or shortcode.self_closing:
                continue
            if not shortcode.closing:
                open_tags.append(shortcode)
                continue
            match = next(
                (i for i in range(len(open_tags) - 1, -1, -1) if open_tags[i].name == shortcode.name),
                None,
            )
            if match is None:
                issues.append(self.issue(
                    f"Closing shortcode '/{shortcode.name}' has no opening tag",
                    post,
                    shortcode.line,
                    shortcode=shortcode.name,
                ))
            else:
                del open_tags[match]

        for shortcode in open_tags:
            issues.append(self.issue(
                f"Shortcode '{shortcode.name}' is never closed",
                post,
                shortcode.line,
                shortcode=shortcode.name,
            ))
        return issues


class BrokenInternalLinkRule(BaseRule):
    """Links to pages of this site must resolve to a published page."""

    rule_id = "broken-internal-link"
    description = "Internal link does not resolve to any page"

    def check(self, post: Post, index: SiteIndex) -> list[Issue]:
        issues = []
        for link in post.links:
            resolution = index.resolve(link.target, post)
            if resolution.kind != ResolutionKind.UNRESOLVED or resolution.is_asset:
                continue
            if not link.target.strip():
                message = "Link has an empty target"
            else:
                message = f"Link to '{link.target}' does not resolve (looked for {resolution.url})"
            issues.append(self.issue(
                message,
                post,
                link.line,
                target=link.target,
                url=resolution.url,
            ))
        return issues


class MissingStaticAssetRule(BaseRule):
    rule_id = "missing-static-asset"
    description = "Link or image points at a missing static file"
    default_severity = Severity.WARNING

    def check(self, post: Post, index: SiteIndex) -> list[Issue]:
        issues = []
        for link in post.links:
            resolution = index.resolve(link.target, post)
            if resolution.kind == ResolutionKind.UNRESOLVED and resolution.is_asset:
                issues.append(self.issue(
                    f"File '{resolution.url}' is not in the static or content directory",
                    post,
                    link.line,
                    target=link.target,
                    url=resolution.url,
                ))
        return issues


BODY_RULES = [
    UnclosedFenceRule,
    MissingFenceLanguageRule,
    UnbalancedShortcodeRule,
    BrokenInternalLinkRule,
    MissingStaticAssetRule,
]
