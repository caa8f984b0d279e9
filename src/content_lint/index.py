"""
Site index for link resolution.

Builds, once per run, every path the published site will serve: post
permalinks, aliases, section and taxonomy list pages, menu entries and
static files. Rules query it to resolve links and find duplicates.

Example:
    >>> index = SiteIndex.build(posts, site, static_root=Path("static"))
    >>> index.resolve("/nodejs/streams/", from_post=posts[0]).kind
    'post'
"""

from __future__ import annotations

import posixpath
import re
from collections import Counter, defaultdict
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable
from urllib.parse import unquote, urlsplit

from content_lint.config import SiteConfig
from content_lint.parser.post_loader import (
    Post,
    has_file_extension,
    normalize_site_path,
    urlize,
)

IGNORED_SCHEMES = ("mailto", "tel", "javascript", "data", "ftp", "irc", "sms")
GENERATED_FILES = frozenset({"/index.xml", "/sitemap.xml", "/robots.txt", "/404.html"})

_PAGINATION = re.compile(r"/page/\d+/?$")


def normalize_url(url: str, ugly_urls: bool = False) -> str:
    """Normalize a site path for comparison, dropping any query and fragment."""
    return normalize_site_path(unquote(urlsplit(url).path) or "/", ugly_urls)


class ResolutionKind:
    """Outcomes of resolving a link target."""

    POST = "post"
    ALIAS = "alias"
    SECTION = "section"
    TAXONOMY = "taxonomy"
    MENU = "menu"
    STATIC = "static"
    ALLOWED = "allowed"
    ANCHOR = "anchor"
    EXTERNAL = "external"
    IGNORED = "ignored"
    UNRESOLVED = "unresolved"

    INTERNAL_OK = frozenset({POST, ALIAS, SECTION, TAXONOMY, MENU, STATIC, ALLOWED})


@dataclass
class Resolution:
    """Result of resolving one link target.

    Attributes:
        kind: One of ResolutionKind
        url: Normalized site path (internal targets only)
        post: Post the target resolves to (post and alias kinds)
        is_asset: Target names a file (known suffix, no trailing slash)
    """

    kind: str
    url: str = ""
    post: Post | None = None
    is_asset: bool = False

    @property
    def internal(self) -> bool:
        return self.kind in ResolutionKind.INTERNAL_OK or self.kind == ResolutionKind.UNRESOLVED

    @property
    def ok(self) -> bool:
        return self.kind != ResolutionKind.UNRESOLVED


class SiteIndex:
    """Index of everything the published site serves.

    Manifesto:
        A link is only as good as the page behind it. Hugo decides the
        published paths; the index recomputes them the same way so links
        written as site paths, relative paths or absolute URLs on the
        site's own host can all be checked offline.

    Architecture:
        ```
        Posts ──► posts_by_url    (permalink → posts)
              ├─► alias_urls      (alias → post)
              ├─► section_urls    (/post/, /nodejs/ ...)
              └─► taxonomy_urls   (/tags/, /tags/mongodb/ ...)
        SiteConfig ──► menu_urls, base host
        static/    ──► asset lookups
        ```

    Guardrails:
        - Do NOT fetch anything over the network
          ✅ External links are classified, never requested
        - Do NOT treat other hosts as internal
          ✅ Only baseURL's host (with or without www.) counts
    """

    def __init__(
        self,
        posts: list[Post],
        site: SiteConfig,
        static_root: Path | None = None,
        content_root: Path | None = None,
        allowed_prefixes: Iterable[str] = (),
    ):
        self.posts = posts
        self.site = site
        self.static_root = Path(static_root) if static_root else None
        self.content_root = Path(content_root) if content_root else None
        self.allowed_prefixes = [normalize_site_path(p) for p in allowed_prefixes]

        self.posts_by_url: dict[str, list[Post]] = defaultdict(list)
        self.posts_by_file: dict[str, Post] = {}
        self.alias_urls: dict[str, Post] = {}
        self.section_urls: set[str] = set()
        self.taxonomy_terms: dict[str, Counter[str]] = {}
        self.taxonomy_urls: set[str] = set()
        self.menu_urls: set[str] = set()

        self._index()

    @classmethod
    def build(
        cls,
        posts: Iterable[Post],
        site: SiteConfig,
        static_root: Path | None = None,
        content_root: Path | None = None,
        include_drafts: bool = True,
        allowed_prefixes: Iterable[str] = (),
    ) -> SiteIndex:
        """Build the index; drafts are left out when include_drafts is False."""
        selected = [post for post in posts if include_drafts or not post.is_draft]
        return cls(
            selected,
            site,
            static_root=static_root,
            content_root=content_root,
            allowed_prefixes=allowed_prefixes,
        )

    def _index(self) -> None:
        ugly = self.site.ugly_urls

        for post in self.posts:
            self.posts_by_url[post.permalink].append(post)
            self.posts_by_file[post.relative_path] = post
            if post.section:
                self.section_urls.add(normalize_site_path(urlize(post.section), page=True))
            for alias in post.aliases:
                self.alias_urls.setdefault(normalize_site_path(alias), post)

        for plural in self.site.taxonomies.values():
            terms: Counter[str] = Counter()
            for post in self.posts:
                terms.update(post.taxonomy_terms(plural))
            self.taxonomy_terms[plural] = terms
            if terms:
                self.taxonomy_urls.add(normalize_site_path(urlize(plural), page=True))
            for term in terms:
                self.taxonomy_urls.add(normalize_site_path(f"{urlize(plural)}/{urlize(term)}", ugly, page=True))

        for url in self.site.menu_urls:
            parts = urlsplit(url)
            if parts.scheme and not self.site.is_same_site(url):
                continue
            self.menu_urls.add(normalize_site_path(parts.path or "/"))

    # ── Resolution ───────────────────────────────────────────────

    def resolve(self, target: str, from_post: Post | None = None) -> Resolution:
        """Classify and resolve a link target written in from_post."""
        target = target.strip()
        if not target:
            return Resolution(ResolutionKind.UNRESOLVED)
        if target.startswith("#"):
            return Resolution(ResolutionKind.ANCHOR)
        if target.startswith("{{"):
            # ref/relref shortcode output is resolved by Hugo itself
            return Resolution(ResolutionKind.IGNORED)

        parts = urlsplit(target)
        scheme = parts.scheme.lower()

        if scheme in IGNORED_SCHEMES:
            return Resolution(ResolutionKind.IGNORED)
        if scheme in ("http", "https") or target.startswith("//"):
            if not self.site.is_same_site(target):
                return Resolution(ResolutionKind.EXTERNAL)
            path = self._strip_base_path(parts.path or "/")
        elif scheme:
            return Resolution(ResolutionKind.IGNORED)
        else:
            path = parts.path
            if not path:
                return Resolution(ResolutionKind.ANCHOR)
            if path.lower().endswith((".md", ".markdown")):
                return self._resolve_content_file(unquote(path), from_post)
            if not path.startswith("/"):
                path = self._join_relative(path, from_post)

        return self.resolve_path(unquote(path))

    def resolve_path(self, path: str) -> Resolution:
        """Resolve an absolute site path."""
        if path.endswith("/index.html"):
            path = path[: -len("index.html")]

        url = normalize_site_path(path)

        candidates = [url]
        if url.endswith(".html"):
            candidates.append(normalize_site_path(url[: -len(".html")]))
        elif self.site.ugly_urls and url != "/":
            candidates.append(normalize_site_path(path, ugly_urls=True))

        for candidate in candidates:
            posts = self.posts_by_url.get(candidate)
            if posts:
                return Resolution(ResolutionKind.POST, candidate, posts[0])
            if candidate in self.alias_urls:
                return Resolution(ResolutionKind.ALIAS, candidate, self.alias_urls[candidate])

        if has_file_extension(url):
            return self._resolve_asset(url)

        list_url = _PAGINATION.sub("/", url)
        if list_url == "/" or list_url in self.section_urls:
            return Resolution(ResolutionKind.SECTION, url)
        if list_url in self.taxonomy_urls or any(c in self.taxonomy_urls for c in candidates):
            return Resolution(ResolutionKind.TAXONOMY, url)
        if url in self.menu_urls:
            return Resolution(ResolutionKind.MENU, url)
        if any(url.startswith(prefix) for prefix in self.allowed_prefixes):
            return Resolution(ResolutionKind.ALLOWED, url)

        return Resolution(ResolutionKind.UNRESOLVED, url)

    def _resolve_asset(self, url: str) -> Resolution:
        if url in GENERATED_FILES:
            return Resolution(ResolutionKind.STATIC, url, is_asset=True)
        if url.endswith("/index.xml"):
            # RSS feed of a list page
            listing = self.resolve_path(url[: -len("index.xml")])
            kind = ResolutionKind.STATIC if listing.ok else ResolutionKind.UNRESOLVED
            return Resolution(kind, url, is_asset=True)

        relative = url.lstrip("/")
        for root in (self.static_root, self.content_root):
            if root is not None and (root / relative).is_file():
                return Resolution(ResolutionKind.STATIC, url, is_asset=True)
        if any(url.startswith(prefix) for prefix in self.allowed_prefixes):
            return Resolution(ResolutionKind.ALLOWED, url, is_asset=True)
        return Resolution(ResolutionKind.UNRESOLVED, url, is_asset=True)

    def _resolve_content_file(self, path: str, from_post: Post | None) -> Resolution:
        """Resolve a link written as a path to another Markdown file."""
        if path.startswith("/"):
            relative = path.lstrip("/")
            if relative.startswith("content/"):
                relative = relative[len("content/"):]
        else:
            base = posixpath.dirname(from_post.relative_path) if from_post else ""
            relative = posixpath.normpath(posixpath.join(base, path))

        post = self.posts_by_file.get(relative)
        if post is not None:
            return Resolution(ResolutionKind.POST, post.permalink, post)
        return Resolution(ResolutionKind.UNRESOLVED, "/" + relative)

    def _join_relative(self, path: str, from_post: Post | None) -> str:
        """Resolve a relative path against the permalink of the linking post."""
        base = from_post.permalink if from_post else "/"
        if not base.endswith("/"):
            base = base.rsplit("/", 1)[0] + "/"
        joined = posixpath.normpath(posixpath.join(base, path))
        if path.endswith("/") and not joined.endswith("/"):
            joined += "/"
        return joined

    def _strip_base_path(self, path: str) -> str:
        base_path = self.site.base_path
        if base_path != "/" and path.startswith(base_path):
            return "/" + path[len(base_path):]
        return path

    # ── Queries ──────────────────────────────────────────────────

    def duplicate_urls(self) -> dict[str, list[Post]]:
        """Permalinks claimed by more than one post."""
        return {url: posts for url, posts in self.posts_by_url.items() if len(posts) > 1}

    def link_graph(self) -> dict[str, list[str]]:
        """Permalink → sorted internal targets (posts and aliases resolve to permalinks)."""
        graph: dict[str, list[str]] = {}
        for post in self.posts:
            targets: set[str] = set()
            for link in post.links:
                resolution = self.resolve(link.target, post)
                if resolution.post is not None:
                    targets.add(resolution.post.permalink)
            graph.setdefault(post.permalink, [])
            graph[post.permalink] = sorted(set(graph[post.permalink]) | targets)
        return graph

    def inbound_counts(self) -> Counter[str]:
        """Number of distinct posts linking to each permalink."""
        counts: Counter[str] = Counter()
        for source, targets in self.link_graph().items():
            for target in targets:
                if target != source:
                    counts[target] += 1
        return counts

    def get_stats(self) -> dict[str, Any]:
        """Summary statistics about the indexed site."""
        link_kinds: Counter[str] = Counter()
        for post in self.posts:
            for link in post.links:
                link_kinds[self.resolve(link.target, post).kind] += 1

        return {
            "posts": len(self.posts),
            "drafts": sum(1 for post in self.posts if post.is_draft),
            "sections": sorted(self.section_urls),
            "taxonomies": {
                plural: len(terms) for plural, terms in self.taxonomy_terms.items()
            },
            "top_terms": {
                plural: [term for term, _ in terms.most_common(10)]
                for plural, terms in self.taxonomy_terms.items()
            },
            "aliases": len(self.alias_urls),
            "duplicate_urls": len(self.duplicate_urls()),
            "fenced_blocks": sum(len(post.fences) for post in self.posts),
            "links": dict(sorted(link_kinds.items())),
        }


__all__ = [
    "normalize_url",
    "ResolutionKind",
    "Resolution",
    "SiteIndex",
]
