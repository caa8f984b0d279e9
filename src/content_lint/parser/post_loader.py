"""
Post loader for Hugo content directories.

Walks the content directory, reads every Markdown file and turns it into
a ``Post``: parsed front matter, scanned body and the permalink Hugo will
publish it under.

Example:
    >>> loader = PostLoader(Path("content"), SiteConfig())
    >>> for post in loader.walk_directory():
    ...     print(post.permalink, len(post.links))
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import Any, Iterator

from content_lint.config import SiteConfig, matches_skip_pattern
from content_lint.logging import get_logger
from content_lint.parser.front_matter import (
    FrontMatter,
    FrontMatterParser,
    FrontMatterProblem,
)
from content_lint.parser.markdown_scanner import (
    FencedBlock,
    Link,
    MarkdownScanner,
    Shortcode,
)

logger = get_logger(__name__)

MARKDOWN_SUFFIXES = (".md", ".markdown")
INDEX_NAMES = ("index", "_index")

# Suffixes that make a site path a file rather than a page
FILE_EXTENSIONS = frozenset({
    "html", "htm", "xml", "json", "txt", "rss", "atom",
    "css", "js", "mjs", "map", "wasm",
    "png", "jpg", "jpeg", "gif", "svg", "webp", "avif", "ico", "bmp",
    "pdf", "zip", "gz", "tgz", "tar", "csv",
    "mp3", "mp4", "m4a", "ogg", "wav", "webm", "mov",
    "woff", "woff2", "ttf", "otf", "eot",
    "md", "yaml", "yml", "toml", "ipynb",
})
_EXTENSION = re.compile(r"\.([A-Za-z0-9]{1,5})$")

_URLIZE_SPACES = re.compile(r"\s+")


def urlize(segment: str) -> str:
    """Hugo-style path segment: lowercase, whitespace to hyphens."""
    return _URLIZE_SPACES.sub("-", segment.strip()).lower()


@dataclass
class Post:
    """A Markdown post and everything parsed from it.

    Attributes:
        path: File path on disk
        relative_path: Path relative to the content directory (posix)
        section: First directory under the content directory ("" at root)
        front_matter: Validated front matter, None when invalid or missing
        raw_front_matter: Decoded front matter mapping, before validation
        front_matter_format: "yaml", "toml", or None
        front_matter_problems: Problems found while parsing front matter
        body: Markdown body
        body_start_line: File line where the body starts
        fences: Fenced code blocks
        links: Links and images in prose
        shortcodes: Hugo shortcode tags
        permalink: Site path the post is published under
        front_matter_text: Raw front matter block
    """

    path: Path
    relative_path: str
    section: str
    front_matter: FrontMatter | None
    raw_front_matter: dict[str, Any] = field(default_factory=dict)
    front_matter_format: str | None = None
    front_matter_problems: list[FrontMatterProblem] = field(default_factory=list)
    body: str = ""
    body_start_line: int = 1
    fences: list[FencedBlock] = field(default_factory=list)
    links: list[Link] = field(default_factory=list)
    shortcodes: list[Shortcode] = field(default_factory=list)
    permalink: str = "/"
    front_matter_text: str = ""

    @property
    def title(self) -> str | None:
        return self.front_matter.title if self.front_matter else None

    @property
    def tags(self) -> list[str]:
        return self.front_matter.tags if self.front_matter else []

    @property
    def categories(self) -> list[str]:
        return self.front_matter.categories if self.front_matter else []

    @property
    def aliases(self) -> list[str]:
        return self.front_matter.aliases if self.front_matter else []

    @property
    def is_draft(self) -> bool:
        if self.front_matter is not None:
            return self.front_matter.draft
        return self.raw_front_matter.get("draft") is True

    @property
    def is_section_index(self) -> bool:
        return PurePosixPath(self.relative_path).stem == "_index"

    def taxonomy_terms(self, plural: str) -> list[str]:
        """Terms this post declares for a taxonomy (e.g. "tags")."""
        if self.front_matter is not None and plural in FrontMatter.model_fields:
            value = getattr(self.front_matter, plural)
        else:
            value = self.raw_front_matter.get(plural)
        if isinstance(value, str):
            return [value]
        if isinstance(value, list):
            return [str(v) for v in value if isinstance(v, (str, int, float))]
        return []


class PostLoader:
    """Load Hugo posts from a content directory.

    Features:
        - Recursive scan for ``*.md`` / ``*.markdown``
        - Skip patterns (path segment globs)
        - Permalinks computed the way Hugo computes them by default
        - Undecodable files logged and skipped

    Guardrails:
        - Do NOT stop on a broken post
          ✅ Front matter problems are recorded on the Post
        - Do NOT read non-Markdown files
          ✅ ValueError from load_file
    """

    def __init__(
        self,
        content_root: Path,
        site: SiteConfig | None = None,
        skip_patterns: list[str] | None = None,
    ):
        self.content_root = Path(content_root)
        self.site = site or SiteConfig()
        self.skip_patterns = skip_patterns or []
        self.parser = FrontMatterParser()
        self.scanner = MarkdownScanner()

    def load_file(self, file_path: Path) -> Post:
        """Load a single post.

        Raises:
            FileNotFoundError: If file doesn't exist
            ValueError: If file is not Markdown
            UnicodeDecodeError: If file is not UTF-8
        """
        file_path = Path(file_path)
        if not file_path.exists():
            raise FileNotFoundError(f"File not found: {file_path}")
        if file_path.suffix.lower() not in MARKDOWN_SUFFIXES:
            raise ValueError(f"Not a Markdown file: {file_path}")

        text = file_path.read_text(encoding="utf-8")
        return self.load_text(text, file_path)

    def load_text(self, text: str, file_path: Path) -> Post:
        """Build a Post from already-read text."""
        file_path = Path(file_path)
        relative = self._relative(file_path)

        parsed = self.parser.parse(text)
        scanned = self.scanner.scan(parsed.body, line_offset=parsed.body_start_line)

        parts = PurePosixPath(relative).parts
        section = parts[0] if len(parts) > 1 else ""

        post = Post(
            path=file_path,
            relative_path=relative,
            section=section,
            front_matter=parsed.model,
            raw_front_matter=parsed.data,
            front_matter_format=parsed.format,
            front_matter_problems=parsed.problems,
            body=parsed.body,
            body_start_line=parsed.body_start_line,
            fences=scanned.fences,
            links=scanned.links,
            shortcodes=scanned.shortcodes,
            front_matter_text=parsed.raw,
        )
        post.permalink = self.permalink_for(post)
        return post

    def walk_directory(self, directory: Path | None = None) -> Iterator[Post]:
        """Yield every post under directory (content root by default), sorted by path."""
        directory = Path(directory) if directory else self.content_root
        if not directory.exists():
            return

        paths = sorted(
            path for path in directory.rglob("*")
            if path.is_file() and path.suffix.lower() in MARKDOWN_SUFFIXES
        )
        for path in paths:
            if self._should_skip(path):
                continue
            try:
                yield self.load_file(path)
            except (UnicodeDecodeError, OSError) as e:
                logger.warning("post_unreadable", path=str(path), error=str(e))
                continue

    def permalink_for(self, post: Post) -> str:
        """Compute the site path Hugo publishes a post under.

        An explicit ``url`` wins. Otherwise the path is built from the
        section and the ``slug`` (or file name); ``index.md`` and
        ``_index.md`` take their directory's path.
        """
        front = post.front_matter
        explicit = front.url if front else post.raw_front_matter.get("url")
        if isinstance(explicit, str) and explicit.strip():
            return normalize_site_path(explicit.strip())

        relative = PurePosixPath(post.relative_path)
        directories = [urlize(part) for part in relative.parent.parts]
        stem = relative.stem

        slug = front.slug if front else None
        if stem in INDEX_NAMES:
            if slug and directories:
                directories[-1] = urlize(slug)
            segments = directories
            leaf = None
        else:
            segments = directories
            leaf = urlize(slug or stem)

        if leaf is None:
            path = "/" + "/".join(segments)
            return normalize_site_path(path, False, page=True)
        path = "/" + "/".join(segments + [leaf])
        return normalize_site_path(path, self.site.ugly_urls, page=True)

    def _relative(self, file_path: Path) -> str:
        try:
            return file_path.relative_to(self.content_root).as_posix()
        except ValueError:
            pass
        try:
            return file_path.resolve().relative_to(self.content_root.resolve()).as_posix()
        except ValueError:
            return file_path.as_posix()

    def _should_skip(self, file_path: Path) -> bool:
        relative = self._relative(file_path)
        if matches_skip_pattern(relative, self.skip_patterns):
            logger.debug("post_skipped", path=relative)
            return True
        return False


def has_file_extension(path: str) -> bool:
    """Check whether a site path names a file.

    Only paths without a trailing slash whose last segment ends in a known
    file suffix count, so ``/post/release-v1.2/`` and ``/nodejs/node.js-intro``
    are pages.
    """
    if path.endswith("/"):
        return False
    match = _EXTENSION.search(path.rsplit("/", 1)[-1])
    return match is not None and match.group(1).lower() in FILE_EXTENSIONS


def normalize_site_path(path: str, ugly_urls: bool = False, page: bool = False) -> str:
    """Normalize a site path the way permalinks are written.

    Leading slash always; duplicate slashes collapsed. Paths naming a file
    (see ``has_file_extension``) are left alone unless ``page`` is set, as
    it is for slugs built from file names. Otherwise a trailing slash is
    added, or ``.html`` with ugly URLs.

    Examples:
        >>> normalize_site_path("nodejs/streams")
        '/nodejs/streams/'
        >>> normalize_site_path("/nodejs/streams", ugly_urls=True)
        '/nodejs/streams.html'
        >>> normalize_site_path("/img/a.png")
        '/img/a.png'
        >>> normalize_site_path("/nodejs/node.js", page=True)
        '/nodejs/node.js/'
    """
    path = re.sub(r"/{2,}", "/", "/" + path.strip().lstrip("/"))
    if path == "/":
        return path
    if not page and has_file_extension(path):
        return path
    if ugly_urls:
        return path.rstrip("/") + ".html"
    return path if path.endswith("/") else path + "/"


__all__ = [
    "Post",
    "PostLoader",
    "has_file_extension",
    "normalize_site_path",
    "urlize",
    "MARKDOWN_SUFFIXES",
]
