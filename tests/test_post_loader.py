"""Tests for the post loader and permalink computation."""

import pytest

from content_lint.config import SiteConfig
from content_lint.config import LintConfig
from content_lint.parser.post_loader import (
    PostLoader,
    has_file_extension,
    normalize_site_path,
    urlize,
)

from tests._support import write_file
from tests._support.sites import HELLO_WORLD


POST = "---\ntitle: A\ndate: 2024-01-01\n---\nBody\n"


# =============================================================================
# Helper Tests
# =============================================================================

class TestUrlHelpers:
    """Tests for urlize and normalize_site_path."""

    def test_urlize(self):
        assert urlize("Hello World") == "hello-world"
        assert urlize("  Node.js  Streams ") == "node.js-streams"

    @pytest.mark.parametrize("path,ugly,expected", [
        ("nodejs/streams", False, "/nodejs/streams/"),
        ("/nodejs/streams/", False, "/nodejs/streams/"),
        ("//post//a", False, "/post/a/"),
        ("/nodejs/streams", True, "/nodejs/streams.html"),
        ("/img/a.png", False, "/img/a.png"),
        ("/post/release-v1.2/", False, "/post/release-v1.2/"),
        ("/post/release-v1.2", False, "/post/release-v1.2/"),
        ("/nodejs/node.js-guide/", False, "/nodejs/node.js-guide/"),
        ("/nodejs/node.js-guide", True, "/nodejs/node.js-guide.html"),
        ("/feed/index.xml", True, "/feed/index.xml"),
        ("/", True, "/"),
        ("", False, "/"),
    ])
    def test_normalize_site_path(self, path, ugly, expected):
        assert normalize_site_path(path, ugly) == expected

    def test_file_named_page_keeps_trailing_slash(self):
        assert normalize_site_path("/nodejs/node.js", page=True) == "/nodejs/node.js/"
        assert normalize_site_path("/nodejs/node.js") == "/nodejs/node.js"

    @pytest.mark.parametrize("path,expected", [
        ("/images/logo.png", True),
        ("/downloads/Report.PDF", True),
        ("/index.xml", True),
        ("/post/release-v1.2/", False),
        ("/post/release-v1.2", False),
        ("/nodejs/node.js-intro", False),
        ("/images/logo.png/", False),
        ("/post/hello-world/", False),
    ])
    def test_has_file_extension(self, path, expected):
        assert has_file_extension(path) is expected


# =============================================================================
# PostLoader Tests
# =============================================================================

class TestPostLoader:
    """Tests for PostLoader."""

    @pytest.fixture
    def content(self, tmp_path):
        return tmp_path / "content"

    @pytest.fixture
    def loader(self, content):
        content.mkdir()
        return PostLoader(content, SiteConfig())

    def test_load_file(self, loader, content):
        path = write_file(content, "post/hello-world.md", HELLO_WORLD)

        post = loader.load_file(path)

        assert post.relative_path == "post/hello-world.md"
        assert post.section == "post"
        assert post.title == "Hello World"
        assert post.tags == ["nodejs", "mongodb"]
        assert post.front_matter_format == "yaml"
        assert post.permalink == "/post/hello-world/"

    def test_body_lines_are_file_lines(self, loader, content):
        path = write_file(content, "post/hello-world.md", HELLO_WORLD)

        post = loader.load_file(path)

        assert post.body_start_line == 9
        assert post.links[0].line == 9
        assert post.fences[0].start_line == 13

    def test_load_file_missing(self, loader, content):
        with pytest.raises(FileNotFoundError):
            loader.load_file(content / "nope.md")

    def test_load_file_not_markdown(self, loader, content):
        path = write_file(content, "post/notes.txt", "hello")

        with pytest.raises(ValueError):
            loader.load_file(path)

    def test_broken_front_matter_still_loads(self, loader, content):
        path = write_file(content, "post/broken.md", "---\ntitle: [unclosed\n---\nBody [a](/b/)\n")

        post = loader.load_file(path)

        assert post.front_matter is None
        assert post.front_matter_problems[0].kind == "syntax"
        assert post.links[0].target == "/b/"

    @pytest.mark.parametrize("relative,front,expected", [
        ("post/hello-world.md", "", "/post/hello-world/"),
        ("post/Hello World.md", "", "/post/hello-world/"),
        ("post/a.md", "slug: custom\n", "/post/custom/"),
        ("post/a.md", "url: /about\n", "/about/"),
        ("post/bundle/index.md", "", "/post/bundle/"),
        ("post/bundle/index.md", "slug: renamed\n", "/post/renamed/"),
        ("nodejs/_index.md", "", "/nodejs/"),
        ("about.md", "", "/about/"),
        ("_index.md", "", "/"),
        ("nodejs/node.js-intro.md", "", "/nodejs/node.js-intro/"),
        ("nodejs/node.js.md", "", "/nodejs/node.js/"),
        ("post/a.md", "slug: release-v1.2\n", "/post/release-v1.2/"),
        ("post/a.md", "url: /nodejs/node.js-guide/\n", "/nodejs/node.js-guide/"),
        ("post/a.md", "url: /feeds/custom.xml\n", "/feeds/custom.xml"),
    ])
    def test_permalinks(self, loader, content, relative, front, expected):
        path = write_file(content, relative, f"---\ntitle: A\n{front}---\n")

        assert loader.load_file(path).permalink == expected

    def test_ugly_urls(self, content):
        content.mkdir()
        loader = PostLoader(content, SiteConfig(ugly_urls=True))
        leaf = write_file(content, "post/a.md", POST)
        listing = write_file(content, "post/_index.md", POST)
        explicit = write_file(content, "post/b.md", "---\ntitle: B\nurl: /b/\n---\n")

        assert loader.load_file(leaf).permalink == "/post/a.html"
        assert loader.load_file(listing).permalink == "/post/"
        assert loader.load_file(explicit).permalink == "/b/"

    def test_ugly_urls_dotted_file_name(self, content):
        content.mkdir()
        loader = PostLoader(content, SiteConfig(ugly_urls=True))
        path = write_file(content, "nodejs/node.js.md", POST)

        assert loader.load_file(path).permalink == "/nodejs/node.js.html"

    def test_section_index_and_draft_flags(self, loader, content):
        listing = loader.load_file(write_file(content, "post/_index.md", POST))
        draft = loader.load_file(write_file(content, "post/d.md", "---\ntitle: D\ndraft: true\n---\n"))

        assert listing.is_section_index
        assert draft.is_draft
        assert not draft.is_section_index

    def test_walk_directory_sorted(self, loader, content):
        write_file(content, "post/b.md", POST)
        write_file(content, "post/a.md", POST)
        write_file(content, "nodejs/c.markdown", POST)
        write_file(content, "post/image.png", b"\x89PNG")

        posts = list(loader.walk_directory())

        assert [p.relative_path for p in posts] == [
            "nodejs/c.markdown",
            "post/a.md",
            "post/b.md",
        ]

    def test_walk_directory_skip_patterns(self, content):
        content.mkdir()
        write_file(content, "post/a.md", POST)
        write_file(content, "drafts-archive/old.md", POST)
        loader = PostLoader(content, skip_patterns=["drafts-archive"])

        assert [p.relative_path for p in loader.walk_directory()] == ["post/a.md"]

    def test_default_skip_patterns_keep_ordinary_posts(self, content):
        content.mkdir()
        for name in ("public-key-crypto.md", "republish-old-posts.md", "git-basics.md"):
            write_file(content, f"post/{name}", POST)
        write_file(content, "post/.git/notes.md", POST)
        loader = PostLoader(content, skip_patterns=LintConfig().skip_patterns)

        assert [p.relative_path for p in loader.walk_directory()] == [
            "post/git-basics.md",
            "post/public-key-crypto.md",
            "post/republish-old-posts.md",
        ]

    def test_skip_pattern_globs(self, content):
        content.mkdir()
        write_file(content, "post/2019/old.md", POST)
        write_file(content, "post/2020/new.md", POST)
        write_file(content, "post/draft-notes.md", POST)
        loader = PostLoader(content, skip_patterns=["post/2019", "draft-*"])

        assert [p.relative_path for p in loader.walk_directory()] == ["post/2020/new.md"]

    def test_walk_directory_skips_undecodable_files(self, loader, content):
        write_file(content, "post/a.md", POST)
        write_file(content, "post/latin1.md", "---\ntitle: caf\xe9\n---\n".encode("latin-1"))

        assert [p.relative_path for p in loader.walk_directory()] == ["post/a.md"]

    def test_walk_missing_directory(self, tmp_path):
        loader = PostLoader(tmp_path / "nope")

        assert list(loader.walk_directory()) == []
