"""Pytest configuration and shared fixtures."""

from pathlib import Path

import pytest

from content_lint.config import LintConfig
from content_lint.logging import configure_logging
from content_lint.orchestrator import LintOrchestrator

from tests._support import write_file
from tests._support.sites import HELLO_WORLD, SITE_CONFIG, STREAMS


@pytest.fixture(autouse=True)
def quiet_logging():
    """Keep structlog on stderr at WARNING during tests."""
    configure_logging(level="WARNING", json_format=False)


@pytest.fixture
def make_site(tmp_path):
    """Factory building a Hugo site under tmp_path.

    Usage:
        root = make_site({"post/a.md": "---\\ntitle: A\\n---\\n"})
    """

    def _make(
        posts: dict[str, str] | None = None,
        site_config: str = SITE_CONFIG,
        static: dict[str, bytes] | None = None,
    ) -> Path:
        root = tmp_path / "site"
        (root / "content").mkdir(parents=True, exist_ok=True)
        if site_config is not None:
            write_file(root, "config.toml", site_config)
        for relative, text in (posts or {}).items():
            write_file(root / "content", relative, text)
        for relative, data in (static or {}).items():
            write_file(root / "static", relative, data)
        return root

    return _make


@pytest.fixture
def hugo_site(make_site):
    """A small site with no lint issues."""
    return make_site(
        {
            "post/hello-world.md": HELLO_WORLD,
            "nodejs/streams.md": STREAMS,
        },
        static={"images/logo.png": b"\x89PNG\r\n"},
    )


@pytest.fixture
def lint(make_site):
    """Run the linter over posts and return the report.

    Usage:
        report = lint({"post/a.md": text}, rules=["unclosed-fence"])
    """

    def _lint(
        posts: dict[str, str],
        rules: list[str] | None = None,
        site_config: str = SITE_CONFIG,
        static: dict[str, bytes] | None = None,
        **config_overrides,
    ):
        root = make_site(posts, site_config=site_config, static=static)
        config_overrides.setdefault("now", "2024-06-01T00:00:00+00:00")
        config = LintConfig(project_root=root, **config_overrides)
        return LintOrchestrator(root, config=config).run(rules)

    return _lint
