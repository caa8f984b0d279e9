"""Tests for lint and site configuration."""

from datetime import datetime
from pathlib import Path

import pytest

from content_lint.config import CONFIG_FILE_NAME, LintConfig, SiteConfig, matches_skip_pattern
from content_lint.errors import ConfigError, ErrorCategory

from tests._support import write_file
from tests._support.sites import SITE_CONFIG


# =============================================================================
# LintConfig Tests
# =============================================================================

class TestLintConfig:
    """Tests for LintConfig."""

    def test_defaults(self):
        config = LintConfig()

        assert config.content_dir == Path("content")
        assert config.disabled_rules == ["orphan-post"]
        assert config.required_fields == ["title", "date"]
        assert config.fail_on == "error"
        assert config.include_drafts is True

    def test_string_paths_converted(self, tmp_path):
        config = LintConfig(project_root=str(tmp_path), content_dir="posts")

        assert config.content_path == tmp_path / "posts"

    def test_from_yaml(self, tmp_path):
        path = write_file(tmp_path, CONFIG_FILE_NAME, """\
            content_dir: site-content
            disabled_rules: []
            severity_overrides:
              front-matter-unknown-key: info
            extra_known_keys: [series]
            fail_on: warning
            now: 2024-06-01
        """)

        config = LintConfig.from_yaml(path)

        assert config.project_root == tmp_path
        assert config.content_path == tmp_path / "site-content"
        assert config.disabled_rules == []
        assert config.severity_overrides == {"front-matter-unknown-key": "info"}
        assert config.fail_on == "warning"
        assert config.now == datetime(2024, 6, 1)

    def test_from_yaml_unknown_key(self, tmp_path):
        path = write_file(tmp_path, CONFIG_FILE_NAME, "content_dirr: x\n")

        with pytest.raises(ConfigError, match="content_dirr"):
            LintConfig.from_yaml(path)

    def test_from_yaml_invalid(self, tmp_path):
        path = write_file(tmp_path, CONFIG_FILE_NAME, "disabled_rules: [a\n")

        with pytest.raises(ConfigError) as exc_info:
            LintConfig.from_yaml(path)

        assert exc_info.value.category == ErrorCategory.CONFIG
        assert exc_info.value.context.path == str(path)

    def test_from_yaml_not_a_mapping(self, tmp_path):
        path = write_file(tmp_path, CONFIG_FILE_NAME, "- a\n- b\n")

        with pytest.raises(ConfigError, match="mapping"):
            LintConfig.from_yaml(path)

    def test_from_yaml_missing_file(self, tmp_path):
        with pytest.raises(ConfigError):
            LintConfig.from_yaml(tmp_path / "nope.yaml")

    def test_invalid_fail_on(self):
        with pytest.raises(ConfigError):
            LintConfig(fail_on="fatal")

    def test_invalid_override_severity(self):
        with pytest.raises(ConfigError) as exc_info:
            LintConfig(severity_overrides={"unclosed-fence": "loud"})

        assert exc_info.value.context.rule_id == "unclosed-fence"

    def test_discover(self, tmp_path):
        write_file(tmp_path, CONFIG_FILE_NAME, "require_fence_language: true\n")

        assert LintConfig.discover(tmp_path).require_fence_language is True

    def test_discover_without_file(self, tmp_path):
        config = LintConfig.discover(tmp_path)

        assert config.project_root == tmp_path
        assert config.require_fence_language is False

    def test_site_config_detection(self, tmp_path):
        config = LintConfig(project_root=tmp_path)
        assert config.site_config_path is None

        write_file(tmp_path, "hugo.toml", "title = 'x'\n")
        assert config.site_config_path == tmp_path / "hugo.toml"

        write_file(tmp_path, "config.toml", "title = 'x'\n")
        assert config.site_config_path == tmp_path / "config.toml"

    def test_should_skip_matches_whole_segments(self):
        config = LintConfig(skip_patterns=["/drafts-archive/"])

        assert config.should_skip("drafts-archive/old.md")
        assert config.should_skip(Path("post/drafts-archive/old.md"))
        assert not config.should_skip("post/drafts-archive-tour.md")
        assert not config.should_skip("post/new.md")

    def test_default_skip_patterns(self):
        config = LintConfig()

        assert config.should_skip("post/.git/notes.md")
        assert config.should_skip("node_modules/pkg/README.md")
        assert not config.should_skip("post/public-key-crypto.md")
        assert not config.should_skip("post/git-basics.md")

    @pytest.mark.parametrize("patterns,path,expected", [
        (["draft-*"], "post/draft-notes.md", True),
        (["post/2019"], "post/2019/old.md", True),
        (["post/2019/*.md"], "post/2019/old.md", True),
        (["post/2019"], "archive/post/2019.md", False),
        ([""], "post/a.md", False),
    ])
    def test_matches_skip_pattern(self, patterns, path, expected):
        assert matches_skip_pattern(path, patterns) is expected

    @pytest.mark.parametrize("key,value", [
        ("severity_overrides", ["unclosed-fence"]),
        ("disabled_rules", "orphan-post"),
        ("required_fields", ["title", 3]),
        ("include_drafts", "yes"),
        ("description_max_length", "long"),
        ("description_max_length", True),
        ("content_dir", 42),
        ("now", 1700000000),
        ("fail_on", ["error"]),
    ])
    def test_wrong_value_type(self, key, value):
        with pytest.raises(ConfigError) as exc_info:
            LintConfig.from_dict({key: value})

        assert exc_info.value.category == ErrorCategory.CONFIG

    def test_invalid_override_value_type(self):
        with pytest.raises(ConfigError):
            LintConfig(severity_overrides={"unclosed-fence": 2})

    def test_tuple_lists_accepted(self):
        assert LintConfig(disabled_rules=("orphan-post",)).disabled_rules == ["orphan-post"]

    def test_to_dict(self, tmp_path):
        data = LintConfig(project_root=tmp_path).to_dict()

        assert data["project_root"] == str(tmp_path)
        assert data["now"] is None


# =============================================================================
# SiteConfig Tests
# =============================================================================

class TestSiteConfig:
    """Tests for SiteConfig."""

    def test_from_toml(self, tmp_path):
        site = SiteConfig.from_toml(write_file(tmp_path, "config.toml", SITE_CONFIG))

        assert site.base_url == "https://techinsights.example.com/"
        assert site.title == "Tech Insights"
        assert site.ugly_urls is False
        assert site.menu_urls == ["/", "/post/", "/search/"]
        assert site.outdated_enabled is False
        assert site.outdated_hint_days == 30
        assert site.outdated_warn_days == 180
        assert site.taxonomies == {"tag": "tags", "category": "categories"}

    def test_top_level_ugly_urls(self):
        assert SiteConfig.from_dict({"uglyURLs": True}).ugly_urls is True

    def test_params_ugly_urls(self):
        assert SiteConfig.from_dict({"params": {"uglyURLs": True}}).ugly_urls is True

    def test_custom_taxonomies(self):
        site = SiteConfig.from_dict({"taxonomies": {"series": "series"}})

        assert site.taxonomies == {"series": "series"}

    @pytest.mark.parametrize("data", [
        {"params": {"outdatedInfoWarning": {"hint": "soon"}}},
        {"params": {"outdatedInfoWarning": {"warn": [180]}}},
        {"params": {"outdatedInfoWarning": "on"}},
        {"params": "none"},
        {"menu": ["/"]},
    ])
    def test_wrong_value_type(self, data):
        with pytest.raises(ConfigError):
            SiteConfig.from_dict(data)

    def test_numeric_strings_accepted(self):
        site = SiteConfig.from_dict({"params": {"outdatedInfoWarning": {"hint": "7", "warn": 90}}})

        assert (site.outdated_hint_days, site.outdated_warn_days) == (7, 90)

    def test_invalid_toml(self, tmp_path):
        path = write_file(tmp_path, "config.toml", "baseURL = \n")

        with pytest.raises(ConfigError):
            SiteConfig.from_toml(path)

    def test_load_missing_gives_defaults(self, tmp_path):
        assert SiteConfig.load(tmp_path / "config.toml") == SiteConfig()
        assert SiteConfig.load(None).base_url == ""

    def test_base_host_and_path(self):
        site = SiteConfig(base_url="https://www.example.com/blog")

        assert site.base_host == "example.com"
        assert site.base_path == "/blog/"

    def test_is_same_site(self):
        site = SiteConfig(base_url="https://example.com/")

        assert site.is_same_site("https://www.example.com/post/a/")
        assert site.is_same_site("http://EXAMPLE.com/")
        assert not site.is_same_site("https://other.com/")
        assert not SiteConfig().is_same_site("https://example.com/")
