"""Tests for content_lint.cli — check/rules/stats/extract/links commands."""

from __future__ import annotations

import json

import pytest
from click.testing import CliRunner

from content_lint.cli import cli

from tests._support import post, write_file

runner = CliRunner()


@pytest.fixture
def broken_site(make_site):
    return make_site({
        "post/a.md": post(body="See [gone](/post/gone/).\n"),
        "post/b.md": post("title: B\ndate: 2024-01-01\n"),
    })


@pytest.fixture
def warning_site(make_site):
    return make_site({"post/a.md": post("title: A\ndate: 2024-01-01\ntag: [x]\n")})


def test_version():
    result = runner.invoke(cli, ["--version"])

    assert result.exit_code == 0
    assert "0.1.0" in result.output


class TestCheck:

    def test_clean_site(self, hugo_site):
        result = runner.invoke(cli, ["check", "-p", str(hugo_site)])

        assert result.exit_code == 0
        assert "No issues found" in result.output
        assert "0 errors, 0 warnings, 0 info" in result.output

    def test_errors_fail(self, broken_site):
        result = runner.invoke(cli, ["check", "-p", str(broken_site)])

        assert result.exit_code == 1
        assert "1 errors" in result.output

    def test_json_format(self, broken_site):
        result = runner.invoke(cli, ["check", "-p", str(broken_site), "--format", "json"])

        data = json.loads(result.stdout)
        assert data["counts"]["error"] == 1
        assert data["issues"][0]["rule_id"] == "broken-internal-link"
        assert data["issues"][0]["path"] == "post/a.md"
        assert data["issues"][0]["line"] == 5
        assert data["posts_checked"] == 2

    def test_markdown_to_file(self, broken_site, tmp_path):
        output = tmp_path / "report.md"

        result = runner.invoke(cli, [
            "check", "-p", str(broken_site), "--format", "markdown", "-o", str(output),
        ])

        assert result.exit_code == 1
        text = output.read_text(encoding="utf-8")
        assert text.startswith("# Content lint report")
        assert "`broken-internal-link`" in text

    def test_table_to_file(self, broken_site, tmp_path):
        output = tmp_path / "report.txt"

        runner.invoke(cli, ["check", "-p", str(broken_site), "-o", str(output)])

        assert "broken-internal-link" in output.read_text(encoding="utf-8")

    def test_warnings_pass_by_default(self, warning_site):
        result = runner.invoke(cli, ["check", "-p", str(warning_site)])

        assert result.exit_code == 0

    def test_fail_on_warning(self, warning_site):
        result = runner.invoke(cli, ["check", "-p", str(warning_site), "--fail-on", "warning"])

        assert result.exit_code == 1

    def test_fail_on_from_config_file(self, warning_site):
        write_file(warning_site, ".contentlint.yaml", "fail_on: warning\n")

        result = runner.invoke(cli, ["check", "-p", str(warning_site)])

        assert result.exit_code == 1

    def test_explicit_config_file(self, warning_site, tmp_path):
        config = write_file(tmp_path, "lint.yaml", "severity_overrides:\n  front-matter-unknown-key: error\n")

        result = runner.invoke(cli, ["check", "-p", str(warning_site), "-c", str(config)])

        assert result.exit_code == 1

    def test_rule_selection(self, broken_site):
        result = runner.invoke(cli, [
            "check", "-p", str(broken_site), "-r", "unclosed-fence", "--format", "json",
        ])

        assert result.exit_code == 0
        assert json.loads(result.stdout)["rules_run"] == ["unclosed-fence"]

    def test_unknown_rule_is_config_error(self, hugo_site):
        result = runner.invoke(cli, ["check", "-p", str(hugo_site), "-r", "nope"])

        assert result.exit_code == 2

    def test_missing_content_dir(self, tmp_path):
        result = runner.invoke(cli, ["check", "-p", str(tmp_path)])

        assert result.exit_code == 2

    def test_bad_config_file(self, hugo_site):
        write_file(hugo_site, ".contentlint.yaml", "fail_on: sometimes\n")

        result = runner.invoke(cli, ["check", "-p", str(hugo_site)])

        assert result.exit_code == 2

    @pytest.mark.parametrize("config_text", [
        "severity_overrides: [unclosed-fence]\n",
        "disabled_rules: orphan-post\n",
        "include_drafts: sometimes\n",
    ])
    def test_wrong_config_value_type(self, hugo_site, config_text):
        write_file(hugo_site, ".contentlint.yaml", config_text)

        result = runner.invoke(cli, ["check", "-p", str(hugo_site)])

        assert result.exit_code == 2
        assert not isinstance(result.exception, AttributeError)

    def test_wrong_site_config_value_type(self, hugo_site):
        config = (hugo_site / "config.toml").read_text(encoding="utf-8")
        write_file(hugo_site, "config.toml", config.replace("hint = 30", "hint = \"soon\""))

        result = runner.invoke(cli, ["check", "-p", str(hugo_site)])

        assert result.exit_code == 2

    def test_dotted_broken_link_fails(self, make_site):
        root = make_site({"post/a.md": post(body="[v1.2 notes](/post/release-v1.2/)\n")})

        result = runner.invoke(cli, ["check", "-p", str(root), "--format", "json"])

        assert result.exit_code == 1
        assert json.loads(result.stdout)["issues"][0]["rule_id"] == "broken-internal-link"

    def test_logs_default_to_json_off_a_terminal(self, hugo_site):
        result = runner.invoke(cli, ["check", "-p", str(hugo_site), "--format", "json", "--log-level", "INFO"])

        assert result.exit_code == 0
        events = [json.loads(line)["event"] for line in result.stderr.splitlines() if line.strip()]
        assert "lint_completed" in events

    def test_json_logs_go_to_stderr(self, hugo_site):
        result = runner.invoke(cli, [
            "check", "-p", str(hugo_site), "--format", "json", "--json-logs", "--log-level", "INFO",
        ])

        assert result.exit_code == 0
        assert json.loads(result.stdout)["counts"]["error"] == 0


class TestRules:

    def test_lists_rules(self, hugo_site):
        result = runner.invoke(cli, ["rules", "-p", str(hugo_site)])

        assert result.exit_code == 0
        assert "Rules" in result.output


class TestStats:

    def test_json(self, hugo_site):
        result = runner.invoke(cli, ["stats", "-p", str(hugo_site), "--json"])

        assert result.exit_code == 0
        stats = json.loads(result.stdout)
        assert stats["posts"] == 2
        assert stats["taxonomies"]["tags"] == 2

    def test_table(self, hugo_site):
        result = runner.invoke(cli, ["stats", "-p", str(hugo_site)])

        assert result.exit_code == 0
        assert "Posts: 2 (0 drafts)" in result.output


class TestExtract:

    def test_extract(self, hugo_site):
        path = hugo_site / "content" / "post" / "hello-world.md"

        result = runner.invoke(cli, ["extract", str(path), "-p", str(hugo_site)])

        assert result.exit_code == 0
        assert "Permalink: /post/hello-world/" in result.output
        assert "Fenced blocks: 1" in result.output
        assert "/nodejs/streams/" in result.output

    def test_extract_not_markdown(self, hugo_site):
        result = runner.invoke(cli, ["extract", str(hugo_site / "config.toml"), "-p", str(hugo_site)])

        assert result.exit_code == 2


class TestLinks:

    def test_graph(self, hugo_site):
        result = runner.invoke(cli, ["links", "-p", str(hugo_site)])

        assert result.exit_code == 0
        assert json.loads(result.stdout) == {
            "/nodejs/streams/": ["/post/hello-world/"],
            "/post/hello-world/": ["/nodejs/streams/"],
        }

    def test_broken_only(self, broken_site, tmp_path):
        output = tmp_path / "broken.json"

        result = runner.invoke(cli, ["links", "-p", str(broken_site), "--broken-only", "-o", str(output)])

        assert result.exit_code == 0
        assert json.loads(output.read_text(encoding="utf-8")) == {"/post/a/": ["/post/gone/"]}
