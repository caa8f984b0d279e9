"""
CLI for content linting.

Provides the command-line interface for checking a Hugo site, listing
rules, inspecting single posts and exporting the internal link graph.

Usage:
    contentlint check
    contentlint check --format json --fail-on warning
    contentlint rules
    contentlint stats
    contentlint extract content/post/hello.md
    contentlint links --broken-only
"""

import json
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from content_lint import __version__
from content_lint.config import LintConfig
from content_lint.errors import ContentLintError
from content_lint.index import ResolutionKind
from content_lint.logging import configure_logging
from content_lint.orchestrator import LintOrchestrator
from content_lint.report import LintReport, ReportRenderer, Severity
from content_lint.rules import RULES

console = Console()
err_console = Console(stderr=True)

EXIT_FAILURES = 1
EXIT_ERROR = 2

SEVERITY_STYLES = {
    Severity.ERROR: "bold red",
    Severity.WARNING: "yellow",
    Severity.INFO: "cyan",
}

project_root_option = click.option(
    "--project-root", "-p",
    type=click.Path(exists=True, file_okay=False),
    default=".",
    help="Root directory of the Hugo site.",
)
config_option = click.option(
    "--config", "-c", "config_path",
    type=click.Path(exists=True, dir_okay=False),
    help="Lint config file (defaults to .contentlint.yaml in the project root).",
)


def load_config(project_root: str, config_path: str | None) -> LintConfig:
    root = Path(project_root)
    if config_path:
        return LintConfig.from_yaml(Path(config_path), project_root=root)
    return LintConfig.discover(root)


def fail(error: ContentLintError) -> None:
    """Print a fatal error and exit with the error status."""
    err_console.print(f"[bold red]❌ {escape(str(error))}[/bold red]")
    sys.exit(EXIT_ERROR)


@click.group()
@click.version_option(version=__version__, prog_name="contentlint")
def cli():
    """Content lint CLI.

    Check a Hugo blog's posts for broken front matter, unclosed code
    fences, unbalanced shortcodes and links that lead nowhere.
    """
    configure_logging(level="WARNING", json_format=False)


@cli.command()
@project_root_option
@config_option
@click.option(
    "--rule", "-r", "rule_ids",
    multiple=True,
    help="Run only this rule (repeatable). Runs all enabled rules if not specified.",
)
@click.option(
    "--format", "output_format",
    type=click.Choice(["table", "json", "markdown"]),
    default="table",
    show_default=True,
    help="Report format.",
)
@click.option(
    "--fail-on",
    type=click.Choice(["error", "warning", "info"]),
    help="Lowest severity that fails the run (overrides fail_on in the config).",
)
@click.option(
    "--output", "-o",
    type=click.Path(dir_okay=False),
    help="Write the report to a file instead of stdout.",
)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default="WARNING",
    show_default=True,
    help="Log level (logs go to stderr).",
)
@click.option(
    "--json-logs",
    is_flag=True,
    help="Emit logs as JSON lines (default when stderr is not a terminal).",
)
def check(
    project_root: str,
    config_path: str | None,
    rule_ids: tuple,
    output_format: str,
    fail_on: str | None,
    output: str | None,
    log_level: str,
    json_logs: bool,
):
    """Lint every post of the site.

    Exits with 1 when an issue reaches the fail threshold, 2 when the
    configuration or content directory is unusable.

    Examples:
        contentlint check
        contentlint check -r broken-internal-link -r unclosed-fence
        contentlint check --format markdown -o lint-report.md
    """
    configure_logging(level=log_level.upper(), json_format=json_logs or None)

    try:
        config = load_config(project_root, config_path)
        if fail_on:
            config.fail_on = fail_on
        orchestrator = LintOrchestrator(Path(project_root), config=config)
        report = orchestrator.run(list(rule_ids) or None)
    except ContentLintError as e:
        fail(e)

    if output_format == "json":
        rendered = json.dumps(report.to_dict(), indent=2, default=str)
    elif output_format == "markdown":
        rendered = ReportRenderer().render_markdown(report)
    else:
        rendered = None

    if output:
        output_path = Path(output)
        if rendered is None:
            with open(output_path, "w", encoding="utf-8") as f:
                print_report_table(report, Console(file=f, width=120))
        else:
            output_path.write_text(rendered, encoding="utf-8")
        err_console.print(f"✅ Report written to {output_path}")
    elif rendered is None:
        print_report_table(report, console)
    else:
        click.echo(rendered, nl=not rendered.endswith("\n"))

    if report.has_failures(Severity(config.fail_on)):
        sys.exit(EXIT_FAILURES)


def print_report_table(report: LintReport, out: Console) -> None:
    if report.issues:
        table = Table()
        table.add_column("Location", style="cyan")
        table.add_column("Severity")
        table.add_column("Rule")
        table.add_column("Message")

        for issue in report.issues:
            style = SEVERITY_STYLES[issue.severity]
            table.add_row(
                issue.location,
                f"[{style}]{issue.severity.value}[/{style}]",
                issue.rule_id,
                issue.message,
            )
        out.print(table)
    else:
        out.print("[bold green]✅ No issues found[/bold green]")

    counts = report.counts()
    out.print(
        f"\n[bold]{counts['error']} errors, {counts['warning']} warnings, "
        f"{counts['info']} info[/bold] in {report.posts_checked} posts"
    )


@cli.command()
@project_root_option
@config_option
def rules(project_root: str, config_path: str | None):
    """List available rules with their effective severity.

    Disabled rules still run when selected with ``check --rule``.
    """
    try:
        config = load_config(project_root, config_path)
    except ContentLintError as e:
        fail(e)

    table = Table(title="Rules")
    table.add_column("Rule", style="cyan")
    table.add_column("Severity")
    table.add_column("Scope")
    table.add_column("Enabled", justify="center")
    table.add_column("Description")

    disabled = set(config.disabled_rules)
    for rule_id, rule_class in RULES.items():
        rule = rule_class(config)
        table.add_row(
            rule_id,
            rule.severity.value,
            rule.scope,
            "❌" if rule_id in disabled else "✅",
            rule.description,
        )

    console.print(table)


@cli.command()
@project_root_option
@config_option
@click.option(
    "--json", "as_json",
    is_flag=True,
    help="Output as JSON.",
)
def stats(project_root: str, config_path: str | None, as_json: bool):
    """Show statistics about the site.

    Displays post, draft, section and taxonomy counts and how links resolve.
    """
    try:
        config = load_config(project_root, config_path)
        site_stats = LintOrchestrator(Path(project_root), config=config).get_stats()
    except ContentLintError as e:
        fail(e)

    if as_json:
        click.echo(json.dumps(site_stats, indent=2, default=str))
        return

    console.print("\n[bold blue]📊 Site Statistics[/bold blue]\n")
    console.print(f"[bold]Posts:[/bold] {site_stats['posts']} ({site_stats['drafts']} drafts)")
    console.print(f"[bold]Sections:[/bold] {', '.join(site_stats['sections']) or '-'}")
    console.print(f"[bold]Aliases:[/bold] {site_stats['aliases']}")
    console.print(f"[bold]Duplicate URLs:[/bold] {site_stats['duplicate_urls']}")
    console.print(f"[bold]Fenced blocks:[/bold] {site_stats['fenced_blocks']}")
    console.print()

    for plural, count in site_stats["taxonomies"].items():
        top = ", ".join(site_stats["top_terms"].get(plural, []))
        console.print(f"[bold]{plural.capitalize()}:[/bold] {count}" + (f" ({top})" if top else ""))
    console.print()

    table = Table(title="Links")
    table.add_column("Resolution", style="cyan")
    table.add_column("Count", justify="right")
    for kind, count in site_stats["links"].items():
        table.add_row(kind, str(count))
    console.print(table)


@cli.command()
@click.argument("file_path", type=click.Path(exists=True, dir_okay=False))
@project_root_option
@config_option
def extract(file_path: str, project_root: str, config_path: str | None):
    """Show what the linter reads from a single post.

    Useful for checking front matter, fences, links and the computed
    permalink of one file.
    """
    try:
        config = load_config(project_root, config_path)
        orchestrator = LintOrchestrator(Path(project_root), config=config)
        post = orchestrator.loader().load_file(Path(file_path))
    except ContentLintError as e:
        fail(e)
    except ValueError as e:
        err_console.print(f"[bold red]❌ {escape(str(e))}[/bold red]")
        sys.exit(EXIT_ERROR)

    console.print(f"\n[bold blue]📄 {post.relative_path}[/bold blue]\n")
    console.print(f"  Permalink: {post.permalink}")
    console.print(f"  Front matter: {post.front_matter_format or 'none'}")
    for key, value in post.raw_front_matter.items():
        console.print(f"    {key}: {value}", markup=False)
    for problem in post.front_matter_problems:
        console.print(f"  ❌ line {problem.line}: {problem.message}", markup=False)

    console.print(f"\n  Fenced blocks: {len(post.fences)}")
    for fence in post.fences:
        end = fence.end_line if fence.closed else "unclosed"
        console.print(f"    - {fence.language or '(none)'}: lines {fence.start_line}-{end}", markup=False)

    console.print(f"\n  Links: {len(post.links)}")
    for link in post.links:
        console.print(f"    - line {link.line} [{link.kind}] {link.target}", markup=False)

    console.print(f"\n  Shortcodes: {len(post.shortcodes)}")
    for shortcode in post.shortcodes:
        name = f"/{shortcode.name}" if shortcode.closing else shortcode.name
        console.print(f"    - line {shortcode.line} {name}", markup=False)
    console.print()


@cli.command()
@project_root_option
@config_option
@click.option(
    "--output", "-o",
    type=click.Path(dir_okay=False),
    help="Output file for the link graph (JSON format).",
)
@click.option(
    "--broken-only",
    is_flag=True,
    help="Export only internal links that do not resolve.",
)
def links(project_root: str, config_path: str | None, output: str | None, broken_only: bool):
    """Export the internal link graph.

    Maps each post's permalink to the permalinks it links to, or with
    ``--broken-only`` to the targets that resolve nowhere.
    """
    try:
        config = load_config(project_root, config_path)
        index = LintOrchestrator(Path(project_root), config=config).build_index()
    except ContentLintError as e:
        fail(e)

    if broken_only:
        export_data = {}
        for post in index.posts:
            broken = sorted({
                link.target for link in post.links
                if index.resolve(link.target, post).kind == ResolutionKind.UNRESOLVED
            })
            if broken:
                export_data[post.permalink] = broken
    else:
        export_data = index.link_graph()

    rendered = json.dumps(export_data, indent=2, sort_keys=True)
    if output:
        output_path = Path(output)
        output_path.write_text(rendered + "\n", encoding="utf-8")
        err_console.print(f"✅ Link graph exported to {output_path}")
    else:
        click.echo(rendered)


def main():
    """Entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
