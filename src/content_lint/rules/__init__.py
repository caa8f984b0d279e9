"""
Lint rules.

Each rule lives in one of three modules by what it inspects:

- ``front_matter``: the decoded front matter block
- ``body``: fences, shortcodes and links in the Markdown body
- ``site``: checks across all posts (URL collisions, aliases, staleness)

``RULES`` maps rule ids to classes in reporting order; ``get_rules``
instantiates the ones a run should execute.
"""

from __future__ import annotations

from content_lint.config import LintConfig
from content_lint.errors import ConfigError
from content_lint.rules.base import BaseRule
from content_lint.rules.body import BODY_RULES
from content_lint.rules.front_matter import FRONT_MATTER_RULES
from content_lint.rules.site import SITE_RULES

INTERNAL_ERROR_RULE_ID = "internal-error"

RULES: dict[str, type[BaseRule]] = {
    rule.rule_id: rule for rule in (*FRONT_MATTER_RULES, *BODY_RULES, *SITE_RULES)
}


def get_rules(config: LintConfig | None = None, rule_ids: list[str] | None = None) -> list[BaseRule]:
    """Instantiate the rules to run.

    Args:
        config: Lint configuration (defaults when None)
        rule_ids: Explicit rule selection; runs these even if disabled

    Raises:
        ConfigError: If a requested rule id does not exist
    """
    config = config or LintConfig()

    if rule_ids:
        unknown = [rule_id for rule_id in rule_ids if rule_id not in RULES]
        if unknown:
            raise ConfigError(
                f"Unknown rule(s): {', '.join(unknown)}"
            ).with_context(available=sorted(RULES))
        selected = [rule_id for rule_id in RULES if rule_id in rule_ids]
    else:
        disabled = set(config.disabled_rules)
        selected = [rule_id for rule_id in RULES if rule_id not in disabled]

    return [RULES[rule_id](config) for rule_id in selected]


__all__ = [
    "BaseRule",
    "INTERNAL_ERROR_RULE_ID",
    "RULES",
    "get_rules",
]
