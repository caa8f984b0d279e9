"""
Configuration for content-lint.

Two sources feed a run:

- ``LintConfig``: linter settings, read from ``.contentlint.yaml`` in the
  project root (all keys optional).
- ``SiteConfig``: the facts the linter needs from the Hugo site
  configuration (``config.toml`` or ``hugo.toml``): base URL, URL style,
  taxonomies, menu entries and the outdated-content thresholds.

Example ``.contentlint.yaml``::

    content_dir: content
    disabled_rules:
      - description-length
    severity_overrides:
      front-matter-unknown-key: info
    extra_known_keys:
      - series
    allowed_link_prefixes:
      - /search/
    fail_on: warning
"""

from __future__ import annotations

import tomllib
from dataclasses import dataclass, field, fields
from datetime import date, datetime, time
from fnmatch import fnmatch
from pathlib import Path, PurePosixPath
from typing import Any
from urllib.parse import urlsplit

import yaml

from content_lint.errors import ConfigError

CONFIG_FILE_NAME = ".contentlint.yaml"
SITE_CONFIG_CANDIDATES = ("config.toml", "hugo.toml")
SEVERITY_NAMES = ("error", "warning", "info")

LIST_FIELDS = (
    "skip_patterns",
    "disabled_rules",
    "required_fields",
    "extra_known_keys",
    "allowed_link_prefixes",
    "paired_shortcodes",
)
BOOL_FIELDS = ("require_fence_language", "include_drafts")
PATH_FIELDS = ("project_root", "content_dir", "static_dir")


def matches_skip_pattern(relative_path: str | PurePosixPath, patterns: list[str]) -> bool:
    """Check a content-relative path against skip patterns.

    A pattern without a slash is an fnmatch glob tested against each path
    segment, so ``drafts`` skips ``drafts/old.md`` but not
    ``post/drafts-of-a-talk.md``. A pattern with a slash is tested against
    the whole path and each parent directory (``post/2019/*``).
    """
    path = PurePosixPath(relative_path)
    for pattern in patterns:
        pattern = pattern.strip("/")
        if not pattern:
            continue
        if "/" in pattern:
            candidates = [str(path)] + [str(parent) for parent in path.parents]
        else:
            candidates = list(path.parts)
        if any(fnmatch(candidate, pattern) for candidate in candidates):
            return True
    return False


def _type_error(key: str, expected: str, value: Any) -> ConfigError:
    return ConfigError(
        f"Config key '{key}' must be {expected}, got {type(value).__name__}"
    ).with_context(key=key)


@dataclass
class LintConfig:
    """Configuration for the content linter.

    Attributes:
        project_root: Root of the Hugo site
        content_dir: Content directory, relative to project_root
        static_dir: Static assets directory, relative to project_root
        site_config: Hugo config file (auto-detected when None)
        skip_patterns: Path segment globs to skip when scanning (see matches_skip_pattern)
        disabled_rules: Rule ids that are not run
        severity_overrides: Rule id -> severity name
        required_fields: Front matter keys every post must set
        extra_known_keys: Front matter keys accepted besides the built-in set
        allowed_link_prefixes: Site paths that always resolve (e.g. "/search/")
        require_fence_language: Report fences without a language hint
        paired_shortcodes: Shortcodes that must be opened and closed
        include_drafts: Check draft posts and let them satisfy links
        description_max_length: Upper bound for the description field
        fail_on: Lowest severity that makes the run fail
        now: Clock override for date-based rules
    """

    project_root: Path = field(default_factory=lambda: Path("."))
    content_dir: Path = field(default_factory=lambda: Path("content"))
    static_dir: Path = field(default_factory=lambda: Path("static"))
    site_config: Path | None = None

    skip_patterns: list[str] = field(default_factory=lambda: [".git", "node_modules"])

    disabled_rules: list[str] = field(default_factory=lambda: ["orphan-post"])
    severity_overrides: dict[str, str] = field(default_factory=dict)

    required_fields: list[str] = field(default_factory=lambda: ["title", "date"])
    extra_known_keys: list[str] = field(default_factory=list)

    allowed_link_prefixes: list[str] = field(default_factory=list)
    require_fence_language: bool = False
    paired_shortcodes: list[str] = field(default_factory=lambda: ["highlight"])

    include_drafts: bool = True
    description_max_length: int = 160
    fail_on: str = "error"
    now: datetime | None = None

    def __post_init__(self):
        """Convert paths to Path objects and validate value types and enumerations."""
        for name in PATH_FIELDS:
            value = getattr(self, name)
            if isinstance(value, str):
                setattr(self, name, Path(value))
            elif not isinstance(value, Path):
                raise _type_error(name, "a path", value)
        if isinstance(self.site_config, str):
            self.site_config = Path(self.site_config)
        elif self.site_config is not None and not isinstance(self.site_config, Path):
            raise _type_error("site_config", "a path", self.site_config)

        for name in LIST_FIELDS:
            value = getattr(self, name)
            if not isinstance(value, (list, tuple)) or not all(isinstance(v, str) for v in value):
                raise _type_error(name, "a list of strings", value)
            setattr(self, name, list(value))
        for name in BOOL_FIELDS:
            if not isinstance(getattr(self, name), bool):
                raise _type_error(name, "true or false", getattr(self, name))
        if isinstance(self.description_max_length, bool) or not isinstance(self.description_max_length, int):
            raise _type_error("description_max_length", "an integer", self.description_max_length)
        if not isinstance(self.severity_overrides, dict):
            raise _type_error("severity_overrides", "a mapping of rule id to severity", self.severity_overrides)

        if self.now is not None and not isinstance(self.now, (str, date)):
            raise _type_error("now", "a date or ISO timestamp", self.now)
        if isinstance(self.now, str):
            try:
                self.now = datetime.fromisoformat(self.now)
            except ValueError as e:
                raise ConfigError(f"Invalid 'now' timestamp: {self.now}", cause=e) from e
        elif isinstance(self.now, date) and not isinstance(self.now, datetime):
            # YAML loads an unquoted 2024-01-01 as a date
            self.now = datetime.combine(self.now, time.min)

        if not isinstance(self.fail_on, str) or self.fail_on not in SEVERITY_NAMES:
            raise ConfigError(
                f"fail_on must be one of {', '.join(SEVERITY_NAMES)}, got {self.fail_on!r}"
            )
        for rule_id, severity in self.severity_overrides.items():
            if not isinstance(severity, str) or severity not in SEVERITY_NAMES:
                raise ConfigError(
                    f"Invalid severity {severity!r} for rule {rule_id}"
                ).with_context(rule_id=rule_id)

    @property
    def content_path(self) -> Path:
        """Absolute-ish path of the content directory."""
        return self.project_root / self.content_dir

    @property
    def static_path(self) -> Path:
        return self.project_root / self.static_dir

    @property
    def site_config_path(self) -> Path | None:
        """Hugo config file, explicit or the first candidate that exists."""
        if self.site_config is not None:
            path = self.site_config
            return path if path.is_absolute() else self.project_root / path
        for candidate in SITE_CONFIG_CANDIDATES:
            path = self.project_root / candidate
            if path.exists():
                return path
        return None

    @classmethod
    def from_yaml(cls, yaml_path: Path, project_root: Path | None = None) -> LintConfig:
        """Load configuration from a YAML file.

        Args:
            yaml_path: Path to YAML configuration file
            project_root: Overrides ``project_root`` from the file

        Returns:
            LintConfig instance

        Raises:
            ConfigError: If the file is unreadable, not YAML, or has unknown keys
        """
        try:
            with open(yaml_path, encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except OSError as e:
            raise ConfigError(f"Cannot read config file: {e}", cause=e).with_context(
                path=str(yaml_path)
            ) from e
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in config file: {e}", cause=e).with_context(
                path=str(yaml_path)
            ) from e

        if not isinstance(data, dict):
            raise ConfigError("Config file must contain a mapping").with_context(
                path=str(yaml_path)
            )

        if project_root is not None:
            data["project_root"] = project_root
        elif "project_root" not in data:
            data["project_root"] = yaml_path.parent

        return cls.from_dict(data)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> LintConfig:
        """Create config from dictionary.

        Raises:
            ConfigError: If the dictionary has keys that are not config fields
        """
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigError(f"Unknown config keys: {', '.join(unknown)}")
        return cls(**data)

    @classmethod
    def discover(cls, project_root: Path) -> LintConfig:
        """Load ``.contentlint.yaml`` from project_root, or use defaults."""
        project_root = Path(project_root)
        config_file = project_root / CONFIG_FILE_NAME
        if config_file.exists():
            return cls.from_yaml(config_file, project_root=project_root)
        return cls(project_root=project_root)

    def to_dict(self) -> dict[str, Any]:
        """Convert config to dictionary."""
        return {
            "project_root": str(self.project_root),
            "content_dir": str(self.content_dir),
            "static_dir": str(self.static_dir),
            "site_config": str(self.site_config) if self.site_config else None,
            "skip_patterns": self.skip_patterns,
            "disabled_rules": self.disabled_rules,
            "severity_overrides": self.severity_overrides,
            "required_fields": self.required_fields,
            "extra_known_keys": self.extra_known_keys,
            "allowed_link_prefixes": self.allowed_link_prefixes,
            "require_fence_language": self.require_fence_language,
            "paired_shortcodes": self.paired_shortcodes,
            "include_drafts": self.include_drafts,
            "description_max_length": self.description_max_length,
            "fail_on": self.fail_on,
            "now": self.now.isoformat() if self.now else None,
        }

    def should_skip(self, relative_path: str | Path) -> bool:
        """Check if a content-relative path should be skipped during scanning."""
        return matches_skip_pattern(PurePosixPath(Path(relative_path).as_posix()), self.skip_patterns)


@dataclass
class SiteConfig:
    """Site facts read from the Hugo configuration.

    Attributes:
        base_url: ``baseURL``; absolute links on this host are internal
        title: Site title
        ugly_urls: ``uglyURLs``; pages end in ``.html`` instead of ``/``
        taxonomies: singular -> plural taxonomy names
        menu_urls: Every ``url`` declared under ``[[menu.*]]``
        outdated_enabled: ``params.outdatedInfoWarning.enable``
        outdated_hint_days: Days after which a post gets a hint
        outdated_warn_days: Days after which a post gets a warning
        path: File the config was read from, if any
    """

    base_url: str = ""
    title: str = ""
    ugly_urls: bool = False
    taxonomies: dict[str, str] = field(default_factory=lambda: {
        "tag": "tags",
        "category": "categories",
    })
    menu_urls: list[str] = field(default_factory=list)
    outdated_enabled: bool = False
    outdated_hint_days: int = 30
    outdated_warn_days: int = 180
    path: Path | None = None

    @classmethod
    def from_toml(cls, path: Path) -> SiteConfig:
        """Load site facts from a Hugo TOML config file.

        Raises:
            ConfigError: If the file is unreadable or not valid TOML
        """
        try:
            data = tomllib.loads(Path(path).read_text(encoding="utf-8"))
        except OSError as e:
            raise ConfigError(f"Cannot read site config: {e}", cause=e).with_context(
                path=str(path)
            ) from e
        except tomllib.TOMLDecodeError as e:
            raise ConfigError(f"Invalid TOML in site config: {e}", cause=e).with_context(
                path=str(path)
            ) from e
        return cls.from_dict(data, path=Path(path))

    @classmethod
    def from_dict(cls, data: dict[str, Any], path: Path | None = None) -> SiteConfig:
        """Build from an already-parsed Hugo config mapping.

        Raises:
            ConfigError: If a value the linter reads has the wrong type
        """
        params = _table(data, "params", path)

        ugly = data.get("uglyURLs", data.get("uglyurls"))
        if ugly is None:
            ugly = params.get("uglyURLs", params.get("uglyurls", False))

        taxonomies = data.get("taxonomies")
        if not isinstance(taxonomies, dict) or not taxonomies:
            taxonomies = {"tag": "tags", "category": "categories"}

        menu_urls: list[str] = []
        menus = _table(data, "menu", path)
        for entries in menus.values():
            for entry in entries if isinstance(entries, list) else []:
                url = entry.get("url") if isinstance(entry, dict) else None
                if url:
                    menu_urls.append(url)

        outdated = _table(params, "outdatedInfoWarning", path)

        return cls(
            base_url=str(data.get("baseURL", data.get("baseurl", ""))),
            title=str(data.get("title", "")),
            ugly_urls=bool(ugly),
            taxonomies={str(k): str(v) for k, v in taxonomies.items()},
            menu_urls=menu_urls,
            outdated_enabled=bool(outdated.get("enable", False)),
            outdated_hint_days=_days(outdated, "hint", 30, path),
            outdated_warn_days=_days(outdated, "warn", 180, path),
            path=path,
        )

    @classmethod
    def load(cls, path: Path | None) -> SiteConfig:
        """Load from path, or return defaults when there is no site config."""
        if path is None or not Path(path).exists():
            return cls()
        return cls.from_toml(path)

    @property
    def base_host(self) -> str:
        """Lowercased host of base_url, without a ``www.`` prefix."""
        host = (urlsplit(self.base_url).hostname or "").lower()
        return host[4:] if host.startswith("www.") else host

    @property
    def base_path(self) -> str:
        """Path component of base_url ("/" for a root deployment)."""
        path = urlsplit(self.base_url).path or "/"
        return path if path.endswith("/") else path + "/"

    def is_same_site(self, url: str) -> bool:
        """Check whether an absolute URL points at this site."""
        if not self.base_host:
            return False
        host = (urlsplit(url).hostname or "").lower()
        if host.startswith("www."):
            host = host[4:]
        return host == self.base_host



def _table(data: dict[str, Any], key: str, path: Path | None) -> dict[str, Any]:
    value = data.get(key) or {}
    if not isinstance(value, dict):
        raise ConfigError(f"Site config '{key}' must be a table").with_context(
            path=str(path) if path else None, key=key
        )
    return value


def _days(outdated: dict[str, Any], key: str, default: int, path: Path | None) -> int:
    value = outdated.get(key, default)
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise ConfigError(
            f"outdatedInfoWarning.{key} must be a number of days, got {value!r}", cause=e
        ).with_context(path=str(path) if path else None, key=key) from e

__all__ = [
    "CONFIG_FILE_NAME",
    "SEVERITY_NAMES",
    "LintConfig",
    "SiteConfig",
    "matches_skip_pattern",
]
