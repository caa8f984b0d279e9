"""
Front matter parsing for Hugo posts.

Splits a post into its front matter block and Markdown body, decodes the
block (YAML between ``---`` lines, TOML between ``+++`` lines) and
validates it against the ``FrontMatter`` schema.

Content problems never raise from ``FrontMatterParser.parse``: they are
collected as ``FrontMatterProblem`` entries carrying the file line, so the
rules can report every broken post in one run. ``parse_strict`` is the
raising variant for callers that handle a single file.

Example:
    >>> parser = FrontMatterParser()
    >>> parsed = parser.parse("---\\ntitle: Hello\\ndate: 2024-01-02\\n---\\nBody\\n")
    >>> parsed.model.title
    'Hello'
    >>> parsed.body_start_line
    5
"""

from __future__ import annotations

import re
import tomllib
from dataclasses import dataclass, field
from datetime import date, datetime, time, timezone
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from content_lint.errors import ParseError

YAML_DELIMITER = "---"
TOML_DELIMITER = "+++"

# Keys the blog's posts use, plus the Hugo page variables it relies on.
RECOGNIZED_KEYS = frozenset({
    "layout", "title", "description", "date", "lastmod", "images",
    "thumbnail", "tags", "categories", "keywords", "url",
    "slug", "aliases", "draft", "toc", "autoCollapseToc", "weight",
    "author", "summary", "expirydate", "publishdate",
})

_HUGO_DATE_FORMATS = (
    "%Y-%m-%d %H:%M:%S %z",
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%d %H:%M",
    "%Y/%m/%d",
)

_TOML_LINE = re.compile(r"at line (\d+)")


def parse_date(value: Any) -> datetime | None:
    """Coerce a front matter date value to an aware datetime.

    Accepts datetime, date, and the string forms Hugo reads. Naive values
    are taken as UTC. Empty strings and None give None.

    Raises:
        ValueError: If a string is not a recognizable date
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        result = value
    elif isinstance(value, date):
        result = datetime.combine(value, time.min)
    elif isinstance(value, str):
        text = value.strip()
        try:
            result = datetime.fromisoformat(text.replace("Z", "+00:00"))
        except ValueError:
            for fmt in _HUGO_DATE_FORMATS:
                try:
                    result = datetime.strptime(text, fmt)
                    break
                except ValueError:
                    continue
            else:
                raise ValueError(f"unrecognized date {value!r}") from None
    else:
        raise ValueError(f"expected a date, got {type(value).__name__}")
    return to_utc(result)


def to_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes and convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class FrontMatter(BaseModel):
    """Validated post front matter.

    Unknown keys are kept (``model_extra``) so the unknown-key rule can
    report them without the schema rejecting the post.
    """

    model_config = ConfigDict(extra="allow")

    layout: str | None = None
    title: str | None = None
    description: str | None = None
    date: datetime | None = None
    lastmod: datetime | None = None
    images: list[str] = Field(default_factory=list)
    thumbnail: str | None = None
    tags: list[str] = Field(default_factory=list)
    categories: list[str] = Field(default_factory=list)
    keywords: list[str] = Field(default_factory=list)
    url: str | None = None
    slug: str | None = None
    aliases: list[str] = Field(default_factory=list)
    draft: bool = False

    @field_validator("layout", "title", "description", "thumbnail", "url", "slug", mode="before")
    @classmethod
    def _scalar_to_str(cls, value: Any) -> Any:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value

    @field_validator("images", "tags", "categories", "keywords", "aliases", mode="before")
    @classmethod
    def _wrap_list(cls, value: Any) -> Any:
        if value is None or value == "":
            return []
        if isinstance(value, str):
            return [value]
        if isinstance(value, list):
            return [
                str(item) if isinstance(item, (int, float)) and not isinstance(item, bool) else item
                for item in value
            ]
        return value

    @field_validator("date", "lastmod", mode="before")
    @classmethod
    def _coerce_date(cls, value: Any) -> Any:
        return parse_date(value)

    @property
    def extra_keys(self) -> list[str]:
        """Keys present in the source that are not schema fields."""
        return sorted((self.model_extra or {}).keys())


@dataclass
class FrontMatterProblem:
    """A front matter defect found while parsing.

    Attributes:
        kind: "missing", "syntax", or "schema"
        line: 1-based line in the post file
        message: Human-readable description
        key: Front matter key involved (schema problems)
    """

    kind: str
    line: int
    message: str
    key: str | None = None


@dataclass
class ParsedFrontMatter:
    """Result of splitting and decoding a post."""

    format: str | None
    data: dict[str, Any] = field(default_factory=dict)
    model: FrontMatter | None = None
    problems: list[FrontMatterProblem] = field(default_factory=list)
    body: str = ""
    body_start_line: int = 1
    raw: str = ""

    @property
    def ok(self) -> bool:
        return not self.problems


def split_front_matter(text: str) -> tuple[str | None, str, str, int]:
    """Split a post into (format, raw block, body, body start line).

    Raises:
        ParseError: If an opening delimiter has no closing delimiter
    """
    if text.startswith("\ufeff"):
        text = text[1:]

    lines = text.splitlines(keepends=True)
    if not lines:
        return None, "", "", 1

    first = lines[0].strip()
    if first == YAML_DELIMITER:
        fmt, delimiter = "yaml", YAML_DELIMITER
    elif first == TOML_DELIMITER:
        fmt, delimiter = "toml", TOML_DELIMITER
    else:
        return None, "", text, 1

    for index in range(1, len(lines)):
        if lines[index].rstrip() == delimiter:
            raw = "".join(lines[1:index])
            body = "".join(lines[index + 1:])
            return fmt, raw, body, index + 2

    raise ParseError(f"Front matter opened with '{delimiter}' is never closed").with_context(line=1)


class FrontMatterParser:
    """Decode and validate post front matter.

    Features:
        - YAML (``---``) and TOML (``+++``) front matter
        - Syntax errors mapped to the line in the post file
        - Schema errors mapped to the line of the offending key
        - Unknown keys preserved for later reporting

    Examples:
        >>> parsed = FrontMatterParser().parse("---\\ntags: [a, b\\n---\\n")
        >>> parsed.problems[0].kind
        'syntax'
    """

    def parse(self, text: str) -> ParsedFrontMatter:
        """Parse a post's text, collecting problems instead of raising."""
        try:
            fmt, raw, body, body_start = split_front_matter(text)
        except ParseError as e:
            return ParsedFrontMatter(
                format=None,
                problems=[FrontMatterProblem("syntax", e.context.line or 1, e.message)],
                body=text,
            )

        if fmt is None:
            return ParsedFrontMatter(
                format=None,
                problems=[FrontMatterProblem("missing", 1, "Post has no front matter")],
                body=body,
                body_start_line=body_start,
            )

        result = ParsedFrontMatter(format=fmt, body=body, body_start_line=body_start, raw=raw)

        data = self._decode(fmt, raw, result)
        if data is None:
            return result
        result.data = data

        try:
            result.model = FrontMatter.model_validate(data)
        except ValidationError as e:
            for error in e.errors():
                key = str(error["loc"][0]) if error["loc"] else None
                location = ".".join(str(part) for part in error["loc"])
                result.problems.append(FrontMatterProblem(
                    kind="schema",
                    line=find_key_line(raw, key, fmt),
                    message=f"{location}: {error['msg']}",
                    key=key,
                ))
        return result

    def parse_strict(self, text: str) -> ParsedFrontMatter:
        """Parse a post's text, raising on the first problem.

        Raises:
            ParseError: If the front matter is missing, malformed, or invalid
        """
        result = self.parse(text)
        if result.problems:
            problem = result.problems[0]
            raise ParseError(problem.message).with_context(line=problem.line, kind=problem.kind)
        return result

    def _decode(self, fmt: str, raw: str, result: ParsedFrontMatter) -> dict[str, Any] | None:
        """Decode the raw block; record a syntax problem and return None on failure."""
        if fmt == "yaml":
            try:
                data = yaml.safe_load(raw)
            except yaml.YAMLError as e:
                mark = getattr(e, "problem_mark", None)
                line = mark.line + 2 if mark is not None else 2
                problem = getattr(e, "problem", None) or str(e)
                result.problems.append(FrontMatterProblem("syntax", line, f"Invalid YAML: {problem}"))
                return None
        else:
            try:
                data = tomllib.loads(raw)
            except tomllib.TOMLDecodeError as e:
                match = _TOML_LINE.search(str(e))
                line = int(match.group(1)) + 1 if match else 2
                result.problems.append(FrontMatterProblem("syntax", line, f"Invalid TOML: {e}"))
                return None

        if data is None:
            return {}
        if not isinstance(data, dict):
            result.problems.append(FrontMatterProblem(
                "syntax", 2, f"Front matter must be a mapping, got {type(data).__name__}",
            ))
            return None
        return {str(k): v for k, v in data.items()}


def find_key_line(raw: str, key: str | None, fmt: str | None) -> int:
    """File line declaring ``key`` in a raw front matter block, else 1.

    The block starts on file line 2, right after the opening delimiter.
    """
    if key and fmt:
        separator = ":" if fmt == "yaml" else "="
        pattern = re.compile(rf"^\s*['\"]?{re.escape(key)}['\"]?\s*{separator}")
        for offset, line in enumerate(raw.splitlines()):
            if pattern.match(line):
                return offset + 2
    return 1


__all__ = [
    "RECOGNIZED_KEYS",
    "find_key_line",
    "FrontMatter",
    "FrontMatterProblem",
    "ParsedFrontMatter",
    "FrontMatterParser",
    "split_front_matter",
    "parse_date",
    "to_utc",
]
