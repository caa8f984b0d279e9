"""
Structured error types for content-lint.

Lint findings are never exceptions: a broken link or an unclosed fence is
an ``Issue`` in the report. The types here cover the conditions that stop
a run outright, such as an unreadable configuration file or a missing
content directory.

Every ContentLintError carries:
- **Category:** What kind of failure (config, source, parse, internal)
- **Context:** Structured metadata (path, line, rule id, extras)
- **Cause:** Chained underlying exception for root cause analysis

Architecture:
    ::

        ┌───────────────────────────────────────────────────────┐
        │                  ContentLintError                      │
        │            (category, context, cause)                  │
        ├───────────────────────────────────────────────────────┤
        │  ConfigError      SourceError      RuleError           │
        │  (CONFIG)         (SOURCE)         (INTERNAL)          │
        │                       │                                │
        │                   ParseError                           │
        │                   (PARSE)                              │
        └───────────────────────────────────────────────────────┘

Examples:
    >>> error = ConfigError("Unknown config key: foo")
    >>> error.category
    <ErrorCategory.CONFIG: 'CONFIG'>

    >>> error = ParseError("Front matter is not closed").with_context(
    ...     path="content/post/a.md", line=1
    ... )
    >>> error.context.path
    'content/post/a.md'

Tags:
    error-handling, exception-hierarchy, error-context, content-lint
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Standard error categories for classification and exit codes."""

    CONFIG = "CONFIG"        # Missing or invalid settings
    SOURCE = "SOURCE"        # Content directory, unreadable files
    PARSE = "PARSE"          # Front matter or config syntax
    INTERNAL = "INTERNAL"    # Bugs, a rule crashing


@dataclass
class ErrorContext:
    """Structured metadata attached to an error.

    Attributes:
        path: File the error relates to
        line: 1-based line number inside ``path``
        rule_id: Lint rule involved, if any
        metadata: Additional key-value pairs
    """

    path: str | None = None
    line: int | None = None
    rule_id: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging, dropping unset fields."""
        result: dict[str, Any] = {}
        for key in ("path", "line", "rule_id"):
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class ContentLintError(Exception):
    """Base exception for all content-lint errors.

    Subclasses set ``default_category`` so callers can route on the
    category without inspecting the concrete type.

    Examples:
        >>> error = ContentLintError("Something went wrong")
        >>> error.category
        <ErrorCategory.INTERNAL: 'INTERNAL'>
        >>> error.to_dict()["message"]
        'Something went wrong'
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> ContentLintError:
        """Add context to this error (fluent API).

        Usage:
            raise SourceError("Content directory not found").with_context(
                path="content"
            )
        """
        for key, value in kwargs.items():
            if key != "metadata" and hasattr(self.context, key):
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result: dict[str, Any] = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
        }
        context_dict = self.context.to_dict()
        if context_dict:
            result["context"] = context_dict
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __str__(self) -> str:
        location = self.context.path
        if location and self.context.line is not None:
            location = f"{location}:{self.context.line}"
        if location:
            return f"{self.message} ({location})"
        return self.message

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


class ConfigError(ContentLintError):
    """Invalid or unreadable lint/site configuration."""

    default_category = ErrorCategory.CONFIG


class SourceError(ContentLintError):
    """Content source problem (missing directory, unreadable file)."""

    default_category = ErrorCategory.SOURCE


class ParseError(SourceError):
    """Front matter could not be parsed."""

    default_category = ErrorCategory.PARSE


class RuleError(ContentLintError):
    """A lint rule failed while checking content."""

    default_category = ErrorCategory.INTERNAL


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "ContentLintError",
    "ConfigError",
    "SourceError",
    "ParseError",
    "RuleError",
]
