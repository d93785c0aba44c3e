"""JSONPath utilities for the deepdelta engine."""

from __future__ import annotations

import re
from typing import Any, Callable, Iterable, Optional

from jsonpath_ng import parse as jsonpath_parse
from jsonpath_ng.exceptions import JsonPathLexerError, JsonPathParserError

from .exceptions import RuleError
from .utils import render_path


class JSONPathMatcher:
    """Utility class for JSONPath matching and rendering."""

    # Cache for compiled JSONPath expressions
    _cache: dict = {}

    @classmethod
    def compile(cls, path: str):
        """Compile and cache a JSONPath expression."""
        if path not in cls._cache:
            try:
                cls._cache[path] = jsonpath_parse(path)
            except (JsonPathLexerError, JsonPathParserError) as e:
                raise ValueError(f"Invalid JSONPath expression '{path}': {e}")
        return cls._cache[path]

    @classmethod
    def find_values(cls, data: Any, path: str) -> list[Any]:
        """Find all values matching a JSONPath expression."""
        expr = cls.compile(path)
        return [m.value for m in expr.find(data)]

    @staticmethod
    def render(path: Optional[Iterable]) -> str:
        """Render a change path as a concrete JSONPath ('$' for the root)."""
        return render_path(tuple(path) if path else None)

    @classmethod
    def matches_pattern(cls, concrete_path: str, pattern: str) -> bool:
        """
        Check if a concrete path matches a JSONPath pattern.

        Supports:
        - Exact match: $.foo.bar
        - Recursive descent: $..field
        - Wildcard: $.items[*].name
        """
        # Handle recursive descent patterns
        if '..' in pattern:
            # Convert $..field to regex that matches any path ending with .field
            field = pattern.split('..')[-1]
            field_escaped = re.escape(field)
            regex = rf'.*\.{field_escaped}$|^\$\.{field_escaped}$'
            return bool(re.match(regex, concrete_path))

        # Handle wildcards
        if '[*]' in pattern or '.*' in pattern:
            regex_pattern = re.escape(pattern)
            regex_pattern = regex_pattern.replace(r'\[\*\]', r'\[\d+\]')
            regex_pattern = regex_pattern.replace(r'\*', r'[^.\[]+')
            regex_pattern = f'^{regex_pattern}$'
            return bool(re.match(regex_pattern, concrete_path))

        # Exact match
        return concrete_path == pattern


def ignore_paths(patterns: Iterable[str]) -> Callable[[tuple, Any], bool]:
    """
    Build a prefilter that skips every key whose path matches a pattern.

    Args:
        patterns: JSONPath patterns such as '$.meta.updated', '$..etag'
            or '$.items[*].id'

    Returns:
        A ``(path, key) -> bool`` predicate usable as a diff prefilter

    Raises:
        RuleError: if a pattern is not a valid JSONPath expression
    """
    patterns = list(patterns)
    for pattern in patterns:
        try:
            JSONPathMatcher.compile(pattern)
        except ValueError as e:
            raise RuleError(pattern, str(e))

    def prefilter(path: tuple, key: Any) -> bool:
        concrete = render_path(tuple(path) + (key,))
        return any(JSONPathMatcher.matches_pattern(concrete, p) for p in patterns)

    return prefilter
