"""Record and key selection for JSON (JSONPath) and XML (ElementTree paths)."""

from __future__ import annotations

from typing import Any, Optional

from jsonpath_ng import parse as jsonpath_parse
from jsonpath_ng.exceptions import JsonPathLexerError, JsonPathParserError

from .exceptions import ConfigurationError


class JSONPathMatcher:
    """Utility class for JSONPath matching."""

    # Cache for compiled JSONPath expressions
    _cache: dict = {}

    @classmethod
    def compile(cls, path: str):
        """Compile and cache a JSONPath expression."""
        if path not in cls._cache:
            try:
                cls._cache[path] = jsonpath_parse(path)
            except (JsonPathLexerError, JsonPathParserError) as e:
                raise ConfigurationError(f"Invalid JSONPath expression '{path}': {e}")
        return cls._cache[path]

    @classmethod
    def find_values(cls, data: Any, path: str) -> list[Any]:
        """Find all values matching a JSONPath expression."""
        expr = cls.compile(path)
        return [m.value for m in expr.find(data)]

    @classmethod
    def find_first(cls, data: Any, path: str, default: Any = None) -> Any:
        """Return the first value matching a JSONPath expression."""
        values = cls.find_values(data, path)
        return values[0] if values else default


def select_json_records(document: Any, path: str = "$[*]") -> list[Any]:
    """Select the records to compare from a decoded JSON document."""
    return JSONPathMatcher.find_values(document, path)


def select_xml_records(root: Any, path: str) -> list[Any]:
    """
    Select the records to compare from an XML document.

    ``path`` is an ElementTree path relative to the root element. A leading
    segment naming the root element itself is accepted and dropped, so
    ``requests/request`` and ``request`` select the same nodes under
    ``<requests>``.
    """
    segments = path.strip("/").split("/", 1)
    if len(segments) == 2 and segments[0] == root.tag:
        path = segments[1]
    return list(root.findall(path))


def xml_value(element: Any, spec: str) -> Optional[str]:
    """
    Read a key component from an XML element.

    ``@name`` reads an attribute, ``.`` the element's own text, and anything
    else is an ElementTree path whose text is returned.
    """
    if spec.startswith("@"):
        return element.get(spec[1:])
    if spec == ".":
        return (element.text or "").strip()
    return element.findtext(spec)
