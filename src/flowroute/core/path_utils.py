"""
Dot-path utilities for flowroute variable references.

A reference such as ``summarizer.data.name`` is split at the first dot into a
namespace (``summarizer``) and a field path (``data.name``); the field path
is then followed through nested objects and arrays of a node's outputs.
"""

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class PathComponents:
    """Result of splitting a path into its components."""

    first_part: str
    remainder: str
    has_remainder: bool

    @classmethod
    def split_path(cls, path: str) -> "PathComponents":
        """
        Split a path at the first dot separator.

        Params:
            path: Path string to split (e.g., "openai_1.response.text")

        Returns:
            PathComponents with first_part, remainder, and has_remainder flag

        Examples:
            "openai_1.response.text" -> PathComponents("openai_1", "response.text", True)
            "input" -> PathComponents("input", "", False)
        """
        if not path or "." not in path:
            return cls(first_part=path, remainder="", has_remainder=False)

        first_part, remainder = path.split(".", 1)
        return cls(first_part=first_part, remainder=remainder, has_remainder=True)


def split_field_path(field_path: str) -> list[str]:
    """Split a field path into its segments, ignoring empty segments."""
    return [segment for segment in field_path.split(".") if segment]


def get_nested_value(value: Any, field_path: str) -> Any:
    """
    Follow a dotted field path through nested objects and arrays.

    Object segments are looked up by key; array segments must be integer
    indices. Anything missing along the way yields None rather than an error,
    since node outputs are heterogeneous and fields may or may not be present.

    Params:
        value: Root value to descend into
        field_path: Dotted path, empty for the root itself

    Returns:
        The value at the path, or None when any segment is missing
    """
    current = value
    for segment in split_field_path(field_path):
        if isinstance(current, dict):
            if segment not in current:
                return None
            current = current[segment]
        elif isinstance(current, (list, tuple)):
            try:
                index = int(segment)
            except ValueError:
                return None
            if not -len(current) <= index < len(current):
                return None
            current = current[index]
        else:
            return None
    return current
