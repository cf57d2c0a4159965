"""
Detection of {{namespace.field}} references in authored text.

Pure text scanning with no dependency on a run, so it can be used both at
graph-build time (validation) and at run time (interpolation).
"""

import re

# Non-greedy, non-overlapping double-brace spans; contents may span lines
REFERENCE_PATTERN = re.compile(r"\{\{(.*?)\}\}", re.DOTALL)

# A template consisting of exactly one span, surrounding whitespace allowed
SINGLE_REFERENCE_PATTERN = re.compile(r"^\s*\{\{((?:(?!\}\}).)*?)\}\}\s*$", re.DOTALL)


def has_references(text: str) -> bool:
    """Check whether text may contain a reference span."""
    return bool(text) and "{{" in text


def find_references(text: str) -> list[str]:
    """
    List the references used in text, in order of appearance.

    Params:
        text: Template text

    Returns:
        Trimmed reference strings (duplicates kept)
    """
    if not has_references(text):
        return []
    return [match.group(1).strip() for match in REFERENCE_PATTERN.finditer(text)]


def single_reference(text: str) -> str | None:
    """
    Return the reference when text is exactly one ``{{...}}`` span.

    Params:
        text: Template text

    Returns:
        The trimmed reference, or None when the text is anything else
    """
    if not has_references(text):
        return None
    match = SINGLE_REFERENCE_PATTERN.match(text)
    if match is None:
        return None
    return match.group(1).strip()


def reference_namespace(ref: str) -> str:
    """Namespace portion of a reference."""
    return ref.split(".", 1)[0].strip()
