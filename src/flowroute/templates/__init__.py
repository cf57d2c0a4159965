"""
Template processing for flowroute.

Reference detection and interpolation of ``{{namespace.field}}`` spans.
"""

from flowroute.templates.interpolation import interpolate, interpolate_value
from flowroute.templates.references import (
    find_references,
    has_references,
    reference_namespace,
    single_reference,
)

__all__ = [
    "interpolate",
    "interpolate_value",
    "find_references",
    "has_references",
    "reference_namespace",
    "single_reference",
]
