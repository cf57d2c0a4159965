"""
Core flowroute components.

This package provides the runtime value model, dot-path utilities and the
workflow data models shared by every other flowroute package.
"""

from flowroute.core.models import (
    Clause,
    ConditionConfig,
    Edge,
    LogicalOperator,
    Node,
    Path,
    Workflow,
    default_display_name,
)
from flowroute.core.path_utils import PathComponents, get_nested_value
from flowroute.core.types import (
    Outputs,
    Value,
    ValueKind,
    format_value,
    parse_number,
    to_json,
    value_kind,
)

__all__ = [
    "Clause",
    "ConditionConfig",
    "Edge",
    "LogicalOperator",
    "Node",
    "Path",
    "Workflow",
    "default_display_name",
    "PathComponents",
    "get_nested_value",
    "Outputs",
    "Value",
    "ValueKind",
    "format_value",
    "parse_number",
    "to_json",
    "value_kind",
]
