"""
Condition routing for flowroute.

Operators, clause evaluation and path selection for condition nodes.
"""

from flowroute.routing.clauses import evaluate_clause, resolve_left_value
from flowroute.routing.operators import (
    OperatorKind,
    apply_operator,
    is_empty_value,
    validate_operand,
)
from flowroute.routing.selector import (
    PathSelection,
    apply_selection,
    check_path_layout,
    evaluate_path,
    select_path,
    selection_outputs,
)

__all__ = [
    "OperatorKind",
    "apply_operator",
    "is_empty_value",
    "validate_operand",
    "evaluate_clause",
    "resolve_left_value",
    "PathSelection",
    "apply_selection",
    "check_path_layout",
    "evaluate_path",
    "select_path",
    "selection_outputs",
]
