"""
Clause evaluation.

A clause is evaluated in three steps: the left-hand ``input_field`` is
resolved (a bare reference such as ``input`` or ``openai_1.response``, or a
template containing ``{{...}}`` spans), the right-hand ``value`` is
interpolated to text, and the clause operator is applied.
"""

import logging
from typing import Any

from flowroute.core.models import Clause
from flowroute.exceptions import ErrorContext, ErrorLevel, FlowRouteError, MissingClauseValueError
from flowroute.execution.context import ExecutionContext
from flowroute.execution.resolution import VariableResolver
from flowroute.routing.operators import OperatorKind, apply_operator
from flowroute.templates.interpolation import interpolate, interpolate_value
from flowroute.templates.references import has_references

logger = logging.getLogger(__name__)


def resolve_left_value(
    input_field: str, context: ExecutionContext, resolver: VariableResolver | None = None
) -> Any:
    """
    Resolve the left-hand side of a clause to a typed value.

    Params:
        input_field: Bare dot-path reference, or a template with ``{{...}}`` spans
        context: Evaluation context of the condition node
        resolver: Resolver to use; the default resolver when omitted

    Returns:
        The typed value of a bare reference or single-span template,
        otherwise the interpolated string
    """
    if has_references(input_field):
        return interpolate_value(input_field, context, resolver)
    return (resolver or VariableResolver()).resolve(input_field, context)


def evaluate_clause(
    clause: Clause,
    context: ExecutionContext,
    path_id: str | None = None,
    resolver: VariableResolver | None = None,
) -> bool:
    """
    Evaluate one clause against the current run.

    Params:
        clause: Clause to evaluate
        context: Evaluation context of the condition node
        path_id: Id of the Path owning the clause, for error reports
        resolver: Resolver to use; the default resolver when omitted

    Returns:
        Whether the clause holds

    Raises:
        ResolutionError: If a reference cannot be resolved
        EvaluationError: If the operator cannot be applied
        MissingClauseValueError: If the operator needs a value and none was authored
    """
    try:
        operator = OperatorKind.parse(clause.operator)
        if operator.requires_value and not clause.value:
            raise MissingClauseValueError(clause.id, operator.value)

        left = resolve_left_value(clause.input_field, context, resolver)
        right = interpolate(clause.value, context, resolver) if operator.requires_value else ""
        result = apply_operator(operator, left, right, context.settings)
    except FlowRouteError as e:
        raise e.with_context(
            ErrorContext(
                node_id=context.node_id,
                path_id=path_id,
                clause_id=clause.id,
                operator=clause.operator,
            ),
            ErrorLevel.DEVELOPER,
        )

    if context.settings.log_clause_results:
        logger.debug(
            "Clause %s (%r %s %r) -> %s", clause.id, left, operator.value, right, result
        )
    return result
