"""
Template interpolation for flowroute.

Replaces every ``{{namespace.field}}`` span of a template with the
stringified value of the reference. Interpolation is all-or-nothing: if any
span fails to resolve the whole call fails, because a half-substituted string
would make the predicate it feeds produce misleading results.
"""

from typing import Any

from flowroute.core.types import format_value
from flowroute.exceptions import ErrorContext, FlowRouteError
from flowroute.execution.context import ExecutionContext
from flowroute.execution.resolution import VariableResolver
from flowroute.templates.references import (
    REFERENCE_PATTERN,
    has_references,
    single_reference,
)

_resolver = VariableResolver()


def interpolate(
    template: str, context: ExecutionContext, resolver: VariableResolver | None = None
) -> str:
    """
    Substitute every reference span in a template.

    Params:
        template: Text possibly containing ``{{...}}`` spans
        context: Evaluation context of the current node
        resolver: Resolver to use; the default resolver when omitted

    Returns:
        The fully resolved string; the template itself when it has no spans

    Raises:
        ResolutionError: If any span fails to resolve
    """
    if not has_references(template):
        return template

    resolver = resolver or _resolver
    parts = []
    position = 0
    for match in REFERENCE_PATTERN.finditer(template):
        parts.append(template[position : match.start()])
        parts.append(format_value(_resolve_span(match.group(1), template, context, resolver)))
        position = match.end()
    parts.append(template[position:])
    return "".join(parts)


def interpolate_value(
    template: str, context: ExecutionContext, resolver: VariableResolver | None = None
) -> Any:
    """
    Interpolate a template, keeping the type of a lone reference.

    A template that is exactly one ``{{...}}`` span yields the referenced
    value itself (number, array, object, ...) rather than its text form, so
    type-sensitive operators see the real value.

    Params:
        template: Text possibly containing ``{{...}}`` spans
        context: Evaluation context of the current node
        resolver: Resolver to use; the default resolver when omitted

    Returns:
        The typed value for a single-span template, otherwise the
        interpolated string
    """
    ref = single_reference(template)
    if ref is None:
        return interpolate(template, context, resolver)
    return _resolve_span(ref, template, context, resolver or _resolver)


def _resolve_span(
    ref: str, template: str, context: ExecutionContext, resolver: VariableResolver
) -> Any:
    try:
        return resolver.resolve(ref, context)
    except FlowRouteError as e:
        raise e.with_context(ErrorContext(node_id=context.node_id, template=template))
